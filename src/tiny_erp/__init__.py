"""tiny_erp package exports."""

from .client import (
    API_BASE_URL,
    TinyApiError,
    TinyClient,
    TinyClientError,
    TinyConfigurationError,
    TinyModelValidationError,
    TinyParseError,
    TinyTransportError,
)
from .envelope import Nested, TinyShapeError, unwrap, unwrap_record, wrap, wrap_record
from .models import (
    AccountDetails,
    BatchEntry,
    BatchFailure,
    BatchResult,
    BatchSuccess,
    Contact,
    ContactDetails,
    ContactInput,
    Page,
    Product,
    ProductDetails,
    ProductInput,
)
from .resources import index_by_sequence
from .sdk import TinySDK

__all__ = [
    # Entry points
    "TinySDK",
    "TinyClient",
    "API_BASE_URL",
    # Exceptions
    "TinyClientError",
    "TinyConfigurationError",
    "TinyTransportError",
    "TinyParseError",
    "TinyApiError",
    "TinyModelValidationError",
    "TinyShapeError",
    # Envelope codec
    "Nested",
    "wrap",
    "unwrap",
    "wrap_record",
    "unwrap_record",
    # Records
    "AccountDetails",
    "Contact",
    "ContactDetails",
    "ContactInput",
    "Product",
    "ProductDetails",
    "ProductInput",
    "Page",
    "BatchEntry",
    "BatchResult",
    "BatchSuccess",
    "BatchFailure",
    "index_by_sequence",
]
