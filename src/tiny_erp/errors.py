from .client import (
    TinyApiError,
    TinyClientError,
    TinyConfigurationError,
    TinyModelValidationError,
    TinyParseError,
    TinyTransportError,
)
from .envelope import TinyShapeError

__all__ = [
    "TinyClientError",
    "TinyConfigurationError",
    "TinyTransportError",
    "TinyParseError",
    "TinyApiError",
    "TinyModelValidationError",
    "TinyShapeError",
]
