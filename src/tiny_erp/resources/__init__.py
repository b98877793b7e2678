from ._batch import index_by_sequence
from .account import AccountResource
from .contacts import ContactsResource
from .products import ProductsResource

__all__ = [
    "AccountResource",
    "ContactsResource",
    "ProductsResource",
    "index_by_sequence",
]
