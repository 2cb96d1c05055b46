"""Entity package: Product."""

from .entity import ExtraTable, ExtraTableRow, Product, ProductFields
from .repository import ProductRepository
from .table import ProductTable

__all__ = [
    "ExtraTable",
    "ExtraTableRow",
    "Product",
    "ProductFields",
    "ProductRepository",
    "ProductTable",
]
