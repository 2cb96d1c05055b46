"""Entities organised by business concept.

Each entity package holds its domain model (entity.py), its table model
(table.py) and its data-access layer (repository.py).
"""

from .service.product import (
    ExtraTable,
    ExtraTableRow,
    Product,
    ProductFields,
    ProductRepository,
    ProductTable,
)

__all__ = [
    "ExtraTable",
    "ExtraTableRow",
    "Product",
    "ProductFields",
    "ProductRepository",
    "ProductTable",
]
