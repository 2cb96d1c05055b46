"""Product database table model."""

from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from src.gs1link.entities.core._base import EntityTable


class ProductTable(EntityTable, table=True):
    """Database persistence model for products.

    Column names are the snake_case storage shape; extra tables are stored
    inline as JSON because they have no lifecycle of their own.
    """

    __tablename__ = "products"

    gtin: str = Field(sa_column=sa.Column(sa.Text, nullable=False, unique=True, index=True))
    product_name: str = Field(sa_column=sa.Column(sa.Text, nullable=False))
    brand: str | None = Field(default=None, sa_type=sa.Text)
    category: str | None = Field(default=None, sa_type=sa.Text)
    description: str | None = Field(default=None, sa_type=sa.Text)
    weight: str | None = Field(default=None, sa_type=sa.Text)
    origin: str | None = Field(default=None, sa_type=sa.Text)
    image_url: str | None = Field(default=None, sa_type=sa.Text)
    extra_tables: list[dict[str, Any]] | None = Field(default=None, sa_type=sa.JSON)
