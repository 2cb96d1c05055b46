"""Entity: Product."""

import uuid
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.gs1link.entities.core._base import Entity


def new_product_id() -> str:
    return f"prod_{uuid.uuid4()}"


class ExtraTableRow(BaseModel):
    """One key/value line of an extra table. Keys are not unique."""

    key: str
    value: str


class ExtraTable(BaseModel):
    """A titled, ordered list of key/value rows attached to a product."""

    title: str
    rows: list[ExtraTableRow] = Field(default_factory=list)


class ProductFields(BaseModel):
    """The user-editable part of a product, as submitted by a client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    gtin: str = Field(description="GS1 Global Trade Item Number")
    product_name: str = Field(description="Display name")
    brand: str | None = None
    category: str | None = None
    description: str | None = None
    weight: str | None = None
    origin: str | None = None
    extra_tables: list[ExtraTable] | None = None


class Product(Entity):
    """Product registered under a GTIN.

    The GTIN is the business key: it never changes once assigned and at most
    one product exists per GTIN. ``id`` is an opaque identifier used by
    delete operations.
    """

    id: str = Field(default_factory=new_product_id)
    gtin: str = Field(description="GS1 Global Trade Item Number")
    product_name: str = Field(description="Display name")
    brand: str | None = None
    category: str | None = None
    description: str | None = None
    weight: str | None = None
    origin: str | None = None
    image_url: str | None = Field(default=None, description="Location of the product image")
    extra_tables: list[ExtraTable] | None = None

    def __eq__(self, other: Any) -> bool:
        """Compare products by business attributes, ignoring timestamps."""
        if not isinstance(other, Product):
            return False

        return (
            self.id == other.id
            and self.gtin == other.gtin
            and self.product_name == other.product_name
            and self.brand == other.brand
            and self.category == other.category
            and self.description == other.description
            and self.weight == other.weight
            and self.origin == other.origin
            and self.image_url == other.image_url
            and self.extra_tables == other.extra_tables
        )

    def __hash__(self) -> int:
        return hash((self.id, self.gtin))
