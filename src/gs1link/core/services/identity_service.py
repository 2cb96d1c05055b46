"""Resolve a GTIN to an existing product or to "new"."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from src.gs1link.core.gtin import validate_gtin
from src.gs1link.entities.service.product import Product, ProductRepository

ResolutionStatus = Literal["new", "exists"]


class Resolution(BaseModel):
    """Outcome of a GTIN lookup."""

    status: ResolutionStatus
    product: Product | None = None

    @property
    def exists(self) -> bool:
        return self.status == "exists"

    @property
    def allowed_actions(self) -> tuple[str, ...]:
        """Workflow branches a client may offer for this GTIN."""
        return ("update", "create") if self.exists else ("create",)


class IdentityResolver:
    """Read-only lookup of a GTIN against the record store.

    The answer is advisory: it tells a client which branch to offer, but the
    write path resolves again and the store's unique index has the final say.
    """

    def __init__(self, repository: ProductRepository) -> None:
        self._repository = repository

    def resolve(self, gtin: str) -> Resolution:
        validate_gtin(gtin)
        product = self._repository.find_by_gtin(gtin)
        if product is None:
            return Resolution(status="new")
        return Resolution(status="exists", product=product)
