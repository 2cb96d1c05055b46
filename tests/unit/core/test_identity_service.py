"""Tests for IdentityResolver."""

import pytest

from src.gs1link.core.errors import ValidationError
from src.gs1link.entities.service.product import Product


class TestIdentityResolver:
    def test_unknown_gtin_is_new(self, resolver):
        resolution = resolver.resolve("4006381333931")

        assert resolution.status == "new"
        assert not resolution.exists
        assert resolution.product is None
        assert resolution.allowed_actions == ("create",)

    def test_known_gtin_exists(self, resolver, repository):
        stored = repository.insert(Product(gtin="4006381333931", product_name="Pencil"))

        resolution = resolver.resolve("4006381333931")

        assert resolution.status == "exists"
        assert resolution.exists
        assert resolution.product == stored
        assert resolution.allowed_actions == ("update", "create")

    def test_leading_zeros_are_significant(self, resolver, repository):
        repository.insert(Product(gtin="00012345", product_name="Zeros"))

        assert resolver.resolve("00012345").exists
        assert not resolver.resolve("10012345").exists

    def test_resolve_does_not_write(self, resolver, repository):
        resolver.resolve("4006381333931")
        resolver.resolve("4006381333931")
        assert repository.list_all() == []

    @pytest.mark.parametrize("gtin", ["12345", "ABCDEFGH", "104012345678912"])
    def test_malformed_gtin_is_rejected(self, resolver, gtin):
        with pytest.raises(ValidationError) as exc_info:
            resolver.resolve(gtin)
        assert exc_info.value.errors[0].field == "gtin"
