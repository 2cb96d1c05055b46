"""Tests for ProductUpsertService: create, replace, delete and image lifecycle."""

import pytest

from src.gs1link.core.errors import (
    ConflictError,
    DependencyError,
    FieldError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from src.gs1link.core.gtin import GTIN_FORMAT_MESSAGE, GTIN_REQUIRED_MESSAGE
from src.gs1link.core.services import ImageUpload, ProductUpsertService, validate_fields
from src.gs1link.core.services.upsert_service import (
    INVALID_IMAGE_TYPE_MESSAGE,
    PRODUCT_NAME_REQUIRED_MESSAGE,
    asset_name,
)
from src.gs1link.entities.service.product import Product
from src.gs1link.runtime.config.config_data import GtinConfig, UploadsConfig

PNG = ImageUpload(data=b"\x89PNG\r\n\x1a\nfake", content_type="image/png", filename="p.png")


def _payload(**overrides):
    data = {
        "gtin": "8499383300123",
        "productName": "Olive Oil",
        "brand": "Acme",
        "extraTables": [
            {"title": "Nutrition", "rows": [{"key": "Energy", "value": "3404 kJ"}]}
        ],
    }
    data.update(overrides)
    return data


class TestValidateFields:
    def test_accepts_wire_shape(self):
        fields = validate_fields(_payload())
        assert fields.gtin == "8499383300123"
        assert fields.product_name == "Olive Oil"
        assert fields.extra_tables[0].rows[0].key == "Energy"

    def test_collects_every_error(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_fields({"gtin": "123", "productName": "   "})

        fields = {error.field for error in exc_info.value.errors}
        assert fields == {"gtin", "productName"}

    def test_missing_name_and_gtin(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_fields({})

        assert exc_info.value.errors == [
            FieldError("gtin", GTIN_REQUIRED_MESSAGE),
            FieldError("productName", PRODUCT_NAME_REQUIRED_MESSAGE),
        ]

    @pytest.mark.parametrize("gtin", [None, ""])
    def test_blank_gtin_is_required(self, gtin):
        with pytest.raises(ValidationError) as exc_info:
            validate_fields(_payload(gtin=gtin))

        assert exc_info.value.errors == [FieldError("gtin", GTIN_REQUIRED_MESSAGE)]

    @pytest.mark.parametrize("gtin", [40123455, "4012345A", ["40123455"]])
    def test_non_string_or_malformed_gtin(self, gtin):
        with pytest.raises(ValidationError) as exc_info:
            validate_fields(_payload(gtin=gtin))

        assert exc_info.value.errors == [FieldError("gtin", GTIN_FORMAT_MESSAGE)]

    def test_check_digit_enforced_when_configured(self):
        with pytest.raises(ValidationError):
            validate_fields(_payload(), GtinConfig(enforce_check_digit=True))
        assert validate_fields(_payload(gtin="4006381333931"), GtinConfig(enforce_check_digit=True))


class TestAssetName:
    def test_name_is_unique_per_upload(self):
        first = asset_name("40123455", "image/png")
        second = asset_name("40123455", "image/png")

        assert first.startswith("40123455-")
        assert first.endswith(".png")
        assert first != second


class TestCreate:
    def test_creates_product_without_image(self, upsert_service, repository, asset_store):
        product = upsert_service.upsert(_payload())

        assert product.id.startswith("prod_")
        assert product.gtin == "8499383300123"
        assert product.image_url is None
        assert repository.find_by_gtin("8499383300123") == product
        assert asset_store.put_calls == []

    def test_creates_product_with_image(self, upsert_service, asset_store):
        product = upsert_service.upsert(_payload(), PNG)

        assert len(asset_store.put_calls) == 1
        name, content_type = asset_store.put_calls[0]
        assert name.startswith("8499383300123-")
        assert content_type == "image/png"
        assert product.image_url in asset_store.objects

    def test_create_intent_refuses_existing_gtin(self, upsert_service, repository):
        upsert_service.upsert(_payload())

        with pytest.raises(ConflictError):
            upsert_service.upsert(_payload(productName="Other"), intent="create")
        assert len(repository.list_all()) == 1

    def test_concurrent_creator_loses_to_unique_index(
        self, upsert_service, repository, asset_store, monkeypatch
    ):
        repository.insert(Product(gtin="8499383300123", product_name="First"))
        # The second creator read the store before the first one committed
        monkeypatch.setattr(repository, "find_by_gtin", lambda gtin: None)

        with pytest.raises(ConflictError):
            upsert_service.upsert(_payload(productName="Second"), PNG)

        monkeypatch.undo()
        products = repository.list_all()
        assert len(products) == 1
        assert products[0].product_name == "First"
        # The image uploaded by the loser was cleaned up
        assert asset_store.remove_calls
        assert asset_store.objects == {}


class TestUpdate:
    def test_update_keeps_identity(self, upsert_service, repository):
        created = upsert_service.upsert(_payload())

        updated = upsert_service.upsert(_payload(productName="Extra Virgin Olive Oil"))

        assert updated.id == created.id
        assert updated.created_at == created.created_at
        assert updated.updated_at >= created.updated_at
        assert updated.product_name == "Extra Virgin Olive Oil"
        assert len(repository.list_all()) == 1

    def test_update_without_image_keeps_image(self, upsert_service, asset_store):
        created = upsert_service.upsert(_payload(), PNG)

        updated = upsert_service.upsert(_payload(brand="Other"))

        assert updated.image_url == created.image_url
        assert asset_store.remove_calls == []

    def test_update_with_image_replaces_and_removes_old(self, upsert_service, asset_store):
        created = upsert_service.upsert(_payload(), PNG)

        updated = upsert_service.upsert(_payload(), PNG)

        assert updated.image_url != created.image_url
        assert asset_store.remove_calls == [created.image_url]
        assert list(asset_store.objects) == [updated.image_url]

    def test_update_intent_requires_existing_product(self, upsert_service, repository):
        with pytest.raises(NotFoundError):
            upsert_service.upsert(_payload(), intent="update")
        assert repository.list_all() == []

    def test_old_image_cleanup_failure_is_swallowed(self, repository, asset_store):
        service = ProductUpsertService(repository, asset_store)
        created = service.upsert(_payload(), PNG)
        asset_store.fail_remove = True

        updated = service.upsert(_payload(), PNG)

        assert updated.image_url != created.image_url
        assert repository.find_by_gtin("8499383300123").image_url == updated.image_url

    def test_extra_tables_are_replaced_wholesale(self, upsert_service):
        upsert_service.upsert(_payload())

        updated = upsert_service.upsert(_payload(extraTables=None))

        assert updated.extra_tables is None


class TestRejections:
    def test_invalid_fields_touch_nothing(self, upsert_service, repository, asset_store):
        with pytest.raises(ValidationError):
            upsert_service.upsert(_payload(gtin="12345"), PNG)

        assert asset_store.put_calls == []
        assert repository.list_all() == []

    def test_oversize_image_is_rejected_before_upload(self, repository, asset_store):
        service = ProductUpsertService(
            repository, asset_store, uploads=UploadsConfig(max_bytes=4)
        )

        with pytest.raises(PayloadTooLargeError):
            service.upsert(_payload(), PNG)

        assert asset_store.put_calls == []
        assert repository.list_all() == []

    def test_unsupported_image_type(self, upsert_service, asset_store):
        pdf = ImageUpload(data=b"%PDF-1.7", content_type="application/pdf")

        with pytest.raises(ValidationError) as exc_info:
            upsert_service.upsert(_payload(), pdf)

        assert exc_info.value.errors[0].message == INVALID_IMAGE_TYPE_MESSAGE
        assert asset_store.put_calls == []

    def test_upload_failure_aborts_write(self, repository):
        from tests.fixtures.dummies import RecordingAssetStore

        service = ProductUpsertService(repository, RecordingAssetStore(fail_put=True))

        with pytest.raises(DependencyError):
            service.upsert(_payload(), PNG)

        assert repository.list_all() == []

    def test_upload_failure_on_update_keeps_record(self, repository, asset_store):
        service = ProductUpsertService(repository, asset_store)
        created = service.upsert(_payload(), PNG)
        asset_store.fail_put = True

        with pytest.raises(DependencyError):
            service.upsert(_payload(productName="Changed"), PNG)

        assert repository.find_by_gtin("8499383300123") == created


class TestDelete:
    def test_delete_removes_record_and_image(self, upsert_service, repository, asset_store):
        created = upsert_service.upsert(_payload(), PNG)

        removed = upsert_service.delete(created.id)

        assert removed == created
        assert repository.get(created.id) is None
        assert asset_store.remove_calls == [created.image_url]

    def test_delete_unknown_id(self, upsert_service):
        with pytest.raises(NotFoundError):
            upsert_service.delete("prod_missing")

    def test_delete_survives_image_cleanup_failure(self, upsert_service, repository, asset_store):
        created = upsert_service.upsert(_payload(), PNG)
        asset_store.fail_remove = True

        upsert_service.delete(created.id)

        assert repository.get(created.id) is None

    def test_gtin_can_be_reused_after_delete(self, upsert_service):
        first = upsert_service.upsert(_payload())
        upsert_service.delete(first.id)

        second = upsert_service.upsert(_payload(), intent="create")

        assert second.id != first.id
