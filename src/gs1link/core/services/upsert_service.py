"""Create-or-replace of products, including the product image lifecycle."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Literal

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from src.gs1link.core.errors import (
    ConflictError,
    FieldError,
    Gs1LinkError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from src.gs1link.core.gtin import (
    GTIN_CHECK_DIGIT_MESSAGE,
    GTIN_FORMAT_MESSAGE,
    GTIN_REQUIRED_MESSAGE,
    has_valid_check_digit,
    is_valid_gtin,
)
from src.gs1link.core.services.asset_store import AssetStore
from src.gs1link.entities.service.product import Product, ProductFields, ProductRepository
from src.gs1link.runtime.config.config_data import GtinConfig, UploadsConfig

UpsertIntent = Literal["upsert", "create", "update"]

INVALID_IMAGE_TYPE_MESSAGE = (
    "Invalid file type. Only PNG, JPG, JPEG, GIF, and WEBP are allowed."
)
PRODUCT_NAME_REQUIRED_MESSAGE = "Product name is required"


@dataclass(frozen=True)
class ImageUpload:
    """A product image received from a client."""

    data: bytes
    content_type: str
    filename: str | None = None

    @property
    def size(self) -> int:
        return len(self.data)


def _field_name(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "data"


def validate_fields(
    data: dict[str, Any] | ProductFields, gtin_config: GtinConfig | None = None
) -> ProductFields:
    """Validate submitted product fields, collecting every problem at once.

    Raises:
        ValidationError: with one FieldError per offending field
    """
    gtin_config = gtin_config or GtinConfig()
    if isinstance(data, ProductFields):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, dict):
        raise ValidationError.single("data", "Product data must be a JSON object")

    errors: list[FieldError] = []
    fields: ProductFields | None = None
    gtin = data.get("gtin")
    name = data.get("productName", data.get("product_name"))
    try:
        fields = ProductFields.model_validate(data)
    except PydanticValidationError as e:
        for error in e.errors():
            field = _field_name(error["loc"])
            # Required fields get the domain messages below
            if field == "gtin" or (field == "productName" and name is None):
                continue
            errors.append(FieldError(field, error["msg"]))

    if gtin is None or gtin == "":
        errors.append(FieldError("gtin", GTIN_REQUIRED_MESSAGE))
    elif not is_valid_gtin(gtin):
        errors.append(FieldError("gtin", GTIN_FORMAT_MESSAGE))
    elif gtin_config.enforce_check_digit and not has_valid_check_digit(gtin):
        errors.append(FieldError("gtin", GTIN_CHECK_DIGIT_MESSAGE))

    if name is None or (isinstance(name, str) and not name.strip()):
        errors.append(FieldError("productName", PRODUCT_NAME_REQUIRED_MESSAGE))

    if errors or fields is None:
        raise ValidationError(errors)
    return fields


def validate_image(image: ImageUpload, uploads: UploadsConfig) -> None:
    if image.size > uploads.max_bytes:
        raise PayloadTooLargeError(
            [FieldError("image", f"Image exceeds the {uploads.max_bytes} byte limit")]
        )
    if image.content_type not in uploads.allowed_content_types:
        raise ValidationError.single("image", INVALID_IMAGE_TYPE_MESSAGE)
    if image.size == 0:
        raise ValidationError.single("image", "Image is empty")


def asset_name(gtin: str, content_type: str) -> str:
    """Collision-resistant object name, e.g. ``40123456-3f2a...e1.png``."""
    extension = content_type.split("/", 1)[1]
    return f"{gtin}-{uuid.uuid4().hex}.{extension}"


class ProductUpsertService:
    """Persist a product for a GTIN, creating or replacing it.

    The existence check is repeated at write time; the record store's
    unique GTIN index settles races between concurrent creators.
    """

    def __init__(
        self,
        repository: ProductRepository,
        asset_store: AssetStore,
        uploads: UploadsConfig | None = None,
        gtin_config: GtinConfig | None = None,
    ) -> None:
        self._repository = repository
        self._assets = asset_store
        self._uploads = uploads or UploadsConfig()
        self._gtin_config = gtin_config or GtinConfig()

    def upsert(
        self,
        data: dict[str, Any] | ProductFields,
        image: ImageUpload | None = None,
        intent: UpsertIntent = "upsert",
    ) -> Product:
        """Create or replace the product identified by ``data["gtin"]``.

        Args:
            data: Product fields in wire shape (camelCase keys)
            image: Optional new product image
            intent: ``upsert`` routes to update when the GTIN exists, ``create``
                refuses an existing GTIN, ``update`` refuses an unknown one

        Raises:
            ValidationError: invalid fields or image, nothing was touched
            ConflictError: the GTIN exists (or was created concurrently)
            NotFoundError: ``intent="update"`` for an unknown GTIN
            DependencyError: record store or image upload failure
        """
        fields = validate_fields(data, self._gtin_config)
        if image is not None:
            validate_image(image, self._uploads)

        if not has_valid_check_digit(fields.gtin):
            logger.warning("GTIN {} has a non-matching GS1 check digit", fields.gtin)

        existing = self._repository.find_by_gtin(fields.gtin)
        if intent == "create" and existing is not None:
            raise ConflictError()
        if intent == "update" and existing is None:
            raise NotFoundError()

        new_location = None
        if image is not None:
            new_location = self._assets.put(
                image.data, asset_name(fields.gtin, image.content_type), image.content_type
            )

        image_url = new_location or (existing.image_url if existing else None)
        values = fields.model_dump()

        try:
            if existing is not None:
                product = Product(
                    **values,
                    id=existing.id,
                    image_url=image_url,
                    created_at=existing.created_at,
                )
                stored = self._repository.replace(existing.id, product)
                logger.info("Updated product {} ({})", stored.id, stored.gtin)
            else:
                stored = self._repository.insert(Product(**values, image_url=image_url))
                logger.info("Created product {} ({})", stored.id, stored.gtin)
        except Gs1LinkError:
            if new_location is not None:
                self._discard(new_location)
            raise

        if (
            new_location is not None
            and existing is not None
            and existing.image_url
            and existing.image_url != new_location
        ):
            self._discard(existing.image_url)

        return stored

    def delete(self, product_id: str) -> Product:
        """Delete a product by id and clean up its image.

        Raises:
            NotFoundError: no product has this id
        """
        removed = self._repository.delete(product_id)
        logger.info("Deleted product {} ({})", removed.id, removed.gtin)
        if removed.image_url:
            self._discard(removed.image_url)
        return removed

    def _discard(self, location: str) -> None:
        # Cleanup must never fail the surrounding write
        try:
            self._assets.remove(location)
        except Exception:
            logger.exception("Error deleting image {}", location)
