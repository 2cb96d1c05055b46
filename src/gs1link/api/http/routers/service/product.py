"""Product API router: GTIN check, lookup, upsert, delete and symbols."""

import json
from typing import Literal

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import Response
from loguru import logger
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.gs1link.api.http.deps import (
    get_app_config,
    get_identity_resolver,
    get_link_encoder,
    get_product_repository,
    get_upsert_service,
)
from src.gs1link.core.errors import (
    FieldError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from src.gs1link.core.gtin import validate_gtin
from src.gs1link.core.services import (
    IdentityResolver,
    ImageUpload,
    LinkEncoder,
    ProductUpsertService,
    Symbol,
    select_symbology,
)
from src.gs1link.entities.service.product import Product, ProductRepository
from src.gs1link.runtime.config.config_data import ConfigData

router = APIRouter()


class CheckResponse(BaseModel):
    """Result of a GTIN existence check."""

    exists: bool
    product: Product | None = None


class MessageResponse(BaseModel):
    message: str


def _find_or_404(repository: ProductRepository, gtin: str) -> Product:
    validate_gtin(gtin)
    product = repository.find_by_gtin(gtin)
    if product is None:
        raise NotFoundError()
    return product


def _symbol_response(symbol: Symbol, download: bool = False) -> Response:
    disposition = "attachment" if download else "inline"
    return Response(
        content=symbol.data,
        media_type=symbol.media_type,
        headers={
            "Content-Disposition": f'{disposition}; filename="{symbol.filename}"',
            "Cache-Control": "public, max-age=86400",
        },
    )


def _parse_data(data: str) -> dict:
    try:
        body = json.loads(data or "{}")
    except json.JSONDecodeError as e:
        raise ValidationError.single("data", f"Invalid JSON: {e.msg}") from e
    if not isinstance(body, dict):
        raise ValidationError.single("data", "Product data must be a JSON object")
    return body


def _read_image(image: UploadFile | None, config: ConfigData) -> ImageUpload | None:
    # Browsers send an empty part when no file was chosen
    if image is None or (not image.filename and not image.size):
        return None

    limit = config.uploads.max_bytes
    if image.size is not None and image.size > limit:
        raise PayloadTooLargeError(
            [FieldError("image", f"Image exceeds the {limit} byte limit")]
        )
    data = image.file.read(limit + 1)
    if len(data) > limit:
        raise PayloadTooLargeError(
            [FieldError("image", f"Image exceeds the {limit} byte limit")]
        )
    return ImageUpload(
        data=data,
        content_type=image.content_type or "application/octet-stream",
        filename=image.filename,
    )


@router.get("/check/{gtin}", response_model=CheckResponse)
def check_gtin(
    gtin: str,
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> CheckResponse:
    """Tell whether a product is already registered under ``gtin``."""
    resolution = resolver.resolve(gtin)
    logger.info("Checked GTIN {}: {}", gtin, resolution.status)
    return CheckResponse(exists=resolution.exists, product=resolution.product)


@router.get("/gtin/{gtin}", response_model=Product)
def get_product_by_gtin(
    gtin: str,
    repository: ProductRepository = Depends(get_product_repository),
) -> Product:
    """Get a product by GTIN."""
    return _find_or_404(repository, gtin)


@router.get("/gtin/{gtin}/barcode.svg", response_class=Response)
def get_barcode(
    gtin: str,
    download: bool = Query(False),
    repository: ProductRepository = Depends(get_product_repository),
    encoder: LinkEncoder = Depends(get_link_encoder),
) -> Response:
    """Linear barcode of a registered product."""
    product = _find_or_404(repository, gtin)
    return _symbol_response(encoder.render_barcode(product.gtin), download)


@router.get("/gtin/{gtin}/qr.{kind}", response_class=Response)
def get_qr_code(
    gtin: str,
    kind: Literal["png", "svg"],
    download: bool = Query(False),
    repository: ProductRepository = Depends(get_product_repository),
    encoder: LinkEncoder = Depends(get_link_encoder),
) -> Response:
    """QR code of the canonical link of a registered product."""
    product = _find_or_404(repository, gtin)
    return _symbol_response(encoder.render_qr(product.gtin, kind=kind), download)


@router.get("", response_model=list[Product])
def list_products(
    repository: ProductRepository = Depends(get_product_repository),
) -> list[Product]:
    """List all products, newest first."""
    return repository.list_all()


@router.post("", response_model=Product)
def upsert_product(
    data: str = Form("{}"),
    image: UploadFile | None = File(None),
    intent: Literal["upsert", "create", "update"] = Query("upsert"),
    config: ConfigData = Depends(get_app_config),
    service: ProductUpsertService = Depends(get_upsert_service),
) -> Product:
    """Create the product for a GTIN, or replace it when it already exists."""
    body = _parse_data(data)
    upload = _read_image(image, config)
    return service.upsert(body, upload, intent=intent)


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: str,
    service: ProductUpsertService = Depends(get_upsert_service),
) -> MessageResponse:
    """Delete a product and its image."""
    service.delete(product_id)
    return MessageResponse(message="Product deleted successfully")


class ProductPage(BaseModel):
    """Everything a client needs to render the public page of a product."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    product: Product
    link: str
    symbology: str
    barcode_url: str
    qr_code_url: str


link_router = APIRouter()


@link_router.get("/01/{gtin}", response_model=ProductPage)
def product_page(
    gtin: str,
    repository: ProductRepository = Depends(get_product_repository),
    encoder: LinkEncoder = Depends(get_link_encoder),
) -> ProductPage:
    """Resolve the canonical GS1 link of a product."""
    product = _find_or_404(repository, gtin)
    api_base = f"{encoder.origin}/api/products/gtin/{product.gtin}"
    return ProductPage(
        product=product,
        link=encoder.link_for(product.gtin),
        symbology=select_symbology(product.gtin),
        barcode_url=f"{api_base}/barcode.svg",
        qr_code_url=f"{api_base}/qr.png",
    )
