"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, Request
from sqlmodel import Session

from src.gs1link.api.http.app_data import ApplicationDependencies
from src.gs1link.core.services import (
    AssetStore,
    IdentityResolver,
    LinkEncoder,
    ProductUpsertService,
)
from src.gs1link.entities.service.product import ProductRepository
from src.gs1link.runtime.config.config_data import ConfigData


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_app_config(request: Request) -> ConfigData:
    """Get the configuration the application was started with."""
    return get_app_dependencies(request).config


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a database session for the duration of one request."""
    app_deps = get_app_dependencies(request)
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


def get_asset_store(request: Request) -> AssetStore:
    """Get the asset store instance."""
    return get_app_dependencies(request).asset_store


def get_link_encoder(request: Request) -> LinkEncoder:
    """Get the barcode / QR code encoder."""
    return get_app_dependencies(request).link_encoder


def get_product_repository(db: Session = Depends(get_db_session)) -> ProductRepository:
    return ProductRepository(db)


def get_identity_resolver(
    repository: ProductRepository = Depends(get_product_repository),
) -> IdentityResolver:
    return IdentityResolver(repository)


def get_upsert_service(
    repository: ProductRepository = Depends(get_product_repository),
    asset_store: AssetStore = Depends(get_asset_store),
    config: ConfigData = Depends(get_app_config),
) -> ProductUpsertService:
    return ProductUpsertService(
        repository,
        asset_store,
        uploads=config.uploads,
        gtin_config=config.gtin,
    )
