"""Core services exports."""

from .asset_store import AssetStore, LocalAssetStore, SupabaseAssetStore, build_asset_store
from .database.db_session import DbSessionService
from .identity_service import IdentityResolver, Resolution
from .symbol_service import LinkEncoder, Symbol, canonical_link, select_symbology
from .upsert_service import ImageUpload, ProductUpsertService, validate_fields

__all__ = [
    # Storage
    "AssetStore",
    "LocalAssetStore",
    "SupabaseAssetStore",
    "build_asset_store",
    "DbSessionService",
    # GTIN workflow
    "IdentityResolver",
    "Resolution",
    "ImageUpload",
    "ProductUpsertService",
    "validate_fields",
    # Symbols
    "LinkEncoder",
    "Symbol",
    "canonical_link",
    "select_symbology",
]
