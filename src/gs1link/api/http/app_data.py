from dataclasses import dataclass

from src.gs1link.core.services import AssetStore, DbSessionService, LinkEncoder
from src.gs1link.runtime.config.config_data import ConfigData


@dataclass
class ApplicationDependencies:
    """Process-scoped resources built once at startup."""

    config: ConfigData
    database_service: DbSessionService
    asset_store: AssetStore
    link_encoder: LinkEncoder
