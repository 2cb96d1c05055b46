"""Product image storage.

Two backends share one interface: a local directory served by the API
itself, and a Supabase Storage bucket reached over its REST API. ``put``
failures are errors the caller must act on; ``remove`` is cleanup and never
raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from urllib.parse import quote

import httpx
from loguru import logger

from src.gs1link.core.errors import DependencyError
from src.gs1link.runtime.config.config_data import ConfigData


class AssetStore(ABC):
    """Abstract interface for image storage backends."""

    @abstractmethod
    def put(self, data: bytes, name: str, content_type: str) -> str:
        """Store ``data`` under ``name``.

        Returns:
            Public location of the stored object

        Raises:
            DependencyError: if the backend rejects or cannot be reached
        """

    @abstractmethod
    def remove(self, location: str) -> None:
        """Best-effort removal of the object at ``location``. Never raises."""

    @abstractmethod
    def health_check(self) -> bool:
        """True when the backend is reachable."""

    def close(self) -> None:
        return None


class LocalAssetStore(AssetStore):
    """Stores images in a directory; locations are ``<public_base_url>/<name>``."""

    def __init__(self, directory: Path, public_base_url: str) -> None:
        self._directory = Path(directory)
        self._public_base_url = public_base_url.rstrip("/")
        self._directory.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, location: str) -> Path | None:
        prefix = f"{self._public_base_url}/"
        if not location.startswith(prefix):
            return None
        name = location[len(prefix):]
        # Only flat names are ever written
        if not name or "/" in name or name in {".", ".."}:
            return None
        return self._directory / name

    def put(self, data: bytes, name: str, content_type: str) -> str:
        path = self._directory / name
        try:
            path.write_bytes(data)
        except OSError as e:
            raise DependencyError("Failed to store image") from e
        logger.info("Stored image {} ({} bytes, {})", name, len(data), content_type)
        return f"{self._public_base_url}/{name}"

    def remove(self, location: str) -> None:
        path = self._path_for(location)
        if path is None:
            logger.warning("Invalid image URL format: {}", location)
            return
        try:
            path.unlink(missing_ok=True)
            logger.info("Removed image {}", path.name)
        except OSError as e:
            logger.error("Error deleting image {}: {}", location, e)

    def health_check(self) -> bool:
        return self._directory.is_dir()


class SupabaseAssetStore(AssetStore):
    """Stores images in a public Supabase Storage bucket."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._bucket = bucket
        self._client = client or httpx.Client(
            base_url=f"{self._base_url}/storage/v1",
            headers={"Authorization": f"Bearer {api_key}", "apikey": api_key},
            timeout=timeout,
        )

    @property
    def public_prefix(self) -> str:
        return f"{self._base_url}/storage/v1/object/public/{self._bucket}/"

    def put(self, data: bytes, name: str, content_type: str) -> str:
        try:
            response = self._client.post(
                f"/object/{self._bucket}/{quote(name)}",
                content=data,
                headers={"Content-Type": content_type, "x-upsert": "true"},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Error uploading image {}: {}", name, e)
            raise DependencyError("Failed to store image") from e
        logger.info("Uploaded image {} to bucket {}", name, self._bucket)
        return f"{self.public_prefix}{quote(name)}"

    def remove(self, location: str) -> None:
        if not location.startswith(self.public_prefix):
            logger.warning("Invalid image URL format: {}", location)
            return
        name = location[len(self.public_prefix):]
        try:
            response = self._client.request(
                "DELETE",
                f"/object/{self._bucket}",
                json={"prefixes": [name]},
            )
            response.raise_for_status()
            logger.info("Removed image {} from bucket {}", name, self._bucket)
        except httpx.HTTPError as e:
            logger.error("Error deleting image {}: {}", location, e)

    def health_check(self) -> bool:
        try:
            response = self._client.get(f"/bucket/{self._bucket}")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.error("Asset store health check failed: {}", e)
            return False

    def close(self) -> None:
        self._client.close()


def build_asset_store(config: ConfigData) -> AssetStore:
    """Create the asset store selected by ``assets.backend``."""
    assets = config.assets
    if assets.backend == "supabase":
        logger.info("Using Supabase asset store, bucket {}", assets.bucket)
        return SupabaseAssetStore(
            base_url=assets.supabase_url or "",
            api_key=assets.supabase_key or "",
            bucket=assets.bucket,
            timeout=assets.timeout_seconds,
        )

    public_base_url = assets.public_base_url or f"{config.app.origin}{assets.mount_path}"
    logger.info("Using local asset store in {}", assets.local_dir)
    return LocalAssetStore(Path(assets.local_dir), public_base_url)
