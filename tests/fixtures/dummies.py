from __future__ import annotations

from src.gs1link.core.errors import DependencyError
from src.gs1link.core.services.asset_store import AssetStore


class RecordingAssetStore(AssetStore):
    """In-memory asset store that records every call."""

    def __init__(
        self,
        base_url: str = "https://assets.test/product-images",
        fail_put: bool = False,
        fail_remove: bool = False,
    ) -> None:
        self.base_url = base_url
        self.fail_put = fail_put
        self.fail_remove = fail_remove
        self.objects: dict[str, bytes] = {}
        self.put_calls: list[tuple[str, str]] = []
        self.remove_calls: list[str] = []

    def put(self, data: bytes, name: str, content_type: str) -> str:
        self.put_calls.append((name, content_type))
        if self.fail_put:
            raise DependencyError("Failed to store image")
        location = f"{self.base_url}/{name}"
        self.objects[location] = data
        return location

    def remove(self, location: str) -> None:
        self.remove_calls.append(location)
        if self.fail_remove:
            raise RuntimeError("storage offline")
        self.objects.pop(location, None)

    def health_check(self) -> bool:
        return not self.fail_put
