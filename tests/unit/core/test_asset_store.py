"""Tests for the local and Supabase asset stores."""

import json

import httpx
import pytest

from src.gs1link.core.errors import DependencyError
from src.gs1link.core.services import (
    LocalAssetStore,
    SupabaseAssetStore,
    build_asset_store,
)
from src.gs1link.runtime.config.config_data import AppConfig, AssetsConfig, ConfigData

SUPABASE_URL = "https://project.supabase.co"
PUBLIC_PREFIX = f"{SUPABASE_URL}/storage/v1/object/public/product-images/"


class TestLocalAssetStore:
    @pytest.fixture
    def store(self, tmp_path):
        return LocalAssetStore(tmp_path / "images", "http://localhost:8000/assets/")

    def test_put_writes_file(self, store):
        location = store.put(b"png-bytes", "40123455-abc.png", "image/png")

        assert location == "http://localhost:8000/assets/40123455-abc.png"
        assert (store.directory / "40123455-abc.png").read_bytes() == b"png-bytes"

    def test_remove_deletes_file(self, store):
        location = store.put(b"png-bytes", "40123455-abc.png", "image/png")

        store.remove(location)

        assert not (store.directory / "40123455-abc.png").exists()

    def test_remove_missing_file_is_quiet(self, store):
        store.remove("http://localhost:8000/assets/nothing.png")

    @pytest.mark.parametrize(
        "location",
        [
            "https://elsewhere.test/assets/a.png",
            "http://localhost:8000/assets/../secret",
            "http://localhost:8000/assets/",
        ],
    )
    def test_remove_ignores_foreign_locations(self, store, tmp_path, location):
        outside = tmp_path / "secret"
        outside.write_text("keep")

        store.remove(location)

        assert outside.exists()

    def test_put_failure_is_dependency_error(self, store):
        with pytest.raises(DependencyError):
            store.put(b"data", "missing-dir/a.png", "image/png")

    def test_health_check(self, store):
        assert store.health_check()


class TestSupabaseAssetStore:
    @pytest.fixture
    def requests(self):
        return []

    def _store(self, requests, status_code=200):
        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(status_code, json={})

        client = httpx.Client(
            base_url=f"{SUPABASE_URL}/storage/v1",
            transport=httpx.MockTransport(handler),
        )
        return SupabaseAssetStore(
            SUPABASE_URL, "service-key", "product-images", client=client
        )

    def test_put_uploads_object(self, requests):
        store = self._store(requests)

        location = store.put(b"png-bytes", "40123455-abc.png", "image/png")

        assert location == f"{PUBLIC_PREFIX}40123455-abc.png"
        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/storage/v1/object/product-images/40123455-abc.png"
        assert request.headers["content-type"] == "image/png"
        assert request.headers["x-upsert"] == "true"
        assert request.content == b"png-bytes"

    def test_put_error_is_dependency_error(self, requests):
        store = self._store(requests, status_code=500)

        with pytest.raises(DependencyError):
            store.put(b"png-bytes", "40123455-abc.png", "image/png")

    def test_remove_deletes_by_prefix(self, requests):
        store = self._store(requests)

        store.remove(f"{PUBLIC_PREFIX}40123455-abc.png")

        request = requests[0]
        assert request.method == "DELETE"
        assert request.url.path == "/storage/v1/object/product-images"
        assert json.loads(request.content) == {"prefixes": ["40123455-abc.png"]}

    def test_remove_never_raises(self, requests):
        store = self._store(requests, status_code=500)

        store.remove(f"{PUBLIC_PREFIX}40123455-abc.png")

        assert len(requests) == 1

    def test_remove_ignores_foreign_locations(self, requests):
        store = self._store(requests)

        store.remove("https://elsewhere.test/a.png")

        assert requests == []

    def test_health_check(self, requests):
        assert self._store(requests).health_check()
        assert not self._store([], status_code=404).health_check()


class TestBuildAssetStore:
    def test_local_backend_uses_app_origin(self, tmp_path):
        config = ConfigData(
            app=AppConfig(public_origin="https://example.com"),
            assets=AssetsConfig(local_dir=str(tmp_path / "media")),
        )

        store = build_asset_store(config)

        assert isinstance(store, LocalAssetStore)
        assert store.put(b"x", "a.png", "image/png") == "https://example.com/assets/a.png"

    def test_supabase_backend(self):
        config = ConfigData(
            assets=AssetsConfig(
                backend="supabase", supabase_url=SUPABASE_URL, supabase_key="key"
            )
        )

        store = build_asset_store(config)
        try:
            assert isinstance(store, SupabaseAssetStore)
            assert store.public_prefix == PUBLIC_PREFIX
        finally:
            store.close()
