"""Typed sections of ``config.yaml``.

Every section has working defaults, so an empty file (or no file at all)
gives a local development setup: SQLite, images on disk, links on
``http://localhost:8000``.
"""

from __future__ import annotations

import os
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field, computed_field
from sqlalchemy.engine import make_url


class CORSConfig(BaseModel):
    """Browser origins allowed to call the API."""

    origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5173"]
    )
    allow_credentials: bool = True
    allow_methods: list[str] = Field(
        default_factory=lambda: ["GET", "POST", "DELETE", "OPTIONS"]
    )
    allow_headers: list[str] = Field(default_factory=lambda: ["*"])


class LoggingConfig(BaseModel):
    """Console and file sinks of the loguru logger."""

    level: str = "INFO"
    format: Literal["json", "plain"] = Field(
        default="json", description="Serialization of the file sink"
    )
    file: str = Field(
        default="logs/app.log", description="File sink path, empty to disable it"
    )
    max_size_mb: int = Field(default=10, description="Rotate the file sink at this size")
    backup_count: int = Field(default=5, description="Rotated files to keep")


class DatabaseConfig(BaseModel):
    """Record store connection and pool settings."""

    url: str = Field(
        default="sqlite:///./gs1link.db",
        description="SQLAlchemy URL of the record store",
    )
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = Field(default=30, description="Seconds to wait for a connection")
    pool_recycle: int = Field(default=1800, description="Seconds before a connection is recycled")
    password_env_var: str | None = Field(
        default=None,
        description="Name of an environment variable holding the password",
    )
    password_file: str | None = Field(
        default=None,
        description="Path of a mounted secret holding the password",
    )

    @computed_field
    @property
    def password(self) -> str | None:
        """Resolve the database password.

        A mounted secrets file wins over an environment variable; when neither
        is configured the password embedded in the URL (if any) is used.
        """
        if self.password_file:
            try:
                with open(self.password_file) as f:
                    return f.read().strip()
            except OSError as e:
                raise ValueError(
                    f"Cannot read database password from {self.password_file}"
                ) from e
        if self.password_env_var:
            secret = os.getenv(self.password_env_var)
            if not secret:
                raise ValueError(f"Environment variable {self.password_env_var} not set")
            return secret
        return make_url(self.url).password

    @computed_field
    @property
    def connection_string(self) -> str:
        """``url`` with the resolved password filled in."""
        url = make_url(self.url)
        secret = self.password
        if secret and secret != url.password:
            if url.password:
                logger.warning("Database URL password overridden by the configured secret")
            url = url.set(password=secret)
        # render_as_string keeps the password; str() would mask it
        return url.render_as_string(hide_password=False)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class AssetsConfig(BaseModel):
    """Product image storage configuration."""

    backend: Literal["local", "supabase"] = Field(
        default="local", description="Asset store backend"
    )
    local_dir: str = Field(
        default="media/product-images",
        description="Directory used by the local backend",
    )
    mount_path: str = Field(
        default="/assets",
        description="URL path the API serves local assets under",
    )
    public_base_url: str | None = Field(
        default=None,
        description="Public URL prefix of stored assets (defaults to app origin + mount path)",
    )
    supabase_url: str | None = Field(default=None, description="Supabase project URL")
    supabase_key: str | None = Field(default=None, description="Supabase API key")
    bucket: str = Field(default="product-images", description="Storage bucket name")
    timeout_seconds: float = Field(
        default=10.0, description="Timeout for asset store HTTP calls"
    )


class UploadsConfig(BaseModel):
    """Limits applied to uploaded product images."""

    max_bytes: int = Field(
        default=16 * 1024 * 1024, description="Maximum accepted image size in bytes"
    )
    allowed_content_types: list[str] = Field(
        default_factory=lambda: [
            "image/png",
            "image/jpeg",
            "image/jpg",
            "image/gif",
            "image/webp",
        ],
        description="Accepted image MIME types",
    )


class BarcodeConfig(BaseModel):
    """Rendering options for linear barcodes (millimetres, python-barcode units)."""

    module_width: float = Field(default=0.33, description="Width of one bar module")
    module_height: float = Field(default=20.0, description="Bar height")
    font_size: int = Field(default=10, description="Human readable text size")
    text_distance: float = Field(default=4.0, description="Gap between bars and text")
    quiet_zone: float = Field(default=6.5, description="Quiet zone on both sides")


class QRCodeConfig(BaseModel):
    """Rendering options for QR codes."""

    target_width: int = Field(
        default=256, description="Target image width in pixels, quiet zone included"
    )
    border: int = Field(default=2, description="Quiet zone in modules")
    error: Literal["l", "m", "q", "h"] = Field(
        default="m", description="Error correction level"
    )
    dark: str = Field(default="#000000", description="Module colour")
    light: str = Field(default="#ffffff", description="Background colour")


class SymbolsConfig(BaseModel):
    barcode: BarcodeConfig = Field(default_factory=BarcodeConfig)
    qr: QRCodeConfig = Field(default_factory=QRCodeConfig)


class GtinConfig(BaseModel):
    enforce_check_digit: bool = Field(
        default=False,
        description="Reject GTINs whose GS1 check digit does not match",
    )


class AppConfig(BaseModel):
    """Where the service runs and how it is reached."""

    environment: Literal["development", "production", "test"] = "development"
    host: str = "localhost"
    port: int = 8000
    public_origin: str | None = Field(
        default=None,
        description="Origin used to build canonical product links",
    )
    cors: CORSConfig = Field(default_factory=CORSConfig)

    @property
    def base_url(self) -> str:
        """``http(s)://host:port``, https in production."""
        scheme = "https" if self.environment == "production" else "http"
        return f"{scheme}://{self.host}:{self.port}"

    @property
    def origin(self) -> str:
        """Origin of canonical links, without a trailing slash."""
        return (self.public_origin or self.base_url).rstrip("/")


class ConfigData(BaseModel):
    """The ``config:`` section of ``config.yaml``."""

    app: AppConfig = Field(default_factory=AppConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    assets: AssetsConfig = Field(default_factory=AssetsConfig)
    uploads: UploadsConfig = Field(default_factory=UploadsConfig)
    symbols: SymbolsConfig = Field(default_factory=SymbolsConfig)
    gtin: GtinConfig = Field(default_factory=GtinConfig)
