"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.gs1link.api.http.app_data import ApplicationDependencies
from src.gs1link.api.http.routers.health import router as health_router
from src.gs1link.api.http.routers.service.product import link_router
from src.gs1link.api.http.routers.service.product import router as product_router
from src.gs1link.core.errors import Gs1LinkError, ValidationError
from src.gs1link.core.services import DbSessionService, LinkEncoder, build_asset_store
from src.gs1link.runtime.config.config_data import ConfigData
from src.gs1link.runtime.context import get_config
from src.gs1link.runtime.log_setup import configure_logging

# Room for the JSON "data" part and multipart framing around the image
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}
HSTS_HEADER = "max-age=31536000; includeSubDomains; preload"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, environment: str = "development"):
        super().__init__(app)
        self._headers = dict(SECURITY_HEADERS)
        if environment == "production":
            self._headers["Strict-Transport-Security"] = HSTS_HEADER

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self._headers.items():
            response.headers.setdefault(name, value)
        return response


# --- Upload size guard ---
class UploadLimitMiddleware(BaseHTTPMiddleware):
    """Reject oversized uploads from their Content-Length, before the body is read."""

    def __init__(self, app, max_body_bytes: int):
        super().__init__(app)
        self._max_body_bytes = max_body_bytes

    async def dispatch(self, request: Request, call_next):
        if request.method in ("POST", "PUT", "PATCH"):
            content_length = request.headers.get("content-length")
            if content_length and content_length.isdigit():
                if int(content_length) > self._max_body_bytes:
                    logger.warning(
                        "Rejected upload of {} bytes (limit {})",
                        content_length,
                        self._max_body_bytes,
                    )
                    return JSONResponse(
                        status_code=413,
                        content={
                            "message": "Payload too large",
                            "errors": [
                                {"field": "image", "message": "Upload exceeds the size limit"}
                            ],
                        },
                    )
        return await call_next(request)


def build_dependencies(config: ConfigData) -> ApplicationDependencies:
    """Create the process-scoped resources shared by every request."""
    database_service = DbSessionService(config)
    database_service.create_all()
    return ApplicationDependencies(
        config=config,
        database_service=database_service,
        asset_store=build_asset_store(config),
        link_encoder=LinkEncoder(config.app.origin, config.symbols),
    )


def _error_body(exc: Gs1LinkError, request: Request) -> dict:
    body: dict = {"message": exc.message}
    if isinstance(exc, ValidationError):
        body["errors"] = [error.as_dict() for error in exc.errors]
    body["request_id"] = getattr(request.state, "request_id", None)
    return body


def create_app(
    config: ConfigData | None = None,
    dependencies: ApplicationDependencies | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Configuration to run with (defaults to the loaded config.yaml)
        dependencies: Pre-built resources, used by tests instead of the startup wiring
    """
    app_config = config or (dependencies.config if dependencies else get_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Build shared resources once per process
        if getattr(app.state, "app_dependencies", None) is None:
            app.state.app_dependencies = build_dependencies(app_config)
        logger.info("Starting up application in {} environment", app_config.app.environment)
        try:
            yield
        finally:
            logger.info("Shutting down application")
            deps: ApplicationDependencies = app.state.app_dependencies
            deps.asset_store.close()
            deps.database_service.dispose()

    is_production = app_config.app.environment == "production"
    app = FastAPI(
        title="gs1link",
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
    )
    app.state.app_dependencies = dependencies

    app.add_middleware(SecurityHeadersMiddleware, environment=app_config.app.environment)
    app.add_middleware(
        UploadLimitMiddleware,
        max_body_bytes=app_config.uploads.max_bytes + MULTIPART_OVERHEAD_BYTES,
    )

    # --- CORS configuration ---
    if is_production and "*" in app_config.app.cors.origins:
        raise RuntimeError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.app.cors.origins,
        allow_credentials=app_config.app.cors.allow_credentials,
        allow_methods=app_config.app.cors.allow_methods,
        allow_headers=app_config.app.cors.allow_headers,
    )

    # --- Domain errors ---
    @app.exception_handler(Gs1LinkError)
    async def handle_domain_error(request: Request, exc: Gs1LinkError) -> JSONResponse:
        level = "ERROR" if exc.status_code >= 500 else "INFO"
        logger.opt(exception=exc.__cause__ if level == "ERROR" else None).log(
            level, "{}: {}", type(exc).__name__, exc.message
        )
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc, request))

    # --- Request logging middleware ---
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        xff = request.headers.get("x-forwarded-for")
        client_ip = (
            xff.split(",")[0].strip()
            if xff
            else request.client.host
            if request.client
            else "unknown"
        )

        base_ctx = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip,
            "user_agent": request.headers.get("user-agent", "unknown"),
        }

        start = time.perf_counter()

        with logger.contextualize(**base_ctx):
            try:
                logger.info("request.start")
                response = await call_next(request)

                duration_ms = (time.perf_counter() - start) * 1000
                logger.bind(
                    status_code=response.status_code,
                    duration_ms=round(duration_ms, 1),
                ).info("request.end")

                response.headers.setdefault("X-Request-ID", request_id)
                return response

            except Exception as exc:
                duration_ms = (time.perf_counter() - start) * 1000
                logger.bind(
                    status_code=500,
                    duration_ms=round(duration_ms, 1),
                    error_type=type(exc).__name__,
                ).exception("request.error")
                return JSONResponse(
                    status_code=500,
                    content={"message": "Internal Server Error", "request_id": request_id},
                    headers={"X-Request-ID": request_id},
                )

    # --- Router registration ---
    app.include_router(health_router)
    app.include_router(product_router, prefix="/api/products", tags=["products"])
    app.include_router(link_router, tags=["links"])

    if app_config.assets.backend == "local":
        app.mount(
            app_config.assets.mount_path,
            StaticFiles(directory=Path(app_config.assets.local_dir), check_dir=False),
            name="assets",
        )

    return app


def build_app() -> FastAPI:
    """Entry point used by uvicorn's ``--factory`` flag and the CLI."""
    configure_logging()
    return create_app()


if __name__ == "__main__":
    import uvicorn

    config = get_config()
    uvicorn.run(
        build_app(),
        host=config.app.host,
        port=config.app.port,
        access_log=False,  # We handle access logging in middleware
    )
