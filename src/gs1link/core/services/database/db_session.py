"""Database engine and session factory used across the application."""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from src.gs1link.runtime.config.config_data import ConfigData
from src.gs1link.runtime.context import get_config


class DbSessionService:
    """Owns the SQLAlchemy engine of the record store.

    One instance is created per process; sessions are short-lived and handed
    out per request (API) or per command (CLI).
    """

    def __init__(self, config: ConfigData | None = None, engine: Engine | None = None):
        config = config or get_config()
        if engine is not None:
            self._engine = engine
            return

        database = config.database
        options: dict = {
            "pool_pre_ping": True,
            "connect_args": self._get_connect_args(config),
        }
        # SQLite uses a single-file pool without size limits
        if not database.is_sqlite:
            options |= {
                "pool_size": database.pool_size,
                "max_overflow": database.max_overflow,
                "pool_timeout": database.pool_timeout,
                "pool_recycle": database.pool_recycle,
            }

        self._engine = create_engine(database.connection_string, **options)
        logger.info(
            "Record store engine ready ({}, {} environment)",
            self._engine.dialect.name,
            config.app.environment,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def _get_connect_args(self, config: ConfigData) -> dict:
        """Driver options for the configured dialect."""
        if config.database.is_sqlite:
            if config.app.environment == "production":
                logger.warning("Running production on SQLite; use PostgreSQL instead")
            # Sessions are used from FastAPI's threadpool
            return {"check_same_thread": False, "timeout": 20}
        if config.database.url.startswith("postgresql"):
            return {
                "application_name": f"{config.app.environment}_gs1link",
                "connect_timeout": 30,
            }
        return {}

    def create_all(self) -> None:
        """Create missing tables."""
        from src.gs1link.entities.service.product import ProductTable  # noqa: F401

        SQLModel.metadata.create_all(self._engine)
        logger.info("Record store schema is up to date")

    def get_session(self) -> Session:
        return Session(self._engine, expire_on_commit=False)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Record store transaction rolled back")
            raise
        finally:
            session.close()

    def health_check(self) -> bool:
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.error("Record store health check failed: {}", e)
            return False
        return True

    def dispose(self) -> None:
        self._engine.dispose()
