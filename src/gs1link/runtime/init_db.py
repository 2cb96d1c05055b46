"""Database initialization script."""

from src.gs1link.core.services.database.db_session import DbSessionService
from src.gs1link.runtime.context import get_config


def init_db() -> None:
    """Create all database tables."""
    database = DbSessionService(get_config())
    try:
        database.create_all()
    finally:
        database.dispose()


if __name__ == "__main__":
    init_db()
