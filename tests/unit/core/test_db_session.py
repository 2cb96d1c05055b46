"""Tests for DbSessionService."""

from src.gs1link.core.services import DbSessionService
from src.gs1link.runtime.config.config_data import AppConfig, ConfigData, DatabaseConfig


class TestDbSessionService:
    def test_sqlite_file_database(self, tmp_path):
        config = ConfigData(database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'x.db'}"))
        service = DbSessionService(config)
        try:
            service.create_all()
            assert service.health_check()
            with service.session_scope() as session:
                assert session.bind is service.engine
        finally:
            service.dispose()

    def test_connect_args_per_backend(self):
        service = DbSessionService(ConfigData(), engine=object())

        sqlite_args = service._get_connect_args(ConfigData())
        postgres_args = service._get_connect_args(
            ConfigData(
                app=AppConfig(environment="production"),
                database=DatabaseConfig(url="postgresql://user:pw@db:5432/gs1"),
            )
        )

        assert sqlite_args["check_same_thread"] is False
        assert postgres_args["application_name"] == "production_gs1link"

    def test_unreachable_database_is_unhealthy(self, tmp_path):
        config = ConfigData(
            database=DatabaseConfig(url=f"sqlite:///{tmp_path / 'missing' / 'x.db'}")
        )
        service = DbSessionService(config)
        try:
            assert not service.health_check()
        finally:
            service.dispose()
