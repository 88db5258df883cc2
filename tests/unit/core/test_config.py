"""Unit tests for settings validation and schedule source selection."""

import pytest

from core.config import PlannerSettings, Settings, settings
from src.transit_bc.routing.network_loader import build_schedule_source
from src.transit_bc.routing.schedule_sources import GtfsDirectoryScheduleSource, SqlScheduleSource


SECURE_TOKEN = "x" * 32


class TestProductionSettings:

    def test_valid(self):
        config = Settings(
            ENVIRONMENT="production",
            POSTGRES_PASSWORD="s3cret",
            ADMIN_TOKEN=SECURE_TOKEN,
            DEBUG=False,
        )
        config.validate_production_settings()

    def test_short_admin_token(self):
        config = Settings(ENVIRONMENT="production", POSTGRES_PASSWORD="s3cret", ADMIN_TOKEN="short")
        with pytest.raises(ValueError) as exc_info:
            config.validate_production_settings()
        assert "ADMIN_TOKEN" in str(exc_info.value)

    def test_debug_rejected(self):
        config = Settings(
            ENVIRONMENT="production", POSTGRES_PASSWORD="s3cret", ADMIN_TOKEN=SECURE_TOKEN, DEBUG=True,
        )
        with pytest.raises(ValueError):
            config.validate_production_settings()

    def test_gtfs_source_needs_no_database_password(self):
        config = Settings(
            ENVIRONMENT="production",
            POSTGRES_PASSWORD="",
            ADMIN_TOKEN=SECURE_TOKEN,
            planner=PlannerSettings(SCHEDULE_SOURCE="gtfs"),
        )
        config.validate_production_settings()

    def test_unknown_schedule_source(self):
        config = Settings(planner=PlannerSettings(SCHEDULE_SOURCE="ftp"))
        with pytest.raises(ValueError) as exc_info:
            config.validate_production_settings()
        assert "SCHEDULE_SOURCE" in str(exc_info.value)


class TestDevelopmentSettings:

    def test_defaults_filled_in(self):
        config = Settings(ENVIRONMENT="development", POSTGRES_PASSWORD="", ADMIN_TOKEN="")
        config.validate_development_settings()

        assert config.POSTGRES_PASSWORD == "postgres"
        assert len(config.ADMIN_TOKEN) >= 32

    def test_database_url(self):
        config = Settings(POSTGRES_USER="u", POSTGRES_PASSWORD="p", POSTGRES_HOST="db", POSTGRES_PORT=5433,
                          POSTGRES_DB="transit")
        assert config.DATABASE_URL == "postgresql+psycopg2://u:p@db:5433/transit"


class TestBuildScheduleSource:

    def test_gtfs(self, monkeypatch, tmp_path):
        monkeypatch.setattr(settings.planner, "SCHEDULE_SOURCE", "gtfs")
        monkeypatch.setattr(settings.planner, "GTFS_DIR", str(tmp_path))
        monkeypatch.setattr(settings.planner, "DEFAULT_FARE", 5000.0)

        source = build_schedule_source()

        assert isinstance(source, GtfsDirectoryScheduleSource)
        assert source.path == tmp_path
        assert source.default_fare == 5000.0

    def test_database(self, monkeypatch):
        monkeypatch.setattr(settings.planner, "SCHEDULE_SOURCE", "database")
        assert isinstance(build_schedule_source(), SqlScheduleSource)
