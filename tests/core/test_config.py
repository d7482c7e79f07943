from datetime import date

from src.core.config import Settings


class TestSettings:
    """Tests for environment-driven settings."""

    def test_database_url_converted_to_asyncpg(self):
        settings = Settings(database_url="postgres://u:p@db:5432/ops")
        assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/ops"

        settings = Settings(database_url="postgresql://u:p@db:5432/ops")
        assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/ops"

    def test_cors_origins_from_comma_separated_string(self):
        settings = Settings(cors_allowed_origins="https://a.example, https://b.example,")
        assert settings.cors_allowed_origins == ["https://a.example", "https://b.example"]

    def test_default_revenue_cutoff(self, monkeypatch):
        monkeypatch.delenv("REVENUE_CUTOFF_DATE", raising=False)
        assert Settings(_env_file=None).revenue_cutoff_date == date(2026, 1, 1)

    def test_revenue_cutoff_from_env(self, monkeypatch):
        monkeypatch.setenv("REVENUE_CUTOFF_DATE", "2025-07-01")
        assert Settings(_env_file=None).revenue_cutoff_date == date(2025, 7, 1)

    def test_service_location_map_from_env(self, monkeypatch):
        monkeypatch.setenv(
            "SERVICE_LOCATION_MAP", '{"learning_pod": "homestead", " consulting ": "remote"}'
        )
        settings = Settings(_env_file=None)
        assert settings.service_location_map == {
            "learning_pod": "homestead",
            "consulting": "remote",
        }

    def test_default_title_rule_routes_spanish_101_online(self, monkeypatch):
        monkeypatch.delenv("LOCATION_TITLE_RULES", raising=False)
        rules = Settings(_env_file=None).location_title_rules
        assert [(r.service_code, r.title_contains, r.location_code) for r in rules] == [
            ("elective_classes", "spanish 101", "remote")
        ]
