"""Unit tests for environment-driven settings."""

from pydantic import ValidationError
import pytest

from school_search.config import Settings


@pytest.mark.unit
class TestSettings:
    def test_loads_prefixed_environment(self):
        settings = Settings()
        assert settings.app_id == "test-app-id"
        assert settings.api_key == "test-app-key"
        assert settings.http_timeout == 5.0
        assert settings.rate_delay_ms == 100

    def test_defaults_without_environment(self, monkeypatch):
        for name in ("SCHOOLDIGGER_APP_ID", "SCHOOLDIGGER_API_KEY", "SCHOOLDIGGER_BASE_URL", "SCHOOLDIGGER_PORT"):
            monkeypatch.delenv(name)

        settings = Settings(_env_file=None)

        assert settings.app_id == ""
        assert settings.base_url == "https://api.schooldigger.com"
        assert settings.port == 15010
        assert not settings.has_credentials()

    def test_has_credentials(self):
        assert Settings(app_id="abc", api_key="def").has_credentials()
        assert not Settings(app_id="abc", api_key=" ").has_credentials()

    @pytest.mark.parametrize(("app_id", "masked"), [("test-app-id", "test***"), ("abcd", "***"), ("", "***")])
    def test_masked_app_id(self, app_id, masked):
        assert Settings(app_id=app_id).masked_app_id() == masked

    @pytest.mark.parametrize(
        ("base_url", "version", "root"),
        [
            ("https://api.schooldigger.com", "v2.3", "https://api.schooldigger.com/v2.3"),
            ("https://api.schooldigger.com/", "/v2.3/", "https://api.schooldigger.com/v2.3"),
        ],
    )
    def test_api_root(self, base_url, version, root):
        assert Settings(base_url=base_url, api_version=version).api_root == root

    @pytest.mark.parametrize(
        "overrides",
        [{"rate_limit_per_minute": 0}, {"cache_ttl_seconds": 0}, {"port": 70000}, {"http_timeout": -1}],
    )
    def test_rejects_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            Settings(**overrides)

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv("SCHOOLDIGGER_PER_PAGE", "many")
        with pytest.raises(ValidationError):
            Settings()
