"""
Tests for erplib/config.py - settings from the environment.
"""

import pytest

from erplib.config import DEFAULT_COMPANY, ConfigError, Settings

BASE_ENV = {
    "ERP_API_URL": "https://erp.example.com/",
    "ERP_API_KEY": "key",
    "ERP_API_SECRET": "secret",
}


class TestSettingsFromEnv:
    def test_defaults(self):
        settings = Settings.from_env(BASE_ENV)

        assert settings.erp_api_url == "https://erp.example.com"
        assert settings.default_company == DEFAULT_COMPANY == "Pana ERP"
        assert settings.timeout == 30.0
        assert settings.port == 8420
        assert settings.api_token is None
        assert settings.cors_origins == ["*"]
        assert settings.log_json is None

    def test_missing_credentials(self):
        with pytest.raises(ConfigError, match="ERP_API_SECRET"):
            Settings.from_env({"ERP_API_URL": "https://erp", "ERP_API_KEY": "k"})

    def test_overrides(self):
        env = {
            **BASE_ENV,
            "ERP_DEFAULT_COMPANY": "Acme",
            "ERP_TIMEOUT": "5",
            "ERP_GATEWAY_API_TOKEN": "tok",
            "CORS_ORIGINS": "https://a.example, https://b.example",
            "LOG_LEVEL": "debug",
            "LOG_FORMAT": "json",
            "PORT": "9000",
        }

        settings = Settings.from_env(env)

        assert settings.default_company == "Acme"
        assert settings.timeout == 5.0
        assert settings.api_token == "tok"
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.log_level == "DEBUG"
        assert settings.log_json is True
        assert settings.port == 9000

    def test_human_log_format(self):
        assert Settings.from_env({**BASE_ENV, "LOG_FORMAT": "human"}).log_json is False

    def test_bad_number(self):
        with pytest.raises(ConfigError):
            Settings.from_env({**BASE_ENV, "ERP_TIMEOUT": "soon"})
