"""
Tests for configuration loading
"""

import pytest

from vaultx.config import load_settings, validate_all_settings
from vaultx.errors import ConfigurationFailure


REQUIRED_ENV = {
    "APPWRITE_ENDPOINT": "https://cloud.appwrite.io/v1/",
    "APPWRITE_PROJECT": "project-1",
    "APPWRITE_SECRET": "api-key",
    "APPWRITE_DATABASE_ID": "db-1",
    "APPWRITE_USER_COLLECTION_ID": "users",
    "APPWRITE_BANK_COLLECTION_ID": "banks",
    "DWOLLA_KEY": "dwolla-key",
    "DWOLLA_SECRET": "dwolla-secret",
    "DWOLLA_ENV": "sandbox",
    "PLAID_CLIENT_ID": "plaid-client",
    "PLAID_SECRET": "plaid-secret",
}


@pytest.fixture
def env(monkeypatch, tmp_path):
    # Keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    for key, value in REQUIRED_ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.delenv("APPWRITE_AUDIT_COLLECTION_ID", raising=False)
    monkeypatch.delenv("PLAID_ENV", raising=False)
    return monkeypatch


class TestLoadSettings:

    def test_loads_complete_environment(self, env):
        settings = load_settings()

        assert settings.appwrite.endpoint == "https://cloud.appwrite.io/v1"
        assert settings.appwrite.audit_collection_id is None
        assert settings.dwolla.env == "sandbox"
        assert settings.plaid.env == "sandbox"
        assert settings.app.session_cookie_name == "appwrite-session"
        assert settings.app.plaid_products_list == ["auth"]
        assert settings.app.plaid_country_codes_list == ["US"]

    def test_bad_dwolla_env_fails_fast(self, env):
        env.setenv("DWOLLA_ENV", "staging")

        with pytest.raises(ConfigurationFailure) as exc_info:
            load_settings()

        assert "DWOLLA_ENV" in exc_info.value.message

    def test_missing_key_fails_fast(self, env):
        env.delenv("PLAID_SECRET")

        with pytest.raises(ConfigurationFailure) as exc_info:
            load_settings()

        assert "PLAID_SECRET" in exc_info.value.message

    def test_endpoint_must_be_http(self, env):
        env.setenv("APPWRITE_ENDPOINT", "cloud.appwrite.io")

        with pytest.raises(ConfigurationFailure):
            load_settings()

    def test_plaid_lists_are_split(self, env):
        env.setenv("PLAID_PRODUCTS", "auth, transactions")
        env.setenv("PLAID_COUNTRY_CODES", "us,ca")

        settings = load_settings()

        assert settings.app.plaid_products_list == ["auth", "transactions"]
        assert settings.app.plaid_country_codes_list == ["US", "CA"]


class TestValidateAllSettings:

    def test_reports_each_section(self, env):
        env.delenv("DWOLLA_KEY")

        results = validate_all_settings()

        assert results["appwrite"] is True
        assert results["dwolla"] is False
        assert "dwolla_error" in results
        assert results["plaid"] is True
