"""
Configuration Management for vaultX

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here and built eagerly.
load_settings() constructs every provider section up front, so a missing
key or a bad DWOLLA_ENV fails at startup rather than halfway through a
sign-up. The resulting Settings object is handed to each service
explicitly - no module-level provider clients.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vaultx.errors import ConfigurationFailure


ProviderEnvironment = Literal["sandbox", "production"]


class AppwriteSettings(BaseSettings):
    """Appwrite identity and database configuration."""

    model_config = SettingsConfigDict(
        env_prefix="APPWRITE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    endpoint: str = Field(
        ...,
        description="Appwrite API endpoint, e.g. https://cloud.appwrite.io/v1"
    )
    project: str = Field(
        ...,
        description="Appwrite project ID"
    )
    secret: str = Field(
        ...,
        description="Appwrite server API key"
    )
    database_id: str = Field(
        ...,
        description="Database holding the user and bank collections"
    )
    user_collection_id: str = Field(
        ...,
        description="Collection for application user records"
    )
    bank_collection_id: str = Field(
        ...,
        description="Collection for linked bank account records"
    )
    audit_collection_id: Optional[str] = Field(
        default=None,
        description="Optional collection for persisted audit events"
    )

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Appwrite endpoint must be an http(s) URL, got: {v}")
        return v.rstrip("/")


class DwollaSettings(BaseSettings):
    """Dwolla payment network configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DWOLLA_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    key: str = Field(
        ...,
        description="Dwolla application key"
    )
    secret: str = Field(
        ...,
        description="Dwolla application secret"
    )
    env: ProviderEnvironment = Field(
        ...,
        description="Dwolla environment: sandbox or production"
    )


class PlaidSettings(BaseSettings):
    """Plaid bank-link aggregator configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PLAID_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    client_id: str = Field(
        ...,
        description="Plaid client ID"
    )
    secret: str = Field(
        ...,
        description="Plaid secret for the selected environment"
    )
    env: ProviderEnvironment = Field(
        default="sandbox",
        description="Plaid environment: sandbox or production"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    app_name: str = Field(
        default="vaultX",
        description="Display name, also used as the Plaid Link client name fallback"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    session_cookie_name: str = Field(
        default="appwrite-session",
        description="Name of the session cookie"
    )

    # Plaid Link parameters
    plaid_products: str = Field(
        default="auth",
        description="Comma-separated Plaid products requested by Link"
    )
    plaid_country_codes: str = Field(
        default="US",
        description="Comma-separated country codes for Plaid Link"
    )
    plaid_language: str = Field(
        default="en",
        description="Plaid Link language"
    )

    @property
    def plaid_products_list(self) -> list[str]:
        return [p.strip() for p in self.plaid_products.split(",") if p.strip()]

    @property
    def plaid_country_codes_list(self) -> list[str]:
        return [c.strip().upper() for c in self.plaid_country_codes.split(",") if c.strip()]


class Settings:
    """
    Root settings container.

    Unlike a lazily-evaluated container, every section is constructed
    when Settings is built, so a bad environment fails here.
    """

    def __init__(
        self,
        appwrite: AppwriteSettings,
        dwolla: DwollaSettings,
        plaid: PlaidSettings,
        app: AppSettings,
    ):
        self.appwrite = appwrite
        self.dwolla = dwolla
        self.plaid = plaid
        self.app = app


def _describe(error: ValidationError, prefix: str) -> str:
    problems = []
    for item in error.errors():
        field = ".".join(str(part) for part in item.get("loc", ()))
        env_name = f"{prefix}{field}".upper() if field else prefix.rstrip("_")
        problems.append(f"{env_name}: {item.get('msg')}")
    return "; ".join(problems)


def load_settings() -> Settings:
    """
    Build settings from the environment.

    Raises:
        ConfigurationFailure: If any required value is missing or malformed
    """
    sections = [
        ("appwrite", AppwriteSettings, "APPWRITE_"),
        ("dwolla", DwollaSettings, "DWOLLA_"),
        ("plaid", PlaidSettings, "PLAID_"),
        ("app", AppSettings, ""),
    ]
    built = {}
    problems = []

    for name, settings_cls, prefix in sections:
        try:
            built[name] = settings_cls()
        except ValidationError as e:
            problems.append(_describe(e, prefix))

    if problems:
        raise ConfigurationFailure(
            "Invalid configuration: " + "; ".join(problems)
        )

    return Settings(**built)


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return load_settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate each provider section independently.

    Returns a dict of {setting_name: is_valid} plus "<name>_error" entries.
    Used by the settings screen.
    """
    results = {}

    for name, settings_cls in [
        ("appwrite", AppwriteSettings),
        ("dwolla", DwollaSettings),
        ("plaid", PlaidSettings),
        ("app", AppSettings),
    ]:
        try:
            settings_cls()
            results[name] = True
        except ValidationError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
