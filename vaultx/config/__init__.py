"""Configuration package."""

from vaultx.config.settings import (
    AppSettings,
    AppwriteSettings,
    DwollaSettings,
    PlaidSettings,
    Settings,
    get_settings,
    load_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "AppwriteSettings",
    "DwollaSettings",
    "PlaidSettings",
    "Settings",
    "get_settings",
    "load_settings",
    "validate_all_settings",
]
