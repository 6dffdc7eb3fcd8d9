"""Identity provider services package."""

from vaultx.services.identity.appwrite_service import (
    AppwriteIdentityService,
    to_provider_failure,
)

__all__ = [
    "AppwriteIdentityService",
    "to_provider_failure",
]
