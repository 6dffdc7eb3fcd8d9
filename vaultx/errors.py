"""
Error Taxonomy for vaultX

DESIGN DECISION: Every failure that leaves a workflow is one of three kinds:

1. VALIDATION - local, pre-flight, never reaches a provider
2. PROVIDER - a remote call to Appwrite, Plaid or Dwolla failed
3. CONFIGURATION - a required environment value is missing or malformed

The form handlers switch on the kind (and on the provider code/type)
instead of sniffing strings out of generic exceptions.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class ErrorKind(str, Enum):
    """Tag carried by every vaultX error."""
    VALIDATION = "validation"
    PROVIDER = "provider"
    CONFIGURATION = "configuration"


class VaultXError(Exception):
    """Base exception for all vaultX errors."""

    kind: ErrorKind

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationFailure(VaultXError):
    """User-supplied data failed the validation gate."""

    kind = ErrorKind.VALIDATION

    def __init__(self, issues: list, message: Optional[str] = None):
        self.issues = list(issues)
        self.fields = [issue.field for issue in self.issues]
        if message is None:
            message = "; ".join(issue.message for issue in self.issues)
        super().__init__(message or "Validation failed")


class ProviderFailure(VaultXError):
    """
    A provider call returned an error.

    Carries the provider's status code and its own type tag so the
    caller can decide what to show the user.
    """

    kind = ErrorKind.PROVIDER

    def __init__(
        self,
        provider: str,
        message: str,
        code: Optional[int] = None,
        type: Optional[str] = None,
    ):
        self.provider = provider
        self.code = code if code is not None else 500
        self.type = type or "unknown_error"
        super().__init__(message or f"{provider} request failed")

    def to_dict(self) -> dict[str, Any]:
        """Normalized shape handed back to form handlers."""
        return {
            "code": self.code,
            "type": self.type,
            "message": self.message,
        }

    @classmethod
    def from_exception(
        cls,
        provider: str,
        error: Exception,
        default_message: str = "",
    ) -> "ProviderFailure":
        """Wrap an exception nobody translated into a provider failure."""
        if isinstance(error, ProviderFailure):
            return error
        code = getattr(error, "code", None)
        if not isinstance(code, int):
            code = None
        return cls(
            provider=provider,
            message=str(error) or default_message,
            code=code,
            type=getattr(error, "type", None),
        )

    def __repr__(self) -> str:
        return (
            f"ProviderFailure(provider={self.provider!r}, code={self.code!r}, "
            f"type={self.type!r}, message={self.message!r})"
        )


class ConfigurationFailure(VaultXError):
    """Required configuration is missing or malformed."""

    kind = ErrorKind.CONFIGURATION


# =============================================================================
# FORM-BOUNDARY CLASSIFICATION
# =============================================================================

RATE_LIMIT_TYPE = "general_rate_limit_exceeded"
SESSION_EXISTS_TYPE = "user_session_already_exists"


class AuthOutcome(str, Enum):
    """What the auth form should do with a failure."""
    INVALID_INPUT = "invalid_input"
    RATE_LIMITED = "rate_limited"
    ALREADY_SIGNED_IN = "already_signed_in"
    INVALID_CREDENTIALS = "invalid_credentials"
    GENERIC = "generic"


class AuthFeedback(BaseModel):
    """User-facing verdict for a failed sign-in or sign-up."""
    outcome: AuthOutcome
    message: str
    redirect_home: bool = False


def classify_auth_failure(error: Exception) -> AuthFeedback:
    """
    Turn a sign-in / sign-up failure into a message for the user.

    Rate limiting wins over everything else. A 401 that says a session
    already exists is not an error at all - the user goes home.
    """
    if isinstance(error, ValidationFailure):
        return AuthFeedback(
            outcome=AuthOutcome.INVALID_INPUT,
            message=f"Please check the following fields: {', '.join(error.fields)}",
        )

    code = getattr(error, "code", None)
    error_type = getattr(error, "type", None)

    if code == 429 or error_type == RATE_LIMIT_TYPE:
        return AuthFeedback(
            outcome=AuthOutcome.RATE_LIMITED,
            message="Too many sign-in attempts. Please wait a few minutes and try again.",
        )

    if code == 401 and error_type == SESSION_EXISTS_TYPE:
        return AuthFeedback(
            outcome=AuthOutcome.ALREADY_SIGNED_IN,
            message="You are already signed in. Redirecting to home...",
            redirect_home=True,
        )

    if code == 401:
        return AuthFeedback(
            outcome=AuthOutcome.INVALID_CREDENTIALS,
            message="Invalid email or password. Please check your credentials.",
        )

    return AuthFeedback(
        outcome=AuthOutcome.GENERIC,
        message="An error occurred during authentication. Please try again.",
    )
