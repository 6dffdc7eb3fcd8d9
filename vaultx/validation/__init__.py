"""Validation package."""

from vaultx.validation.validator import (
    DATE_OF_BIRTH_PATTERN,
    REQUIRED_SIGN_IN_FIELDS,
    REQUIRED_SIGN_UP_FIELDS,
    US_STATE_CODES,
    OnboardingValidator,
    is_valid_date_of_birth,
    normalize_state_code,
)

__all__ = [
    "DATE_OF_BIRTH_PATTERN",
    "REQUIRED_SIGN_IN_FIELDS",
    "REQUIRED_SIGN_UP_FIELDS",
    "US_STATE_CODES",
    "OnboardingValidator",
    "is_valid_date_of_birth",
    "normalize_state_code",
]
