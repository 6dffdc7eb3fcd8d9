"""
Onboarding Validation Gate

DESIGN DECISION: Validation happens before the first provider call.
A sign-up that would be rejected by Dwolla must never get as far as
creating an Appwrite account, because nothing here cleans that account
up again.

CHECKS:
- Required field presence (every missing field is reported, not just the first)
- State code: trimmed, upper-cased, exactly 2 characters, one of the
  50 US states or DC
- Date of birth: literal YYYY-MM-DD pattern, no calendar check

IMPORTANT: Validation NEVER silently fixes issues beyond the documented
normalization (trim, upper-case state, lower-case email).
"""

import re
from typing import Optional

from vaultx.errors import ValidationFailure
from vaultx.models.user import (
    CustomerProfile,
    SignInForm,
    SignUpForm,
    ValidationIssue,
    ValidationResult,
)


US_STATE_CODES = frozenset({
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
    "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
    "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
    "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
    "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY",
    "DC",
})

DATE_OF_BIRTH_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$", re.ASCII)

# Form order, so error messages read top to bottom like the screen
REQUIRED_SIGN_UP_FIELDS = (
    "first_name",
    "last_name",
    "address1",
    "city",
    "state",
    "postal_code",
    "date_of_birth",
    "ssn",
    "email",
    "password",
)

REQUIRED_SIGN_IN_FIELDS = ("email", "password")

FIELD_LABELS = {
    "first_name": "First name",
    "last_name": "Last name",
    "address1": "Address",
    "city": "City",
    "state": "State",
    "postal_code": "Postal code",
    "date_of_birth": "Date of birth",
    "ssn": "SSN",
    "email": "Email",
    "password": "Password",
}


def normalize_state_code(value: str) -> str:
    """
    Trim and upper-case a state code.

    Raises:
        ValueError: If the result is not exactly 2 characters or not a
                    US state / DC code
    """
    state = value.strip().upper()
    if len(state) != 2:
        raise ValueError(f"State must be exactly 2 characters, got: {state}")
    if state not in US_STATE_CODES:
        raise ValueError(
            f"Invalid state abbreviation: {state}. "
            "Must be a valid US state abbreviation (e.g., CA, NY, TX)."
        )
    return state


def is_valid_date_of_birth(value: str) -> bool:
    """Pattern check only: 1990-05-21 passes, 1990-99-99 passes too."""
    return bool(DATE_OF_BIRTH_PATTERN.fullmatch(value))


def _missing(form, fields: tuple[str, ...]) -> list[str]:
    return [name for name in fields if not getattr(form, name)]


def _missing_issue(field: str) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type="missing",
        message=f"{FIELD_LABELS.get(field, field)} is required",
    )


class OnboardingValidator:
    """
    Validates sign-up and sign-in forms.

    Pure and local - holds no provider clients, so it cannot make a
    network call even by accident.
    """

    def validate_sign_up(self, form: SignUpForm) -> ValidationResult:
        """
        Run every sign-up check and collect all issues.

        Returns:
            ValidationResult listing all missing fields and format issues
        """
        missing = _missing(form, REQUIRED_SIGN_UP_FIELDS)
        issues = [_missing_issue(name) for name in missing]

        if form.state:
            try:
                normalize_state_code(form.state)
            except ValueError as e:
                issues.append(ValidationIssue(
                    field="state",
                    issue_type="invalid_value",
                    message=str(e),
                ))

        if form.date_of_birth and not is_valid_date_of_birth(form.date_of_birth):
            issues.append(ValidationIssue(
                field="date_of_birth",
                issue_type="invalid_format",
                message=(
                    "Date of birth must be in YYYY-MM-DD format, "
                    f"got: {form.date_of_birth}"
                ),
            ))

        return ValidationResult(
            is_valid=not issues,
            issues=issues,
            missing_fields=missing,
        )

    def validate_sign_up_or_raise(self, form: SignUpForm) -> CustomerProfile:
        """
        Validate a sign-up form and build the normalized Dwolla profile.

        Raises:
            ValidationFailure: Listing every violated field
        """
        result = self.validate_sign_up(form)
        if result.has_errors:
            raise ValidationFailure(
                result.issues,
                message=self.get_user_friendly_summary(result),
            )

        return CustomerProfile(
            first_name=form.first_name,
            last_name=form.last_name,
            email=form.email.lower(),
            address1=form.address1,
            city=form.city,
            state=normalize_state_code(form.state),
            postal_code=form.postal_code,
            date_of_birth=form.date_of_birth,
            ssn=form.ssn,
        )

    def validate_sign_in(self, form: SignInForm) -> ValidationResult:
        """Only credentials are required to sign in."""
        missing = _missing(form, REQUIRED_SIGN_IN_FIELDS)
        issues = [_missing_issue(name) for name in missing]
        return ValidationResult(
            is_valid=not issues,
            issues=issues,
            missing_fields=missing,
        )

    def validate_sign_in_or_raise(self, form: SignInForm) -> None:
        result = self.validate_sign_in(form)
        if result.has_errors:
            raise ValidationFailure(
                result.issues,
                message=self.get_user_friendly_summary(result),
            )

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
        form_name: Optional[str] = None,
    ) -> str:
        """One line naming every problem, suitable for the form banner."""
        if result.is_valid:
            return "All checks passed."

        parts = []
        if result.missing_fields:
            parts.append(
                "Missing required fields: " + ", ".join(result.missing_fields)
            )
        parts.extend(
            issue.message for issue in result.issues
            if issue.issue_type != "missing"
        )
        prefix = f"{form_name}: " if form_name else ""
        return prefix + "; ".join(parts)
