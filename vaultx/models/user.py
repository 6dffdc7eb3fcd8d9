"""
User, Session and Onboarding Models for vaultX

These models define the schemas for everything that flows through
sign-up and sign-in:
1. Raw form payloads (lenient - the validation gate reports problems)
2. The normalized customer profile sent to Dwolla
3. The persisted application user record
4. The session cookie and the per-request session context

DESIGN DECISION: Form models accept missing values on purpose.
If pydantic rejected the first missing field we could never tell the user
about all of them at once.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# FORM PAYLOADS
# =============================================================================

class SignInForm(BaseModel):
    """Credentials submitted on the sign-in screen."""
    model_config = ConfigDict(str_strip_whitespace=True)

    email: Optional[str] = None
    password: Optional[str] = None


class SignUpForm(BaseModel):
    """
    Everything submitted on the sign-up screen.

    All fields are optional here. OnboardingValidator decides
    what is actually required.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    address1: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    date_of_birth: Optional[str] = Field(
        default=None,
        description="YYYY-MM-DD"
    )
    ssn: Optional[str] = None

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class CustomerProfile(BaseModel):
    """
    Normalized payload for creating a Dwolla personal customer.

    Only built by the validation gate, after every check has passed.
    """
    model_config = ConfigDict(frozen=True)

    first_name: str
    last_name: str
    email: str
    address1: str
    city: str
    state: str = Field(..., min_length=2, max_length=2)
    postal_code: str
    date_of_birth: str
    ssn: str
    type: Literal["personal"] = "personal"

    def to_dwolla_body(self) -> dict[str, str]:
        """Request body in Dwolla's camelCase shape."""
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "address1": self.address1,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "dateOfBirth": self.date_of_birth,
            "ssn": self.ssn,
            "type": self.type,
        }

    def to_log_dict(self) -> dict[str, str]:
        """Same as the request body, with the SSN masked."""
        body = self.to_dwolla_body()
        body["ssn"] = "***PROVIDED***" if self.ssn else "MISSING"
        return body


# =============================================================================
# IDENTITY AND PERSISTED USER
# =============================================================================

class Identity(BaseModel):
    """An Appwrite account as returned by the identity provider."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="$id")
    email: str = ""
    name: str = ""
    email_verification: bool = Field(default=False, alias="emailVerification")

    @classmethod
    def from_provider(cls, data: dict[str, Any]) -> "Identity":
        return cls.model_validate(data)


class User(BaseModel):
    """
    Application user record stored in the Appwrite user collection.

    Created once at sign-up. There is no update path.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        description="Document ID in the user collection"
    )
    user_id: str = Field(
        ...,
        description="Appwrite account ID this record belongs to"
    )
    email: str
    first_name: str
    last_name: str
    address1: str
    city: str
    state: str
    postal_code: str
    date_of_birth: str
    ssn: str
    dwolla_customer_id: str = Field(
        ...,
        min_length=1,
        description="Dwolla customer ID (last segment of the customer URL)"
    )
    dwolla_customer_url: str = Field(
        ...,
        description="Dwolla customer resource URL"
    )

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_document(self) -> dict[str, str]:
        """Fields for the Appwrite document."""
        return {
            "userId": self.user_id,
            "email": self.email,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "address1": self.address1,
            "city": self.city,
            "state": self.state,
            "postalCode": self.postal_code,
            "dateOfBirth": self.date_of_birth,
            "ssn": self.ssn,
            "dwollaCustomerId": self.dwolla_customer_id,
            "dwollaCustomerUrl": self.dwolla_customer_url,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "User":
        """Build a User from an Appwrite document."""
        return cls(
            id=document.get("$id"),
            user_id=document["userId"],
            email=document.get("email", ""),
            first_name=document.get("firstName", ""),
            last_name=document.get("lastName", ""),
            address1=document.get("address1", ""),
            city=document.get("city", ""),
            state=document.get("state", ""),
            postal_code=document.get("postalCode", ""),
            date_of_birth=document.get("dateOfBirth", ""),
            ssn=document.get("ssn", ""),
            dwolla_customer_id=document["dwollaCustomerId"],
            dwolla_customer_url=document.get("dwollaCustomerUrl", ""),
        )


# =============================================================================
# SESSION
# =============================================================================

class SessionCookie(BaseModel):
    """
    The session cookie issued after sign-in.

    Attributes are fixed: path "/", http-only, strict same-site, secure.
    """
    model_config = ConfigDict(frozen=True)

    name: str = "appwrite-session"
    value: str = Field(..., min_length=1)
    path: str = "/"
    http_only: bool = True
    same_site: Literal["strict"] = "strict"
    secure: bool = True


class SessionContext(BaseModel):
    """
    Session state for one request.

    Workflows receive this explicitly and set or delete the cookie on it.
    Exactly one session cookie is recognized per context.
    """

    cookie: Optional[SessionCookie] = None

    @property
    def secret(self) -> Optional[str]:
        return self.cookie.value if self.cookie else None

    @property
    def has_session(self) -> bool:
        return self.cookie is not None

    def set_cookie(self, cookie: SessionCookie) -> None:
        self.cookie = cookie

    def delete_cookie(self) -> None:
        self.cookie = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """Outcome of running the validation gate over a form."""

    validated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    missing_fields: list[str] = Field(
        default_factory=list,
        description="Every required field that was absent, in form order"
    )

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)
