"""
Tests for vaultX

Test strategy:
1. Unit tests for individual components (models, validators)
2. Integration tests for flows (with fake provider services)
3. No real API calls in tests (use fakes and mocks)
"""

import pytest
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from vaultx.models.user import (
    CustomerProfile,
    Identity,
    SessionContext,
    SessionCookie,
    SignUpForm,
    User,
    ValidationIssue,
    ValidationResult,
)
from vaultx.models.bank import BankAccountLink, TransferReceipt
from vaultx.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestUserModels:
    """Tests for user and form Pydantic models."""

    def test_sign_up_form_accepts_missing_fields(self):
        """Missing values are reported by the validator, not by pydantic."""
        form = SignUpForm(email="ada@example.com")
        assert form.first_name is None
        assert form.email == "ada@example.com"

    def test_sign_up_form_strips_whitespace(self):
        """Test that whitespace is stripped from form values."""
        form = SignUpForm(first_name="  Ada  ", last_name=" Lovelace")
        assert form.first_name == "Ada"
        assert form.display_name == "Ada Lovelace"

    def test_customer_profile_dwolla_body(self):
        """Test the camelCase body sent to Dwolla."""
        profile = CustomerProfile(
            first_name="Ada",
            last_name="Lovelace",
            email="ada@example.com",
            address1="1 Main St",
            city="Albany",
            state="NY",
            postal_code="12207",
            date_of_birth="1990-05-21",
            ssn="1234",
        )
        body = profile.to_dwolla_body()
        assert body["firstName"] == "Ada"
        assert body["postalCode"] == "12207"
        assert body["type"] == "personal"

    def test_customer_profile_log_dict_masks_ssn(self):
        """The SSN never reaches the logs."""
        profile = CustomerProfile(
            first_name="Ada",
            last_name="Lovelace",
            email="ada@example.com",
            address1="1 Main St",
            city="Albany",
            state="NY",
            postal_code="12207",
            date_of_birth="1990-05-21",
            ssn="1234",
        )
        assert profile.to_log_dict()["ssn"] == "***PROVIDED***"

    def test_identity_from_provider(self):
        """Test parsing an Appwrite account payload."""
        identity = Identity.from_provider({
            "$id": "user-1",
            "email": "ada@example.com",
            "name": "Ada Lovelace",
            "emailVerification": True,
        })
        assert identity.id == "user-1"
        assert identity.email_verification is True

    def test_user_document_round_trip(self, user):
        """Test conversion to and from an Appwrite document."""
        document = {"$id": "doc-1", **user.to_document()}
        assert document["dwollaCustomerId"] == "cust-1"
        assert User.from_document(document) == user

    def test_user_requires_customer_id(self, user):
        """A user record must point at a Dwolla customer."""
        with pytest.raises(ValidationError):
            User(**{**user.model_dump(), "dwolla_customer_id": ""})


class TestSessionModels:
    """Tests for the session cookie and context."""

    def test_cookie_attributes(self):
        """Test the fixed cookie attributes."""
        cookie = SessionCookie(value="secret")
        assert cookie.name == "appwrite-session"
        assert cookie.path == "/"
        assert cookie.http_only is True
        assert cookie.same_site == "strict"
        assert cookie.secure is True

    def test_cookie_requires_value(self):
        """Test that an empty secret is rejected."""
        with pytest.raises(ValidationError):
            SessionCookie(value="")

    def test_context_set_and_delete(self):
        """Test setting and deleting the cookie."""
        session = SessionContext()
        assert session.secret is None
        session.set_cookie(SessionCookie(value="secret"))
        assert session.has_session
        assert session.secret == "secret"
        session.delete_cookie()
        assert not session.has_session


class TestBankModels:
    """Tests for bank account models."""

    def test_bank_account_document_keys(self, make_bank):
        """Test the Appwrite document shape."""
        document = make_bank("user-1", "acc-1").to_document()
        assert set(document) == {
            "userId", "bankId", "accountId", "accessToken",
            "fundingSourceUrl", "sharableId",
        }

    def test_transfer_receipt_created_at_is_utc_aware(self):
        """Test that receipts are stamped in UTC."""
        receipt = TransferReceipt(
            transfer_url="https://api-sandbox.dwolla.com/transfers/t1",
            source_funding_source_url="https://api-sandbox.dwolla.com/funding-sources/a",
            destination_funding_source_url="https://api-sandbox.dwolla.com/funding-sources/b",
            amount=Decimal("5.00"),
        )
        assert receipt.created_at.tzinfo is not None

    def test_bank_account_from_document(self, make_bank):
        """Test building a BankAccountLink from a document."""
        bank = BankAccountLink.from_document(
            {"$id": "b1", **make_bank("user-1", "acc-1").to_document()}
        )
        assert bank.id == "b1"
        assert bank.account_id == "acc-1"


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            description="User signed up",
        )
        assert event.event_type == AuditEventType.USER_SIGNED_UP
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_timestamp_is_utc_aware(self):
        """Timestamps carry an explicit UTC offset."""
        event = AuditEvent(
            event_type=AuditEventType.USER_SIGNED_OUT,
            description="User signed out",
        )
        assert event.timestamp.tzinfo is not None
        assert event.timestamp.utcoffset() == timedelta(0)
        assert event.to_log_dict()["timestamp"].endswith("+00:00")

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSFER_CREATED,
            description="Transfer created",
            details={"amount": "25.00"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transfer_created"
        assert log_dict["details"]["amount"] == "25.00"

    def test_audit_event_to_document(self):
        """Test conversion to an audit collection document."""
        event = AuditEvent(
            event_type=AuditEventType.USER_SIGNED_OUT,
            description="User signed out",
            is_user_action=True,
        )
        document = event.to_document()
        assert document["eventType"] == "user_signed_out"
        assert document["isUserAction"] is True
        assert document["detailsJson"] == ""

    def test_audit_event_builder_signed_in(self):
        """Reused sessions get their own event type."""
        correlation_id = uuid4()

        event = AuditEventBuilder.user_signed_in(
            user_id="user-1",
            reused_session=True,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.SESSION_REUSED
        assert event.entity_id == "user-1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True

    def test_audit_event_builder_external_service_error(self):
        """Test AuditEventBuilder.external_service_error."""
        event = AuditEventBuilder.external_service_error(
            service="dwolla",
            step="create_customer",
            error_code=400,
            error_type="ValidationError",
            error_message="Validation error(s) present.",
            correlation_id=uuid4(),
        )

        assert event.severity == AuditSeverity.ERROR
        assert event.error_code == "400"
        assert event.details["step"] == "create_customer"


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="ssn",
                    issue_type="missing",
                    message="SSN is required",
                    severity="error",
                ),
            ],
            missing_fields=["ssn"],
        )
        assert result.has_errors is True

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="email",
                    issue_type="unusual",
                    message="Email has uppercase letters",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
