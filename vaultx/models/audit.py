"""
Audit Models for vaultX

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every provider call that created something
2. Debugging information when a multi-step workflow stops halfway
3. A record of orphaned provider resources for manual cleanup

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Onboarding
    VALIDATION_FAILED = "validation_failed"
    IDENTITY_ACCOUNT_CREATED = "identity_account_created"
    PAYMENT_CUSTOMER_CREATED = "payment_customer_created"
    USER_RECORD_SAVED = "user_record_saved"
    USER_SIGNED_UP = "user_signed_up"

    # Session
    USER_SIGNED_IN = "user_signed_in"
    SESSION_REUSED = "session_reused"
    USER_SIGNED_OUT = "user_signed_out"

    # Bank linking
    LINK_TOKEN_CREATED = "link_token_created"
    BANK_ACCOUNT_LINKED = "bank_account_linked"

    # Transfers
    TRANSFER_CREATED = "transfer_created"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'user', 'bank_account', 'transfer')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Provider-side ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all steps of one sign-up)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_document(self) -> dict:
        """Flat document for the Appwrite audit collection."""
        return {
            "eventId": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "eventType": self.event_type.value,
            "severity": self.severity.value,
            "entityType": self.entity_type or "",
            "entityId": self.entity_id or "",
            "correlationId": str(self.correlation_id) if self.correlation_id else "",
            "description": self.description,
            "detailsJson": json.dumps(self.details, default=str) if self.details else "",
            "errorMessage": self.error_message or "",
            "isUserAction": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.user_signed_up(user_id, email, correlation_id)
        event = AuditEventBuilder.bank_account_linked(user_id, item_id, ...)
    """

    @staticmethod
    def validation_failed(
        form: str,
        fields: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="form",
            correlation_id=correlation_id,
            description=f"{form} form rejected with {len(fields)} invalid fields",
            details={
                "form": form,
                "fields": fields,
            },
            is_user_action=True,
        )

    @staticmethod
    def identity_account_created(
        user_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IDENTITY_ACCOUNT_CREATED,
            entity_type="identity",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Appwrite account created",
        )

    @staticmethod
    def payment_customer_created(
        user_id: str,
        customer_url: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_CUSTOMER_CREATED,
            entity_type="identity",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Dwolla customer created",
            details={
                "customer_url": customer_url,
            },
        )

    @staticmethod
    def user_signed_up(
        user_id: str,
        email: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_UP,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=f"User signed up: {email}",
            details={
                "email": email,
            },
            is_user_action=True,
        )

    @staticmethod
    def user_signed_in(
        user_id: str,
        reused_session: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=(
                AuditEventType.SESSION_REUSED
                if reused_session
                else AuditEventType.USER_SIGNED_IN
            ),
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description=(
                "Existing session reused"
                if reused_session
                else "User signed in"
            ),
            is_user_action=True,
        )

    @staticmethod
    def user_signed_out(
        correlation_id: UUID,
        provider_error: Optional[str] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_SIGNED_OUT,
            severity=AuditSeverity.WARNING if provider_error else AuditSeverity.INFO,
            entity_type="session",
            correlation_id=correlation_id,
            description="User signed out",
            error_message=provider_error,
            is_user_action=True,
        )

    @staticmethod
    def link_token_created(
        user_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LINK_TOKEN_CREATED,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="Plaid link token created",
        )

    @staticmethod
    def user_record_saved(
        user_id: str,
        document_id: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_RECORD_SAVED,
            entity_type="user",
            entity_id=user_id,
            correlation_id=correlation_id,
            description="User record saved",
            details={
                "document_id": document_id,
            },
        )

    @staticmethod
    def bank_account_linked(
        user_id: str,
        item_id: str,
        sharable_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BANK_ACCOUNT_LINKED,
            entity_type="bank_account",
            entity_id=item_id,
            correlation_id=correlation_id,
            description="Bank account linked",
            details={
                "user_id": user_id,
                "sharable_id": sharable_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def transfer_created(
        transfer_url: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_CREATED,
            entity_type="transfer",
            entity_id=transfer_url,
            correlation_id=correlation_id,
            description=f"Transfer created: ${amount}",
            details={
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        step: str,
        error_code: Optional[int],
        error_type: Optional[str],
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service} during {step}",
            error_code=str(error_code) if error_code is not None else None,
            error_message=error_message,
            details={
                "service": service,
                "step": step,
                "error_type": error_type,
            },
            correlation_id=correlation_id,
        )
