"""
Data Models Package

This package contains all Pydantic models used in vaultX.
All data flowing between the forms, the workflows and the providers
must conform to these schemas.
"""

from vaultx.models.user import (
    CustomerProfile,
    Identity,
    SessionContext,
    SessionCookie,
    SignInForm,
    SignUpForm,
    User,
    ValidationIssue,
    ValidationResult,
)
from vaultx.models.bank import (
    AccountsSummary,
    AccountSummaryItem,
    BankAccountLink,
    LinkedAccount,
    LinkResult,
    TransferReceipt,
)
from vaultx.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # User models
    "CustomerProfile",
    "Identity",
    "SessionContext",
    "SessionCookie",
    "SignInForm",
    "SignUpForm",
    "User",
    "ValidationIssue",
    "ValidationResult",
    # Bank models
    "AccountsSummary",
    "AccountSummaryItem",
    "BankAccountLink",
    "LinkedAccount",
    "LinkResult",
    "TransferReceipt",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
