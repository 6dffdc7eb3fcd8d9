"""
Audit Logger

DESIGN DECISION: Every provider call that creates something is logged.
This provides:
1. Complete traceability
2. A way to find orphaned Appwrite accounts and Dwolla customers when a
   sign-up stops halfway (nothing cleans them up automatically)
3. Debugging capability

The audit logger:
- Is async to match the workflows
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from vaultx.errors import ProviderFailure
from vaultx.models.audit import AuditEvent, AuditEventBuilder
from vaultx.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The Appwrite audit collection, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("vaultx.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_validation_failed(
        self,
        form: str,
        fields: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.validation_failed(
            form=form,
            fields=fields,
            correlation_id=correlation_id,
        ))

    async def log_identity_account_created(
        self,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.identity_account_created(
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_payment_customer_created(
        self,
        user_id: str,
        customer_url: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.payment_customer_created(
            user_id=user_id,
            customer_url=customer_url,
            correlation_id=correlation_id,
        ))

    async def log_user_record_saved(
        self,
        user_id: str,
        document_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.user_record_saved(
            user_id=user_id,
            document_id=document_id,
            correlation_id=correlation_id,
        ))

    async def log_user_signed_up(
        self,
        user_id: str,
        email: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.user_signed_up(
            user_id=user_id,
            email=email,
            correlation_id=correlation_id,
        ))

    async def log_user_signed_in(
        self,
        user_id: str,
        reused_session: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.user_signed_in(
            user_id=user_id,
            reused_session=reused_session,
            correlation_id=correlation_id,
        ))

    async def log_user_signed_out(
        self,
        correlation_id: UUID,
        provider_error: Optional[str] = None,
    ) -> None:
        await self.log(AuditEventBuilder.user_signed_out(
            correlation_id=correlation_id,
            provider_error=provider_error,
        ))

    async def log_link_token_created(
        self,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.link_token_created(
            user_id=user_id,
            correlation_id=correlation_id,
        ))

    async def log_bank_account_linked(
        self,
        user_id: str,
        item_id: str,
        sharable_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.bank_account_linked(
            user_id=user_id,
            item_id=item_id,
            sharable_id=sharable_id,
            correlation_id=correlation_id,
        ))

    async def log_transfer_created(
        self,
        transfer_url: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transfer_created(
            transfer_url=transfer_url,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        step: str,
        failure: ProviderFailure,
        correlation_id: UUID,
    ) -> None:
        """Log a provider failure and the workflow step it stopped."""
        await self.log(AuditEventBuilder.external_service_error(
            service=failure.provider,
            step=step,
            error_code=failure.code,
            error_type=failure.type,
            error_message=failure.message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a sign-up).
    Pass it through all subsequent operations.
    """
    return uuid4()
