"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the records we persist.
This allows us to:
1. Keep workflows unaware that the records live in Appwrite
2. Use in-memory fakes for testing
3. Swap the backend later without touching the workflows

The interface is intentionally small. Users and bank accounts are created
once and never updated or deleted from this application.
"""

from abc import ABC, abstractmethod
from typing import Optional

from vaultx.models.audit import AuditEvent
from vaultx.models.bank import BankAccountLink
from vaultx.models.user import User


class UserStorageInterface(ABC):
    """Persistence for application user records."""

    @abstractmethod
    async def save_user(self, user: User) -> User:
        """
        Persist a new user record.

        Returns:
            The stored user (with its document ID)

        Raises:
            ProviderFailure: If the backend rejects the write
        """
        pass

    @abstractmethod
    async def get_user_by_identity_id(self, user_id: str) -> Optional[User]:
        """
        Find the user record belonging to an identity account.

        Returns:
            The user if found, None otherwise
        """
        pass


class BankAccountStorageInterface(ABC):
    """Persistence for linked bank accounts."""

    @abstractmethod
    async def save_bank_account(self, bank_account: BankAccountLink) -> BankAccountLink:
        """
        Persist a newly linked bank account.

        Raises:
            ProviderFailure: If the backend rejects the write
        """
        pass

    @abstractmethod
    async def list_bank_accounts(self, user_id: str) -> list[BankAccountLink]:
        """All bank accounts linked by one identity account."""
        pass

    @abstractmethod
    async def get_bank_account_by_account_id(
        self,
        account_id: str,
    ) -> Optional[BankAccountLink]:
        """Look up a bank account by its Plaid account ID."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass
