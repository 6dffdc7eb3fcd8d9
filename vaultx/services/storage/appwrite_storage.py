"""
Appwrite Storage Implementation

Records are documents in the Appwrite database configured by
APPWRITE_DATABASE_ID. Each record type has its own collection.

TRADEOFFS:
- No uniqueness constraint on bank accounts (a user may link the same
  account twice; we don't prevent it)
- No transactions (a failed write after a provider call leaves an orphan)
"""

from typing import Optional

from appwrite.query import Query

from vaultx.models.audit import AuditEvent
from vaultx.models.bank import BankAccountLink
from vaultx.models.user import User
from vaultx.services.identity import AppwriteIdentityService
from vaultx.services.storage.interface import (
    AuditStorageInterface,
    BankAccountStorageInterface,
    UserStorageInterface,
)


class AppwriteUserStorage(UserStorageInterface):
    """User records in the user collection."""

    def __init__(self, identity_service: AppwriteIdentityService, collection_id: str):
        self._identity = identity_service
        self._collection_id = collection_id

    async def save_user(self, user: User) -> User:
        document = await self._identity.create_document(
            self._collection_id,
            user.to_document(),
        )
        return User.from_document(document)

    async def get_user_by_identity_id(self, user_id: str) -> Optional[User]:
        documents = await self._identity.list_documents(
            self._collection_id,
            [Query.equal("userId", [user_id])],
        )
        if not documents:
            return None
        return User.from_document(documents[0])


class AppwriteBankAccountStorage(BankAccountStorageInterface):
    """Linked bank accounts in the bank collection."""

    def __init__(self, identity_service: AppwriteIdentityService, collection_id: str):
        self._identity = identity_service
        self._collection_id = collection_id

    async def save_bank_account(self, bank_account: BankAccountLink) -> BankAccountLink:
        document = await self._identity.create_document(
            self._collection_id,
            bank_account.to_document(),
        )
        return BankAccountLink.from_document(document)

    async def list_bank_accounts(self, user_id: str) -> list[BankAccountLink]:
        documents = await self._identity.list_documents(
            self._collection_id,
            [Query.equal("userId", [user_id])],
        )
        return [BankAccountLink.from_document(d) for d in documents]

    async def get_bank_account_by_account_id(
        self,
        account_id: str,
    ) -> Optional[BankAccountLink]:
        documents = await self._identity.list_documents(
            self._collection_id,
            [Query.equal("accountId", [account_id])],
        )
        if not documents:
            return None
        return BankAccountLink.from_document(documents[0])


class AppwriteAuditStorage(AuditStorageInterface):
    """Audit events in the optional audit collection."""

    def __init__(self, identity_service: AppwriteIdentityService, collection_id: str):
        self._identity = identity_service
        self._collection_id = collection_id

    async def append_event(self, event: AuditEvent) -> bool:
        await self._identity.create_document(
            self._collection_id,
            event.to_document(),
        )
        return True
