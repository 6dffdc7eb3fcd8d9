"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the records
vaultX persists. Currently implements Appwrite documents as the backend.
"""

from vaultx.services.storage.interface import (
    AuditStorageInterface,
    BankAccountStorageInterface,
    UserStorageInterface,
)
from vaultx.services.storage.appwrite_storage import (
    AppwriteAuditStorage,
    AppwriteBankAccountStorage,
    AppwriteUserStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "BankAccountStorageInterface",
    "UserStorageInterface",
    # Appwrite implementation
    "AppwriteAuditStorage",
    "AppwriteBankAccountStorage",
    "AppwriteUserStorage",
]
