"""Services package."""

from vaultx.services.banking import PlaidBankLinkService
from vaultx.services.identity import AppwriteIdentityService
from vaultx.services.payments import DwollaPaymentService, FundingSourceLinker
from vaultx.services.storage import (
    AppwriteAuditStorage,
    AppwriteBankAccountStorage,
    AppwriteUserStorage,
    AuditStorageInterface,
    BankAccountStorageInterface,
    UserStorageInterface,
)

__all__ = [
    # Provider adapters
    "AppwriteIdentityService",
    "DwollaPaymentService",
    "FundingSourceLinker",
    "PlaidBankLinkService",
    # Storage
    "AppwriteAuditStorage",
    "AppwriteBankAccountStorage",
    "AppwriteUserStorage",
    "AuditStorageInterface",
    "BankAccountStorageInterface",
    "UserStorageInterface",
]
