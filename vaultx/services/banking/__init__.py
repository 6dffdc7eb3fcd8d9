"""Bank-link aggregator services package."""

from vaultx.services.banking.plaid_service import PlaidBankLinkService

__all__ = ["PlaidBankLinkService"]
