"""Payment network services package."""

from vaultx.services.payments.dwolla_service import DwollaPaymentService
from vaultx.services.payments.funding import FundingSourceLinker

__all__ = [
    "DwollaPaymentService",
    "FundingSourceLinker",
]
