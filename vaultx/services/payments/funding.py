"""
Funding Source Linker

Registers a Plaid-linked bank account with Dwolla as a funding source.

Flow:
1. Plaid: processor token for (access token, account) scoped to Dwolla
2. Dwolla: on-demand authorization
3. Dwolla: funding source from the processor token

The raw account and routing numbers never pass through us - only the
processor token does.
"""

from vaultx.errors import ProviderFailure
from vaultx.models.bank import LinkedAccount
from vaultx.services.banking import PlaidBankLinkService
from vaultx.services.payments.dwolla_service import DwollaPaymentService


PROCESSOR_NAME = "dwolla"


class FundingSourceLinker:
    """Combines the aggregator and the payment network for one account."""

    def __init__(
        self,
        bank_link_service: PlaidBankLinkService,
        payment_service: DwollaPaymentService,
    ):
        self._bank_link_service = bank_link_service
        self._payment_service = payment_service

    async def link(
        self,
        access_token: str,
        account: LinkedAccount,
        customer_id: str,
    ) -> str:
        """
        Make `account` transferable for `customer_id`.

        Returns:
            The Dwolla funding source URL

        Raises:
            ProviderFailure: From whichever provider call failed first
        """
        processor_token = await self._bank_link_service.create_processor_token(
            access_token=access_token,
            account_id=account.account_id,
            processor=PROCESSOR_NAME,
        )

        authorization_links = await self._payment_service.create_on_demand_authorization()

        funding_source_url = await self._payment_service.create_funding_source(
            customer_id=customer_id,
            name=account.name,
            processor_token=processor_token,
            authorization_links=authorization_links,
        )

        if not funding_source_url:
            raise ProviderFailure(
                provider="dwolla",
                message="Failed to add funding source",
                type="missing_location",
            )
        return funding_source_url
