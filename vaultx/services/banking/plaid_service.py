"""
Bank Link Service using Plaid

DESIGN DECISION: We use Plaid because:
1. Hosted Link UI - bank credentials never touch our app
2. Processor tokens hand an account to Dwolla without exposing numbers
3. One access token per item gives us balances for the dashboard

This service handles:
1. Link token creation (starts the hosted Link flow)
2. Public token -> access token exchange
3. Account metadata and balances
4. Processor token creation for Dwolla
"""

import json
from typing import Any, Optional

import plaid
import structlog
from plaid.api import plaid_api
from plaid.model.accounts_get_request import AccountsGetRequest
from plaid.model.country_code import CountryCode
from plaid.model.item_public_token_exchange_request import ItemPublicTokenExchangeRequest
from plaid.model.link_token_create_request import LinkTokenCreateRequest
from plaid.model.link_token_create_request_user import LinkTokenCreateRequestUser
from plaid.model.processor_token_create_request import ProcessorTokenCreateRequest
from plaid.model.products import Products

from vaultx.config import PlaidSettings
from vaultx.errors import ProviderFailure
from vaultx.models.bank import LinkedAccount
from vaultx.utils import to_decimal


PROVIDER = "plaid"

PLAID_HOSTS = {
    "sandbox": plaid.Environment.Sandbox,
    "production": plaid.Environment.Production,
}


def to_provider_failure(error: plaid.ApiException) -> ProviderFailure:
    """
    Translate a Plaid API exception.

    Plaid error bodies are JSON with error_type / error_code / error_message.
    """
    details: dict[str, Any] = {}
    body = getattr(error, "body", None)
    if body:
        try:
            details = json.loads(body)
        except (TypeError, ValueError):
            details = {}
    return ProviderFailure(
        provider=PROVIDER,
        message=details.get("error_message") or str(error),
        code=getattr(error, "status", None),
        type=details.get("error_code") or details.get("error_type"),
    )


def _enum_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(getattr(value, "value", value))


class PlaidBankLinkService:
    """Thin adapter over plaid-python's PlaidApi."""

    def __init__(self, settings: PlaidSettings):
        self._settings = settings
        self._client: Optional[plaid_api.PlaidApi] = None
        self._logger = structlog.get_logger(__name__)

    def _get_client(self) -> plaid_api.PlaidApi:
        """Get or create the Plaid client."""
        if self._client is None:
            configuration = plaid.Configuration(
                host=PLAID_HOSTS[self._settings.env],
                api_key={
                    "clientId": self._settings.client_id,
                    "secret": self._settings.secret,
                },
            )
            self._client = plaid_api.PlaidApi(plaid.ApiClient(configuration))
        return self._client

    def _to_linked_account(self, account: Any) -> LinkedAccount:
        balances = account["balances"]
        return LinkedAccount(
            account_id=account["account_id"],
            name=account["name"],
            official_name=account.get("official_name"),
            mask=account.get("mask"),
            type=_enum_value(account.get("type")),
            subtype=_enum_value(account.get("subtype")),
            current_balance=to_decimal(balances.get("current")),
            available_balance=to_decimal(balances.get("available")),
            currency=balances.get("iso_currency_code") or "USD",
        )

    async def create_link_token(
        self,
        user_ref: str,
        client_name: str,
        products: list[str],
        language: str,
        country_codes: list[str],
    ) -> str:
        """Create a link token for the hosted Link UI."""
        request = LinkTokenCreateRequest(
            user=LinkTokenCreateRequestUser(client_user_id=user_ref),
            client_name=client_name,
            products=[Products(p) for p in products],
            language=language,
            country_codes=[CountryCode(c) for c in country_codes],
        )
        try:
            response = self._get_client().link_token_create(request)
        except plaid.ApiException as e:
            raise to_provider_failure(e) from e
        return response["link_token"]

    async def exchange_public_token(self, public_token: str) -> tuple[str, str]:
        """
        Exchange the temporary public token from Link.

        Returns:
            (access_token, item_id)
        """
        request = ItemPublicTokenExchangeRequest(public_token=public_token)
        try:
            response = self._get_client().item_public_token_exchange(request)
        except plaid.ApiException as e:
            raise to_provider_failure(e) from e
        self._logger.info("plaid_public_token_exchanged", item_id=response["item_id"])
        return response["access_token"], response["item_id"]

    async def get_accounts(self, access_token: str) -> list[LinkedAccount]:
        """All accounts on the item, with balances."""
        request = AccountsGetRequest(access_token=access_token)
        try:
            response = self._get_client().accounts_get(request)
        except plaid.ApiException as e:
            raise to_provider_failure(e) from e
        return [self._to_linked_account(a) for a in response["accounts"]]

    async def create_processor_token(
        self,
        access_token: str,
        account_id: str,
        processor: str,
    ) -> str:
        """Processor token letting `processor` (Dwolla) use this account."""
        request = ProcessorTokenCreateRequest(
            access_token=access_token,
            account_id=account_id,
            processor=processor,
        )
        try:
            response = self._get_client().processor_token_create(request)
        except plaid.ApiException as e:
            raise to_provider_failure(e) from e
        return response["processor_token"]
