"""
Payment Network Service using Dwolla

DESIGN DECISION: We use Dwolla because:
1. ACH transfers between US bank accounts through a simple REST API
2. Accepts Plaid processor tokens, so we never see raw bank credentials
3. Resource URLs (Location headers) double as stable references

This service handles:
1. Personal customer creation
2. On-demand authorizations
3. Funding source creation from a Plaid processor token
4. Transfers between two funding sources

Every resource Dwolla creates is identified by the URL in the Location
header. We keep URLs and only derive bare IDs where a path needs them.
"""

from decimal import Decimal
from typing import Any, Optional

import dwollav2
import structlog

from vaultx.config import DwollaSettings
from vaultx.errors import ProviderFailure
from vaultx.models.user import CustomerProfile


PROVIDER = "dwolla"


def to_provider_failure(error: Exception, default_message: str) -> ProviderFailure:
    """
    Translate a dwollav2 error.

    Dwolla error bodies look like {"code": "ValidationError", "message": "..."}.
    """
    body = getattr(error, "body", None)
    if not isinstance(body, dict):
        body = {}
    status = getattr(error, "status", None)
    return ProviderFailure(
        provider=PROVIDER,
        message=body.get("message") or str(error) or default_message,
        code=status if isinstance(status, int) else None,
        type=body.get("code"),
    )


class DwollaPaymentService:
    """
    Thin adapter over the dwollav2 client.

    The client is built once. Requests go through an application token
    from `client.Auth.client()`, fetched per call.
    """

    def __init__(self, settings: DwollaSettings):
        self._settings = settings
        self._client: Optional[dwollav2.Client] = None
        self._logger = structlog.get_logger(__name__)

    def _get_client(self) -> dwollav2.Client:
        """Get or create the Dwolla client."""
        if self._client is None:
            self._client = dwollav2.Client(
                key=self._settings.key,
                secret=self._settings.secret,
                environment=self._settings.env,
            )
        return self._client

    def _app_token(self):
        """Application token; every API request is made through one."""
        return self._get_client().Auth.client()

    def _location(self, response, what: str) -> str:
        location = response.headers.get("location") if response is not None else None
        if not location:
            raise ProviderFailure(
                provider=PROVIDER,
                message=f"Failed to get {what} URL from Dwolla response",
                type="missing_location",
            )
        return location

    async def create_customer(self, profile: CustomerProfile) -> str:
        """
        Create a verified personal customer.

        Returns:
            The customer URL

        Raises:
            ProviderFailure: If Dwolla rejects the customer
        """
        self._logger.info("dwolla_create_customer", **profile.to_log_dict())
        try:
            response = self._app_token().post("customers", profile.to_dwolla_body())
        except dwollav2.Error as e:
            self._logger.error(
                "dwolla_create_customer_failed",
                status=getattr(e, "status", None),
                body=getattr(e, "body", None),
            )
            raise to_provider_failure(e, "Dwolla customer creation failed") from e

        customer_url = self._location(response, "customer")
        self._logger.info("dwolla_customer_created", customer_url=customer_url)
        return customer_url

    async def create_on_demand_authorization(self) -> dict[str, Any]:
        """
        Create an on-demand authorization.

        Returns:
            The authorization's _links (its "self" link is what a funding
            source refers to)
        """
        try:
            response = self._app_token().post("on-demand-authorizations")
        except dwollav2.Error as e:
            raise to_provider_failure(e, "Creating an on-demand authorization failed") from e

        links = (response.body or {}).get("_links")
        if not links:
            raise ProviderFailure(
                provider=PROVIDER,
                message="On-demand authorization returned no links",
                type="missing_links",
            )
        return links

    async def create_funding_source(
        self,
        customer_id: str,
        name: str,
        processor_token: str,
        authorization_links: Optional[dict[str, Any]] = None,
    ) -> str:
        """
        Create a funding source from a Plaid processor token.

        Returns:
            The funding source URL
        """
        body: dict[str, Any] = {
            "name": name,
            "plaidToken": processor_token,
        }
        if authorization_links and "self" in authorization_links:
            body["_links"] = {
                "on-demand-authorization": authorization_links["self"],
            }

        try:
            response = self._app_token().post(
                f"customers/{customer_id}/funding-sources",
                body,
            )
        except dwollav2.Error as e:
            raise to_provider_failure(e, "Creating a funding source failed") from e

        return self._location(response, "funding source")

    async def create_transfer(
        self,
        source_funding_source_url: str,
        destination_funding_source_url: str,
        amount: Decimal,
        currency: str = "USD",
    ) -> str:
        """
        Move money between two funding sources.

        Returns:
            The transfer URL
        """
        body = {
            "_links": {
                "source": {"href": source_funding_source_url},
                "destination": {"href": destination_funding_source_url},
            },
            "amount": {
                "currency": currency,
                "value": f"{amount:.2f}",
            },
        }
        try:
            response = self._app_token().post("transfers", body)
        except dwollav2.Error as e:
            raise to_provider_failure(e, "Transfer failed") from e

        return self._location(response, "transfer")
