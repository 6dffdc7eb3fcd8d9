"""
Bank Account Models for vaultX

A linked bank account spans all three providers:
- Plaid knows the item and its accounts (and holds the balances)
- Dwolla knows the funding source
- Appwrite stores the record tying them to our user
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class BankAccountLink(BaseModel):
    """
    A successfully linked bank account.

    Created once per linked account. No update or delete path.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        description="Document ID in the bank collection"
    )
    user_id: str = Field(..., description="Appwrite account ID of the owner")
    bank_id: str = Field(..., description="Plaid item ID")
    account_id: str = Field(..., description="Plaid account ID")
    access_token: str = Field(..., description="Plaid access token for the item")
    funding_source_url: str = Field(..., description="Dwolla funding source URL")
    sharable_id: str = Field(
        ...,
        description="Reversible encoding of account_id, safe to share"
    )

    def to_document(self) -> dict[str, str]:
        return {
            "userId": self.user_id,
            "bankId": self.bank_id,
            "accountId": self.account_id,
            "accessToken": self.access_token,
            "fundingSourceUrl": self.funding_source_url,
            "sharableId": self.sharable_id,
        }

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "BankAccountLink":
        return cls(
            id=document.get("$id"),
            user_id=document["userId"],
            bank_id=document["bankId"],
            account_id=document["accountId"],
            access_token=document["accessToken"],
            funding_source_url=document["fundingSourceUrl"],
            sharable_id=document["sharableId"],
        )


class LinkedAccount(BaseModel):
    """Account metadata returned by Plaid."""

    account_id: str
    name: str
    official_name: Optional[str] = None
    mask: Optional[str] = None
    type: Optional[str] = None
    subtype: Optional[str] = None
    current_balance: Optional[Decimal] = None
    available_balance: Optional[Decimal] = None
    currency: Optional[str] = "USD"


class LinkResult(BaseModel):
    """Result of the account-linking workflow."""

    message: str = "Bank account linked successfully"
    bank_account: BankAccountLink
    account: LinkedAccount


class AccountSummaryItem(BaseModel):
    """One row on the dashboard."""

    bank: BankAccountLink
    account: LinkedAccount


class AccountsSummary(BaseModel):
    """Everything the dashboard needs."""

    accounts: list[AccountSummaryItem] = Field(default_factory=list)
    total_banks: int = Field(default=0, ge=0)
    total_current_balance: Decimal = Decimal("0")


class TransferReceipt(BaseModel):
    """Result of a successful transfer request."""

    transfer_url: str
    source_funding_source_url: str
    destination_funding_source_url: str
    amount: Decimal
    currency: str = "USD"
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
