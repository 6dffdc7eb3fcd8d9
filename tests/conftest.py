"""
Pytest configuration and shared fixtures for vaultX tests

Every provider is replaced by an in-memory fake that records its calls
into one shared list, so tests can assert on call order across providers.
"""

from decimal import Decimal
from typing import Optional

import pytest

from vaultx.audit import AuditLogger
from vaultx.errors import ProviderFailure
from vaultx.models.audit import AuditEvent
from vaultx.models.bank import BankAccountLink, LinkedAccount
from vaultx.models.user import Identity, SignUpForm, User
from vaultx.orchestrator import (
    AccountLinkingFlow,
    DashboardFlow,
    OnboardingFlow,
    TransferFlow,
)
from vaultx.services.payments import FundingSourceLinker
from vaultx.services.storage import (
    AuditStorageInterface,
    BankAccountStorageInterface,
    UserStorageInterface,
)
from vaultx.utils import encrypt_id


DWOLLA_BASE = "https://api-sandbox.dwolla.com"


class FakeIdentityService:
    """Stands in for AppwriteIdentityService."""

    def __init__(self, calls: list):
        self.calls = calls
        self.sessions: dict[str, Identity] = {}
        self.fail_on: dict[str, Exception] = {}
        self._counter = 0

    def _check(self, name: str):
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    async def create_account(self, email, password, display_name, user_id=None):
        self._check("appwrite.create_account")
        self._counter += 1
        return Identity(id=user_id or f"user-{self._counter}", email=email, name=display_name)

    async def create_session(self, email, password):
        self._check("appwrite.create_session")
        secret = f"secret-{len(self.sessions) + 1}"
        self.sessions[secret] = Identity(id="user-1", email=email, name="")
        return secret

    async def get_current_identity(self, secret):
        self._check("appwrite.get_current_identity")
        if secret not in self.sessions:
            raise ProviderFailure(
                provider="appwrite",
                message="User (role: guests) missing scope (account)",
                code=401,
                type="general_unauthorized_scope",
            )
        return self.sessions[secret]

    async def delete_session(self, secret):
        self._check("appwrite.delete_session")
        self.sessions.pop(secret, None)


class FakePaymentService:
    """Stands in for DwollaPaymentService."""

    def __init__(self, calls: list):
        self.calls = calls
        self.fail_on: dict[str, Exception] = {}
        self.customers = []
        self.funding_sources = []
        self.transfers = []

    def _check(self, name: str):
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    async def create_customer(self, profile):
        self._check("dwolla.create_customer")
        self.customers.append(profile)
        return f"{DWOLLA_BASE}/customers/cust-{len(self.customers)}"

    async def create_on_demand_authorization(self):
        self._check("dwolla.create_on_demand_authorization")
        return {"self": {"href": f"{DWOLLA_BASE}/on-demand-authorizations/auth-1"}}

    async def create_funding_source(self, customer_id, name, processor_token, authorization_links=None):
        self._check("dwolla.create_funding_source")
        self.funding_sources.append((customer_id, name, processor_token))
        return f"{DWOLLA_BASE}/funding-sources/fs-{len(self.funding_sources)}"

    async def create_transfer(self, source_url, dest_url, amount, currency="USD"):
        self._check("dwolla.create_transfer")
        self.transfers.append((source_url, dest_url, amount, currency))
        return f"{DWOLLA_BASE}/transfers/tr-{len(self.transfers)}"


class FakeBankLinkService:
    """Stands in for PlaidBankLinkService."""

    def __init__(self, calls: list):
        self.calls = calls
        self.fail_on: dict[str, Exception] = {}
        self.accounts: dict[str, list[LinkedAccount]] = {
            "access-sandbox-1": [
                LinkedAccount(
                    account_id="acc-checking-1",
                    name="Plaid Checking",
                    mask="0000",
                    type="depository",
                    subtype="checking",
                    current_balance=Decimal("110.00"),
                    available_balance=Decimal("100.00"),
                ),
            ],
        }

    def _check(self, name: str):
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    async def create_link_token(self, user_ref, client_name, products, language, country_codes):
        self._check("plaid.create_link_token")
        return "link-sandbox-token"

    async def exchange_public_token(self, public_token):
        self._check("plaid.exchange_public_token")
        return "access-sandbox-1", "item-1"

    async def get_accounts(self, access_token):
        self._check("plaid.get_accounts")
        return list(self.accounts.get(access_token, []))

    async def create_processor_token(self, access_token, account_id, processor):
        self._check("plaid.create_processor_token")
        return f"processor-{processor}-{account_id}"


class InMemoryUserStorage(UserStorageInterface):

    def __init__(self, calls: list):
        self.calls = calls
        self.users: list[User] = []

    async def save_user(self, user: User) -> User:
        self.calls.append("storage.save_user")
        stored = user.model_copy(update={"id": f"doc-{len(self.users) + 1}"})
        self.users.append(stored)
        return stored

    async def get_user_by_identity_id(self, user_id: str) -> Optional[User]:
        return next((u for u in self.users if u.user_id == user_id), None)


class InMemoryBankStorage(BankAccountStorageInterface):

    def __init__(self, calls: list):
        self.calls = calls
        self.banks: list[BankAccountLink] = []

    async def save_bank_account(self, bank_account: BankAccountLink) -> BankAccountLink:
        self.calls.append("storage.save_bank_account")
        stored = bank_account.model_copy(update={"id": f"bank-{len(self.banks) + 1}"})
        self.banks.append(stored)
        return stored

    async def list_bank_accounts(self, user_id: str) -> list[BankAccountLink]:
        return [b for b in self.banks if b.user_id == user_id]

    async def get_bank_account_by_account_id(self, account_id: str) -> Optional[BankAccountLink]:
        return next((b for b in self.banks if b.account_id == account_id), None)


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True


@pytest.fixture
def calls():
    return []


@pytest.fixture
def identity_service(calls):
    return FakeIdentityService(calls)


@pytest.fixture
def payment_service(calls):
    return FakePaymentService(calls)


@pytest.fixture
def bank_link_service(calls):
    return FakeBankLinkService(calls)


@pytest.fixture
def user_storage(calls):
    return InMemoryUserStorage(calls)


@pytest.fixture
def bank_storage(calls):
    return InMemoryBankStorage(calls)


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def onboarding(identity_service, payment_service, user_storage, audit_logger):
    return OnboardingFlow(
        identity_service=identity_service,
        payment_service=payment_service,
        user_storage=user_storage,
        audit_logger=audit_logger,
    )


@pytest.fixture
def linking(bank_link_service, payment_service, bank_storage, audit_logger):
    return AccountLinkingFlow(
        bank_link_service=bank_link_service,
        funding_linker=FundingSourceLinker(bank_link_service, payment_service),
        bank_storage=bank_storage,
        audit_logger=audit_logger,
    )


@pytest.fixture
def dashboard(bank_link_service, bank_storage):
    return DashboardFlow(bank_link_service=bank_link_service, bank_storage=bank_storage)


@pytest.fixture
def transfers(payment_service, bank_storage, audit_logger):
    return TransferFlow(
        payment_service=payment_service,
        bank_storage=bank_storage,
        audit_logger=audit_logger,
    )


@pytest.fixture
def sign_up_form():
    return SignUpForm(
        first_name="Ada",
        last_name="Lovelace",
        email="Ada@Example.com",
        password="correct-horse-battery",
        address1="1 Main St",
        city="Albany",
        state="ny",
        postal_code="12207",
        date_of_birth="1990-05-21",
        ssn="1234",
    )


@pytest.fixture
def user():
    return User(
        id="doc-1",
        user_id="user-1",
        email="ada@example.com",
        first_name="Ada",
        last_name="Lovelace",
        address1="1 Main St",
        city="Albany",
        state="NY",
        postal_code="12207",
        date_of_birth="1990-05-21",
        ssn="1234",
        dwolla_customer_id="cust-1",
        dwolla_customer_url=f"{DWOLLA_BASE}/customers/cust-1",
    )


@pytest.fixture
def make_bank():
    def _make(user_id: str, account_id: str, access_token: str = "access-sandbox-1") -> BankAccountLink:
        return BankAccountLink(
            user_id=user_id,
            bank_id=f"item-{account_id}",
            account_id=account_id,
            access_token=access_token,
            funding_source_url=f"{DWOLLA_BASE}/funding-sources/{account_id}",
            sharable_id=encrypt_id(account_id),
        )
    return _make
