"""
Main Orchestrator for vaultX

This module ties together all the components and defines the
end-to-end flows for:
1. Onboarding (validate -> Appwrite account -> Dwolla customer -> user record -> session)
2. Session lifecycle (sign in, who am I, log out)
3. Account linking (public token -> access token -> account -> processor
   token -> funding source -> bank record)
4. Dashboard balances and transfers

DESIGN DECISION: Every flow is strictly linear. The first failure stops
the flow and is re-raised with a normalized {code, type, message} shape.
There are no retries and no compensating actions: if Dwolla rejects a
customer after Appwrite created the account, that account stays behind
(and the audit log says so).

Session state is never read from ambient request globals. Each call gets
a SessionContext and sets or deletes the cookie on it.
"""

from decimal import Decimal, InvalidOperation
from typing import NamedTuple, Optional, Union
from uuid import UUID

import structlog

from vaultx.audit import AuditLogger, create_correlation_id
from vaultx.config import Settings, get_settings
from vaultx.errors import ProviderFailure, ValidationFailure
from vaultx.models.bank import (
    AccountsSummary,
    AccountSummaryItem,
    BankAccountLink,
    LinkResult,
    TransferReceipt,
)
from vaultx.models.user import (
    Identity,
    SessionContext,
    SessionCookie,
    SignInForm,
    SignUpForm,
    User,
    ValidationIssue,
)
from vaultx.services.banking import PlaidBankLinkService
from vaultx.services.identity import AppwriteIdentityService
from vaultx.services.payments import DwollaPaymentService, FundingSourceLinker
from vaultx.services.storage import (
    AppwriteAuditStorage,
    AppwriteBankAccountStorage,
    AppwriteUserStorage,
    BankAccountStorageInterface,
    UserStorageInterface,
)
from vaultx.utils import decrypt_id, encrypt_id, extract_customer_id_from_url
from vaultx.validation import OnboardingValidator


logger = structlog.get_logger(__name__)

STEP_PROVIDERS = {
    "create_account": "appwrite",
    "create_customer": "dwolla",
    "save_user": "appwrite",
    "create_session": "appwrite",
    "exchange_public_token": "plaid",
    "get_accounts": "plaid",
    "add_funding_source": "dwolla",
    "save_bank_account": "appwrite",
    "create_link_token": "plaid",
    "create_transfer": "dwolla",
}


async def _fail(
    audit_logger: Optional[AuditLogger],
    step: str,
    error: Exception,
    correlation_id: UUID,
) -> ProviderFailure:
    """Normalize a step failure and record which step it stopped."""
    failure = ProviderFailure.from_exception(
        STEP_PROVIDERS.get(step, "unknown"),
        error,
        default_message=f"{step} failed",
    )
    if audit_logger:
        if failure is not error:
            # Untranslated exception, record its original type
            await audit_logger.log_error(
                error_type=type(error).__name__,
                error_message=str(error),
                details={"step": step},
                correlation_id=correlation_id,
            )
        await audit_logger.log_external_service_error(
            step=step,
            failure=failure,
            correlation_id=correlation_id,
        )
    return failure


class OnboardingFlow:
    """
    Orchestrates sign-up and the session lifecycle.

    Sign-up flow:
    1. Validate -> nothing is created if this fails
    2. Create Appwrite account
    3. Create Dwolla customer
    4. Persist the user record (links the two)
    5. Create a session and set the cookie

    Session states: anonymous -> authenticating -> authenticated -> anonymous.
    """

    def __init__(
        self,
        identity_service: AppwriteIdentityService,
        payment_service: DwollaPaymentService,
        user_storage: UserStorageInterface,
        validator: Optional[OnboardingValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        cookie_name: str = "appwrite-session",
    ):
        self._identity = identity_service
        self._payments = payment_service
        self._user_storage = user_storage
        self._validator = validator or OnboardingValidator()
        self._audit_logger = audit_logger
        self._cookie_name = cookie_name

    def _make_cookie(self, secret: str) -> SessionCookie:
        return SessionCookie(name=self._cookie_name, value=secret)

    async def sign_up(
        self,
        form: SignUpForm,
        session: SessionContext,
        correlation_id: Optional[UUID] = None,
    ) -> Identity:
        """
        Create a new user end to end.

        Returns:
            The newly created Appwrite identity

        Raises:
            ValidationFailure: Before any provider call
            ProviderFailure: From the first provider step that failed
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            profile = self._validator.validate_sign_up_or_raise(form)
        except ValidationFailure as e:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    form="sign-up",
                    fields=e.fields,
                    correlation_id=correlation_id,
                )
            raise

        step = "create_account"
        try:
            identity = await self._identity.create_account(
                email=form.email,
                password=form.password,
                display_name=form.display_name,
            )
            if self._audit_logger:
                await self._audit_logger.log_identity_account_created(
                    user_id=identity.id,
                    correlation_id=correlation_id,
                )

            step = "create_customer"
            customer_url = await self._payments.create_customer(profile)
            if not customer_url:
                raise ProviderFailure(
                    provider="dwolla",
                    message="Failed to create Dwolla customer - URL is undefined",
                    type="missing_location",
                )
            if self._audit_logger:
                await self._audit_logger.log_payment_customer_created(
                    user_id=identity.id,
                    customer_url=customer_url,
                    correlation_id=correlation_id,
                )

            step = "save_user"
            saved_user = await self._user_storage.save_user(User(
                user_id=identity.id,
                email=form.email,
                first_name=profile.first_name,
                last_name=profile.last_name,
                address1=profile.address1,
                city=profile.city,
                state=profile.state,
                postal_code=profile.postal_code,
                date_of_birth=profile.date_of_birth,
                ssn=profile.ssn,
                dwolla_customer_id=extract_customer_id_from_url(customer_url),
                dwolla_customer_url=customer_url,
            ))
            if self._audit_logger:
                await self._audit_logger.log_user_record_saved(
                    user_id=identity.id,
                    document_id=saved_user.id,
                    correlation_id=correlation_id,
                )

            step = "create_session"
            secret = await self._identity.create_session(form.email, form.password)
            session.set_cookie(self._make_cookie(secret))
        except ProviderFailure as e:
            await _fail(self._audit_logger, step, e, correlation_id)
            raise
        except Exception as e:
            logger.error("sign_up_failed", step=step, error=str(e))
            raise await _fail(self._audit_logger, step, e, correlation_id) from e

        if self._audit_logger:
            await self._audit_logger.log_user_signed_up(
                user_id=identity.id,
                email=form.email,
                correlation_id=correlation_id,
            )
        return identity

    async def get_logged_in_identity(self, session: SessionContext) -> Optional[Identity]:
        """
        Who owns the session cookie, if anyone.

        A cookie the provider rejects is deleted from the context.
        """
        if not session.has_session:
            return None
        try:
            return await self._identity.get_current_identity(session.secret)
        except ProviderFailure as e:
            logger.info("session_rejected", code=e.code, type=e.type)
            session.delete_cookie()
            return None

    async def sign_in(
        self,
        form: SignInForm,
        session: SessionContext,
        correlation_id: Optional[UUID] = None,
    ) -> Identity:
        """
        Sign in with email and password.

        An already valid session short-circuits: the existing identity is
        returned and no new session is created.
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self.get_logged_in_identity(session)
        if existing is not None:
            if self._audit_logger:
                await self._audit_logger.log_user_signed_in(
                    user_id=existing.id,
                    reused_session=True,
                    correlation_id=correlation_id,
                )
            return existing

        try:
            self._validator.validate_sign_in_or_raise(form)
        except ValidationFailure as e:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    form="sign-in",
                    fields=e.fields,
                    correlation_id=correlation_id,
                )
            raise

        step = "create_session"
        try:
            secret = await self._identity.create_session(form.email, form.password)
            identity = await self._identity.get_current_identity(secret)
        except ProviderFailure as e:
            await _fail(self._audit_logger, step, e, correlation_id)
            raise
        except Exception as e:
            raise await _fail(self._audit_logger, step, e, correlation_id) from e

        # The cookie is only issued once the new session resolves to an identity
        session.set_cookie(self._make_cookie(secret))

        if self._audit_logger:
            await self._audit_logger.log_user_signed_in(
                user_id=identity.id,
                reused_session=False,
                correlation_id=correlation_id,
            )
        return identity

    async def get_user_info(self, identity: Identity) -> Optional[User]:
        """The persisted user record for an identity, if one exists."""
        return await self._user_storage.get_user_by_identity_id(identity.id)

    async def logout(
        self,
        session: SessionContext,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Log out. Best effort - always returns None.

        The local cookie is deleted first, then the provider is asked to
        invalidate the session. Provider errors are logged, not raised.
        """
        correlation_id = correlation_id or create_correlation_id()
        secret = session.secret
        session.delete_cookie()

        provider_error = None
        if secret:
            try:
                await self._identity.delete_session(secret)
            except Exception as e:
                provider_error = str(e)
                logger.warning("logout_provider_error", error=provider_error)

        if self._audit_logger:
            await self._audit_logger.log_user_signed_out(
                correlation_id=correlation_id,
                provider_error=provider_error,
            )
        return None


class AccountLinkingFlow:
    """
    Orchestrates linking a bank account after the hosted Plaid Link UI.

    Flow:
    1. Exchange public token -> access token + item ID
    2. Fetch accounts, take the first one
    3. Processor token for Dwolla
    4. On-demand authorization + funding source
    5. Persist the bank account record

    If Plaid returns no accounts, the flow stops at step 2.
    """

    def __init__(
        self,
        bank_link_service: PlaidBankLinkService,
        funding_linker: FundingSourceLinker,
        bank_storage: BankAccountStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        app_name: str = "vaultX",
        products: Optional[list[str]] = None,
        country_codes: Optional[list[str]] = None,
        language: str = "en",
    ):
        self._plaid = bank_link_service
        self._funding_linker = funding_linker
        self._bank_storage = bank_storage
        self._audit_logger = audit_logger
        self._app_name = app_name
        self._products = products or ["auth"]
        self._country_codes = country_codes or ["US"]
        self._language = language

    async def create_link_token(
        self,
        user: User,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Start the hosted Link flow for `user`."""
        correlation_id = correlation_id or create_correlation_id()
        try:
            link_token = await self._plaid.create_link_token(
                user_ref=user.user_id,
                client_name=user.name or self._app_name,
                products=self._products,
                language=self._language,
                country_codes=self._country_codes,
            )
        except ProviderFailure as e:
            await _fail(self._audit_logger, "create_link_token", e, correlation_id)
            raise
        except Exception as e:
            raise await _fail(self._audit_logger, "create_link_token", e, correlation_id) from e

        if self._audit_logger:
            await self._audit_logger.log_link_token_created(
                user_id=user.user_id,
                correlation_id=correlation_id,
            )
        return link_token

    async def exchange_public_token(
        self,
        public_token: str,
        user: User,
        correlation_id: Optional[UUID] = None,
    ) -> LinkResult:
        """
        Turn a Link public token into a transferable, persisted bank account.

        Raises:
            ProviderFailure: From the first step that failed
        """
        correlation_id = correlation_id or create_correlation_id()

        step = "exchange_public_token"
        try:
            access_token, item_id = await self._plaid.exchange_public_token(public_token)

            step = "get_accounts"
            accounts = await self._plaid.get_accounts(access_token)
            if not accounts:
                raise ProviderFailure(
                    provider="plaid",
                    message="No accounts were returned for this bank login",
                    code=404,
                    type="NO_ACCOUNTS",
                )
            account = accounts[0]

            step = "add_funding_source"
            funding_source_url = await self._funding_linker.link(
                access_token=access_token,
                account=account,
                customer_id=user.dwolla_customer_id,
            )

            step = "save_bank_account"
            bank_account = await self._bank_storage.save_bank_account(BankAccountLink(
                user_id=user.user_id,
                bank_id=item_id,
                account_id=account.account_id,
                access_token=access_token,
                funding_source_url=funding_source_url,
                sharable_id=encrypt_id(account.account_id),
            ))
        except ProviderFailure as e:
            await _fail(self._audit_logger, step, e, correlation_id)
            raise
        except Exception as e:
            raise await _fail(self._audit_logger, step, e, correlation_id) from e

        if self._audit_logger:
            await self._audit_logger.log_bank_account_linked(
                user_id=user.user_id,
                item_id=item_id,
                sharable_id=bank_account.sharable_id,
                correlation_id=correlation_id,
            )

        return LinkResult(bank_account=bank_account, account=account)


class DashboardFlow:
    """Balances for the dashboard, read live from Plaid."""

    def __init__(
        self,
        bank_link_service: PlaidBankLinkService,
        bank_storage: BankAccountStorageInterface,
    ):
        self._plaid = bank_link_service
        self._bank_storage = bank_storage

    async def get_accounts_summary(self, user: User) -> AccountsSummary:
        """
        All linked accounts with current balances.

        Banks whose linked account no longer appears at Plaid are skipped.
        """
        banks = await self._bank_storage.list_bank_accounts(user.user_id)

        items = []
        for bank in banks:
            accounts = await self._plaid.get_accounts(bank.access_token)
            match = next(
                (a for a in accounts if a.account_id == bank.account_id),
                None,
            )
            if match is None:
                logger.warning("linked_account_missing", bank_id=bank.bank_id)
                continue
            items.append(AccountSummaryItem(bank=bank, account=match))

        total = sum(
            (item.account.current_balance or Decimal("0") for item in items),
            Decimal("0"),
        )
        return AccountsSummary(
            accounts=items,
            total_banks=len(items),
            total_current_balance=total,
        )

    async def list_banks(self, user: User) -> list[BankAccountLink]:
        return await self._bank_storage.list_bank_accounts(user.user_id)


class TransferFlow:
    """
    Sends money from one of the user's banks to another user's bank.

    The receiver is named by sharable ID, never by raw account ID.
    """

    def __init__(
        self,
        payment_service: DwollaPaymentService,
        bank_storage: BankAccountStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._payments = payment_service
        self._bank_storage = bank_storage
        self._audit_logger = audit_logger

    async def transfer_funds(
        self,
        source_bank: BankAccountLink,
        destination_sharable_id: str,
        amount: Union[Decimal, str, float],
        correlation_id: Optional[UUID] = None,
    ) -> TransferReceipt:
        """
        Raises:
            ValidationFailure: Bad amount or unknown receiver
            ProviderFailure: If Dwolla rejects the transfer
        """
        correlation_id = correlation_id or create_correlation_id()

        issues = []
        try:
            value = Decimal(str(amount)).quantize(Decimal("0.01"))
        except (InvalidOperation, ValueError):
            value = None
        if value is None or not value.is_finite() or value <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=f"Amount must be a positive number, got: {amount}",
            ))

        receiver = None
        try:
            receiver_account_id = decrypt_id((destination_sharable_id or "").strip())
        except ValueError:
            receiver_account_id = None
        if receiver_account_id:
            receiver = await self._bank_storage.get_bank_account_by_account_id(
                receiver_account_id
            )
        if receiver is None:
            issues.append(ValidationIssue(
                field="sharable_id",
                issue_type="invalid_value",
                message="No bank account matches this sharable ID",
            ))

        if issues:
            raise ValidationFailure(issues)

        try:
            transfer_url = await self._payments.create_transfer(
                source_bank.funding_source_url,
                receiver.funding_source_url,
                value,
                "USD",
            )
        except ProviderFailure as e:
            await _fail(self._audit_logger, "create_transfer", e, correlation_id)
            raise
        except Exception as e:
            raise await _fail(self._audit_logger, "create_transfer", e, correlation_id) from e

        if self._audit_logger:
            await self._audit_logger.log_transfer_created(
                transfer_url=transfer_url,
                amount=str(value),
                correlation_id=correlation_id,
            )

        return TransferReceipt(
            transfer_url=transfer_url,
            source_funding_source_url=source_bank.funding_source_url,
            destination_funding_source_url=receiver.funding_source_url,
            amount=value,
        )


class AppComponents(NamedTuple):
    onboarding: OnboardingFlow
    linking: AccountLinkingFlow
    dashboard: DashboardFlow
    transfers: TransferFlow
    debug_mode: bool = False


def create_app_components(settings: Optional[Settings] = None) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Explicit settings. Defaults to the cached environment
                  settings (raises ConfigurationFailure if invalid).
    """
    settings = settings or get_settings()

    identity_service = AppwriteIdentityService(settings.appwrite)
    payment_service = DwollaPaymentService(settings.dwolla)
    bank_link_service = PlaidBankLinkService(settings.plaid)

    user_storage = AppwriteUserStorage(
        identity_service, settings.appwrite.user_collection_id
    )
    bank_storage = AppwriteBankAccountStorage(
        identity_service, settings.appwrite.bank_collection_id
    )

    audit_storage = None
    if settings.appwrite.audit_collection_id:
        audit_storage = AppwriteAuditStorage(
            identity_service, settings.appwrite.audit_collection_id
        )
    audit_logger = AuditLogger(audit_storage)

    onboarding = OnboardingFlow(
        identity_service=identity_service,
        payment_service=payment_service,
        user_storage=user_storage,
        audit_logger=audit_logger,
        cookie_name=settings.app.session_cookie_name,
    )
    linking = AccountLinkingFlow(
        bank_link_service=bank_link_service,
        funding_linker=FundingSourceLinker(bank_link_service, payment_service),
        bank_storage=bank_storage,
        audit_logger=audit_logger,
        app_name=settings.app.app_name,
        products=settings.app.plaid_products_list,
        country_codes=settings.app.plaid_country_codes_list,
        language=settings.app.plaid_language,
    )
    dashboard = DashboardFlow(
        bank_link_service=bank_link_service,
        bank_storage=bank_storage,
    )
    transfers = TransferFlow(
        payment_service=payment_service,
        bank_storage=bank_storage,
        audit_logger=audit_logger,
    )

    return AppComponents(
        onboarding,
        linking,
        dashboard,
        transfers,
        debug_mode=settings.app.debug_mode,
    )
