"""
Identity and Database Service using Appwrite

DESIGN DECISION: We use Appwrite because:
1. Accounts, sessions and documents live behind one API key
2. Sessions are opaque secrets we can carry in a cookie
3. The server SDK can mint a session secret for SSR-style apps

This service handles:
1. Account creation
2. Email/password session creation and deletion
3. "Who is logged in" lookups for a session secret
4. Document creation and listing (user and bank records)

Two kinds of client are built on demand:
- admin client: endpoint + project + API key (account creation, sessions, documents)
- session client: endpoint + project + session secret (acting as the user)

CRITICAL: No client is created at import time. Settings are injected.
"""

from typing import Any, Optional

import structlog
from appwrite.client import Client
from appwrite.exception import AppwriteException
from appwrite.id import ID
from appwrite.services.account import Account
from appwrite.services.databases import Databases

from vaultx.config import AppwriteSettings
from vaultx.errors import ProviderFailure
from vaultx.models.user import Identity


PROVIDER = "appwrite"


def to_provider_failure(error: AppwriteException) -> ProviderFailure:
    """Translate an Appwrite SDK exception into our error shape."""
    return ProviderFailure(
        provider=PROVIDER,
        message=getattr(error, "message", None) or str(error),
        code=getattr(error, "code", None),
        type=getattr(error, "type", None),
    )


class AppwriteIdentityService:
    """
    Thin adapter over the Appwrite server SDK.

    Every SDK exception leaves this class as a ProviderFailure.
    """

    def __init__(self, settings: AppwriteSettings):
        self._settings = settings
        self._admin: Optional[Client] = None
        self._logger = structlog.get_logger(__name__)

    def _base_client(self) -> Client:
        client = Client()
        client.set_endpoint(self._settings.endpoint)
        client.set_project(self._settings.project)
        return client

    def _admin_client(self) -> Client:
        """Get or create the API-key client."""
        if self._admin is None:
            self._admin = self._base_client()
            self._admin.set_key(self._settings.secret)
        return self._admin

    def _session_client(self, secret: str) -> Client:
        """A client acting as the user that owns `secret`."""
        client = self._base_client()
        client.set_session(secret)
        return client

    @property
    def database_id(self) -> str:
        return self._settings.database_id

    async def create_account(
        self,
        email: str,
        password: str,
        display_name: str,
        user_id: Optional[str] = None,
    ) -> Identity:
        """
        Create an Appwrite account.

        Raises:
            ProviderFailure: If Appwrite rejects the account
        """
        account = Account(self._admin_client())
        try:
            result = account.create(
                user_id or ID.unique(),
                email,
                password,
                display_name,
            )
        except AppwriteException as e:
            raise to_provider_failure(e) from e

        if not result:
            raise ProviderFailure(
                provider=PROVIDER,
                message="Error creating user account",
            )

        identity = Identity.from_provider(result)
        self._logger.info("identity_account_created", user_id=identity.id)
        return identity

    async def create_session(self, email: str, password: str) -> str:
        """
        Create an email/password session and return its secret.

        The secret is only populated because the admin client creates it.
        """
        account = Account(self._admin_client())
        try:
            result = account.create_email_password_session(email, password)
        except AppwriteException as e:
            raise to_provider_failure(e) from e

        secret = result.get("secret") if result else None
        if not secret:
            raise ProviderFailure(
                provider=PROVIDER,
                message="Session created without a secret",
                type="missing_session_secret",
            )
        return secret

    async def get_current_identity(self, secret: str) -> Identity:
        """
        Resolve a session secret to its account.

        Raises:
            ProviderFailure: If the session is expired or invalid (usually 401)
        """
        account = Account(self._session_client(secret))
        try:
            result = account.get()
        except AppwriteException as e:
            raise to_provider_failure(e) from e
        return Identity.from_provider(result)

    async def delete_session(self, secret: str) -> None:
        """Invalidate the current session server-side."""
        account = Account(self._session_client(secret))
        try:
            account.delete_session("current")
        except AppwriteException as e:
            raise to_provider_failure(e) from e

    async def create_document(
        self,
        collection_id: str,
        data: dict[str, Any],
        document_id: Optional[str] = None,
    ) -> dict[str, Any]:
        """Create a document in the configured database."""
        databases = Databases(self._admin_client())
        try:
            return databases.create_document(
                self._settings.database_id,
                collection_id,
                document_id or ID.unique(),
                data,
            )
        except AppwriteException as e:
            raise to_provider_failure(e) from e

    async def list_documents(
        self,
        collection_id: str,
        queries: Optional[list[str]] = None,
    ) -> list[dict[str, Any]]:
        """List documents matching Appwrite query strings."""
        databases = Databases(self._admin_client())
        try:
            result = databases.list_documents(
                self._settings.database_id,
                collection_id,
                queries or [],
            )
        except AppwriteException as e:
            raise to_provider_failure(e) from e
        return list(result.get("documents", []))
