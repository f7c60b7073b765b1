"""
Per-user delegated credentials for the remote agent backend.

Each request presents a bearer token issued for the auth handler (`AIFoundry`
by default). The token belongs to that request only: it is handed to the
backend client as an azure-core async token credential for the duration of
the turn and is never looked up again by user id. When an on-behalf-of app
registration is configured, the user token is exchanged for a Foundry token
instead of being used as-is.

Signing out revokes the presented token for the rest of its lifetime.
"""

import time
from typing import Any, Dict, Optional

import structlog
from azure.core.credentials import AccessToken
from azure.core.credentials_async import AsyncTokenCredential
from azure.core.exceptions import ClientAuthenticationError
from azure.identity.aio import DefaultAzureCredential, OnBehalfOfCredential

from foundry_relay.config import Config


# Lifetime assumed for a presented token whose expiry is unknown
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


class UserTokenCredential(AsyncTokenCredential):
    """Credential returning the token presented with the current request."""

    def __init__(self, handler_name: str, user_id: str, token: Optional[AccessToken] = None):
        self.handler_name = handler_name
        self.user_id = user_id
        self.token = token

    async def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken:
        if self.token is None or self.token.expires_on <= int(time.time()):
            raise ClientAuthenticationError(
                message=f"User {self.user_id} is not signed in to {self.handler_name}"
            )
        return self.token

    async def close(self) -> None:
        pass

    async def __aenter__(self) -> "UserTokenCredential":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()


class UserAuthorization:
    """Turns request tokens into backend credentials for one auth handler."""

    def __init__(self, handler_name: str = "AIFoundry", config: Optional[Config] = None):
        """Initialize with no revoked tokens."""
        self.handler_name = handler_name
        self.config = config
        # token -> time until which it stays revoked
        self._revoked: Dict[str, int] = {}
        self.logger = structlog.get_logger("foundry_relay.auth")

    def accept(self, token: Optional[str], expires_on: Optional[int] = None) -> Optional[AccessToken]:
        """Return the presented token unless it is missing or signed out."""
        if not token:
            return None
        now = int(time.time())
        revoked_until = self._revoked.get(token)
        if revoked_until is not None:
            if revoked_until > now:
                return None
            del self._revoked[token]
        return AccessToken(token, expires_on or now + DEFAULT_TOKEN_LIFETIME_SECONDS)

    async def sign_out(self, user_id: str, token: Optional[str] = None) -> None:
        """Revoke the token the user presented."""
        if token:
            self._revoked[token] = int(time.time()) + DEFAULT_TOKEN_LIFETIME_SECONDS
        self.logger.info("auth.signed_out", user_id=user_id, handler=self.handler_name)

    def credential_for(self, user_id: str, token: Optional[str] = None) -> AsyncTokenCredential:
        """Build the credential the backend client uses for this turn."""
        access = self.accept(token)
        if access is not None and self.config is not None and self.config.uses_on_behalf_of():
            return OnBehalfOfCredential(
                tenant_id=self.config.obo_tenant_id,
                client_id=self.config.obo_client_id,
                client_secret=self.config.obo_client_secret,
                user_assertion=access.token,
            )
        return UserTokenCredential(self.handler_name, user_id, access)


def playground_credential() -> AsyncTokenCredential:
    """Credential used when running without user authentication."""
    return DefaultAzureCredential()
