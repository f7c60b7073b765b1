"""Unit tests for per-user delegated credentials."""

import time
from unittest.mock import patch

import pytest
from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError

from foundry_relay.auth import UserAuthorization, UserTokenCredential, playground_credential
from foundry_relay.config import Config


class TestUserAuthorization:
    """Tests for accepting and revoking request tokens."""

    def test_accept_presented_token(self):
        token = UserAuthorization().accept("token-abc")

        assert token.token == "token-abc"
        assert token.expires_on > int(time.time())

    def test_missing_token_is_not_accepted(self):
        authorization = UserAuthorization()

        assert authorization.accept(None) is None
        assert authorization.accept("") is None

    @pytest.mark.asyncio
    async def test_sign_out_revokes_token(self):
        authorization = UserAuthorization()

        await authorization.sign_out("user-1", "token-abc")
        await authorization.sign_out("user-2")

        assert authorization.accept("token-abc") is None
        assert authorization.accept("token-other").token == "token-other"

    def test_revocation_expires(self):
        authorization = UserAuthorization()
        authorization._revoked["token-abc"] = int(time.time()) - 10

        assert authorization.accept("token-abc").token == "token-abc"
        assert "token-abc" not in authorization._revoked


class TestUserTokenCredential:
    """Tests for the credential handed to the backend client."""

    @pytest.mark.asyncio
    async def test_returns_request_token(self):
        credential = UserAuthorization().credential_for("user-1", "token-abc")

        token = await credential.get_token("https://ai.azure.com/.default")

        assert isinstance(credential, UserTokenCredential)
        assert token.token == "token-abc"

    @pytest.mark.asyncio
    async def test_request_without_token_raises(self):
        credential = UserAuthorization("AIFoundry").credential_for("user-1")

        with pytest.raises(ClientAuthenticationError, match="not signed in to AIFoundry"):
            await credential.get_token("https://ai.azure.com/.default")

    @pytest.mark.asyncio
    async def test_token_is_not_reused_by_a_later_request(self):
        authorization = UserAuthorization()
        first = authorization.credential_for("user-1", "token-abc")
        second = authorization.credential_for("user-1")

        assert (await first.get_token()).token == "token-abc"
        with pytest.raises(ClientAuthenticationError):
            await second.get_token()

    @pytest.mark.asyncio
    async def test_expired_token_raises(self):
        credential = UserTokenCredential("AIFoundry", "user-1", AccessToken("token-abc", int(time.time()) - 10))

        with pytest.raises(ClientAuthenticationError):
            await credential.get_token()

    @pytest.mark.asyncio
    async def test_context_manager_and_close(self):
        async with UserAuthorization().credential_for("user-1", "token-abc") as credential:
            assert (await credential.get_token()).token == "token-abc"


class TestOnBehalfOf:
    """Token exchange through an app registration."""

    @patch("foundry_relay.auth.OnBehalfOfCredential")
    def test_configured_exchange_uses_user_assertion(self, mock_obo):
        config = Config(obo_tenant_id="tenant", obo_client_id="client", obo_client_secret="secret")
        authorization = UserAuthorization(config=config)

        credential = authorization.credential_for("user-1", "user-token")

        assert credential is mock_obo.return_value
        mock_obo.assert_called_once_with(
            tenant_id="tenant",
            client_id="client",
            client_secret="secret",
            user_assertion="user-token",
        )

    @patch("foundry_relay.auth.OnBehalfOfCredential")
    def test_exchange_skipped_without_token(self, mock_obo):
        config = Config(obo_tenant_id="tenant", obo_client_id="client", obo_client_secret="secret")

        credential = UserAuthorization(config=config).credential_for("user-1")

        assert isinstance(credential, UserTokenCredential)
        mock_obo.assert_not_called()


@patch("foundry_relay.auth.DefaultAzureCredential")
def test_playground_credential(mock_default):
    assert playground_credential() is mock_default.return_value
