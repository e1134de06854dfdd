"""Unit tests for OAuthService."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from authcore.application import ProfileOnlyLogin
from authcore.application.services import OAuthProfile, OAuthService, OAuthTokens
from authcore.exceptions import OAuthAccountConflictError
from tests.shared.fixtures.factories import TestAccountFactory

EXPIRES = datetime(2030, 1, 1, tzinfo=timezone.utc)


class TestOAuthServiceAuthenticate:
    """Tests for authenticate."""

    def setup_method(self):
        """Set up test fixtures."""
        self.account_repo = AsyncMock()
        self.service = OAuthService(self.account_repo)
        self.profile = OAuthProfile(
            provider="google",
            provider_id="google-123",
            email="oauth@example.com",
            name="OAuth User",
        )
        self.tokens = OAuthTokens(
            access_token="provider-access",
            refresh_token="provider-refresh",
            expires_at=EXPIRES,
        )

    @pytest.mark.asyncio
    async def test_known_identity_refreshes_tokens(self):
        """A bound identity logs in and its provider tokens are updated."""
        existing = TestAccountFactory.oauth_only()
        self.account_repo.find_by_provider.return_value = existing
        self.account_repo.update_oauth_tokens.return_value = existing

        result = await self.service.authenticate(self.profile, self.tokens)

        assert isinstance(result, ProfileOnlyLogin)
        assert result.account == existing
        self.account_repo.update_oauth_tokens.assert_awaited_once_with(
            existing.id,
            access_token="provider-access",
            refresh_token="provider-refresh",
            token_expires_at=EXPIRES,
        )
        self.account_repo.find_by_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_known_identity_without_tokens(self):
        """Without new tokens the stored ones are left alone."""
        self.account_repo.find_by_provider.return_value = TestAccountFactory.oauth_only()

        await self.service.authenticate(self.profile)

        self.account_repo.update_oauth_tokens.assert_not_called()

    @pytest.mark.asyncio
    async def test_password_account_is_linked(self):
        """A password account with the same email gets the provider binding."""
        password_account = TestAccountFactory.regular(email="oauth@example.com")
        self.account_repo.find_by_provider.return_value = None
        self.account_repo.find_by_email.return_value = password_account
        self.account_repo.link_oauth_account.return_value = password_account

        result = await self.service.authenticate(self.profile, self.tokens)

        assert result.account == password_account
        self.account_repo.link_oauth_account.assert_awaited_once_with(
            password_account.id,
            provider="google",
            provider_id="google-123",
            access_token="provider-access",
            refresh_token="provider-refresh",
            token_expires_at=EXPIRES,
        )
        self.account_repo.create_oauth_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_email_bound_to_other_provider(self):
        """An email already bound to a provider cannot be linked again."""
        self.account_repo.find_by_provider.return_value = None
        self.account_repo.find_by_email.return_value = TestAccountFactory.oauth_only(
            oauth_provider="github",
            oauth_provider_id="gh-9",
        )

        with pytest.raises(OAuthAccountConflictError, match="github"):
            await self.service.authenticate(self.profile, self.tokens)

        self.account_repo.link_oauth_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_new_identity_creates_account(self):
        """Unknown identities create a verified OAuth account."""
        self.account_repo.find_by_provider.return_value = None
        self.account_repo.find_by_email.return_value = None
        self.account_repo.create_oauth_account.side_effect = lambda account: account

        result = await self.service.authenticate(self.profile, self.tokens)

        created = result.account
        assert created.email == "oauth@example.com"
        assert created.email_verified
        assert not created.has_password
        assert created.oauth_provider == "google"
        assert created.oauth_access_token == "provider-access"

    def test_tokens_repr_hides_secrets(self):
        """Provider tokens never appear in the repr."""
        assert "provider-access" not in repr(self.tokens)
        assert "provider-refresh" not in repr(self.tokens)
