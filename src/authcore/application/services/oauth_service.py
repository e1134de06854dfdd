"""OAuth sign-in: find, link or create the account for a provider identity."""

import logging
from dataclasses import dataclass
from datetime import datetime

from authcore.application.login_result import ProfileOnlyLogin
from authcore.domain.account import Account, AccountRepository
from authcore.exceptions import OAuthAccountConflictError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OAuthProfile:
    """Identity already extracted from the provider's profile response."""

    provider: str
    provider_id: str
    email: str
    name: str | None = None


@dataclass(frozen=True)
class OAuthTokens:
    access_token: str | None = None
    refresh_token: str | None = None
    expires_at: datetime | None = None

    def __repr__(self) -> str:
        return f"OAuthTokens(expires_at={self.expires_at!r})"


class OAuthService:
    """Authenticate accounts through an external OAuth provider.

    OAuth accounts are regular accounts: they never receive tokens from
    this core, so every outcome is a ``ProfileOnlyLogin``.
    """

    def __init__(self, account_repository: AccountRepository):
        self._account_repo = account_repository

    async def authenticate(
        self,
        profile: OAuthProfile,
        tokens: OAuthTokens | None = None,
    ) -> ProfileOnlyLogin:
        """Resolve the provider identity to an account.

        1. An account bound to (provider, provider_id) is returned, with its
           stored provider tokens refreshed.
        2. Otherwise a password account with the same email is linked to
           the provider identity.
        3. Otherwise a new, verified OAuth account is created.

        Raises
        ------
        OAuthAccountConflictError
            The email belongs to an account already bound to a provider
        """
        tokens = tokens or OAuthTokens()

        account = await self._account_repo.find_by_provider(
            profile.provider,
            profile.provider_id,
        )
        if account is not None:
            if tokens.access_token or tokens.refresh_token:
                account = await self._account_repo.update_oauth_tokens(
                    account.id,
                    access_token=tokens.access_token,
                    refresh_token=tokens.refresh_token,
                    token_expires_at=tokens.expires_at,
                ) or account
            logger.info(
                "OAuth login: %s via %s",
                account.id,
                profile.provider,
            )
            return ProfileOnlyLogin(account=account)

        existing = await self._account_repo.find_by_email(profile.email)
        if existing is not None:
            return ProfileOnlyLogin(account=await self._link(existing, profile, tokens))

        created = await self._account_repo.create_oauth_account(
            Account.create_oauth(
                email=profile.email,
                provider=profile.provider,
                provider_id=profile.provider_id,
                name=profile.name,
                access_token=tokens.access_token,
                refresh_token=tokens.refresh_token,
                token_expires_at=tokens.expires_at,
            ),
        )
        logger.info("Created OAuth account %s via %s", created.id, profile.provider)
        return ProfileOnlyLogin(account=created)

    async def _link(
        self,
        existing: Account,
        profile: OAuthProfile,
        tokens: OAuthTokens,
    ) -> Account:
        if existing.oauth_provider:
            logger.warning(
                "OAuth conflict: account %s is bound to %s, not %s",
                existing.id,
                existing.oauth_provider,
                profile.provider,
            )
            raise OAuthAccountConflictError(existing.oauth_provider)

        linked = await self._account_repo.link_oauth_account(
            existing.id,
            provider=profile.provider,
            provider_id=profile.provider_id,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_expires_at=tokens.expires_at,
        )
        logger.info("Linked %s identity to account %s", profile.provider, existing.id)
        return linked or existing
