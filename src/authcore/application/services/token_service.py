"""Access/refresh token issuance and rotation."""

import logging
from uuid import UUID

from authcore.application.login_result import (
    LoginResult,
    ProfileOnlyLogin,
    TokenIssuingLogin,
    role_issues_tokens,
)
from authcore.domain.account import Account, AccountRepository
from authcore.exceptions import InvalidRefreshTokenError
from authcore.schemas import TokenPair, TokenPayload
from authcore.services import JWTService, hash_token, tokens_match

logger = logging.getLogger(__name__)


class TokenService:
    """Mint, rotate and revoke token pairs.

    Each account holds at most one live refresh token: only its SHA-256
    hash is stored, and every issuance or rotation replaces it.
    """

    def __init__(
        self,
        account_repository: AccountRepository,
        jwt_service: JWTService,
    ):
        self._account_repo = account_repository
        self._jwt_service = jwt_service

    async def issue(self, account: Account) -> TokenPair:
        """Mint a new pair and make its refresh token the only valid one."""
        pair = self._jwt_service.create_token_pair(account)
        await self._account_repo.set_refresh_token_hash(
            account.id,
            hash_token(pair.refresh_token),
        )
        logger.debug("Issued token pair for account %s", account.id)
        return pair

    async def login_result_for(self, account: Account) -> LoginResult:
        if role_issues_tokens(account.role):
            return TokenIssuingLogin(account=account, tokens=await self.issue(account))
        return ProfileOnlyLogin(account=account)

    async def rotate(self, refresh_token: str) -> tuple[Account, TokenPair]:
        """Exchange a refresh token for a new pair.

        The presented token must be the one whose hash is currently
        stored. The swap is conditional on that hash, so of two concurrent
        rotations with the same token only one succeeds.

        Raises
        ------
        InvalidRefreshTokenError
            On any failure: bad signature, expiry, wrong token type,
            unknown account, revoked or superseded token, or a role that
            does not receive tokens
        """
        payload = self._jwt_service.verify_refresh_token(refresh_token)

        account = await self._account_repo.find_by_id(payload.account_id)
        if account is None:
            logger.warning("Refresh token for unknown account %s", payload.account_id)
            raise InvalidRefreshTokenError

        if not tokens_match(refresh_token, account.refresh_token_hash):
            logger.warning("Stale or revoked refresh token for account %s", account.id)
            raise InvalidRefreshTokenError

        if not role_issues_tokens(account.role):
            logger.warning("Refresh attempted by non-token role for %s", account.id)
            raise InvalidRefreshTokenError

        pair = self._jwt_service.create_token_pair(account)
        swapped = await self._account_repo.swap_refresh_token_hash(
            account.id,
            expected_hash=hash_token(refresh_token),
            new_hash=hash_token(pair.refresh_token),
        )
        if not swapped:
            logger.warning("Lost refresh token rotation race for account %s", account.id)
            raise InvalidRefreshTokenError

        logger.debug("Rotated tokens for account %s", account.id)
        return account, pair

    async def revoke(self, account_id: UUID) -> None:
        """Invalidate the account's refresh token (logout)."""
        await self._account_repo.set_refresh_token_hash(account_id, None)
        logger.info("Revoked refresh token for account %s", account_id)

    def verify_access_token(self, token: str) -> TokenPayload:
        return self._jwt_service.verify_access_token(token)
