import logging
import secrets
from datetime import timedelta

from authcore.application.services.otp_service import OtpService
from authcore.domain.account import Account, AccountRepository, OtpPurpose
from authcore.domain.shared.time import utc_now
from authcore.exceptions import (
    AccountNotFoundError,
    InvalidEmailError,
    InvalidResetTokenError,
    PasswordMismatchError,
)
from authcore.repositories import ResetTokenPurpose, ResetTokenRepository
from authcore.services import PasswordHashingService, hash_token

logger = logging.getLogger(__name__)


class PasswordResetService:
    """Forgot-password flow: reset code, then a single-use reset token.

    1. ``forgot_password`` mails a PASSWORD_RESET code (silently ignoring
       unknown emails).
    2. ``verify_reset_otp`` trades a correct code for a reset token.
    3. ``reset_password`` trades the token for a new password and signs
       the account out everywhere.
    """

    TOKEN_BYTES = 32

    def __init__(  # noqa: PLR0913
        self,
        account_repository: AccountRepository,
        token_repository: ResetTokenRepository,
        otp_service: OtpService,
        password_service: PasswordHashingService,
        token_expire_minutes: int = 15,
    ):
        self._account_repo = account_repository
        self._token_repo = token_repository
        self._otp_service = otp_service
        self._password_service = password_service
        self._token_expiry = timedelta(minutes=token_expire_minutes)

    async def forgot_password(self, email: str) -> None:
        try:
            account = await self._account_repo.find_by_email(email)
        except InvalidEmailError:
            account = None

        if account is None:
            # Silent to prevent email enumeration
            logger.debug("Password reset requested for unknown email")
            return

        await self._otp_service.generate_and_send(account, OtpPurpose.PASSWORD_RESET)

    async def verify_reset_otp(self, email: str, code: str) -> str:
        """Consume a reset code and return a fresh reset token.

        Raises
        ------
        InvalidOtpError
            Unknown email, no pending code or wrong code
        OtpAttemptsExceededError
            The code is locked
        """
        account = await self._otp_service.verify(email, code, OtpPurpose.PASSWORD_RESET)
        return await self.issue_reset_token(account)

    async def issue_reset_token(self, account: Account) -> str:
        """Create a reset token, replacing any earlier ones.

        Returns
        -------
        The raw token (64 hex characters). Only its SHA-256 hash is stored.
        """
        await self._token_repo.delete_all_for_account(
            account.id,
            ResetTokenPurpose.PASSWORD_RESET,
        )

        raw_token = secrets.token_hex(self.TOKEN_BYTES)
        await self._token_repo.create(
            account_id=account.id,
            token_hash=hash_token(raw_token),
            expires_at=utc_now() + self._token_expiry,
            purpose=ResetTokenPurpose.PASSWORD_RESET,
        )

        logger.info("Reset token issued for account %s", account.id)
        return raw_token

    async def reset_password(
        self,
        token: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """Set a new password using a reset token.

        Every refresh token of the account is revoked and every reset
        token is deleted.

        Raises
        ------
        PasswordMismatchError
            The confirmation differs
        WeakPasswordError
            The password violates the policy
        InvalidResetTokenError
            The token is unknown, expired or already used
        """
        if new_password != confirm_password:
            raise PasswordMismatchError
        self._password_service.validate_strength(new_password)

        reset_token = await self._token_repo.find_valid_by_hash(hash_token(token))
        if reset_token is None:
            raise InvalidResetTokenError

        if reset_token.is_expired() or reset_token.is_used():
            raise InvalidResetTokenError

        if not await self._token_repo.mark_used(reset_token.id):
            logger.warning("Reset token for %s was already used", reset_token.account_id)
            raise InvalidResetTokenError

        account = await self._account_repo.update(
            reset_token.account_id,
            password_hash=self._password_service.hash(new_password),
            refresh_token_hash=None,
        )
        if account is None:
            raise AccountNotFoundError

        await self._token_repo.delete_all_for_account(
            account.id,
            ResetTokenPurpose.PASSWORD_RESET,
        )
        logger.info("Password reset completed for account %s", account.id)

    async def purge_expired(self) -> int:
        removed = await self._token_repo.cleanup_expired()
        if removed:
            logger.info("Removed %d expired reset tokens", removed)
        return removed
