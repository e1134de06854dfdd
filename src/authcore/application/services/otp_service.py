"""One-time code lifecycle: generation, delivery and verification."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import NoReturn
from uuid import UUID

from authcore.application.notifications import (
    CodeDelivery,
    NotificationDispatcher,
    PendingDeliveries,
)
from authcore.domain.account import Account, AccountRepository, OtpPurpose
from authcore.domain.shared.time import utc_now
from authcore.exceptions import (
    AccountNotFoundError,
    EmailAlreadyVerifiedError,
    IncorrectOtpError,
    InvalidEmailError,
    InvalidOtpError,
    NoActiveOtpError,
    OtpAttemptsExceededError,
)
from authcore.repositories import OtpRepository
from authcore.services import OneTimeCodeService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpChallenge:
    """A code that was stored and handed over for delivery.

    The code itself is never part of the result; it only travels to the
    notifier. ``queued`` is False when the dispatcher dropped the delivery.
    """

    account_id: UUID
    purpose: OtpPurpose
    expires_at: datetime
    max_attempts: int
    queued: bool


class OtpService:
    """Per (account, purpose) code state machine.

    A code is pending until it is consumed by a correct guess, locked
    after ``max_attempts`` wrong guesses, or expired. Locked codes stay in
    storage so every later attempt keeps reporting the lockout until a new
    code is requested.

    Signup verification reports precise errors to the account owner.
    Password reset reports one generic ``InvalidOtpError`` so it cannot be
    used to probe which emails are registered.
    """

    def __init__(  # noqa: PLR0913
        self,
        account_repository: AccountRepository,
        otp_repository: OtpRepository,
        code_service: OneTimeCodeService,
        dispatcher: NotificationDispatcher | PendingDeliveries,
        expiry_minutes: int = 10,
        signup_max_attempts: int = 5,
        password_reset_max_attempts: int = 3,
    ):
        self._account_repo = account_repository
        self._otp_repo = otp_repository
        self._codes = code_service
        self._dispatcher = dispatcher
        self._expiry = timedelta(minutes=expiry_minutes)
        self._max_attempts = {
            OtpPurpose.SIGNUP_EMAIL_VERIFICATION: signup_max_attempts,
            OtpPurpose.PASSWORD_RESET: password_reset_max_attempts,
        }

    def max_attempts_for(self, purpose: OtpPurpose) -> int:
        return self._max_attempts[purpose]

    async def generate_and_send(
        self,
        account: Account,
        purpose: OtpPurpose,
    ) -> OtpChallenge:
        """Replace any pending code for the purpose and queue delivery.

        Delivery is never awaited: a slow or failing mail server does not
        delay or fail the caller. Inside ``AuthContainer.unit_of_work`` the
        delivery is held until the new code has been committed.
        """
        code = self._codes.generate()
        max_attempts = self.max_attempts_for(purpose)

        otp = await self._otp_repo.create(
            account_id=account.id,
            purpose=purpose,
            code_hash=self._codes.hash(code),
            max_attempts=max_attempts,
            expires_at=utc_now() + self._expiry,
        )

        queued = self._dispatcher.submit(
            CodeDelivery(
                address=account.email,
                code=code,
                display_name=account.name,
                purpose=purpose,
            ),
        )

        logger.info("Issued %s code for account %s", purpose.value, account.id)
        return OtpChallenge(
            account_id=account.id,
            purpose=purpose,
            expires_at=otp.expires_at,
            max_attempts=max_attempts,
            queued=queued,
        )

    async def verify(self, email: str, code: str, purpose: OtpPurpose) -> Account:
        """Check a submitted code and consume it on success.

        Returns
        -------
        The account, with ``email_verified`` set for signup verification

        Raises
        ------
        AccountNotFoundError
            Signup: no account for the email
        EmailAlreadyVerifiedError
            Signup: nothing left to verify
        NoActiveOtpError
            Signup: no pending code
        IncorrectOtpError
            Signup: wrong code, with the attempts left
        InvalidOtpError
            Password reset: unknown account, no pending code or wrong code
        OtpAttemptsExceededError
            Either purpose: the code is locked
        """
        is_signup = purpose == OtpPurpose.SIGNUP_EMAIL_VERIFICATION

        account = await self._find_account(email)
        if account is None:
            logger.warning("%s code submitted for unknown email", purpose.value)
            if is_signup:
                raise AccountNotFoundError
            raise InvalidOtpError

        if is_signup and account.email_verified:
            raise EmailAlreadyVerifiedError

        otp = await self._otp_repo.find_valid(account.id, purpose)
        if otp is None:
            self._raise_no_active_code(purpose)

        if otp.is_locked():
            logger.warning("Locked %s code used for account %s", purpose.value, account.id)
            raise OtpAttemptsExceededError

        if not self._codes.verify(code, otp.code_hash):
            await self._record_failure(account, otp.id, otp.max_attempts, purpose)

        if not await self._otp_repo.mark_used(otp.id):
            # Another request consumed the code first
            self._raise_no_active_code(purpose)

        if is_signup:
            verified = await self._account_repo.mark_email_verified(account.id)
            account = verified or account
            logger.info("Email verified for account %s", account.id)
        else:
            logger.info("Password reset code accepted for account %s", account.id)

        return account

    async def resend(
        self,
        email: str,
        purpose: OtpPurpose = OtpPurpose.SIGNUP_EMAIL_VERIFICATION,
    ) -> OtpChallenge:
        account = await self._find_account(email)
        if account is None:
            raise AccountNotFoundError

        if purpose == OtpPurpose.SIGNUP_EMAIL_VERIFICATION and account.email_verified:
            raise EmailAlreadyVerifiedError

        return await self.generate_and_send(account, purpose)

    async def purge_expired(self) -> int:
        removed = await self._otp_repo.cleanup_expired()
        if removed:
            logger.info("Removed %d expired one-time codes", removed)
        return removed

    async def _record_failure(
        self,
        account: Account,
        otp_id: UUID,
        max_attempts: int,
        purpose: OtpPurpose,
    ) -> NoReturn:
        attempts = await self._otp_repo.increment_attempts(otp_id)
        if attempts is None:
            current = await self._otp_repo.find_by_id(otp_id)
            if current is None or current.is_used():
                logger.warning(
                    "%s code for account %s was consumed by another request",
                    purpose.value,
                    account.id,
                )
                self._raise_no_active_code(purpose)

        if attempts is None or attempts >= max_attempts:
            logger.warning(
                "%s code locked for account %s",
                purpose.value,
                account.id,
            )
            raise OtpAttemptsExceededError

        logger.warning(
            "Wrong %s code for account %s (%d/%d)",
            purpose.value,
            account.id,
            attempts,
            max_attempts,
        )
        if purpose == OtpPurpose.SIGNUP_EMAIL_VERIFICATION:
            raise IncorrectOtpError(remaining_attempts=max_attempts - attempts)
        raise InvalidOtpError

    @staticmethod
    def _raise_no_active_code(purpose: OtpPurpose) -> NoReturn:
        if purpose == OtpPurpose.SIGNUP_EMAIL_VERIFICATION:
            raise NoActiveOtpError
        raise InvalidOtpError

    async def _find_account(self, email: str) -> Account | None:
        try:
            return await self._account_repo.find_by_email(email)
        except InvalidEmailError:
            return None
