"""Authentication service for signup, login and credential changes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from uuid import UUID

from authcore.application.login_result import (
    ProfileOnlyLogin,
    TokenIssuingLogin,
)
from authcore.domain.account import Account, AccountRole, OtpPurpose
from authcore.exceptions import (
    AccountNotFoundError,
    EmailAlreadyExistsError,
    InvalidCredentialsError,
    InvalidEmailError,
    OAuthOnlyAccountError,
    PasswordMismatchError,
    PasswordReuseError,
    WeakPasswordError,
)
from authcore.services import PasswordHashingService

if TYPE_CHECKING:
    from authcore.application.services.otp_service import OtpService
    from authcore.application.services.token_service import TokenService
    from authcore.domain.account import AccountRepository

logger = logging.getLogger(__name__)


class AuthenticationService:
    """
    Application service for password authentication.

    Provides:
    - Credential validation
    - Admin and regular-user login (only admins receive tokens)
    - Admin and regular-user signup (sends an email verification code)
    - Token refresh and logout
    - Password change

    Login failures are indistinguishable to the caller: unknown email,
    OAuth-only account, wrong password and wrong role all raise the same
    ``InvalidCredentialsError``.
    """

    def __init__(
        self,
        account_repository: AccountRepository,
        password_service: PasswordHashingService,
        token_service: TokenService,
        otp_service: OtpService,
    ):
        self._account_repo = account_repository
        self._password_service = password_service
        self._token_service = token_service
        self._otp_service = otp_service

    async def validate_credentials(self, email: str, password: str) -> Account | None:
        """Return the account if the password matches, None otherwise.

        A matching password stored under an outdated bcrypt work factor is
        rehashed with the current one.
        """
        try:
            account = await self._account_repo.find_by_email(email)
        except InvalidEmailError:
            logger.warning("Credential validation failed: malformed email")
            return None

        if account is None:
            logger.warning("Credential validation failed: unknown email")
            return None

        if not account.has_password:
            logger.warning("Credential validation failed: OAuth-only account %s", account.id)
            return None

        if not self._password_service.verify(password, account.password_hash or ""):
            logger.warning("Credential validation failed: wrong password for %s", account.id)
            return None

        if self._password_service.needs_rehash(account.password_hash or ""):
            return await self._upgrade_password_hash(account, password)

        return account

    async def admin_login(self, email: str, password: str) -> TokenIssuingLogin:
        account = await self._login(email, password, AccountRole.PLATFORM_ADMIN)
        result = await self._token_service.login_result_for(account)
        if not isinstance(result, TokenIssuingLogin):
            raise InvalidCredentialsError
        logger.info("Admin login: %s", account.id)
        return result

    async def user_login(self, email: str, password: str) -> ProfileOnlyLogin:
        account = await self._login(email, password, AccountRole.REGULAR)
        logger.info("User login: %s", account.id)
        return ProfileOnlyLogin(account=account)

    async def admin_signup(
        self,
        email: str,
        password: str,
        name: str | None = None,
    ) -> Account:
        return await self._signup(email, password, name, AccountRole.PLATFORM_ADMIN)

    async def user_signup(
        self,
        email: str,
        password: str,
        name: str | None = None,
    ) -> Account:
        return await self._signup(email, password, name, AccountRole.REGULAR)

    async def refresh(self, refresh_token: str) -> TokenIssuingLogin:
        account, tokens = await self._token_service.rotate(refresh_token)
        return TokenIssuingLogin(account=account, tokens=tokens)

    async def logout(self, account_id: UUID) -> None:
        await self._token_service.revoke(account_id)

    async def change_password(
        self,
        account_id: UUID,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> None:
        """Replace the password of a signed-in account.

        Succeeding signs the account out: the stored refresh token hash is
        cleared.

        Raises
        ------
        AccountNotFoundError
            No account with this ID
        OAuthOnlyAccountError
            The account has no password to change
        PasswordMismatchError
            The confirmation differs
        WeakPasswordError
            The new password violates the policy
        PasswordReuseError
            The new password equals the current one
        InvalidCredentialsError
            The current password is wrong
        """
        account = await self._account_repo.find_by_id(account_id)
        if account is None:
            raise AccountNotFoundError

        if not account.has_password:
            raise OAuthOnlyAccountError

        if new_password != confirm_password:
            raise PasswordMismatchError

        self._password_service.validate_strength(new_password)

        if new_password == current_password:
            raise PasswordReuseError

        if not self._password_service.verify(current_password, account.password_hash or ""):
            logger.warning("Password change rejected for %s: wrong current password", account_id)
            msg = "Current password is incorrect"
            raise InvalidCredentialsError(msg)

        await self._account_repo.update(
            account_id,
            password_hash=self._password_service.hash(new_password),
            refresh_token_hash=None,
        )
        logger.info("Password changed for account: %s", account_id)

    async def _login(self, email: str, password: str, role: AccountRole) -> Account:
        account = await self.validate_credentials(email, password)
        if account is None:
            raise InvalidCredentialsError

        if account.role != role:
            logger.warning(
                "Login rejected for %s: role %s is not %s",
                account.id,
                account.role.value,
                role.value,
            )
            raise InvalidCredentialsError

        return account

    async def _upgrade_password_hash(self, account: Account, password: str) -> Account:
        try:
            password_hash = self._password_service.hash(password)
        except WeakPasswordError:
            # Predates the current policy; keep the old hash until the next change
            return account

        updated = await self._account_repo.update(account.id, password_hash=password_hash)
        logger.info("Rehashed password for account %s with the current work factor", account.id)
        return updated or account

    async def _signup(
        self,
        email: str,
        password: str,
        name: str | None,
        role: AccountRole,
    ) -> Account:
        account = Account.create(
            email=email,
            password_hash=self._password_service.hash(password),
            name=name,
            role=role,
        )

        if await self._account_repo.find_by_email(account.email_obj) is not None:
            logger.warning("Signup attempt with existing email")
            raise EmailAlreadyExistsError(account.email)

        created = await self._account_repo.create(account)
        logger.info("Account registered: %s (role: %s)", created.id, role.value)

        await self._otp_service.generate_and_send(
            created,
            OtpPurpose.SIGNUP_EMAIL_VERIFICATION,
        )
        return created
