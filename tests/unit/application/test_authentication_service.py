"""Unit tests for AuthenticationService."""

from unittest.mock import AsyncMock, Mock

import pytest

from authcore.application import ProfileOnlyLogin, TokenIssuingLogin
from authcore.application.services import (
    AuthenticationService,
    OtpService,
    TokenService,
)
from authcore.domain.account import AccountRole, OtpPurpose
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
from authcore.schemas import TokenPair
from authcore.services import PasswordHashingService
from tests.shared.fixtures.factories import TestAccountFactory

PASSWORD = "correct-password"


class _AuthenticationTestBase:
    def setup_method(self):
        """Set up test fixtures."""
        self.account_repo = AsyncMock()
        self.password_service = PasswordHashingService(rounds=4)
        self.token_service = Mock(spec=TokenService)
        self.otp_service = Mock(spec=OtpService)
        self.service = AuthenticationService(
            account_repository=self.account_repo,
            password_service=self.password_service,
            token_service=self.token_service,
            otp_service=self.otp_service,
        )
        self.password_hash = self.password_service.hash(PASSWORD)
        self.admin = TestAccountFactory.admin(password_hash=self.password_hash)
        self.user = TestAccountFactory.regular(password_hash=self.password_hash)


class TestValidateCredentials(_AuthenticationTestBase):
    """Tests for validate_credentials."""

    @pytest.mark.asyncio
    async def test_valid(self):
        """Matching credentials return the account."""
        self.account_repo.find_by_email.return_value = self.user

        assert await self.service.validate_credentials(self.user.email, PASSWORD) == self.user
        self.account_repo.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_outdated_work_factor_is_rehashed(self):
        """A hash made with another work factor is replaced on login."""
        old_hash = PasswordHashingService(rounds=5).hash(PASSWORD)
        account = TestAccountFactory.regular(password_hash=old_hash)
        self.account_repo.find_by_email.return_value = account
        self.account_repo.update.return_value = account

        assert await self.service.validate_credentials(account.email, PASSWORD) == account

        self.account_repo.update.assert_awaited_once()
        args, kwargs = self.account_repo.update.call_args
        assert args == (account.id,)
        assert kwargs["password_hash"].startswith("$2b$04$")
        assert self.password_service.verify(PASSWORD, kwargs["password_hash"])

    @pytest.mark.asyncio
    async def test_rehash_skips_passwords_below_current_policy(self):
        """A short legacy password still logs in and keeps its old hash."""
        old_hash = PasswordHashingService(rounds=5, min_length=1).hash("short")
        account = TestAccountFactory.regular(password_hash=old_hash)
        self.account_repo.find_by_email.return_value = account

        assert await self.service.validate_credentials(account.email, "short") == account
        self.account_repo.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_wrong_password(self):
        """A wrong password returns None."""
        self.account_repo.find_by_email.return_value = self.user

        assert await self.service.validate_credentials(self.user.email, "nope-nope") is None

    @pytest.mark.asyncio
    async def test_unknown_email(self):
        """An unknown email returns None."""
        self.account_repo.find_by_email.return_value = None

        assert await self.service.validate_credentials("ghost@example.com", PASSWORD) is None

    @pytest.mark.asyncio
    async def test_malformed_email(self):
        """A malformed email returns None instead of raising."""
        self.account_repo.find_by_email.side_effect = InvalidEmailError()

        assert await self.service.validate_credentials("bad", PASSWORD) is None

    @pytest.mark.asyncio
    async def test_oauth_only_account(self):
        """Accounts without a password never validate."""
        self.account_repo.find_by_email.return_value = TestAccountFactory.oauth_only()

        assert await self.service.validate_credentials(
            TestAccountFactory.OAUTH_EMAIL,
            PASSWORD,
        ) is None


class TestLogin(_AuthenticationTestBase):
    """Tests for admin_login and user_login."""

    @pytest.mark.asyncio
    async def test_admin_login_issues_tokens(self):
        """Platform admins receive a token pair."""
        pair = TokenPair(access_token="access", refresh_token="refresh")
        self.account_repo.find_by_email.return_value = self.admin
        self.token_service.login_result_for.return_value = TokenIssuingLogin(
            account=self.admin,
            tokens=pair,
        )

        result = await self.service.admin_login(self.admin.email, PASSWORD)

        assert isinstance(result, TokenIssuingLogin)
        assert result.access_token == "access"

    @pytest.mark.asyncio
    async def test_admin_login_with_regular_account(self):
        """Regular accounts fail admin login exactly like a wrong password."""
        self.account_repo.find_by_email.return_value = self.user

        with pytest.raises(InvalidCredentialsError) as wrong_role:
            await self.service.admin_login(self.user.email, PASSWORD)
        with pytest.raises(InvalidCredentialsError) as wrong_password:
            await self.service.admin_login(self.user.email, "nope-nope")

        assert wrong_role.value.message == wrong_password.value.message
        assert wrong_role.value.code == wrong_password.value.code
        self.token_service.login_result_for.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_login_unknown_email(self):
        """Unknown emails raise the same InvalidCredentialsError."""
        self.account_repo.find_by_email.return_value = None

        with pytest.raises(InvalidCredentialsError, match="Invalid credentials"):
            await self.service.admin_login("ghost@example.com", PASSWORD)

    @pytest.mark.asyncio
    async def test_user_login_returns_profile(self):
        """Regular accounts log in without tokens."""
        self.account_repo.find_by_email.return_value = self.user

        result = await self.service.user_login(self.user.email, PASSWORD)

        assert isinstance(result, ProfileOnlyLogin)
        assert result.account == self.user
        self.token_service.issue.assert_not_called()

    @pytest.mark.asyncio
    async def test_user_login_with_admin_account(self):
        """Admins must use admin login."""
        self.account_repo.find_by_email.return_value = self.admin

        with pytest.raises(InvalidCredentialsError):
            await self.service.user_login(self.admin.email, PASSWORD)


class TestSignup(_AuthenticationTestBase):
    """Tests for admin_signup and user_signup."""

    @pytest.mark.asyncio
    async def test_user_signup(self):
        """Signup stores a hashed password and sends a verification code."""
        self.account_repo.find_by_email.return_value = None
        self.account_repo.create.side_effect = lambda account: account

        account = await self.service.user_signup("New@Example.com", "new-password", "New")

        assert account.email == "new@example.com"
        assert account.role == AccountRole.REGULAR
        assert not account.email_verified
        assert self.password_service.verify("new-password", account.password_hash)
        self.otp_service.generate_and_send.assert_awaited_once_with(
            account,
            OtpPurpose.SIGNUP_EMAIL_VERIFICATION,
        )

    @pytest.mark.asyncio
    async def test_admin_signup_role(self):
        """Admin signup creates a platform admin."""
        self.account_repo.find_by_email.return_value = None
        self.account_repo.create.side_effect = lambda account: account

        account = await self.service.admin_signup("boss@example.com", "new-password")

        assert account.role == AccountRole.PLATFORM_ADMIN

    @pytest.mark.asyncio
    async def test_duplicate_email(self):
        """Existing emails are rejected and no code is sent."""
        self.account_repo.find_by_email.return_value = self.user

        with pytest.raises(EmailAlreadyExistsError, match="already exists"):
            await self.service.user_signup(self.user.email, "new-password")

        self.account_repo.create.assert_not_called()
        self.otp_service.generate_and_send.assert_not_called()

    @pytest.mark.asyncio
    async def test_weak_password(self):
        """Weak passwords fail before the repository is touched."""
        with pytest.raises(WeakPasswordError):
            await self.service.user_signup("new@example.com", "short")

        self.account_repo.find_by_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_email(self):
        """Malformed emails fail validation."""
        with pytest.raises(InvalidEmailError):
            await self.service.user_signup("not-an-email", "new-password")


class TestRefreshAndLogout(_AuthenticationTestBase):
    """Tests for refresh and logout."""

    @pytest.mark.asyncio
    async def test_refresh(self):
        """Refresh wraps the rotated pair in a TokenIssuingLogin."""
        pair = TokenPair(access_token="a2", refresh_token="r2")
        self.token_service.rotate.return_value = (self.admin, pair)

        result = await self.service.refresh("r1")

        assert result.tokens == pair
        self.token_service.rotate.assert_awaited_once_with("r1")

    @pytest.mark.asyncio
    async def test_logout(self):
        """Logout revokes the refresh token."""
        await self.service.logout(self.admin.id)

        self.token_service.revoke.assert_awaited_once_with(self.admin.id)


class TestChangePassword(_AuthenticationTestBase):
    """Tests for change_password."""

    @pytest.mark.asyncio
    async def test_success_clears_refresh_token(self):
        """A successful change stores the new hash and signs out."""
        self.account_repo.find_by_id.return_value = self.admin

        await self.service.change_password(
            self.admin.id,
            PASSWORD,
            "brand-new-password",
            "brand-new-password",
        )

        kwargs = self.account_repo.update.call_args.kwargs
        assert kwargs["refresh_token_hash"] is None
        assert self.password_service.verify("brand-new-password", kwargs["password_hash"])

    @pytest.mark.asyncio
    async def test_unknown_account(self):
        """Unknown account ids raise AccountNotFoundError."""
        self.account_repo.find_by_id.return_value = None

        with pytest.raises(AccountNotFoundError):
            await self.service.change_password(
                self.admin.id,
                PASSWORD,
                "brand-new-password",
                "brand-new-password",
            )

    @pytest.mark.asyncio
    async def test_oauth_only(self):
        """OAuth-only accounts have no password to change."""
        self.account_repo.find_by_id.return_value = TestAccountFactory.oauth_only()

        with pytest.raises(OAuthOnlyAccountError):
            await self.service.change_password(
                TestAccountFactory.OAUTH_ID,
                PASSWORD,
                "brand-new-password",
                "brand-new-password",
            )

    @pytest.mark.asyncio
    async def test_mismatch(self):
        """The confirmation must match."""
        self.account_repo.find_by_id.return_value = self.admin

        with pytest.raises(PasswordMismatchError):
            await self.service.change_password(
                self.admin.id,
                PASSWORD,
                "brand-new-password",
                "different-password",
            )

    @pytest.mark.asyncio
    async def test_reuse(self):
        """The new password must differ from the current one."""
        self.account_repo.find_by_id.return_value = self.admin

        with pytest.raises(PasswordReuseError):
            await self.service.change_password(self.admin.id, PASSWORD, PASSWORD, PASSWORD)

    @pytest.mark.asyncio
    async def test_wrong_current_password(self):
        """The current password must be correct."""
        self.account_repo.find_by_id.return_value = self.admin

        with pytest.raises(InvalidCredentialsError, match="Current password is incorrect"):
            await self.service.change_password(
                self.admin.id,
                "wrong-current",
                "brand-new-password",
                "brand-new-password",
            )

        self.account_repo.update.assert_not_called()
