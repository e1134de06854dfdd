"""Unit tests for PasswordResetService."""

from datetime import timedelta
from unittest.mock import AsyncMock, Mock
from uuid import UUID

import pytest

from authcore.application.services import OtpService, PasswordResetService
from authcore.domain.account import OtpPurpose
from authcore.domain.shared.time import utc_now
from authcore.exceptions import (
    AccountNotFoundError,
    InvalidEmailError,
    InvalidOtpError,
    InvalidResetTokenError,
    PasswordMismatchError,
    WeakPasswordError,
)
from authcore.repositories import ResetTokenData, ResetTokenPurpose
from authcore.services import PasswordHashingService, hash_token
from tests.shared.fixtures.factories import TestAccountFactory

TOKEN_ID = UUID("0000000b-0000-0000-0000-000000000001")


def _reset_token(raw: str) -> ResetTokenData:
    now = utc_now()
    return ResetTokenData(
        id=TOKEN_ID,
        account_id=TestAccountFactory.DEFAULT_ID,
        purpose=ResetTokenPurpose.PASSWORD_RESET,
        token_hash=hash_token(raw),
        expires_at=now + timedelta(minutes=15),
        used_at=None,
        created_at=now,
    )


class _PasswordResetTestBase:
    def setup_method(self):
        """Set up test fixtures."""
        self.account_repo = AsyncMock()
        self.token_repo = AsyncMock()
        self.otp_service = Mock(spec=OtpService)
        self.password_service = PasswordHashingService(rounds=4)
        self.service = PasswordResetService(
            account_repository=self.account_repo,
            token_repository=self.token_repo,
            otp_service=self.otp_service,
            password_service=self.password_service,
        )


class TestPasswordResetServiceForgotPassword(_PasswordResetTestBase):
    """Tests for forgot_password."""

    @pytest.mark.asyncio
    async def test_known_email_sends_reset_code(self):
        """Known emails get a PASSWORD_RESET code."""
        account = TestAccountFactory.regular()
        self.account_repo.find_by_email.return_value = account

        await self.service.forgot_password(account.email)

        self.otp_service.generate_and_send.assert_awaited_once_with(
            account,
            OtpPurpose.PASSWORD_RESET,
        )

    @pytest.mark.asyncio
    async def test_unknown_email_silent(self):
        """Unknown email silently succeeds (no email enumeration)."""
        self.account_repo.find_by_email.return_value = None

        await self.service.forgot_password("ghost@example.com")

        self.otp_service.generate_and_send.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_email_silent(self):
        """Malformed email silently succeeds as well."""
        self.account_repo.find_by_email.side_effect = InvalidEmailError()

        await self.service.forgot_password("not-an-email")

        self.otp_service.generate_and_send.assert_not_called()


class TestPasswordResetServiceVerifyOtp(_PasswordResetTestBase):
    """Tests for verify_reset_otp and issue_reset_token."""

    @pytest.mark.asyncio
    async def test_verified_code_yields_token(self):
        """A correct reset code returns a 64-hex token stored only as a hash."""
        account = TestAccountFactory.regular()
        self.otp_service.verify.return_value = account

        token = await self.service.verify_reset_otp(account.email, "123456")

        assert len(token) == 64
        int(token, 16)
        self.token_repo.delete_all_for_account.assert_awaited_once_with(
            account.id,
            ResetTokenPurpose.PASSWORD_RESET,
        )
        kwargs = self.token_repo.create.call_args.kwargs
        assert kwargs["token_hash"] == hash_token(token)
        assert kwargs["token_hash"] != token
        remaining = kwargs["expires_at"] - utc_now()
        assert timedelta(minutes=14) < remaining <= timedelta(minutes=15)

    @pytest.mark.asyncio
    async def test_code_errors_propagate(self):
        """Errors from code verification reach the caller unchanged."""
        self.otp_service.verify.side_effect = InvalidOtpError()

        with pytest.raises(InvalidOtpError):
            await self.service.verify_reset_otp("user@example.com", "000000")

        self.token_repo.create.assert_not_called()


class TestPasswordResetServiceResetPassword(_PasswordResetTestBase):
    """Tests for reset_password."""

    @pytest.mark.asyncio
    async def test_reset_password_success(self):
        """The password is replaced, sessions revoked and tokens deleted."""
        self.token_repo.find_valid_by_hash.return_value = _reset_token("raw")
        self.token_repo.mark_used.return_value = True
        self.account_repo.update.return_value = TestAccountFactory.regular()

        await self.service.reset_password("raw", "new-password", "new-password")

        self.token_repo.find_valid_by_hash.assert_awaited_once_with(hash_token("raw"))
        kwargs = self.account_repo.update.call_args.kwargs
        assert kwargs["refresh_token_hash"] is None
        assert self.password_service.verify("new-password", kwargs["password_hash"])
        self.token_repo.delete_all_for_account.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_mismatch(self):
        """Differing confirmation is rejected before the token is looked up."""
        with pytest.raises(PasswordMismatchError):
            await self.service.reset_password("raw", "new-password", "other-password")

        self.token_repo.find_valid_by_hash.assert_not_called()

    @pytest.mark.asyncio
    async def test_weak_password(self):
        """Weak passwords are rejected before the token is consumed."""
        with pytest.raises(WeakPasswordError):
            await self.service.reset_password("raw", "short", "short")

        self.token_repo.mark_used.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_token(self):
        """Unknown, expired or used tokens are rejected."""
        self.token_repo.find_valid_by_hash.return_value = None

        with pytest.raises(InvalidResetTokenError):
            await self.service.reset_password("raw", "new-password", "new-password")

        self.account_repo.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_token_consumed_concurrently(self):
        """Only one reset can consume a token."""
        self.token_repo.find_valid_by_hash.return_value = _reset_token("raw")
        self.token_repo.mark_used.return_value = False

        with pytest.raises(InvalidResetTokenError):
            await self.service.reset_password("raw", "new-password", "new-password")

        self.account_repo.update.assert_not_called()

    @pytest.mark.asyncio
    async def test_account_deleted(self):
        """A token whose account is gone reports not found."""
        self.token_repo.find_valid_by_hash.return_value = _reset_token("raw")
        self.token_repo.mark_used.return_value = True
        self.account_repo.update.return_value = None

        with pytest.raises(AccountNotFoundError):
            await self.service.reset_password("raw", "new-password", "new-password")
