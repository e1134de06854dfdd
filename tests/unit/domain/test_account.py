"""Unit tests for the Account aggregate."""

from uuid import UUID

import pytest

from authcore.domain.account import Account, AccountRole, Email


class TestAccountCreation:
    """Tests for account factories and invariants."""

    def test_create_password_account(self):
        """New password accounts are regular and unverified by default."""
        account = Account.create(
            email="New@Example.com",
            password_hash="hash",
            name="New",
        )

        assert isinstance(account.id, UUID)
        assert account.email == "new@example.com"
        assert account.role == AccountRole.REGULAR
        assert account.has_password
        assert not account.email_verified
        assert not account.is_oauth_linked
        assert not account.is_platform_admin

    def test_create_oauth_account_is_verified(self):
        """OAuth accounts are created with a verified email and no password."""
        account = Account.create_oauth(
            email="oauth@example.com",
            provider="google",
            provider_id="g-1",
            access_token="at",
        )

        assert account.email_verified
        assert not account.has_password
        assert account.is_oauth_linked
        assert account.oauth_access_token == "at"

    def test_requires_password_or_provider(self):
        """An account without password hash or provider binding is rejected."""
        with pytest.raises(ValueError, match="password hash or an OAuth"):
            Account(email="x@example.com")

    def test_provider_without_id_is_not_a_binding(self):
        """A provider name alone does not satisfy the credential invariant."""
        with pytest.raises(ValueError):
            Account(email="x@example.com", oauth_provider="google")

    def test_role_accepts_string(self):
        """Persisted role strings are converted to AccountRole."""
        account = Account(
            email="admin@example.com",
            password_hash="hash",
            role="PLATFORM_ADMIN",
        )
        assert account.role == AccountRole.PLATFORM_ADMIN
        assert account.is_platform_admin

    def test_email_obj_is_value_object(self):
        """email_obj exposes the normalized Email."""
        account = Account.create(email="A@B.io", password_hash="hash")
        assert account.email_obj == Email("a@b.io")


class TestAccountIdentity:
    """Tests for equality and hashing."""

    def test_equality_by_id(self):
        """Accounts with the same id are equal regardless of other fields."""
        account_id = UUID("12345678-1234-5678-1234-567812345678")
        first = Account(id=account_id, email="a@example.com", password_hash="h1")
        second = Account(id=account_id, email="b@example.com", password_hash="h2")

        assert first == second
        assert hash(first) == hash(second)

    def test_ids_are_unique(self):
        """Each new account gets its own id."""
        first = Account.create(email="a@example.com", password_hash="h")
        second = Account.create(email="a@example.com", password_hash="h")
        assert first != second
