"""Account repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Optional, Union
from uuid import UUID

from authcore.domain.account.aggregates.account import Account
from authcore.domain.account.value_objects.email import Email


class AccountRepository(ABC):
    """Repository interface for Account aggregates.

    Every mutating method returns the updated account, or ``None`` when
    the addressed account does not exist (or, for
    ``swap_refresh_token_hash``, when the stored hash no longer matches).
    """

    @abstractmethod
    async def find_by_id(self, account_id: UUID) -> Optional[Account]:
        """Find an account by its ID."""

    @abstractmethod
    async def find_by_email(self, email: Union[str, Email]) -> Optional[Account]:
        """Find an account by its (normalized) email address."""

    @abstractmethod
    async def find_by_provider(
        self,
        provider: str,
        provider_id: str,
    ) -> Optional[Account]:
        """Find an account bound to the given OAuth provider identity."""

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Persist a new account.

        Raises
        ------
        EmailAlreadyExistsError
            If the email is already registered.
        """

    @abstractmethod
    async def update(self, account_id: UUID, **changes: Any) -> Optional[Account]:
        """Apply column changes (``password_hash``, ``name``, ...) to an account."""

    @abstractmethod
    async def create_oauth_account(self, account: Account) -> Account:
        """Persist a new OAuth account, encrypting its provider tokens."""

    @abstractmethod
    async def link_oauth_account(  # noqa: PLR0913
        self,
        account_id: UUID,
        provider: str,
        provider_id: str,
        access_token: str | None = None,
        refresh_token: str | None = None,
        token_expires_at: datetime | None = None,
    ) -> Optional[Account]:
        """Bind an OAuth provider identity to an existing account."""

    @abstractmethod
    async def mark_email_verified(self, account_id: UUID) -> Optional[Account]:
        """Set the email-verified flag."""

    @abstractmethod
    async def set_refresh_token_hash(
        self,
        account_id: UUID,
        token_hash: str | None,
    ) -> Optional[Account]:
        """Replace (or clear, with ``None``) the stored refresh token hash."""

    @abstractmethod
    async def swap_refresh_token_hash(
        self,
        account_id: UUID,
        expected_hash: str,
        new_hash: str,
    ) -> bool:
        """Replace the stored hash only if it still equals ``expected_hash``.

        Returns
        -------
        bool
            True if this caller won the swap.
        """

    @abstractmethod
    async def update_oauth_tokens(
        self,
        account_id: UUID,
        access_token: str | None,
        refresh_token: str | None,
        token_expires_at: datetime | None = None,
    ) -> Optional[Account]:
        """Replace the stored (encrypted) OAuth provider tokens."""
