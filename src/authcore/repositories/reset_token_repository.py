"""Abstract repository interface for reset tokens."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from authcore.domain.shared.time import has_expired


class ResetTokenPurpose(str, Enum):
    PASSWORD_RESET = "PASSWORD_RESET"


@dataclass(frozen=True)
class ResetTokenData:
    """Immutable reset token data."""

    id: UUID
    account_id: UUID
    purpose: ResetTokenPurpose
    token_hash: str
    expires_at: datetime
    used_at: datetime | None
    created_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the token has expired."""
        return has_expired(self.expires_at, now)

    def is_used(self) -> bool:
        """Check if the token has been used."""
        return self.used_at is not None


class ResetTokenRepository(ABC):
    """Abstract repository for reset tokens."""

    @abstractmethod
    async def create(
        self,
        account_id: UUID,
        token_hash: str,
        expires_at: datetime,
        purpose: ResetTokenPurpose = ResetTokenPurpose.PASSWORD_RESET,
    ) -> UUID:
        """Create a new reset token.

        Parameters
        ----------
        account_id
            The account's unique identifier
        token_hash
            SHA-256 hash of the raw token
        expires_at
            When the token expires
        purpose
            What the token authorizes

        Returns
        -------
        The token's unique identifier
        """

    @abstractmethod
    async def find_valid_by_hash(
        self,
        token_hash: str,
        purpose: ResetTokenPurpose = ResetTokenPurpose.PASSWORD_RESET,
    ) -> ResetTokenData | None:
        """Find an unused, unexpired token by its hash.

        Parameters
        ----------
        token_hash
            SHA-256 hash of the raw token
        purpose
            The purpose the token must carry

        Returns
        -------
        Token data if valid, None otherwise
        """

    @abstractmethod
    async def mark_used(self, token_id: UUID) -> bool:
        """Consume a token if it is still unused.

        Returns
        -------
        True if this caller consumed the token
        """

    @abstractmethod
    async def delete_all_for_account(
        self,
        account_id: UUID,
        purpose: ResetTokenPurpose = ResetTokenPurpose.PASSWORD_RESET,
    ) -> int:
        """Delete every token of the given purpose for an account.

        Returns
        -------
        Number of tokens deleted
        """

    @abstractmethod
    async def cleanup_expired(self) -> int:
        """Remove expired tokens from the database.

        Returns
        -------
        Number of tokens deleted
        """
