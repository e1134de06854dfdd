"""Abstract repository interface for one-time codes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from authcore.domain.account.value_objects import OtpPurpose
from authcore.domain.shared.time import has_expired


@dataclass(frozen=True)
class OtpData:
    """Immutable one-time code record."""

    id: UUID
    account_id: UUID
    purpose: OtpPurpose
    code_hash: str
    attempts: int
    max_attempts: int
    expires_at: datetime
    used_at: datetime | None
    created_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the code has expired (the expiry instant is still valid)."""
        return has_expired(self.expires_at, now)

    def is_used(self) -> bool:
        return self.used_at is not None

    def is_locked(self) -> bool:
        """Check if every allowed attempt has been spent."""
        return self.attempts >= self.max_attempts

    @property
    def remaining_attempts(self) -> int:
        return max(self.max_attempts - self.attempts, 0)


class OtpRepository(ABC):
    """Abstract repository for one-time codes.

    At most one valid code exists per (account, purpose): ``create``
    removes every earlier record for the pair before inserting.
    """

    @abstractmethod
    async def create(  # noqa: PLR0913
        self,
        account_id: UUID,
        purpose: OtpPurpose,
        code_hash: str,
        max_attempts: int,
        expires_at: datetime,
    ) -> OtpData:
        """Replace any existing code for the pair with a new one.

        Parameters
        ----------
        account_id
            The account's unique identifier
        purpose
            What the code verifies
        code_hash
            bcrypt hash of the code
        max_attempts
            Wrong guesses allowed before the code locks
        expires_at
            When the code expires

        Returns
        -------
        The stored code record
        """

    @abstractmethod
    async def find_valid(
        self,
        account_id: UUID,
        purpose: OtpPurpose,
    ) -> OtpData | None:
        """Find the unused, unexpired code for the pair.

        Locked codes are still returned so the caller can report the
        lockout.
        """

    @abstractmethod
    async def find_by_id(self, otp_id: UUID) -> OtpData | None:
        """Find a code record by ID, whatever its state."""

    @abstractmethod
    async def increment_attempts(self, otp_id: UUID) -> int | None:
        """Atomically count one failed attempt.

        The increment only applies while ``attempts < max_attempts`` and
        the code is unused.

        Returns
        -------
        The new attempt count, or None if the code was already locked or
        consumed
        """

    @abstractmethod
    async def mark_used(self, otp_id: UUID) -> bool:
        """Consume the code if it is still unused.

        Returns
        -------
        True if this caller consumed the code
        """

    @abstractmethod
    async def cleanup_expired(self) -> int:
        """Remove expired codes.

        Returns
        -------
        Number of codes deleted
        """
