"""Token schemas and data structures.

These are simple data classes used for transferring token data between
components.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from authcore.domain.account.value_objects import AccountRole

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded JWT token payload.

    Attributes
    ----------
    account_id
        The ``sub`` claim
    email
        The account's email address
    role
        The account role at issuance time
    is_master_admin
        The ``isMasterAdmin`` claim
    token_type
        Either "access" or "refresh"
    jti
        Unique token identifier
    exp
        Token expiration timestamp
    """

    account_id: UUID
    email: str
    role: AccountRole
    is_master_admin: bool
    token_type: str
    jti: str
    exp: datetime

    def is_expired(self) -> bool:
        """Check if the token has expired."""
        return datetime.now(tz=self.exp.tzinfo) > self.exp

    def is_access_token(self) -> bool:
        return self.token_type == ACCESS_TOKEN_TYPE

    def is_refresh_token(self) -> bool:
        return self.token_type == REFRESH_TOKEN_TYPE


@dataclass(frozen=True)
class TokenPair:
    """An access token and the refresh token minted with it."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
