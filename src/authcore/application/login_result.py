"""Login outcomes.

Whether a successful login also yields tokens depends only on the
account role. Callers branch on the result type instead of inspecting
the role themselves.
"""

from dataclasses import dataclass
from typing import Union

from authcore.domain.account import Account, AccountRole
from authcore.schemas import TokenPair

TOKEN_ISSUING_ROLES = frozenset({AccountRole.PLATFORM_ADMIN})


def role_issues_tokens(role: AccountRole) -> bool:
    return role in TOKEN_ISSUING_ROLES


@dataclass(frozen=True)
class TokenIssuingLogin:
    """Successful login that minted an access/refresh pair."""

    account: Account
    tokens: TokenPair

    @property
    def access_token(self) -> str:
        return self.tokens.access_token

    @property
    def refresh_token(self) -> str:
        return self.tokens.refresh_token


@dataclass(frozen=True)
class ProfileOnlyLogin:
    """Successful login for a role that does not receive tokens."""

    account: Account


LoginResult = Union[TokenIssuingLogin, ProfileOnlyLogin]
