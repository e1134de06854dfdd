"""Account domain: credential-bearing identities.

This domain handles:
- Account aggregate (identity, credentials, role, OAuth binding)
- Email normalization
- Roles and one-time code purposes
"""

from authcore.domain.account.aggregates import Account
from authcore.domain.account.repositories import AccountRepository
from authcore.domain.account.value_objects import AccountRole, Email, OtpPurpose

__all__ = [
    "Account",
    "AccountRepository",
    "AccountRole",
    "Email",
    "OtpPurpose",
]
