from enum import Enum


class AccountRole(str, Enum):
    """Account roles. Only platform admins receive tokens at login."""

    REGULAR = "REGULAR"
    PLATFORM_ADMIN = "PLATFORM_ADMIN"
