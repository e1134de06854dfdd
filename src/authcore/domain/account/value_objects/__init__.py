"""Value objects for the account domain."""

from authcore.domain.account.value_objects.account_role import AccountRole
from authcore.domain.account.value_objects.email import Email
from authcore.domain.account.value_objects.otp_purpose import OtpPurpose

__all__ = [
    "AccountRole",
    "Email",
    "OtpPurpose",
]
