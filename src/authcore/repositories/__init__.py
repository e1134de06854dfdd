"""Abstract repository interfaces for one-time codes and reset tokens."""

from authcore.repositories.otp_repository import OtpData, OtpRepository
from authcore.repositories.reset_token_repository import (
    ResetTokenData,
    ResetTokenPurpose,
    ResetTokenRepository,
)

__all__ = [
    "OtpData",
    "OtpRepository",
    "ResetTokenData",
    "ResetTokenPurpose",
    "ResetTokenRepository",
]
