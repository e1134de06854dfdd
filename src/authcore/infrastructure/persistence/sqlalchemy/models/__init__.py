# ruff: noqa: E501 - Long import paths in __init__.py re-exports
"""SQLAlchemy models for accounts, one-time codes and reset tokens."""

from authcore.infrastructure.persistence.sqlalchemy.models.account_model import (
    AccountModel,
)
from authcore.infrastructure.persistence.sqlalchemy.models.otp_model import (
    OtpModel,
)
from authcore.infrastructure.persistence.sqlalchemy.models.reset_token_model import (
    ResetTokenModel,
)

__all__ = [
    "AccountModel",
    "OtpModel",
    "ResetTokenModel",
]
