# ruff: noqa: E501 - Long import paths in __init__.py re-exports
"""SQLAlchemy repository implementations."""

from authcore.infrastructure.persistence.sqlalchemy.repositories.account_repository import (
    AccountRepositorySQLAlchemy,
)
from authcore.infrastructure.persistence.sqlalchemy.repositories.otp_repository import (
    OtpRepositorySQLAlchemy,
)
from authcore.infrastructure.persistence.sqlalchemy.repositories.reset_token_repository import (
    ResetTokenRepositorySQLAlchemy,
)

__all__ = [
    "AccountRepositorySQLAlchemy",
    "OtpRepositorySQLAlchemy",
    "ResetTokenRepositorySQLAlchemy",
]
