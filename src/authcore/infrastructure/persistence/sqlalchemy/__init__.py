"""SQLAlchemy implementation for authcore persistence.

Provides:
- Base: Declarative base for all models
- AccountModel, OtpModel, ResetTokenModel: table mappings
- AccountRepositorySQLAlchemy: accounts, with OAuth tokens encrypted at rest
- OtpRepositorySQLAlchemy: one-time codes with atomic attempt counting
- ResetTokenRepositorySQLAlchemy: single-use reset tokens
"""

from authcore.infrastructure.persistence.sqlalchemy.base import Base
from authcore.infrastructure.persistence.sqlalchemy.init_db import (
    create_tables,
    drop_tables,
)
from authcore.infrastructure.persistence.sqlalchemy.models import (
    AccountModel,
    OtpModel,
    ResetTokenModel,
)
from authcore.infrastructure.persistence.sqlalchemy.repositories import (
    AccountRepositorySQLAlchemy,
    OtpRepositorySQLAlchemy,
    ResetTokenRepositorySQLAlchemy,
)

__all__ = [
    "AccountModel",
    "AccountRepositorySQLAlchemy",
    "Base",
    "OtpModel",
    "OtpRepositorySQLAlchemy",
    "ResetTokenModel",
    "ResetTokenRepositorySQLAlchemy",
    "create_tables",
    "drop_tables",
]
