"""SQLAlchemy model for the Account aggregate."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from authcore.domain.shared.time import utc_now
from authcore.infrastructure.persistence.sqlalchemy.base import Base


class AccountModel(Base):
    """SQLAlchemy model for persisting Account aggregates.

    OAuth provider tokens are stored as AES-GCM envelopes, never in
    plaintext.
    """

    __tablename__ = "accounts"
    __table_args__ = (
        UniqueConstraint(
            "oauth_provider",
            "oauth_provider_id",
            name="uq_accounts_oauth_provider_identity",
        ),
    )

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(
        String(32),
        default="REGULAR",
        nullable=False,
    )
    is_master_admin: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    email_verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    refresh_token_hash: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
    )
    oauth_provider: Mapped[str | None] = mapped_column(String(50), nullable=True)
    oauth_provider_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    oauth_access_token_encrypted: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    oauth_refresh_token_encrypted: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    oauth_token_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AccountModel(id={self.id}, email={self.email}, role={self.role})>"
