"""SQLAlchemy implementation of ResetTokenRepository."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authcore.domain.shared.ids import generate_uuid7
from authcore.domain.shared.time import ensure_tz_aware, utc_now
from authcore.infrastructure.persistence.sqlalchemy.models import ResetTokenModel
from authcore.repositories import (
    ResetTokenData,
    ResetTokenPurpose,
    ResetTokenRepository,
)


class ResetTokenRepositorySQLAlchemy(ResetTokenRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(
        self,
        account_id: UUID,
        token_hash: str,
        expires_at: datetime,
        purpose: ResetTokenPurpose = ResetTokenPurpose.PASSWORD_RESET,
    ) -> UUID:
        token_id = generate_uuid7()
        model = ResetTokenModel(
            id=token_id,
            account_id=account_id,
            purpose=purpose.value,
            token_hash=token_hash,
            expires_at=expires_at,
            created_at=utc_now(),
        )
        self._session.add(model)
        await self._session.flush()
        return token_id

    async def find_valid_by_hash(
        self,
        token_hash: str,
        purpose: ResetTokenPurpose = ResetTokenPurpose.PASSWORD_RESET,
    ) -> ResetTokenData | None:
        stmt = (
            select(ResetTokenModel)
            .where(
                ResetTokenModel.token_hash == token_hash,
                ResetTokenModel.purpose == purpose.value,
                ResetTokenModel.used_at.is_(None),
                ResetTokenModel.expires_at >= utc_now(),
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return ResetTokenData(
            id=model.id,
            account_id=model.account_id,
            purpose=ResetTokenPurpose(model.purpose),
            token_hash=model.token_hash,
            expires_at=ensure_tz_aware(model.expires_at),
            used_at=None,
            created_at=ensure_tz_aware(model.created_at),
        )

    async def mark_used(self, token_id: UUID) -> bool:
        stmt = (
            update(ResetTokenModel)
            .where(
                ResetTokenModel.id == token_id,
                ResetTokenModel.used_at.is_(None),
            )
            .values(used_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def delete_all_for_account(
        self,
        account_id: UUID,
        purpose: ResetTokenPurpose = ResetTokenPurpose.PASSWORD_RESET,
    ) -> int:
        stmt = (
            delete(ResetTokenModel)
            .where(
                ResetTokenModel.account_id == account_id,
                ResetTokenModel.purpose == purpose.value,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined]

    async def cleanup_expired(self) -> int:
        stmt = (
            delete(ResetTokenModel)
            .where(ResetTokenModel.expires_at < utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined]
