"""SQLAlchemy implementation of OtpRepository."""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from authcore.domain.account import OtpPurpose
from authcore.domain.shared.ids import generate_uuid7
from authcore.domain.shared.time import ensure_tz_aware, utc_now
from authcore.infrastructure.persistence.sqlalchemy.models import OtpModel
from authcore.repositories import OtpData, OtpRepository

logger = logging.getLogger(__name__)


class OtpRepositorySQLAlchemy(OtpRepository):
    """SQLAlchemy implementation of OtpRepository.

    Attempt counting and consumption are single conditional UPDATE
    statements, so concurrent verifications of the same code can never
    push ``attempts`` past ``max_attempts`` or consume a code twice.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(  # noqa: PLR0913
        self,
        account_id: UUID,
        purpose: OtpPurpose,
        code_hash: str,
        max_attempts: int,
        expires_at: datetime,
    ) -> OtpData:
        await self._session.execute(
            delete(OtpModel)
            .where(
                OtpModel.account_id == account_id,
                OtpModel.purpose == purpose.value,
            )
            .execution_options(synchronize_session=False),
        )

        model = OtpModel(
            id=generate_uuid7(),
            account_id=account_id,
            purpose=purpose.value,
            code_hash=code_hash,
            attempts=0,
            max_attempts=max_attempts,
            expires_at=expires_at,
            created_at=utc_now(),
        )
        self._session.add(model)
        await self._session.flush()
        logger.debug("Stored %s code for account %s", purpose.value, account_id)
        return self._to_data(model)

    async def find_valid(
        self,
        account_id: UUID,
        purpose: OtpPurpose,
    ) -> OtpData | None:
        stmt = (
            select(OtpModel)
            .where(
                OtpModel.account_id == account_id,
                OtpModel.purpose == purpose.value,
                OtpModel.used_at.is_(None),
                OtpModel.expires_at >= utc_now(),
            )
            .order_by(OtpModel.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_data(model) if model else None

    async def find_by_id(self, otp_id: UUID) -> OtpData | None:
        stmt = (
            select(OtpModel)
            .where(OtpModel.id == otp_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_data(model) if model else None

    async def increment_attempts(self, otp_id: UUID) -> int | None:
        stmt = (
            update(OtpModel)
            .where(
                OtpModel.id == otp_id,
                OtpModel.attempts < OtpModel.max_attempts,
                OtpModel.used_at.is_(None),
            )
            .values(attempts=OtpModel.attempts + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount != 1:  # type: ignore[attr-defined]
            return None

        attempts = await self._session.execute(
            select(OtpModel.attempts).where(OtpModel.id == otp_id),
        )
        return attempts.scalar_one()

    async def mark_used(self, otp_id: UUID) -> bool:
        stmt = (
            update(OtpModel)
            .where(OtpModel.id == otp_id, OtpModel.used_at.is_(None))
            .values(used_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def cleanup_expired(self) -> int:
        stmt = (
            delete(OtpModel)
            .where(OtpModel.expires_at < utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount  # type: ignore[attr-defined]

    def _to_data(self, model: OtpModel) -> OtpData:
        return OtpData(
            id=model.id,
            account_id=model.account_id,
            purpose=OtpPurpose(model.purpose),
            code_hash=model.code_hash,
            attempts=model.attempts,
            max_attempts=model.max_attempts,
            expires_at=ensure_tz_aware(model.expires_at),
            used_at=ensure_tz_aware(model.used_at) if model.used_at else None,
            created_at=ensure_tz_aware(model.created_at),
        )
