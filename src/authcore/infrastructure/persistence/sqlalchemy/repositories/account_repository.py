"""SQLAlchemy implementation of AccountRepository."""

import logging
from datetime import datetime
from typing import Any, Union
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authcore.domain.account import Account, AccountRepository, AccountRole, Email
from authcore.domain.security import EncryptionService
from authcore.domain.shared.time import ensure_tz_aware, utc_now
from authcore.exceptions import EmailAlreadyExistsError, OAuthAccountConflictError
from authcore.infrastructure.persistence.sqlalchemy.models import AccountModel

logger = logging.getLogger(__name__)

_UPDATABLE_COLUMNS = frozenset(
    {
        "name",
        "password_hash",
        "role",
        "is_master_admin",
        "email_verified",
        "refresh_token_hash",
    },
)


class AccountRepositorySQLAlchemy(AccountRepository):
    """SQLAlchemy implementation of the AccountRepository interface.

    OAuth provider tokens are encrypted with the injected
    ``EncryptionService`` before they reach the session and decrypted when
    an account is loaded.
    """

    def __init__(
        self,
        session: AsyncSession,
        encryption_service: EncryptionService,
    ) -> None:
        self._session = session
        self._encryption = encryption_service

    async def find_by_id(self, account_id: UUID) -> Account | None:
        model = await self._find_model_by_id(account_id)
        return self._map_to_domain(model) if model else None

    async def find_by_email(self, email: Union[str, Email]) -> Account | None:
        email_value = email.value if isinstance(email, Email) else Email(email).value

        stmt = (
            select(AccountModel)
            .where(AccountModel.email == email_value)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        return self._map_to_domain(model) if model else None

    async def find_by_provider(
        self,
        provider: str,
        provider_id: str,
    ) -> Account | None:
        stmt = (
            select(AccountModel)
            .where(
                AccountModel.oauth_provider == provider,
                AccountModel.oauth_provider_id == provider_id,
            )
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        return self._map_to_domain(model) if model else None

    async def create(self, account: Account) -> Account:
        model = self._map_to_model(account)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise EmailAlreadyExistsError(account.email) from e

        logger.info("Created account: %s (role: %s)", account.id, account.role.value)
        return self._map_to_domain(model)

    async def update(self, account_id: UUID, **changes: Any) -> Account | None:
        unknown = set(changes) - _UPDATABLE_COLUMNS
        if unknown:
            msg = f"Unsupported account fields: {sorted(unknown)}"
            raise ValueError(msg)

        model = await self._find_model_by_id(account_id)
        if model is None:
            return None

        for field, value in changes.items():
            if isinstance(value, AccountRole):
                value = value.value
            setattr(model, field, value)
        model.updated_at = utc_now()

        await self._session.flush()
        logger.debug("Updated account %s: %s", account_id, sorted(changes))
        return self._map_to_domain(model)

    async def create_oauth_account(self, account: Account) -> Account:
        model = self._map_to_model(account)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as e:
            raise OAuthAccountConflictError(account.oauth_provider or "oauth") from e

        logger.info(
            "Created OAuth account: %s (provider: %s)",
            account.id,
            account.oauth_provider,
        )
        return self._map_to_domain(model)

    async def link_oauth_account(  # noqa: PLR0913
        self,
        account_id: UUID,
        provider: str,
        provider_id: str,
        access_token: str | None = None,
        refresh_token: str | None = None,
        token_expires_at: datetime | None = None,
    ) -> Account | None:
        model = await self._find_model_by_id(account_id)
        if model is None:
            return None

        model.oauth_provider = provider
        model.oauth_provider_id = provider_id
        model.oauth_access_token_encrypted = self._encrypt(access_token)
        model.oauth_refresh_token_encrypted = self._encrypt(refresh_token)
        model.oauth_token_expires_at = token_expires_at
        model.updated_at = utc_now()

        try:
            await self._session.flush()
        except IntegrityError as e:
            raise OAuthAccountConflictError(provider) from e

        logger.info("Linked %s identity to account %s", provider, account_id)
        return self._map_to_domain(model)

    async def mark_email_verified(self, account_id: UUID) -> Account | None:
        return await self.update(account_id, email_verified=True)

    async def set_refresh_token_hash(
        self,
        account_id: UUID,
        token_hash: str | None,
    ) -> Account | None:
        return await self.update(account_id, refresh_token_hash=token_hash)

    async def swap_refresh_token_hash(
        self,
        account_id: UUID,
        expected_hash: str,
        new_hash: str,
    ) -> bool:
        stmt = (
            update(AccountModel)
            .where(
                AccountModel.id == account_id,
                AccountModel.refresh_token_hash == expected_hash,
            )
            .values(refresh_token_hash=new_hash, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        await self._session.flush()
        return result.rowcount == 1  # type: ignore[attr-defined]

    async def update_oauth_tokens(
        self,
        account_id: UUID,
        access_token: str | None,
        refresh_token: str | None,
        token_expires_at: datetime | None = None,
    ) -> Account | None:
        model = await self._find_model_by_id(account_id)
        if model is None:
            return None

        model.oauth_access_token_encrypted = self._encrypt(access_token)
        model.oauth_refresh_token_encrypted = self._encrypt(refresh_token)
        model.oauth_token_expires_at = token_expires_at
        model.updated_at = utc_now()

        await self._session.flush()
        return self._map_to_domain(model)

    async def _find_model_by_id(self, account_id: UUID) -> AccountModel | None:
        stmt = (
            select(AccountModel)
            .where(AccountModel.id == account_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _encrypt(self, value: str | None) -> str | None:
        return self._encryption.encrypt(value) if value else None

    def _decrypt(self, value: str | None) -> str | None:
        return self._encryption.decrypt(value) if value else None

    def _map_to_domain(self, model: AccountModel) -> Account:
        expires_at = model.oauth_token_expires_at
        return Account.reconstitute(
            id=model.id,
            email=model.email,
            password_hash=model.password_hash,
            name=model.name,
            role=model.role,
            is_master_admin=model.is_master_admin,
            email_verified=model.email_verified,
            refresh_token_hash=model.refresh_token_hash,
            oauth_provider=model.oauth_provider,
            oauth_provider_id=model.oauth_provider_id,
            oauth_access_token=self._decrypt(model.oauth_access_token_encrypted),
            oauth_refresh_token=self._decrypt(model.oauth_refresh_token_encrypted),
            oauth_token_expires_at=ensure_tz_aware(expires_at) if expires_at else None,
            created_at=ensure_tz_aware(model.created_at),
            updated_at=ensure_tz_aware(model.updated_at),
        )

    def _map_to_model(self, account: Account) -> AccountModel:
        return AccountModel(
            id=account.id,
            email=account.email,
            password_hash=account.password_hash,
            name=account.name,
            role=account.role.value,
            is_master_admin=account.is_master_admin,
            email_verified=account.email_verified,
            refresh_token_hash=account.refresh_token_hash,
            oauth_provider=account.oauth_provider,
            oauth_provider_id=account.oauth_provider_id,
            oauth_access_token_encrypted=self._encrypt(account.oauth_access_token),
            oauth_refresh_token_encrypted=self._encrypt(account.oauth_refresh_token),
            oauth_token_expires_at=account.oauth_token_expires_at,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )
