"""Composition root: build repositories and services from settings.

A host process creates one engine, one session maker and one
``NotificationDispatcher`` at startup, then one ``AuthContainer`` per
request around a fresh ``AsyncSession``::

    engine = create_engine(settings)
    await init_db(engine)
    sessions = create_session_factory(engine)
    dispatcher = create_dispatcher(settings)
    await dispatcher.start()

    async with sessions() as session:
        auth = AuthContainer(session, settings, dispatcher)
        async with auth.unit_of_work():
            result = await auth.authentication_service().admin_login(email, password)
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from authcore.application.notifications import (
    CodeNotifier,
    NotificationDispatcher,
    PendingDeliveries,
)
from authcore.application.services import (
    AuthenticationService,
    OAuthService,
    OtpService,
    PasswordResetService,
    TokenService,
)
from authcore.exceptions import BadInputError, RateLimitedError, UnauthorizedError
from authcore.infrastructure.email import EmailService
from authcore.infrastructure.persistence.sqlalchemy import (
    AccountRepositorySQLAlchemy,
    OtpRepositorySQLAlchemy,
    ResetTokenRepositorySQLAlchemy,
    create_tables,
)
from authcore.infrastructure.security import AesGcmEncryptionService
from authcore.services import JWTService, OneTimeCodeService, PasswordHashingService
from authcore_config.settings import Settings

logger = logging.getLogger(__name__)

# Rejections after which state written during the request (attempt
# counters, lockouts) must still be committed.
_COMMITTED_REJECTIONS = (UnauthorizedError, RateLimitedError, BadInputError)


# -----------------------------------------------------------------------------
# Process-wide resources
# -----------------------------------------------------------------------------


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async database engine for ``settings.database_url``."""
    return create_async_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


def create_session_factory(
    engine_or_settings: AsyncEngine | Settings,
) -> async_sessionmaker[AsyncSession]:
    """Create a session maker bound to an engine (built from settings if needed)."""
    engine = (
        engine_or_settings
        if isinstance(engine_or_settings, AsyncEngine)
        else create_engine(engine_or_settings)
    )
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Create the accounts, one-time code and reset token tables if missing."""
    await create_tables(engine)


def create_dispatcher(
    settings: Settings,
    notifier: CodeNotifier | None = None,
) -> NotificationDispatcher:
    """Build the code dispatcher, delivering over SMTP unless told otherwise."""
    return NotificationDispatcher(
        notifier or EmailService(settings),
        workers=settings.notification_workers,
        queue_size=settings.notification_queue_size,
        max_retries=settings.notification_max_retries,
    )


# -----------------------------------------------------------------------------
# Per-request container
# -----------------------------------------------------------------------------


class AuthContainer:
    """Repositories and services sharing one session (created on demand)."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings,
        dispatcher: NotificationDispatcher,
    ):
        self._session = session
        self._settings = settings
        self._deliveries = PendingDeliveries(dispatcher)

        # Cached instances (created on demand)
        self._encryption_service: AesGcmEncryptionService | None = None
        self._account_repo: AccountRepositorySQLAlchemy | None = None
        self._otp_repo: OtpRepositorySQLAlchemy | None = None
        self._reset_token_repo: ResetTokenRepositorySQLAlchemy | None = None
        self._jwt_service: JWTService | None = None
        self._password_service: PasswordHashingService | None = None
        self._token_service: TokenService | None = None
        self._otp_service: OtpService | None = None

    @property
    def session(self) -> AsyncSession:
        return self._session

    @property
    def settings(self) -> Settings:
        return self._settings

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[AuthContainer]:
        """Commit on success, roll back on failure.

        Rejected credentials, codes and input are committed before the
        error propagates, so failed attempts still count. Codes generated
        inside the block are handed to the dispatcher only once the commit
        has succeeded.
        """
        self._deliveries.hold()
        try:
            yield self
        except _COMMITTED_REJECTIONS:
            await self._commit()
            raise
        except Exception:
            self._deliveries.discard()
            await self._session.rollback()
            raise
        else:
            await self._commit()

    async def _commit(self) -> None:
        try:
            await self._session.commit()
        except Exception:
            self._deliveries.discard()
            raise
        self._deliveries.release()

    # --- infrastructure -----------------------------------------------------

    def encryption_service(self) -> AesGcmEncryptionService:
        if self._encryption_service is None:
            self._encryption_service = AesGcmEncryptionService(
                self._settings.encryption_key.get_secret_value(),
            )
        return self._encryption_service

    def account_repository(self) -> AccountRepositorySQLAlchemy:
        if self._account_repo is None:
            self._account_repo = AccountRepositorySQLAlchemy(
                self._session,
                self.encryption_service(),
            )
        return self._account_repo

    def otp_repository(self) -> OtpRepositorySQLAlchemy:
        if self._otp_repo is None:
            self._otp_repo = OtpRepositorySQLAlchemy(self._session)
        return self._otp_repo

    def reset_token_repository(self) -> ResetTokenRepositorySQLAlchemy:
        if self._reset_token_repo is None:
            self._reset_token_repo = ResetTokenRepositorySQLAlchemy(self._session)
        return self._reset_token_repo

    # --- stateless services -------------------------------------------------

    def jwt_service(self) -> JWTService:
        if self._jwt_service is None:
            self._jwt_service = JWTService(
                access_secret=self._settings.jwt_access_secret.get_secret_value(),
                refresh_secret=self._settings.jwt_refresh_secret.get_secret_value(),
                access_token_expire_minutes=self._settings.jwt_access_token_expire_minutes,
                refresh_token_expire_days=self._settings.jwt_refresh_token_expire_days,
            )
        return self._jwt_service

    def password_service(self) -> PasswordHashingService:
        if self._password_service is None:
            self._password_service = PasswordHashingService(
                rounds=self._settings.password_hash_rounds,
                min_length=self._settings.password_min_length,
            )
        return self._password_service

    def code_service(self) -> OneTimeCodeService:
        return OneTimeCodeService(rounds=self._settings.otp_hash_rounds)

    # --- application services -----------------------------------------------

    def token_service(self) -> TokenService:
        if self._token_service is None:
            self._token_service = TokenService(
                self.account_repository(),
                self.jwt_service(),
            )
        return self._token_service

    def otp_service(self) -> OtpService:
        if self._otp_service is None:
            self._otp_service = OtpService(
                account_repository=self.account_repository(),
                otp_repository=self.otp_repository(),
                code_service=self.code_service(),
                dispatcher=self._deliveries,
                expiry_minutes=self._settings.otp_expiry_minutes,
                signup_max_attempts=self._settings.otp_signup_max_attempts,
                password_reset_max_attempts=self._settings.otp_password_reset_max_attempts,
            )
        return self._otp_service

    def password_reset_service(self) -> PasswordResetService:
        return PasswordResetService(
            account_repository=self.account_repository(),
            token_repository=self.reset_token_repository(),
            otp_service=self.otp_service(),
            password_service=self.password_service(),
            token_expire_minutes=self._settings.reset_token_expire_minutes,
        )

    def authentication_service(self) -> AuthenticationService:
        return AuthenticationService(
            account_repository=self.account_repository(),
            password_service=self.password_service(),
            token_service=self.token_service(),
            otp_service=self.otp_service(),
        )

    def oauth_service(self) -> OAuthService:
        return OAuthService(self.account_repository())
