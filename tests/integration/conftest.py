"""Fixtures for integration tests against a real database session."""

from contextlib import asynccontextmanager

import pytest

from authcore.container import AuthContainer
from authcore.infrastructure.security import AesGcmEncryptionService
from authcore_config.settings import Settings
from tests.shared.fixtures.database import (  # noqa: F401
    async_engine,
    db_session,
    file_session_factory,
    session_factory,
)
from tests.shared.fixtures.factories import (
    TEST_ACCESS_SECRET,
    TEST_ENCRYPTION_KEY,
    TEST_REFRESH_SECRET,
)
from tests.shared.fixtures.notifications import recording_dispatcher


@pytest.fixture
def settings() -> Settings:
    """Settings with cheap bcrypt work factors."""
    return Settings(
        jwt_access_secret=TEST_ACCESS_SECRET,
        jwt_refresh_secret=TEST_REFRESH_SECRET,
        encryption_key=TEST_ENCRYPTION_KEY,
        password_hash_rounds=4,
        otp_hash_rounds=4,
        smtp_enabled=False,
    )


@pytest.fixture
def encryption_service() -> AesGcmEncryptionService:
    return AesGcmEncryptionService(TEST_ENCRYPTION_KEY)


@pytest.fixture
def dispatcher():
    """Dispatcher double that records every queued delivery."""
    return recording_dispatcher()


@pytest.fixture
def open_container(session_factory, settings, dispatcher):  # noqa: F811
    """Open one container per simulated request, each with its own session."""

    @asynccontextmanager
    async def _open():
        async with session_factory() as session:
            yield AuthContainer(session, settings, dispatcher)

    return _open


@pytest.fixture
def open_file_container(file_session_factory, settings, dispatcher):  # noqa: F811
    """Like open_container, but every request gets its own connection."""

    @asynccontextmanager
    async def _open():
        async with file_session_factory() as session:
            yield AuthContainer(session, settings, dispatcher)

    return _open
