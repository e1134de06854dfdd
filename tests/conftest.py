"""
Root conftest.py - shared fixtures and configuration for all tests.

Environment variables are loaded here before any test module imports
application code, so cached settings see the test secrets.

Integration tests run against an in-memory SQLite database by default.
Point TEST_DATABASE_URL at another async URL to run them elsewhere.
"""

import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load an optional test .env before anything reads settings
_env_file = Path(__file__).parent.parent / "config" / ".env.test"
if _env_file.exists():
    load_dotenv(_env_file, override=False)

os.environ.setdefault("JWT_ACCESS_SECRET", "test-access-secret-0123456789abcdef")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key-0123456789abcdef")
os.environ.setdefault("SMTP_ENABLED", "false")


@pytest.fixture(autouse=True, scope="session")
def clear_settings_cache_at_start():
    """Ensure settings are loaded fresh for the test session."""
    from authcore_config.settings import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()
