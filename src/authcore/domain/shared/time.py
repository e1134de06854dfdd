"""Time utilities for the domain layer."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def ensure_tz_aware(dt: datetime) -> datetime:
    """Ensure datetime is timezone-aware (UTC if naive)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def has_expired(expires_at: datetime, now: datetime | None = None) -> bool:
    """Return True once ``now`` is strictly past ``expires_at``.

    The expiry instant itself is still valid. One-time codes, reset tokens
    and the SQL filters of their repositories all follow this rule.
    """
    current = ensure_tz_aware(now) if now is not None else utc_now()
    return current > ensure_tz_aware(expires_at)
