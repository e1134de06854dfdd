"""Shared domain helpers."""

from authcore.domain.shared.ids import generate_uuid7
from authcore.domain.shared.time import ensure_tz_aware, has_expired, utc_now

__all__ = [
    "ensure_tz_aware",
    "generate_uuid7",
    "has_expired",
    "utc_now",
]
