"""Time-ordered identifiers."""

import secrets
import time
from uuid import UUID

_VERSION_7 = 0x7
_VARIANT_RFC4122 = 0b10


def generate_uuid7() -> UUID:
    """Generate a UUIDv7: 48-bit Unix millisecond timestamp + 74 random bits.

    Identifiers generated later sort after earlier ones (at millisecond
    resolution), which keeps B-tree indexes append-mostly.
    """
    unix_ms = time.time_ns() // 1_000_000
    rand_a = secrets.randbits(12)
    rand_b = secrets.randbits(62)

    value = (unix_ms & ((1 << 48) - 1)) << 80
    value |= _VERSION_7 << 76
    value |= rand_a << 64
    value |= _VARIANT_RFC4122 << 62
    value |= rand_b
    return UUID(int=value)
