"""Hashing helpers for opaque bearer secrets (refresh and reset tokens)."""

import hashlib
import hmac


def hash_token(token: str) -> str:
    """Return the SHA-256 hex digest stored in place of a raw token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def tokens_match(token: str, stored_hash: str | None) -> bool:
    """Constant-time check of a raw token against a stored digest."""
    if not stored_hash:
        return False
    return hmac.compare_digest(hash_token(token), stored_hash)
