"""One-time code generation and hashing."""

import secrets

import bcrypt

CODE_MIN = 100_000
CODE_SPAN = 900_000
# Largest multiple of CODE_SPAN below 2**24; values above it would skew
# the modulo toward low codes.
_REJECTION_LIMIT = 16_200_000


class OneTimeCodeService:
    """Generate 6-digit numeric codes and store them as bcrypt hashes.

    Codes are drawn from 3 CSPRNG bytes with rejection sampling, so every
    value in [100000, 999999] is equally likely.
    """

    def __init__(self, rounds: int = 10):
        self._rounds = rounds

    def generate(self) -> str:
        """Return a uniformly distributed 6-digit code."""
        while True:
            value = int.from_bytes(secrets.token_bytes(3), "big")
            if value < _REJECTION_LIMIT:
                return str(value % CODE_SPAN + CODE_MIN)

    def hash(self, code: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(code.encode("utf-8"), salt).decode("utf-8")

    def verify(self, code: str, code_hash: str) -> bool:
        """Compare a submitted code against its stored hash."""
        if not code or not code_hash:
            return False
        try:
            return bcrypt.checkpw(code.encode("utf-8"), code_hash.encode("utf-8"))
        except (ValueError, TypeError):
            return False
