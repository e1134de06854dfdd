"""Password hashing service using bcrypt.

Provides secure password hashing and verification with configurable
strength validation.
"""

import bcrypt

from authcore.exceptions import WeakPasswordError


class PasswordHashingService:
    """Service for secure password hashing and verification.

    Uses bcrypt for password hashing with configurable work factor.
    Also provides password strength validation.

    Examples
    --------
    >>> service = PasswordHashingService()
    >>> hash = service.hash("my_secure_password")
    >>> service.verify("my_secure_password", hash)
    True
    >>> service.verify("wrong_password", hash)
    False
    """

    # bcrypt only reads the first 72 bytes of its input
    MAX_BYTES = 72

    def __init__(self, rounds: int = 12, min_length: int = 8):
        """Initialize the password hashing service.

        Parameters
        ----------
        rounds
            The bcrypt work factor (log2 of iterations). Default is 12.
        min_length
            Minimum password length in characters.
        """
        self._rounds = rounds
        self._min_length = min_length

    @property
    def min_length(self) -> int:
        return self._min_length

    def hash(self, password: str) -> str:
        """Hash a plaintext password.

        Parameters
        ----------
        password
            The plaintext password to hash

        Returns
        -------
        The bcrypt hash as a string

        Raises
        ------
        WeakPasswordError
            If password doesn't meet requirements
        """
        self.validate_strength(password)
        salt = bcrypt.gensalt(rounds=self._rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against a hash in constant time.

        Parameters
        ----------
        password
            The plaintext password to check
        password_hash
            The bcrypt hash to verify against

        Returns
        -------
        True if password matches, False otherwise
        """
        if not password or not password_hash:
            return False
        encoded = password.encode("utf-8")
        if len(encoded) > self.MAX_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, password_hash.encode("utf-8"))
        except (ValueError, TypeError):
            # Invalid hash format
            return False

    def validate_strength(self, password: str) -> None:
        """Validate that a password meets strength requirements.

        Current requirements:
        - At least ``min_length`` characters
        - At most 72 bytes once UTF-8 encoded

        Raises
        ------
        WeakPasswordError
            If password doesn't meet requirements
        """
        if not password:
            msg = "Password cannot be empty"
            raise WeakPasswordError(msg)

        if len(password) < self._min_length:
            msg = f"Password must be at least {self._min_length} characters"
            raise WeakPasswordError(msg)

        if len(password.encode("utf-8")) > self.MAX_BYTES:
            msg = f"Password cannot exceed {self.MAX_BYTES} bytes"
            raise WeakPasswordError(msg)

    def needs_rehash(self, password_hash: str) -> bool:
        """Check if a password hash was made with a different work factor.

        Parameters
        ----------
        password_hash
            The existing hash to check

        Returns
        -------
        True if the hash should be regenerated
        """
        try:
            # bcrypt format: $2b$XX$...
            parts = password_hash.split("$")
            if len(parts) >= 3:
                return int(parts[2]) != self._rounds
        except (ValueError, IndexError):
            pass
        return True
