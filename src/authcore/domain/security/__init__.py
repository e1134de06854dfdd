"""Security domain: encryption of secrets at rest."""

from authcore.domain.security.encryption_service import EncryptionService
from authcore.exceptions import (
    DecryptionError,
    EncryptionError,
    InvalidEncryptionKeyError,
    SecurityError,
)

__all__ = [
    "DecryptionError",
    "EncryptionError",
    "EncryptionService",
    "InvalidEncryptionKeyError",
    "SecurityError",
]
