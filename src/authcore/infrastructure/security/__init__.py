from authcore.infrastructure.security.aes_gcm_encryption_service import (
    AesGcmEncryptionService,
)

__all__ = ["AesGcmEncryptionService"]
