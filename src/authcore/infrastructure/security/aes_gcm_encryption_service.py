"""AES-256-GCM encryption service implementation."""

import base64
import binascii
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from authcore.domain.security import (
    DecryptionError,
    EncryptionError,
    EncryptionService,
    InvalidEncryptionKeyError,
)

MIN_KEY_LENGTH = 32
SALT_LENGTH = 64
IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32
PBKDF2_ITERATIONS = 100_000

_HEADER_LENGTH = SALT_LENGTH + IV_LENGTH + TAG_LENGTH


class AesGcmEncryptionService(EncryptionService):
    """AES-256-GCM with a per-message PBKDF2-derived key.

    Envelope layout, base64 encoded::

        salt (64) | iv (16) | tag (16) | ciphertext

    Every call draws a fresh salt and IV, so encrypting the same plaintext
    twice yields different envelopes.
    """

    def __init__(self, secret_key: str):
        self._validate_key(secret_key)
        self._secret_key = secret_key.encode("utf-8")

    def encrypt(self, plaintext: str) -> str:
        self._validate_key(self._secret_key.decode("utf-8"))
        if not plaintext:
            msg = "Encryption failed: plaintext cannot be empty"
            raise EncryptionError(msg)

        try:
            salt = os.urandom(SALT_LENGTH)
            iv = os.urandom(IV_LENGTH)
            sealed = AESGCM(self._derive_key(salt)).encrypt(
                iv,
                plaintext.encode("utf-8"),
                None,
            )
        except Exception as e:
            msg = f"Encryption failed: {e}"
            raise EncryptionError(msg) from e

        # AESGCM appends the tag to the ciphertext
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return base64.b64encode(salt + iv + tag + ciphertext).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        self._validate_key(self._secret_key.decode("utf-8"))

        try:
            envelope = base64.b64decode(ciphertext, validate=True)
        except (binascii.Error, ValueError, TypeError) as e:
            msg = "Decryption failed: envelope is not valid base64"
            raise DecryptionError(msg) from e

        if len(envelope) <= _HEADER_LENGTH:
            msg = "Decryption failed: envelope is truncated"
            raise DecryptionError(msg)

        salt = envelope[:SALT_LENGTH]
        iv = envelope[SALT_LENGTH : SALT_LENGTH + IV_LENGTH]
        tag = envelope[SALT_LENGTH + IV_LENGTH : _HEADER_LENGTH]
        body = envelope[_HEADER_LENGTH:]

        try:
            plaintext = AESGCM(self._derive_key(salt)).decrypt(iv, body + tag, None)
            return plaintext.decode("utf-8")
        except InvalidTag as e:
            msg = "Decryption failed: authentication tag mismatch (wrong key or tampered data)"
            raise DecryptionError(msg) from e
        except Exception as e:
            msg = f"Decryption failed: {e}"
            raise DecryptionError(msg) from e

    def _derive_key(self, salt: bytes) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA512(),
            length=KEY_LENGTH,
            salt=salt,
            iterations=PBKDF2_ITERATIONS,
        )
        return kdf.derive(self._secret_key)

    @staticmethod
    def _validate_key(secret_key: str | None) -> None:
        if not secret_key or len(secret_key) < MIN_KEY_LENGTH:
            msg = f"Encryption key must be at least {MIN_KEY_LENGTH} characters"
            raise InvalidEncryptionKeyError(msg)
