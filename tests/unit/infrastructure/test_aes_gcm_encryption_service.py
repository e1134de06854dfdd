"""Unit tests for AesGcmEncryptionService."""

import base64

import pytest

from authcore.domain.security import (
    DecryptionError,
    EncryptionError,
    InvalidEncryptionKeyError,
)
from authcore.infrastructure.security import AesGcmEncryptionService
from tests.shared.fixtures.factories import TEST_ENCRYPTION_KEY


class TestAesGcmEncryptionService:
    """Test AES-GCM encryption service."""

    def setup_method(self):
        """Set up test fixtures."""
        self.service = AesGcmEncryptionService(TEST_ENCRYPTION_KEY)

    def test_encrypt_decrypt_roundtrip(self):
        """Encrypt then decrypt returns the original text."""
        encrypted = self.service.encrypt("ya29.provider-access-token")

        assert encrypted != "ya29.provider-access-token"
        assert self.service.decrypt(encrypted) == "ya29.provider-access-token"

    def test_roundtrip_large_unicode_payload(self):
        """Multi-kilobyte non-ASCII payloads survive the round trip."""
        plaintext = "tökén-" * 700
        assert self.service.decrypt(self.service.encrypt(plaintext)) == plaintext

    def test_envelope_layout(self):
        """The envelope is salt, iv and tag followed by the ciphertext."""
        plaintext = "hello"
        envelope = base64.b64decode(self.service.encrypt(plaintext))
        assert len(envelope) == 64 + 16 + 16 + len(plaintext)

    def test_encrypted_data_is_different_each_time(self):
        """The same plaintext produces different envelopes (fresh salt and IV)."""
        first = self.service.encrypt("same_text")
        second = self.service.encrypt("same_text")

        assert first != second
        assert self.service.decrypt(first) == "same_text"
        assert self.service.decrypt(second) == "same_text"

    def test_wrong_key_cannot_decrypt(self):
        """A service with another key fails with DecryptionError."""
        other = AesGcmEncryptionService("another-encryption-key-0123456789abcd")
        encrypted = self.service.encrypt("secret")

        with pytest.raises(DecryptionError, match="authentication tag"):
            other.decrypt(encrypted)

    def test_tampered_data_raises_error(self):
        """Flipping a ciphertext byte is detected by the GCM tag."""
        envelope = bytearray(base64.b64decode(self.service.encrypt("secret")))
        envelope[-1] ^= 0x01
        tampered = base64.b64encode(bytes(envelope)).decode("ascii")

        with pytest.raises(DecryptionError):
            self.service.decrypt(tampered)

    def test_truncated_envelope_raises_error(self):
        """Envelopes without any ciphertext are rejected."""
        truncated = base64.b64encode(b"\x00" * 96).decode("ascii")
        with pytest.raises(DecryptionError, match="truncated"):
            self.service.decrypt(truncated)

    def test_invalid_base64_raises_error(self):
        """Non-base64 input is rejected."""
        with pytest.raises(DecryptionError, match="base64"):
            self.service.decrypt("not base64 at all!")

    def test_empty_plaintext_is_rejected(self):
        """Encrypting an empty string raises EncryptionError."""
        with pytest.raises(EncryptionError, match="empty"):
            self.service.encrypt("")

    def test_short_key_is_rejected(self):
        """Keys shorter than 32 characters are refused at construction."""
        with pytest.raises(InvalidEncryptionKeyError):
            AesGcmEncryptionService("too-short")
