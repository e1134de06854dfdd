"""Encryption service interface for the security domain."""

from abc import ABC, abstractmethod


class EncryptionService(ABC):
    """Domain service interface for encrypting secrets at rest."""

    @abstractmethod
    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a plaintext string into a self-contained text envelope.

        Parameters
        ----------
        plaintext
            The sensitive data to encrypt (must not be empty)

        Returns
        -------
        Ciphertext envelope safe to store in a text column

        Raises
        ------
        EncryptionError
            If encryption fails or the plaintext is empty
        InvalidEncryptionKeyError
            If the configured key is unusable
        """

    @abstractmethod
    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt an envelope produced by ``encrypt``.

        Parameters
        ----------
        ciphertext
            The encrypted envelope

        Returns
        -------
        Decrypted plaintext string

        Raises
        ------
        DecryptionError
            If decryption fails (wrong key, tampered or truncated data)
        """
