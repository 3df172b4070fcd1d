"""Deterministic field-level encryption for personally identifiable attributes."""

from __future__ import annotations

from typing import overload

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..config import Settings


class CipherError(ValueError):
    """Raised when a stored value cannot be decrypted with the configured key."""


class FieldCipher:
    """AES-256-CBC cipher with a fixed IV producing hex ciphertext.

    The fixed IV makes ``encrypt`` deterministic: equal plaintexts always give
    equal ciphertexts. Storage relies on this for its uniqueness checks and the
    service relies on it for exact-match search on encrypted columns.
    """

    def __init__(self, key: bytes, iv: bytes) -> None:
        """Validate key material and build the underlying AES primitive."""
        if len(key) != 32:
            raise ValueError("field cipher key must be 32 bytes (AES-256)")
        if len(iv) != 16:
            raise ValueError("field cipher IV must be 16 bytes")
        self._cipher = Cipher(algorithms.AES(key), modes.CBC(iv))

    @classmethod
    def from_settings(cls, settings: Settings) -> "FieldCipher":
        """Build a cipher from the hex-encoded key and IV in ``settings``."""
        return cls(bytes.fromhex(settings.field_cipher_key), bytes.fromhex(settings.field_cipher_iv))

    @overload
    def encrypt(self, plaintext: str) -> str: ...

    @overload
    def encrypt(self, plaintext: None) -> None: ...

    def encrypt(self, plaintext: str | None) -> str | None:
        """Encrypt ``plaintext`` returning lowercase hex; ``None`` and ``""`` pass through."""
        if not plaintext:
            return plaintext
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
        encryptor = self._cipher.encryptor()
        return (encryptor.update(padded) + encryptor.finalize()).hex()

    @overload
    def decrypt(self, ciphertext: str) -> str: ...

    @overload
    def decrypt(self, ciphertext: None) -> None: ...

    def decrypt(self, ciphertext: str | None) -> str | None:
        """Invert :meth:`encrypt`.

        Raises
        ------
        CipherError
            When ``ciphertext`` is not hex, is not block aligned, or was
            produced with a different key.
        """
        if not ciphertext:
            return ciphertext
        try:
            decryptor = self._cipher.decryptor()
            padded = decryptor.update(bytes.fromhex(ciphertext)) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
        except ValueError as exc:
            raise CipherError("unable to decrypt field value") from exc
