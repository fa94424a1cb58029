"""
AES-256-CBC document codec with IV-prefixed framing.

At-rest layout: [IV 16B][CBC ciphertext]

The CBC plaintext is [payload][HMAC-SHA256 tag 32B]; the tag key is derived
from the vault key with HKDF, so a flipped byte anywhere in the stored blob
fails decoding instead of yielding altered plaintext.

Security Note:
    Never log plaintext, ciphertext or key material.
    Every encode draws a fresh IV from os.urandom; IVs are never cached.
"""
import os

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from docvault.domain.exceptions import PayloadTooLargeError
from docvault.security.exceptions import ConfigurationError, DecryptionError

IV_LENGTH = 16
KEY_LENGTH = 32  # AES-256
BLOCK_SIZE = 16
TAG_LENGTH = 32  # HMAC-SHA256
INTEGRITY_CONTEXT = b"docvault-integrity-v1"


def _derive_mac_key(key: bytes) -> bytes:
    hkdf = HKDF(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=None,
        info=INTEGRITY_CONTEXT,
    )
    return hkdf.derive(key)


def max_ciphertext_length(max_plaintext: int) -> int:
    """Largest encoded size a payload of max_plaintext bytes can produce."""
    padded = ((max_plaintext + TAG_LENGTH) // BLOCK_SIZE + 1) * BLOCK_SIZE
    return IV_LENGTH + padded


class CipherStreamCodec:
    """
    Whole-payload encode/decode. The key is passed in; no global state.
    """

    def __init__(self, key: bytes, max_plaintext_bytes: int) -> None:
        if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_LENGTH:
            raise ConfigurationError(
                f"Encryption key must be exactly {KEY_LENGTH} bytes"
            )
        self._key = bytes(key)
        self._mac_key = _derive_mac_key(self._key)
        self._max_plaintext = max_plaintext_bytes
        self._max_ciphertext = max_ciphertext_length(max_plaintext_bytes)

    @classmethod
    def from_hex(cls, hex_key: str | None, max_plaintext_bytes: int) -> "CipherStreamCodec":
        """Build from a hex-encoded key (ENCRYPTION_KEY). Fails fast if absent or wrong length."""
        if not hex_key or not hex_key.strip():
            raise ConfigurationError(
                "Encryption key is required. Set ENCRYPTION_KEY in environment."
            )
        try:
            key = bytes.fromhex(hex_key.strip())
        except ValueError as e:
            raise ConfigurationError("Encryption key must be hex-encoded") from e
        return cls(key, max_plaintext_bytes)

    @property
    def max_plaintext_bytes(self) -> int:
        return self._max_plaintext

    @property
    def max_ciphertext_bytes(self) -> int:
        return self._max_ciphertext

    def _tag(self, payload: bytes) -> bytes:
        mac = hmac.HMAC(self._mac_key, hashes.SHA256())
        mac.update(payload)
        return mac.finalize()

    def encode(self, plaintext: bytes) -> bytes:
        """Encrypt plaintext under a fresh random IV. Returns IV ‖ ciphertext."""
        if len(plaintext) > self._max_plaintext:
            raise PayloadTooLargeError(
                f"Document exceeds maximum size of {self._max_plaintext} bytes"
            )
        iv = os.urandom(IV_LENGTH)
        padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
        padded = padder.update(plaintext + self._tag(plaintext)) + padder.finalize()
        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        return iv + encryptor.update(padded) + encryptor.finalize()

    def decode(self, data: bytes) -> bytes:
        """Split IV from ciphertext, decrypt and verify. Raises DecryptionError on any corruption."""
        if len(data) > self._max_ciphertext:
            raise PayloadTooLargeError(
                f"Stored document exceeds maximum size of {self._max_plaintext} bytes"
            )
        if len(data) < IV_LENGTH:
            raise DecryptionError("Ciphertext shorter than initialization vector")
        iv, body = data[:IV_LENGTH], data[IV_LENGTH:]
        if not body or len(body) % BLOCK_SIZE:
            raise DecryptionError("Ciphertext length is not a multiple of the block size")

        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(body) + decryptor.finalize()
        unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
        try:
            framed = unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise DecryptionError("Invalid padding") from e

        if len(framed) < TAG_LENGTH:
            raise DecryptionError("Integrity tag missing")
        payload, tag = framed[:-TAG_LENGTH], framed[-TAG_LENGTH:]
        mac = hmac.HMAC(self._mac_key, hashes.SHA256())
        mac.update(payload)
        try:
            mac.verify(tag)
        except InvalidSignature as e:
            raise DecryptionError("Integrity check failed") from e
        return payload
