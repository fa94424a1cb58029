"""Security: document cipher, bearer-token verification, password hashing. No FastAPI."""

from docvault.security.cipher import CipherStreamCodec
from docvault.security.credentials import CredentialVerifier, Principal

__all__ = [
    "CipherStreamCodec",
    "CredentialVerifier",
    "Principal",
]
