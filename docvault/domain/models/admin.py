"""Admin credential domain model."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class AdminCredential:
    """
    Admin identity. password is a pbkdf2_sha256 hash, or legacy plaintext that is
    upgraded to a hash on first successful login.
    """

    email: str
    password: str
    verified: bool = False
    created_at: Optional[datetime] = None
