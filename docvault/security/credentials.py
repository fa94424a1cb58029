"""Bearer-token verification and password hashing. No FastAPI."""

import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.hash import pbkdf2_sha256 as hasher

from docvault.security.exceptions import AuthError, ForbiddenError

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, decoded from a verified token."""

    subject: str
    email: Optional[str]
    is_admin: bool


class CredentialVerifier:
    """
    Issues and validates HS256 bearer tokens. Secret is passed in; no global state.
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expiration_minutes: int = 480,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._expiration = timedelta(minutes=expiration_minutes)

    def issue_token(self, subject: str, email: str, is_admin: bool = True) -> str:
        now = datetime.now(timezone.utc)
        claims: dict[str, Any] = {
            "sub": subject,
            "email": email,
            "is_admin": is_admin,
            "iat": now,
            "exp": now + self._expiration,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> Principal:
        """Raises AuthError if the token is invalid or expired."""
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.InvalidTokenError as e:
            raise AuthError("Invalid or expired token") from e
        subject = payload.get("sub")
        if not subject:
            raise AuthError("Invalid or expired token")
        return Principal(
            subject=str(subject),
            email=payload.get("email"),
            is_admin=payload.get("is_admin") is True,
        )

    def verify_bearer(self, authorization: Optional[str], require_admin: bool = True) -> Principal:
        """
        Validate an Authorization header value.
        AuthError when missing/invalid; ForbiddenError when admin scope is required but absent.
        """
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise AuthError("Authorization required")
        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            raise AuthError("Authorization required")
        principal = self.decode(token)
        if require_admin and not principal.is_admin:
            raise ForbiddenError("Admin access required")
        return principal


def hash_password(password: str) -> str:
    """Hash password with pbkdf2_sha256"""
    return hasher.hash(password)


def is_password_hash(stored: Optional[str]) -> bool:
    """True when the stored value is a recognised hash rather than legacy plaintext."""
    return bool(stored) and hasher.identify(stored)


def verify_password(password: str, stored: str) -> bool:
    """Verify password against hash"""
    try:
        return hasher.verify(password, stored)
    except (ValueError, TypeError):
        return False


def matches_legacy_plaintext(password: str, stored: str) -> bool:
    return hmac.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))
