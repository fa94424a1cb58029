"""Security-layer exceptions. Typed, no HTTP."""


class SecurityError(Exception):
    """Base for all security-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthError(SecurityError):
    """Raised when a credential is missing, invalid or expired."""


class ForbiddenError(SecurityError):
    """Raised when the caller is authenticated but lacks the required scope."""


class DecryptionError(SecurityError):
    """Raised when stored ciphertext is malformed, truncated or tampered with."""


class ConfigurationError(SecurityError):
    """Raised at startup when key material is missing or malformed."""
