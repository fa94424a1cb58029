"""Domain-specific exceptions. Pure domain layer — no infrastructure."""


class DomainError(Exception):
    """Base for all domain-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DomainValidationError(DomainError):
    """Raised when input violates document rules (type, name, size, sender)."""


class DocumentNotFoundError(DomainError):
    """Raised when no stored document exists for the identifier."""


class PayloadTooLargeError(DomainError):
    """Raised when a document exceeds the configured maximum size. Never truncated."""
