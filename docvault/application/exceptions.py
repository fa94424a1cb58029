"""Application-layer exceptions. Do not reuse domain exceptions."""


class ApplicationError(Exception):
    """Base for all application-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class StoreError(ApplicationError):
    """Raised when the blob store or ledger backend fails. Safe to retry the whole operation."""


class OperationTimeout(StoreError):
    """Raised when store I/O exceeds its time bound. Retryable."""
