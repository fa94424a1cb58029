"""Domain layer: models, schemas, validators, exceptions. Pure business logic only."""

from docvault.domain.exceptions import (
    DocumentNotFoundError,
    DomainError,
    DomainValidationError,
    PayloadTooLargeError,
)
from docvault.domain.models import (
    AdminCredential,
    DocumentListing,
    DocumentMetadata,
    DownloadedDocument,
    FormField,
    ViewerAck,
)
from docvault.domain.validators import normalize_email, validate_document_id, validate_upload

__all__ = [
    "AdminCredential",
    "DocumentListing",
    "DocumentMetadata",
    "DocumentNotFoundError",
    "DomainError",
    "DomainValidationError",
    "DownloadedDocument",
    "FormField",
    "PayloadTooLargeError",
    "ViewerAck",
    "normalize_email",
    "validate_document_id",
    "validate_upload",
]
