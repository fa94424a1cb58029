"""Domain validators. Pure validation functions."""

from docvault.domain.validators.document_validator import (
    normalize_email,
    validate_content_type,
    validate_document_id,
    validate_filename,
    validate_payload_size,
    validate_upload,
)

__all__ = [
    "normalize_email",
    "validate_content_type",
    "validate_document_id",
    "validate_filename",
    "validate_payload_size",
    "validate_upload",
]
