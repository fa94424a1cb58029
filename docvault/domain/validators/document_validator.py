"""Validators for vault input rules. Pure functions, no infrastructure or DB access."""

import re
from typing import Optional

from docvault.domain.exceptions import DomainValidationError, PayloadTooLargeError

ALLOWED_CONTENT_TYPES = frozenset({"application/pdf"})
DOCUMENT_SUFFIX = ".pdf"
MAX_FILENAME_LENGTH = 255

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_DOCUMENT_ID_RE = re.compile(r"^[a-f0-9]{32}$")
_UNSAFE_FILENAME_CHARS = re.compile(r'[\x00-\x1f\x7f"\\/]')


def normalize_email(value: Optional[str], field_name: str = "email") -> Optional[str]:
    """Lowercase and validate an email. Empty/None means absent. Raises DomainValidationError if malformed."""
    if value is None or not value.strip():
        return None
    email = value.strip().lower()
    if len(email) > 320 or not _EMAIL_RE.match(email):
        raise DomainValidationError(f"{field_name} must be a valid email address")
    return email


def validate_filename(filename: Optional[str]) -> str:
    """Enforce a safe PDF filename: no path separators, quotes or control characters."""
    if not filename or not filename.strip():
        raise DomainValidationError("filename is required")
    name = filename.strip()
    if len(name) > MAX_FILENAME_LENGTH:
        raise DomainValidationError(f"filename must be at most {MAX_FILENAME_LENGTH} characters")
    if _UNSAFE_FILENAME_CHARS.search(name):
        raise DomainValidationError("filename contains invalid characters")
    if not name.lower().endswith(DOCUMENT_SUFFIX):
        raise DomainValidationError("Only PDF files are allowed")
    return name


def validate_content_type(content_type: Optional[str]) -> None:
    media_type = (content_type or "").split(";", 1)[0].strip().lower()
    if media_type not in ALLOWED_CONTENT_TYPES:
        raise DomainValidationError("Only PDF files are allowed")


def validate_payload_size(size: int, max_bytes: int) -> None:
    if size <= 0:
        raise DomainValidationError("Uploaded file is empty")
    if size > max_bytes:
        raise PayloadTooLargeError(f"Document exceeds maximum size of {max_bytes} bytes")


def validate_document_id(document_id: str) -> str:
    if not document_id or not _DOCUMENT_ID_RE.match(document_id):
        raise DomainValidationError("Invalid document ID format")
    return document_id


def validate_upload(
    filename: Optional[str],
    content_type: Optional[str],
    size: int,
    max_bytes: int,
) -> str:
    """
    Validate an incoming document: recognized type, safe name, within size bound.
    Returns the cleaned filename. Raises domain exceptions on violation.
    """
    name = validate_filename(filename)
    validate_content_type(content_type)
    validate_payload_size(size, max_bytes)
    return name
