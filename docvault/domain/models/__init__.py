"""Domain models. Pure business entities."""

from docvault.domain.models.admin import AdminCredential
from docvault.domain.models.document import (
    UNKNOWN_SENDER,
    DocumentListing,
    DocumentMetadata,
    DownloadedDocument,
    FormField,
    ViewerAck,
    normalize_identity,
)

__all__ = [
    "AdminCredential",
    "DocumentListing",
    "DocumentMetadata",
    "DownloadedDocument",
    "FormField",
    "UNKNOWN_SENDER",
    "ViewerAck",
    "normalize_identity",
]
