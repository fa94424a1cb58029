"""Domain schemas. Request/response and validation."""

from docvault.domain.schemas.document import (
    AuditLogItem,
    AuditLogPage,
    DeleteResponse,
    DocumentListItem,
    DocumentListResponse,
    LoginRequest,
    TokenResponse,
    UploadResponse,
)

__all__ = [
    "AuditLogItem",
    "AuditLogPage",
    "DeleteResponse",
    "DocumentListItem",
    "DocumentListResponse",
    "LoginRequest",
    "TokenResponse",
    "UploadResponse",
]
