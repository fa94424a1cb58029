"""Governance: immutable audit logging, query and export. No FastAPI."""

from docvault.governance.audit_logger import AuditLogWriter
from docvault.governance.audit_models import AuditAction, AuditRecord, RequestOrigin
from docvault.governance.audit_repository import AuditRepository, InMemoryAuditRepository

__all__ = [
    "AuditAction",
    "AuditLogWriter",
    "AuditRecord",
    "AuditRepository",
    "InMemoryAuditRepository",
    "RequestOrigin",
]
