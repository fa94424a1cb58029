"""Immutable audit record model. Domain-level immutability."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class AuditAction(str, Enum):
    FILE_UPLOAD = "file_upload"
    FILE_DOWNLOAD = "file_download"
    FILE_DELETE = "file_delete"
    TEMPLATE_UPLOAD = "template_upload"
    TEMPLATE_DELETE = "template_delete"
    ADMIN_LOGIN = "admin_login"


@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable audit record: what, who, from where, on which target, when (UTC).
    """

    action: AuditAction
    actor_email: Optional[str]
    ip: Optional[str]
    user_agent: Optional[str]
    target_id: Optional[str]
    target_name: Optional[str]
    metadata: Optional[Dict[str, Any]]
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for JSON logging."""
        return {
            "action": self.action.value,
            "actor_email": self.actor_email,
            "ip": self.ip,
            "user_agent": self.user_agent,
            "target_id": self.target_id,
            "target_name": self.target_name,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class RequestOrigin:
    """Who and where a mutating request came from. Carried into audit records."""

    actor_email: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
