"""Pydantic schemas for the vault and audit APIs. Strict validation, no DB or infrastructure."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class LoginRequest(BaseModel):
    """Admin login body. Email is normalized to lowercase."""

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class UploadResponse(BaseModel):
    id: str


class DocumentListItem(BaseModel):
    """One stored document as seen by the requesting admin."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    filename: str
    upload_date: datetime = Field(..., serialization_alias="uploadDate")
    sender: str
    acknowledged: bool
    acknowledged_at: Optional[datetime] = Field(None, serialization_alias="acknowledgedAt")


class DocumentListResponse(BaseModel):
    documents: List[DocumentListItem]


class DeleteResponse(BaseModel):
    message: str = "Document deleted"


class AuditLogItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    action: str
    actor_email: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime


class AuditLogPage(BaseModel):
    logs: List[AuditLogItem]
    total: int
    limit: int
    skip: int


class TokenResponse(BaseModel):
    token: str
