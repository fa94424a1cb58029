# docvault/infrastructure/database/models.py

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    JSON,
    LargeBinary,
    String,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB

from docvault.infrastructure.database.session import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class BlobFile(Base):
    """One stored ciphertext stream. Rows exist only for fully committed writes."""

    __tablename__ = "blob_files"

    id = Column(String(32), primary_key=True)
    filename = Column(String, nullable=False)
    length = Column(Integer, nullable=False)
    chunk_size = Column(Integer, nullable=False)
    chunk_count = Column(Integer, nullable=False)
    upload_date = Column(DateTime(timezone=True), nullable=False, index=True)
    metadata_ = Column("metadata", JSONType, nullable=True)


class BlobChunk(Base):
    __tablename__ = "blob_chunks"

    file_id = Column(String(32), ForeignKey("blob_files.id", ondelete="CASCADE"), primary_key=True)
    n = Column(Integer, primary_key=True)
    data = Column(LargeBinary, nullable=False)


class DocumentMetadataRow(Base):
    __tablename__ = "document_metadata"

    document_id = Column(String(32), primary_key=True)
    filename = Column(String, nullable=False)
    upload_date = Column(DateTime(timezone=True), nullable=True)
    sender = Column(String, nullable=True)
    uploaded_by = Column(String, nullable=True)
    fields = Column(JSONType, nullable=True)


class ViewerAckRow(Base):
    """At most one row per (document, normalized viewer); the unique constraint makes append-if-absent atomic."""

    __tablename__ = "viewer_acks"
    __table_args__ = (
        UniqueConstraint("document_id", "viewer_key", name="uq_viewer_acks_document_viewer"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(String(32), nullable=False, index=True)
    viewer_key = Column(String, nullable=False)
    viewer_identity = Column(String, nullable=False)
    acknowledged_at = Column(DateTime(timezone=True), nullable=False)


class AuditLogRow(Base):
    """Write-once audit ledger."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String, nullable=False, index=True)
    actor_email = Column(String, nullable=True, index=True)
    ip = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    target_id = Column(String, nullable=True)
    target_name = Column(String, nullable=True)
    metadata_ = Column("metadata", JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)


class AdminUserRow(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    password = Column(String, nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=True)
