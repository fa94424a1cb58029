"""Vault application service. Orchestrates codec, blob store, ledger, audit and notifications."""

import logging
from typing import Any, Awaitable, Dict, List, Optional, Protocol

from docvault.application.blob_store import BlobStore
from docvault.application.exceptions import StoreError
from docvault.application.metadata_ledger import LedgerSummary, MetadataLedger, resolve_sender
from docvault.core.context import correlation_id_ctx
from docvault.domain.exceptions import DocumentNotFoundError, PayloadTooLargeError
from docvault.domain.models.document import DocumentListing, DownloadedDocument, FormField
from docvault.domain.validators.document_validator import (
    normalize_email,
    validate_document_id,
    validate_upload,
)
from docvault.governance.audit_logger import AuditLogWriter
from docvault.governance.audit_models import AuditAction, RequestOrigin
from docvault.scalability.background import DetachedTaskRunner
from docvault.scalability.timeouts import bounded
from docvault.security.cipher import CipherStreamCodec


class FieldExtractor(Protocol):
    async def extract(self, content: bytes) -> List[FormField]:
        ...


class Notifier(Protocol):
    async def publish_upload_received(
        self, document_id: str, filename: str, sender: str, correlation_id: Optional[str] = None
    ) -> None:
        ...


class VaultService:
    """
    Application-layer orchestration only. No HTTP, no FastAPI.
    Primary path: validate, encode, blob I/O (time-bounded). Ledger enrichment,
    audit and notifications are detached and can never fail the response.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        ledger: MetadataLedger,
        codec: CipherStreamCodec,
        audit: AuditLogWriter,
        tasks: DetachedTaskRunner,
        notifier: Notifier,
        field_extractor: FieldExtractor,
        logger: logging.Logger,
        io_timeout_seconds: Optional[float] = 10.0,
    ) -> None:
        self._blobs = blob_store
        self._ledger = ledger
        self._codec = codec
        self._audit = audit
        self._tasks = tasks
        self._notifier = notifier
        self._extractor = field_extractor
        self._logger = logger
        self._timeout = io_timeout_seconds

    @property
    def max_document_bytes(self) -> int:
        return self._codec.max_plaintext_bytes

    def _bounded(self, awaitable: Awaitable[Any], operation: str, timeout: Optional[float]):
        return bounded(awaitable, timeout if timeout is not None else self._timeout, operation)

    async def upload(
        self,
        *,
        filename: Optional[str],
        content_type: Optional[str],
        content: bytes,
        sender: Optional[str],
        origin: RequestOrigin,
        uploaded_by: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> str:
        """Validate, encrypt and store a document. Returns the new document id."""
        name = validate_upload(filename, content_type, len(content), self._codec.max_plaintext_bytes)
        sender = normalize_email(sender, "sender")

        encoded = self._codec.encode(content)
        metadata: Dict[str, Any] = {}
        if sender:
            metadata["sender"] = sender
        if uploaded_by:
            metadata["uploaded_by"] = uploaded_by

        handle = await self._blobs.open_for_write(name, metadata or None)
        try:
            await self._bounded(self._blobs.write(handle, encoded), "blob write", timeout)
            document_id = await self._bounded(self._blobs.close(handle), "blob commit", timeout)
        except BaseException:
            await self._blobs.abort(handle)
            raise

        self._logger.info(
            "document_uploaded",
            extra={"document_id": document_id, "size": len(content), "has_sender": bool(sender)},
        )

        self._tasks.spawn(
            "ledger_record_upload",
            self._record_upload(document_id, name, sender, content, uploaded_by),
        )
        if sender:
            self._tasks.spawn(
                "notification",
                self._notifier.publish_upload_received(
                    document_id, name, sender, correlation_id_ctx.get()
                ),
            )
        self._tasks.spawn(
            "audit",
            self._audit.record(
                action=AuditAction.FILE_UPLOAD,
                origin=origin,
                target_id=document_id,
                target_name=name,
                metadata={"size": len(content), "sender": sender},
            ),
        )
        return document_id

    async def _record_upload(
        self,
        document_id: str,
        filename: str,
        sender: Optional[str],
        content: bytes,
        uploaded_by: Optional[str],
    ) -> None:
        fields = await self._extractor.extract(content)
        await self._ledger.record_upload(document_id, filename, sender, fields, uploaded_by)

    async def download(
        self,
        document_id: str,
        viewer_identity: str,
        origin: RequestOrigin,
        timeout: Optional[float] = None,
    ) -> DownloadedDocument:
        """Fetch and decrypt a document, then acknowledge it for the viewer (detached)."""
        validate_document_id(document_id)
        handle = await self._bounded(self._blobs.open_for_read(document_id), "blob open", timeout)
        info = handle.info
        try:
            encoded = await self._bounded(self._read_all(handle), "blob read", timeout)
        finally:
            await handle.close()

        content = self._codec.decode(encoded)
        upload_sender = (info.metadata or {}).get("sender")

        self._logger.info("document_downloaded", extra={"document_id": document_id})
        self._tasks.spawn(
            "ledger_record_access",
            self._ledger.record_access(document_id, info.filename, upload_sender, viewer_identity),
        )
        self._tasks.spawn(
            "audit",
            self._audit.record(
                action=AuditAction.FILE_DOWNLOAD,
                origin=origin,
                target_id=document_id,
                target_name=info.filename,
            ),
        )
        return DownloadedDocument(document_id=document_id, filename=info.filename, content=content)

    async def _read_all(self, handle) -> bytes:
        limit = self._codec.max_ciphertext_bytes
        buffer = bytearray()
        async for chunk in handle.chunks():
            buffer.extend(chunk)
            if len(buffer) > limit:
                raise PayloadTooLargeError(f"Stored document exceeds maximum size of {limit} bytes")
        return bytes(buffer)

    async def delete(
        self,
        document_id: str,
        origin: RequestOrigin,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Delete blob and ledger row. Ledger cleanup is attempted even when the blob
        is already gone; DocumentNotFoundError is raised afterwards in that case.
        """
        validate_document_id(document_id)
        not_found: Optional[DocumentNotFoundError] = None
        try:
            await self._bounded(self._blobs.delete(document_id), "blob delete", timeout)
        except DocumentNotFoundError as e:
            not_found = e

        try:
            await self._bounded(self._ledger.delete_for_document(document_id), "ledger delete", timeout)
        except StoreError as e:
            self._logger.warning(
                "ledger_cleanup_failed",
                extra={"document_id": document_id, "error": e.message},
            )

        if not_found is not None:
            raise not_found

        self._logger.info("document_deleted", extra={"document_id": document_id})
        self._tasks.spawn(
            "audit",
            self._audit.record(
                action=AuditAction.FILE_DELETE,
                origin=origin,
                target_id=document_id,
            ),
        )

    async def list_documents(
        self,
        viewer_identity: Optional[str],
        timeout: Optional[float] = None,
    ) -> List[DocumentListing]:
        """All documents, newest first, with sender and this viewer's acknowledgment."""
        blobs = await self._bounded(self._blobs.list(), "blob list", timeout)
        upload_senders = {b.id: (b.metadata or {}).get("sender") for b in blobs}
        summaries = await self._bounded(
            self._ledger.list_with_sender_and_ack(
                [b.id for b in blobs], viewer_identity, upload_senders
            ),
            "ledger list",
            timeout,
        )
        listings = []
        for blob in blobs:
            summary = summaries.get(blob.id) or LedgerSummary(
                sender=resolve_sender(None, upload_senders.get(blob.id)), acknowledged=False
            )
            listings.append(
                DocumentListing(
                    id=blob.id,
                    filename=blob.filename,
                    upload_date=blob.upload_date,
                    sender=summary.sender,
                    acknowledged=summary.acknowledged,
                    acknowledged_at=summary.acknowledged_at,
                    metadata=blob.metadata,
                )
            )
        return listings
