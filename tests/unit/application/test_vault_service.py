"""VaultService: upload/download/delete/list orchestration, detached side writes, bounded I/O."""

import asyncio
import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from docvault.application.exceptions import OperationTimeout, StoreError
from docvault.application.vault_service import VaultService
from docvault.domain.exceptions import (
    DocumentNotFoundError,
    DomainValidationError,
    PayloadTooLargeError,
)
from docvault.domain.models.document import FormField
from docvault.governance.audit_logger import AuditLogWriter
from docvault.governance.audit_models import AuditAction, RequestOrigin
from docvault.governance.audit_repository import InMemoryAuditRepository
from docvault.infrastructure.blobstore.blob_store_memory import InMemoryBlobStore
from docvault.infrastructure.ledger.ledger_memory import InMemoryMetadataLedger
from docvault.observability.metrics import MetricsCollector
from docvault.scalability.background import DetachedTaskRunner
from docvault.security.cipher import IV_LENGTH, CipherStreamCodec
from docvault.security.exceptions import DecryptionError

KEY = bytes(range(32))
PAYLOAD = b"%PDF-1.4 0123456789"
ORIGIN = RequestOrigin(actor_email="admin@z.com", ip="10.0.0.1", user_agent="pytest")


@pytest.fixture
def metrics():
    return MetricsCollector()


@pytest.fixture
def tasks(metrics):
    return DetachedTaskRunner(metrics_callback=metrics)


@pytest.fixture
def blob_store():
    return InMemoryBlobStore(chunk_size=16)


@pytest.fixture
def ledger():
    return InMemoryMetadataLedger()


@pytest.fixture
def audit_repository():
    return InMemoryAuditRepository()


@pytest.fixture
def notifier():
    n = AsyncMock()
    n.publish_upload_received = AsyncMock(return_value=None)
    return n


@pytest.fixture
def extractor():
    e = AsyncMock()
    e.extract = AsyncMock(return_value=[FormField("name", "Ada")])
    return e


@pytest.fixture
def codec():
    return CipherStreamCodec(KEY, max_plaintext_bytes=1024)


def _service(blob_store, ledger, codec, audit_repository, tasks, notifier, extractor, timeout=5.0):
    return VaultService(
        blob_store=blob_store,
        ledger=ledger,
        codec=codec,
        audit=AuditLogWriter(audit_repository),
        tasks=tasks,
        notifier=notifier,
        field_extractor=extractor,
        logger=logging.getLogger("test.vault"),
        io_timeout_seconds=timeout,
    )


@pytest.fixture
def service(blob_store, ledger, codec, audit_repository, tasks, notifier, extractor):
    return _service(blob_store, ledger, codec, audit_repository, tasks, notifier, extractor)


async def _upload(service, sender="x@y.com", content=PAYLOAD, filename="a.pdf"):
    return await service.upload(
        filename=filename,
        content_type="application/pdf",
        content=content,
        sender=sender,
        origin=ORIGIN,
    )


@pytest.mark.asyncio
async def test_upload_stores_ciphertext_not_plaintext(service, blob_store):
    document_id = await _upload(service)
    async with await blob_store.open_for_read(document_id) as handle:
        stored = b"".join([c async for c in handle.chunks()])
    assert PAYLOAD not in stored
    assert len(stored) > IV_LENGTH
    info = await blob_store.stat(document_id)
    assert info.metadata == {"sender": "x@y.com"}


@pytest.mark.asyncio
async def test_upload_runs_side_writes_detached(service, tasks, ledger, notifier, audit_repository):
    document_id = await _upload(service, sender="X@Y.com")
    await tasks.drain()

    row = await ledger.get(document_id)
    assert row.sender == "x@y.com"
    assert row.fields == [FormField("name", "Ada")]
    notifier.publish_upload_received.assert_awaited_once()
    assert notifier.publish_upload_received.await_args.args[:3] == (document_id, "a.pdf", "x@y.com")
    records, total = await audit_repository.query("file_upload", None, 10, 0)
    assert total == 1
    assert records[0].target_id == document_id


@pytest.mark.asyncio
async def test_upload_without_sender_skips_notification(service, tasks, notifier):
    await _upload(service, sender=None)
    await tasks.drain()
    notifier.publish_upload_received.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "filename, content_type, content, sender, error",
    [
        ("a.txt", "application/pdf", PAYLOAD, None, DomainValidationError),
        ("a.pdf", "text/plain", PAYLOAD, None, DomainValidationError),
        ("../a.pdf", "application/pdf", PAYLOAD, None, DomainValidationError),
        ("a.pdf", "application/pdf", b"", None, DomainValidationError),
        ("a.pdf", "application/pdf", PAYLOAD, "not-an-email", DomainValidationError),
        ("a.pdf", "application/pdf", b"x" * 1025, None, PayloadTooLargeError),
    ],
)
async def test_upload_validation(service, blob_store, filename, content_type, content, sender, error):
    with pytest.raises(error):
        await service.upload(
            filename=filename,
            content_type=content_type,
            content=content,
            sender=sender,
            origin=ORIGIN,
        )
    assert await blob_store.list() == []


@pytest.mark.asyncio
async def test_failed_blob_commit_aborts_and_propagates(service, blob_store, tasks):
    blob_store.close = AsyncMock(side_effect=StoreError("disk full"))
    with pytest.raises(StoreError):
        await _upload(service)
    assert tasks.pending == 0
    assert await blob_store.list() == []


@pytest.mark.asyncio
async def test_side_write_failures_do_not_change_response(
    blob_store, codec, audit_repository, tasks, notifier, extractor, metrics
):
    ledger = AsyncMock()
    ledger.record_upload = AsyncMock(side_effect=StoreError("ledger down"))
    notifier.publish_upload_received = AsyncMock(side_effect=ConnectionError("broker down"))
    audit_repository.save = AsyncMock(side_effect=StoreError("audit down"))
    service = _service(blob_store, ledger, codec, audit_repository, tasks, notifier, extractor)

    document_id = await _upload(service)
    await tasks.drain()

    assert len(document_id) == 32
    assert metrics.get("side_write_failed", category="ledger_record_upload") == 1
    assert metrics.get("side_write_failed", category="notification") == 1
    assert metrics.get("side_write_failed", category="audit") == 1


@pytest.mark.asyncio
async def test_download_round_trip_and_acknowledges(service, tasks, ledger, audit_repository):
    document_id = await _upload(service)
    await tasks.drain()

    document = await service.download(document_id, "admin@z.com", ORIGIN)
    await tasks.drain()

    assert document.content == PAYLOAD
    assert document.filename == "a.pdf"
    row = await ledger.get(document_id)
    assert [a.viewer_identity for a in row.viewer_acks] == ["admin@z.com"]
    _, total = await audit_repository.query(AuditAction.FILE_DOWNLOAD.value, None, 10, 0)
    assert total == 1


@pytest.mark.asyncio
async def test_download_reads_blob_info_from_open_handle(service, blob_store, tasks, ledger):
    document_id = await _upload(service, sender="x@y.com")
    await tasks.drain()
    blob_store.stat = AsyncMock(side_effect=AssertionError("stat should not be called"))

    document = await service.download(document_id, "admin@z.com", ORIGIN)
    await tasks.drain()

    assert document.filename == "a.pdf"
    blob_store.stat.assert_not_awaited()
    row = await ledger.get(document_id)
    assert row.sender == "x@y.com"


@pytest.mark.asyncio
async def test_download_unknown_id_raises_not_found(service):
    with pytest.raises(DocumentNotFoundError):
        await service.download("0" * 32, "admin@z.com", ORIGIN)


@pytest.mark.asyncio
async def test_download_malformed_id_raises_validation(service):
    with pytest.raises(DomainValidationError):
        await service.download("../etc/passwd", "admin@z.com", ORIGIN)


@pytest.mark.asyncio
async def test_download_tampered_blob_raises_decryption_error(service, blob_store, codec, tasks):
    tampered = bytearray(codec.encode(PAYLOAD))
    tampered[IV_LENGTH + 3] ^= 0x80
    handle = await blob_store.open_for_write("a.pdf")
    await blob_store.write(handle, bytes(tampered))
    document_id = await blob_store.close(handle)

    with pytest.raises(DecryptionError):
        await service.download(document_id, "admin@z.com", ORIGIN)
    await tasks.drain()
    assert tasks.pending == 0


@pytest.mark.asyncio
async def test_download_oversized_blob_raises_payload_too_large(service, blob_store, codec):
    handle = await blob_store.open_for_write("big.pdf")
    await blob_store.write(handle, b"\x00" * (codec.max_ciphertext_bytes + 16))
    document_id = await blob_store.close(handle)
    with pytest.raises(PayloadTooLargeError):
        await service.download(document_id, "admin@z.com", ORIGIN)


@pytest.mark.asyncio
async def test_download_releases_handle_on_failure(service, blob_store):
    handle = AsyncMock()

    async def failing_chunks():
        raise StoreError("chunk missing")
        yield b""  # pragma: no cover

    handle.chunks = failing_chunks
    handle.info = SimpleNamespace(filename="a.pdf", metadata=None)
    blob_store.open_for_read = AsyncMock(return_value=handle)
    with pytest.raises(StoreError):
        await service.download("a" * 32, "admin@z.com", ORIGIN)
    handle.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_slow_store_raises_operation_timeout(
    blob_store, ledger, codec, audit_repository, tasks, notifier, extractor
):
    async def hang(*args, **kwargs):
        await asyncio.sleep(1)

    blob_store.list = hang
    service = _service(blob_store, ledger, codec, audit_repository, tasks, notifier, extractor, timeout=0.01)
    with pytest.raises(OperationTimeout):
        await service.list_documents("admin@z.com")


@pytest.mark.asyncio
async def test_per_call_timeout_overrides_default(service, blob_store):
    async def hang(*args, **kwargs):
        await asyncio.sleep(1)

    blob_store.list = hang
    with pytest.raises(OperationTimeout):
        await service.list_documents("admin@z.com", timeout=0.01)


@pytest.mark.asyncio
async def test_delete_removes_blob_and_ledger_row(service, tasks, blob_store, ledger):
    document_id = await _upload(service)
    await tasks.drain()
    await service.delete(document_id, ORIGIN)
    await tasks.drain()
    assert await blob_store.list() == []
    assert await ledger.get(document_id) is None


@pytest.mark.asyncio
async def test_delete_missing_blob_still_cleans_ledger_then_raises(service, ledger):
    orphan = "c" * 32
    await ledger.record_access(orphan, "orphan.pdf", None, "admin@z.com")
    with pytest.raises(DocumentNotFoundError):
        await service.delete(orphan, ORIGIN)
    assert await ledger.get(orphan) is None


@pytest.mark.asyncio
async def test_delete_survives_ledger_cleanup_failure(
    service, blob_store, ledger, tasks
):
    document_id = await _upload(service)
    await tasks.drain()
    ledger.delete_for_document = AsyncMock(side_effect=StoreError("ledger down"))
    await service.delete(document_id, ORIGIN)
    assert await blob_store.list() == []


@pytest.mark.asyncio
async def test_list_merges_sender_and_ack(service, tasks):
    with_sender = await _upload(service, sender="x@y.com")
    await asyncio.sleep(0.01)
    without_sender = await _upload(service, sender=None, filename="b.pdf")
    await tasks.drain()
    await service.download(with_sender, "admin@z.com", ORIGIN)
    await tasks.drain()

    listings = await service.list_documents("admin@z.com")
    assert [d.id for d in listings] == [without_sender, with_sender]
    by_id = {d.id: d for d in listings}
    assert by_id[with_sender].sender == "x@y.com"
    assert by_id[with_sender].acknowledged is True
    assert by_id[with_sender].acknowledged_at is not None
    assert by_id[without_sender].sender == "Unknown"
    assert by_id[without_sender].acknowledged is False

    other = await service.list_documents("someone@z.com")
    assert all(not d.acknowledged for d in other)
