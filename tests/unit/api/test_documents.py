"""Documents API end to end: upload, list, download, delete over the in-memory container."""

import pytest
from httpx import AsyncClient

from vault_api_helpers import pdf_upload

PAYLOAD = b"0123456789"


async def _upload(client: AsyncClient, container, sender="x@y.com", content=PAYLOAD):
    data = {"sender": sender} if sender else {}
    r = await client.post("/documents", files=pdf_upload(content), data=data)
    await container.tasks.drain()
    return r


@pytest.mark.asyncio
async def test_upload_then_list_shows_sender_unacknowledged(client, container, admin_headers):
    r = await _upload(client, container)
    assert r.status_code == 200
    document_id = r.json()["id"]

    r = await client.get("/documents", headers=admin_headers)
    assert r.status_code == 200
    documents = r.json()["documents"]
    assert len(documents) == 1
    doc = documents[0]
    assert doc["id"] == document_id
    assert doc["filename"] == "a.pdf"
    assert doc["sender"] == "x@y.com"
    assert doc["acknowledged"] is False
    assert doc["acknowledgedAt"] is None
    assert "uploadDate" in doc


@pytest.mark.asyncio
async def test_download_returns_original_bytes_and_acknowledges(client, container, admin_headers):
    document_id = (await _upload(client, container)).json()["id"]

    r = await client.get(f"/documents/{document_id}", headers=admin_headers)
    await container.tasks.drain()
    assert r.status_code == 200
    assert r.content == PAYLOAD
    assert r.headers["content-type"] == "application/pdf"
    assert r.headers["content-disposition"] == 'attachment; filename="a.pdf"'

    doc = (await client.get("/documents", headers=admin_headers)).json()["documents"][0]
    assert doc["acknowledged"] is True
    assert doc["acknowledgedAt"] is not None


@pytest.mark.asyncio
async def test_download_non_ascii_filename_sets_encoded_disposition(client, container, admin_headers):
    r = await client.post("/documents", files=pdf_upload(PAYLOAD, filename="отчёт.pdf"), data={"sender": "x@y.com"})
    await container.tasks.drain()
    assert r.status_code == 200
    document_id = r.json()["id"]

    r = await client.get(f"/documents/{document_id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.content == PAYLOAD
    assert r.headers["content-disposition"] == (
        "attachment; filename=\"_____.pdf\"; filename*=UTF-8''%D0%BE%D1%82%D1%87%D1%91%D1%82.pdf"
    )

    doc = (await client.get("/documents", headers=admin_headers)).json()["documents"][0]
    assert doc["filename"] == "отчёт.pdf"


@pytest.mark.asyncio
async def test_delete_then_download_and_delete_return_404(client, container, admin_headers):
    document_id = (await _upload(client, container)).json()["id"]

    r = await client.delete(f"/documents/{document_id}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Document deleted"}

    r = await client.get(f"/documents/{document_id}", headers=admin_headers)
    assert r.status_code == 404
    r = await client.delete(f"/documents/{document_id}", headers=admin_headers)
    assert r.status_code == 404
    assert r.json() == {"detail": "File not found"}


@pytest.mark.asyncio
async def test_list_without_token_returns_401(client):
    r = await client.get("/documents")
    assert r.status_code == 401
    assert "detail" in r.json()


@pytest.mark.asyncio
async def test_non_admin_token_returns_403(client, container):
    token = container.verifier.issue_token("user@z.com", "user@z.com", is_admin=False)
    r = await client.get("/documents", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_malformed_document_id_returns_422(client, admin_headers):
    r = await client.get("/documents/not-a-valid-id", headers=admin_headers)
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_upload_rejects_non_pdf(client):
    r = await client.post("/documents", files=pdf_upload(filename="a.txt", content_type="text/plain"))
    assert r.status_code == 422
    assert r.json()["detail"] == "Only PDF files are allowed"


@pytest.mark.asyncio
async def test_upload_rejects_empty_file(client):
    r = await client.post("/documents", files=pdf_upload(content=b""))
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_upload_over_limit_returns_413(client, settings):
    r = await client.post("/documents", files=pdf_upload(content=b"x" * (settings.max_document_bytes + 1)))
    assert r.status_code == 413


@pytest.mark.asyncio
async def test_upload_rejects_malformed_sender(client):
    r = await client.post("/documents", files=pdf_upload(), data={"sender": "nope"})
    assert r.status_code == 422


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    r = await client.get("/health", headers={"X-Correlation-ID": "corr-123"})
    assert r.headers["X-Correlation-ID"] == "corr-123"
