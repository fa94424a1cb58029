"""Audit API: paged query and CSV export, admin only."""

import pytest

from vault_api_helpers import pdf_upload


async def _seed(client, container, admin_headers):
    document_id = (await client.post("/documents", files=pdf_upload())).json()["id"]
    await container.tasks.drain()
    await client.get(f"/documents/{document_id}", headers=admin_headers)
    await container.tasks.drain()
    return document_id


@pytest.mark.asyncio
async def test_query_returns_newest_first_with_paging(client, container, admin_headers):
    document_id = await _seed(client, container, admin_headers)

    r = await client.get("/audit", headers=admin_headers)
    assert r.status_code == 200
    page = r.json()
    assert page["total"] == 2
    assert page["limit"] == 50
    assert page["skip"] == 0
    assert [log["action"] for log in page["logs"]] == ["file_download", "file_upload"]
    assert page["logs"][0]["actor_email"] == "admin@z.com"
    assert page["logs"][0]["target_id"] == document_id


@pytest.mark.asyncio
async def test_query_filters_and_clamps(client, container, admin_headers):
    await _seed(client, container, admin_headers)
    r = await client.get(
        "/audit",
        params={"action": "file_upload", "limit": 1000, "skip": -3},
        headers=admin_headers,
    )
    page = r.json()
    assert page["total"] == 1
    assert page["limit"] == 200
    assert page["skip"] == 0


@pytest.mark.asyncio
async def test_export_is_csv_attachment(client, container, admin_headers):
    await _seed(client, container, admin_headers)
    r = await client.get("/audit/export", headers=admin_headers)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment" in r.headers["content-disposition"]
    lines = r.text.split("\n")[:-1]
    assert len(lines) == 3
    assert lines[0].startswith('"Timestamp","Action"')


@pytest.mark.asyncio
async def test_audit_requires_admin(client):
    assert (await client.get("/audit")).status_code == 401
    assert (await client.get("/audit/export")).status_code == 401
