"""Documents API router: upload, list, download, delete."""

from typing import Annotated, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile

from docvault.api.dependencies import (
    get_vault_service,
    optional_principal,
    request_origin,
    require_admin,
)
from docvault.application.vault_service import VaultService
from docvault.domain.schemas.document import (
    DeleteResponse,
    DocumentListItem,
    DocumentListResponse,
    UploadResponse,
)
from docvault.governance.audit_models import RequestOrigin
from docvault.security.credentials import Principal

router = APIRouter()


def _identity(principal: Principal) -> str:
    return principal.email or principal.subject


def _content_disposition(filename: str) -> str:
    """Attachment header. Non-ASCII names get an ASCII fallback plus an RFC 5987 filename*."""
    if filename.isascii():
        return f'attachment; filename="{filename}"'
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def _with_actor(origin: RequestOrigin, principal: Optional[Principal]) -> RequestOrigin:
    if principal is None:
        return origin
    return RequestOrigin(actor_email=_identity(principal), ip=origin.ip, user_agent=origin.user_agent)


@router.post("", response_model=UploadResponse)
async def upload_document(
    file: Annotated[UploadFile, File()],
    sender: Annotated[Optional[str], Form()] = None,
    principal: Annotated[Optional[Principal], Depends(optional_principal)] = None,
    origin: Annotated[RequestOrigin, Depends(request_origin)] = ...,
    vault: Annotated[VaultService, Depends(get_vault_service)] = ...,
):
    """Encrypt and store a PDF. Returns the new document id."""
    # One byte past the bound is enough to reject oversize uploads.
    content = await file.read(vault.max_document_bytes + 1)
    document_id = await vault.upload(
        filename=file.filename,
        content_type=file.content_type,
        content=content,
        sender=sender,
        origin=_with_actor(origin, principal),
        uploaded_by=_identity(principal) if principal else None,
    )
    return UploadResponse(id=document_id)


@router.get("", response_model=DocumentListResponse)
async def list_documents(
    principal: Annotated[Principal, Depends(require_admin)],
    vault: Annotated[VaultService, Depends(get_vault_service)],
):
    """All documents, newest first, with this admin's acknowledgment state."""
    listings = await vault.list_documents(_identity(principal))
    return DocumentListResponse(
        documents=[
            DocumentListItem(
                id=d.id,
                filename=d.filename,
                upload_date=d.upload_date,
                sender=d.sender,
                acknowledged=d.acknowledged,
                acknowledged_at=d.acknowledged_at,
            )
            for d in listings
        ]
    )


@router.get("/{document_id}")
async def download_document(
    document_id: str,
    principal: Annotated[Principal, Depends(require_admin)],
    origin: Annotated[RequestOrigin, Depends(request_origin)],
    vault: Annotated[VaultService, Depends(get_vault_service)],
):
    """Decrypted bytes as an attachment. Acknowledges the document for this admin."""
    document = await vault.download(
        document_id,
        viewer_identity=_identity(principal),
        origin=_with_actor(origin, principal),
    )
    return Response(
        content=document.content,
        media_type="application/pdf",
        headers={"Content-Disposition": _content_disposition(document.filename)},
    )


@router.delete("/{document_id}", response_model=DeleteResponse)
async def delete_document(
    document_id: str,
    principal: Annotated[Principal, Depends(require_admin)],
    origin: Annotated[RequestOrigin, Depends(request_origin)],
    vault: Annotated[VaultService, Depends(get_vault_service)],
):
    await vault.delete(document_id, origin=_with_actor(origin, principal))
    return DeleteResponse()
