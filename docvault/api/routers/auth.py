"""Auth API router: POST /auth/login."""

from typing import Annotated

from fastapi import APIRouter, Depends

from docvault.api.dependencies import get_login_service, request_origin
from docvault.application.login_service import LoginService
from docvault.domain.schemas.document import LoginRequest, TokenResponse
from docvault.governance.audit_models import RequestOrigin

router = APIRouter()


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    origin: Annotated[RequestOrigin, Depends(request_origin)],
    login_service: Annotated[LoginService, Depends(get_login_service)],
):
    token = await login_service.login(body.email, body.password, origin)
    return TokenResponse(token=token)
