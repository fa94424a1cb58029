"""FastAPI dependency injection: container, services, principal, request origin."""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request

from docvault.application.login_service import LoginService
from docvault.application.vault_service import VaultService
from docvault.core.container import ServiceContainer
from docvault.core.context import actor_ctx
from docvault.governance.audit_logger import AuditLogWriter
from docvault.governance.audit_models import RequestOrigin
from docvault.security.credentials import Principal


def get_container(request: Request) -> ServiceContainer:
    """Return the container built at startup (app.state.container)."""
    return request.app.state.container


def get_vault_service(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> VaultService:
    return container.vault


def get_login_service(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> LoginService:
    return container.login


def get_audit_writer(
    container: Annotated[ServiceContainer, Depends(get_container)],
) -> AuditLogWriter:
    return container.audit


def require_admin(
    container: Annotated[ServiceContainer, Depends(get_container)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> Principal:
    """Verified admin principal. Raises AuthError (401) or ForbiddenError (403)."""
    principal = container.verifier.verify_bearer(authorization, require_admin=True)
    actor_ctx.set(principal.email or principal.subject)
    return principal


def optional_principal(
    container: Annotated[ServiceContainer, Depends(get_container)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> Optional[Principal]:
    """Upload principal: enforced only when require_upload_auth is set, otherwise read if present."""
    if container.settings.require_upload_auth:
        return require_admin(container, authorization)
    if not authorization:
        return None
    principal = container.verifier.verify_bearer(authorization, require_admin=False)
    actor_ctx.set(principal.email or principal.subject)
    return principal


def request_origin(request: Request) -> RequestOrigin:
    """IP and user agent for audit records. Actor is filled in by the route."""
    ip = getattr(request.state, "client_address", None)
    if ip is None and request.client:
        ip = request.client.host
    return RequestOrigin(ip=ip, user_agent=request.headers.get("user-agent"))
