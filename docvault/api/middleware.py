"""API middleware: correlation ID, admission control, request audit line."""

import logging
import re
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from docvault.core.context import correlation_id_ctx
from docvault.scalability.rate_limiter import (
    DELETE,
    DOWNLOAD,
    GENERAL,
    LOGIN,
    UPLOAD,
    AdmissionController,
    RateLimited,
)

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

_DOCUMENT_ITEM = re.compile(r"^/documents/[^/]+/?$")
_DOCUMENTS = re.compile(r"^/documents/?$")
_LOGIN = re.compile(r"^/auth/login/?$")


def classify_route(method: str, path: str) -> str:
    """Map a request to its limiter class. Unlisted routes get the general limiter only."""
    method = method.upper()
    if method == "POST" and _DOCUMENTS.match(path):
        return UPLOAD
    if method == "GET" and _DOCUMENT_ITEM.match(path):
        return DOWNLOAD
    if method == "DELETE" and _DOCUMENT_ITEM.match(path):
        return DELETE
    if method == "POST" and _LOGIN.match(path):
        return LOGIN
    return GENERAL


def client_address(request: Request, trust_proxy_headers: bool) -> str:
    if trust_proxy_headers:
        forwarded = request.headers.get(FORWARDED_FOR_HEADER)
        if forwarded:
            first_hop = forwarded.split(",")[0].strip()
            if first_hop:
                return first_hop
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Generate or preserve correlation ID; attach to request.state, response header, and logging context."""

    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id
        correlation_id_ctx.set(correlation_id)

        response = await call_next(request)
        response.headers[CORRELATION_HEADER] = correlation_id
        return response


class AdmissionControlMiddleware(BaseHTTPMiddleware):
    """Admit or reject before routing. Rejection is 429 with Retry-After; no handler runs."""

    def __init__(
        self,
        app: ASGIApp,
        controller: AdmissionController,
        trust_proxy_headers: bool = False,
    ) -> None:
        super().__init__(app)
        self._controller = controller
        self._trust_proxy_headers = trust_proxy_headers

    async def dispatch(self, request: Request, call_next) -> Response:
        route_class = classify_route(request.method, request.url.path)
        client = client_address(request, self._trust_proxy_headers)
        request.state.client_address = client
        try:
            await self._controller.admit(route_class, client)
        except RateLimited as e:
            logger.warning(
                "rate_limited",
                extra={"route_class": e.route_class, "client": client, "path": request.url.path},
            )
            return JSONResponse(
                status_code=429,
                content={"detail": e.message},
                headers={"Retry-After": str(e.retry_after_seconds)},
            )
        return await call_next(request)


class RequestAuditMiddleware(BaseHTTPMiddleware):
    """After response: one structured request_audit line (method, path, status, client)."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        client: Optional[str] = getattr(request.state, "client_address", None)
        logger.info(
            "request_audit",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "client": client or (request.client.host if request.client else None),
            },
        )
        return response
