# docvault/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from docvault.api.middleware import (
    AdmissionControlMiddleware,
    CorrelationIdMiddleware,
    RequestAuditMiddleware,
)
from docvault.api.routers import audit, auth, documents, health
from docvault.application.exceptions import ApplicationError, OperationTimeout, StoreError
from docvault.config.logging import configure_logging
from docvault.config.settings import get_settings
from docvault.core.container import ServiceContainer, build_container
from docvault.domain.exceptions import (
    DocumentNotFoundError,
    DomainError,
    DomainValidationError,
    PayloadTooLargeError,
)
from docvault.security.exceptions import (
    AuthError,
    DecryptionError,
    ForbiddenError,
    SecurityError,
)

logger = logging.getLogger(__name__)

GENERIC_UNAVAILABLE = "Service temporarily unavailable"
GENERIC_SERVER_ERROR = "Internal server error"


def _detail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})


def _register_exception_handlers(app: FastAPI, container: ServiceContainer) -> None:
    production = container.settings.is_production

    @app.exception_handler(DomainValidationError)
    async def domain_validation_error_handler(request, exc: DomainValidationError):
        return _detail(422, exc.message)

    @app.exception_handler(DocumentNotFoundError)
    async def not_found_error_handler(request, exc: DocumentNotFoundError):
        return _detail(404, exc.message)

    @app.exception_handler(PayloadTooLargeError)
    async def payload_too_large_error_handler(request, exc: PayloadTooLargeError):
        return _detail(413, exc.message)

    @app.exception_handler(DomainError)
    async def domain_error_handler(request, exc: DomainError):
        return _detail(400, exc.message)

    @app.exception_handler(AuthError)
    async def auth_error_handler(request, exc: AuthError):
        return JSONResponse(
            status_code=401,
            content={"detail": exc.message},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ForbiddenError)
    async def forbidden_error_handler(request, exc: ForbiddenError):
        return _detail(403, exc.message)

    @app.exception_handler(DecryptionError)
    async def decryption_error_handler(request, exc: DecryptionError):
        logger.error("decryption_failed", extra={"path": request.url.path, "error": exc.message})
        return _detail(422, exc.message)

    @app.exception_handler(SecurityError)
    async def security_error_handler(request, exc: SecurityError):
        logger.error("security_error", extra={"path": request.url.path, "error": exc.message})
        return _detail(500, GENERIC_SERVER_ERROR if production else exc.message)

    @app.exception_handler(StoreError)
    async def store_error_handler(request, exc: StoreError):
        logger.error(
            "store_unavailable",
            extra={
                "path": request.url.path,
                "error": exc.message,
                "timeout": isinstance(exc, OperationTimeout),
            },
        )
        return _detail(503, GENERIC_UNAVAILABLE if production else exc.message)

    @app.exception_handler(ApplicationError)
    async def application_error_handler(request, exc: ApplicationError):
        logger.error("application_error", extra={"path": request.url.path, "error": exc.message})
        return _detail(500, GENERIC_SERVER_ERROR if production else exc.message)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request, exc: Exception):
        logger.exception("unexpected_error", extra={"path": request.url.path})
        return _detail(500, GENERIC_SERVER_ERROR)


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    """Build the ASGI app around a container. Without one, settings come from the environment."""
    if container is None:
        settings = get_settings()
        configure_logging(settings.log_level)
        container = build_container(settings)
    settings = container.settings

    if not container.admission.enabled:
        logger.warning(
            "rate_limiting_disabled",
            extra={"environment": settings.environment},
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await container.startup()
        logger.info("app_started", extra={"environment": settings.environment})
        yield
        await container.shutdown()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.container = container

    # Last added runs first. Request flow: CorrelationId -> RequestAudit -> AdmissionControl.
    app.add_middleware(
        AdmissionControlMiddleware,
        controller=container.admission,
        trust_proxy_headers=settings.trust_proxy_headers,
    )
    app.add_middleware(RequestAuditMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app, container)

    # Routers: /health, /auth, /documents, /audit
    app.include_router(health.router)
    app.include_router(auth.router, prefix="/auth")
    app.include_router(documents.router, prefix="/documents")
    app.include_router(audit.router, prefix="/audit")
    return app
