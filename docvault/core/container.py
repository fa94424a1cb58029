# docvault/core/container.py

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from docvault.application.blob_store import BlobStore
from docvault.application.credential_repository import AdminCredentialRepository
from docvault.application.login_service import LoginService
from docvault.application.metadata_ledger import MetadataLedger
from docvault.application.vault_service import FieldExtractor, Notifier, VaultService
from docvault.config.settings import AppSettings
from docvault.governance.audit_logger import AuditLogWriter
from docvault.governance.audit_repository import AuditRepository, InMemoryAuditRepository
from docvault.infrastructure.blobstore.blob_store_db import SqlBlobStore
from docvault.infrastructure.blobstore.blob_store_memory import InMemoryBlobStore
from docvault.infrastructure.cache.redis_client import RedisClient, RedisRateLimitBackend
from docvault.infrastructure.credentials.admin_repository_db import SqlAdminCredentialRepository
from docvault.infrastructure.credentials.admin_repository_memory import (
    InMemoryAdminCredentialRepository,
)
from docvault.infrastructure.database.audit_repository_db import SqlAuditRepository
from docvault.infrastructure.database.session import (
    create_engine,
    create_session_factory,
    init_models,
)
from docvault.infrastructure.extraction.pdf_fields import PdfFieldExtractor
from docvault.infrastructure.ledger.ledger_db import SqlMetadataLedger
from docvault.infrastructure.ledger.ledger_memory import InMemoryMetadataLedger
from docvault.infrastructure.messaging.rabbitmq_publisher import LoggingNotifier, RabbitMQPublisher
from docvault.observability.metrics import MetricsCollector
from docvault.scalability.background import DetachedTaskRunner
from docvault.scalability.rate_limiter import (
    AdmissionController,
    InMemoryRateLimitBackend,
    RateLimitBackend,
)
from docvault.security.cipher import CipherStreamCodec
from docvault.security.credentials import CredentialVerifier


@dataclass
class ServiceContainer:
    """Every component, built once at startup and handed to the app. Tests build their own."""

    settings: AppSettings
    codec: CipherStreamCodec
    blob_store: BlobStore
    ledger: MetadataLedger
    audit: AuditLogWriter
    credentials: AdminCredentialRepository
    verifier: CredentialVerifier
    admission: AdmissionController
    tasks: DetachedTaskRunner
    metrics: MetricsCollector
    notifier: Notifier
    vault: VaultService
    login: LoginService
    engine: Optional[AsyncEngine] = None
    redis: Optional[RedisClient] = None
    closeables: list[Any] = field(default_factory=list)

    async def startup(self) -> None:
        if self.engine is not None:
            await init_models(self.engine)

    async def shutdown(self) -> None:
        await self.tasks.drain()
        for resource in self.closeables:
            await resource.close()
        if self.redis is not None:
            await self.redis.close()
        if self.engine is not None:
            await self.engine.dispose()


def build_container(
    settings: AppSettings,
    *,
    blob_store: Optional[BlobStore] = None,
    ledger: Optional[MetadataLedger] = None,
    audit_repository: Optional[AuditRepository] = None,
    credentials: Optional[AdminCredentialRepository] = None,
    rate_limit_backend: Optional[RateLimitBackend] = None,
    notifier: Optional[Notifier] = None,
    field_extractor: Optional[FieldExtractor] = None,
    metrics: Optional[MetricsCollector] = None,
) -> ServiceContainer:
    """
    Wire components from settings. Unset URLs select in-memory backends; any
    keyword argument replaces the corresponding component.
    Raises ConfigurationError when the encryption key is unusable.
    """
    logger = logging.getLogger("docvault")
    codec = CipherStreamCodec.from_hex(settings.encryption_key, settings.max_document_bytes)
    metrics = metrics or MetricsCollector()

    engine = None
    if settings.database_url and (
        blob_store is None or ledger is None or audit_repository is None or credentials is None
    ):
        engine = create_engine(settings.database_url)
        session_factory = create_session_factory(engine)
        blob_store = blob_store or SqlBlobStore(session_factory, chunk_size=settings.blob_chunk_size)
        ledger = ledger or SqlMetadataLedger(session_factory)
        audit_repository = audit_repository or SqlAuditRepository(session_factory)
        credentials = credentials or SqlAdminCredentialRepository(session_factory)
    blob_store = blob_store or InMemoryBlobStore(chunk_size=settings.blob_chunk_size)
    ledger = ledger or InMemoryMetadataLedger()
    audit_repository = audit_repository or InMemoryAuditRepository()
    credentials = credentials or InMemoryAdminCredentialRepository()

    redis_client = None
    if rate_limit_backend is None and settings.redis_url:
        redis_client = RedisClient(settings.redis_url)
        rate_limit_backend = RedisRateLimitBackend(redis_client)
    admission = AdmissionController(
        rate_limit_backend or InMemoryRateLimitBackend(),
        enabled=settings.rate_limit_enabled,
        metrics_callback=metrics,
    )

    closeables: list[Any] = []
    if notifier is None:
        if settings.rabbitmq_url:
            notifier = RabbitMQPublisher(settings.rabbitmq_url, settings.notification_exchange)
        else:
            notifier = LoggingNotifier(logger)
        closeables.append(notifier)

    tasks = DetachedTaskRunner(metrics_callback=metrics, timeout_seconds=settings.io_timeout_seconds)
    audit = AuditLogWriter(audit_repository)
    verifier = CredentialVerifier(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expiration_minutes=settings.jwt_expiration_minutes,
    )
    vault = VaultService(
        blob_store=blob_store,
        ledger=ledger,
        codec=codec,
        audit=audit,
        tasks=tasks,
        notifier=notifier,
        field_extractor=field_extractor or PdfFieldExtractor(),
        logger=logging.getLogger("docvault.vault"),
        io_timeout_seconds=settings.io_timeout_seconds,
    )
    login = LoginService(
        repository=credentials,
        verifier=verifier,
        audit=audit,
        tasks=tasks,
        logger=logging.getLogger("docvault.login"),
    )
    return ServiceContainer(
        settings=settings,
        codec=codec,
        blob_store=blob_store,
        ledger=ledger,
        audit=audit,
        credentials=credentials,
        verifier=verifier,
        admission=admission,
        tasks=tasks,
        metrics=metrics,
        notifier=notifier,
        vault=vault,
        login=login,
        engine=engine,
        redis=redis_client,
        closeables=closeables,
    )
