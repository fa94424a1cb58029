"""Shared builders for API tests: settings, in-memory container, multipart upload body."""

from unittest.mock import AsyncMock

from docvault.config.settings import AppSettings
from docvault.core.container import build_container
from docvault.domain.models.admin import AdminCredential
from docvault.infrastructure.credentials.admin_repository_memory import (
    InMemoryAdminCredentialRepository,
)
from docvault.security.credentials import hash_password

JWT_SECRET = "test-jwt-secret-at-least-32-characters-long"
ENCRYPTION_KEY = bytes(range(32)).hex()
ADMIN_EMAIL = "admin@z.com"
ADMIN_PASSWORD = "correct horse battery staple"


def make_settings(**overrides) -> AppSettings:
    values = {
        "jwt_secret": JWT_SECRET,
        "encryption_key": ENCRYPTION_KEY,
        "environment": "test",
        "max_document_bytes": 1024,
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


def make_container(settings: AppSettings, **components):
    components.setdefault(
        "credentials",
        InMemoryAdminCredentialRepository(
            [AdminCredential(email=ADMIN_EMAIL, password=hash_password(ADMIN_PASSWORD), verified=True)]
        ),
    )
    if "field_extractor" not in components:
        extractor = AsyncMock()
        extractor.extract = AsyncMock(return_value=[])
        components["field_extractor"] = extractor
    return build_container(settings, **components)


def pdf_upload(content: bytes = b"0123456789", filename: str = "a.pdf", content_type: str = "application/pdf"):
    return {"file": (filename, content, content_type)}
