# scripts/migrate_admin_passwords.py
"""Hash every legacy plaintext admin password in one pass. Safe to re-run."""
import sys
from pathlib import Path

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio
import logging

from docvault.application.credential_repository import AdminCredentialRepository
from docvault.config.logging import configure_logging
from docvault.config.settings import get_settings
from docvault.infrastructure.credentials.admin_repository_db import SqlAdminCredentialRepository
from docvault.infrastructure.database.session import create_engine, create_session_factory
from docvault.security.credentials import hash_password, is_password_hash

logger = logging.getLogger("docvault.migrate_admin_passwords")


async def migrate_legacy_passwords(repository: AdminCredentialRepository) -> int:
    """Returns how many passwords were rewritten."""
    migrated = 0
    for admin in await repository.list_all():
        if not admin.password or is_password_hash(admin.password):
            continue
        await repository.update_password(admin.email, hash_password(admin.password))
        logger.info("admin_password_migrated", extra={"email": admin.email})
        migrated += 1
    return migrated


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.database_url:
        raise SystemExit("DATABASE_URL is not set")
    engine = create_engine(settings.database_url)
    try:
        repository = SqlAdminCredentialRepository(create_session_factory(engine))
        migrated = await migrate_legacy_passwords(repository)
    finally:
        await engine.dispose()
    print(f"Migrated {migrated} admin password(s)")


if __name__ == "__main__":
    asyncio.run(main())
