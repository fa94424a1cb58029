"""Admin login: password check, one-time legacy plaintext upgrade, token issue."""

import logging

from docvault.application.credential_repository import AdminCredentialRepository
from docvault.application.exceptions import StoreError
from docvault.domain.exceptions import DomainValidationError
from docvault.domain.validators.document_validator import normalize_email
from docvault.governance.audit_logger import AuditLogWriter
from docvault.governance.audit_models import AuditAction, RequestOrigin
from docvault.scalability.background import DetachedTaskRunner
from docvault.security.credentials import (
    CredentialVerifier,
    hash_password,
    is_password_hash,
    matches_legacy_plaintext,
    verify_password,
)
from docvault.security.exceptions import AuthError


class LoginService:
    """
    Authenticates admins against the credential repository. A stored value that
    is not a recognised hash is legacy plaintext: on a match it is rewritten as a
    hash before the login returns. The rewrite is attempted once per login and
    its failure is logged, never raised.
    """

    def __init__(
        self,
        repository: AdminCredentialRepository,
        verifier: CredentialVerifier,
        audit: AuditLogWriter,
        tasks: DetachedTaskRunner,
        logger: logging.Logger,
    ) -> None:
        self._repository = repository
        self._verifier = verifier
        self._audit = audit
        self._tasks = tasks
        self._logger = logger

    async def login(self, email: str, password: str, origin: RequestOrigin) -> str:
        """Returns a signed bearer token. Raises AuthError on any credential failure."""
        try:
            normalized = normalize_email(email)
        except DomainValidationError as e:
            raise AuthError("Invalid email or password") from e
        if not normalized or not password:
            raise AuthError("Invalid email or password")

        admin = await self._repository.get_by_email(normalized)
        if admin is None:
            raise AuthError("Invalid email or password")
        if not admin.verified:
            raise AuthError("Please verify your email before logging in")

        if is_password_hash(admin.password):
            valid = verify_password(password, admin.password)
        else:
            valid = matches_legacy_plaintext(password, admin.password)
            if valid:
                await self._upgrade_legacy_password(admin.email, password)
        if not valid:
            self._logger.info("admin_login_rejected", extra={"email": normalized})
            raise AuthError("Incorrect password")

        token = self._verifier.issue_token(subject=admin.email, email=admin.email, is_admin=True)
        self._logger.info("admin_login", extra={"email": admin.email})
        self._tasks.spawn(
            "audit",
            self._audit.record(
                action=AuditAction.ADMIN_LOGIN,
                origin=RequestOrigin(
                    actor_email=admin.email, ip=origin.ip, user_agent=origin.user_agent
                ),
            ),
        )
        return token

    async def _upgrade_legacy_password(self, email: str, password: str) -> None:
        try:
            await self._repository.update_password(email, hash_password(password))
        except StoreError as e:
            self._logger.error(
                "legacy_password_upgrade_failed",
                extra={"email": email, "error": e.message},
            )
            return
        self._logger.info("legacy_password_upgraded", extra={"email": email})
