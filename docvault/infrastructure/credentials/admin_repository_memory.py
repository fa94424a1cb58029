"""In-memory admin credential repository. For tests or single-node."""

import threading
from dataclasses import replace
from typing import Iterable, List, Optional

from docvault.domain.models.admin import AdminCredential


class InMemoryAdminCredentialRepository:
    def __init__(self, credentials: Iterable[AdminCredential] = ()) -> None:
        self._lock = threading.Lock()
        self._by_email: dict[str, AdminCredential] = {c.email.lower(): c for c in credentials}

    async def get_by_email(self, email: str) -> Optional[AdminCredential]:
        with self._lock:
            found = self._by_email.get(email.lower())
            return replace(found) if found else None

    async def update_password(self, email: str, password: str) -> None:
        with self._lock:
            found = self._by_email.get(email.lower())
            if found is not None:
                found.password = password

    async def list_all(self) -> List[AdminCredential]:
        with self._lock:
            return [replace(c) for c in self._by_email.values()]

    async def add(self, credential: AdminCredential) -> None:
        with self._lock:
            self._by_email[credential.email.lower()] = replace(credential)
