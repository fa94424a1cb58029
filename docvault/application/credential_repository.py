"""Admin credential repository protocol. Application layer depends on this; infrastructure implements it."""

from typing import List, Optional, Protocol

from docvault.domain.models.admin import AdminCredential


class AdminCredentialRepository(Protocol):
    async def get_by_email(self, email: str) -> Optional[AdminCredential]:
        ...

    async def update_password(self, email: str, password: str) -> None:
        """Replace the stored password representation (hash upgrade)."""
        ...

    async def list_all(self) -> List[AdminCredential]:
        ...
