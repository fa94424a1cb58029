# docvault/config/settings.py

import binascii
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENCRYPTION_KEY_BYTES = 32


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_name: str = "docvault"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False
    version: str = "0.1.0"

    # --- Security ---
    jwt_secret: str = Field(..., min_length=32)
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 480
    require_upload_auth: bool = False

    # --- Vault ---
    encryption_key: str = Field(..., description="Hex-encoded 32-byte AES key")
    max_document_bytes: int = Field(20 * 1024 * 1024, gt=0)
    blob_chunk_size: int = Field(255 * 1024, gt=0)
    io_timeout_seconds: float = Field(10.0, gt=0)

    # --- Database (None: in-memory stores) ---
    database_url: Optional[str] = None

    # --- Redis (None: in-memory rate counters) ---
    redis_url: Optional[str] = None

    # --- Messaging (None: notifications are logged only) ---
    rabbitmq_url: Optional[str] = None
    notification_exchange: str = "vault_notifications"

    # --- Admission control ---
    rate_limit_enabled: bool = True
    trust_proxy_headers: bool = False

    # --- Observability ---
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @field_validator("encryption_key")
    @classmethod
    def encryption_key_must_be_32_hex_bytes(cls, v: str) -> str:
        v = v.strip()
        try:
            raw = binascii.unhexlify(v)
        except (binascii.Error, ValueError) as e:
            raise ValueError("encryption_key must be hex-encoded") from e
        if len(raw) != ENCRYPTION_KEY_BYTES:
            raise ValueError(
                f"encryption_key must decode to exactly {ENCRYPTION_KEY_BYTES} bytes, got {len(raw)}"
            )
        return v

    @model_validator(mode="after")
    def rate_limit_bypass_not_allowed_in_prod(self) -> "AppSettings":
        if self.environment == "prod" and not self.rate_limit_enabled:
            raise ValueError("rate_limit_enabled=false is not allowed when environment=prod")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"

    @property
    def encryption_key_bytes(self) -> bytes:
        return binascii.unhexlify(self.encryption_key)


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()
