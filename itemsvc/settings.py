from __future__ import annotations

import os
from dataclasses import dataclass, field

from .errors import ConfigError

# Cloud Map namespace the proxy resolves services in.
NAMESPACE = "dev"

STORE_BACKENDS = {"dynamodb", "sqlite"}
REGISTRY_BACKENDS = {"cloudmap", "static"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_str(name: str, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class Settings:
    # Core
    region: str | None = field(default_factory=lambda: _env_str("REGION"))
    port: int = field(default_factory=lambda: _env_int("PORT", 8080))
    log_level: str = field(default_factory=lambda: _env_str("LOG_LEVEL", "INFO"))

    # Front door
    table_name: str = field(default_factory=lambda: _env_str("DYNAMODB_TABLE", "Items"))
    store_backend: str = field(default_factory=lambda: _env_str("ITEMS_STORE_BACKEND", "dynamodb"))
    db_path: str = field(default_factory=lambda: _env_str("ITEMS_DB_PATH", "items.db"))

    # Discovery proxy
    service_name: str | None = field(default_factory=lambda: _env_str("CLOUDMAP_SERVICE_NAME"))
    namespace: str = NAMESPACE
    registry_backend: str = field(default_factory=lambda: _env_str("ITEMS_REGISTRY_BACKEND", "cloudmap"))
    static_endpoint: str | None = field(default_factory=lambda: _env_str("ITEMS_STATIC_ENDPOINT"))

    def require_service_name(self) -> str:
        if not self.service_name:
            raise ConfigError("CLOUDMAP_SERVICE_NAME is required")
        return self.service_name

    def validate_store_backend(self) -> str:
        backend = self.store_backend.lower()
        if backend not in STORE_BACKENDS:
            raise ConfigError(f"Unknown ITEMS_STORE_BACKEND '{self.store_backend}'")
        return backend

    def validate_registry_backend(self) -> str:
        backend = self.registry_backend.lower()
        if backend not in REGISTRY_BACKENDS:
            raise ConfigError(f"Unknown ITEMS_REGISTRY_BACKEND '{self.registry_backend}'")
        if backend == "static" and not self.static_endpoint:
            raise ConfigError("ITEMS_STATIC_ENDPOINT is required for the static registry")
        return backend
