"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
"""

import os
from dataclasses import dataclass, field

# --- Pagination defaults ---
# Module-level constants read at import time so FastAPI Query() defaults
# can reference them (Query defaults must be static at decoration time).
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "20"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS: comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Form definitions directory (None → FormStore default, forms/ from repo root)
    forms_dir: str | None = None

    # Logging
    log_level: str = "INFO"

    # Idle sessions older than this many minutes are purged.
    # 0 disables the background cleanup task.
    session_idle_minutes: int = 0

    # Seconds between background cleanup runs
    session_cleanup_interval: int = 300

    # Admin API key: shared secret for admin endpoints (None = disabled)
    admin_api_key: str | None = None

    # Response webhook: when set, completed responses are POSTed here
    # instead of being kept in memory.
    response_webhook_url: str | None = None
    response_webhook_timeout: float = 10.0


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` and related environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        forms_dir=os.getenv("SERVER_FORMS_DIR") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        session_idle_minutes=int(os.getenv("SESSION_IDLE_MINUTES", "0")),
        session_cleanup_interval=int(os.getenv("SESSION_CLEANUP_INTERVAL", "300")),
        admin_api_key=os.getenv("ADMIN_API_KEY") or None,
        response_webhook_url=os.getenv("RESPONSE_WEBHOOK_URL") or None,
        response_webhook_timeout=float(os.getenv("RESPONSE_WEBHOOK_TIMEOUT", "10")),
    )
