"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
Matching thresholds are read by ``priorauth_rulesets.constants`` from their
own env vars (``DRUG_STRICT_THRESHOLD``, ``OPTION_FUZZY_THRESHOLD``, ...).
"""

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS — comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Ruleset directory (None → RulesetStore default, which is v1/ from repo root)
    ruleset_dir: str | None = None

    # Logging
    log_level: str = "INFO"

    # Sessions idle longer than this are dropped by the reaper.
    # 0 disables the reaper.
    session_max_idle_hours: float = 24.0
    reaper_interval_seconds: float = 300.0

    # Admin API key — shared secret for admin endpoints (None = disabled)
    admin_api_key: str | None = None

    # Text classifier: "rule_based" or "llm"
    classifier: str = "rule_based"
    llm_base_url: str | None = None
    llm_api_key: str | None = None
    llm_model: str | None = None
    llm_timeout: float = 10.0


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` and feature environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        ruleset_dir=os.getenv("SERVER_RULESET_DIR") or None,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        session_max_idle_hours=float(os.getenv("SESSION_MAX_IDLE_HOURS", "24")),
        reaper_interval_seconds=float(os.getenv("REAPER_INTERVAL_SECONDS", "300")),
        admin_api_key=os.getenv("ADMIN_API_KEY") or None,
        classifier=os.getenv("CLASSIFIER", "rule_based").lower(),
        llm_base_url=os.getenv("LLM_BASE_URL") or None,
        llm_api_key=os.getenv("LLM_API_KEY") or None,
        llm_model=os.getenv("LLM_MODEL") or None,
        llm_timeout=float(os.getenv("LLM_TIMEOUT", "10")),
    )
