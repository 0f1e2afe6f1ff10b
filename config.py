from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from dotenv import load_dotenv


DEFAULT_PORT = 3001
DEFAULT_ORIGINS = ["http://localhost:3000"]
DEFAULT_RATE_LIMIT_MAX = 100
DEFAULT_RATE_LIMIT_WINDOW = 15 * 60


# ---------------------- DATA CLASSES ----------------------

@dataclass
class Settings:
    supabase_url: str = ""
    supabase_key: str = ""
    port: int = DEFAULT_PORT
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))
    environment: str = "development"
    rate_limit_max: int = DEFAULT_RATE_LIMIT_MAX
    rate_limit_window_seconds: int = DEFAULT_RATE_LIMIT_WINDOW
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def has_credentials(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


# ---------------------- LOADING ----------------------

def _int_env(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, ""))
    except ValueError:
        return default


def parse_origins(raw: str) -> List[str]:
    """Split a comma separated FRONTEND_URL value, dropping blank entries."""
    return [o.strip() for o in raw.split(",") if o.strip()]


def load_settings(prefer_service_role: bool = False) -> Settings:
    """Build :class:`Settings` from the environment (and ``.env`` if present).

    The seed loader passes ``prefer_service_role=True`` so inserts can bypass
    row level security; it still falls back to the anon key.
    """
    load_dotenv()

    anon_key = os.getenv("SUPABASE_ANON_KEY", "")
    if prefer_service_role:
        key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or anon_key
    else:
        key = anon_key

    frontend_url = os.getenv("FRONTEND_URL", "")
    origins = parse_origins(frontend_url) if frontend_url else list(DEFAULT_ORIGINS)

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL", "").strip(),
        supabase_key=key.strip(),
        port=_int_env("PORT", DEFAULT_PORT),
        allowed_origins=origins,
        environment=os.getenv("APP_ENV", "development").strip().lower(),
        rate_limit_max=_int_env("RATE_LIMIT_MAX", DEFAULT_RATE_LIMIT_MAX),
        rate_limit_window_seconds=_int_env("RATE_LIMIT_WINDOW_SECONDS", DEFAULT_RATE_LIMIT_WINDOW),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
