import logging
import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"⚠️ Invalid value for {name}: {raw!r}, using {default}")
        return default
    if value <= 0:
        logger.warning(f"⚠️ {name} must be positive, got {raw!r}, using {default}")
        return default
    return value


class Settings:
    # If DB_URL is not provided, fall back to a local sqlite file. Only used
    # when the "database" event sink is enabled.
    DB_URL: str = os.getenv("DB_URL") or "sqlite:///./dev.db"

    PROJECT_NAME: str = os.getenv("PROJECT_NAME") or "Host Liveness Monitor"

    LOG_LEVEL: str = (os.getenv("LOG_LEVEL") or "INFO").upper()

    # Hosts not reported for longer than this are evicted (seconds)
    INACTIVITY_TIMEOUT: float = _env_float("INACTIVITY_TIMEOUT", 5.0)
    # How often the eviction sweep runs (seconds)
    SWEEP_INTERVAL: float = _env_float("SWEEP_INTERVAL", 1.0)

    PROBE_TIMEOUT: float = _env_float("PROBE_TIMEOUT", 5.0)
    CERT_TIMEOUT: float = _env_float("CERT_TIMEOUT", 10.0)

    # Event trail: comma separated list of "file" and/or "database"
    EVENT_SINKS: str = os.getenv("EVENT_SINKS") or "file"
    EVENT_LOG_PATH: str = os.getenv("EVENT_LOG_PATH") or os.path.join(".", "logs", "updatetime.log")
    EVENT_QUEUE_SIZE: int = int(_env_float("EVENT_QUEUE_SIZE", 1000))

    CORS_ORIGINS: Optional[str] = os.getenv("CORS_ORIGINS") or None

    def event_sinks(self) -> list[str]:
        return [s.strip().lower() for s in self.EVENT_SINKS.split(",") if s.strip()]

    def cors_origins(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
