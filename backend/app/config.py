import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

BACKEND_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CATALOG_PATH = BACKEND_DIR / "data" / "card_database.json"
DEFAULT_CORS_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000"


def _csv_env(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    values = [item.strip() for item in raw.split(",") if item.strip()]
    if not values:
        logger.warning("%s is empty; falling back to default %s", name, default)
        values = [item.strip() for item in default.split(",")]
    return values


@dataclass(frozen=True)
class Settings:
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./card_verdict.db")
    catalog_path: str = os.getenv("CATALOG_PATH", str(DEFAULT_CATALOG_PATH))
    storage_key: str = os.getenv("STORAGE_KEY", "userAccountData").strip() or "userAccountData"
    cors_origins: list[str] = field(default_factory=lambda: _csv_env("CORS_ORIGINS", DEFAULT_CORS_ORIGINS))


settings = Settings()
