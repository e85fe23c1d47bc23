# config.py
import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

load_dotenv(os.path.join(BASE_DIR, ".env"))

# Paths
UPLOAD_DIR = os.path.join(BASE_DIR, "uploads")
DB_PATH = os.path.join(BASE_DIR, "plantscan.db")
UPLOAD_URL_PREFIX = "/uploads"

# Upload settings
MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5 MB
ALLOWED_IMAGE_TYPES = ("jpeg", "jpg", "png", "gif")

# Token settings
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = 7

# Listing limits
SCAN_LIST_LIMIT = 50
CHAT_LIST_LIMIT = 20
CHAT_PREVIEW_LIMIT = 5
SEARCH_RESULT_LIMIT = 10
RECENT_SCANS_IN_STATS = 5

# Text cut-offs, "..." appended past these
PREVIEW_TEXT_LIMIT = 50
SEARCH_TEXT_LIMIT = 100


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    try:
        return int(value) if value is not None else default
    except (TypeError, ValueError):
        return default


@dataclass
class Settings:
    """Runtime settings, normally read from the environment."""

    database_url: str = f"sqlite:///{DB_PATH}"
    jwt_secret: Optional[str] = None
    port: int = 5000
    upload_dir: str = UPLOAD_DIR
    bcrypt_rounds: int = 12
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.environ.get("DATABASE_URL", f"sqlite:///{DB_PATH}"),
            jwt_secret=os.environ.get("JWT_SECRET") or None,
            port=_env_int("PORT", 5000),
            upload_dir=os.environ.get("UPLOAD_DIR", UPLOAD_DIR),
            bcrypt_rounds=_env_int("BCRYPT_ROUNDS", 12),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
