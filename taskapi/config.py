# taskapi/config.py
import os
from pathlib import Path
from dotenv import load_dotenv

# load .env into process env vars (real env wins)
ROOT = Path(__file__).resolve().parents[1]
load_dotenv(ROOT / ".env")


def _as_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in ("1", "true", "yes", "y", "on")


def _as_int(name: str, default: int) -> int:
    try:
        return int(str(os.getenv(name, default)).strip())
    except Exception:
        return default


class Settings:
    # App
    ENV: str = os.getenv("ENV", "dev")
    PORT: int = _as_int("PORT", 8000)

    # Storage
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///data/tasks.db")

    # JWT
    JWT_SECRET: str = (os.getenv("JWT_SECRET") or "dev-secret").strip()
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = _as_int("JWT_EXPIRE_MINUTES", 60 * 24)

    # Passwords
    BCRYPT_ROUNDS: int = _as_int("BCRYPT_ROUNDS", 12)
    PASSWORD_MIN_LENGTH: int = _as_int("PASSWORD_MIN_LENGTH", 8)
    PASSWORD_MAX_LENGTH: int = _as_int("PASSWORD_MAX_LENGTH", 20)

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_DIR: str = os.getenv("LOG_DIR", str(ROOT / "logs"))
    LOG_TO_FILE: bool = _as_bool("LOG_TO_FILE", True)


# instantiate settings FIRST
settings = Settings()

# module-level aliases
DATABASE_URL = settings.DATABASE_URL
JWT_SECRET = settings.JWT_SECRET
JWT_ALGORITHM = settings.JWT_ALGORITHM
JWT_EXPIRE_MINUTES = settings.JWT_EXPIRE_MINUTES
BCRYPT_ROUNDS = settings.BCRYPT_ROUNDS
PASSWORD_MIN_LENGTH = settings.PASSWORD_MIN_LENGTH
PASSWORD_MAX_LENGTH = settings.PASSWORD_MAX_LENGTH
