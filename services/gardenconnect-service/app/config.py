import os

from .scoring import Weights

SERVICE_NAME = "gardenconnect-service"


def _flag(name: str, default: str = "false") -> bool:
    return (os.getenv(name) or default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("GARDENCONNECT_DB") or "sqlite+aiosqlite:///./gardenconnect.db"
DATABASE_ECHO = _flag("GARDENCONNECT_DB_ECHO")

# "sql" or "memory"
STORAGE_BACKEND = (os.getenv("STORAGE_BACKEND") or "sql").strip().lower()
if STORAGE_BACKEND not in ("sql", "memory"):
    raise RuntimeError(f"Unsupported STORAGE_BACKEND: {STORAGE_BACKEND}")

# Production schema is managed by alembic; this is for dev and tests.
AUTO_CREATE_TABLES = _flag("AUTO_CREATE_TABLES")

JWT_SECRET = os.getenv("JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM") or "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES") or "480")

if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET environment variable is not set")

BOOTSTRAP_ADMIN_EMAIL = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
BOOTSTRAP_ADMIN_PASSWORD = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")

MATCH_SKILLS_WEIGHT = float(os.getenv("MATCH_SKILLS_WEIGHT") or "40")
MATCH_SCHEDULE_WEIGHT = float(os.getenv("MATCH_SCHEDULE_WEIGHT") or "60")


def match_weights(skills: float, schedule: float) -> Weights:
    try:
        return Weights(skills=skills, schedule=schedule)
    except ValueError as e:
        raise RuntimeError(f"Invalid MATCH_SKILLS_WEIGHT/MATCH_SCHEDULE_WEIGHT: {e}") from e


MATCH_WEIGHTS = match_weights(MATCH_SKILLS_WEIGHT, MATCH_SCHEDULE_WEIGHT)

MATCH_MIN_SCORE = float(os.getenv("MATCH_MIN_SCORE") or "30")

REDIS_URL = os.getenv("REDIS_URL")  # optional: enables match cache + rate limiting
MATCH_CACHE_TTL_SECONDS = int(os.getenv("MATCH_CACHE_TTL_SECONDS") or "60")
RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE") or "120")

RABBIT_URL = os.getenv("RABBIT_URL")  # optional: enables domain events
