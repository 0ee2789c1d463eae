import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5")
ANTHROPIC_MAX_TOKENS = int(os.getenv("ANTHROPIC_MAX_TOKENS", "1024"))
ANTHROPIC_TIMEOUT = float(os.getenv("ANTHROPIC_TIMEOUT", "60"))

BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))


def resolve_database_path(path: str) -> str:
    """Relative paths are anchored at the backend directory, not the process cwd."""
    if os.path.isabs(path):
        return path
    return os.path.join(BACKEND_DIR, path)


DATABASE_PATH = resolve_database_path(os.getenv("DATABASE_PATH", "todos.db"))

# Tokens are issued by the external identity provider; we only verify them
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET")
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")

# Calendar used for "today"/"this week" in statistics and past-date correction
LOCAL_TIMEZONE = ZoneInfo(os.getenv("LOCAL_TIMEZONE", "Asia/Seoul"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def api_key_configured() -> bool:
    """True when a real Anthropic key is present (placeholder counts as missing)."""
    return bool(ANTHROPIC_API_KEY) and ANTHROPIC_API_KEY != "your-api-key-here"
