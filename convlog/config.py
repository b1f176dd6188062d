"""convlog configuration."""
import os
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default

# Decoding
ENCODING = os.getenv("CONVLOG_ENCODING", "utf-8")
ERROR_CONTENT_LIMIT = _env_int("CONVLOG_ERROR_CONTENT_LIMIT", 2000)

# Directory scan
MAX_FILES = _env_int("CONVLOG_MAX_FILES", 50)
DATA_DIR = Path(os.getenv("CONVLOG_DATA_DIR", "conversations"))

# Logging
LOG_LEVEL = os.getenv("CONVLOG_LOG_LEVEL", "INFO").upper()
DEBUG = _env_bool("CONVLOG_DEBUG", False)

# Server settings
HOST = os.getenv("CONVLOG_HOST", "127.0.0.1")
PORT = _env_int("CONVLOG_PORT", 8000)

# CORS
FRONTEND_ORIGIN = os.getenv("CONVLOG_FRONTEND_ORIGIN", "http://localhost:3000")
