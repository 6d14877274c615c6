"""featuredash backend configuration."""
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

# Project root (one level up from featuredash/)
PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Scanner output consumed by the dashboard
DATA_DIR = Path(os.getenv("FEATUREDASH_DATA_DIR", str(PROJECT_ROOT / "data")))
FEATURES_FILE = DATA_DIR / os.getenv("FEATUREDASH_FEATURES_FILE", "features.json")
METADATA_FILE = DATA_DIR / os.getenv("FEATUREDASH_METADATA_FILE", "metadata.json")
WATCH_ENABLED = _env_bool("FEATUREDASH_WATCH_ENABLED", True)

# Observability
OTEL_ENABLED = _env_bool("FEATUREDASH_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("FEATUREDASH_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("FEATUREDASH_OTEL_SERVICE_NAME", "featuredash-backend")
PROM_PORT = _env_int("FEATUREDASH_PROM_PORT", 9464)

# Server settings
HOST = os.getenv("FEATUREDASH_HOST", "0.0.0.0")
PORT = _env_int("FEATUREDASH_PORT", 8000)

# CORS
FRONTEND_ORIGIN = os.getenv("FEATUREDASH_FRONTEND_ORIGIN", "http://localhost:3000")
