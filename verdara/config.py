# verdara/config.py
import os


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError:
        return default


LOG_LEVEL = os.getenv("VERDARA_LOG_LEVEL", "INFO").upper()

# Optional upstream Verdara API serving /api/activities. When unset the
# bundled dataset is used directly.
CATALOG_UPSTREAM = os.getenv("VERDARA_CATALOG_UPSTREAM", "").rstrip("/")
HTTP_TIMEOUT = _float_env("VERDARA_HTTP_TIMEOUT", 10.0)

WEATHER_URL = os.getenv("VERDARA_WEATHER_URL", "https://api.open-meteo.com/v1/forecast")
GEOCODING_URL = os.getenv(
    "VERDARA_GEOCODING_URL", "https://geocoding-api.open-meteo.com/v1/search"
)

ASSISTANT_MODEL = os.getenv("VERDARA_ASSISTANT_MODEL", "google/flan-t5-base")
EMBEDDING_MODEL = os.getenv(
    "VERDARA_EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2"
)

DIAGNOSTICS_LIMIT = int(_float_env("VERDARA_DIAGNOSTICS_LIMIT", 500))

# Seconds a current-conditions lookup is served from memory.
WEATHER_TTL = _float_env("VERDARA_WEATHER_TTL", 600.0)
