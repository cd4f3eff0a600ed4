"""
Application settings read from the environment

Call load_dotenv() before load_config() so values from a .env file are
picked up.
"""
import os


def _env_bool(name: str, default: str = "False") -> bool:
    return os.environ.get(name, default).lower() == "true"


def load_config() -> dict:
    """Collect settings from environment variables, falling back to defaults."""
    return {
        "SECRET_KEY": os.environ.get("SECRET_KEY", "dev-secret-key"),
        "DEBUG": _env_bool("DEBUG"),
        # Maximum upload size (10 MB)
        "MAX_CONTENT_LENGTH": int(os.environ.get("MAX_CONTENT_LENGTH", 10 * 1024 * 1024)),
        "GEOCODER": os.environ.get("GEOCODER", "gemini"),
        "GEMINI_API_KEY": os.environ.get("GEMINI_API_KEY", os.environ.get("API_KEY", "")),
        "GEMINI_MODEL": os.environ.get("GEMINI_MODEL", "gemini-2.5-flash"),
        "GEOCODE_TIMEOUT": float(os.environ.get("GEOCODE_TIMEOUT", 30)),
        "NOMINATIM_USER_AGENT": os.environ.get("NOMINATIM_USER_AGENT", "csv_mapper"),
        "FACET_VALUE_CEILING": int(os.environ.get("FACET_VALUE_CEILING", 200)),
        "MAX_SEARCH_LENGTH": int(os.environ.get("MAX_SEARCH_LENGTH", 200)),
        # Browser sessions kept in memory before the least recently used is dropped
        "MAX_SESSIONS": int(os.environ.get("MAX_SESSIONS", 100)),
        "LOG_LEVEL": os.environ.get("LOG_LEVEL", "INFO").upper(),
    }
