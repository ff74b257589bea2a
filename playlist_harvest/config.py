import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

# Load environment variables from .env file
load_dotenv()


class HarvestSettings(BaseModel):
    """Run configuration, read from the environment."""

    # Catalog API
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    token_url: str = "https://accounts.spotify.com/api/token"
    api_url: str = "https://api.spotify.com/v1"
    curator: str = "spotify"

    # Pacing and pagination
    throttle_ms: int = 1000
    playlist_page_limit: int = 50
    track_page_limit: int = 100
    http_timeout_seconds: float = 30.0

    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_db: str = "playlists"
    postgres_user: str = "harvest"
    postgres_password: str = "harvest"
    postgres_min_pool: int = 1
    postgres_max_pool: int = 5

    # Observability
    log_level: str = "INFO"
    log_json: bool = False
    log_file: Optional[str] = None
    failure_ledger_path: Optional[str] = None
    metrics_port: Optional[int] = None

    class Config:
        frozen = True


# ============================================================================
# Settings Loader
# ============================================================================

# Cache for loaded settings
_settings_cache: Optional[HarvestSettings] = None


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_settings(force_reload: bool = False) -> HarvestSettings:
    """
    Load settings from environment variables.

    Args:
        force_reload: If True, re-read the environment even if cached

    Returns:
        Settings with defaults for missing values

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    global _settings_cache

    # Return cached settings if available and not forcing reload
    if _settings_cache is not None and not force_reload:
        return _settings_cache

    defaults = HarvestSettings()
    settings = HarvestSettings(
        client_id=os.getenv("SPOTIFY_CLIENT_ID") or None,
        client_secret=os.getenv("SPOTIFY_CLIENT_SECRET") or None,
        token_url=os.getenv("SPOTIFY_TOKEN_URL", defaults.token_url),
        api_url=os.getenv("SPOTIFY_API_URL", defaults.api_url),
        curator=os.getenv("CURATOR_USERNAME", defaults.curator),
        throttle_ms=_env_int("THROTTLE_MS", defaults.throttle_ms),
        playlist_page_limit=_env_int("PLAYLIST_PAGE_LIMIT", defaults.playlist_page_limit),
        track_page_limit=_env_int("TRACK_PAGE_LIMIT", defaults.track_page_limit),
        http_timeout_seconds=float(
            os.getenv("HTTP_TIMEOUT_SECONDS", defaults.http_timeout_seconds)
        ),
        postgres_host=os.getenv("POSTGRES_HOST", defaults.postgres_host),
        postgres_port=_env_int("POSTGRES_PORT", defaults.postgres_port),
        postgres_db=os.getenv("POSTGRES_DB", defaults.postgres_db),
        postgres_user=os.getenv("POSTGRES_USER", defaults.postgres_user),
        postgres_password=os.getenv("POSTGRES_PASSWORD", defaults.postgres_password),
        postgres_min_pool=_env_int("POSTGRES_MIN_POOL", defaults.postgres_min_pool),
        postgres_max_pool=_env_int("POSTGRES_MAX_POOL", defaults.postgres_max_pool),
        log_level=os.getenv("LOG_LEVEL", defaults.log_level).upper(),
        log_json=_env_bool("LOG_JSON", defaults.log_json),
        log_file=os.getenv("LOG_FILE") or None,
        failure_ledger_path=os.getenv("FAILURE_LEDGER_PATH") or None,
        metrics_port=_env_int("METRICS_PORT", None),
    )

    _settings_cache = settings
    return settings
