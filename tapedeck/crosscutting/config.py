import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional


VERSION = "0.1.0"

DEFAULT_CATALOG_URL = "https://api.deezer.com"
DEFAULT_SEARCH_LIMIT = 10
DEFAULT_COVER_SIZE = 1000
DEFAULT_ART_DIR = "."
DEFAULT_MAX_ATTEMPTS = 3


class ConfigError(Exception):
    """Configuration error."""
    pass


def _read_positive_int(env: Mapping[str, str], key: str, default: int) -> int:
    """Read a positive integer from env, falling back to default when unset."""
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


def _read_timeout(env: Mapping[str, str], key: str) -> Optional[float]:
    raw = env.get(key)
    if raw is None or not str(raw).strip():
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise ConfigError(f"{key} must be a number of seconds, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the autofill workflow and its HTTP clients."""

    catalog_url: str = DEFAULT_CATALOG_URL
    search_limit: int = DEFAULT_SEARCH_LIMIT
    cover_size: int = DEFAULT_COVER_SIZE
    art_dir: str = DEFAULT_ART_DIR
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    # None keeps HTTP calls blocking indefinitely
    http_timeout: Optional[float] = None
    user_agent: str = f"tapedeck-autofill/{VERSION}"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from TAPEDECK_* environment variables."""
        env = os.environ if env is None else env
        catalog_url = (env.get('TAPEDECK_CATALOG_URL') or DEFAULT_CATALOG_URL).strip().rstrip('/')
        return cls(
            catalog_url=catalog_url,
            search_limit=_read_positive_int(env, 'TAPEDECK_SEARCH_LIMIT', DEFAULT_SEARCH_LIMIT),
            cover_size=_read_positive_int(env, 'TAPEDECK_COVER_SIZE', DEFAULT_COVER_SIZE),
            art_dir=env.get('TAPEDECK_ART_DIR') or DEFAULT_ART_DIR,
            max_attempts=_read_positive_int(env, 'TAPEDECK_MAX_ATTEMPTS', DEFAULT_MAX_ATTEMPTS),
            http_timeout=_read_timeout(env, 'TAPEDECK_HTTP_TIMEOUT'),
            user_agent=env.get('TAPEDECK_USER_AGENT') or f"tapedeck-autofill/{VERSION}",
        )

    def with_overrides(self, **overrides) -> "Settings":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        for key in ('search_limit', 'cover_size', 'max_attempts'):
            if key in changes and changes[key] <= 0:
                raise ConfigError(f"{key} must be positive, got {changes[key]}")
        return replace(self, **changes)
