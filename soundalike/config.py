"""
Runtime configuration loaded from environment variables and `.env`.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from soundalike.errors import ConfigError

load_dotenv()

DEFAULT_HTTP_TIMEOUT = 10.0
DEFAULT_MAX_WORKERS = 10
DEFAULT_HISTORY_PATH = Path.home() / ".soundalike" / "history.json"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    """API keys and tuning knobs shared by the clients and the pipeline."""

    youtube_api_key: str = ""
    lastfm_api_key: str = ""
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    history_path: Path = DEFAULT_HISTORY_PATH
    locate_videos: bool = True

    @classmethod
    def from_env(cls, require_keys: bool = False) -> "Settings":
        """
        Build settings from the environment.

        Args:
            require_keys: Raise if either API key is missing.

        Returns:
            Settings instance

        Raises:
            ConfigError: If require_keys is set and a key is missing, or a
                numeric variable cannot be parsed.
        """
        youtube_key = os.getenv("YOUTUBE_API_KEY", "")
        lastfm_key = os.getenv("LASTFM_API_KEY", "")

        if require_keys:
            missing = [
                name
                for name, value in (
                    ("YOUTUBE_API_KEY", youtube_key),
                    ("LASTFM_API_KEY", lastfm_key),
                )
                if not value
            ]
            if missing:
                raise ConfigError(
                    f"Missing API credentials: {', '.join(missing)}. "
                    "Set them in your environment or a .env file"
                )

        try:
            timeout = float(os.getenv("SOUNDALIKE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT))
            max_workers = int(os.getenv("SOUNDALIKE_MAX_WORKERS", DEFAULT_MAX_WORKERS))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        history_path = os.getenv("SOUNDALIKE_HISTORY_PATH")

        return cls(
            youtube_api_key=youtube_key,
            lastfm_api_key=lastfm_key,
            http_timeout=timeout,
            max_workers=max(1, max_workers),
            history_path=Path(history_path).expanduser() if history_path else DEFAULT_HISTORY_PATH,
            locate_videos=_env_bool("SOUNDALIKE_LOCATE_VIDEOS", True),
        )
