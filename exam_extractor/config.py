import os
import logging
import threading
from dataclasses import dataclass, replace
from typing import Optional

from dotenv import load_dotenv

from exam_extractor.constants import (
    API_KEY_ENV_VARS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_TOP_P,
    EXTRACTION_MODES,
    MIN_API_KEY_LENGTH,
    MODE_SCHEMA,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    mode: str = MODE_SCHEMA
    temperature: float = DEFAULT_TEMPERATURE
    top_p: float = DEFAULT_TOP_P
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES

    def with_api_key(self, api_key: Optional[str]) -> "Settings":
        return replace(self, api_key=api_key)

    @property
    def has_usable_key(self) -> bool:
        return is_usable_api_key(self.api_key)


def is_usable_api_key(api_key: Optional[str]) -> bool:
    """A key is usable when it is set, is not the literal "undefined" left by
    some hosting panels, and is longer than a handful of characters."""
    if not api_key:
        return False
    key = api_key.strip()
    return key != "undefined" and len(key) >= MIN_API_KEY_LENGTH


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}; using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {name}={raw!r}; using {default}")
        return default


def _env_api_key() -> Optional[str]:
    for name in API_KEY_ENV_VARS:
        val = os.getenv(name)
        if val:
            return val.strip()
    return None


def load_settings(dotenv: bool = True) -> Settings:
    """Build settings from the environment (and a `.env` file when present)."""
    if dotenv:
        load_dotenv()
    mode = (os.getenv("EXTRACTION_MODE") or MODE_SCHEMA).strip().lower()
    if mode not in EXTRACTION_MODES:
        logger.warning(f"Unknown EXTRACTION_MODE={mode!r}; using {MODE_SCHEMA}")
        mode = MODE_SCHEMA
    return Settings(
        api_key=_env_api_key(),
        model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
        mode=mode,
        temperature=_env_float("GEMINI_TEMPERATURE", DEFAULT_TEMPERATURE),
        top_p=_env_float("GEMINI_TOP_P", DEFAULT_TOP_P),
        timeout_seconds=_env_float("GEMINI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        max_retries=_env_int("GEMINI_MAX_RETRIES", DEFAULT_MAX_RETRIES),
    )


class CredentialStore:
    """Holds the current settings; `set_api_key` is the only write path.

    The Streamlit page keeps one store per session and hands `current()` to
    the extraction client on every call.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._lock = threading.Lock()
        self._settings = settings if settings is not None else load_settings()

    def current(self) -> Settings:
        with self._lock:
            return self._settings

    def set_api_key(self, api_key: Optional[str]) -> Settings:
        key = api_key.strip() if api_key else None
        with self._lock:
            self._settings = self._settings.with_api_key(key)
            logger.info(f"API key updated (usable={self._settings.has_usable_key})")
            return self._settings

    def has_usable_key(self) -> bool:
        return self.current().has_usable_key
