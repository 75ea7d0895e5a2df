"""Configuration helpers for the PassiveGenius backend."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

ENV_PREFIX = "PASSIVEGENIUS_"
DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_STORAGE_DIR = ".passive_genius"
DEFAULT_NOTIFICATION_SECONDS = 3.0

load_dotenv(override=False)


@dataclass(frozen=True)
class Settings:
    """Settings container for the AI gateway, local storage and logging.

    Only OpenAI is wired as a text-generation provider; without a key every
    gateway call takes its documented failure path.
    """

    openai_api_key: str | None = None
    model: str = DEFAULT_MODEL
    storage_dir: Path = Path(DEFAULT_STORAGE_DIR)
    notification_seconds: float = DEFAULT_NOTIFICATION_SECONDS
    log_level: str = "INFO"
    json_logs: bool = False

    @property
    def has_llm_key(self) -> bool:
        """True when the AI gateway can reach the text-generation service."""

        return bool(self.openai_api_key)


def _env(environ: Mapping[str, str], name: str) -> str | None:
    value = environ.get(f"{ENV_PREFIX}{name}")
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


def _parse_seconds(raw: str | None) -> float:
    if raw is None:
        return DEFAULT_NOTIFICATION_SECONDS
    try:
        seconds = float(raw)
    except ValueError:
        return DEFAULT_NOTIFICATION_SECONDS
    # Negative lifetimes fall back to the default.
    return seconds if seconds >= 0 else DEFAULT_NOTIFICATION_SECONDS


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Read environment variables and return cached settings."""

    environ = os.environ
    return Settings(
        openai_api_key=environ.get("OPENAI_API_KEY") or None,
        model=_env(environ, "MODEL") or DEFAULT_MODEL,
        storage_dir=Path(_env(environ, "STORAGE_DIR") or DEFAULT_STORAGE_DIR),
        notification_seconds=_parse_seconds(_env(environ, "NOTIFICATION_SECONDS")),
        log_level=(_env(environ, "LOG_LEVEL") or "INFO").upper(),
        json_logs=_parse_bool(_env(environ, "JSON_LOGS"), default=False),
    )
