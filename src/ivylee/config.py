# src/ivylee/config.py

"""Settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object per invocation, passed explicitly (no module-level instance).
- Every value has a sane default so a bare `ivy` works on first run.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "IVY"

STATE_FILE_NAME = "tasks.yaml"
BACKUP_FILE_NAME = "tasks.bak.yaml"
LOG_FILE_NAME = "ivylee.log"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- Storage ----
    data_dir: Path

    # ---- Logging ----
    log_level: str
    log_to_file: bool

    @property
    def state_path(self) -> Path:
        return self.data_dir / STATE_FILE_NAME

    @property
    def backup_path(self) -> Path:
        return self.data_dir / BACKUP_FILE_NAME

    @property
    def log_path(self) -> Path:
        return self.data_dir / LOG_FILE_NAME

    @staticmethod
    def from_env(*, use_dotenv: bool = True) -> "Settings":
        if use_dotenv:
            load_dotenv(find_dotenv(usecwd=True), override=False)

        data_dir = _env_path(_k("DIR"), Path.home() / ".ivylee")
        log_level = _env(_k("LOG_LEVEL"), "WARNING").strip().upper() or "WARNING"
        log_to_file = _env_bool(_k("LOG_FILE"), True)

        return Settings(
            data_dir=data_dir,
            log_level=log_level,
            log_to_file=log_to_file,
        )


def get_settings() -> Settings:
    return Settings.from_env()
