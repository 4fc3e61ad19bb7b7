"""Runtime configuration from environment variables (and an optional .env)."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Union

from dotenv import find_dotenv, load_dotenv

from shiftguard.domain.policies import DefaultCertificationPolicy, DefaultRestGapPolicy

ENV_PREFIX = "SHIFTGUARD_"


@dataclass(frozen=True)
class Settings:
    min_rest_hours: float = 8.0
    expiring_soon_days: int = 30
    ocr_lang: str = "eng"
    tesseract_cmd: Optional[str] = None
    log_level: str = "WARNING"

    def rest_gap_policy(self) -> DefaultRestGapPolicy:
        return DefaultRestGapPolicy(rest_hours=self.min_rest_hours)

    def certification_policy(self) -> DefaultCertificationPolicy:
        return DefaultCertificationPolicy(warning_days=self.expiring_soon_days)


def load_env(dotenv_path: Optional[Union[str, Path]] = None) -> None:
    """Load a .env file into the environment without overriding set variables.

    Without a path, the nearest .env from the working directory upwards is used.
    """
    path = Path(dotenv_path) if dotenv_path else None
    if path and path.exists():
        load_dotenv(path)
        return
    found = find_dotenv(usecwd=True)
    if found:
        load_dotenv(found)


def _number(env: Mapping[str, str], name: str, default: float, cast=float):
    raw = env.get(ENV_PREFIX + name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{ENV_PREFIX}{name} must not be negative, got {raw!r}")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from the environment.

    Raises ValueError if a numeric variable doesn't parse.
    """
    env = os.environ if env is None else env
    log_level = env.get(ENV_PREFIX + "LOG_LEVEL", "WARNING").strip().upper() or "WARNING"
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"{ENV_PREFIX}LOG_LEVEL is not a logging level: {log_level!r}")

    return Settings(
        min_rest_hours=_number(env, "MIN_REST_HOURS", 8.0),
        expiring_soon_days=_number(env, "EXPIRING_SOON_DAYS", 30, cast=int),
        ocr_lang=env.get(ENV_PREFIX + "OCR_LANG", "").strip() or "eng",
        tesseract_cmd=env.get(ENV_PREFIX + "TESSERACT_CMD", "").strip() or None,
        log_level=log_level,
    )
