"""Environment-driven settings and logging setup for the game server."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from typing import Mapping, Optional

from .session import AI_THINK_DELAY

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = 8000
    think_delay: float = AI_THINK_DELAY
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_max_mb: int = 10
    log_backup_count: int = 5


def _env(environ: Mapping[str, str], name: str, default: str = "") -> str:
    value = environ.get(name)
    if value is not None and value.strip() != "":
        return value.strip()
    return default


def _number(environ: Mapping[str, str], name: str, default, cast):
    raw = _env(environ, name)
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Read ``TICTACTOE_*`` variables from ``environ`` (default: ``os.environ``)."""

    env = os.environ if environ is None else environ
    return Settings(
        host=_env(env, "TICTACTOE_HOST", "0.0.0.0"),
        port=_number(env, "TICTACTOE_PORT", 8000, int),
        think_delay=_number(env, "TICTACTOE_THINK_DELAY", AI_THINK_DELAY, float),
        log_level=_env(env, "TICTACTOE_LOG_LEVEL", "INFO").upper(),
        log_file=_env(env, "TICTACTOE_LOG_FILE") or None,
        log_max_mb=_number(env, "TICTACTOE_LOG_MAX_MB", 10, int),
        log_backup_count=_number(env, "TICTACTOE_LOG_BACKUP_COUNT", 5, int),
    )


def setup_logging(settings: Settings) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(settings.log_level)

    fmt = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(fmt)
    root.addHandler(stream_handler)

    if settings.log_file:
        file_handler = RotatingFileHandler(
            settings.log_file,
            maxBytes=settings.log_max_mb * 1024 * 1024,
            backupCount=settings.log_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(fmt)
        root.addHandler(file_handler)
