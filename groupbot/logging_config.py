from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from .config import BotRuntimeConfig

_LEVELS: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def parse_level(value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip().upper()
    if not text:
        return default
    if text in _LEVELS:
        return _LEVELS[text]
    try:
        return int(text)
    except ValueError:
        return default


def _clean_optional_path(value: Any) -> str | None:
    if value is None:
        return None
    s = str(value)
    if not s.strip():
        return None
    return s


def _file_handler(log_file: str) -> logging.Handler:
    p = Path(os.path.expanduser(log_file))
    p.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(p, encoding="utf-8")
    try:
        os.chmod(p, 0o600)
    except OSError:
        pass
    return handler


def configure_logging(
    cfg: BotRuntimeConfig,
    *,
    override_level: str | None = None,
    override_file: str | None = None,
) -> None:
    """Configure Python logging for groupbot.

    Safe to call more than once; previously installed root handlers are
    replaced.
    """

    level = parse_level(override_level or cfg.log_level, logging.INFO)

    handlers: list[logging.Handler] = []
    if bool(cfg.log_console):
        handlers.append(logging.StreamHandler())

    if override_file is not None:
        log_file = _clean_optional_path(override_file)
    else:
        log_file = _clean_optional_path(cfg.log_file)
    if log_file:
        handlers.append(_file_handler(log_file))

    fmt = str(cfg.log_format).strip() or "%(asctime)s %(levelname)s %(name)s: %(message)s"
    formatter = logging.Formatter(fmt=fmt, datefmt=_clean_optional_path(cfg.log_datefmt))

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    for h in handlers:
        h.setFormatter(formatter)
        root.addHandler(h)

    root.setLevel(level)
    logging.captureWarnings(True)
