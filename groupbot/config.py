from __future__ import annotations

import tomllib
from dataclasses import asdict, dataclass, field, replace
from typing import Any

from .constants import BOT_ACTION_INTERVAL_S, CLIENT_TICK_S, DEFAULT_CHEESE_ITEM
from .errors import ConfigError


@dataclass(frozen=True)
class BotRuntimeConfig:
    config_path: str | None = None
    secrets_path: str | None = None
    session_factory: str | None = None
    session_options: dict[str, Any] = field(default_factory=dict)
    tick_interval_s: float = CLIENT_TICK_S
    action_interval_s: float = BOT_ACTION_INTERVAL_S
    throttle_actions: bool = True
    cheese_item: str = DEFAULT_CHEESE_ITEM
    log_level: str = "INFO"
    log_console: bool = True
    log_file: str | None = None
    log_format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    log_datefmt: str | None = None


def load_toml(path: str) -> dict:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"invalid TOML in {path}: {e}") from e
    return data if isinstance(data, dict) else {}


def apply_config_data(base: BotRuntimeConfig, data: dict) -> BotRuntimeConfig:
    """Overlay a parsed groupbot.toml document onto ``base``.

    Keys may live at the top level or under ``[bot]``; the ``[logging]``
    table maps onto the ``log_*`` fields. Unknown keys are ignored.
    """
    bot = data.get("bot") if isinstance(data, dict) else None
    if isinstance(bot, dict):
        data = {**data, **bot}

    log_table = data.get("logging") if isinstance(data, dict) else None
    if isinstance(log_table, dict):
        mapped: dict[str, object] = {}
        for key in ("level", "console", "file", "format", "datefmt"):
            if key in log_table:
                mapped[f"log_{key}"] = log_table.get(key)
        data = {**data, **mapped}

    allowed = set(asdict(base).keys())
    # These identify where the files live; do not let the file override them.
    allowed.discard("config_path")
    allowed.discard("secrets_path")

    updates = {k: v for k, v in data.items() if k in allowed}

    for float_key in ("tick_interval_s", "action_interval_s"):
        if float_key in updates:
            try:
                updates[float_key] = float(updates[float_key])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"{float_key} must be a number") from e
            if updates[float_key] <= 0:
                raise ConfigError(f"{float_key} must be positive")

    if "session_options" in updates and not isinstance(updates["session_options"], dict):
        raise ConfigError("session_options must be a table")
    if "session_options" in updates:
        updates["session_options"] = dict(updates["session_options"])

    for optional_key in ("session_factory", "log_file", "log_datefmt"):
        if optional_key in updates and updates[optional_key] == "":
            updates[optional_key] = None

    return replace(base, **updates) if updates else base
