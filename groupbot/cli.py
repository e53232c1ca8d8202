from __future__ import annotations

import argparse
import importlib
import logging
import os
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

from .config import BotRuntimeConfig, apply_config_data, load_toml
from .constants import K_ADMINISTRATORS, K_BANNED
from .errors import ConfigError, RosterPersistError, SessionEnded, SessionError
from .logging_config import configure_logging
from .paths import default_config_path, default_secrets_path, ensure_private_dir
from .service import BotService
from .session import SessionClient
from .trust import RosterStore

DEFAULT_CONFIG = """# groupbot configuration (TOML)
#
# This file was created on first run.
# Edit it, then start groupbot again.

[bot]

# Callable that establishes the live session, as "package.module:function".
# It is called with (config, credentials) and must return a session client.
session_factory = ""

# Seconds per tick. The session is polled once per tick.
tick_interval_s = 0.033

# Minimum seconds between group invites/removals when throttling.
action_interval_s = 1.0
throttle_actions = true

# Group inventory item that earns a congratulation.
cheese_item = "Dwarven Cheese"

# Passed unchanged to the session factory (server addresses and such).
[bot.session_options]

[logging]

# Log level for groupbot.
level = "INFO"

# Log to stderr.
console = true

# Optional file path for logs (leave empty to disable).
file = ""

# Log format and optional date format.
format = "%(asctime)s %(levelname)s %(name)s: %(message)s"
datefmt = ""
"""

DEFAULT_SECRETS = """# groupbot secrets (TOML)
#
# Keep this file out of version control. groupbot rewrites the
# administrators and banned lists when chat commands change them;
# all other keys are left untouched.

username = ""
password = ""
character = ""

# Stable player identifiers.
administrators = []
banned = []
"""


def _write_private_file(path: str, content: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        ensure_private_dir(Path(parent))
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    try:
        os.chmod(path, 0o600)
    except OSError:
        pass


def _ensure_first_run_files(config_path: str, secrets_path: str) -> bool:
    created_any = False

    if not os.path.exists(config_path):
        _write_private_file(config_path, DEFAULT_CONFIG)
        created_any = True

    if not os.path.exists(secrets_path):
        _write_private_file(secrets_path, DEFAULT_SECRETS)
        created_any = True

    return created_any


def load_session_factory(target: str) -> Callable[[BotRuntimeConfig, dict], SessionClient]:
    """Import a session factory given as ``"package.module:callable"``."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"session_factory must look like 'module:callable', got {target!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"cannot import session factory module {module_name!r}: {e}") from e

    factory: Any = module
    for part in attr.split("."):
        try:
            factory = getattr(factory, part)
        except AttributeError as e:
            raise ConfigError(f"{module_name!r} has no attribute {attr!r}") from e

    if not callable(factory):
        raise ConfigError(f"session factory {target!r} is not callable")
    return factory


def load_credentials(secrets_path: str) -> dict[str, Any]:
    """Everything in the secrets file except the roster lists."""
    data = load_toml(secrets_path)
    return {k: v for k, v in data.items() if k not in (K_ADMINISTRATORS, K_BANNED)}


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="groupbot", description="Run a group-hosting chat bot")

    p.add_argument(
        "--config",
        default=str(default_config_path()),
        help="Path to a TOML config file (created on first run)",
    )
    p.add_argument(
        "--secrets",
        default=os.environ.get("SECRETS") or str(default_secrets_path()),
        help="Path to the secrets TOML holding credentials and the roster "
        "(created on first run; default from $SECRETS)",
    )
    p.add_argument(
        "--session-factory",
        default=None,
        help="Session factory as module:callable (overrides config)",
    )
    p.add_argument(
        "--tick-interval", type=float, default=None, help="Seconds per tick"
    )
    p.add_argument(
        "--action-interval",
        type=float,
        default=None,
        help="Seconds between throttled group actions",
    )
    p.add_argument(
        "--no-throttle",
        action="store_true",
        help="Send invites and removals immediately",
    )
    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level override (DEBUG, INFO, WARNING, ERROR). Default comes from config.",
    )
    p.add_argument(
        "--log-file",
        default=None,
        help="Log file path override (empty disables file logging). Default comes from config.",
    )

    return p


def main(argv: list[str] | None = None) -> None:
    args = _build_arg_parser().parse_args(sys.argv[1:] if argv is None else argv)

    config_path = str(args.config)
    secrets_path = str(args.secrets)

    if _ensure_first_run_files(config_path, secrets_path):
        print(
            "Created default groupbot files. Edit them before starting:\n"
            f"- Config:  {config_path}\n"
            f"- Secrets: {secrets_path}\n"
            "\nThen re-run groupbot.",
            file=sys.stderr,
        )
        raise SystemExit(0)

    cfg = BotRuntimeConfig(config_path=config_path, secrets_path=secrets_path)
    try:
        cfg = apply_config_data(cfg, load_toml(config_path))
    except (ConfigError, OSError) as e:
        print(f"groupbot: {e}", file=sys.stderr)
        raise SystemExit(1) from e

    if args.session_factory is not None:
        cfg = replace(cfg, session_factory=args.session_factory or None)
    if args.tick_interval is not None:
        cfg = replace(cfg, tick_interval_s=float(args.tick_interval))
    if args.action_interval is not None:
        cfg = replace(cfg, action_interval_s=float(args.action_interval))
    if args.no_throttle:
        cfg = replace(cfg, throttle_actions=False)
    if args.log_level is not None:
        cfg = replace(cfg, log_level=str(args.log_level))
    if args.log_file is not None:
        cfg = replace(cfg, log_file=str(args.log_file) if str(args.log_file) else None)

    configure_logging(cfg, override_level=args.log_level, override_file=args.log_file)
    log = logging.getLogger("groupbot.cli")

    if not cfg.session_factory:
        log.error("No session_factory configured in %s", config_path)
        raise SystemExit(1)

    try:
        factory = load_session_factory(cfg.session_factory)
        credentials = load_credentials(secrets_path)
        roster = RosterStore.load(secrets_path)
    except (ConfigError, RosterPersistError, OSError) as e:
        log.error("Startup failed: %s", e)
        raise SystemExit(1) from e

    log.info("Connecting via %s", cfg.session_factory)
    try:
        session = factory(cfg, credentials)
    except SessionError as e:
        log.error("Failed to establish session: %s", e)
        raise SystemExit(1) from e

    svc = BotService(cfg, session, roster)
    try:
        svc.run_forever()
    except SessionEnded as e:
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
