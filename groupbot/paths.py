from __future__ import annotations

import os
from pathlib import Path


def default_groupbot_dir() -> Path:
    override = os.environ.get("GROUPBOT_HOME")
    if override:
        return Path(override)
    return Path.home() / ".groupbot"


def default_config_path() -> Path:
    return default_groupbot_dir() / "groupbot.toml"


def default_secrets_path() -> Path:
    return default_groupbot_dir() / "secrets.toml"


def ensure_private_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)
    try:
        # Best-effort tightening; may fail on some filesystems.
        os.chmod(path, 0o700)
    except OSError:
        pass
