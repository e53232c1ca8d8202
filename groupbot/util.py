from __future__ import annotations

import os


def expand_path(p: str) -> str:
    return os.path.expanduser(os.path.expandvars(p))


def normalize_identity(value) -> str | None:
    """Return a cleaned stable identifier, or None if it is unusable."""
    if value is None:
        return None

    s = str(value).strip()
    if not s:
        return None

    # Identifiers end up as TOML strings and in chat lines.
    if "\n" in s or "\r" in s or "\x00" in s:
        return None

    return s


def join_names(names) -> str:
    return " ".join(str(n) for n in names)
