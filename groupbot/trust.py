"""Administrator and ban roster for the bot, persisted to the secrets file."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.toml_document import TOMLDocument

from .constants import K_ADMINISTRATORS, K_BANNED
from .errors import RosterPersistError
from .util import expand_path, normalize_identity


def _clean_ids(values: Iterable | None) -> set[str]:
    out: set[str] = set()
    for v in values or ():
        s = normalize_identity(v)
        if s is not None:
            out.add(s)
    return out


class RosterStore:
    """
    Owns the administrator and banned sets of stable identifiers.

    Handles:
    - Membership checks
    - Exclusive insertion (an identifier is never in both sets)
    - Read-merge-write persistence of the owned keys to the secrets file
    - Retrying a failed write before accepting the next mutation

    Only the ``administrators`` and ``banned`` keys are owned; credentials and
    any other keys in the secrets file are preserved, comments included.
    Single writer only: concurrent edits of the file by another process are
    not detected.
    """

    def __init__(
        self,
        path: str | None = None,
        *,
        administrators: Iterable[str] | None = None,
        banned: Iterable[str] | None = None,
    ) -> None:
        self.log = logging.getLogger("groupbot.roster")
        self.path = expand_path(path) if path else None

        self._administrators = _clean_ids(administrators)
        self._banned = _clean_ids(banned)
        # Keys whose last write failed; flushed before the next mutation.
        self._unsaved: set[str] = set()

    @classmethod
    def load(cls, path: str) -> RosterStore:
        """Load both sets from the secrets file at ``path``."""
        store = cls(path)
        doc = store._read_document()
        store._administrators = _clean_ids(doc.get(K_ADMINISTRATORS))
        store._banned = _clean_ids(doc.get(K_BANNED))
        store.log.info(
            "Loaded roster administrators=%s banned=%s path=%s",
            len(store._administrators),
            len(store._banned),
            store.path,
        )
        return store

    @property
    def administrators(self) -> frozenset[str]:
        return frozenset(self._administrators)

    @property
    def banned(self) -> frozenset[str]:
        return frozenset(self._banned)

    @property
    def has_unsaved_changes(self) -> bool:
        return bool(self._unsaved)

    def is_admin(self, stable_id: str | None) -> bool:
        if not stable_id:
            return False
        return stable_id in self._administrators

    def is_banned(self, stable_id: str | None) -> bool:
        if not stable_id:
            return False
        return stable_id in self._banned

    def promote(self, stable_id: str) -> bool:
        """Add an identifier to the administrators.

        Returns False if it is banned (it is never moved between sets).
        """
        self.flush()
        if stable_id in self._banned:
            return False
        if stable_id in self._administrators:
            return True
        self._administrators.add(stable_id)
        self.log.info("Promoted %s", stable_id)
        self._persist(K_ADMINISTRATORS)
        return True

    def ban(self, stable_id: str) -> bool:
        """Add an identifier to the banned set.

        Returns False if it is an administrator; administrators are not
        demoted implicitly.
        """
        self.flush()
        if stable_id in self._administrators:
            return False
        if stable_id in self._banned:
            return True
        self._banned.add(stable_id)
        self.log.info("Banned %s", stable_id)
        self._persist(K_BANNED)
        return True

    def unban(self, stable_id: str) -> bool:
        """Remove an identifier from the banned set. Returns False if absent."""
        self.flush()
        if stable_id not in self._banned:
            return False
        self._banned.discard(stable_id)
        self.log.info("Unbanned %s", stable_id)
        self._persist(K_BANNED)
        return True

    def flush(self) -> None:
        """Retry writes that failed earlier.

        Raises RosterPersistError if any key still cannot be written.
        """
        for key in sorted(self._unsaved):
            self._write_key(key)
            self._unsaved.discard(key)
            self.log.info("Recovered unsaved roster key %s", key)

    def get_stats(self) -> dict[str, int]:
        return {
            "administrators": len(self._administrators),
            "banned": len(self._banned),
        }

    def _values_for(self, key: str) -> list[str]:
        if key == K_ADMINISTRATORS:
            return sorted(self._administrators)
        return sorted(self._banned)

    def _persist(self, key: str) -> None:
        if not self.path:
            self.log.warning("Roster %s updated (not persisted; no secrets path)", key)
            return
        try:
            self._write_key(key)
        except RosterPersistError:
            self._unsaved.add(key)
            raise

    def _read_document(self) -> TOMLDocument:
        if not self.path:
            return tomlkit.document()
        try:
            with open(self.path, encoding="utf-8") as f:
                return tomlkit.parse(f.read())
        except FileNotFoundError:
            return tomlkit.document()
        except (OSError, TOMLKitError) as e:
            raise RosterPersistError(f"cannot read {self.path}: {e}") from e

    def _write_key(self, key: str) -> None:
        assert self.path is not None

        try:
            st = os.stat(self.path)
        except OSError:
            st = None

        try:
            doc = self._read_document()
            doc[key] = self._values_for(key)
            new_text = tomlkit.dumps(doc)
            with open(self.path, "w", encoding="utf-8") as f:
                f.write(new_text)
        except RosterPersistError:
            self.log.error("Roster %s not persisted to %s", key, self.path)
            raise
        except (OSError, TOMLKitError) as e:
            self.log.error("Roster %s not persisted to %s: %s", key, self.path, e)
            raise RosterPersistError(f"cannot write {self.path}: {e}") from e

        if st is not None:
            try:
                os.chmod(self.path, st.st_mode)
            except OSError:
                pass
