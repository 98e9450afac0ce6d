"""Allowed-permission set backed by a line-oriented text file.

File format: UTF-8, one permission per line, sorted, newline-terminated,
no blank lines. The file is the source of truth at startup; the in-memory
set is the source of truth while running.
"""
from __future__ import annotations

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)


class PermissionStore:
    """In-memory allowed set plus load/save against ``path``.

    Mutators only touch memory and report whether anything changed; callers
    decide when to persist. Readers use snapshot(), an immutable frozenset
    swapped under the lock after each mutation.
    """

    def __init__(self, path: Path | str, initial: Iterable[str] = ()):
        self._path = Path(path)
        self._lock = threading.Lock()
        self._perms: set[str] = set(initial)
        self._snapshot: frozenset[str] = frozenset(self._perms)
        # One op list per load in flight; mutators append so the load can replay them.
        self._journals: list[list[tuple[str, str]]] = []

    @property
    def path(self) -> Path:
        return self._path

    def _publish(self, op: str, permission: str) -> None:
        # Caller holds self._lock.
        self._snapshot = frozenset(self._perms)
        for journal in self._journals:
            journal.append((op, permission))

    @staticmethod
    def _replay(perms: set[str], journal: list[tuple[str, str]]) -> None:
        for op, permission in journal:
            if op == "add":
                perms.add(permission)
            elif op == "remove":
                perms.discard(permission)
            elif op == "remove_by_prefix":
                perms.difference_update([p for p in perms if p.startswith(permission)])
            elif op == "clear":
                perms.clear()

    def begin_load(self) -> list[tuple[str, str]]:
        """Start recording mutations for a load that will run later.

        Pass the returned journal to load(); changes made after this call
        survive the load.
        """
        journal: list[tuple[str, str]] = []
        with self._lock:
            self._journals.append(journal)
        return journal

    def load(self, journal: list[tuple[str, str]] | None = None) -> int:
        """Replace the in-memory set with the file contents.

        Creates an empty file when none exists. Read failures are logged and
        leave the set empty. Mutations recorded in ``journal`` (see
        begin_load) are re-applied on top of the loaded contents. Returns the
        resulting count.
        """
        logger.info("Loading perms from %s", self._path)
        if journal is None:
            journal = self.begin_load()
        loaded: set[str] = set()
        if self._path.exists():
            try:
                with open(self._path, "r", encoding="utf-8") as f:
                    for line in f:
                        value = line.strip()
                        if value:
                            loaded.add(value)
            except (OSError, UnicodeDecodeError) as e:
                logger.error("Error loading perms from %s: %s", self._path, e)
                loaded = set()
        else:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._path.touch(exist_ok=True)
            except OSError as e:
                logger.error("Error creating new perms file %s: %s", self._path, e)

        with self._lock:
            self._journals = [j for j in self._journals if j is not journal]
            if journal:
                logger.info("Re-applying %d changes made during load", len(journal))
                self._replay(loaded, journal)
            self._perms = loaded
            self._snapshot = frozenset(self._perms)
            count = len(self._perms)
        logger.info("Loaded %d perms", count)
        return count

    def save(self) -> bool:
        """Write the current set, sorted, replacing the file atomically.

        On failure the previous file is left as it was. Returns True on success.
        """
        logger.info("Writing perms to %s", self._path)
        perms = self.snapshot_sorted()
        content = "".join(f"{p}\n" for p in perms)

        tmp_path: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self._path.parent), prefix=f".{self._path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self._path)
            tmp_path = None
        except OSError as e:
            logger.error("Error writing perms to %s: %s", self._path, e)
            return False
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    pass

        logger.info("Wrote %d perms", len(perms))
        return True

    def add(self, permission: str) -> bool:
        with self._lock:
            if permission in self._perms:
                return False
            self._perms.add(permission)
            self._publish("add", permission)
            return True

    def remove(self, permission: str) -> bool:
        with self._lock:
            if permission not in self._perms:
                return False
            self._perms.discard(permission)
            self._publish("remove", permission)
            return True

    def remove_by_prefix(self, prefix: str) -> bool:
        """Remove every permission starting with ``prefix``, itself included."""
        with self._lock:
            doomed = {p for p in self._perms if p.startswith(prefix)}
            if not doomed:
                return False
            self._perms -= doomed
            self._publish("remove_by_prefix", prefix)
            return True

    def clear(self) -> bool:
        with self._lock:
            if not self._perms:
                return False
            self._perms = set()
            self._publish("clear", "")
            return True

    def snapshot(self) -> frozenset[str]:
        return self._snapshot

    def snapshot_sorted(self) -> list[str]:
        return sorted(self._snapshot)

    def __len__(self) -> int:
        return len(self._snapshot)

    def __contains__(self, permission: object) -> bool:
        return permission in self._snapshot
