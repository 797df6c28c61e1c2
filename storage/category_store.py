# storage/category_store.py
"""
Persistence for learned categories.

Every store speaks the same two-call contract:
  load() -> previously saved categories (may raise ParseError)
  save(categories) -> persist exactly that list (may raise WriteError)

The caller is responsible for leaving the default seed out of what it saves.
"""
from __future__ import annotations

import contextlib
import json
import logging
import os
import sqlite3
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Sequence

from ext_utils.categories import category_key

log = logging.getLogger("storage.categories")

DEFAULT_STORAGE_KEY = "userCategories"


class StorageError(Exception):
    """Base class for category persistence failures."""


class ParseError(StorageError):
    """Persisted data could not be read or decoded."""


class WriteError(StorageError):
    """Categories could not be persisted."""


class CategoryStore(ABC):
    """Load/save the user's learned categories."""

    @abstractmethod
    def load(self) -> Any: ...

    @abstractmethod
    def save(self, categories: Sequence[str]) -> None: ...


class MemoryCategoryStore(CategoryStore):
    """In-process store; nothing survives the process."""

    def __init__(self, initial: Any = None):
        if initial is None:
            initial = []
        self._data: Any = list(initial) if isinstance(initial, (list, tuple)) else initial
        self.save_count = 0

    def load(self) -> Any:
        if isinstance(self._data, list):
            return list(self._data)
        return self._data

    def save(self, categories: Sequence[str]) -> None:
        self._data = list(categories)
        self.save_count += 1


class JsonFileCategoryStore(CategoryStore):
    """
    JSON key/value file, one key per stored value (the shape browser
    local storage has). Categories are kept under `key`; other keys in the
    same file are left untouched.
    """

    def __init__(self, path: str | Path, key: str = DEFAULT_STORAGE_KEY):
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ParseError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ParseError(f"Expected a JSON object in {self.path}")
        return data

    def load(self) -> Any:
        """
        Stored value for the key, or [] when nothing was saved yet.
        A non-list value is returned as-is; rejecting it is the caller's call.
        """
        return self._read_all().get(self.key, [])

    def save(self, categories: Sequence[str]) -> None:
        try:
            data = self._read_all()
        except ParseError:
            log.warning("Overwriting unreadable category file %s", self.path)
            data = {}
        data[self.key] = list(categories)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            # write-then-rename
            fd, tmp = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=self.path.name, suffix=".tmp"
            )
        except OSError as e:
            raise WriteError(f"Cannot write {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except OSError as e:
            # no stray .tmp files next to the store
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise WriteError(f"Cannot write {self.path}: {e}") from e


class SQLiteCategoryStore(CategoryStore):
    """Learned categories in the user_categories table of the expense DB."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def load(self) -> List[str]:
        try:
            cur = self.conn.cursor()
            cur.execute("SELECT name FROM user_categories ORDER BY position")
            return [row[0] for row in cur.fetchall()]
        except sqlite3.Error as e:
            raise ParseError(f"Cannot read user_categories: {e}") from e

    def save(self, categories: Sequence[str]) -> None:
        rows = [
            (pos, name, category_key(name)) for pos, name in enumerate(categories)
        ]
        try:
            with self.conn:
                self.conn.execute("DELETE FROM user_categories")
                self.conn.executemany(
                    "INSERT INTO user_categories (position, name, name_key) VALUES (?, ?, ?)",
                    rows,
                )
        except sqlite3.Error as e:
            raise WriteError(f"Cannot write user_categories: {e}") from e


def category_store_from_settings(settings, conn: Optional[sqlite3.Connection] = None) -> CategoryStore:
    """
    Build the configured store. `settings` is a StorageSettings;
    the sqlite backend needs an open connection to the expense database.
    """
    backend = (settings.category_backend or "").lower()
    if backend == "memory":
        return MemoryCategoryStore()
    if backend == "json":
        return JsonFileCategoryStore(settings.category_file, key=settings.storage_key)
    if backend == "sqlite":
        if conn is None:
            raise ValueError("sqlite category backend needs a database connection")
        return SQLiteCategoryStore(conn)
    raise ValueError(f"Unknown category backend: {settings.category_backend!r}")
