"""
SQLite-backed sets of integer ids.

Two independent stores are kept, each a single table of unique ids:
the listings already seen in the feed and the chats that receive
notifications. A connection is opened per operation, so the stores can be
shared between the poll job and the update handler; SQLite serializes the
writes.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Union

from .errors import StoreError

logger = logging.getLogger(__name__)

SQLITE_TIMEOUT = 10.0


class IdSetStore:
    """A persistent set of integers stored as ``<table>(id INTEGER PRIMARY KEY)``."""

    table: str = ""

    def __init__(self, db_path: Union[str, Path]) -> None:
        if not self.table.isidentifier():
            raise ValueError(f"Invalid table name {self.table!r}")
        self.db_path = Path(db_path)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StoreError(f"Cannot create directory for {self.db_path}: {e}") from e
        self._ensure_table()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self.db_path)!r})"

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection inside a transaction; map SQLite errors to StoreError."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=SQLITE_TIMEOUT)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open {self.db_path}: {e}") from e
        try:
            with conn:
                yield conn
        except sqlite3.Error as e:
            raise StoreError(f"{self.table} store failure in {self.db_path}: {e}") from e
        finally:
            conn.close()

    def _ensure_table(self) -> None:
        with self._connect() as conn:
            conn.execute(f"CREATE TABLE IF NOT EXISTS {self.table}(id INTEGER PRIMARY KEY)")
        logger.debug("Table %s ready in %s", self.table, self.db_path)

    def contains(self, item_id: int) -> bool:
        """Return True if the id is already stored."""
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT 1 FROM {self.table} WHERE id = ?", (item_id,)
            ).fetchone()
        return row is not None

    def add(self, item_id: int) -> bool:
        """
        Insert an id. Adding an id that is already present is a no-op.

        Returns:
            True if the id was inserted, False if it was already stored.

        Raises:
            StoreError: If the database cannot be written.
        """
        with self._connect() as conn:
            cursor = conn.execute(
                f"INSERT OR IGNORE INTO {self.table}(id) VALUES (?)", (item_id,)
            )
            return cursor.rowcount == 1

    def ids(self) -> List[int]:
        """Read every stored id, in ascending order."""
        with self._connect() as conn:
            rows = conn.execute(f"SELECT id FROM {self.table} ORDER BY id").fetchall()
        return [row[0] for row in rows]

    def count(self) -> int:
        with self._connect() as conn:
            (total,) = conn.execute(f"SELECT COUNT(*) FROM {self.table}").fetchone()
        return total


class SeenListingStore(IdSetStore):
    """Listing ids that have already been observed in the feed."""

    table = "houses"


class RecipientStore(IdSetStore):
    """Telegram chat ids that receive listing notifications."""

    table = "chats"

    def list_all(self) -> List[int]:
        """Return every registered chat id. Each call is a fresh read."""
        return self.ids()
