"""
SQLite implementation of the TrackingLedger port.

The ledger records which item ids of which datasource an index currently
knows about. Inserts and deletes are idempotent, so replaying the same
reconciliation twice leaves the ledger unchanged.
"""

import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Union

from entity_datasource.domain.ports import TrackingLedger

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


class SqliteTrackingLedger(TrackingLedger):
    """Tracking ledger of one index, stored in a SQLite table."""

    def __init__(self, db_path: Union[Path, str], index_id: str) -> None:
        if not index_id or not index_id.strip():
            raise ValueError("index_id cannot be empty")
        self._index_id = index_id
        self._memory_conn: Optional[sqlite3.Connection] = None
        if str(db_path) == MEMORY_DB:
            self._db_path = None
            self._memory_conn = self._connect(MEMORY_DB)
        else:
            self._db_path = Path(db_path)
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @staticmethod
    def _connect(target: str) -> sqlite3.Connection:
        conn = sqlite3.connect(target)
        conn.row_factory = sqlite3.Row
        return conn

    def _get_connection(self) -> sqlite3.Connection:
        if self._memory_conn is not None:
            return self._memory_conn
        return self._connect(str(self._db_path))

    def _init_schema(self) -> None:
        with self._get_connection() as conn:
            conn.execute("""
            CREATE TABLE IF NOT EXISTS tracked_items (
                index_id TEXT NOT NULL,
                datasource_id TEXT NOT NULL,
                item_id TEXT NOT NULL,
                PRIMARY KEY (index_id, datasource_id, item_id)
            )
        """)

    @property
    def index_id(self) -> str:
        return self._index_id

    def track_items_inserted(self, datasource_id: str, item_ids: List[str]) -> None:
        """Start tracking items; already tracked items are left alone."""
        if not item_ids:
            return
        try:
            with self._get_connection() as conn:
                conn.executemany(
                    "INSERT OR IGNORE INTO tracked_items (index_id, datasource_id, item_id) "
                    "VALUES (?, ?, ?)",
                    [(self._index_id, datasource_id, item_id) for item_id in item_ids],
                )
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while tracking inserted items: {e}") from e
        logger.debug(f"Tracked {len(item_ids)} inserted items of {datasource_id}")

    def track_items_deleted(self, datasource_id: str, item_ids: List[str]) -> None:
        """Stop tracking items; untracked items are ignored."""
        if not item_ids:
            return
        try:
            with self._get_connection() as conn:
                conn.executemany(
                    "DELETE FROM tracked_items "
                    "WHERE index_id = ? AND datasource_id = ? AND item_id = ?",
                    [(self._index_id, datasource_id, item_id) for item_id in item_ids],
                )
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while tracking deleted items: {e}") from e
        logger.debug(f"Tracked {len(item_ids)} deleted items of {datasource_id}")

    def get_tracked_item_ids(self, datasource_id: Optional[str] = None) -> List[str]:
        """Get tracked item ids, optionally for one datasource only."""
        try:
            with self._get_connection() as conn:
                if datasource_id is None:
                    rows = conn.execute(
                        "SELECT item_id FROM tracked_items WHERE index_id = ? ORDER BY item_id",
                        (self._index_id,),
                    ).fetchall()
                else:
                    rows = conn.execute(
                        "SELECT item_id FROM tracked_items "
                        "WHERE index_id = ? AND datasource_id = ? ORDER BY item_id",
                        (self._index_id, datasource_id),
                    ).fetchall()
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while reading tracked items: {e}") from e
        return [row["item_id"] for row in rows]

    def count(self, datasource_id: Optional[str] = None) -> int:
        return len(self.get_tracked_item_ids(datasource_id))

    def clear(self, datasource_id: Optional[str] = None) -> None:
        """Forget every tracked item, optionally of one datasource only."""
        try:
            with self._get_connection() as conn:
                if datasource_id is None:
                    conn.execute("DELETE FROM tracked_items WHERE index_id = ?", (self._index_id,))
                else:
                    conn.execute(
                        "DELETE FROM tracked_items WHERE index_id = ? AND datasource_id = ?",
                        (self._index_id, datasource_id),
                    )
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while clearing tracked items: {e}") from e
