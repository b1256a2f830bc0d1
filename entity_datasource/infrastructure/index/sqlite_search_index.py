"""
SQLite-backed implementation of the IndexContext port.

Datasource configurations are stored as JSON per (index_id, datasource_id),
so they survive restarts together with the tracking ledger kept in the
same database.
"""

import json
import sqlite3
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Union

from entity_datasource.domain.entities import IndexField
from entity_datasource.domain.ports import TrackingLedger
from entity_datasource.infrastructure.index.search_index import SearchIndex

MEMORY_DB = ":memory:"


class SqliteSearchIndex(SearchIndex):
    """
    Usage:
        index = SqliteSearchIndex(
            db_path,
            "content",
            ledger=SqliteTrackingLedger(db_path, "content"),
        )
    """

    def __init__(
        self,
        db_path: Union[Path, str],
        index_id: str,
        ledger: Optional[TrackingLedger],
        enabled: bool = True,
        fields: Optional[Iterable[IndexField]] = None,
    ) -> None:
        super().__init__(index_id, ledger=ledger, enabled=enabled, fields=fields)
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
            CREATE TABLE IF NOT EXISTS datasource_configurations (
                index_id TEXT NOT NULL,
                datasource_id TEXT NOT NULL,
                configuration TEXT NOT NULL,
                PRIMARY KEY (index_id, datasource_id)
            )
        """)

    def attach_datasource(
        self, datasource_id: str, configuration: Optional[Mapping[str, Any]] = None
    ) -> None:
        self.set_datasource_configuration(datasource_id, configuration or {})

    def set_datasource_configuration(
        self, datasource_id: str, configuration: Mapping[str, Any]
    ) -> None:
        """Persist a datasource's configuration, attaching it if needed."""
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO datasource_configurations (index_id, datasource_id, configuration)
                    VALUES (?, ?, ?)
                    ON CONFLICT(index_id, datasource_id) DO UPDATE SET
                        configuration=excluded.configuration
                """, (self.index_id, datasource_id, json.dumps(dict(configuration))))
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving datasource configuration: {e}") from e

    def get_datasource_configuration(self, datasource_id: str) -> Optional[Mapping[str, Any]]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT configuration FROM datasource_configurations "
                    "WHERE index_id = ? AND datasource_id = ?",
                    (self.index_id, datasource_id),
                ).fetchone()
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while reading datasource configuration: {e}") from e
        if row is None:
            return None
        return json.loads(row["configuration"])

    def get_datasource_ids(self) -> List[str]:
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT datasource_id FROM datasource_configurations "
                    "WHERE index_id = ? ORDER BY datasource_id",
                    (self.index_id,),
                ).fetchall()
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while listing datasources: {e}") from e
        return [row["datasource_id"] for row in rows]
