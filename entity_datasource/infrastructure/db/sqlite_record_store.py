"""
SQLite implementation of the RecordStore port.

This adapter persists record types, bundles, field definitions, records
and their translations to a SQLite database, handling
serialization/deserialization of translation field values.
"""

import json
import sqlite3
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from entity_datasource.domain.entities import Record
from entity_datasource.domain.ports import RecordStore
from entity_datasource.domain.value_objects import FieldDefinition

MEMORY_DB = ":memory:"

# Base fields are stored with an empty bundle.
BASE_BUNDLE = ""


class SqliteRecordStore(RecordStore):
    """
    Record types without a bundle concept keep a single implicit bundle named
    like the type, so every record always has a bundle.

    An in-memory database keeps one shared connection for the lifetime of the
    store; file databases open a connection per operation.
    """

    def __init__(self, db_path: Union[Path, str]) -> None:
        """
        Initialize the store with a database path (or ":memory:")
        """
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
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory."""
        if self._memory_conn is not None:
            return self._memory_conn
        return self._connect(str(self._db_path))

    def _init_schema(self) -> None:
        """Create the tables if they don't exist."""
        with self._get_connection() as conn:
            conn.executescript("""
            CREATE TABLE IF NOT EXISTS record_types (
                record_type TEXT PRIMARY KEY,
                provider TEXT NOT NULL,
                label TEXT,
                has_bundles INTEGER NOT NULL DEFAULT 1
            );

            CREATE TABLE IF NOT EXISTS bundles (
                record_type TEXT NOT NULL REFERENCES record_types(record_type) ON DELETE CASCADE,
                bundle TEXT NOT NULL,
                label TEXT,
                PRIMARY KEY (record_type, bundle)
            );

            CREATE TABLE IF NOT EXISTS field_definitions (
                record_type TEXT NOT NULL REFERENCES record_types(record_type) ON DELETE CASCADE,
                bundle TEXT NOT NULL,
                name TEXT NOT NULL,
                configurable INTEGER NOT NULL DEFAULT 0,
                config_dependency_name TEXT,
                target_type TEXT,
                label TEXT,
                PRIMARY KEY (record_type, bundle, name)
            );

            CREATE TABLE IF NOT EXISTS records (
                record_type TEXT NOT NULL REFERENCES record_types(record_type) ON DELETE CASCADE,
                id TEXT NOT NULL,
                bundle TEXT NOT NULL,
                label TEXT,
                url TEXT,
                PRIMARY KEY (record_type, id)
            );

            CREATE TABLE IF NOT EXISTS translations (
                record_type TEXT NOT NULL,
                record_id TEXT NOT NULL,
                langcode TEXT NOT NULL,
                field_values TEXT NOT NULL,
                PRIMARY KEY (record_type, record_id, langcode),
                FOREIGN KEY (record_type, record_id)
                    REFERENCES records(record_type, id) ON DELETE CASCADE
            );

            CREATE INDEX IF NOT EXISTS idx_records_type_bundle ON records(record_type, bundle);
            """)

    # ------------------------------------------------------------------
    # Schema registry
    # ------------------------------------------------------------------

    def save_record_type(
        self,
        record_type: str,
        provider: str,
        bundles: Optional[Dict[str, str]] = None,
        label: Optional[str] = None,
    ) -> None:
        """
        Register a record type.

        Args:
            record_type: Machine name of the type
            provider: Module providing the type
            bundles: Bundle name -> label; None registers a type without a
                bundle concept
            label: Human-readable label of the type
        """
        has_bundles = bundles is not None
        if not has_bundles:
            bundles = {record_type: label or record_type}

        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO record_types (record_type, provider, label, has_bundles)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(record_type) DO UPDATE SET
                        provider=excluded.provider,
                        label=excluded.label,
                        has_bundles=excluded.has_bundles
                """, (record_type, provider, label, int(has_bundles)))
                conn.executemany(
                    "INSERT OR REPLACE INTO bundles (record_type, bundle, label) VALUES (?, ?, ?)",
                    [(record_type, bundle, bundle_label) for bundle, bundle_label in bundles.items()],
                )
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving record type: {e}") from e

    def save_bundle(self, record_type: str, bundle: str, label: Optional[str] = None) -> None:
        """Add or relabel a bundle of an existing record type."""
        try:
            with self._get_connection() as conn:
                conn.execute(
                    "INSERT OR REPLACE INTO bundles (record_type, bundle, label) VALUES (?, ?, ?)",
                    (record_type, bundle, label or bundle),
                )
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Bundle violates schema constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving bundle: {e}") from e

    def delete_bundle(self, record_type: str, bundle: str) -> bool:
        """Remove a bundle. Returns True if deleted."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM bundles WHERE record_type = ? AND bundle = ?",
                    (record_type, bundle),
                )
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while deleting bundle: {e}") from e

    def save_field_definition(
        self, record_type: str, definition: FieldDefinition, bundle: Optional[str] = None
    ) -> None:
        """
        Attach a field to a bundle, or to every bundle when `bundle` is None.
        """
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT OR REPLACE INTO field_definitions
                    (record_type, bundle, name, configurable, config_dependency_name,
                     target_type, label)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                """, (
                    record_type,
                    bundle if bundle is not None else BASE_BUNDLE,
                    definition.name,
                    int(definition.configurable),
                    definition.config_dependency_name,
                    definition.target_type,
                    definition.label,
                ))
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Field definition violates schema constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving field definition: {e}") from e

    def _get_type_row(self, record_type: str) -> Optional[sqlite3.Row]:
        with self._get_connection() as conn:
            return conn.execute(
                "SELECT * FROM record_types WHERE record_type = ?", (record_type,)
            ).fetchone()

    def has_bundles(self, record_type: str) -> bool:
        """Check whether records of this type are classified into bundles."""
        row = self._get_type_row(record_type)
        return bool(row and row["has_bundles"])

    def get_provider(self, record_type: str) -> str:
        """Get the module that provides this record type."""
        row = self._get_type_row(record_type)
        if row is None:
            raise KeyError(f"Unknown record type '{record_type}'")
        return row["provider"]

    def get_bundles(self, record_type: str) -> Dict[str, str]:
        """Get all bundles of a record type, with their labels."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT bundle, label FROM bundles WHERE record_type = ? ORDER BY bundle",
                (record_type,),
            ).fetchall()
        return {row["bundle"]: row["label"] or row["bundle"] for row in rows}

    @staticmethod
    def _row_to_field_definition(row: sqlite3.Row) -> FieldDefinition:
        return FieldDefinition(
            name=row["name"],
            configurable=bool(row["configurable"]),
            config_dependency_name=row["config_dependency_name"],
            target_type=row["target_type"],
            label=row["label"],
        )

    def get_base_field_definitions(self, record_type: str) -> Dict[str, FieldDefinition]:
        """Get the fields shared by every bundle of a record type."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM field_definitions WHERE record_type = ? AND bundle = ? ORDER BY name",
                (record_type, BASE_BUNDLE),
            ).fetchall()
        return {row["name"]: self._row_to_field_definition(row) for row in rows}

    def get_field_definitions(self, record_type: str, bundle: str) -> Dict[str, FieldDefinition]:
        """Get all fields of one bundle; bundle fields override base fields."""
        definitions = self.get_base_field_definitions(record_type)
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM field_definitions WHERE record_type = ? AND bundle = ? ORDER BY name",
                (record_type, bundle),
            ).fetchall()
        for row in rows:
            definitions[row["name"]] = self._row_to_field_definition(row)
        return definitions

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def save_record(self, record: Record) -> None:
        """
        Save a record with all its translations.

        Translations missing from `record` are deleted from the store.
        """
        try:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO records (record_type, id, bundle, label, url)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(record_type, id) DO UPDATE SET
                        bundle=excluded.bundle,
                        label=excluded.label,
                        url=excluded.url
                """, (record.record_type, record.id, record.bundle, record.label, record.url))
                conn.execute(
                    "DELETE FROM translations WHERE record_type = ? AND record_id = ?",
                    (record.record_type, record.id),
                )
                conn.executemany(
                    "INSERT INTO translations (record_type, record_id, langcode, field_values) "
                    "VALUES (?, ?, ?, ?)",
                    [
                        (record.record_type, record.id, langcode, json.dumps(values))
                        for langcode, values in record.translations.items()
                    ],
                )
        except sqlite3.IntegrityError as e:
            raise ValueError(f"Record violates store constraints: {e}") from e
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while saving record: {e}") from e

    def delete_record(self, record_type: str, record_id: str) -> bool:
        """Delete a record and its translations. Returns True if deleted."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM records WHERE record_type = ? AND id = ?",
                    (record_type, str(record_id)),
                )
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while deleting record: {e}") from e

    def delete_translation(self, record_type: str, record_id: str, langcode: str) -> bool:
        """Delete one language variant of a record. Returns True if deleted."""
        try:
            with self._get_connection() as conn:
                cursor = conn.execute(
                    "DELETE FROM translations "
                    "WHERE record_type = ? AND record_id = ? AND langcode = ?",
                    (record_type, str(record_id), langcode),
                )
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise RuntimeError(f"Database error while deleting translation: {e}") from e

    def query_ids(self, record_type: str, bundles: Optional[Iterable[str]] = None) -> List[str]:
        """Get the ids of all records of a type, optionally filtered by bundle."""
        with self._get_connection() as conn:
            if bundles is None:
                rows = conn.execute(
                    "SELECT id FROM records WHERE record_type = ? ORDER BY id",
                    (record_type,),
                ).fetchall()
            else:
                bundles = list(bundles)
                if not bundles:
                    return []
                placeholders = ", ".join("?" * len(bundles))
                rows = conn.execute(
                    f"SELECT id FROM records WHERE record_type = ? AND bundle IN ({placeholders}) "
                    f"ORDER BY id",
                    [record_type, *bundles],
                ).fetchall()
        return [row["id"] for row in rows]

    def load_records(self, record_type: str, ids: Iterable[str]) -> Dict[str, Record]:
        """Load records by id; missing ids are absent from the result."""
        ids = [str(record_id) for record_id in ids]
        if not ids:
            return {}

        placeholders = ", ".join("?" * len(ids))
        with self._get_connection() as conn:
            record_rows = conn.execute(
                f"SELECT * FROM records WHERE record_type = ? AND id IN ({placeholders})",
                [record_type, *ids],
            ).fetchall()
            translation_rows = conn.execute(
                f"SELECT * FROM translations WHERE record_type = ? AND record_id IN ({placeholders}) "
                f"ORDER BY langcode",
                [record_type, *ids],
            ).fetchall()

        translations: Dict[str, Dict[str, dict]] = {}
        for row in translation_rows:
            translations.setdefault(row["record_id"], {})[row["langcode"]] = json.loads(
                row["field_values"]
            )

        return {
            row["id"]: Record(
                id=row["id"],
                record_type=record_type,
                bundle=row["bundle"],
                label=row["label"],
                url=row["url"],
                translations=translations.get(row["id"], {}),
            )
            for row in record_rows
        }
