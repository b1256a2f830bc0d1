"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of the store, the index and the
datasource for use with FastAPI's Depends() system.

Note: We use module-level singletons instead of @lru_cache with Depends()
parameters, which is an antipattern that can cause unexpected behavior.
"""

import os
from pathlib import Path
from typing import Optional

from entity_datasource.domain.services import ContentEntityDatasource
from entity_datasource.infrastructure.db.sqlite_record_store import SqliteRecordStore
from entity_datasource.infrastructure.db.sqlite_tracking_ledger import SqliteTrackingLedger
from entity_datasource.infrastructure.index.sqlite_search_index import SqliteSearchIndex

# Configuration from environment
DB_PATH = Path(os.getenv("DB_PATH", "data/records.db"))
INDEX_ID = os.getenv("INDEX_ID", "default")
RECORD_TYPE = os.getenv("RECORD_TYPE", "node")

# Module-level singletons (initialized lazily)
_record_store: Optional[SqliteRecordStore] = None
_search_index: Optional[SqliteSearchIndex] = None
_datasource: Optional[ContentEntityDatasource] = None


def get_record_store() -> SqliteRecordStore:
    """Provide a singleton instance of the record store."""
    global _record_store
    if _record_store is None:
        _record_store = SqliteRecordStore(DB_PATH)
    return _record_store


def get_search_index() -> SqliteSearchIndex:
    """Provide a singleton instance of the index the datasource is attached to."""
    global _search_index
    if _search_index is None:
        _search_index = SqliteSearchIndex(
            db_path=DB_PATH,
            index_id=INDEX_ID,
            ledger=SqliteTrackingLedger(DB_PATH, INDEX_ID),
        )
    return _search_index


def get_datasource() -> ContentEntityDatasource:
    """Provide the datasource with all dependencies wired."""
    global _datasource
    if _datasource is None:
        _datasource = ContentEntityDatasource(
            record_type=RECORD_TYPE,
            record_store=get_record_store(),
            index=get_search_index(),
        )
    return _datasource


def reset_dependencies() -> None:
    """
    Reset all singletons. Useful for testing.

    This allows tests to inject fake dependencies by resetting
    the module state between test cases.
    """
    global _record_store, _search_index, _datasource

    _record_store = None
    _search_index = None
    _datasource = None
