#!/usr/bin/env python3
"""
Tracking Rebuild Script.

Clears the tracking ledger of one datasource and re-tracks every in-scope
item, optionally applying a new scope configuration first.

Usage:
    python -m scripts.rebuild_tracking --record-type node
    python -m scripts.rebuild_tracking --record-type node \
        --mode EXCLUDE_ALL_EXCEPT --bundles article,page
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from entity_datasource.domain.services import ContentEntityDatasource
from entity_datasource.domain.value_objects import ScopeConfiguration, ScopeMode
from entity_datasource.infrastructure.db.sqlite_record_store import SqliteRecordStore
from entity_datasource.infrastructure.db.sqlite_tracking_ledger import SqliteTrackingLedger
from entity_datasource.infrastructure.index.sqlite_search_index import SqliteSearchIndex

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Default paths
DEFAULT_DB_PATH = "data/records.db"
DEFAULT_INDEX_ID = "default"


def rebuild_tracking(
    db_path: str,
    index_id: str,
    record_type: str,
    configuration: Optional[ScopeConfiguration] = None,
) -> int:
    """
    Re-track every in-scope item of a datasource.

    Args:
        db_path: SQLite database holding records and the ledger
        index_id: Index whose ledger is rebuilt
        record_type: Record type exposed by the datasource
        configuration: Optional scope configuration to apply and store
            first; None uses the configuration stored with the index

    Returns:
        Number of tracked items after the rebuild
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    record_store = SqliteRecordStore(Path(db_path))
    ledger = SqliteTrackingLedger(Path(db_path), index_id)
    index = SqliteSearchIndex(Path(db_path), index_id=index_id, ledger=ledger)
    datasource = ContentEntityDatasource(
        record_type=record_type,
        record_store=record_store,
        index=index,
        configuration=configuration,
    )
    index.set_datasource_configuration(
        datasource.datasource_id, datasource.configuration.to_mapping()
    )

    logger.info(f"Scope of {datasource.datasource_id}: {datasource.get_scope_summary() or 'all'}")

    ledger.clear(datasource.datasource_id)
    item_ids = datasource.enumerate_item_ids()
    ledger.track_items_inserted(datasource.datasource_id, item_ids)

    tracked = ledger.count(datasource.datasource_id)
    logger.info(f"Tracked {tracked} items of {datasource.datasource_id} on index '{index_id}'")
    return tracked


def parse_bundles(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [bundle.strip() for bundle in value.split(",") if bundle.strip()]


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Rebuild the tracking ledger of an entity datasource"
    )
    parser.add_argument("--db-path", default=DEFAULT_DB_PATH, help="SQLite database path")
    parser.add_argument("--index-id", default=DEFAULT_INDEX_ID, help="Index identifier")
    parser.add_argument("--record-type", required=True, help="Record type to track")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ScopeMode],
        default=None,
        help="Scope mode to apply before rebuilding",
    )
    parser.add_argument(
        "--bundles",
        default=None,
        help="Comma-separated bundles selected by the scope mode",
    )
    args = parser.parse_args(argv)

    configuration = None
    if args.mode is not None or args.bundles is not None:
        configuration = ScopeConfiguration(
            mode=args.mode or ScopeMode.INCLUDE_ALL_EXCEPT,
            selected=frozenset(parse_bundles(args.bundles)),
        )

    try:
        rebuild_tracking(args.db_path, args.index_id, args.record_type, configuration)
    except (ValueError, RuntimeError) as e:
        logger.error(f"Rebuild failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
