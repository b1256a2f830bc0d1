"""
Item id enumeration for one record type.

Expands records into item ids, one per translation, optionally limited
to a set of bundles.
"""

import logging
from typing import Callable, FrozenSet, Iterable, List, Optional

from entity_datasource.domain.ports import RecordStore

logger = logging.getLogger(__name__)


class ItemEnumerator:
    """
    Enumerates the item ids of records in a set of bundles.

    The result is materialized eagerly and its order is unspecified.

    Usage:
        enumerator = ItemEnumerator(
            record_store=store,
            record_type="node",
            indexed_bundles=datasource.get_indexed_bundles,
        )
        item_ids = enumerator.enumerate({"article"})
    """

    def __init__(
        self,
        record_store: RecordStore,
        record_type: str,
        indexed_bundles: Callable[[], FrozenSet[str]],
    ) -> None:
        """
        Args:
            record_store: Store to query record ids and records from
            record_type: Record type to enumerate
            indexed_bundles: Callable returning the currently in-scope
                bundles, used when no explicit bundle set is requested
        """
        self._record_store = record_store
        self._record_type = record_type
        self._indexed_bundles = indexed_bundles

    def enumerate(self, bundles: Optional[Iterable[str]] = None) -> List[str]:
        """
        Get the item ids of all records in the given bundles.

        Args:
            bundles: Bundles to enumerate; None means the currently
                in-scope bundles

        Returns:
            One item id per (record, translation) pair
        """
        if bundles is None:
            bundles = self._indexed_bundles()
        bundles = frozenset(bundles)

        has_bundles = self._record_store.has_bundles(self._record_type)
        if has_bundles and not bundles:
            return []

        bundle_filter: Optional[FrozenSet[str]] = None
        if has_bundles:
            available = frozenset(self._record_store.get_bundles(self._record_type))
            # Filtering on every available bundle is the same as not filtering.
            if bundles != available:
                bundle_filter = bundles

        record_ids = self._record_store.query_ids(self._record_type, bundle_filter)
        if not record_ids:
            return []

        records = self._record_store.load_records(self._record_type, record_ids)
        item_ids: List[str] = []
        for record in records.values():
            item_ids.extend(record.item_ids())

        logger.debug(
            f"Enumerated {len(item_ids)} items from {len(records)} "
            f"'{self._record_type}' records"
        )
        return item_ids

    def enumerate_page(self, limit: Optional[int] = None, offset: int = 0) -> List[str]:
        """
        Get a slice of the in-scope item ids.

        Paging is applied on top of the eager enumeration, and since the
        order is unspecified, pages are only stable while the store does
        not change.

        Args:
            limit: Maximum number of ids; None or a negative value means
                no limit
            offset: Number of ids to skip

        Returns:
            The requested slice of item ids

        Raises:
            ValueError: If offset is negative
        """
        if offset < 0:
            raise ValueError(f"offset cannot be negative, got {offset}")

        item_ids = self.enumerate()
        if limit is None or limit < 0:
            return item_ids[offset:]
        return item_ids[offset: offset + limit]
