"""
Port interfaces (protocols) for the domain layer.

Ports define the contracts between the domain and infrastructure layers.
They are implemented by adapters in the infrastructure layer, allowing
the domain to remain independent of technical details.

Following Hexagonal Architecture principles, the domain layer depends only
on these abstract protocols, never on concrete implementations.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol

from .entities import IndexField, Record
from .value_objects import FieldDefinition


class RecordStore(Protocol):
    """
    Port for reading records and their schema.

    This store abstracts away both the record storage and the schema
    registry (record types, bundles and field definitions).

    Implementations should handle:
    - Atomic reads of "all record ids matching a bundle filter"
    - Failing fast (raise) instead of hanging on storage errors
    """

    def has_bundles(self, record_type: str) -> bool:
        """
        Check whether records of this type are classified into bundles.

        Args:
            record_type: The record type to inspect

        Returns:
            True if the type has a bundle concept, False otherwise
        """
        ...

    def get_provider(self, record_type: str) -> str:
        """
        Get the module that provides this record type.

        Args:
            record_type: The record type to inspect

        Returns:
            The provider module name

        Raises:
            KeyError: If the record type is unknown
        """
        ...

    def get_bundles(self, record_type: str) -> Dict[str, str]:
        """
        Get all bundles of a record type.

        Args:
            record_type: The record type to inspect

        Returns:
            Mapping of bundle name to human-readable label. Types without a
            bundle concept return a single bundle named like the type.
        """
        ...

    def get_base_field_definitions(self, record_type: str) -> Dict[str, FieldDefinition]:
        """
        Get the fields shared by every bundle of a record type.

        Returns:
            Mapping of field name to definition
        """
        ...

    def get_field_definitions(
        self, record_type: str, bundle: str
    ) -> Dict[str, FieldDefinition]:
        """
        Get all fields of one bundle, base fields included.

        Returns:
            Mapping of field name to definition
        """
        ...

    def query_ids(
        self, record_type: str, bundles: Optional[Iterable[str]] = None
    ) -> List[str]:
        """
        Get the ids of all records of a type, optionally filtered by bundle.

        Args:
            record_type: The record type to query
            bundles: If given, only records in these bundles are returned

        Returns:
            List of record ids (order unspecified)
        """
        ...

    def load_records(self, record_type: str, ids: Iterable[str]) -> Dict[str, Record]:
        """
        Load records by id.

        Args:
            record_type: The record type to load from
            ids: Record ids to load

        Returns:
            Mapping of record id to Record. Missing ids are simply absent.
        """
        ...


class TrackingLedger(Protocol):
    """
    Port for the indexer's bookkeeping of known item ids.

    Both operations must be idempotent: re-inserting a tracked item or
    re-deleting an untracked one is not an error.
    """

    def track_items_inserted(self, datasource_id: str, item_ids: List[str]) -> None:
        """
        Start tracking items of a datasource.

        Raises:
            RuntimeError: If the ledger cannot be updated
        """
        ...

    def track_items_deleted(self, datasource_id: str, item_ids: List[str]) -> None:
        """
        Stop tracking items of a datasource.

        Raises:
            RuntimeError: If the ledger cannot be updated
        """
        ...


class IndexContext(Protocol):
    """
    Port for the search index a datasource is attached to.

    The datasource only needs to know whether the index is tracking,
    which fields it has and where its ledger is.
    """

    index_id: str
    """Identifier of the index"""

    ledger: TrackingLedger
    """Tracking ledger of this index"""

    def is_enabled(self) -> bool:
        """Check if the index is enabled."""
        ...

    def has_valid_tracker(self) -> bool:
        """Check if the index has a working tracking ledger."""
        ...

    def get_fields(self) -> List[IndexField]:
        """Get all fields of the index, across datasources."""
        ...

    def get_datasource_configuration(self, datasource_id: str) -> Optional[Mapping[str, Any]]:
        """
        Get the persisted scope configuration of one datasource.

        Returns:
            The configuration mapping, or None if the datasource is not
            attached to this index
        """
        ...

    def set_datasource_configuration(
        self, datasource_id: str, configuration: Mapping[str, Any]
    ) -> None:
        """
        Persist the scope configuration of one datasource.

        The configuration is stored as a whole, replacing the previous one.
        """
        ...


class ViewBuilder(Protocol):
    """
    Port for rendering records.

    Presentation is not part of indexing; the datasource only forwards to
    a view builder when one supports the record type.
    """

    def supports(self, record_type: str) -> bool:
        """Check if records of this type can be rendered."""
        ...

    def view(self, record: Record, view_mode: str, langcode: str) -> Dict[str, Any]:
        """Render a single record in one language."""
        ...

    def view_multiple(
        self, records: Mapping[Any, Record], view_mode: str, langcode: str
    ) -> Dict[Any, Dict[str, Any]]:
        """Render several records in one language, keeping their keys."""
        ...
