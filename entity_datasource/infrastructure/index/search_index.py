"""
In-process implementation of the IndexContext port.

Holds the index's enabled flag, its fields and the persisted scope
configuration of each attached datasource, and hands out the ledger.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from entity_datasource.domain.entities import IndexField
from entity_datasource.domain.ports import IndexContext, TrackingLedger


class SearchIndex(IndexContext):
    """
    Usage:
        index = SearchIndex("content", ledger=SqliteTrackingLedger(db_path, "content"))
        index.attach_datasource("entity:node", {"mode": "INCLUDE_ALL_EXCEPT", "selected": []})
    """

    def __init__(
        self,
        index_id: str,
        ledger: Optional[TrackingLedger],
        enabled: bool = True,
        fields: Optional[Iterable[IndexField]] = None,
    ) -> None:
        if not index_id or not index_id.strip():
            raise ValueError("index_id cannot be empty")
        self.index_id = index_id
        self.ledger = ledger
        self._enabled = enabled
        self._fields: List[IndexField] = list(fields or [])
        self._datasource_configurations: Dict[str, Dict[str, Any]] = {}

    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def has_valid_tracker(self) -> bool:
        return self.ledger is not None

    def get_fields(self) -> List[IndexField]:
        return list(self._fields)

    def add_field(self, field: IndexField) -> None:
        """Add a field; a field with the same id is replaced."""
        self._fields = [f for f in self._fields if f.field_id != field.field_id]
        self._fields.append(field)

    def attach_datasource(
        self, datasource_id: str, configuration: Optional[Mapping[str, Any]] = None
    ) -> None:
        self._datasource_configurations[datasource_id] = dict(configuration or {})

    def set_datasource_configuration(
        self, datasource_id: str, configuration: Mapping[str, Any]
    ) -> None:
        """Persist a datasource's configuration, attaching it if needed."""
        self._datasource_configurations[datasource_id] = dict(configuration)

    def get_datasource_configuration(self, datasource_id: str) -> Optional[Mapping[str, Any]]:
        return self._datasource_configurations.get(datasource_id)

    def get_datasource_ids(self) -> List[str]:
        return list(self._datasource_configurations)
