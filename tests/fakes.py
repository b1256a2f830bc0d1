"""
Fake port implementations shared by the tests.

The fakes keep everything in dictionaries and record the calls they
receive, so tests can assert on what the datasource asked for.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

from entity_datasource.domain.entities import IndexField, Record
from entity_datasource.domain.value_objects import FieldDefinition


# =============================================================================
# Fake implementations for testing
# =============================================================================


class FakeRecordStore:
    """Fake record store and schema registry with spy capabilities."""

    def __init__(self):
        self._providers: Dict[str, str] = {}
        self._bundles: Dict[str, Dict[str, str]] = {}
        self._has_bundles: Dict[str, bool] = {}
        self._base_fields: Dict[str, Dict[str, FieldDefinition]] = {}
        self._bundle_fields: Dict[tuple, Dict[str, FieldDefinition]] = {}
        self._records: Dict[str, Dict[str, Record]] = {}

        # Spy tracking
        self.query_calls: List[tuple] = []
        self.load_calls: List[tuple] = []

    def add_type(
        self,
        record_type: str,
        provider: str,
        bundles: Optional[Dict[str, str]] = None,
    ) -> None:
        self._providers[record_type] = provider
        self._has_bundles[record_type] = bundles is not None
        self._bundles[record_type] = dict(bundles) if bundles is not None else {record_type: record_type}
        self._records.setdefault(record_type, {})

    def add_field(
        self, record_type: str, definition: FieldDefinition, bundle: Optional[str] = None
    ) -> None:
        if bundle is None:
            self._base_fields.setdefault(record_type, {})[definition.name] = definition
        else:
            self._bundle_fields.setdefault((record_type, bundle), {})[definition.name] = definition

    def add_record(self, record: Record) -> None:
        self._records.setdefault(record.record_type, {})[record.id] = record

    def remove_bundle(self, record_type: str, bundle: str) -> None:
        self._bundles[record_type].pop(bundle, None)

    def has_bundles(self, record_type: str) -> bool:
        return self._has_bundles.get(record_type, False)

    def get_provider(self, record_type: str) -> str:
        return self._providers[record_type]

    def get_bundles(self, record_type: str) -> Dict[str, str]:
        return dict(self._bundles.get(record_type, {}))

    def get_base_field_definitions(self, record_type: str) -> Dict[str, FieldDefinition]:
        return dict(self._base_fields.get(record_type, {}))

    def get_field_definitions(self, record_type: str, bundle: str) -> Dict[str, FieldDefinition]:
        definitions = self.get_base_field_definitions(record_type)
        definitions.update(self._bundle_fields.get((record_type, bundle), {}))
        return definitions

    def query_ids(self, record_type: str, bundles: Optional[Iterable[str]] = None) -> List[str]:
        bundles = None if bundles is None else set(bundles)
        self.query_calls.append((record_type, bundles))
        return [
            record.id
            for record in self._records.get(record_type, {}).values()
            if bundles is None or record.bundle in bundles
        ]

    def load_records(self, record_type: str, ids: Iterable[str]) -> Dict[str, Record]:
        ids = list(ids)
        self.load_calls.append((record_type, ids))
        records = self._records.get(record_type, {})
        return {record_id: records[record_id] for record_id in ids if record_id in records}


class FakeTrackingLedger:
    """Fake ledger keeping a set of tracked ids per datasource."""

    def __init__(self):
        self.tracked: Dict[str, set] = {}

        # Spy tracking
        self.inserted_calls: List[tuple] = []
        self.deleted_calls: List[tuple] = []

    def track_items_inserted(self, datasource_id: str, item_ids: List[str]) -> None:
        self.inserted_calls.append((datasource_id, sorted(item_ids)))
        self.tracked.setdefault(datasource_id, set()).update(item_ids)

    def track_items_deleted(self, datasource_id: str, item_ids: List[str]) -> None:
        self.deleted_calls.append((datasource_id, sorted(item_ids)))
        self.tracked.setdefault(datasource_id, set()).difference_update(item_ids)


class FailingTrackingLedger(FakeTrackingLedger):
    """Fake ledger whose first `failures` deletions raise RuntimeError."""

    def __init__(self, failures: int = 1):
        super().__init__()
        self.failures = failures

    def track_items_deleted(self, datasource_id: str, item_ids: List[str]) -> None:
        if self.failures > 0:
            self.failures -= 1
            raise RuntimeError("ledger unavailable")
        super().track_items_deleted(datasource_id, item_ids)


class FakeIndex:
    """Fake index context."""

    def __init__(
        self,
        index_id: str = "content",
        ledger: Optional[FakeTrackingLedger] = None,
        enabled: bool = True,
        valid_tracker: bool = True,
        fields: Optional[List[IndexField]] = None,
    ):
        self.index_id = index_id
        self.ledger = ledger or FakeTrackingLedger()
        self.enabled = enabled
        self.valid_tracker = valid_tracker
        self.fields = list(fields or [])
        self.configurations: Dict[str, Dict[str, Any]] = {}

    def is_enabled(self) -> bool:
        return self.enabled

    def has_valid_tracker(self) -> bool:
        return self.valid_tracker

    def get_fields(self) -> List[IndexField]:
        return list(self.fields)

    def get_datasource_configuration(self, datasource_id: str) -> Optional[Mapping[str, Any]]:
        return self.configurations.get(datasource_id)

    def set_datasource_configuration(self, datasource_id: str, configuration: Mapping[str, Any]) -> None:
        self.configurations[datasource_id] = dict(configuration)


class FakeViewBuilder:
    """Fake renderer returning the record label and language."""

    def __init__(self, supported: Iterable[str] = ("node",)):
        self._supported = set(supported)
        self.view_multiple_calls: List[tuple] = []

    def supports(self, record_type: str) -> bool:
        return record_type in self._supported

    def view(self, record: Record, view_mode: str, langcode: str) -> Dict[str, Any]:
        return {"label": record.label, "view_mode": view_mode, "langcode": langcode}

    def view_multiple(self, records, view_mode: str, langcode: str):
        self.view_multiple_calls.append((sorted(records), langcode))
        return {key: self.view(record, view_mode, langcode) for key, record in records.items()}
