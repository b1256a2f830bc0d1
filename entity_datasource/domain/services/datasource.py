"""
Datasource exposing records of one record type to a search index.

The datasource translates between record ids and item ids, keeps the
index's tracking ledger in line with its scope configuration and reports
the configuration objects the index depends on. It only sequences calls
to the specialized services; the logic lives in them.
"""

import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional

from entity_datasource.domain.entities import Item, Record
from entity_datasource.domain.exceptions import MalformedIdentity
from entity_datasource.domain.identity import decode_item_id
from entity_datasource.domain.ports import IndexContext, RecordStore, ViewBuilder
from entity_datasource.domain.services.bundle_policy import (
    is_bundle_in_scope,
    resolve_bundles,
)
from entity_datasource.domain.services.dependency_walker import DependencyWalker
from entity_datasource.domain.services.item_enumerator import ItemEnumerator
from entity_datasource.domain.services.scope_diff import diff_scope
from entity_datasource.domain.value_objects import (
    ConfigurationInput,
    DependencySet,
    FieldDefinition,
    ScopeConfiguration,
    ScopeDiff,
    ScopeMode,
)

logger = logging.getLogger(__name__)

DATASOURCE_PREFIX = "entity:"


def datasource_id_for(record_type: str) -> str:
    """Datasource id of the datasource exposing `record_type`."""
    return f"{DATASOURCE_PREFIX}{record_type}"


class ContentEntityDatasource:
    """
    Orchestrates identity mapping, scope reconciliation and dependency
    calculation for one record type within one index.

    All collaborators are injected, so the datasource never looks up
    storage, ledger or presentation globally.

    Usage:
        datasource = ContentEntityDatasource(
            record_type="node",
            record_store=sqlite_store,
            index=index_context,
        )
        items = datasource.load_multiple(["42:en", "42:fr"])
        diff = datasource.reconfigure({"mode": "EXCLUDE_ALL_EXCEPT", "selected": ["article"]})
    """

    def __init__(
        self,
        record_type: str,
        record_store: RecordStore,
        index: IndexContext,
        view_builder: Optional[ViewBuilder] = None,
        configuration: ConfigurationInput = None,
        dependency_walker: Optional[DependencyWalker] = None,
    ) -> None:
        """
        Initialize the datasource with required dependencies.

        Args:
            record_type: Record type exposed by this datasource
            record_store: Store for records, bundles and field definitions
            index: The index this datasource is attached to
            view_builder: Optional renderer for records
            configuration: Initial scope configuration; defaults to
                indexing every bundle
            dependency_walker: Optional walker, e.g. a strict one
        """
        if not record_type or not record_type.strip():
            raise ValueError("record_type cannot be empty")

        self._record_type = record_type
        self._record_store = record_store
        self._index = index
        self._view_builder = view_builder
        if configuration is None:
            configuration = index.get_datasource_configuration(self.datasource_id)
        if isinstance(configuration, ScopeConfiguration):
            self._configuration = configuration
        else:
            self._configuration = ScopeConfiguration.from_mapping(
                configuration, self.default_configuration()
            )
        self._enumerator = ItemEnumerator(
            record_store=record_store,
            record_type=record_type,
            indexed_bundles=self.get_indexed_bundles,
        )
        self._dependency_walker = dependency_walker or DependencyWalker(record_store)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def datasource_id(self) -> str:
        return datasource_id_for(self._record_type)

    @property
    def record_type(self) -> str:
        return self._record_type

    @property
    def configuration(self) -> ScopeConfiguration:
        return self._configuration

    def has_bundles(self) -> bool:
        return self._record_store.has_bundles(self._record_type)

    def get_item_id(self, item: Any) -> Optional[str]:
        """Item id of `item`, or None if it is not one of our items."""
        if isinstance(item, Item):
            return item.item_id
        return None

    def get_item_label(self, item: Any) -> Optional[str]:
        if isinstance(item, Item):
            return item.label
        return None

    def get_item_url(self, item: Any) -> Optional[str]:
        if isinstance(item, Item):
            return item.record.url
        return None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, item_id: str) -> Optional[Item]:
        """
        Load a single item.

        Returns:
            The item, or None if its record or translation does not exist

        Raises:
            MalformedIdentity: If the item id cannot be decoded
        """
        decode_item_id(item_id)
        return self.load_multiple([item_id]).get(item_id)

    def load_multiple(self, item_ids: Iterable[str]) -> Dict[str, Item]:
        """
        Load several items at once.

        Items whose record or translation no longer exists are left out
        and reported to the ledger as deleted, so stale ledger entries heal
        themselves. Malformed ids are skipped.

        Args:
            item_ids: Item ids to load

        Returns:
            Mapping of item id to Item for every id that could be loaded
        """
        requested: Dict[str, Dict[str, str]] = {}
        for item_id in item_ids:
            try:
                record_id, langcode = decode_item_id(item_id)
            except MalformedIdentity as e:
                logger.warning(f"Skipping malformed item id: {e}")
                continue
            requested.setdefault(record_id, {})[item_id] = langcode

        if not requested:
            return {}

        records = self._record_store.load_records(self._record_type, list(requested))

        items: Dict[str, Item] = {}
        missing: List[str] = []
        for record_id, langcodes in requested.items():
            record = records.get(record_id)
            for item_id, langcode in langcodes.items():
                if record is not None and record.has_translation(langcode):
                    items[item_id] = record.get_translation(langcode)
                else:
                    missing.append(item_id)

        if missing:
            # TODO: move stale-id cleanup to the index once it loads items itself.
            logger.info(
                f"Reporting {len(missing)} unloadable items of "
                f"{self.datasource_id} as deleted"
            )
            self._index.ledger.track_items_deleted(self.datasource_id, missing)

        return items

    # ------------------------------------------------------------------
    # Scope
    # ------------------------------------------------------------------

    def default_configuration(self) -> ScopeConfiguration:
        """Index every bundle."""
        return ScopeConfiguration(mode=ScopeMode.INCLUDE_ALL_EXCEPT, selected=frozenset())

    def get_all_bundles(self) -> FrozenSet[str]:
        return frozenset(self._record_store.get_bundles(self._record_type))

    def get_indexed_bundles(self) -> FrozenSet[str]:
        """Bundles currently in scope."""
        return resolve_bundles(
            self._configuration,
            self.get_all_bundles(),
            has_bundles=self.has_bundles(),
        )

    def get_bundle_options(self) -> Dict[str, str]:
        """
        Selectable bundles with their labels.

        Types without a bundle concept have nothing to select.
        """
        if not self.has_bundles():
            return {}
        bundles = dict(self._record_store.get_bundles(self._record_type))
        bundles.pop(self._record_type, None)
        return bundles

    def reconfigure(self, new_config: ConfigurationInput) -> ScopeDiff:
        """
        Replace the scope configuration and reconcile the ledger.

        The whole configuration is replaced; keys missing from a mapping are
        taken from the defaults. The ledger is only touched while the index
        is enabled and has a valid tracker.

        The new configuration is applied and persisted only after the ledger
        has been reconciled, so a failed reconciliation leaves the old
        configuration in place and the same call can simply be retried.

        Args:
            new_config: ScopeConfiguration or its mapping form

        Returns:
            The applied diff (empty if nothing was reconciled)

        Raises:
            InvalidScopeConfiguration: If the configuration is invalid
            RuntimeError: If the ledger or store fails; the configuration
                is left unchanged
        """
        if not isinstance(new_config, ScopeConfiguration):
            new_config = ScopeConfiguration.from_mapping(
                new_config, self.default_configuration()
            )

        diff = ScopeDiff()
        if not self._index.is_enabled() or not self._index.has_valid_tracker():
            logger.debug(
                f"Index '{self._index.index_id}' is not tracking, "
                f"skipping reconciliation of {self.datasource_id}"
            )
        elif self.has_bundles():
            diff = diff_scope(self._configuration, new_config, self.get_all_bundles())
            if not diff.is_empty():
                self._reconcile(diff)

        self._configuration = new_config
        self._index.set_datasource_configuration(self.datasource_id, new_config.to_mapping())
        return diff

    def _reconcile(self, diff: ScopeDiff) -> None:
        """Apply a scope diff to the ledger. Both ledger calls are idempotent."""
        logger.info(
            f"Scope of {self.datasource_id} on index '{self._index.index_id}' changed: "
            f"start={sorted(diff.start)}, stop={sorted(diff.stop)}"
        )

        if diff.start:
            item_ids = self._enumerator.enumerate(diff.start)
            if item_ids:
                self._index.ledger.track_items_inserted(self.datasource_id, item_ids)
        if diff.stop:
            item_ids = self._enumerator.enumerate(diff.stop)
            if item_ids:
                self._index.ledger.track_items_deleted(self.datasource_id, item_ids)

    def get_scope_summary(self) -> str:
        """Human-readable description of the scope configuration."""
        if not self.has_bundles():
            return ""

        options = self.get_bundle_options()
        labels = sorted(
            options[bundle] for bundle in self._configuration.selected if bundle in options
        )
        if self._configuration.mode is ScopeMode.INCLUDE_ALL_EXCEPT:
            return f"Excluded bundles: {', '.join(labels)}"
        return f"Included bundles: {', '.join(labels)}"

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def enumerate_item_ids(self, limit: Optional[int] = None, offset: int = 0) -> List[str]:
        """Item ids of every in-scope record translation."""
        return self._enumerator.enumerate_page(limit=limit, offset=offset)

    # ------------------------------------------------------------------
    # Schema and dependencies
    # ------------------------------------------------------------------

    def get_property_definitions(self) -> Dict[str, FieldDefinition]:
        """Base fields plus the fields of every indexed bundle."""
        properties = dict(self._record_store.get_base_field_definitions(self._record_type))
        if self.has_bundles():
            for bundle in sorted(self.get_indexed_bundles()):
                definitions = self._record_store.get_field_definitions(self._record_type, bundle)
                for name, definition in definitions.items():
                    properties.setdefault(name, definition)
        return properties

    def calculate_dependencies(self) -> DependencySet:
        """
        Configuration objects the index relies on through this datasource.

        Returns:
            The record type's provider module plus the configuration
            objects of every configurable field used by the index
        """
        provider = self._record_store.get_provider(self._record_type)

        property_paths: List[str] = []
        for field in self._index.get_fields():
            if field.datasource_id != self.datasource_id:
                continue
            if field.property_path not in property_paths:
                property_paths.append(field.property_path)

        config = self._dependency_walker.resolve_dependencies(self._record_type, property_paths)
        return DependencySet(module=frozenset([provider]), config=config)

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------

    def _can_view(self) -> bool:
        return self._view_builder is not None and self._view_builder.supports(self._record_type)

    def view_item(
        self, item: Any, view_mode: str, langcode: Optional[str] = None
    ) -> Dict[str, Any]:
        """Render one item, or return an empty result if it cannot be rendered."""
        if not isinstance(item, Item) or not self._can_view():
            return {}
        return self._view_builder.view(item.record, view_mode, langcode or item.langcode)

    def view_multiple_items(
        self, items: Mapping[Any, Any], view_mode: str, langcode: Optional[str] = None
    ) -> Dict[Any, Dict[str, Any]]:
        """
        Render several items, keeping their keys and order.

        Without an explicit langcode each item is rendered in its own
        language. Entries that are not items render as empty results.
        """
        if not self._can_view():
            return {}

        if langcode is not None:
            records = {key: item.record for key, item in items.items() if isinstance(item, Item)}
            if not records:
                return {}
            return self._view_builder.view_multiple(records, view_mode, langcode)

        by_language: Dict[str, Dict[Any, Record]] = {}
        for key, item in items.items():
            if isinstance(item, Item):
                by_language.setdefault(item.langcode, {})[key] = item.record

        build: Dict[Any, Dict[str, Any]] = {key: {} for key in items}
        for item_langcode, records in by_language.items():
            build.update(self._view_builder.view_multiple(records, view_mode, item_langcode))
        return build

    # ------------------------------------------------------------------
    # Index lookup
    # ------------------------------------------------------------------

    @staticmethod
    def indexes_for_record(
        record: Record,
        indexes: Iterable[IndexContext],
        record_store: RecordStore,
    ) -> List[IndexContext]:
        """
        Get the indexes that put `record` in scope.

        Args:
            record: The record to check
            indexes: Candidate indexes
            record_store: Store used to check for a bundle concept

        Returns:
            Indexes with a datasource for the record's type whose scope
            includes the record's bundle
        """
        datasource_id = datasource_id_for(record.record_type)
        has_bundles = record_store.has_bundles(record.record_type)

        result = []
        for index in indexes:
            raw_config = index.get_datasource_configuration(datasource_id)
            if raw_config is None:
                continue
            if not has_bundles:
                result.append(index)
                continue
            try:
                config = ScopeConfiguration.from_mapping(raw_config)
            except ValueError as e:
                logger.warning(
                    f"Ignoring index '{index.index_id}' with invalid configuration "
                    f"for {datasource_id}: {e}"
                )
                continue
            if is_bundle_in_scope(config, record.bundle):
                result.append(index)
        return result
