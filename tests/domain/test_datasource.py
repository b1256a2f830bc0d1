"""
Tests for ContentEntityDatasource.

Uses the fake record store, index and ledger from fakes.py so every
interaction with the collaborators can be asserted on.
"""

import pytest

from entity_datasource.domain.entities import IndexField, Item, Record
from entity_datasource.domain.exceptions import InvalidScopeConfiguration, MalformedIdentity
from entity_datasource.domain.services import ContentEntityDatasource
from entity_datasource.domain.value_objects import (
    FieldDefinition,
    ScopeConfiguration,
    ScopeMode,
)

from fakes import FailingTrackingLedger, FakeIndex, FakeTrackingLedger, FakeViewBuilder


@pytest.fixture
def datasource(record_store, index) -> ContentEntityDatasource:
    return ContentEntityDatasource(record_type="node", record_store=record_store, index=index)


class TestConstruction:
    """Tests for datasource construction and identity."""

    def test_datasource_id(self, datasource):
        assert datasource.datasource_id == "entity:node"

    def test_default_configuration_indexes_everything(self, datasource):
        assert datasource.configuration == ScopeConfiguration()
        assert datasource.get_indexed_bundles() == {"article", "page"}

    def test_configuration_is_read_from_the_index(self, record_store, index):
        index.configurations["entity:node"] = {"mode": "EXCLUDE_ALL_EXCEPT", "selected": ["page"]}

        datasource = ContentEntityDatasource("node", record_store, index)

        assert datasource.get_indexed_bundles() == {"page"}

    def test_explicit_configuration_wins(self, record_store, index):
        index.configurations["entity:node"] = {"mode": "EXCLUDE_ALL_EXCEPT", "selected": []}

        datasource = ContentEntityDatasource(
            "node", record_store, index,
            configuration=ScopeConfiguration(selected={"article"}),
        )

        assert datasource.get_indexed_bundles() == {"page"}

    def test_empty_record_type_raises(self, record_store, index):
        with pytest.raises(ValueError, match="record_type cannot be empty"):
            ContentEntityDatasource("", record_store, index)


class TestLoadMultiple:
    """Tests for loading items by id."""

    def test_scenario_c_missing_translation_is_reported_deleted(self, record_store, ledger, index):
        record_store.add_record(Record(
            id="42", record_type="node", bundle="article",
            translations={"en": {}, "fr": {}},
        ))
        datasource = ContentEntityDatasource("node", record_store, index)

        items = datasource.load_multiple(["42:en", "42:fr", "42:de"])

        assert sorted(items) == ["42:en", "42:fr"]
        assert items["42:fr"].langcode == "fr"
        assert ledger.deleted_calls == [("entity:node", ["42:de"])]

    def test_missing_record_is_reported_deleted(self, datasource, ledger):
        items = datasource.load_multiple(["1:en", "999:en"])

        assert list(items) == ["1:en"]
        assert ledger.deleted_calls == [("entity:node", ["999:en"])]

    def test_records_are_loaded_once(self, datasource, record_store):
        datasource.load_multiple(["1:en", "1:fr"])

        assert record_store.load_calls == [("node", ["1"])]

    def test_malformed_ids_are_skipped(self, datasource, ledger):
        items = datasource.load_multiple(["garbage", "2:en"])

        assert list(items) == ["2:en"]
        assert ledger.deleted_calls == []

    def test_nothing_loadable_does_not_touch_the_store(self, datasource, record_store):
        assert datasource.load_multiple(["garbage"]) == {}
        assert record_store.load_calls == []

    def test_everything_found_reports_nothing(self, datasource, ledger):
        datasource.load_multiple(["1:en", "2:en"])

        assert ledger.deleted_calls == []


class TestLoad:
    """Tests for loading a single item."""

    def test_load_existing(self, datasource):
        item = datasource.load("1:fr")

        assert isinstance(item, Item)
        assert item.values == {"title": "Bonjour"}

    def test_load_missing_returns_none(self, datasource, ledger):
        assert datasource.load("1:de") is None
        assert ledger.deleted_calls == [("entity:node", ["1:de"])]

    def test_load_malformed_raises(self, datasource):
        with pytest.raises(MalformedIdentity):
            datasource.load("1")


class TestReconfigure:
    """Tests for scope reconfiguration and ledger reconciliation."""

    def test_excluding_a_bundle_stops_tracking_its_items(self, datasource, ledger, index):
        diff = datasource.reconfigure(ScopeConfiguration(selected={"page"}))

        assert diff.stop == {"page"}
        assert ledger.deleted_calls == [("entity:node", ["2:en"])]
        assert ledger.inserted_calls == []
        assert index.configurations["entity:node"] == {
            "mode": "INCLUDE_ALL_EXCEPT",
            "selected": ["page"],
        }

    def test_mode_flip_starts_and_stops(self, datasource, ledger):
        datasource.reconfigure({"mode": "EXCLUDE_ALL_EXCEPT", "selected": ["page"]})

        assert ledger.deleted_calls == [("entity:node", ["1:en", "1:fr", "3:de"])]

        diff = datasource.reconfigure({"mode": "INCLUDE_ALL_EXCEPT", "selected": ["page"]})

        assert diff.start == {"article"}
        assert diff.stop == {"page"}
        assert ledger.inserted_calls == [("entity:node", ["1:en", "1:fr", "3:de"])]
        assert ledger.deleted_calls[-1] == ("entity:node", ["2:en"])

    def test_reconfiguring_twice_is_idempotent(self, datasource, ledger):
        config = ScopeConfiguration(mode=ScopeMode.EXCLUDE_ALL_EXCEPT, selected={"article"})

        first = datasource.reconfigure(config)
        calls_after_first = (list(ledger.inserted_calls), list(ledger.deleted_calls))
        second = datasource.reconfigure(config)

        assert not first.is_empty()
        assert second.is_empty()
        assert (ledger.inserted_calls, ledger.deleted_calls) == calls_after_first

    def test_failed_reconciliation_can_be_retried(self, record_store):
        """Test that a ledger failure keeps the old configuration, so a retry reconciles."""
        ledger = FailingTrackingLedger(failures=1)
        index = FakeIndex(ledger=ledger)
        datasource = ContentEntityDatasource("node", record_store, index)
        new_config = {"mode": "INCLUDE_ALL_EXCEPT", "selected": ["page"]}

        with pytest.raises(RuntimeError, match="ledger unavailable"):
            datasource.reconfigure(new_config)

        assert datasource.configuration == ScopeConfiguration()
        assert "entity:node" not in index.configurations

        diff = datasource.reconfigure(new_config)

        assert diff.stop == {"page"}
        assert ledger.deleted_calls == [("entity:node", ["2:en"])]
        assert index.configurations["entity:node"]["selected"] == ["page"]

    def test_partial_mapping_is_completed_with_defaults(self, datasource):
        datasource.reconfigure({"selected": ["article"]})

        assert datasource.configuration.mode is ScopeMode.INCLUDE_ALL_EXCEPT
        assert datasource.get_indexed_bundles() == {"page"}

    def test_invalid_mode_is_fatal(self, datasource, ledger):
        with pytest.raises(InvalidScopeConfiguration):
            datasource.reconfigure({"mode": "ALL", "selected": []})

        assert datasource.configuration == ScopeConfiguration()
        assert ledger.deleted_calls == []

    @pytest.mark.parametrize("enabled, valid_tracker", [(False, True), (True, False)])
    def test_inactive_index_only_persists(self, record_store, enabled, valid_tracker):
        ledger = FakeTrackingLedger()
        index = FakeIndex(ledger=ledger, enabled=enabled, valid_tracker=valid_tracker)
        datasource = ContentEntityDatasource("node", record_store, index)

        diff = datasource.reconfigure(ScopeConfiguration(selected={"page"}))

        assert diff.is_empty()
        assert datasource.get_indexed_bundles() == {"article"}
        assert ledger.deleted_calls == []
        assert index.configurations["entity:node"]["selected"] == ["page"]

    def test_types_without_bundles_never_reconcile(self, record_store, index, ledger):
        datasource = ContentEntityDatasource("user", record_store, index)

        diff = datasource.reconfigure({"mode": "EXCLUDE_ALL_EXCEPT"})

        assert diff.is_empty()
        assert ledger.deleted_calls == []
        assert datasource.get_indexed_bundles() == {"user"}

    def test_bundle_without_records_makes_no_ledger_call(self, record_store, datasource, ledger):
        record_store.add_type("node", provider="node", bundles={"article": "A", "page": "P", "blog": "B"})

        diff = datasource.reconfigure(ScopeConfiguration(selected={"blog"}))

        assert diff.stop == {"blog"}
        assert ledger.deleted_calls == []


class TestEnumerateItemIds:
    """Tests for item id enumeration through the datasource."""

    def test_all_in_scope_items(self, datasource):
        assert sorted(datasource.enumerate_item_ids()) == ["1:en", "1:fr", "2:en", "3:de"]

    def test_respects_scope(self, datasource):
        datasource.reconfigure(ScopeConfiguration(selected={"article"}))

        assert datasource.enumerate_item_ids() == ["2:en"]

    def test_paging(self, datasource):
        assert len(datasource.enumerate_item_ids(limit=3)) == 3
        assert len(datasource.enumerate_item_ids(limit=3, offset=3)) == 1


class TestScopeSummary:
    """Tests for the human-readable scope summary."""

    def test_excluded_bundles(self, datasource):
        datasource.reconfigure(ScopeConfiguration(selected={"page"}))

        assert datasource.get_scope_summary() == "Excluded bundles: Basic page"

    def test_included_bundles_use_labels_and_skip_vanished(self, datasource):
        datasource.reconfigure(
            ScopeConfiguration(mode=ScopeMode.EXCLUDE_ALL_EXCEPT, selected={"page", "article", "gone"})
        )

        assert datasource.get_scope_summary() == "Included bundles: Article, Basic page"

    def test_types_without_bundles_have_no_summary(self, record_store, index):
        assert ContentEntityDatasource("user", record_store, index).get_scope_summary() == ""


class TestCalculateDependencies:
    """Tests for dependency calculation."""

    @pytest.fixture
    def index_with_fields(self, ledger) -> FakeIndex:
        return FakeIndex(ledger=ledger, fields=[
            IndexField("title", "entity:node", "title"),
            IndexField("alt", "entity:node", "image:entity:alt"),
            IndexField("alt_again", "entity:node", "image:entity:alt"),
            IndexField("user_name", "entity:user", "name"),
            IndexField("boost", None, "search_api_boost"),
        ])

    @pytest.fixture
    def schema_store(self, record_store):
        record_store.add_type("media", provider="media_module", bundles={"image": "Image"})
        record_store.add_field("node", FieldDefinition(
            name="title", configurable=True, config_dependency_name="field.node.article.title",
        ), bundle="article")
        record_store.add_field("node", FieldDefinition(
            name="image", configurable=True, config_dependency_name="field.node.article.image",
            target_type="media",
        ), bundle="article")
        record_store.add_field("media", FieldDefinition(
            name="alt", configurable=True, config_dependency_name="field.media.image.alt",
        ), bundle="image")
        record_store.add_field("user", FieldDefinition(
            name="name", configurable=True, config_dependency_name="field.user.name",
        ))
        return record_store

    def test_provider_and_field_configs(self, schema_store, index_with_fields):
        datasource = ContentEntityDatasource("node", schema_store, index_with_fields)

        dependencies = datasource.calculate_dependencies()

        assert dependencies.module == {"node"}
        assert dependencies.config == {
            "field.node.article.title",
            "field.node.article.image",
            "field.media.image.alt",
        }

    def test_fields_of_other_datasources_are_ignored(self, schema_store, index_with_fields):
        datasource = ContentEntityDatasource("user", schema_store, index_with_fields)

        dependencies = datasource.calculate_dependencies()

        assert dependencies.module == {"user"}
        assert dependencies.config == {"field.user.name"}

    def test_no_fields_only_provider(self, record_store, index):
        datasource = ContentEntityDatasource("node", record_store, index)

        assert datasource.calculate_dependencies().to_mapping() == {"module": ["node"]}


class TestPropertyDefinitions:
    """Tests for property definitions and bundle options."""

    def test_base_and_indexed_bundle_fields(self, record_store, index):
        record_store.add_field("node", FieldDefinition(name="title"))
        record_store.add_field("node", FieldDefinition(
            name="tags", configurable=True, config_dependency_name="field.node.article.tags",
        ), bundle="article")
        record_store.add_field("node", FieldDefinition(
            name="summary", configurable=True, config_dependency_name="field.node.page.summary",
        ), bundle="page")
        datasource = ContentEntityDatasource(
            "node", record_store, index,
            configuration=ScopeConfiguration(selected={"page"}),
        )

        assert sorted(datasource.get_property_definitions()) == ["tags", "title"]

    def test_bundle_options(self, datasource):
        assert datasource.get_bundle_options() == {"article": "Article", "page": "Basic page"}

    def test_no_bundle_options_without_bundles(self, record_store, index):
        assert ContentEntityDatasource("user", record_store, index).get_bundle_options() == {}


class TestItemCapabilities:
    """Tests for item id/label/url lookups on arbitrary objects."""

    def test_items(self, datasource):
        item = datasource.load("1:en")

        assert datasource.get_item_id(item) == "1:en"
        assert datasource.get_item_label(item) == "Hello"
        assert datasource.get_item_url(item) is None

    @pytest.mark.parametrize("other", [None, "1:en", {"id": "1"}])
    def test_non_items(self, datasource, other):
        assert datasource.get_item_id(other) is None
        assert datasource.get_item_label(other) is None
        assert datasource.get_item_url(other) is None


class TestViews:
    """Tests for rendering through an optional view builder."""

    def test_without_view_builder_renders_nothing(self, datasource):
        item = datasource.load("1:en")

        assert datasource.view_item(item, "full") == {}
        assert datasource.view_multiple_items({0: item}, "full") == {}

    def test_unsupported_type_renders_nothing(self, record_store, index):
        datasource = ContentEntityDatasource(
            "node", record_store, index, view_builder=FakeViewBuilder(supported=["media"])
        )

        assert datasource.view_item(datasource.load("1:en"), "full") == {}

    def test_view_item_uses_item_language(self, record_store, index):
        datasource = ContentEntityDatasource(
            "node", record_store, index, view_builder=FakeViewBuilder()
        )

        build = datasource.view_item(datasource.load("1:fr"), "teaser")

        assert build == {"label": "Hello", "view_mode": "teaser", "langcode": "fr"}

    def test_view_multiple_groups_by_language_and_keeps_keys(self, record_store, index):
        view_builder = FakeViewBuilder()
        datasource = ContentEntityDatasource("node", record_store, index, view_builder=view_builder)
        items = datasource.load_multiple(["1:en", "1:fr", "2:en"])

        build = datasource.view_multiple_items(
            {"a": items["1:en"], "b": items["1:fr"], "c": items["2:en"], "d": "not an item"},
            "full",
        )

        assert list(build) == ["a", "b", "c", "d"]
        assert build["b"]["langcode"] == "fr"
        assert build["d"] == {}
        assert sorted(view_builder.view_multiple_calls) == [(["a", "c"], "en"), (["b"], "fr")]

    def test_view_multiple_with_explicit_language(self, record_store, index):
        datasource = ContentEntityDatasource(
            "node", record_store, index, view_builder=FakeViewBuilder()
        )
        items = datasource.load_multiple(["1:en", "2:en"])

        build = datasource.view_multiple_items(items, "full", langcode="de")

        assert {entry["langcode"] for entry in build.values()} == {"de"}


class TestIndexesForRecord:
    """Tests for finding the indexes that include a record."""

    def test_filters_by_bundle_scope(self, record_store):
        everything = FakeIndex("everything")
        everything.configurations["entity:node"] = {}
        pages_only = FakeIndex("pages_only")
        pages_only.configurations["entity:node"] = {"mode": "EXCLUDE_ALL_EXCEPT", "selected": ["page"]}
        no_pages = FakeIndex("no_pages")
        no_pages.configurations["entity:node"] = {"mode": "INCLUDE_ALL_EXCEPT", "selected": ["page"]}
        unrelated = FakeIndex("unrelated")
        broken = FakeIndex("broken")
        broken.configurations["entity:node"] = {"mode": "WHATEVER"}

        page = Record(id="2", record_type="node", bundle="page")
        indexes = ContentEntityDatasource.indexes_for_record(
            page, [everything, pages_only, no_pages, unrelated, broken], record_store
        )

        assert [index.index_id for index in indexes] == ["everything", "pages_only"]

    def test_types_without_bundles_match_any_attached_index(self, record_store):
        attached = FakeIndex("attached")
        attached.configurations["entity:user"] = {"mode": "EXCLUDE_ALL_EXCEPT"}

        user = Record(id="7", record_type="user", bundle="user")

        assert ContentEntityDatasource.indexes_for_record(user, [attached, FakeIndex()], record_store) == [attached]
