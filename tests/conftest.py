"""
Shared fixtures.
"""

import pytest

from entity_datasource.domain.entities import Record

from fakes import FakeIndex, FakeRecordStore, FakeTrackingLedger


@pytest.fixture
def record_store() -> FakeRecordStore:
    """
    A store with a bundled "node" type and an unbundled "user" type.

    node bundles: article, page. Records:
    - 1 (article): en, fr
    - 2 (page): en
    - 3 (article): de
    user: record 7 with en.
    """
    store = FakeRecordStore()
    store.add_type("node", provider="node", bundles={"article": "Article", "page": "Basic page"})
    store.add_type("user", provider="user")

    store.add_record(Record(
        id="1", record_type="node", bundle="article", label="Hello",
        translations={"en": {"title": "Hello"}, "fr": {"title": "Bonjour"}},
    ))
    store.add_record(Record(
        id="2", record_type="node", bundle="page", label="About",
        translations={"en": {"title": "About"}},
    ))
    store.add_record(Record(
        id="3", record_type="node", bundle="article", label="Hallo",
        translations={"de": {"title": "Hallo"}},
    ))
    store.add_record(Record(
        id="7", record_type="user", bundle="user", label="admin",
        translations={"en": {"name": "admin"}},
    ))
    return store


@pytest.fixture
def ledger() -> FakeTrackingLedger:
    return FakeTrackingLedger()


@pytest.fixture
def index(ledger: FakeTrackingLedger) -> FakeIndex:
    return FakeIndex(ledger=ledger)
