"""
test_store.py - Document Store Backends

The same contract is exercised against the in-memory and SQLite stores.
"""

import pytest

from review_intel.domain.errors import ConflictError
from review_intel.infrastructure.config import Settings, StoreSettings
from review_intel.infrastructure.persistence import MemoryStore, SQLiteStore, create_store


@pytest.fixture(params=["memory", "sqlite"])
def backend(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    return SQLiteStore(str(tmp_path / "reviews.db")).init()


@pytest.fixture
def filled(backend):
    backend.insert("reviews", {"id": "r1", "property_id": "mh001", "rating": 5,
                               "categories": ["food"], "is_spam": False})
    backend.insert("reviews", {"id": "r2", "property_id": "mh001", "rating": 1,
                               "categories": ["service"], "is_spam": True})
    backend.insert("reviews", {"id": "r3", "property_id": "mh003", "rating": 3,
                               "categories": ["food", "service"]})
    return backend


class TestStoreContract:
    """Behaviour shared by every backend."""

    def test_find_keeps_insertion_order(self, filled):
        assert [r["id"] for r in filled.find("reviews")] == ["r1", "r2", "r3"]

    def test_equality_filter(self, filled):
        assert [r["id"] for r in filled.find("reviews", {"property_id": "mh001"})] == ["r1", "r2"]

    def test_not_equal_matches_missing_field(self, filled):
        found = filled.find("reviews", {"is_spam": {"$ne": True}})
        assert [r["id"] for r in found] == ["r1", "r3"]

    def test_in_filter(self, filled):
        found = filled.find("reviews", {"rating": {"$in": [1, 3]}})
        assert [r["id"] for r in found] == ["r2", "r3"]

    def test_list_containment(self, filled):
        assert [r["id"] for r in filled.find("reviews", {"categories": "service"})] == ["r2", "r3"]

    def test_get_by_id_and_find_one(self, filled):
        assert filled.get_by_id("reviews", "r2")["rating"] == 1
        assert filled.get_by_id("reviews", "missing") is None
        assert filled.find_one("reviews", {"property_id": "mh003"})["id"] == "r3"

    def test_insert_assigns_id(self, backend):
        record = backend.insert("users", {"username": "priya"})
        assert record["id"]
        assert backend.get_by_id("users", record["id"])["username"] == "priya"

    def test_duplicate_id(self, filled):
        with pytest.raises(ConflictError):
            filled.insert("reviews", {"id": "r1"})

    def test_same_id_in_other_collection(self, filled):
        filled.insert("properties", {"id": "r1", "name": "Not a review"})
        assert filled.count_where("properties") == 1

    def test_update_merges(self, filled):
        updated = filled.update_by_id("reviews", "r1", {"alert_sent": True})
        assert updated["alert_sent"] is True
        assert updated["rating"] == 5
        assert filled.get_by_id("reviews", "r1")["alert_sent"] is True

    def test_update_missing(self, filled):
        assert filled.update_by_id("reviews", "missing", {"rating": 2}) is None

    def test_delete(self, filled):
        assert filled.delete_by_id("reviews", "r1") is True
        assert filled.delete_by_id("reviews", "r1") is False
        assert filled.count_where("reviews") == 2

    def test_count_where(self, filled):
        assert filled.count_where("reviews", {"property_id": "mh001"}) == 2
        assert filled.count_where("nothing") == 0


class TestMemoryStore:

    def test_returned_records_are_copies(self):
        store = MemoryStore()
        store.insert("reviews", {"id": "r1", "categories": ["food"]})
        store.find("reviews")[0]["categories"].append("spa")
        assert store.get_by_id("reviews", "r1")["categories"] == ["food"]

    def test_snapshot_round_trip(self, tmp_path):
        path = tmp_path / "snapshot.json"
        store = MemoryStore(snapshot_path=path)
        store.insert("properties", {"id": "mh001", "name": "W Marriott Juhu"})
        store.update_by_id("properties", "mh001", {"rating": 4.5})

        reloaded = MemoryStore(snapshot_path=path)
        assert reloaded.get_by_id("properties", "mh001") == {
            "id": "mh001", "name": "W Marriott Juhu", "rating": 4.5,
        }

    def test_corrupt_snapshot_starts_empty(self, tmp_path):
        path = tmp_path / "snapshot.json"
        path.write_text("{not json", encoding="utf-8")
        assert MemoryStore(snapshot_path=path).count_where("properties") == 0


class TestSQLiteStore:

    def test_data_survives_reopen(self, tmp_path):
        db_path = str(tmp_path / "reviews.db")
        SQLiteStore(db_path).init().insert("properties", {"id": "mh001", "name": "W Marriott Juhu"})
        assert SQLiteStore(db_path).init().get_by_id("properties", "mh001")["name"] == "W Marriott Juhu"


class TestCreateStore:

    def test_memory_backend(self):
        settings = Settings(store=StoreSettings(backend="memory", snapshot_file=None))
        assert isinstance(create_store(settings), MemoryStore)

    def test_sqlite_backend(self, tmp_path):
        settings = Settings(store=StoreSettings(backend="sqlite", database_file=tmp_path / "x.db"))
        store = create_store(settings)
        assert isinstance(store, SQLiteStore)
        assert store.count_where("reviews") == 0
