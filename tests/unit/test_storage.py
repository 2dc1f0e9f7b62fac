"""
Unit tests for the document store.

Tests inserts, unique indexes, filtered reads and atomic updates.
"""

import json

import pytest

from clubhub.errors import DuplicateKeyError, NotFoundError


@pytest.fixture
def collection(document_store):
    return document_store.collection("things", id_field="thing_id", unique=("email",))


class TestCollection:
    """Tests for Collection class."""

    @pytest.mark.unit
    def test_insert_and_get(self, collection):
        collection.insert_one({"thing_id": "t1", "email": "a@x.in", "n": 1})

        assert collection.get("t1") == {"thing_id": "t1", "email": "a@x.in", "n": 1}
        assert collection.get("missing") is None

    @pytest.mark.unit
    def test_persisted_as_json_keyed_by_id(self, collection):
        collection.insert_one({"thing_id": "t1", "email": "a@x.in"})

        with open(collection.file_path) as f:
            data = json.load(f)
        assert list(data) == ["t1"]

    @pytest.mark.unit
    def test_duplicate_id(self, collection):
        collection.insert_one({"thing_id": "t1", "email": "a@x.in"})

        with pytest.raises(DuplicateKeyError) as exc:
            collection.insert_one({"thing_id": "t1", "email": "b@x.in"})
        assert exc.value.field == "thing_id"

    @pytest.mark.unit
    def test_unique_is_case_insensitive(self, collection):
        collection.insert_one({"thing_id": "t1", "email": "a@x.in"})

        with pytest.raises(DuplicateKeyError) as exc:
            collection.insert_one({"thing_id": "t2", "email": "A@X.IN"})
        assert exc.value.field == "email"
        assert len(collection.find()) == 1

    @pytest.mark.unit
    def test_unique_ignores_missing_values(self, collection):
        collection.insert_one({"thing_id": "t1"})
        collection.insert_one({"thing_id": "t2"})

        assert len(collection.find()) == 2

    @pytest.mark.unit
    def test_find_with_filters_and_predicate(self, collection):
        for i in range(5):
            collection.insert_one({"thing_id": f"t{i}", "email": f"{i}@x.in", "even": i % 2 == 0, "n": i})

        assert len(collection.find({"even": True})) == 3
        assert [d["n"] for d in collection.find({"even": True}, lambda d: d["n"] > 0)] == [2, 4]
        assert collection.find_one({"n": 3})["thing_id"] == "t3"
        assert collection.find_one({"n": 99}) is None

    @pytest.mark.unit
    def test_update_merges_changes(self, collection):
        collection.insert_one({"thing_id": "t1", "email": "a@x.in", "n": 1})

        updated = collection.update_one("t1", {"n": 2, "extra": True})

        assert updated == {"thing_id": "t1", "email": "a@x.in", "n": 2, "extra": True}
        assert collection.get("t1") == updated

    @pytest.mark.unit
    def test_update_missing_document(self, collection):
        with pytest.raises(NotFoundError):
            collection.update_one("nope", {"n": 1})

    @pytest.mark.unit
    def test_update_keeps_primary_key(self, collection):
        collection.insert_one({"thing_id": "t1", "email": "a@x.in"})

        updated = collection.update_one("t1", {"thing_id": "other"})

        assert updated["thing_id"] == "t1"
        assert collection.get("other") is None

    @pytest.mark.unit
    def test_update_checks_unique(self, collection):
        collection.insert_one({"thing_id": "t1", "email": "a@x.in"})
        collection.insert_one({"thing_id": "t2", "email": "b@x.in"})

        with pytest.raises(DuplicateKeyError):
            collection.update_one("t2", {"email": "a@x.in"})
        assert collection.get("t2")["email"] == "b@x.in"

    @pytest.mark.unit
    def test_failing_mutator_writes_nothing(self, collection):
        collection.insert_one({"thing_id": "t1", "email": "a@x.in", "n": 1})

        def mutator(doc):
            doc["n"] = 100
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            collection.update_one("t1", mutator=mutator)
        assert collection.get("t1")["n"] == 1

    @pytest.mark.unit
    def test_returned_documents_are_copies(self, collection):
        inserted = collection.insert_one({"thing_id": "t1", "email": "a@x.in", "tags": ["a"]})
        inserted["tags"].append("b")

        assert collection.get("t1")["tags"] == ["a"]


class TestDocumentStore:
    """Tests for DocumentStore class."""

    @pytest.mark.unit
    def test_collection_is_cached(self, document_store):
        first = document_store.collection("users", id_field="user_id")
        second = document_store.collection("users", id_field="user_id")

        assert first is second

    @pytest.mark.unit
    def test_one_file_per_collection(self, document_store, temp_data_dir):
        document_store.collection("users", id_field="user_id")
        document_store.collection("clubs", id_field="club_id")

        assert (temp_data_dir / "users.json").exists()
        assert (temp_data_dir / "clubs.json").exists()

    @pytest.mark.unit
    def test_corrupt_file_reads_as_empty(self, document_store, temp_data_dir):
        things = document_store.collection("things", id_field="thing_id")
        (temp_data_dir / "things.json").write_text("{not json")

        assert things.find() == []
