"""Tests for project persistence (F3)."""

import sqlite3

import pytest

from bidding.core.normalizer import normalize
from bidding.db.projects_repository import (
    SqliteOutlineStore,
    delete_project,
    get_all_project_ids,
    get_all_projects,
    get_project_by_id,
    insert_project,
    update_parsed_data,
    update_status,
)


class TestProjectCrud:
    """Tests for repository functions."""

    def test_insert_and_get(self, init_test_db):
        """Inserted record is readable with decoded parsed data."""
        insert_project("p1", "某市智慧城市建设项目", status="parsed", parsed_data={"risks": "无"})
        record = get_project_by_id("p1")
        assert record is not None
        assert record.project_name == "某市智慧城市建设项目"
        assert record.status == "parsed"
        assert record.parsed_data == {"risks": "无"}

    def test_get_missing(self, init_test_db):
        """Unknown id returns None."""
        assert get_project_by_id("missing") is None

    def test_duplicate_id(self, init_test_db):
        """project_id is unique."""
        insert_project("p1", "A")
        with pytest.raises(sqlite3.IntegrityError):
            insert_project("p1", "B")

    def test_invalid_status_rejected_by_schema(self, init_test_db):
        """CHECK constraint guards status values."""
        with pytest.raises(sqlite3.IntegrityError):
            insert_project("p1", "A", status="archived")

    def test_list(self, init_test_db):
        """All projects are listed."""
        insert_project("p1", "A")
        insert_project("p2", "B")
        assert sorted(p.project_id for p in get_all_projects()) == ["p1", "p2"]
        assert sorted(get_all_project_ids()) == ["p1", "p2"]

    def test_update_parsed_data(self, init_test_db):
        """Parsed data is replaced."""
        insert_project("p1", "A", parsed_data={"a": 1})
        assert update_parsed_data("p1", {"b": 2}) is True
        assert get_project_by_id("p1").parsed_data == {"b": 2}

    def test_update_missing(self, init_test_db):
        """Updating unknown project reports False."""
        assert update_parsed_data("nope", {}) is False
        assert update_status("nope", "completed") is False

    def test_update_status(self, init_test_db):
        """Status changes."""
        insert_project("p1", "A", status="parsed")
        update_status("p1", "completed")
        assert get_project_by_id("p1").status == "completed"

    def test_update_status_invalid(self, init_test_db):
        """Unknown status raises ValueError before touching the database."""
        insert_project("p1", "A")
        with pytest.raises(ValueError):
            update_status("p1", "archived")

    def test_delete(self, init_test_db):
        """Deleted project is gone."""
        insert_project("p1", "A")
        assert delete_project("p1") is True
        assert get_project_by_id("p1") is None
        assert delete_project("p1") is False


class TestSqliteOutlineStore:
    """Tests for the outline store collaborator."""

    def test_load_unknown(self, init_test_db):
        """Unknown project loads as None."""
        assert SqliteOutlineStore().load("nope") is None

    def test_load_without_data(self, init_test_db):
        """Project without parsed data loads as empty mapping."""
        insert_project("p1", "A")
        assert SqliteOutlineStore().load("p1") == {}

    def test_save_replaces_outline_only(self, init_test_db):
        """Other parsed fields are preserved."""
        insert_project(
            "p1",
            "A",
            status="parsed",
            parsed_data={"risks": "废标项", "documentDirectory": {"commercial": "投标函", "technical": ""}},
        )
        store = SqliteOutlineStore()
        doc = normalize(store.load("p1"))
        store.save("p1", doc)

        stored = get_project_by_id("p1").parsed_data
        assert stored["risks"] == "废标项"
        assert stored["documentDirectory"] == doc.to_dict()
        assert normalize(store.load("p1")) == doc

    def test_save_unknown(self, init_test_db):
        """Saving to an unknown project raises KeyError."""
        with pytest.raises(KeyError):
            SqliteOutlineStore().save("nope", normalize(None))

    def test_status(self, init_test_db):
        """status() reports record status or None."""
        insert_project("p1", "A", status="completed")
        store = SqliteOutlineStore()
        assert store.status("p1") == "completed"
        assert store.status("nope") is None
