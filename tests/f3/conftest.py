"""Shared fixtures for F3 tests (editing session, storage, review)."""

from typing import Any

import pytest

from bidding.core.outline_model import OutlineDocumentSet
from bidding.db.database import init_db


class MemoryStore:
    """In-memory OutlineStore."""

    def __init__(self, records: dict[str, dict[str, Any]] | None = None):
        self.records = records or {}
        self.statuses: dict[str, str] = {}
        self.saved: list[tuple[str, OutlineDocumentSet]] = []

    def load(self, project_id: str) -> dict[str, Any] | None:
        return self.records.get(project_id)

    def save(self, project_id: str, doc: OutlineDocumentSet) -> None:
        self.saved.append((project_id, doc))
        self.records[project_id] = {**self.records.get(project_id, {}), "documentDirectory": doc.to_dict()}

    def status(self, project_id: str) -> str | None:
        return self.statuses.get(project_id, "parsed" if project_id in self.records else None)


@pytest.fixture
def memory_store():
    """Store holding one legacy-format project."""
    return MemoryStore(
        {
            "p1": {
                "risks": "未按要求签字盖章的投标将被否决",
                "documentDirectory": {
                    "commercial": "一、资格证明文件\n二、商务响应文件\n  2.1 投标函",
                    "technical": "技术方案",
                },
            }
        }
    )


@pytest.fixture
def init_test_db(tmp_path):
    """Initialize an isolated test database."""
    db_path = tmp_path / "db" / "bidding.db"
    init_db(db_path)
    return db_path
