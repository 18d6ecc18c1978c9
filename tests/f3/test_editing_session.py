"""Tests for the Viewing/Editing state machine (F3)."""

import pytest

from bidding.core.editing_session import (
    AlreadyEditingError,
    EditingSession,
    NotEditingError,
    SessionState,
)
from bidding.core.normalizer import normalize
from bidding.core.outline_model import OutlineNode
from bidding.core.outline_tree import PathNotFoundError, get_node


@pytest.fixture
def doc():
    return normalize({"documentDirectory": {"commercial": "一、X\n二、Y", "technical": "技术方案"}})


class TestStates:
    """Tests for state transitions."""

    def test_initial_viewing(self, doc):
        """New session starts in Viewing with the given document."""
        session = EditingSession(doc)
        assert session.state is SessionState.VIEWING
        assert session.section_key is None
        assert session.current is doc
        assert session.document is doc

    def test_begin_edit(self, doc):
        """begin_edit enters Editing for a section."""
        session = EditingSession(doc)
        working = session.begin_edit("documentDirectory")
        assert session.state is SessionState.EDITING
        assert session.section_key == "documentDirectory"
        assert working is doc
        assert not session.is_modified

    def test_begin_twice_raises(self, doc):
        """Only one edit may be open."""
        session = EditingSession(doc)
        session.begin_edit("documentDirectory")
        with pytest.raises(AlreadyEditingError) as exc_info:
            session.begin_edit("risks")
        assert exc_info.value.section_key == "documentDirectory"

    def test_save_without_edit_raises(self, doc):
        """save() requires Editing state."""
        with pytest.raises(NotEditingError):
            EditingSession(doc).save()

    def test_cancel_without_edit_raises(self, doc):
        """cancel() requires Editing state."""
        with pytest.raises(NotEditingError):
            EditingSession(doc).cancel()

    def test_mutation_while_viewing_raises(self, doc):
        """Tree operations are only allowed while editing."""
        session = EditingSession(doc)
        with pytest.raises(NotEditingError) as exc_info:
            session.add_child(0, [0])
        assert exc_info.value.operation == "add_child"

    def test_invalid_policy(self, doc):
        """Unknown cancel policy is rejected."""
        with pytest.raises(ValueError):
            EditingSession(doc, cancel_policy="discard")  # type: ignore[arg-type]


class TestWorkingCopy:
    """Tests for mutations against the working copy."""

    def test_mutations_apply_to_working_copy(self, doc):
        """Canonical document is untouched until save."""
        session = EditingSession(doc)
        session.begin_edit("documentDirectory")
        session.set_field(0, [0], "title", "一、资格证明文件")
        _, child_path = session.add_child(0, [0])

        assert session.is_modified
        assert get_node(session.current, 0, [0]).title == "一、资格证明文件"
        assert child_path == (0, 0)
        assert session.document is doc

    def test_save_commits(self, doc):
        """save() makes the working copy canonical and returns to Viewing."""
        session = EditingSession(doc)
        session.begin_edit("documentDirectory")
        session.add_root_node(1, OutlineNode(title="实施方案"))
        committed = session.save()

        assert session.state is SessionState.VIEWING
        assert session.document is committed
        assert [n.title for n in committed.files[1].items] == ["技术方案", "实施方案"]

    def test_on_commit_called(self, doc):
        """on_commit receives the committed document."""
        received = []
        session = EditingSession(doc, on_commit=received.append)
        session.begin_edit("documentDirectory")
        session.rename_file(0, "商务响应文件")
        committed = session.save()
        assert received == [committed]

    def test_cancel_restore_discards(self, doc):
        """restore policy drops applied mutations."""
        session = EditingSession(doc, cancel_policy="restore")
        session.begin_edit("documentDirectory")
        session.remove_node(0, [1])
        session.add_file("授权委托书")
        result = session.cancel()

        assert result is doc
        assert session.document is doc
        assert session.state is SessionState.VIEWING

    def test_cancel_keep_retains(self, doc):
        """keep policy leaves applied mutations in place."""
        session = EditingSession(doc, cancel_policy="keep")
        session.begin_edit("documentDirectory")
        session.remove_node(0, [1])
        result = session.cancel()

        assert [n.title for n in result.files[0].items] == ["一、X"]
        assert session.document is result

    def test_cancel_does_not_commit(self, doc):
        """on_commit is not called on cancel, whatever the policy."""
        received = []
        session = EditingSession(doc, cancel_policy="keep", on_commit=received.append)
        session.begin_edit("documentDirectory")
        session.set_summary("改过的摘要")
        session.cancel()
        assert received == []

    def test_remove_only_file_is_noop(self):
        """File-count floor holds inside a session."""
        single = normalize(None)
        session = EditingSession(single)
        session.begin_edit("documentDirectory")
        assert session.remove_file(0) is single
        assert not session.is_modified

    def test_failed_operation_keeps_working_copy(self, doc):
        """A PathNotFoundError leaves the working copy as it was."""
        session = EditingSession(doc)
        session.begin_edit("documentDirectory")
        session.set_summary("摘要")
        before = session.current
        with pytest.raises(PathNotFoundError):
            session.remove_node(0, [9])
        assert session.current is before

    def test_replace_document(self, doc):
        """Whole working copy can be swapped."""
        other = normalize(None)
        session = EditingSession(doc)
        session.begin_edit("documentDirectory")
        session.replace_document(other)
        assert session.save() is other

    def test_new_edit_starts_from_committed(self, doc):
        """A second edit snapshots the latest committed document."""
        session = EditingSession(doc)
        session.begin_edit("documentDirectory")
        session.add_file("授权委托书")
        session.save()

        session.begin_edit("documentDirectory")
        session.remove_file(2)
        session.cancel()
        assert [f.name for f in session.document.files] == ["商务文件", "技术文件", "授权委托书"]
