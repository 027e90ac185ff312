"""
Tests for the file-backed session store used in local development.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest

from classrate.application.exceptions import PersistenceFailure
from classrate.domain.entities.criterion import Criterion
from classrate.infrastructure.store.json_store import JsonSessionStore

CRITERIA = (Criterion("clarity", "Clarity"), Criterion("content", "Content", weight=2))


def test_sessions_survive_a_new_store_instance():
    """A restart (new store on the same directory) sees earlier sessions and evaluations."""
    with tempfile.TemporaryDirectory() as tmpdir:
        first = JsonSessionStore(data_dir=tmpdir)
        session = first.create_session("Alice", "Teacher", CRITERIA)
        first.add_evaluation_to_session(session.id, "Bob", {"clarity": 4, "content": 5}, 14 / 3)

        second = JsonSessionStore(data_dir=tmpdir)
        reloaded = second.get_session(session.id)

        assert reloaded is not None
        assert reloaded.presenter == "Alice"
        assert reloaded.criteria == CRITERIA
        assert reloaded.evaluations[0].ratings == {"clarity": 4, "content": 5}


def test_document_layout():
    """Each session is one camelCase JSON document named after its id."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonSessionStore(data_dir=tmpdir)
        session = store.create_session("Alice", "Teacher", CRITERIA)

        data = json.loads((Path(tmpdir) / f"{session.id}.json").read_text(encoding="utf-8"))

        assert data["id"] == session.id
        assert data["createdBy"] == "Teacher"
        assert data["criteria"][1] == {"id": "content", "label": "Content", "description": "", "weight": 2}
        assert not list(Path(tmpdir).glob("*.tmp"))


def test_data_dir_created_on_first_use(tmp_path):
    data_dir = tmp_path / "nested" / "sessions"
    store = JsonSessionStore(data_dir=str(data_dir))
    assert not data_dir.exists()

    store.list_sessions()

    assert data_dir.is_dir()


@pytest.mark.parametrize("session_id", ["../etc/passwd", "a/b", "", "session.x"])
def test_path_like_ids_are_never_found(tmp_path, session_id):
    store = JsonSessionStore(data_dir=str(tmp_path))

    assert store.get_session(session_id) is None
    assert store.add_evaluation_to_session(session_id, "Bob", {"clarity": 1}, 1.0) is None
    assert store.delete_session(session_id) is False


def test_corrupt_file(tmp_path):
    store = JsonSessionStore(data_dir=str(tmp_path))
    good = store.create_session("Alice", "Teacher", CRITERIA)
    (tmp_path / "session_bad_000000.json").write_text("{oops", encoding="utf-8")

    with pytest.raises(PersistenceFailure):
        store.get_session("session_bad_000000")
    assert store.get_session(good.id).id == good.id


def test_corrupt_file_fails_listing(tmp_path):
    store = JsonSessionStore(data_dir=str(tmp_path))
    store.create_session("Alice", "Teacher", CRITERIA)
    (tmp_path / "session_bad_000000.json").write_text("{oops", encoding="utf-8")

    with pytest.raises(PersistenceFailure):
        store.list_sessions()
