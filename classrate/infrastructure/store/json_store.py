from __future__ import annotations

import json
import logging
import re
import threading
from pathlib import Path
from typing import Sequence

from classrate.application.exceptions import PersistenceFailure
from classrate.application.ports.session_store import SessionStorePort
from classrate.application.utils.clock import utc_now
from classrate.application.utils.ids import new_evaluation_id, new_session_id
from classrate.domain.entities.criterion import Criterion
from classrate.domain.entities.evaluation import Evaluation
from classrate.domain.entities.session import Session

_SAFE_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonSessionStore(SessionStorePort):
    """One JSON document per session under ``data_dir``; used for local development."""

    name = "json"

    def __init__(self, data_dir: str = "./data/sessions") -> None:
        self._data_dir = Path(data_dir)
        self._ready = False
        self._ready_lock = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def ensure_ready(self) -> None:
        if self._ready:
            return
        with self._ready_lock:
            if self._ready:
                return
            try:
                self._data_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                self._logger.error("Cannot create data dir", extra={"error": str(e), "store": self.name})
                raise PersistenceFailure(f"Cannot create data directory {self._data_dir}") from e
            self._ready = True

    def _get_lock(self, session_id: str) -> threading.Lock:
        """Get or create a lock for a session_id."""
        with self._lock_lock:
            if session_id not in self._locks:
                self._locks[session_id] = threading.Lock()
            return self._locks[session_id]

    def _get_file_path(self, session_id: str) -> Path | None:
        if not _SAFE_ID.match(session_id or ""):
            return None
        return self._data_dir / f"{session_id}.json"

    def _load(self, file_path: Path) -> Session | None:
        if not file_path.exists():
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return Session.from_dict(json.load(f))
        except (json.JSONDecodeError, KeyError, ValueError, OSError) as e:
            self._logger.error("Failed to read session file", extra={"error": str(e), "store": self.name})
            raise PersistenceFailure(f"Unreadable session file {file_path.name}") from e

    def _save(self, session: Session) -> None:
        """Save session document atomically."""
        file_path = self._data_dir / f"{session.id}.json"
        temp_path = file_path.with_suffix(".json.tmp")

        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(session.to_dict(), f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            self._logger.error("Failed to write session file", extra={"error": str(e), "session_id": session.id})
            raise PersistenceFailure(f"Failed to save session {session.id}") from e

    def list_sessions(self) -> list[Session]:
        self.ensure_ready()
        sessions: list[Session] = []
        for file_path in self._data_dir.glob("*.json"):
            session = self._load(file_path)
            if session is not None:
                sessions.append(session)
        return sorted(sessions, key=lambda s: s.created_at, reverse=True)

    def get_session(self, session_id: str) -> Session | None:
        self.ensure_ready()
        file_path = self._get_file_path(session_id)
        if file_path is None:
            return None
        with self._get_lock(session_id):
            return self._load(file_path)

    def create_session(self, presenter: str, created_by: str, criteria: Sequence[Criterion]) -> Session:
        self.ensure_ready()
        session = Session(
            id=new_session_id(),
            presenter=presenter.strip(),
            created_by=created_by.strip(),
            created_at=utc_now(),
            criteria=tuple(criteria),
        )
        with self._get_lock(session.id):
            self._save(session)
        self._logger.info("Session created", extra={"session_id": session.id, "store": self.name})
        return session

    def add_evaluation_to_session(
        self,
        session_id: str,
        evaluator: str,
        ratings: dict[str, int],
        overall_score: float,
    ) -> Session | None:
        self.ensure_ready()
        file_path = self._get_file_path(session_id)
        if file_path is None:
            return None

        with self._get_lock(session_id):
            existing = self._load(file_path)
            if existing is None:
                return None
            evaluation = Evaluation(
                id=new_evaluation_id(),
                evaluator=evaluator.strip(),
                ratings=dict(ratings),
                overall_score=overall_score,
                created_at=utc_now(),
            )
            updated = existing.with_evaluation(evaluation)
            self._save(updated)

        self._logger.info(
            "Evaluation added",
            extra={"session_id": session_id, "evaluation_id": evaluation.id, "store": self.name},
        )
        return updated

    def delete_session(self, session_id: str) -> bool:
        self.ensure_ready()
        file_path = self._get_file_path(session_id)
        if file_path is None:
            return False

        with self._get_lock(session_id):
            if not file_path.exists():
                return False
            try:
                file_path.unlink()
            except OSError as e:
                self._logger.error("Failed to delete session file", extra={"error": str(e), "session_id": session_id})
                raise PersistenceFailure(f"Failed to delete session {session_id}") from e

        with self._lock_lock:
            self._locks.pop(session_id, None)
        self._logger.info("Session deleted", extra={"session_id": session_id, "store": self.name})
        return True
