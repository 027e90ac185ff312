from __future__ import annotations

import logging
import threading
from typing import Sequence

from classrate.application.ports.session_store import SessionStorePort
from classrate.application.utils.clock import utc_now
from classrate.application.utils.ids import new_evaluation_id, new_session_id
from classrate.domain.entities.criterion import Criterion
from classrate.domain.entities.evaluation import Evaluation
from classrate.domain.entities.session import Session


class MemorySessionStore(SessionStorePort):
    """Process-local store. Contents are lost on restart."""

    name = "memory"

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._ready = False
        self._logger = logging.getLogger(__name__)

    def ensure_ready(self) -> None:
        if self._ready:
            return
        with self._lock:
            if self._ready:
                return
            self._logger.debug("Memory store ready", extra={"store": self.name})
            self._ready = True

    def list_sessions(self) -> list[Session]:
        self.ensure_ready()
        with self._lock:
            # dicts keep insertion order; reversing first makes same-instant ties newest-first too
            sessions = list(reversed(self._sessions.values()))
        return sorted(sessions, key=lambda s: s.created_at, reverse=True)

    def get_session(self, session_id: str) -> Session | None:
        self.ensure_ready()
        return self._sessions.get(session_id)

    def create_session(self, presenter: str, created_by: str, criteria: Sequence[Criterion]) -> Session:
        self.ensure_ready()
        session = Session(
            id=new_session_id(),
            presenter=presenter.strip(),
            created_by=created_by.strip(),
            created_at=utc_now(),
            criteria=tuple(criteria),
        )
        with self._lock:
            self._sessions[session.id] = session
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
        with self._lock:
            existing = self._sessions.get(session_id)
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
            self._sessions[session_id] = updated
        self._logger.info(
            "Evaluation added",
            extra={"session_id": session_id, "evaluation_id": evaluation.id, "store": self.name},
        )
        return updated

    def delete_session(self, session_id: str) -> bool:
        self.ensure_ready()
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            self._logger.info("Session deleted", extra={"session_id": session_id, "store": self.name})
        return removed is not None
