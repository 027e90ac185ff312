from __future__ import annotations

import json
import logging
import threading
from typing import Sequence

from classrate.application.exceptions import PersistenceFailure
from classrate.application.ports.session_store import SessionStorePort
from classrate.application.utils.clock import epoch_micros, utc_now
from classrate.application.utils.ids import new_evaluation_id, new_session_id
from classrate.domain.entities.criterion import Criterion
from classrate.domain.entities.evaluation import Evaluation
from classrate.domain.entities.session import Session
from classrate.infrastructure.kv.redis_rest_client import RedisRestClient


class KvSessionStore(SessionStorePort):
    """
    Key-value store: each session is one JSON document under
    ``<prefix>:session:<id>``; ``<prefix>:sessions`` is a sorted set of ids
    scored by creation time (epoch microseconds) used for newest-first listing.
    """

    name = "kv"

    def __init__(self, client: RedisRestClient, key_prefix: str = "classrate") -> None:
        self._client = client
        self._prefix = key_prefix.rstrip(":")
        self._ready = False
        self._ready_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    @property
    def index_key(self) -> str:
        return f"{self._prefix}:sessions"

    def session_key(self, session_id: str) -> str:
        return f"{self._prefix}:session:{session_id}"

    def ensure_ready(self) -> None:
        if self._ready:
            return
        with self._ready_lock:
            if self._ready:
                return
            # the index sorted set springs into existence on first ZADD; only check reachability here
            if not self._client.ping():
                raise PersistenceFailure("Key-value store did not answer PING")
            self._ready = True

    def _decode(self, raw: str | None) -> Session | None:
        if raw is None:
            return None
        try:
            return Session.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, ValueError) as e:
            self._logger.error("Corrupt session document", extra={"error": str(e), "store": self.name})
            raise PersistenceFailure("Corrupt session document") from e

    @staticmethod
    def _encode(session: Session) -> str:
        return json.dumps(session.to_dict(), ensure_ascii=False)

    def list_sessions(self) -> list[Session]:
        self.ensure_ready()
        ids = self._client.zrange_rev(self.index_key)
        raws = self._client.mget([self.session_key(i) for i in ids])

        sessions: list[Session] = []
        for session_id, raw in zip(ids, raws):
            if raw is None:
                # index entry outlived its document
                self._logger.warning("Dropping stale index entry", extra={"session_id": session_id})
                self._client.zrem(self.index_key, session_id)
                continue
            session = self._decode(raw)
            if session is not None:
                sessions.append(session)
        return sessions

    def get_session(self, session_id: str) -> Session | None:
        self.ensure_ready()
        return self._decode(self._client.get(self.session_key(session_id)))

    def create_session(self, presenter: str, created_by: str, criteria: Sequence[Criterion]) -> Session:
        self.ensure_ready()
        session = Session(
            id=new_session_id(),
            presenter=presenter.strip(),
            created_by=created_by.strip(),
            created_at=utc_now(),
            criteria=tuple(criteria),
        )
        self._client.pipeline(
            [
                ["SET", self.session_key(session.id), self._encode(session)],
                ["ZADD", self.index_key, epoch_micros(session.created_at), session.id],
            ],
            transaction=True,
        )
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
        existing = self.get_session(session_id)
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
        # XX: do not resurrect a session deleted between the read and this write
        stored = self._client.command("SET", self.session_key(session_id), self._encode(updated), "XX")
        if stored is None:
            return None

        self._logger.info(
            "Evaluation added",
            extra={"session_id": session_id, "evaluation_id": evaluation.id, "store": self.name},
        )
        return updated

    def delete_session(self, session_id: str) -> bool:
        self.ensure_ready()
        deleted, _ = self._client.pipeline(
            [
                ["DEL", self.session_key(session_id)],
                ["ZREM", self.index_key, session_id],
            ],
            transaction=True,
        )
        if deleted:
            self._logger.info("Session deleted", extra={"session_id": session_id, "store": self.name})
        return bool(deleted)
