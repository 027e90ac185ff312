from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Float,
    ForeignKey,
    MetaData,
    String,
    Table,
    create_engine,
    delete,
    event,
    insert,
    select,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from classrate.application.exceptions import ConfigurationError, PersistenceFailure
from classrate.application.ports.session_store import SessionStorePort
from classrate.application.utils.clock import utc_now
from classrate.application.utils.ids import new_evaluation_id, new_session_id
from classrate.domain.entities.criterion import Criterion
from classrate.domain.entities.evaluation import Evaluation
from classrate.domain.entities.session import Session

metadata = MetaData()

_json = JSON().with_variant(JSONB(), "postgresql")

sessions_table = Table(
    "sessions",
    metadata,
    Column("id", String, primary_key=True),
    Column("presenter", String, nullable=False),
    Column("created_by", String, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False, index=True),
    Column("criteria", _json, nullable=False),
)

evaluations_table = Table(
    "evaluations",
    metadata,
    Column("id", String, primary_key=True),
    Column(
        "session_id",
        String,
        ForeignKey("sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("evaluator", String, nullable=False),
    Column("ratings", _json, nullable=False),
    Column("overall_score", Float, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SqlSessionStore(SessionStorePort):
    """Relational store: a ``sessions`` table plus ``evaluations`` rows that cascade on delete."""

    name = "sql"

    def __init__(self, url: str | None = None, engine: Engine | None = None) -> None:
        if engine is None:
            if not url:
                raise ConfigurationError("A database URL is required for the SQL session store")
            try:
                engine = create_engine(url, pool_pre_ping=True)
            except (SQLAlchemyError, ImportError) as e:
                raise ConfigurationError(f"Cannot create database engine: {e}") from e
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        self._engine = engine
        self._ready = False
        self._ready_lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def ensure_ready(self) -> None:
        if self._ready:
            return
        with self._ready_lock:
            if self._ready:
                return
            try:
                metadata.create_all(self._engine, checkfirst=True)
            except SQLAlchemyError as e:
                self._logger.error("Schema creation failed", extra={"error": str(e), "store": self.name})
                raise PersistenceFailure("Failed to initialize database schema") from e
            self._ready = True

    def _row_to_session(self, row: Any, evaluation_rows: Sequence[Any]) -> Session:
        return Session(
            id=row.id,
            presenter=row.presenter,
            created_by=row.created_by,
            created_at=_as_utc(row.created_at),
            criteria=tuple(Criterion.from_dict(c) for c in row.criteria or []),
            evaluations=tuple(
                Evaluation(
                    id=ev.id,
                    evaluator=ev.evaluator,
                    ratings={str(k): int(v) for k, v in (ev.ratings or {}).items()},
                    overall_score=ev.overall_score,
                    created_at=_as_utc(ev.created_at),
                )
                for ev in evaluation_rows
            ),
        )

    def _load(self, conn: Connection, session_id: str) -> Session | None:
        row = conn.execute(
            select(sessions_table).where(sessions_table.c.id == session_id).limit(1)
        ).first()
        if row is None:
            return None
        evaluation_rows = conn.execute(
            select(evaluations_table)
            .where(evaluations_table.c.session_id == session_id)
            .order_by(evaluations_table.c.created_at.asc())
        ).all()
        return self._row_to_session(row, evaluation_rows)

    def list_sessions(self) -> list[Session]:
        self.ensure_ready()
        try:
            with self._engine.connect() as conn:
                session_rows = conn.execute(
                    select(sessions_table).order_by(sessions_table.c.created_at.desc())
                ).all()
                if not session_rows:
                    return []
                evaluation_rows = conn.execute(
                    select(evaluations_table).order_by(evaluations_table.c.created_at.asc())
                ).all()
        except SQLAlchemyError as e:
            self._logger.error("Failed to list sessions", extra={"error": str(e), "store": self.name})
            raise PersistenceFailure("Failed to list sessions") from e

        by_session: dict[str, list[Any]] = {}
        for ev in evaluation_rows:
            by_session.setdefault(ev.session_id, []).append(ev)
        return [self._row_to_session(row, by_session.get(row.id, [])) for row in session_rows]

    def get_session(self, session_id: str) -> Session | None:
        self.ensure_ready()
        try:
            with self._engine.connect() as conn:
                return self._load(conn, session_id)
        except SQLAlchemyError as e:
            self._logger.error("Failed to load session", extra={"error": str(e), "session_id": session_id})
            raise PersistenceFailure(f"Failed to load session {session_id}") from e

    def create_session(self, presenter: str, created_by: str, criteria: Sequence[Criterion]) -> Session:
        self.ensure_ready()
        session = Session(
            id=new_session_id(),
            presenter=presenter.strip(),
            created_by=created_by.strip(),
            created_at=utc_now(),
            criteria=tuple(criteria),
        )
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    insert(sessions_table).values(
                        id=session.id,
                        presenter=session.presenter,
                        created_by=session.created_by,
                        created_at=session.created_at,
                        criteria=[c.to_dict() for c in session.criteria],
                    )
                )
                created = self._load(conn, session.id)
        except SQLAlchemyError as e:
            self._logger.error("Failed to create session", extra={"error": str(e), "store": self.name})
            raise PersistenceFailure("Failed to create session") from e

        if created is None:
            raise PersistenceFailure("Failed to load session after creation")
        self._logger.info("Session created", extra={"session_id": created.id, "store": self.name})
        return created

    def add_evaluation_to_session(
        self,
        session_id: str,
        evaluator: str,
        ratings: dict[str, int],
        overall_score: float,
    ) -> Session | None:
        self.ensure_ready()
        evaluation_id = new_evaluation_id()
        try:
            with self._engine.begin() as conn:
                exists = conn.execute(
                    select(sessions_table.c.id).where(sessions_table.c.id == session_id)
                ).first()
                if exists is None:
                    return None
                conn.execute(
                    insert(evaluations_table).values(
                        id=evaluation_id,
                        session_id=session_id,
                        evaluator=evaluator.strip(),
                        ratings=dict(ratings),
                        overall_score=overall_score,
                        created_at=utc_now(),
                    )
                )
                updated = self._load(conn, session_id)
        except SQLAlchemyError as e:
            self._logger.error("Failed to add evaluation", extra={"error": str(e), "session_id": session_id})
            raise PersistenceFailure(f"Failed to save evaluation for session {session_id}") from e

        self._logger.info(
            "Evaluation added",
            extra={"session_id": session_id, "evaluation_id": evaluation_id, "store": self.name},
        )
        return updated

    def delete_session(self, session_id: str) -> bool:
        self.ensure_ready()
        try:
            with self._engine.begin() as conn:
                result = conn.execute(delete(sessions_table).where(sessions_table.c.id == session_id))
        except SQLAlchemyError as e:
            self._logger.error("Failed to delete session", extra={"error": str(e), "session_id": session_id})
            raise PersistenceFailure(f"Failed to delete session {session_id}") from e

        deleted = result.rowcount > 0
        if deleted:
            self._logger.info("Session deleted", extra={"session_id": session_id, "store": self.name})
        return deleted
