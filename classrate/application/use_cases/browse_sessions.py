from dataclasses import dataclass

from classrate.application.exceptions import SessionNotFound
from classrate.application.ports.session_store import SessionStorePort
from classrate.domain.entities.session import Session
from classrate.domain.scoring import SessionSummary


@dataclass
class ListSessionsUseCase:
    store: SessionStorePort

    def execute(self) -> list[Session]:
        return self.store.list_sessions()


@dataclass
class GetSessionUseCase:
    store: SessionStorePort

    def execute(self, session_id: str) -> Session:
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return session


@dataclass
class SummarizeSessionUseCase:
    store: SessionStorePort

    def execute(self, session_id: str) -> SessionSummary:
        session = self.store.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        return SessionSummary.from_session(session)
