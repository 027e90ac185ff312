from dataclasses import dataclass

from classrate.application.exceptions import PersistenceFailure, SessionNotFound
from classrate.application.ports.session_store import SessionStorePort


@dataclass
class DeleteSessionUseCase:
    store: SessionStorePort

    def execute(self, session_id: str) -> None:
        if self.store.get_session(session_id) is None:
            raise SessionNotFound(session_id)
        if not self.store.delete_session(session_id):
            raise PersistenceFailure(f"Failed to delete session {session_id}")
