from abc import ABC, abstractmethod
from typing import Sequence

from classrate.domain.entities.criterion import Criterion
from classrate.domain.entities.session import Session


class SessionStorePort(ABC):
    name: str = "abstract"

    @abstractmethod
    def ensure_ready(self) -> None:
        """
        Create whatever the backend needs (tables, directories, indexes).
        Idempotent: runs once per store instance, later calls are no-ops.
        """
        raise NotImplementedError

    @abstractmethod
    def list_sessions(self) -> list[Session]:
        """All sessions, newest created first."""
        raise NotImplementedError

    @abstractmethod
    def get_session(self, session_id: str) -> Session | None:
        raise NotImplementedError

    @abstractmethod
    def create_session(self, presenter: str, created_by: str, criteria: Sequence[Criterion]) -> Session:
        raise NotImplementedError

    @abstractmethod
    def add_evaluation_to_session(
        self,
        session_id: str,
        evaluator: str,
        ratings: dict[str, int],
        overall_score: float,
    ) -> Session | None:
        """
        Append one evaluation and return the updated session.
        Returns None when the session does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_session(self, session_id: str) -> bool:
        raise NotImplementedError
