from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from classrate.domain.entities.criterion import Criterion
from classrate.domain.entities.evaluation import Evaluation


@dataclass(frozen=True)
class Session:
    id: str
    presenter: str
    created_by: str
    created_at: datetime
    criteria: tuple[Criterion, ...] = ()
    evaluations: tuple[Evaluation, ...] = ()

    def with_evaluation(self, evaluation: Evaluation) -> "Session":
        """Return a copy with ``evaluation`` appended; existing evaluations are left untouched."""
        return replace(self, evaluations=self.evaluations + (evaluation,))

    def criterion_ids(self) -> set[str]:
        return {c.id for c in self.criteria}

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "presenter": self.presenter,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
            "criteria": [c.to_dict() for c in self.criteria],
            "evaluations": [e.to_dict() for e in self.evaluations],
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Session":
        return Session(
            id=data["id"],
            presenter=data.get("presenter", ""),
            created_by=data.get("createdBy", ""),
            created_at=datetime.fromisoformat(data["createdAt"]),
            criteria=tuple(Criterion.from_dict(c) for c in data.get("criteria") or []),
            evaluations=tuple(Evaluation.from_dict(e) for e in data.get("evaluations") or []),
        )
