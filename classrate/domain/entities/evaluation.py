from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

SCORE_MIN = 1
SCORE_MAX = 5


@dataclass(frozen=True)
class Evaluation:
    id: str
    evaluator: str
    ratings: dict[str, int] = field(default_factory=dict)
    overall_score: float = 0.0
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "evaluator": self.evaluator,
            "ratings": dict(self.ratings),
            "overallScore": self.overall_score,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Evaluation":
        created_at = data.get("createdAt")
        return Evaluation(
            id=data["id"],
            evaluator=data.get("evaluator", ""),
            ratings={str(k): int(v) for k, v in (data.get("ratings") or {}).items()},
            overall_score=float(data.get("overallScore", 0.0)),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )
