from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Criterion:
    id: str
    label: str
    description: str = ""
    weight: float = 1

    @staticmethod
    def normalize(id: str, label: str | None = None, description: str | None = None, weight: Any = None) -> "Criterion":
        criterion_id = (id or "").strip()
        return Criterion(
            id=criterion_id,
            label=(label or "").strip() or criterion_id,
            description=(description or "").strip(),
            weight=1 if weight is None else weight,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "weight": self.weight,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> "Criterion":
        return Criterion(
            id=data["id"],
            label=data.get("label") or data["id"],
            description=data.get("description") or "",
            weight=data.get("weight", 1),
        )


DEFAULT_CRITERIA: tuple[Criterion, ...] = (
    Criterion("explainability", "Explainability", "How well concepts were broken down and explained."),
    Criterion("clarity", "Clarity", "How clear and easy to follow the presentation was."),
    Criterion("content", "Content Quality", "Depth, accuracy, and organization of the content."),
    Criterion("engagement", "Engagement", "How well the presenter kept the audience engaged."),
    Criterion("timeManagement", "Time Management", "Pacing and use of the allotted time."),
    Criterion("delivery", "Delivery", "Voice, body language, and overall delivery."),
)
