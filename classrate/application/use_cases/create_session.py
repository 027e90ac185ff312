from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from classrate.application.exceptions import ValidationError
from classrate.application.ports.session_store import SessionStorePort
from classrate.domain.entities.criterion import DEFAULT_CRITERIA, Criterion
from classrate.domain.entities.session import Session


def parse_criteria(payload: list[dict[str, Any]] | None) -> tuple[Criterion, ...]:
    """Validate criteria supplied at creation time; an empty list means the default set."""
    if not payload:
        return DEFAULT_CRITERIA

    criteria: list[Criterion] = []
    seen_ids: set[str] = set()

    for raw in payload:
        if not isinstance(raw, dict):
            raise ValidationError("Each criterion must be an object.")

        criterion_id = raw.get("id")
        if not isinstance(criterion_id, str) or not criterion_id.strip():
            raise ValidationError("Each criterion must include a non-empty 'id'.")

        for text_field in ("label", "description"):
            if raw.get(text_field) is not None and not isinstance(raw[text_field], str):
                raise ValidationError(f"Criterion '{criterion_id}' {text_field} must be a string.")

        weight = raw.get("weight", 1)
        if weight is None:
            weight = 1
        if isinstance(weight, bool) or not isinstance(weight, (int, float)) or not math.isfinite(weight):
            raise ValidationError(f"Criterion '{criterion_id}' has a non-numeric weight.")
        if weight <= 0:
            raise ValidationError(f"Criterion '{criterion_id}' weight must be > 0, got {weight}.")

        criterion = Criterion.normalize(
            id=criterion_id,
            label=raw.get("label"),
            description=raw.get("description"),
            weight=weight,
        )
        if criterion.id in seen_ids:
            raise ValidationError(f"Duplicate criterion id: {criterion.id}")
        seen_ids.add(criterion.id)
        criteria.append(criterion)

    return tuple(criteria)


@dataclass
class CreateSessionUseCase:
    store: SessionStorePort
    default_created_by: str = "Teacher"

    def execute(
        self,
        presenter: str | None,
        created_by: str | None,
        criteria_payload: list[dict[str, Any]] | None,
    ) -> Session:
        presenter_clean = (presenter or "").strip()
        if not presenter_clean:
            raise ValidationError("Presenter is required")

        creator = (created_by or "").strip() or self.default_created_by
        criteria = parse_criteria(criteria_payload)

        return self.store.create_session(presenter_clean, creator, criteria)
