from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from classrate.application.exceptions import SessionNotFound, ValidationError
from classrate.application.ports.session_store import SessionStorePort
from classrate.domain.entities.session import Session
from classrate.domain.scoring import is_valid_rating, weighted_overall_score


@dataclass
class SubmitEvaluationUseCase:
    store: SessionStorePort
    default_evaluator: str = "Anonymous"
    score_tolerance: float = 0.01

    def execute(
        self,
        session_id: str | None,
        evaluator: str | None,
        ratings: dict[str, Any] | None,
        overall_score: Any,
    ) -> Session:
        session_id_clean = (session_id or "").strip()
        if not session_id_clean:
            raise ValidationError("sessionId is required")

        session = self.store.get_session(session_id_clean)
        if session is None:
            raise SessionNotFound(session_id_clean)

        if not isinstance(ratings, dict) or not ratings or overall_score is None:
            raise ValidationError("Invalid rating payload")

        expected = session.criterion_ids()
        received = set(ratings)
        missing = sorted(expected - received)
        if missing:
            raise ValidationError(f"Missing ratings for criteria: {missing}")
        unknown = sorted(received - expected)
        if unknown:
            raise ValidationError(f"Unknown criteria: {unknown}")

        invalid = sorted(k for k, v in ratings.items() if not is_valid_rating(v))
        if invalid:
            raise ValidationError(f"Ratings must be integers between 1 and 5: {invalid}")

        computed = weighted_overall_score(session.criteria, ratings)

        # the client computes its own preview; it has to agree with ours but ours is what gets stored
        if isinstance(overall_score, bool) or not isinstance(overall_score, (int, float)):
            raise ValidationError("overallScore must be a number")
        if not math.isfinite(overall_score) or abs(overall_score - computed) > self.score_tolerance:
            raise ValidationError(
                f"overallScore {overall_score} does not match the weighted ratings ({computed:.2f})"
            )

        name = (evaluator or "").strip() or self.default_evaluator
        updated = self.store.add_evaluation_to_session(
            session_id_clean,
            name,
            {k: int(v) for k, v in ratings.items()},
            computed,
        )
        if updated is None:
            # deleted between the lookup and the append
            raise SessionNotFound(session_id_clean)
        return updated
