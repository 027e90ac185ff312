"""
Score aggregation for rating sessions.

Two different averages are in play:

- the *overall score* of one evaluation is the weighted mean of that
  evaluator's per-criterion ratings, computed once at submission and stored;
- the *class average* of a criterion is the plain mean of every evaluator's
  rating for it. Weights only combine one evaluator's criteria into a single
  number, they are never applied across evaluators.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from classrate.application.exceptions import ValidationError
from classrate.domain.entities.criterion import Criterion
from classrate.domain.entities.evaluation import SCORE_MAX, SCORE_MIN, Evaluation
from classrate.domain.entities.session import Session


def is_valid_rating(value: Any) -> bool:
    # bool is an int subclass; True must not count as a rating of 1
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return SCORE_MIN <= value <= SCORE_MAX


def is_complete(criteria: Sequence[Criterion], ratings: Mapping[str, Any]) -> bool:
    """True when every criterion has a valid integer rating."""
    if not criteria:
        return False
    return all(is_valid_rating(ratings.get(c.id)) for c in criteria)


def weighted_overall_score(criteria: Sequence[Criterion], ratings: Mapping[str, Any]) -> float:
    if not is_complete(criteria, ratings):
        raise ValidationError("All criteria must be rated with an integer between 1 and 5.")

    total_weight = sum(c.weight for c in criteria)
    if total_weight <= 0:
        raise ValidationError("Criteria weights must sum to a positive number.")

    weighted_sum = sum(ratings[c.id] * c.weight for c in criteria)
    return weighted_sum / total_weight


def preview_overall_score(criteria: Sequence[Criterion], ratings: Mapping[str, Any]) -> float | None:
    """Score shown while an evaluator fills in the form; None until every criterion is rated."""
    if not is_complete(criteria, ratings):
        return None
    return weighted_overall_score(criteria, ratings)


def round_for_display(value: float | None) -> float | None:
    if value is None:
        return None
    return round(value, 2)


@dataclass(frozen=True)
class CriterionAverage:
    id: str
    label: str
    weight: float
    average: float | None
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "weight": self.weight,
            "average": self.average,
            "count": self.count,
        }


def criterion_averages(criteria: Sequence[Criterion], evaluations: Iterable[Evaluation]) -> list[CriterionAverage]:
    values: dict[str, list[int]] = {c.id: [] for c in criteria}
    for evaluation in evaluations:
        for criterion_id, rating in evaluation.ratings.items():
            if criterion_id in values:
                values[criterion_id].append(rating)

    result: list[CriterionAverage] = []
    for c in criteria:
        ratings = values[c.id]
        result.append(
            CriterionAverage(
                id=c.id,
                label=c.label,
                weight=c.weight,
                average=(sum(ratings) / len(ratings)) if ratings else None,
                count=len(ratings),
            )
        )
    return result


def class_average(evaluations: Sequence[Evaluation]) -> float | None:
    if not evaluations:
        return None
    return sum(e.overall_score for e in evaluations) / len(evaluations)


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    presenter: str
    evaluation_count: int
    class_average: float | None
    criteria: tuple[CriterionAverage, ...]

    @staticmethod
    def from_session(session: Session) -> "SessionSummary":
        return SessionSummary(
            session_id=session.id,
            presenter=session.presenter,
            evaluation_count=len(session.evaluations),
            class_average=class_average(session.evaluations),
            criteria=tuple(criterion_averages(session.criteria, session.evaluations)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "presenter": self.presenter,
            "evaluationCount": self.evaluation_count,
            "classAverage": self.class_average,
            "criteria": [c.to_dict() for c in self.criteria],
        }
