from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CriterionSchema(CamelModel):
    id: str
    label: str
    description: str = ""
    weight: float = 1


class EvaluationSchema(CamelModel):
    id: str
    evaluator: str
    ratings: dict[str, int]
    overall_score: float
    created_at: datetime


class SessionSchema(CamelModel):
    id: str
    presenter: str
    created_by: str
    created_at: datetime
    criteria: list[CriterionSchema] = Field(default_factory=list)
    evaluations: list[EvaluationSchema] = Field(default_factory=list)


class CriterionAverageSchema(CamelModel):
    id: str
    label: str
    weight: float
    average: float | None = None
    count: int = 0


class SessionSummarySchema(CamelModel):
    session_id: str
    presenter: str
    evaluation_count: int
    class_average: float | None = None
    criteria: list[CriterionAverageSchema] = Field(default_factory=list)


# Request bodies are loosely typed so that blank or malformed fields reach
# the use cases and come back as 400 rather than a schema 422.
class CreateSessionRequestSchema(CamelModel):
    presenter: str | None = None
    created_by: str | None = None
    criteria: list[dict[str, Any]] | None = None


class SubmitEvaluationRequestSchema(CamelModel):
    session_id: str | None = None
    evaluator: str | None = None
    ratings: dict[str, Any] | None = None
    overall_score: Any = None
