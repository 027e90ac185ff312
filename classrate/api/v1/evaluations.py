import logging

from fastapi import APIRouter, Depends, HTTPException

from classrate.api.v1.schemas import SessionSchema, SubmitEvaluationRequestSchema
from classrate.application.exceptions import PersistenceFailure, SessionNotFound, ValidationError
from classrate.application.use_cases.submit_evaluation import SubmitEvaluationUseCase
from classrate.wiring.dependencies import get_submit_evaluation_use_case

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/evaluations", response_model=SessionSchema, status_code=201)
def submit_evaluation(
    req: SubmitEvaluationRequestSchema,
    uc: SubmitEvaluationUseCase = Depends(get_submit_evaluation_use_case),
):
    try:
        session = uc.execute(
            session_id=req.session_id,
            evaluator=req.evaluator,
            ratings=req.ratings,
            overall_score=req.overall_score,
        )
    except ValidationError as e:
        logger.info("Evaluation rejected", extra={"session_id": req.session_id, "reason": str(e)})
        raise HTTPException(status_code=400, detail=str(e))
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))

    return SessionSchema.model_validate(session.to_dict())
