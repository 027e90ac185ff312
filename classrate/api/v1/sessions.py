from fastapi import APIRouter, Depends, HTTPException, Response

from classrate.api.v1.schemas import CreateSessionRequestSchema, SessionSchema, SessionSummarySchema
from classrate.application.exceptions import PersistenceFailure, SessionNotFound, ValidationError
from classrate.application.use_cases.browse_sessions import (
    GetSessionUseCase,
    ListSessionsUseCase,
    SummarizeSessionUseCase,
)
from classrate.application.use_cases.create_session import CreateSessionUseCase
from classrate.application.use_cases.delete_session import DeleteSessionUseCase
from classrate.wiring.dependencies import (
    get_create_session_use_case,
    get_delete_session_use_case,
    get_get_session_use_case,
    get_list_sessions_use_case,
    get_summarize_session_use_case,
)

router = APIRouter()


@router.get("/sessions", response_model=list[SessionSchema])
def list_sessions(uc: ListSessionsUseCase = Depends(get_list_sessions_use_case)):
    try:
        sessions = uc.execute()
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return [SessionSchema.model_validate(s.to_dict()) for s in sessions]


@router.post("/sessions", response_model=SessionSchema, status_code=201)
def create_session(
    req: CreateSessionRequestSchema,
    uc: CreateSessionUseCase = Depends(get_create_session_use_case),
):
    try:
        session = uc.execute(
            presenter=req.presenter,
            created_by=req.created_by,
            criteria_payload=req.criteria,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SessionSchema.model_validate(session.to_dict())


@router.get("/sessions/{session_id}", response_model=SessionSchema)
def get_session(session_id: str, uc: GetSessionUseCase = Depends(get_get_session_use_case)):
    try:
        session = uc.execute(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SessionSchema.model_validate(session.to_dict())


@router.get("/sessions/{session_id}/summary", response_model=SessionSummarySchema)
def get_session_summary(
    session_id: str,
    uc: SummarizeSessionUseCase = Depends(get_summarize_session_use_case),
):
    try:
        summary = uc.execute(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SessionSummarySchema.model_validate(summary.to_dict())


@router.delete("/sessions/{session_id}", status_code=204)
def delete_session(session_id: str, uc: DeleteSessionUseCase = Depends(get_delete_session_use_case)):
    try:
        uc.execute(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    except PersistenceFailure as e:
        raise HTTPException(status_code=500, detail=str(e))
    return Response(status_code=204)
