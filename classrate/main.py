import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from classrate.api.v1.evaluations import router as evaluations_router
from classrate.api.v1.sessions import router as sessions_router
from classrate.application.exceptions import PersistenceFailure
from classrate.core.config import settings
from classrate.wiring.dependencies import get_session_store


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("session_id", "evaluation_id", "store", "count", "status", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

logger = logging.getLogger(__name__)

app = FastAPI(title="Classroom Presentation Ratings", version="1.0.0")

app.include_router(sessions_router, tags=["sessions"])
app.include_router(evaluations_router, tags=["evaluations"])


@app.exception_handler(PersistenceFailure)
def persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
    # store construction happens inside dependencies, before any route-level try/except
    logger.error("Unhandled persistence failure", extra={"error": str(exc)})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "store": get_session_store().name}
