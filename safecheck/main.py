"""SafeCheck FastAPI application."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from safecheck.api.assessments import router as assessments_router
from safecheck.api.health import router as health_router
from safecheck.config import settings
from safecheck.errors import (
    AssessmentError,
    NotAuthenticated,
    NotFound,
    QuestionsRemaining,
    StorageFailure,
    ValidationFailed,
)

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="SafeCheck - Safety Inspection Checklists",
    description="Checklist assessments with photo evidence and compliance scoring",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _status_for(exc: AssessmentError) -> int:
    if isinstance(exc, NotAuthenticated):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, NotFound):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, QuestionsRemaining):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, ValidationFailed):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(exc, StorageFailure):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@app.exception_handler(AssessmentError)
async def assessment_error_handler(request: Request, exc: AssessmentError):
    """Map assessment errors onto HTTP responses."""
    code = _status_for(exc)
    if code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = {"detail": exc.message, "error": type(exc).__name__}
    if isinstance(exc, NotFound):
        # Foreign and missing assessments must look the same
        body["error"] = "NotFound"
    if isinstance(exc, QuestionsRemaining):
        body["remaining"] = exc.remaining
    headers = {"WWW-Authenticate": "Bearer"} if code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=code, content=body, headers=headers)


app.include_router(health_router, tags=["Health"])
app.include_router(assessments_router, prefix="/v1", tags=["Assessments"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {"service": "SafeCheck", "version": "0.1.0", "docs": "/docs"}
