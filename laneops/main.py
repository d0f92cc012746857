import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from laneops.api.deps import get_registry
from laneops.api.router import api_router
from laneops.core.config import get_settings
from laneops.core.errors import (
    CollaboratorError,
    LaneConstraintError,
    LaneNotFoundError,
    LaneNotSubmittableError,
    LaneOpsError,
    LegNotFoundError,
    ReadOnlyFieldError,
    SuggestionNotFoundError,
    SuggestionPreconditionError,
    UnknownFieldError,
)

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (LaneConstraintError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (ReadOnlyFieldError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (UnknownFieldError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (LaneNotSubmittableError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (LaneNotFoundError, status.HTTP_404_NOT_FOUND),
    (LegNotFoundError, status.HTTP_404_NOT_FOUND),
    (SuggestionNotFoundError, status.HTTP_404_NOT_FOUND),
    (SuggestionPreconditionError, status.HTTP_400_BAD_REQUEST),
    (CollaboratorError, status.HTTP_502_BAD_GATEWAY),
)


def status_for(exc: LaneOpsError) -> int:
    for error_cls, code in ERROR_STATUS:
        if isinstance(exc, error_cls):
            return code
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(_: FastAPI):
    logger.info(f"Starting {settings.project_name} ({settings.environment})")
    yield
    get_registry().clear()
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.project_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.backend_cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
)

app.include_router(api_router, prefix="/api")


@app.exception_handler(LaneOpsError)
async def lane_ops_error_handler(_: Request, exc: LaneOpsError) -> JSONResponse:
    code = status_for(exc)
    body = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, LaneConstraintError):
        body["reason"] = exc.reason.value
    elif isinstance(exc, LaneNotSubmittableError):
        body["problems"] = exc.problems
    if code >= 500:
        logger.error(f"Collaborator failure: {exc}")
    return JSONResponse(status_code=code, content=body)


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    return {"status": "ok", "environment": settings.environment}
