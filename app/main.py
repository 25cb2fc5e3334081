"""
QuizMaster — Quiz Generation & Review API
==========================================
FastAPI entry point.
  • Uniform JSON error envelope for every failure (validation, 404/405, crashes)
  • /api/* quiz endpoints: verify subject, verify sub-subject, generate, review
  • /health process health (uptime + memory)
"""

import os
import time
import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.endpoints import quiz
from app.assembler import error_envelope, validation_failure_envelope
from app.core.config import settings
from app.core.errors import ErrorCode, QuizMasterError
from app.schemas.responses import ErrorResponse, ProcessHealth
from app.validation import ValidationFailure, violations_from_errors

try:
    import resource
except ImportError:  # Windows
    resource = None

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

AVAILABLE_ENDPOINTS = [f"{e.method} {e.path}" for e in quiz.ENDPOINTS] + [
    "GET /api/health",
    "GET /health",
]

# ── App ──────────────────────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    description=(
        "Quiz generation and review service.\n"
        "Verify a subject → generate a 10-question quiz → submit answers for a scored review."
    ),
    version=settings.SERVICE_VERSION,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)


def _envelope_response(status_code: int, body: ErrorResponse) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Every broken request constraint, reported at once."""
    failure = ValidationFailure(violations=violations_from_errors(exc.errors()))
    logger.info(
        f"[VALIDATION] {request.method} {request.url.path}: "
        f"{len(failure.violations)} violation(s)"
    )
    return _envelope_response(400, validation_failure_envelope(failure))


@app.exception_handler(QuizMasterError)
async def quizmaster_error_handler(request: Request, exc: QuizMasterError):
    logger.error(f"[{exc.code.value}] {request.url.path}: {exc.message}")
    return _envelope_response(exc.status_code, error_envelope(exc.code, exc.message, exc.details))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        body = error_envelope(
            ErrorCode.ENDPOINT_NOT_FOUND,
            f"The endpoint {request.method} {request.url.path} does not exist",
            {
                "requestedMethod": request.method,
                "requestedPath": request.url.path,
                "availableEndpoints": AVAILABLE_ENDPOINTS,
                "hint": "Please check the API documentation for valid endpoints",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )
    elif exc.status_code == 405:
        body = error_envelope(
            ErrorCode.METHOD_NOT_ALLOWED,
            f"Method {request.method} is not allowed for {request.url.path}",
            {"receivedMethod": request.method, "path": request.url.path},
        )
    else:
        body = error_envelope(ErrorCode.SERVER_ERROR, str(exc.detail))
    return _envelope_response(exc.status_code, body)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch-all: every unhandled exception returns a clean JSON envelope."""
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    body = error_envelope(
        ErrorCode.SERVER_ERROR,
        "An internal server error occurred. Please try again.",
    )
    return _envelope_response(500, body)


# ── CORS ─────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Routes ───────────────────────────────────────────────────────────────────
app.include_router(quiz.router, prefix="/api", tags=["Quiz"])


@app.get("/health", response_model=ProcessHealth, tags=["System"])
async def health_check():
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss if resource is not None else None
    return ProcessHealth(
        timestamp=datetime.now(timezone.utc),
        environment=settings.ENVIRONMENT,
        uptime=round(time.monotonic() - STARTED_AT, 3),
        memory={
            "pid": os.getpid(),
            "maxRssKb": max_rss,
        },
    )


logger.info(
    f"[STARTUP] {settings.APP_NAME} v{settings.SERVICE_VERSION} "
    f"({settings.ENVIRONMENT}, AI provider: {settings.AI_PROVIDER})"
)
