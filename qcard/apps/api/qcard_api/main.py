"""QCard API - FastAPI Application Entry Point."""

import logging
import os
import time
import uuid

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from qcard_api.config.env import get_cors_origins, is_json_logging_enabled
from qcard_api.context import request_id_var, studio_id_var, user_id_var
from qcard_api.errors import PROBLEM_BASE_URL, QCardError
from qcard_api.routers import (
    accounts,
    admin,
    casting_calls,
    casting_codes,
    dashboard,
    external_actors,
    health,
    messages,
    projects,
    questionnaires,
    regions,
    studios,
    subscriptions,
    talent,
)
from qcard_api.routers.health import API_VERSION
from qcard_api.schemas import ProblemDetail
from qcard_api.utils import configure_json_logging

app = FastAPI(
    title="QCard API",
    description="Multi-tenant casting marketplace: studios, talent, projects, casting calls and regional plans.",
    version=API_VERSION,
    docs_url="/api-docs",
    redoc_url="/redoc",
)

# Set QCARD_JSON_LOGS=false to disable (defaults to true for production)
if is_json_logging_enabled():
    configure_json_logging(log_level=os.getenv("LOG_LEVEL", "INFO"))

logger = logging.getLogger(__name__)

# Credentials mode cannot use wildcard origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-User-ID", "X-Admin-Token", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)


# ============================================================================
# Completion logging middleware
# ============================================================================


@app.middleware("http")
async def http_completion_logging_middleware(request: Request, call_next):
    """Log every HTTP request completion.

    - Every request emits an "http.request.completed" record
    - Fields: method, path, status_code, duration_ms, plus user_id and
      studio_id from request.state when the identity dependencies resolved them
    - Logs even on exceptions (status_code=500)
    - Clears per-request identity context vars before and after
    """
    user_id_var.set("")
    studio_id_var.set("")

    start_time = time.perf_counter()
    status_code = 500

    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "http.request.completed",
            extra={
                "event": "http.request.completed",
                "method": request.method,
                "path": request.url.path,
                "status_code": status_code,
                "duration_ms": round(duration_ms, 2),
                "user_id": getattr(request.state, "user_id", ""),
                "studio_id": getattr(request.state, "studio_id", ""),
            },
        )
        user_id_var.set("")
        studio_id_var.set("")


# ============================================================================
# Request ID middleware (registered last = outermost)
# ============================================================================


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Accept or generate X-Request-ID, expose it to logs and echo it back."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request_id_var.set(request_id)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ============================================================================
# RFC 9457 Global Exception Handlers
# ============================================================================


def _instance() -> str:
    """Opaque trace identifier for the current request."""
    request_id = request_id_var.get()
    return f"urn:qcard:trace:{request_id or uuid.uuid4()}"


def _problem_response(problem: ProblemDetail, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        media_type="application/problem+json",
        headers=headers,
    )


def _get_title_for_status(status_code: int) -> str:
    """Get human-readable title for HTTP status code."""
    titles = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        409: "Conflict",
        422: "Unprocessable Entity",
        500: "Internal Server Error",
        503: "Service Unavailable",
    }
    return titles.get(status_code, f"HTTP {status_code}")


@app.exception_handler(QCardError)
async def qcard_error_handler(request: Request, exc: QCardError) -> JSONResponse:
    """Domain errors raised by services."""
    if exc.status_code >= 500:
        logger.error(f"Domain error: {exc.detail}", extra={"event": "http.domain_error"})
    return _problem_response(
        ProblemDetail(
            type=exc.error_type,
            title=exc.title,
            status=exc.status_code,
            detail=exc.detail,
            instance=_instance(),
        )
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTP exceptions (routing 404/405, explicit raises) as Problem Details.

    Dict details are preserved; there is no {"detail": ...} wrapper.
    """
    detail_value = exc.detail if exc.detail is not None else _get_title_for_status(exc.status_code)
    return _problem_response(
        ProblemDetail(
            type=f"{PROBLEM_BASE_URL}/http-{exc.status_code}",
            title=_get_title_for_status(exc.status_code),
            status=exc.status_code,
            detail=detail_value,
            instance=_instance(),
        ),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """422 with the first failing field in the detail."""
    errors = exc.errors()
    first_error = errors[0] if errors else {}
    field = ".".join(str(loc) for loc in first_error.get("loc", []))
    msg = first_error.get("msg", "Validation error")

    return _problem_response(
        ProblemDetail(
            type=f"{PROBLEM_BASE_URL}/validation-error",
            title="Request Validation Failed",
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Invalid field '{field}': {msg}",
            instance=_instance(),
        )
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """Unique / foreign-key violations that slipped past service checks."""
    logger.warning(f"Integrity error: {exc.orig}", extra={"event": "db.integrity_error"})
    return _problem_response(
        ProblemDetail(
            type=f"{PROBLEM_BASE_URL}/conflict",
            title="Conflict",
            status=status.HTTP_409_CONFLICT,
            detail="The request conflicts with existing data",
            instance=_instance(),
        )
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """500 without leaking internals; the exception is logged with exc_info."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True, extra={"event": "http.unhandled_exception"})
    return _problem_response(
        ProblemDetail(
            type=f"{PROBLEM_BASE_URL}/internal-error",
            title="Internal Server Error",
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An unexpected error occurred. Please try again later.",
            instance=_instance(),
        )
    )


# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(accounts.router)
app.include_router(studios.router)
app.include_router(talent.router)
app.include_router(dashboard.router)
app.include_router(projects.router)
app.include_router(projects.talent_router)
app.include_router(casting_calls.studio_router)
app.include_router(casting_calls.router)
app.include_router(external_actors.router)
app.include_router(casting_codes.studio_router)
app.include_router(casting_codes.public_router)
app.include_router(questionnaires.studio_router)
app.include_router(questionnaires.talent_router)
app.include_router(messages.router)
app.include_router(regions.router)
app.include_router(subscriptions.router)
app.include_router(admin.router)
app.include_router(admin.fields_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "QCard API",
        "version": API_VERSION,
        "status": "running",
        "docs": "/api-docs",
    }
