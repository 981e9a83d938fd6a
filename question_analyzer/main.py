"""
Question Analyzer — API

FastAPI application: submit transcript analyses and poll their reports.
"""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from question_analyzer.config import settings
from question_analyzer.errors import CredentialError, InvalidSubmissionError, StoreError
from question_analyzer.routers import reports

# =============================================================================
# LOGGING
# =============================================================================

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


# =============================================================================
# LIFESPAN
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore[no-untyped-def]
    """Application lifespan handler."""
    from question_analyzer.services.analysis.orchestrator import (
        active_jobs,
        cleanup_reports,
        wait_for_jobs,
    )
    from question_analyzer.services.report_store import close_supabase, get_report_store

    logger.info("Starting %s in %s mode", settings.app_name, settings.environment)
    logger.info("Cluster model: %s", settings.cluster_model)

    try:
        removed = await cleanup_reports(
            await get_report_store(), settings.report_retention_hours
        )
        logger.info("Startup cleanup removed %d expired reports", removed)
    except StoreError as e:
        logger.warning("Startup report cleanup skipped: %s", e)

    yield

    if active_jobs():
        logger.info("Waiting for %d running analyses", active_jobs())
        await wait_for_jobs()
    logger.info("Shutting down %s", settings.app_name)
    await close_supabase()


# =============================================================================
# APP
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Top user questions from conversation transcripts",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Log all requests for debugging."""
    logger.debug("%s %s", request.method, request.url.path)
    response = await call_next(request)
    return response


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "code": code},
    )


@app.exception_handler(InvalidSubmissionError)
async def invalid_submission_handler(
    request: Request, exc: InvalidSubmissionError
) -> JSONResponse:
    logger.info("Rejected submission: %s", exc)
    return _error(400, "validation_error", str(exc))


@app.exception_handler(CredentialError)
async def credential_handler(request: Request, exc: CredentialError) -> JSONResponse:
    logger.info("Credential check failed: %s", exc)
    return _error(401, "credential_error", f"Failed to validate credentials: {exc}")


@app.exception_handler(StoreError)
async def store_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Report store error: %s", exc)
    return _error(500, "store_error", "Report storage unavailable")


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


# =============================================================================
# ROUTERS
# =============================================================================

app.include_router(reports.router, prefix="/api", tags=["Reports"])


# =============================================================================
# HEALTH
# =============================================================================


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check."""
    return {"status": "ok"}
