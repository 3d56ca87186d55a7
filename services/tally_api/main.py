"""
FastAPI application for the proposal tally API.

Route handlers are plain ``def`` functions, so FastAPI runs each request on
its worker thread pool; the ledger's locks provide the mutual exclusion.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from ..shared import generate_nullifier
from .config import settings
from .ledger import (
    DuplicateNullifierError,
    SessionExistsError,
    SessionNotFoundError,
    SessionRegistry,
)
from .models import (
    CreateSessionRequest,
    CreateSessionResponse,
    ErrorResponse,
    HealthResponse,
    NullifierRequest,
    NullifierResponse,
    ResultsResponse,
    VoteRequest,
    VoteResponse,
)

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Prometheus metrics
sessions_created = Counter(
    "sessions_created_total",
    "Total number of voting sessions created"
)
vote_counter = Counter(
    "votes_submitted_total",
    "Total number of votes accepted",
    ["choice"]
)
vote_errors = Counter(
    "vote_errors_total",
    "Total number of rejected requests",
    ["error_type"]
)
request_duration = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status"]
)

# Rate limiter
limiter = Limiter(key_func=get_remote_address)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager owning the session registry."""
    # Startup
    logger.info(f"Starting {settings.SERVICE_NAME} service...")
    app.state.registry = SessionRegistry(
        allow_overwrite=settings.ALLOW_SESSION_OVERWRITE
    )
    logger.info(
        f"{settings.SERVICE_NAME} started successfully "
        f"(session overwrite {'allowed' if settings.ALLOW_SESSION_OVERWRITE else 'rejected'})"
    )

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.SERVICE_NAME} service...")
    app.state.registry.close()
    logger.info(f"{settings.SERVICE_NAME} shut down successfully")


# Create FastAPI app
app = FastAPI(
    title="Proposal Tally API",
    description="API for creating proposals, submitting votes and reading tallies",
    version=settings.API_VERSION,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def prometheus_middleware(request: Request, call_next):
    """Middleware to track request duration."""
    start_time = time.perf_counter()
    response = await call_next(request)

    request_duration.labels(
        method=request.method,
        endpoint=request.url.path,
        status=response.status_code
    ).observe(time.perf_counter() - start_time)

    return response


def error_response(status_code: int, error: str, message: str, details=None) -> JSONResponse:
    """Build a JSON error body in the ErrorResponse shape."""
    body = ErrorResponse(error=error, message=message, details=details or {})
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def get_registry(request: Request) -> SessionRegistry:
    """Return the registry created by the lifespan handler."""
    return request.app.state.registry


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report malformed requests as 400 InvalidInput."""
    vote_errors.labels(error_type="invalid_input").inc()
    details = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return error_response(
        status.HTTP_400_BAD_REQUEST,
        "InvalidInput",
        "Invalid request",
        details
    )


@app.exception_handler(SessionNotFoundError)
async def session_not_found_handler(request: Request, exc: SessionNotFoundError):
    """Unknown proposal id."""
    vote_errors.labels(error_type="not_found").inc()
    return error_response(
        status.HTTP_404_NOT_FOUND,
        "NotFound",
        "Session not found",
        {"proposalId": exc.proposal_id}
    )


@app.exception_handler(DuplicateNullifierError)
async def duplicate_nullifier_handler(request: Request, exc: DuplicateNullifierError):
    """Nullifier already used in the session."""
    vote_errors.labels(error_type="duplicate_nullifier").inc()
    logger.warning(f"Duplicate nullifier rejected: proposal={exc.proposal_id}, nullifier={exc.nullifier}")
    return error_response(
        status.HTTP_409_CONFLICT,
        "DuplicateNullifier",
        "Nullifier already used",
        {"proposalId": exc.proposal_id}
    )


@app.exception_handler(SessionExistsError)
async def session_exists_handler(request: Request, exc: SessionExistsError):
    """Re-creation refused because overwrites are disabled."""
    vote_errors.labels(error_type="session_exists").inc()
    return error_response(
        status.HTTP_409_CONFLICT,
        "SessionExists",
        "Session already exists",
        {"proposalId": exc.proposal_id}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unexpected failures and answer 500."""
    vote_errors.labels(error_type="internal_error").inc()
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "InternalError",
        "Internal server error"
    )


@app.post(
    f"{settings.api_prefix}/session/create",
    response_model=CreateSessionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        409: {"model": ErrorResponse, "description": "Session already exists"},
        429: {"description": "Rate limit exceeded"}
    }
)
@limiter.limit(settings.RATE_LIMIT)
def create_session(request: Request, body: CreateSessionRequest) -> CreateSessionResponse:
    """
    Create a voting session for a proposal.

    - **proposalId**: Proposal identifier

    Re-creating an existing proposal replaces its session unless
    ALLOW_SESSION_OVERWRITE is disabled.
    """
    session = get_registry(request).create_session(body.proposal_id)
    sessions_created.inc()

    return CreateSessionResponse(proposal_id=session.proposal_id)


@app.post(
    f"{settings.api_prefix}/vote/submit",
    response_model=VoteResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid vote format"},
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "Nullifier already used"},
        429: {"description": "Rate limit exceeded"}
    }
)
@limiter.limit(settings.RATE_LIMIT)
def submit_vote(request: Request, body: VoteRequest) -> VoteResponse:
    """
    Submit a vote for a proposal.

    - **proposalId**: Proposal identifier
    - **vote.nullifier**: Voter nullifier
    - **vote.vote**: 1 (yes) or 0 (no)
    - **vote.proof**: Proof blob, accepted as-is
    """
    vote = body.vote.to_vote()
    get_registry(request).submit_vote(body.proposal_id, vote)

    vote_counter.labels(choice=vote.choice.value).inc()
    logger.info(f"Vote submitted: proposal={body.proposal_id}, vote={vote.choice.value}")

    return VoteResponse()


@app.get(
    f"{settings.api_prefix}/results",
    response_model=ResultsResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Missing proposalId"},
        404: {"model": ErrorResponse, "description": "Session not found"}
    }
)
def get_results(request: Request, proposal_id: Optional[str] = Query(None, alias="proposalId")):
    """
    Get vote results for a proposal.

    - **proposalId**: Proposal identifier (query parameter)

    Returns yes/no counts and the total number of votes.
    """
    if not proposal_id:
        vote_errors.labels(error_type="invalid_input").inc()
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            "InvalidInput",
            "Missing proposalId"
        )

    results = get_registry(request).get_results(proposal_id)

    return ResultsResponse(
        proposal_id=results.proposal_id,
        results=results.tally,
        total_votes=results.total_votes
    )


@app.post(
    f"{settings.api_prefix}/nullifier/generate",
    response_model=NullifierResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"}
    }
)
def create_nullifier(body: NullifierRequest) -> NullifierResponse:
    """
    Derive the nullifier for a voter id.

    - **voterId**: Voter identifier

    The nullifier is sha256(voterId) in hex; it is deterministic and is not
    a proof of eligibility.
    """
    return NullifierResponse(nullifier=generate_nullifier(body.voter_id))


@app.get(
    f"{settings.api_prefix}/health",
    response_model=HealthResponse
)
def health_check(request: Request) -> HealthResponse:
    """Check health of the service."""
    return HealthResponse(
        status="healthy",
        sessions=get_registry(request).session_count()
    )


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@app.get("/")
def root():
    """Root endpoint with API information."""
    return {
        "service": settings.SERVICE_NAME,
        "version": settings.API_VERSION,
        "status": "running",
        "endpoints": {
            "create_session": f"{settings.api_prefix}/session/create",
            "submit_vote": f"{settings.api_prefix}/vote/submit",
            "get_results": f"{settings.api_prefix}/results?proposalId={{proposal_id}}",
            "generate_nullifier": f"{settings.api_prefix}/nullifier/generate",
            "health": f"{settings.api_prefix}/health",
            "metrics": "/metrics"
        }
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.tally_api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.log_level.lower()
    )
