"""
Interview Session Service

HTTP shell around one interview session at a time. A UI client drives the
candidate or company-preview flow through these endpoints; the session logic
itself lives in the interview_session package.

Endpoints:
    POST /access/join      - Join an interview with access code and password
    POST /session/open     - Load an interview and open a session
    POST /session/name     - Submit the participant name
    POST /session/record   - Start the simulated answer capture
    POST /session/answer   - Submit the current answer
    POST /session/finish   - Leave a completed session
    GET  /session/status   - Current session state
    GET  /report           - Feedback report of the last completed session
    GET  /health           - Health check

Internal binding: configured by SERVICE_HOST/SERVICE_PORT (default 0.0.0.0:8780)
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Any, AsyncIterator, Optional, TypedDict

import aiofiles
import uvicorn
from fastapi import Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from interview_session import (
    AccessGate,
    AnswerCaptureSimulator,
    DataCollaborator,
    InMemoryDataCollaborator,
    InterviewMeta,
    InterviewSessionError,
    InterviewSessionMachine,
    JsonFileKeyValueStore,
    KeyValueStore,
    LoadFatalError,
    ParticipantKind,
    QuestionSetLoader,
    ResponsePersistenceGateway,
    RestDataCollaborator,
    SessionResultStore,
    SessionStore,
    __version__,
    load_feedback_report,
)

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


SERVICE_NAME = "Interview Session Service"


# =============================================================================
# Configuration
# =============================================================================

@dataclass(frozen=True)
class RuntimeConfig:
    """Runtime config for the session service."""

    host: str
    port: int
    data_backend: str
    data_api_url: str | None
    data_api_key: str | None
    state_file: Path
    transcript_file: Path
    reveal_tick_seconds: float
    reveal_pause_seconds: float


def _parse_seconds(name: str, default: str) -> float:
    raw = (os.environ.get(name, default) or "").strip()
    try:
        value = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name} must be a number. Got: {raw}") from exc
    if value < 0:
        raise RuntimeError(f"{name} must be non-negative. Got: {value}.")
    return value


def load_runtime_config() -> RuntimeConfig:
    """Load runtime config from environment with strict validation."""
    host = (os.environ.get("SERVICE_HOST", "0.0.0.0") or "").strip()
    if not host:
        raise RuntimeError("SERVICE_HOST resolved to empty value.")

    port_raw = (os.environ.get("SERVICE_PORT", "8780") or "").strip()
    try:
        port = int(port_raw)
    except ValueError as exc:
        raise RuntimeError(f"SERVICE_PORT must be an integer. Got: {port_raw}") from exc
    if port < 1 or port > 65535:
        raise RuntimeError(f"SERVICE_PORT must be in range 1-65535. Got: {port}.")

    data_backend = (os.environ.get("DATA_BACKEND", "memory") or "").strip().lower()
    if data_backend not in {"memory", "rest"}:
        raise RuntimeError(f"DATA_BACKEND must be 'memory' or 'rest'. Got: {data_backend!r}.")

    data_api_url = (os.environ.get("DATA_API_URL") or "").strip() or None
    data_api_key = (os.environ.get("DATA_API_KEY") or "").strip() or None
    if data_backend == "rest" and not (data_api_url and data_api_key):
        raise RuntimeError("DATA_API_URL and DATA_API_KEY are required when DATA_BACKEND=rest.")

    output_dir = Path(__file__).parent / "output"
    state_file = Path(os.environ.get("STATE_FILE") or output_dir / "session_state.json")
    transcript_file = Path(os.environ.get("TRANSCRIPT_FILE") or output_dir / "answers.txt")

    return RuntimeConfig(
        host=host,
        port=port,
        data_backend=data_backend,
        data_api_url=data_api_url,
        data_api_key=data_api_key,
        state_file=state_file.expanduser(),
        transcript_file=transcript_file.expanduser(),
        reveal_tick_seconds=_parse_seconds("REVEAL_TICK_SECONDS", "0.03"),
        reveal_pause_seconds=_parse_seconds("REVEAL_PAUSE_SECONDS", "0.5"),
    )


def build_demo_collaborator() -> InMemoryDataCollaborator:
    """In-memory backend with one active demo interview and no custom questions."""
    demo = InterviewMeta(
        id="demo",
        title="Demo Interview",
        job_title="Frontend Developer",
        job_description="Build and maintain customer-facing web applications.",
    )
    return InMemoryDataCollaborator(
        interviews=[demo],
        access_codes={("DEMO01", "demo"): demo.id},
    )


def build_collaborator(config: RuntimeConfig) -> DataCollaborator:
    """Create the data collaborator selected by DATA_BACKEND."""
    if config.data_backend == "rest":
        return RestDataCollaborator(
            base_url=config.data_api_url or "",
            api_key=config.data_api_key or "",
        )
    return build_demo_collaborator()


# CORS configuration - modify for production
CORS_ORIGINS: list[str] = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8080",
]


# =============================================================================
# Request Models
# =============================================================================


class JoinRequest(BaseModel):
    """Request to join an interview as a candidate."""

    access_code: str = Field(..., description="Access code issued by the company")
    password: str = Field(..., description="Interview password")
    candidate_name: str = Field(..., description="Candidate full name")


class OpenSessionRequest(BaseModel):
    """Request to open an interview session."""

    interview_id: str = Field(..., description="Interview to open")
    participant_kind: ParticipantKind | None = Field(
        default=None,
        description="Force a participant kind; inferred from stored identity when omitted",
    )


class NameRequest(BaseModel):
    """Participant name submission."""

    name: str = Field(..., description="Participant display name")


# =============================================================================
# Response Models
# =============================================================================


class BaseResponse(BaseModel):
    """Base response model with common fields."""

    ok: bool = Field(..., description="Whether the operation succeeded")
    message: str | None = Field(default=None, description="Optional status message")


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = Field(default=False)
    error: str = Field(..., description="Error description")
    error_code: str | None = Field(default=None, description="Machine-readable error code")
    redirect_to: str | None = Field(default=None, description="Where the client should go")


class JoinResponse(BaseResponse):
    """Response for a successful join."""

    participant_id: str
    participant_name: str
    interview_id: str


class SessionStatusResponse(BaseResponse):
    """Session status information."""

    active: bool = Field(..., description="Whether a session is open")
    session: dict[str, Any] | None = Field(default=None, description="Session state")


class FinishResponse(BaseResponse):
    """Navigation hand-off after finishing a session."""

    target: str
    path: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    timestamp: str
    session_active: bool
    data_backend: str


# =============================================================================
# Application State
# =============================================================================


class ActiveSession:
    """Holds the one session the service is currently running."""

    def __init__(self) -> None:
        self.machine: Optional[InterviewSessionMachine] = None

    @property
    def is_active(self) -> bool:
        return self.machine is not None


class AppState(TypedDict):
    """Type-safe application state managed by lifespan."""

    config: RuntimeConfig
    collaborator: DataCollaborator
    session_store: SessionStore
    result_store: SessionResultStore
    loader: QuestionSetLoader
    gateway: ResponsePersistenceGateway
    access_gate: AccessGate
    active: ActiveSession


# =============================================================================
# Custom Exceptions
# =============================================================================


class SessionServiceError(Exception):
    """Base exception for session service errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


class SessionNotActiveError(SessionServiceError):
    """Raised when an operation requires an open session."""

    def __init__(self, message: str = "No active session. Open a session first.") -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            error_code="SESSION_NOT_ACTIVE",
        )


class SessionAlreadyActiveError(SessionServiceError):
    """Raised when opening a session while another is in progress."""

    def __init__(
        self, message: str = "Session already active. Finish the current session first."
    ) -> None:
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            error_code="SESSION_ALREADY_ACTIVE",
        )


ERROR_STATUS_CODES: dict[str, int] = {
    "VALIDATION_ERROR": 422,
    "INTERVIEW_UNAVAILABLE": status.HTTP_404_NOT_FOUND,
    "ACCESS_DENIED": status.HTTP_401_UNAUTHORIZED,
    "INTERVIEW_INACTIVE": status.HTTP_403_FORBIDDEN,
    "COLLABORATOR_ERROR": status.HTTP_502_BAD_GATEWAY,
}


# =============================================================================
# Dependencies
# =============================================================================


def get_app_state(request: Request) -> AppState:
    """
    Dependency to retrieve application state from request.

    Raises:
        RuntimeError: If state is not properly initialized.
    """
    state = getattr(request, "state", None)
    if state is None:
        raise RuntimeError("Application state not initialized")
    return AppState(
        config=state.config,
        collaborator=state.collaborator,
        session_store=state.session_store,
        result_store=state.result_store,
        loader=state.loader,
        gateway=state.gateway,
        access_gate=state.access_gate,
        active=state.active,
    )


# Type alias for dependency injection
AppStateDep = Annotated[AppState, Depends(get_app_state)]


def require_machine(state: AppState) -> InterviewSessionMachine:
    machine = state["active"].machine
    if machine is None:
        raise SessionNotActiveError()
    return machine


def status_response(machine: InterviewSessionMachine | None, message: str | None = None) -> SessionStatusResponse:
    return SessionStatusResponse(
        ok=True,
        message=message,
        active=machine is not None,
        session=machine.get_status() if machine else None,
    )


# =============================================================================
# File Operations (Async)
# =============================================================================


async def save_answer_to_file(path: Path, machine: InterviewSessionMachine, index: int) -> None:
    """
    Append a submitted answer to the plain-text answer log.

    Args:
        path: Answer log file.
        machine: Session the answer belongs to.
        index: Question index that was answered.
    """
    session = machine.session
    timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "a", encoding="utf-8") as f:
            if index == 0:
                await f.write(f"\n{'=' * 60}\n")
                await f.write(
                    f"SESSION {session.session_id}: {session.participant_name} "
                    f"({session.interview_id})\n"
                )
                await f.write(f"{'=' * 60}\n\n")
            await f.write(f"[{timestamp}] Q{index + 1}: {session.questions[index].text}\n")
            await f.write(f"[{timestamp}] A{index + 1}: {session.responses[index]}\n")
            if session.is_completed:
                await f.write(f"\n--- Session completed: {session.completed_at} ---\n\n")
        logger.debug("Saved answer to file: %s", path)
    except OSError as e:
        logger.error("Failed to save answer to file: %s", e)


# =============================================================================
# Exception Handlers
# =============================================================================


async def session_service_error_handler(request: Request, exc: SessionServiceError) -> JSONResponse:
    """Handle SessionServiceError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(ok=False, error=exc.message, error_code=exc.error_code).model_dump(),
    )


async def interview_session_error_handler(
    request: Request, exc: InterviewSessionError
) -> JSONResponse:
    """Map interview session errors onto HTTP responses."""
    redirect_to = exc.redirect_to if isinstance(exc, LoadFatalError) else None
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(exc.error_code, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content=ErrorResponse(
            ok=False,
            error=exc.message,
            error_code=exc.error_code,
            redirect_to=redirect_to,
        ).model_dump(),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            ok=False,
            error="Internal server error",
            error_code="INTERNAL_ERROR",
        ).model_dump(),
    )


# =============================================================================
# FastAPI Application
# =============================================================================


def create_app(
    config: RuntimeConfig,
    collaborator: DataCollaborator | None = None,
    kv: KeyValueStore | None = None,
) -> FastAPI:
    """
    Build the service.

    Args:
        config: Runtime configuration.
        collaborator: Data collaborator; built from config when omitted.
        kv: Key-value store for identity and snapshots; a JSON file at
            ``config.state_file`` when omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[dict[str, Any]]:
        logger.info("Starting %s v%s", SERVICE_NAME, __version__)
        logger.info(
            "Runtime: backend=%s host=%s port=%d state_file=%s",
            config.data_backend,
            config.host,
            config.port,
            config.state_file,
        )

        backend = collaborator if collaborator is not None else build_collaborator(config)
        store = kv if kv is not None else JsonFileKeyValueStore(config.state_file)
        session_store = SessionStore(store)
        active = ActiveSession()

        yield {
            "config": config,
            "collaborator": backend,
            "session_store": session_store,
            "result_store": SessionResultStore(store),
            "loader": QuestionSetLoader(backend),
            "gateway": ResponsePersistenceGateway(backend),
            "access_gate": AccessGate(backend, session_store),
            "active": active,
        }

        logger.info("Shutting down...")
        if active.machine is not None:
            await active.machine.close()
            active.machine = None

    app = FastAPI(
        title=SERVICE_NAME,
        version=__version__,
        description="Runs candidate and company-preview interview sessions",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=3600,
    )

    app.add_exception_handler(SessionServiceError, session_service_error_handler)
    app.add_exception_handler(InterviewSessionError, interview_session_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    # -------------------------------------------------------------------------
    # Endpoints
    # -------------------------------------------------------------------------

    @app.post("/access/join", response_model=JoinResponse)
    async def join(request: JoinRequest, state: AppStateDep) -> JoinResponse:
        """Join an interview with access code and password."""
        identity = await state["access_gate"].join(
            request.access_code, request.password, request.candidate_name
        )
        return JoinResponse(
            ok=True,
            message="Joined interview",
            participant_id=identity.participant_id,
            participant_name=identity.participant_name,
            interview_id=identity.interview_id,
        )

    @app.post("/session/open", response_model=SessionStatusResponse)
    async def open_session(request: OpenSessionRequest, state: AppStateDep) -> SessionStatusResponse:
        """
        Load an interview and open a session for it.

        A completed session still held by the service is closed first.

        Raises:
            SessionAlreadyActiveError: If an unfinished session is open.
            LoadFatalError: If the interview cannot be loaded (404 + redirect).
        """
        active = state["active"]
        if active.machine is not None:
            if not active.machine.session.is_completed:
                raise SessionAlreadyActiveError()
            await active.machine.close()
            active.machine = None

        simulator = AnswerCaptureSimulator(
            tick_seconds=state["config"].reveal_tick_seconds,
            trailing_pause_seconds=state["config"].reveal_pause_seconds,
        )
        active.machine = await InterviewSessionMachine.open(
            request.interview_id,
            loader=state["loader"],
            gateway=state["gateway"],
            identity_store=state["session_store"],
            result_store=state["result_store"],
            simulator=simulator,
            participant_kind=request.participant_kind,
        )
        return status_response(active.machine, "Session opened")

    @app.post("/session/name", response_model=SessionStatusResponse)
    async def submit_name(request: NameRequest, state: AppStateDep) -> SessionStatusResponse:
        """Submit the participant name."""
        machine = require_machine(state)
        machine.submit_name(request.name)
        return status_response(machine)

    @app.post("/session/record", response_model=SessionStatusResponse)
    async def start_recording(state: AppStateDep) -> SessionStatusResponse:
        """Start the simulated answer capture for the current question."""
        machine = require_machine(state)
        task = machine.start_recording()
        message = "Recording started" if task is not None else "Recording already in progress"
        return status_response(machine, message)

    @app.post("/session/answer", response_model=SessionStatusResponse)
    async def submit_answer(state: AppStateDep) -> SessionStatusResponse:
        """Submit the current answer and advance."""
        machine = require_machine(state)
        index = machine.session.current_index
        machine.submit_answer()
        await save_answer_to_file(state["config"].transcript_file, machine, index)
        return status_response(machine)

    @app.post("/session/finish", response_model=FinishResponse)
    async def finish_session(state: AppStateDep) -> FinishResponse:
        """Leave a completed session and return where the client should go."""
        active = state["active"]
        machine = require_machine(state)
        navigation = machine.finish()
        await machine.close()
        active.machine = None
        return FinishResponse(
            ok=True,
            message="Session finished",
            target=navigation.target.value,
            path=navigation.path,
        )

    @app.get("/session/status", response_model=SessionStatusResponse)
    async def get_session_status(state: AppStateDep) -> SessionStatusResponse:
        """Current session state."""
        return status_response(state["active"].machine)

    @app.get("/report")
    async def get_report(state: AppStateDep) -> dict[str, Any]:
        """Feedback report of the last completed session."""
        report = load_feedback_report(state["result_store"])
        if report is None:
            raise SessionServiceError(
                message="No completed interview results available.",
                status_code=status.HTTP_404_NOT_FOUND,
                error_code="NO_REPORT",
            )
        return {"ok": True, "report": report.model_dump()}

    @app.get("/health", response_model=HealthResponse)
    async def health(state: AppStateDep) -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            service=SERVICE_NAME,
            version=__version__,
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            session_active=state["active"].is_active,
            data_backend=state["config"].data_backend,
        )

    return app


RUNTIME_CONFIG = load_runtime_config()
app = create_app(RUNTIME_CONFIG)


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    logger.info("=" * 60)
    logger.info("%s v%s", SERVICE_NAME, __version__)
    logger.info("=" * 60)
    logger.info("Binding to: http://%s:%d", RUNTIME_CONFIG.host, RUNTIME_CONFIG.port)
    logger.info("Data backend: %s", RUNTIME_CONFIG.data_backend)
    logger.info("State file: %s", RUNTIME_CONFIG.state_file)
    logger.info("Answers saved to: %s", RUNTIME_CONFIG.transcript_file)
    logger.info("=" * 60)

    uvicorn.run(
        app,
        host=RUNTIME_CONFIG.host,
        port=RUNTIME_CONFIG.port,
        log_level="info",
    )
