"""
Interview Session Package.

Runs a participant through an interview: questions are loaded once, answers
are captured by a simulated voice-to-text reveal, and each answer is written
best-effort to the hosted backend.

Components:
    - SessionStore: Participant identity left by the access gate
    - QuestionSetLoader: Ordered questions and interview metadata
    - AnswerCaptureSimulator: Tick-driven stand-in for speech-to-text
    - InterviewSessionMachine: AWAITING_NAME -> ACTIVE -> COMPLETED
    - ResponsePersistenceGateway: Fire-and-forget answer/completion writes
    - AccessGate: Access code / password join for candidates
    - Models: Pydantic records for questions, metadata, sessions, snapshots

Example:
    >>> from interview_session import (
    ...     InMemoryKeyValueStore, InterviewSessionMachine, QuestionSetLoader,
    ...     ResponsePersistenceGateway, SessionResultStore, SessionStore,
    ... )
    >>>
    >>> kv = InMemoryKeyValueStore()
    >>> machine = await InterviewSessionMachine.open(
    ...     "iv-1",
    ...     loader=QuestionSetLoader(backend),
    ...     gateway=ResponsePersistenceGateway(backend),
    ...     identity_store=SessionStore(kv),
    ...     result_store=SessionResultStore(kv),
    ... )
    >>> machine.submit_name("Jane Doe")
    >>> await machine.start_recording()  # task finishes once the answer is revealed
    >>> machine.submit_answer()

Last Grunted: 10/19/2026
"""

from .models import (
    InterviewMeta,
    InterviewSession,
    ParticipantIdentity,
    ParticipantKind,
    Question,
    ResponseRecord,
    SessionResultSnapshot,
)

from .errors import (
    AccessDeniedError,
    CollaboratorError,
    InterviewSessionError,
    InterviewUnavailableError,
    LoadFatalError,
    PersistenceError,
    StoreError,
    ValidationError,
)

from .store import (
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    KeyValueStore,
    SessionResultStore,
    SessionStore,
)

from .collaborator import (
    DataCollaborator,
    InMemoryDataCollaborator,
    RestDataCollaborator,
)

from .loader import FALLBACK_QUESTIONS, LoadedInterview, QuestionSetLoader

from .capture import AnswerCaptureSimulator, FALLBACK_ANSWER, SAMPLE_ANSWERS

from .gateway import PersistenceResult, ResponsePersistenceGateway

from .session import (
    InterviewSessionMachine,
    Navigation,
    NavigationTarget,
    SessionPhase,
)

from .access import AccessGate

from .report import FeedbackReport, build_feedback_report, load_feedback_report


__all__ = [
    # Models
    "InterviewMeta",
    "InterviewSession",
    "ParticipantIdentity",
    "ParticipantKind",
    "Question",
    "ResponseRecord",
    "SessionResultSnapshot",
    # Errors
    "AccessDeniedError",
    "CollaboratorError",
    "InterviewSessionError",
    "InterviewUnavailableError",
    "LoadFatalError",
    "PersistenceError",
    "StoreError",
    "ValidationError",
    # Storage
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "SessionResultStore",
    "SessionStore",
    # Backend
    "DataCollaborator",
    "InMemoryDataCollaborator",
    "RestDataCollaborator",
    # Loading
    "FALLBACK_QUESTIONS",
    "LoadedInterview",
    "QuestionSetLoader",
    # Capture
    "AnswerCaptureSimulator",
    "FALLBACK_ANSWER",
    "SAMPLE_ANSWERS",
    # Persistence
    "PersistenceResult",
    "ResponsePersistenceGateway",
    # State machine
    "InterviewSessionMachine",
    "Navigation",
    "NavigationTarget",
    "SessionPhase",
    # Access / report
    "AccessGate",
    "FeedbackReport",
    "build_feedback_report",
    "load_feedback_report",
]

__version__ = "0.1.0"
