"""Interview session lifecycle: state machine, context assembly and evaluation."""
from .context import AssembledContext, assemble, attach_code
from .errors import (
    GatewayError,
    InterviewError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
    ParseError,
    StoreError,
)
from .evaluation import extract_scores
from .models import (
    EndResult,
    Evaluation,
    InterviewSession,
    MessageResult,
    ScoreSet,
    StartResult,
    Submission,
    Turn,
)
from .service import InterviewService, build_service
from .state_machine import InterviewStateMachine

__all__ = [
    "AssembledContext",
    "EndResult",
    "Evaluation",
    "GatewayError",
    "InterviewError",
    "InterviewService",
    "InterviewSession",
    "InterviewStateMachine",
    "InvalidArgumentError",
    "InvalidStateError",
    "MessageResult",
    "NotFoundError",
    "ParseError",
    "ScoreSet",
    "StartResult",
    "StoreError",
    "Submission",
    "Turn",
    "assemble",
    "attach_code",
    "build_service",
    "extract_scores",
]
