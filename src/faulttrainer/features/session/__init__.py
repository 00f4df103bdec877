"""Session feature: service layer, schemas, and API router."""

from .router import create_session_router
from .schemas import (
    CircuitNodePayload,
    CircuitPayload,
    DialogueChoiceResult,
    DialoguePayload,
    FaultPayload,
    IdentificationResult,
    ReadingPayload,
    RepairResult,
    SessionSnapshot,
    SummaryPayload,
)
from .service import SessionConfig, SessionManager

__all__ = [
    "CircuitNodePayload",
    "CircuitPayload",
    "DialogueChoiceResult",
    "DialoguePayload",
    "FaultPayload",
    "IdentificationResult",
    "ReadingPayload",
    "RepairResult",
    "SessionConfig",
    "SessionManager",
    "SessionSnapshot",
    "SummaryPayload",
    "create_session_router",
]
