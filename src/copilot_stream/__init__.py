"""Streaming chat client for the accounts-payable copilot endpoint."""

from copilot_stream.config import CopilotConfig, EndpointSpec, load_config
from copilot_stream.core.orchestrator import ConversationSession
from copilot_stream.errors import CopilotError, ErrorClassifier, ErrorKind
from copilot_stream.types import OutcomeKind, Role, SessionState, StreamOutcome, Turn

__version__ = "0.1.0"

__all__ = [
    "ConversationSession",
    "CopilotConfig",
    "CopilotError",
    "EndpointSpec",
    "ErrorClassifier",
    "ErrorKind",
    "OutcomeKind",
    "Role",
    "SessionState",
    "StreamOutcome",
    "Turn",
    "load_config",
]
