"""Core session components for copilot-stream."""

from copilot_stream.core.orchestrator import ConversationSession

__all__ = ["ConversationSession"]
