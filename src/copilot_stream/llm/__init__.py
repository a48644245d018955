"""HTTP transport for copilot-stream."""

from copilot_stream.llm.client import AsyncCopilotClient, read_error_body

__all__ = ["AsyncCopilotClient", "read_error_body"]
