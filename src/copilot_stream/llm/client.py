"""Async HTTP transport for the copilot chat endpoint.

Uses ``httpx.AsyncClient`` and exposes the raw streaming response so the
session can drive the frame decoder chunk by chunk.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import httpx

from copilot_stream.config import EndpointSpec

_logger = logging.getLogger(__name__)


class AsyncCopilotClient:
    """Client for a streaming, OpenAI-compatible chat endpoint.

    Parameters
    ----------
    endpoint:
        URL, credential and timeouts.
    transport:
        Optional httpx transport, mainly for tests
        (``httpx.MockTransport``).
    """

    def __init__(
        self,
        endpoint: EndpointSpec,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint

        headers = {
            **endpoint.extra_headers,
            "Authorization": f"Bearer {endpoint.api_key}",
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=httpx.Timeout(
                endpoint.timeout,
                connect=endpoint.connect_timeout,
                read=endpoint.read_timeout,
            ),
            transport=transport,
        )

    @asynccontextmanager
    async def stream_chat(
        self,
        messages: list[dict[str, str]],
    ) -> AsyncIterator[httpx.Response]:
        """POST the conversation and yield the (unread) streaming response.

        Status codes are not checked here; the caller decides what a
        non-success response means.
        """
        payload = {"messages": messages}
        _logger.debug(
            "POST %s (%d messages)", self.endpoint.url, len(messages),
        )
        async with self._client.stream(
            "POST", self.endpoint.url, json=payload,
        ) as resp:
            _logger.debug("Endpoint responded %d", resp.status_code)
            yield resp

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


async def read_error_body(resp: httpx.Response) -> Any:
    """Best-effort decode of a failure body; returns None when not JSON."""
    try:
        raw = await resp.aread()
    except httpx.HTTPError as e:
        _logger.warning("Could not read error body: %s", e)
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
