"""
HTTP helpers shared by the provider adapters.

Covers vendor status checking and server-sent-event framing. Line
buffering across network chunks is delegated to httpx.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from core.exceptions import ProviderError, ResponseParseError, provider_error_for_status

logger = logging.getLogger(__name__)


@dataclass
class SSEEvent:
    """A single server-sent event"""
    data: str
    event: Optional[str] = None


async def iter_sse_events(response: httpx.Response) -> AsyncIterator[SSEEvent]:
    """
    Yield server-sent events from a streaming response.

    Events are dispatched on blank lines. Comment lines (starting with
    ':') and unknown fields are ignored. A trailing event without a
    terminating blank line is dispatched when the connection closes.
    """
    event_name: Optional[str] = None
    data_lines = []

    async for line in response.aiter_lines():
        line = line.rstrip("\r")
        if not line:
            if data_lines:
                yield SSEEvent(data="\n".join(data_lines), event=event_name)
            event_name = None
            data_lines = []
            continue

        if line.startswith(":"):
            continue

        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]

        if name == "event":
            event_name = value
        elif name == "data":
            data_lines.append(value)

    if data_lines:
        yield SSEEvent(data="\n".join(data_lines), event=event_name)


def decode_stream_frame(event: SSEEvent) -> Optional[Dict[str, Any]]:
    """Decode an event's JSON payload; None for malformed frames"""
    try:
        payload = json.loads(event.data)
    except json.JSONDecodeError:
        logger.debug(f"Skipping malformed stream frame: {event.data[:100]!r}")
        return None
    if not isinstance(payload, dict):
        logger.debug(f"Skipping non-object stream frame: {event.data[:100]!r}")
        return None
    return payload


def raise_for_vendor_status(response: httpx.Response, provider: str, label: str) -> None:
    """
    Raise a ProviderError carrying the vendor's raw error text.

    The response body must already be read.
    """
    if response.is_success:
        return

    error_text = response.text
    logger.error(f"{label} API error ({response.status_code}): {error_text[:500]}")
    raise provider_error_for_status(
        response.status_code,
        f"{label} API error ({response.status_code}): {error_text}",
        provider,
    )


def parse_json_body(response: httpx.Response, provider: str, label: str) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError as e:
        raise ResponseParseError(f"Failed to parse {label} response: {e}", provider) from e
    if not isinstance(body, dict):
        raise ResponseParseError(f"Unexpected {label} response shape: {type(body).__name__}", provider)
    return body


def transport_error(error: httpx.HTTPError, provider: str, label: str) -> ProviderError:
    """Wrap an httpx transport failure"""
    logger.error(f"{label} transport error: {error}")
    return ProviderError(f"{label} transport error: {error}", provider, error_code="transport_error")
