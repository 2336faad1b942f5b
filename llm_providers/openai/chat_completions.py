"""
OpenAI chat-completions wire format.

Shared by every adapter that speaks the OpenAI-compatible protocol
(OpenAI itself and OpenRouter).
"""

import logging
from typing import Any, AsyncIterator, Dict, Tuple

import httpx

from core.exceptions import ResponseParseError
from ..base_provider import ChatRequest, split_system_message, coerce_token_count
from ..http_utils import iter_sse_events, decode_stream_frame

logger = logging.getLogger(__name__)

STREAM_DONE_SENTINEL = "[DONE]"


def build_payload(
    request: ChatRequest,
    model_id: str,
    max_tokens: int,
    temperature: float,
    stream: bool = False,
) -> Dict[str, Any]:
    """
    Build a chat-completions request body.

    The honored system message is placed at the head of the message
    list, which is where this protocol expects system instructions.
    """
    system_text, conversation = split_system_message(request.messages)

    messages = []
    if system_text is not None:
        messages.append({"role": "system", "content": system_text})
    messages.extend({"role": m.role, "content": m.content} for m in conversation)

    payload = {
        "model": model_id,
        "messages": messages,
        "max_tokens": max_tokens,
        "temperature": temperature,
    }
    if stream:
        payload["stream"] = True
    return payload


def parse_completion(body: Dict[str, Any], provider: str) -> Tuple[str, int, int]:
    """
    Extract (text, input_tokens, output_tokens) from a completion body.

    Raises:
        ResponseParseError: If the choices block is missing or malformed
    """
    try:
        message = body["choices"][0]["message"]
        content = message.get("content")
    except (KeyError, IndexError, TypeError, AttributeError) as e:
        raise ResponseParseError(f"Unexpected chat completion shape: {e!r}", provider) from e

    if content is None:
        content = ""
    elif not isinstance(content, str):
        raise ResponseParseError(f"Unexpected message content type: {type(content).__name__}", provider)

    usage = body.get("usage")
    if not isinstance(usage, dict):
        usage = {}
    return (
        content,
        coerce_token_count(usage.get("prompt_tokens")),
        coerce_token_count(usage.get("completion_tokens")),
    )


async def iter_content_deltas(response: httpx.Response) -> AsyncIterator[str]:
    """
    Yield content deltas from a streaming chat-completions response.

    Stops at the ``[DONE]`` sentinel. Frames that cannot be decoded, or
    that carry no content, are skipped.
    """
    async for event in iter_sse_events(response):
        if event.data.strip() == STREAM_DONE_SENTINEL:
            return

        frame = decode_stream_frame(event)
        if frame is None:
            continue

        try:
            content = frame["choices"][0].get("delta", {}).get("content")
        except (KeyError, IndexError, TypeError, AttributeError):
            logger.debug(f"Skipping stream frame without choices: {event.data[:100]!r}")
            continue

        if isinstance(content, str) and content:
            yield content
