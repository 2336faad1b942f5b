"""
Anthropic Claude Provider Implementation.

This module provides an implementation of the provider contract for
Anthropic's Claude models accessed through the Messages API.
"""

import logging
from typing import Dict, Any, List, Optional, Tuple

import httpx

from core.exceptions import ProviderError, ResponseParseError
from ..base_provider import (
    ChatRequest, ChatResponse, ChatStream, ModelDescriptor, LLMProviderType,
    build_model_catalog, estimate_cost_from_catalog, resolve_generation_params,
    split_system_message, coerce_token_count,
)
from ..http_utils import (
    iter_sse_events, decode_stream_frame, raise_for_vendor_status, parse_json_body, transport_error,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_TIMEOUT = 60.0


# Supported Claude models (prices per 1K tokens)
SUPPORTED_MODELS = {
    "claude-sonnet-4-5-20250929": {
        "context_window": 200000,
        "input_cost_per_1k": 0.003,
        "output_cost_per_1k": 0.015,
        "capabilities": {"streaming": True, "function_calling": True, "vision": True},
    },
    "claude-3-5-sonnet-20241022": {
        "context_window": 200000,
        "input_cost_per_1k": 0.003,
        "output_cost_per_1k": 0.015,
        "capabilities": {"streaming": True, "function_calling": True, "vision": True},
    },
    "claude-3-5-haiku-20241022": {
        "context_window": 200000,
        "input_cost_per_1k": 0.0008,
        "output_cost_per_1k": 0.004,
        "capabilities": {"streaming": True, "function_calling": True, "vision": False},
    },
    "claude-3-opus-20240229": {
        "context_window": 200000,
        "input_cost_per_1k": 0.015,
        "output_cost_per_1k": 0.075,
        "capabilities": {"streaming": True, "function_calling": True, "vision": True},
    },
}


class ClaudeProvider:
    """
    Anthropic provider implementation.

    Claude takes system instructions in a dedicated ``system`` field
    rather than in the message list, so the honored system message is
    lifted out of the conversation before sending.
    """

    provider_type = LLMProviderType.CLAUDE
    label = "Anthropic"

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "claude-sonnet-4-5-20250929",
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the Claude provider.

        Args:
            api_key: Anthropic API key (empty means not configured)
            model_name: Default model when a request names none
            base_url: Custom API base URL
            timeout: Request timeout in seconds
            http_client: Shared client; the provider owns one it creates itself
        """
        self.api_key = api_key or ""
        self.default_model = model_name
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None
        self._catalog = build_model_catalog(self.provider_type.value, SUPPORTED_MODELS)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def get_available_models(self) -> List[ModelDescriptor]:
        return list(self._catalog)

    def estimate_cost(self, input_tokens: int, output_tokens: int, model_id: str) -> float:
        return estimate_cost_from_catalog(self._catalog, input_tokens, output_tokens, model_id)

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def _build_payload(self, request: ChatRequest, stream: bool = False) -> Tuple[str, Dict[str, Any]]:
        model_id, max_tokens, temperature = resolve_generation_params(request, self.default_model)
        system_text, conversation = split_system_message(request.messages)

        payload = {
            "model": model_id,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": m.role, "content": m.content} for m in conversation],
        }
        if system_text is not None:
            payload["system"] = system_text
        if stream:
            payload["stream"] = True
        return model_id, payload

    def _parse_message(self, body: Dict[str, Any]) -> Tuple[str, int, int]:
        content = body.get("content")
        if not isinstance(content, list):
            raise ResponseParseError(
                f"Unexpected Claude content shape: {type(content).__name__}", self.provider_type.value
            )

        texts = []
        for block in content:
            if not isinstance(block, dict) or block.get("type") != "text":
                continue
            block_text = block.get("text")
            if block_text is None:
                continue
            if not isinstance(block_text, str):
                raise ResponseParseError(
                    f"Unexpected Claude text block type: {type(block_text).__name__}", self.provider_type.value
                )
            texts.append(block_text)
        text = "".join(texts)

        usage = body.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        return (
            text,
            coerce_token_count(usage.get("input_tokens")),
            coerce_token_count(usage.get("output_tokens")),
        )

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """
        Generate a response from Claude.

        Args:
            request: Standardized chat request

        Returns:
            ChatResponse: Normalized response

        Raises:
            ProviderError: For non-success API responses and transport failures
            ResponseParseError: When the message cannot be normalized
        """
        model_id, payload = self._build_payload(request)

        try:
            response = await self._get_client().post(
                f"{self.base_url}/v1/messages",
                headers=self._headers(),
                json=payload,
            )
        except httpx.HTTPError as e:
            raise transport_error(e, self.provider_type.value, self.label) from e

        raise_for_vendor_status(response, self.provider_type.value, self.label)
        body = parse_json_body(response, self.provider_type.value, self.label)
        text, input_tokens, output_tokens = self._parse_message(body)

        return ChatResponse(
            text=text,
            input_token_count=input_tokens,
            output_token_count=output_tokens,
            cost_estimate=self.estimate_cost(input_tokens, output_tokens, model_id),
            model_id=model_id,
            provider=self.provider_type.value,
        )

    def stream_chat(self, request: ChatRequest) -> ChatStream:
        """Stream text deltas; the HTTP call starts on first iteration"""
        model_id, payload = self._build_payload(request, stream=True)
        return ChatStream(self._stream_fragments(payload), self.provider_type.value, model_id)

    async def _stream_fragments(self, payload: Dict[str, Any]):
        try:
            async with self._get_client().stream(
                "POST",
                f"{self.base_url}/v1/messages",
                headers=self._headers(),
                json=payload,
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise_for_vendor_status(response, self.provider_type.value, self.label)

                async for event in iter_sse_events(response):
                    frame = decode_stream_frame(event)
                    if frame is None:
                        continue

                    event_type = frame.get("type") or event.event
                    if event_type == "message_stop":
                        return
                    if event_type == "error":
                        error = frame.get("error")
                        if not isinstance(error, dict):
                            error = {"message": error} if isinstance(error, str) and error else {}
                        raise ProviderError(
                            f"{self.label} stream error: {error.get('message', event.data)}",
                            self.provider_type.value,
                            error_code=error.get("type"),
                        )
                    if event_type != "content_block_delta":
                        continue

                    delta = frame.get("delta")
                    if not isinstance(delta, dict) or delta.get("type") != "text_delta":
                        continue
                    text = delta.get("text")
                    if isinstance(text, str) and text:
                        yield text
        except httpx.HTTPError as e:
            raise transport_error(e, self.provider_type.value, self.label) from e

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def __str__(self) -> str:
        return f"ClaudeProvider(model={self.default_model}, configured={self.is_configured()})"


def create_claude_provider(
    api_key: Optional[str], model_name: str = "claude-sonnet-4-5-20250929", **kwargs
) -> ClaudeProvider:
    """
    Create a Claude provider instance.

    Args:
        api_key: Anthropic API key
        model_name: Default Claude model
        **kwargs: base_url, timeout, http_client

    Returns:
        ClaudeProvider: Provider instance
    """
    return ClaudeProvider(api_key=api_key, model_name=model_name, **kwargs)


def get_claude_models() -> List[str]:
    """Get list of supported Claude models."""
    return list(SUPPORTED_MODELS.keys())
