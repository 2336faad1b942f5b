"""
OpenAI Provider Implementation.

This module provides integration with OpenAI's chat-completions API.
"""

import logging
from typing import Dict, Any, List, Optional

import httpx

from ..base_provider import (
    ChatRequest, ChatResponse, ChatStream, ModelDescriptor, LLMProviderType,
    build_model_catalog, estimate_cost_from_catalog, resolve_generation_params,
)
from ..http_utils import raise_for_vendor_status, parse_json_body, transport_error
from . import chat_completions

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_TIMEOUT = 60.0


class OpenAIProvider:
    """
    OpenAI provider implementation.

    Handles communication with the OpenAI chat-completions endpoint.
    """

    provider_type = LLMProviderType.OPENAI
    label = "OpenAI"

    # Model configuration (prices per 1K tokens)
    SUPPORTED_MODELS = {
        "gpt-4o": {
            "context_window": 128000,
            "input_cost_per_1k": 0.0025,
            "output_cost_per_1k": 0.01,
            "capabilities": {"streaming": True, "function_calling": True, "vision": True},
        },
        "gpt-4o-mini": {
            "context_window": 128000,
            "input_cost_per_1k": 0.00015,
            "output_cost_per_1k": 0.0006,
            "capabilities": {"streaming": True, "function_calling": True, "vision": True},
        },
        "gpt-4-turbo": {
            "context_window": 128000,
            "input_cost_per_1k": 0.01,
            "output_cost_per_1k": 0.03,
            "capabilities": {"streaming": True, "function_calling": True, "vision": True},
        },
        "gpt-3.5-turbo": {
            "context_window": 16385,
            "input_cost_per_1k": 0.0005,
            "output_cost_per_1k": 0.0015,
            "capabilities": {"streaming": True, "function_calling": True, "vision": False},
        },
    }

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "gpt-4o",
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (empty means not configured)
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
        self._catalog = build_model_catalog(self.provider_type.value, self.SUPPORTED_MODELS)

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def get_available_models(self) -> List[ModelDescriptor]:
        return list(self._catalog)

    def estimate_cost(self, input_tokens: int, output_tokens: int, model_id: str) -> float:
        return estimate_cost_from_catalog(self._catalog, input_tokens, output_tokens, model_id)

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """
        Generate a response using OpenAI chat completions.

        Args:
            request: Standardized chat request

        Returns:
            ChatResponse: Normalized response

        Raises:
            ProviderError: For non-success API responses and transport failures
            ResponseParseError: When the completion cannot be normalized
        """
        model_id, max_tokens, temperature = resolve_generation_params(request, self.default_model)
        payload = chat_completions.build_payload(request, model_id, max_tokens, temperature)

        try:
            response = await self._get_client().post(
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
            )
        except httpx.HTTPError as e:
            raise transport_error(e, self.provider_type.value, self.label) from e

        raise_for_vendor_status(response, self.provider_type.value, self.label)
        body = parse_json_body(response, self.provider_type.value, self.label)
        text, input_tokens, output_tokens = chat_completions.parse_completion(body, self.provider_type.value)

        return ChatResponse(
            text=text,
            input_token_count=input_tokens,
            output_token_count=output_tokens,
            cost_estimate=self.estimate_cost(input_tokens, output_tokens, model_id),
            model_id=model_id,
            provider=self.provider_type.value,
        )

    def stream_chat(self, request: ChatRequest) -> ChatStream:
        """Stream content deltas; the HTTP call starts on first iteration"""
        model_id, max_tokens, temperature = resolve_generation_params(request, self.default_model)
        payload = chat_completions.build_payload(request, model_id, max_tokens, temperature, stream=True)
        return ChatStream(self._stream_fragments(payload), self.provider_type.value, model_id)

    async def _stream_fragments(self, payload: Dict[str, Any]):
        try:
            async with self._get_client().stream(
                "POST",
                f"{self.base_url}/chat/completions",
                headers=self._headers(),
                json=payload,
            ) as response:
                if not response.is_success:
                    await response.aread()
                    raise_for_vendor_status(response, self.provider_type.value, self.label)

                async for fragment in chat_completions.iter_content_deltas(response):
                    yield fragment
        except httpx.HTTPError as e:
            raise transport_error(e, self.provider_type.value, self.label) from e

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def __str__(self) -> str:
        return f"OpenAIProvider(model={self.default_model}, configured={self.is_configured()})"


def create_openai_provider(api_key: Optional[str], model_name: str = "gpt-4o", **kwargs) -> OpenAIProvider:
    """
    Factory function to create OpenAI provider.

    Args:
        api_key: OpenAI API key
        model_name: Default model
        **kwargs: base_url, timeout, http_client

    Returns:
        OpenAIProvider: Configured provider instance
    """
    return OpenAIProvider(api_key, model_name, **kwargs)


def get_openai_models() -> Dict[str, Dict[str, Any]]:
    """Get information about all supported OpenAI models."""
    return OpenAIProvider.SUPPORTED_MODELS.copy()
