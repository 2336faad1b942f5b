"""
OpenRouter Provider Implementation.

OpenRouter exposes models from several vendors behind a single
OpenAI-compatible API, so this adapter reuses the chat-completions wire
format and adds OpenRouter's attribution headers.
"""

import logging
from typing import Dict, Any, List, Optional

import httpx

from ..base_provider import (
    ChatRequest, ChatResponse, ChatStream, ModelDescriptor, LLMProviderType,
    build_model_catalog, estimate_cost_from_catalog, resolve_generation_params,
)
from ..http_utils import raise_for_vendor_status, parse_json_body, transport_error
from ..openai import chat_completions

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_TIMEOUT = 60.0
DEFAULT_REFERER = "https://codeforge.ai"
DEFAULT_APP_TITLE = "CodeForge AI"


def _model(input_cost: float, output_cost: float, context_window: int, function_calling: bool, vision: bool):
    return {
        "context_window": context_window,
        "input_cost_per_1k": input_cost,
        "output_cost_per_1k": output_cost,
        "capabilities": {"streaming": True, "function_calling": function_calling, "vision": vision},
    }


class OpenRouterProvider:
    """OpenRouter provider implementation."""

    provider_type = LLMProviderType.OPENROUTER
    label = "OpenRouter"

    SUPPORTED_MODELS = {
        # Claude models via OpenRouter
        "anthropic/claude-3.5-sonnet": _model(0.003, 0.015, 200000, True, True),
        "anthropic/claude-3.5-haiku": _model(0.0008, 0.004, 200000, True, False),
        # OpenAI models via OpenRouter
        "openai/gpt-4o": _model(0.0025, 0.01, 128000, True, True),
        "openai/gpt-4o-mini": _model(0.00015, 0.0006, 128000, True, True),
        # Google Gemini via OpenRouter
        "google/gemini-pro-1.5": _model(0.00125, 0.005, 1000000, True, True),
        "google/gemini-flash-1.5": _model(0.000075, 0.0003, 1000000, True, True),
        # Meta Llama via OpenRouter
        "meta-llama/llama-3.1-405b-instruct": _model(0.003, 0.003, 128000, False, False),
        "meta-llama/llama-3.1-70b-instruct": _model(0.0005, 0.0008, 128000, False, False),
        # Mistral via OpenRouter
        "mistralai/mistral-large": _model(0.002, 0.006, 128000, True, False),
    }

    def __init__(
        self,
        api_key: Optional[str],
        model_name: str = "anthropic/claude-3.5-sonnet",
        base_url: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
        referer: str = DEFAULT_REFERER,
        app_title: str = DEFAULT_APP_TITLE,
    ):
        """
        Initialize OpenRouter provider.

        Args:
            api_key: OpenRouter API key (empty means not configured)
            model_name: Default model when a request names none
            base_url: Custom API base URL
            timeout: Request timeout in seconds
            http_client: Shared client; the provider owns one it creates itself
            referer: Value for the HTTP-Referer attribution header
            app_title: Value for the X-Title attribution header
        """
        self.api_key = api_key or ""
        self.default_model = model_name
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.referer = referer
        self.app_title = app_title
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
            "HTTP-Referer": self.referer,
            "X-Title": self.app_title,
        }

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def chat(self, request: ChatRequest) -> ChatResponse:
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

                # OpenRouter interleaves ": OPENROUTER PROCESSING" comments; the SSE reader drops them
                async for fragment in chat_completions.iter_content_deltas(response):
                    yield fragment
        except httpx.HTTPError as e:
            raise transport_error(e, self.provider_type.value, self.label) from e

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def __str__(self) -> str:
        return f"OpenRouterProvider(model={self.default_model}, configured={self.is_configured()})"


def create_openrouter_provider(
    api_key: Optional[str], model_name: str = "anthropic/claude-3.5-sonnet", **kwargs
) -> OpenRouterProvider:
    """Factory function to create OpenRouter provider."""
    return OpenRouterProvider(api_key, model_name, **kwargs)


def get_openrouter_models() -> Dict[str, Dict[str, Any]]:
    """Get information about all models reachable through OpenRouter."""
    return OpenRouterProvider.SUPPORTED_MODELS.copy()
