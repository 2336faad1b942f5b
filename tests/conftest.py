"""Pytest configuration and shared fixtures."""

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from core.data_models import TaskDescriptor  # noqa: E402
from core.exceptions import ProviderError  # noqa: E402
from core.usage_tracker import UsageTracker  # noqa: E402
from llm_providers.base_provider import ChatResponse, ChatStream, LLMProviderType  # noqa: E402
from llm_providers.anthropic import ClaudeProvider  # noqa: E402
from llm_providers.openai import OpenAIProvider  # noqa: E402
from llm_providers.openrouter import OpenRouterProvider  # noqa: E402
from llm_providers.factory import ProviderManager  # noqa: E402
from routers import AIRouter  # noqa: E402


# ═══════════════════════════════════════════════════════════════════════
# Wire helpers
# ═══════════════════════════════════════════════════════════════════════

def sse_body(*frames: str) -> bytes:
    """Encode raw data payloads as SSE events."""
    return "".join(f"data: {frame}\n\n" for frame in frames).encode()


def openai_delta(text: str) -> str:
    return json.dumps({"choices": [{"index": 0, "delta": {"content": text}}]})


def claude_event(event: str, payload: Dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(payload)}\n\n"


def claude_text_delta(text: str) -> str:
    return claude_event(
        "content_block_delta",
        {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": text}},
    )


class TrackingStream(httpx.AsyncByteStream):
    """Response body that records whether the connection was released."""

    def __init__(self, chunks: List[bytes]):
        self.chunks = chunks
        self.chunks_sent = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            self.chunks_sent += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


class RecordingHandler:
    """MockTransport handler that replays canned responses and keeps requests."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    @property
    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ═══════════════════════════════════════════════════════════════════════
# Fake provider for router / facade tests
# ═══════════════════════════════════════════════════════════════════════

class FakeProvider:
    """In-memory provider that reuses a real adapter's catalog."""

    _catalogs = {
        LLMProviderType.CLAUDE: ClaudeProvider,
        LLMProviderType.OPENAI: OpenAIProvider,
        LLMProviderType.OPENROUTER: OpenRouterProvider,
    }

    def __init__(self, provider_type: LLMProviderType, configured: bool = True,
                 input_tokens: int = 500, output_tokens: int = 200,
                 text: str = "generated", error: Optional[Exception] = None,
                 fragments: Optional[List[str]] = None):
        self.provider_type = provider_type
        self._adapter = self._catalogs[provider_type](None)
        self.default_model = self._adapter.default_model
        self.configured = configured
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens
        self.text = text
        self.error = error
        self.fragments = fragments if fragments is not None else ["a", "b", "c"]
        self.requests = []
        self.closed = False

    def is_configured(self) -> bool:
        return self.configured

    def get_available_models(self):
        return self._adapter.get_available_models()

    def estimate_cost(self, input_tokens, output_tokens, model_id):
        return self._adapter.estimate_cost(input_tokens, output_tokens, model_id)

    async def chat(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        model_id = request.model_id or self.default_model
        return ChatResponse(
            text=self.text,
            input_token_count=self.input_tokens,
            output_token_count=self.output_tokens,
            cost_estimate=self.estimate_cost(self.input_tokens, self.output_tokens, model_id),
            model_id=model_id,
            provider=self.provider_type.value,
        )

    def stream_chat(self, request):
        self.requests.append(request)

        async def fragments():
            for fragment in self.fragments:
                yield fragment

        return ChatStream(fragments(), self.provider_type.value, request.model_id or self.default_model)

    async def aclose(self):
        self.closed = True


def build_manager(*providers) -> ProviderManager:
    manager = ProviderManager()
    for provider in providers:
        manager.add_provider(provider)
    return manager


@pytest.fixture
def all_configured_manager():
    return build_manager(
        FakeProvider(LLMProviderType.CLAUDE),
        FakeProvider(LLMProviderType.OPENAI),
        FakeProvider(LLMProviderType.OPENROUTER),
    )


@pytest.fixture
def empty_manager():
    return build_manager(
        FakeProvider(LLMProviderType.CLAUDE, configured=False),
        FakeProvider(LLMProviderType.OPENAI, configured=False),
        FakeProvider(LLMProviderType.OPENROUTER, configured=False),
    )


@pytest.fixture
def usage_tracker():
    return UsageTracker(baseline_cost_per_call=0.20)


@pytest.fixture
def ai_router(all_configured_manager, usage_tracker):
    return AIRouter(all_configured_manager, usage_tracker)


@pytest.fixture
def failing_router(usage_tracker):
    error = ProviderError("Anthropic API error (500): upstream exploded", "claude", status_code=500)
    manager = build_manager(FakeProvider(LLMProviderType.CLAUDE, error=error))
    return AIRouter(manager, usage_tracker)


@pytest.fixture
def code_task():
    return TaskDescriptor()
