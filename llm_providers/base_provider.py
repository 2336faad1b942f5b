"""
Provider contract for LLM Provider Integration.

This module defines the capability set every provider adapter must
satisfy (chat, stream_chat, get_available_models, estimate_cost,
is_configured) together with the normalized request/response types that
cross the adapter boundary. Vendor-specific payload shapes never leave
an adapter.
"""

import logging
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Dict, Any, Optional, List, Tuple, AsyncIterator, Iterable, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

DEFAULT_MAX_OUTPUT_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7

MESSAGE_ROLES = ("system", "user", "assistant")


class LLMProviderType(str, Enum):
    """Enumeration of supported LLM providers"""
    CLAUDE = "claude"
    OPENAI = "openai"
    OPENROUTER = "openrouter"


@dataclass(frozen=True)
class ModelPricing:
    """Price in currency units per 1000 tokens"""
    input: float
    output: float


@dataclass(frozen=True)
class ModelCapabilities:
    streaming: bool = True
    function_calling: bool = False
    vision: bool = False


@dataclass(frozen=True)
class ModelDescriptor:
    """Catalog entry for a specific model offered by a provider"""
    provider: str
    model_id: str
    pricing: ModelPricing
    max_context_tokens: int
    capabilities: ModelCapabilities

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def __post_init__(self):
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"Unsupported message role: {self.role}. Expected one of {MESSAGE_ROLES}")


@dataclass
class ChatRequest:
    """Standardized request format for all LLM providers"""
    messages: List[ChatMessage] = field(default_factory=list)
    model_id: Optional[str] = None
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None
    explicit_provider: Optional[str] = None


@dataclass
class ChatResponse:
    """Standardized response format from all LLM providers"""
    text: str
    input_token_count: int
    output_token_count: int
    cost_estimate: float
    model_id: str
    provider: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert response to dictionary format"""
        return asdict(self)


class ChatStream:
    """
    Forward-only async sequence of streamed text fragments.

    The stream is not restartable. Closing it (explicitly, or by leaving
    an ``async with`` block) releases the underlying connection even if
    the vendor has not finished sending.
    """

    def __init__(self, fragments: AsyncIterator[str], provider: str, model_id: str):
        self._fragments = fragments
        self.provider = provider
        self.model_id = model_id
        self._closed = False

    def __aiter__(self) -> "ChatStream":
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._fragments.__anext__()
        except StopAsyncIteration:
            self._closed = True
            raise

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        aclose = getattr(self._fragments, "aclose", None)
        if aclose is not None:
            await aclose()

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> "ChatStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"ChatStream(provider='{self.provider}', model_id='{self.model_id}', closed={self._closed})"


@runtime_checkable
class LLMProvider(Protocol):
    """
    Capability set every provider adapter implements.

    Adapters are independent types tagged by ``provider_type``; they
    share helper functions from this module rather than a base class.
    """

    provider_type: LLMProviderType
    default_model: str

    def is_configured(self) -> bool:
        """True iff a non-empty credential is present. No network probe."""
        ...

    def get_available_models(self) -> List[ModelDescriptor]:
        """Fixed catalog of models with price and capabilities"""
        ...

    def estimate_cost(self, input_tokens: int, output_tokens: int, model_id: str) -> float:
        """Cost of a call; 0 when the model is not in the catalog"""
        ...

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """
        Perform a single blocking chat call.

        Raises:
            ProviderError: When the vendor returns a non-success status
            ResponseParseError: When the vendor payload cannot be normalized
        """
        ...

    def stream_chat(self, request: ChatRequest) -> ChatStream:
        """Lazy stream of text fragments in arrival order"""
        ...

    async def aclose(self) -> None:
        ...


# Shared helpers used by every adapter

def build_model_catalog(provider: str, supported_models: Dict[str, Dict[str, Any]]) -> List[ModelDescriptor]:
    """
    Build model descriptors from an adapter's SUPPORTED_MODELS table.

    Keys of the table are model ids, so ids are unique per catalog.
    """
    return [
        ModelDescriptor(
            provider=provider,
            model_id=model_id,
            pricing=ModelPricing(
                input=config["input_cost_per_1k"],
                output=config["output_cost_per_1k"],
            ),
            max_context_tokens=config["context_window"],
            capabilities=ModelCapabilities(**config["capabilities"]),
        )
        for model_id, config in supported_models.items()
    ]


def find_model(models: Iterable[ModelDescriptor], model_id: str) -> Optional[ModelDescriptor]:
    for model in models:
        if model.model_id == model_id:
            return model
    return None


def estimate_cost_from_catalog(
    models: Iterable[ModelDescriptor], input_tokens: int, output_tokens: int, model_id: str
) -> float:
    """
    Compute cost from catalog prices.

    Unknown models cost 0. This is a conservative default, not a
    correctness guarantee.
    """
    model = find_model(models, model_id)
    if model is None:
        return 0.0

    input_cost = (input_tokens / 1000) * model.pricing.input
    output_cost = (output_tokens / 1000) * model.pricing.output
    return input_cost + output_cost


def split_system_message(messages: List[ChatMessage]) -> Tuple[Optional[str], List[ChatMessage]]:
    """
    Separate the system instruction from the conversation.

    Only the first system message is honored. Any later system messages
    are dropped with a warning.

    Returns:
        Tuple[Optional[str], List[ChatMessage]]: (system text, user/assistant messages)
    """
    system_text = None
    conversation = []
    dropped = 0

    for message in messages:
        if message.role == "system":
            if system_text is None:
                system_text = message.content
            else:
                dropped += 1
        else:
            conversation.append(message)

    if dropped:
        logger.warning(f"Dropped {dropped} extra system message(s); only the first is honored")

    return system_text, conversation


def resolve_generation_params(request: ChatRequest, default_model: str) -> Tuple[str, int, float]:
    """Apply adapter defaults: (model_id, max_output_tokens, temperature)"""
    model_id = request.model_id or default_model
    max_tokens = request.max_output_tokens or DEFAULT_MAX_OUTPUT_TOKENS
    temperature = request.temperature if request.temperature is not None else DEFAULT_TEMPERATURE
    return model_id, max_tokens, temperature


def coerce_token_count(value: Any) -> int:
    """Vendor token counts default to 0 when missing or malformed"""
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
