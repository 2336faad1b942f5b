"""
LLM Providers Package.

This package provides a unified interface for integrating multiple LLM providers
including Anthropic Claude, OpenAI, and OpenRouter with the routing system.
"""

# Contract and shared types
from .base_provider import (
    LLMProvider,
    LLMProviderType,
    ChatMessage,
    ChatRequest,
    ChatResponse,
    ChatStream,
    ModelDescriptor,
    ModelPricing,
    ModelCapabilities,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
)

# Provider implementations
from .anthropic import ClaudeProvider, create_claude_provider, get_claude_models
from .openai import OpenAIProvider, create_openai_provider, get_openai_models
from .openrouter import OpenRouterProvider, create_openrouter_provider, get_openrouter_models

# Factory and management
from .factory import (
    ProviderFactory,
    ProviderManager,
    coerce_provider_type,
    create_provider_manager,
)

__version__ = "1.0.0"

__all__ = [
    # Contract and shared types
    "LLMProvider",
    "LLMProviderType",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "ChatStream",
    "ModelDescriptor",
    "ModelPricing",
    "ModelCapabilities",
    "DEFAULT_MAX_OUTPUT_TOKENS",
    "DEFAULT_TEMPERATURE",

    # Provider implementations
    "ClaudeProvider",
    "OpenAIProvider",
    "OpenRouterProvider",

    # Factory functions
    "create_claude_provider",
    "create_openai_provider",
    "create_openrouter_provider",

    # Model information
    "get_claude_models",
    "get_openai_models",
    "get_openrouter_models",

    # Factory and management
    "ProviderFactory",
    "ProviderManager",
    "coerce_provider_type",
    "create_provider_manager",
]

# Package metadata
SUPPORTED_PROVIDERS = [provider.value for provider in LLMProviderType]
