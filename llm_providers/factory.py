"""
LLM Provider Factory for easy instantiation and management.

This module provides factory methods and utilities for creating and managing
LLM provider instances across different providers.
"""

import logging
from typing import Dict, Any, Optional, List, Union

import httpx

from core.exceptions import ConfigurationError
from .base_provider import LLMProvider, LLMProviderType
from .anthropic import ClaudeProvider, create_claude_provider
from .openai import OpenAIProvider, create_openai_provider
from .openrouter import OpenRouterProvider, create_openrouter_provider

logger = logging.getLogger(__name__)


def coerce_provider_type(provider_type: Union[str, LLMProviderType]) -> LLMProviderType:
    """
    Convert a provider name to its enum.

    Raises:
        ConfigurationError: If the provider type is not supported
    """
    if isinstance(provider_type, LLMProviderType):
        return provider_type
    try:
        return LLMProviderType(str(provider_type).lower())
    except ValueError:
        raise ConfigurationError(
            f"Unsupported provider type: {provider_type}. "
            f"Available: {[p.value for p in LLMProviderType]}"
        )


class ProviderFactory:
    """
    Factory class for creating LLM providers.

    Provides a unified interface for instantiating different LLM providers
    with consistent configuration.
    """

    # Registry of available providers, in fallback order
    PROVIDERS = {
        LLMProviderType.CLAUDE: {
            "class": ClaudeProvider,
            "factory": create_claude_provider,
            "api_key_env": "ANTHROPIC_API_KEY",
            "default_model": "claude-sonnet-4-5-20250929",
        },
        LLMProviderType.OPENAI: {
            "class": OpenAIProvider,
            "factory": create_openai_provider,
            "api_key_env": "OPENAI_API_KEY",
            "default_model": "gpt-4o",
        },
        LLMProviderType.OPENROUTER: {
            "class": OpenRouterProvider,
            "factory": create_openrouter_provider,
            "api_key_env": "OPENROUTER_API_KEY",
            "default_model": "anthropic/claude-3.5-sonnet",
        },
    }

    @classmethod
    def create_provider(
        cls,
        provider_type: Union[str, LLMProviderType],
        api_key: Optional[str],
        model_name: Optional[str] = None,
        **kwargs
    ) -> LLMProvider:
        """
        Create a provider instance.

        Args:
            provider_type: Type of provider ("claude", "openai", "openrouter" or enum)
            api_key: API key for the provider (may be empty)
            model_name: Default model (uses the registry default if not specified)
            **kwargs: base_url, timeout, http_client

        Returns:
            LLMProvider: Provider instance

        Raises:
            ConfigurationError: If provider type is not supported
        """
        provider_type = coerce_provider_type(provider_type)
        provider_info = cls.PROVIDERS[provider_type]
        return provider_info["factory"](api_key, model_name or provider_info["default_model"], **kwargs)

    @classmethod
    def get_available_providers(cls) -> List[str]:
        return [provider.value for provider in cls.PROVIDERS.keys()]

    @classmethod
    def get_provider_info(cls, provider_type: Union[str, LLMProviderType]) -> Dict[str, Any]:
        """
        Get information about a specific provider.

        Args:
            provider_type: Type of provider

        Returns:
            Dict[str, Any]: Provider information
        """
        provider_type = coerce_provider_type(provider_type)
        provider_info = cls.PROVIDERS[provider_type]
        # An unconfigured instance is enough to read the catalog
        models = provider_info["class"](None).get_available_models()
        return {
            "type": provider_type.value,
            "class_name": provider_info["class"].__name__,
            "api_key_env": provider_info["api_key_env"],
            "default_model": provider_info["default_model"],
            "total_models": len(models),
        }


class ProviderManager:
    """
    Manager class for the set of provider adapters known to the process.

    Providers are kept in registration order; that order decides the
    router's last-resort fallback.
    """

    def __init__(self):
        self.providers: Dict[LLMProviderType, LLMProvider] = {}

    def add_provider(self, provider: LLMProvider) -> LLMProvider:
        """Register a provider instance under its provider type."""
        self.providers[provider.provider_type] = provider
        return provider

    def get_provider(self, provider_type: Union[str, LLMProviderType]) -> Optional[LLMProvider]:
        try:
            return self.providers.get(coerce_provider_type(provider_type))
        except ConfigurationError:
            return None

    def list_providers(self) -> List[str]:
        return [provider_type.value for provider_type in self.providers]

    def available_providers(self) -> List[LLMProviderType]:
        """Provider types whose adapter has a credential configured."""
        return [
            provider_type
            for provider_type, provider in self.providers.items()
            if provider.is_configured()
        ]

    def describe(self) -> Dict[str, Dict[str, Any]]:
        """
        Describe every registered provider and its model catalog.

        Returns:
            Dict[str, Dict[str, Any]]: Configuration status and models per provider
        """
        return {
            provider_type.value: {
                "configured": provider.is_configured(),
                "default_model": provider.default_model,
                "models": [model.to_dict() for model in provider.get_available_models()],
            }
            for provider_type, provider in self.providers.items()
        }

    async def aclose(self) -> None:
        """Close HTTP clients owned by the providers."""
        for provider in self.providers.values():
            await provider.aclose()


def create_provider_manager(
    provider_configs: Dict[str, Dict[str, Any]],
    http_client: Optional[httpx.AsyncClient] = None,
) -> ProviderManager:
    """
    Build a manager holding one adapter per registered provider type.

    Every provider is created, configured or not; ``is_configured``
    decides availability at routing time.

    Args:
        provider_configs: Per-provider settings keyed by provider name
            (api_key, base_url, default_model, timeout)
        http_client: Optional client shared by all adapters

    Returns:
        ProviderManager: Manager with all providers registered
    """
    manager = ProviderManager()

    for provider_type in ProviderFactory.PROVIDERS:
        settings = provider_configs.get(provider_type.value, {})
        kwargs: Dict[str, Any] = {}
        if settings.get("base_url"):
            kwargs["base_url"] = settings["base_url"]
        if settings.get("timeout"):
            kwargs["timeout"] = float(settings["timeout"])
        if http_client is not None:
            kwargs["http_client"] = http_client

        provider = ProviderFactory.create_provider(
            provider_type,
            settings.get("api_key"),
            settings.get("default_model"),
            **kwargs
        )
        manager.add_provider(provider)
        logger.info(f"Registered provider {provider_type.value} (configured={provider.is_configured()})")

    return manager
