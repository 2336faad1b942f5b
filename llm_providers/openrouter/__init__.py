"""
OpenRouter Provider Package.

This package provides access to many vendors' models through OpenRouter.
"""

from .openrouter_provider import OpenRouterProvider, create_openrouter_provider, get_openrouter_models

__all__ = [
    "OpenRouterProvider",
    "create_openrouter_provider",
    "get_openrouter_models"
]
