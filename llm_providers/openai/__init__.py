"""
OpenAI Provider Package.

This package provides integration with OpenAI language models and the
OpenAI-compatible chat-completions wire format.
"""

from .openai_provider import OpenAIProvider, create_openai_provider, get_openai_models

__all__ = [
    "OpenAIProvider",
    "create_openai_provider",
    "get_openai_models"
]
