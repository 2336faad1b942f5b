"""
Anthropic Provider Package.

This package provides integration with Anthropic's Claude models.
"""

from .claude_provider import ClaudeProvider, create_claude_provider, get_claude_models

__all__ = [
    "ClaudeProvider",
    "create_claude_provider",
    "get_claude_models"
]
