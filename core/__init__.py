"""
Core Components Package.

This package contains foundational components used throughout the LLM routing system.
"""

from .data_models import TaskType, QualityTier, TaskDescriptor, RoutingDecision, UsageRecord
from .exceptions import (
    LLMRouterError,
    ConfigurationError,
    NoProviderConfiguredError,
    ProviderError,
    RateLimitError,
    AuthenticationError,
    ModelNotFoundError,
    ResponseParseError,
    DecodeError,
)
from .usage_tracker import UsageTracker

__all__ = [
    "TaskType",
    "QualityTier",
    "TaskDescriptor",
    "RoutingDecision",
    "UsageRecord",
    "UsageTracker",
    "LLMRouterError",
    "ConfigurationError",
    "NoProviderConfiguredError",
    "ProviderError",
    "RateLimitError",
    "AuthenticationError",
    "ModelNotFoundError",
    "ResponseParseError",
    "DecodeError",
]
