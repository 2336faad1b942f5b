"""
Routers Package.

This package contains the task router and the AI router facade used to
dispatch chat requests across configured providers.
"""

from .task_router import TaskRouter, ModelPreference, MODEL_PREFERENCES
from .ai_router import AIRouter

__all__ = [
    "TaskRouter",
    "ModelPreference",
    "MODEL_PREFERENCES",
    "AIRouter",
]
