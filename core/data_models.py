"""
Data models for the routing system.

Task descriptors come in from callers, routing decisions go out to the
facade, and usage records accumulate in the usage tracker.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Dict, Any, Optional, Union


class TaskType(str, Enum):
    """Caller-declared category of work"""
    CODE_GENERATION = "code_generation"
    CODE_REVIEW = "code_review"
    TEST_GENERATION = "test_generation"
    DOCUMENTATION = "documentation"
    BUG_FIX = "bug_fix"
    OPTIMIZATION = "optimization"
    SIMPLE_QUERY = "simple_query"
    COMPLEX_REASONING = "complex_reasoning"


class QualityTier(str, Enum):
    """Caller-declared quality/cost tradeoff"""
    LOW = "low"
    STANDARD = "standard"
    HIGH = "high"
    PREMIUM = "premium"


@dataclass
class TaskDescriptor:
    """Structure for a routing request. Consumed once by the router."""
    task_type: Union[TaskType, str] = TaskType.CODE_GENERATION
    quality_tier: Union[QualityTier, str] = QualityTier.STANDARD
    preferred_provider: Optional[str] = None
    preferred_model: Optional[str] = None
    max_cost: Optional[float] = None
    max_latency_ms: Optional[int] = None

    @property
    def task_type_value(self) -> str:
        """Plain string form of the task type"""
        return _enum_value(self.task_type)

    @property
    def quality_tier_value(self) -> str:
        return _enum_value(self.quality_tier)


@dataclass(frozen=True)
class RoutingDecision:
    """Router output: which provider and model to dispatch to"""
    provider: str
    model_id: str
    estimated_cost: float
    estimated_latency_ms: int
    confidence: float
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class UsageRecord:
    """One logged outcome of a chat call"""
    id: str
    timestamp: float
    provider: str
    model_id: str
    task_type: str
    input_token_count: int
    output_token_count: int
    cost: float
    succeeded: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _enum_value(value: Union[Enum, str]) -> str:
    return value.value if isinstance(value, Enum) else str(value)
