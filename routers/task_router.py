"""
Task Router with a static preference table.

Maps a task descriptor (task type, quality tier, optional explicit
provider/model and cost/latency ceilings) onto one configured provider
and model. The decision is deterministic and stateless: nothing observed
at runtime feeds back into later decisions.
"""

import logging
from collections import namedtuple
from typing import Dict, List, Optional

from core.data_models import TaskDescriptor, RoutingDecision, TaskType, QualityTier
from core.exceptions import ConfigurationError, NoProviderConfiguredError
from llm_providers.base_provider import LLMProviderType, find_model
from llm_providers.factory import ProviderManager, coerce_provider_type

logger = logging.getLogger(__name__)

DEFAULT_LATENCY_MS = 5000
FALLBACK_CONFIDENCE = 0.5

ModelPreference = namedtuple("ModelPreference", ["provider", "model_id", "latency_ms", "confidence", "reason"])

_P = ModelPreference
_CLAUDE = LLMProviderType.CLAUDE.value
_OPENAI = LLMProviderType.OPENAI.value
_OPENROUTER = LLMProviderType.OPENROUTER.value

# (task_type, quality_tier) -> candidates, most preferred first
MODEL_PREFERENCES: Dict[str, Dict[str, List[ModelPreference]]] = {
    TaskType.SIMPLE_QUERY.value: {
        QualityTier.LOW.value: [
            _P(_OPENROUTER, "google/gemini-flash-1.5", 2000, 0.9, "Cheapest and fastest for simple queries"),
            _P(_OPENAI, "gpt-4o-mini", 2500, 0.85, "Good balance of speed and cost"),
            _P(_CLAUDE, "claude-3-5-haiku-20241022", 2500, 0.85, "Fast Claude model"),
        ],
        QualityTier.STANDARD.value: [
            _P(_OPENAI, "gpt-4o-mini", 2500, 0.9, "Reliable for standard queries"),
            _P(_CLAUDE, "claude-3-5-haiku-20241022", 2500, 0.85, "Fast and accurate"),
        ],
        QualityTier.HIGH.value: [
            _P(_CLAUDE, "claude-3-5-sonnet-20241022", 4000, 0.95, "Best quality"),
            _P(_OPENAI, "gpt-4o", 4000, 0.9, "Excellent reasoning"),
        ],
        QualityTier.PREMIUM.value: [
            _P(_CLAUDE, "claude-sonnet-4-5-20250929", 5000, 1.0, "Latest and most capable"),
            _P(_CLAUDE, "claude-3-opus-20240229", 6000, 0.95, "Maximum capability"),
        ],
    },
    TaskType.CODE_GENERATION.value: {
        QualityTier.LOW.value: [
            _P(_OPENAI, "gpt-4o-mini", 3000, 0.8, "Fast code generation"),
            _P(_OPENROUTER, "meta-llama/llama-3.1-70b-instruct", 3500, 0.75, "Good for simple code"),
        ],
        QualityTier.STANDARD.value: [
            _P(_CLAUDE, "claude-3-5-sonnet-20241022", 5000, 0.9, "Excellent at coding"),
            _P(_OPENAI, "gpt-4o", 5000, 0.85, "Reliable code quality"),
        ],
        QualityTier.HIGH.value: [
            _P(_CLAUDE, "claude-sonnet-4-5-20250929", 6000, 0.95, "Best coding capabilities"),
            _P(_CLAUDE, "claude-3-5-sonnet-20241022", 5000, 0.9, "Proven coding model"),
        ],
        QualityTier.PREMIUM.value: [
            _P(_CLAUDE, "claude-sonnet-4-5-20250929", 6000, 1.0, "Cutting-edge coding AI"),
            _P(_CLAUDE, "claude-3-opus-20240229", 7000, 0.95, "Maximum quality code"),
        ],
    },
    TaskType.COMPLEX_REASONING.value: {
        QualityTier.LOW.value: [
            _P(_OPENAI, "gpt-4o-mini", 4000, 0.7, "Basic reasoning capability"),
            _P(_CLAUDE, "claude-3-5-haiku-20241022", 3500, 0.75, "Fast reasoning"),
        ],
        QualityTier.STANDARD.value: [
            _P(_CLAUDE, "claude-3-5-sonnet-20241022", 6000, 0.9, "Strong reasoning"),
            _P(_OPENAI, "gpt-4o", 6000, 0.85, "Excellent reasoning"),
        ],
        QualityTier.HIGH.value: [
            _P(_CLAUDE, "claude-sonnet-4-5-20250929", 7000, 0.95, "Superior reasoning"),
            _P(_CLAUDE, "claude-3-opus-20240229", 8000, 0.93, "Deep reasoning"),
        ],
        QualityTier.PREMIUM.value: [
            _P(_CLAUDE, "claude-sonnet-4-5-20250929", 7000, 1.0, "Best reasoning model"),
            _P(_CLAUDE, "claude-3-opus-20240229", 8000, 0.98, "Maximum intelligence"),
        ],
    },
}

DEFAULT_TASK_TYPE = TaskType.CODE_GENERATION.value
DEFAULT_QUALITY_TIER = QualityTier.STANDARD.value


class TaskRouter:
    """
    Picks a provider and model for a task.

    Routing order:
        1. Explicit provider + model, when that provider is configured
        2. First qualifying candidate from the preference table
        3. First configured provider's first catalog model
    """

    def __init__(self, provider_manager: ProviderManager,
                 preferences: Optional[Dict[str, Dict[str, List[ModelPreference]]]] = None):
        self.provider_manager = provider_manager
        self.preferences = preferences if preferences is not None else MODEL_PREFERENCES

    def get_candidates(self, task_type: str, quality_tier: str) -> List[ModelPreference]:
        """Candidate list for a task, with unknown keys mapped to the defaults."""
        table = self.preferences.get(task_type) or self.preferences[DEFAULT_TASK_TYPE]
        return table.get(quality_tier) or table[DEFAULT_QUALITY_TIER]

    def _is_configured(self, provider_name: Optional[str]) -> bool:
        if not provider_name:
            return False
        try:
            provider_type = coerce_provider_type(provider_name)
        except ConfigurationError:
            return False
        return provider_type in self.provider_manager.available_providers()

    def route_task(self, task: TaskDescriptor) -> RoutingDecision:
        """
        Decide which provider and model should serve a task.

        Args:
            task: Caller-supplied task descriptor

        Returns:
            RoutingDecision: Chosen provider, model and routing metadata

        Raises:
            NoProviderConfiguredError: If no provider has a credential
        """
        available = self.provider_manager.available_providers()
        if not available:
            raise NoProviderConfiguredError()

        if task.preferred_provider and task.preferred_model and self._is_configured(task.preferred_provider):
            decision = RoutingDecision(
                provider=coerce_provider_type(task.preferred_provider).value,
                model_id=task.preferred_model,
                estimated_cost=0.0,
                estimated_latency_ms=DEFAULT_LATENCY_MS,
                confidence=1.0,
                reason="user-specified",
            )
            logger.info(f"Routing to user-specified {decision.provider}/{decision.model_id}")
            return decision

        for candidate in self.get_candidates(task.task_type_value, task.quality_tier_value):
            decision = self._evaluate_candidate(candidate, task)
            if decision is not None:
                logger.info(
                    f"Routing {task.task_type_value}/{task.quality_tier_value} to "
                    f"{decision.provider}/{decision.model_id} (confidence={decision.confidence})"
                )
                return decision

        return self._fallback(available[0], task)

    def _evaluate_candidate(self, candidate: ModelPreference, task: TaskDescriptor) -> Optional[RoutingDecision]:
        if not self._is_configured(candidate.provider):
            return None

        provider = self.provider_manager.get_provider(candidate.provider)
        model = find_model(provider.get_available_models(), candidate.model_id)
        if model is None:
            return None

        # Crude two-unit estimate from the input price, not real request sizing
        estimated_cost = model.pricing.input * 2
        if task.max_cost is not None and estimated_cost > task.max_cost:
            return None
        if task.max_latency_ms is not None and candidate.latency_ms > task.max_latency_ms:
            return None

        return RoutingDecision(
            provider=candidate.provider,
            model_id=candidate.model_id,
            estimated_cost=estimated_cost,
            estimated_latency_ms=candidate.latency_ms,
            confidence=candidate.confidence,
            reason=candidate.reason,
        )

    def _fallback(self, provider_type: LLMProviderType, task: TaskDescriptor) -> RoutingDecision:
        provider = self.provider_manager.get_provider(provider_type)
        models = provider.get_available_models()
        model = models[0]

        logger.info(
            f"No preferred candidate for {task.task_type_value}/{task.quality_tier_value}; "
            f"falling back to {provider_type.value}/{model.model_id}"
        )
        return RoutingDecision(
            provider=provider_type.value,
            model_id=model.model_id,
            estimated_cost=model.pricing.input * 2,
            estimated_latency_ms=DEFAULT_LATENCY_MS,
            confidence=FALLBACK_CONFIDENCE,
            reason="fallback",
        )
