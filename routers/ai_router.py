"""
AI Router facade.

Single entry point combining the task router, the provider adapters and
the usage tracker for blocking and streaming chat calls.
"""

import dataclasses
import logging
from typing import Dict, Any, List, Optional

from core.data_models import TaskDescriptor, RoutingDecision
from core.exceptions import ConfigurationError
from core.usage_tracker import UsageTracker
from llm_providers.base_provider import ChatRequest, ChatResponse, ChatStream, LLMProvider
from llm_providers.factory import ProviderManager
from .task_router import TaskRouter

logger = logging.getLogger(__name__)


class AIRouter:
    """
    Routes chat requests to the best configured provider and records usage.

    Failed blocking calls are recorded with ``succeeded=False`` and zero
    tokens/cost before the error propagates. Streamed calls are not
    recorded because token counts are unavailable mid-stream.
    """

    def __init__(self, provider_manager: ProviderManager, usage_tracker: Optional[UsageTracker] = None,
                 task_router: Optional[TaskRouter] = None):
        self.provider_manager = provider_manager
        self.usage_tracker = usage_tracker if usage_tracker is not None else UsageTracker()
        self.task_router = task_router if task_router is not None else TaskRouter(provider_manager)

    def route_task(self, task: TaskDescriptor) -> RoutingDecision:
        return self.task_router.route_task(task)

    def _dispatch(self, task: TaskDescriptor, request: ChatRequest):
        decision = self.task_router.route_task(task)
        provider = self.provider_manager.get_provider(decision.provider)
        if provider is None:
            raise ConfigurationError(f"Provider {decision.provider} is not registered")

        routed_request = dataclasses.replace(
            request, model_id=decision.model_id, explicit_provider=decision.provider
        )
        return decision, provider, routed_request

    async def chat(self, task: TaskDescriptor, request: ChatRequest) -> ChatResponse:
        """
        Route a request and return the provider's normalized response.

        Args:
            task: Task descriptor used for routing
            request: Chat request; its model is replaced by the routed one

        Returns:
            ChatResponse: Normalized response

        Raises:
            ConfigurationError: If no provider is configured
            ProviderError: If the vendor call fails
            ResponseParseError: If the vendor response cannot be normalized
        """
        decision, provider, routed_request = self._dispatch(task, request)

        try:
            response = await provider.chat(routed_request)
        except Exception as e:
            logger.error(f"Chat via {decision.provider}/{decision.model_id} failed: {e}")
            self.usage_tracker.add_record(
                provider=decision.provider,
                model_id=decision.model_id,
                task_type=task.task_type_value,
                input_token_count=0,
                output_token_count=0,
                cost=0.0,
                succeeded=False,
            )
            raise

        self.usage_tracker.add_record(
            provider=response.provider,
            model_id=response.model_id,
            task_type=task.task_type_value,
            input_token_count=response.input_token_count,
            output_token_count=response.output_token_count,
            cost=response.cost_estimate,
        )
        return response

    async def stream_chat(self, task: TaskDescriptor, request: ChatRequest) -> ChatStream:
        """
        Route a request and return the provider's fragment stream.

        Routing happens eagerly so configuration errors surface here; the
        vendor call starts when the stream is first iterated.
        """
        decision, provider, routed_request = self._dispatch(task, request)
        logger.info(f"Streaming via {decision.provider}/{decision.model_id}")
        return provider.stream_chat(routed_request)

    def get_available_providers(self) -> List[str]:
        """Names of providers that have a credential configured."""
        return [provider_type.value for provider_type in self.provider_manager.available_providers()]

    def get_provider(self, name: str) -> Optional[LLMProvider]:
        return self.provider_manager.get_provider(name)

    def get_usage_stats(self) -> Dict[str, Any]:
        return self.usage_tracker.get_stats()

    async def aclose(self) -> None:
        await self.provider_manager.aclose()
