"""Tests for the static preference-table router."""

import itertools

import pytest

from conftest import FakeProvider, build_manager
from core.data_models import TaskDescriptor, TaskType, QualityTier
from core.exceptions import ConfigurationError, NoProviderConfiguredError
from llm_providers.base_provider import LLMProviderType
from routers.task_router import TaskRouter, MODEL_PREFERENCES, ModelPreference

CLAUDE = LLMProviderType.CLAUDE
OPENAI = LLMProviderType.OPENAI
OPENROUTER = LLMProviderType.OPENROUTER


def manager_with(*configured):
    return build_manager(*[
        FakeProvider(provider_type, configured=provider_type in configured)
        for provider_type in (CLAUDE, OPENAI, OPENROUTER)
    ])


PROVIDER_SUBSETS = [
    subset
    for size in (1, 2, 3)
    for subset in itertools.combinations((CLAUDE, OPENAI, OPENROUTER), size)
]

ALL_TASKS = [
    TaskDescriptor(task_type=task_type, quality_tier=tier)
    for task_type in TaskType
    for tier in QualityTier
]


class TestRouterProperties:

    @pytest.mark.parametrize("configured", PROVIDER_SUBSETS)
    def test_decision_provider_is_configured(self, configured):
        router = TaskRouter(manager_with(*configured))
        configured_names = {p.value for p in configured}

        for task in ALL_TASKS:
            decision = router.route_task(task)
            assert decision.provider in configured_names
            assert 0.0 <= decision.confidence <= 1.0

    @pytest.mark.parametrize("configured", PROVIDER_SUBSETS)
    def test_decision_model_in_provider_catalog(self, configured):
        manager = manager_with(*configured)
        router = TaskRouter(manager)

        for task in ALL_TASKS:
            decision = router.route_task(task)
            catalog = manager.get_provider(decision.provider).get_available_models()
            assert decision.model_id in [m.model_id for m in catalog]

    def test_no_provider_configured(self, empty_manager):
        router = TaskRouter(empty_manager)

        with pytest.raises(NoProviderConfiguredError):
            router.route_task(TaskDescriptor())

        # The explicit path does not bypass the check
        with pytest.raises(ConfigurationError):
            router.route_task(TaskDescriptor(preferred_provider="claude", preferred_model="claude-3-opus-20240229"))

    def test_deterministic(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        task = TaskDescriptor(task_type=TaskType.SIMPLE_QUERY, quality_tier=QualityTier.LOW)
        assert router.route_task(task) == router.route_task(task)


class TestExplicitSelection:

    def test_user_specified_wins(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        task = TaskDescriptor(
            task_type=TaskType.SIMPLE_QUERY,
            quality_tier=QualityTier.LOW,
            preferred_provider="openai",
            preferred_model="gpt-3.5-turbo",
        )

        decision = router.route_task(task)

        assert decision.provider == "openai"
        assert decision.model_id == "gpt-3.5-turbo"
        assert decision.confidence == 1.0
        assert decision.reason == "user-specified"
        assert decision.estimated_cost == 0

    def test_enum_provider_accepted(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        task = TaskDescriptor(preferred_provider=OPENROUTER, preferred_model="mistralai/mistral-large")
        decision = router.route_task(task)
        assert (decision.provider, decision.model_id) == ("openrouter", "mistralai/mistral-large")

    def test_unconfigured_preferred_provider_ignored(self):
        router = TaskRouter(manager_with(OPENAI))
        task = TaskDescriptor(preferred_provider="claude", preferred_model="claude-3-opus-20240229")

        decision = router.route_task(task)
        assert decision.provider == "openai"
        assert decision.reason != "user-specified"

    def test_unknown_preferred_provider_ignored(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        decision = router.route_task(TaskDescriptor(preferred_provider="mystery", preferred_model="m"))
        assert decision.reason != "user-specified"

    def test_model_without_provider_uses_table(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        decision = router.route_task(TaskDescriptor(preferred_model="gpt-3.5-turbo"))
        assert decision.model_id == "claude-3-5-sonnet-20241022"


class TestPreferenceTable:

    def test_first_candidate_when_all_configured(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        decision = router.route_task(TaskDescriptor(task_type=TaskType.SIMPLE_QUERY, quality_tier=QualityTier.LOW))

        assert decision.provider == "openrouter"
        assert decision.model_id == "google/gemini-flash-1.5"
        assert decision.estimated_latency_ms == 2000
        assert decision.confidence == 0.9
        assert decision.estimated_cost == pytest.approx(0.000075 * 2)
        assert decision.reason == "Cheapest and fastest for simple queries"

    def test_reason_comes_from_table_entry(self):
        router = TaskRouter(manager_with(OPENAI))
        decision = router.route_task(TaskDescriptor())  # code_generation / standard
        assert decision.reason == "Reliable code quality"

    def test_skips_unconfigured_candidates(self):
        router = TaskRouter(manager_with(OPENAI))
        decision = router.route_task(TaskDescriptor())  # code_generation / standard
        assert (decision.provider, decision.model_id) == ("openai", "gpt-4o")
        assert decision.confidence == 0.85

    def test_unknown_task_type_uses_code_generation(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        for task_type in (TaskType.DOCUMENTATION, TaskType.BUG_FIX, "not-a-task"):
            decision = router.route_task(TaskDescriptor(task_type=task_type))
            assert decision.model_id == "claude-3-5-sonnet-20241022"

    def test_unknown_tier_uses_standard(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        decision = router.route_task(TaskDescriptor(task_type=TaskType.COMPLEX_REASONING, quality_tier="ultra"))
        assert decision.model_id == "claude-3-5-sonnet-20241022"
        assert decision.confidence == 0.9

    def test_max_latency_filters(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        task = TaskDescriptor(task_type=TaskType.CODE_GENERATION, quality_tier=QualityTier.HIGH, max_latency_ms=5500)
        decision = router.route_task(task)
        assert decision.model_id == "claude-3-5-sonnet-20241022"
        assert decision.estimated_latency_ms == 5000

    def test_max_cost_filters(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        task = TaskDescriptor(task_type=TaskType.SIMPLE_QUERY, quality_tier=QualityTier.PREMIUM, max_cost=0.01)
        # sonnet-4-5 at 0.006 fits, opus at 0.03 would not
        assert router.route_task(task).model_id == "claude-sonnet-4-5-20250929"

    def test_zero_ceiling_is_a_real_limit(self, all_configured_manager):
        router = TaskRouter(all_configured_manager)
        decision = router.route_task(TaskDescriptor(max_latency_ms=0))
        assert decision.reason == "fallback"

    def test_candidate_missing_from_catalog_skipped(self, all_configured_manager):
        preferences = {
            TaskType.CODE_GENERATION.value: {
                QualityTier.STANDARD.value: [
                    ModelPreference("openai", "gpt-9", 1000, 1.0, "not real"),
                    ModelPreference("openai", "gpt-4o-mini", 1000, 0.8, "cheap"),
                ],
            },
        }
        router = TaskRouter(all_configured_manager, preferences=preferences)
        assert router.route_task(TaskDescriptor()).model_id == "gpt-4o-mini"

    def test_table_models_exist_in_catalogs(self, all_configured_manager):
        for table in MODEL_PREFERENCES.values():
            for candidates in table.values():
                for candidate in candidates:
                    catalog = all_configured_manager.get_provider(candidate.provider).get_available_models()
                    assert candidate.model_id in [m.model_id for m in catalog]


class TestFallback:

    def test_max_cost_below_every_candidate(self):
        router = TaskRouter(manager_with(CLAUDE, OPENAI))
        task = TaskDescriptor(task_type=TaskType.CODE_GENERATION, quality_tier=QualityTier.PREMIUM, max_cost=0.0001)

        decision = router.route_task(task)

        assert decision.confidence == 0.5
        assert decision.reason == "fallback"
        assert decision.provider == "claude"
        assert decision.model_id == "claude-sonnet-4-5-20250929"

    def test_fallback_uses_first_configured_provider(self):
        router = TaskRouter(manager_with(OPENROUTER))
        # Only claude candidates in this table
        task = TaskDescriptor(task_type=TaskType.COMPLEX_REASONING, quality_tier=QualityTier.PREMIUM)

        decision = router.route_task(task)

        assert decision.provider == "openrouter"
        assert decision.model_id == "anthropic/claude-3.5-sonnet"
        assert decision.reason == "fallback"
