"""Tests for the provider contract, shared helpers and ChatStream."""

import logging

import pytest

from llm_providers.base_provider import (
    ChatMessage,
    ChatRequest,
    ChatStream,
    LLMProvider,
    DEFAULT_MAX_OUTPUT_TOKENS,
    DEFAULT_TEMPERATURE,
    build_model_catalog,
    coerce_token_count,
    estimate_cost_from_catalog,
    resolve_generation_params,
    split_system_message,
)
from llm_providers.anthropic import ClaudeProvider
from llm_providers.openai import OpenAIProvider
from llm_providers.openrouter import OpenRouterProvider


ALL_ADAPTERS = [ClaudeProvider, OpenAIProvider, OpenRouterProvider]


class TestChatMessage:

    def test_valid_roles(self):
        for role in ("system", "user", "assistant"):
            assert ChatMessage(role=role, content="x").role == role

    def test_invalid_role_rejected(self):
        with pytest.raises(ValueError):
            ChatMessage(role="tool", content="x")


class TestSplitSystemMessage:

    def test_no_system_message(self):
        messages = [ChatMessage("user", "hi")]
        system, conversation = split_system_message(messages)
        assert system is None
        assert conversation == messages

    def test_first_system_message_wins(self, caplog):
        messages = [
            ChatMessage("system", "first"),
            ChatMessage("user", "hi"),
            ChatMessage("system", "second"),
            ChatMessage("assistant", "hello"),
        ]
        with caplog.at_level(logging.WARNING):
            system, conversation = split_system_message(messages)

        assert system == "first"
        assert [m.role for m in conversation] == ["user", "assistant"]
        assert "Dropped 1 extra system message" in caplog.text

    def test_conversation_order_preserved(self):
        messages = [
            ChatMessage("user", "1"),
            ChatMessage("system", "sys"),
            ChatMessage("assistant", "2"),
            ChatMessage("user", "3"),
        ]
        _, conversation = split_system_message(messages)
        assert [m.content for m in conversation] == ["1", "2", "3"]


class TestGenerationParams:

    def test_defaults_applied(self):
        model_id, max_tokens, temperature = resolve_generation_params(ChatRequest(), "default-model")
        assert model_id == "default-model"
        assert max_tokens == DEFAULT_MAX_OUTPUT_TOKENS
        assert temperature == DEFAULT_TEMPERATURE

    def test_zero_temperature_is_honored(self):
        request = ChatRequest(model_id="m", max_output_tokens=10, temperature=0.0)
        assert resolve_generation_params(request, "default-model") == ("m", 10, 0.0)

    def test_coerce_token_count(self):
        assert coerce_token_count(None) == 0
        assert coerce_token_count("12") == 12
        assert coerce_token_count("not a number") == 0
        assert coerce_token_count(7) == 7


class TestCostEstimation:

    def test_catalog_entries(self):
        catalog = build_model_catalog("claude", {
            "m1": {
                "context_window": 1000,
                "input_cost_per_1k": 0.003,
                "output_cost_per_1k": 0.015,
                "capabilities": {"streaming": True, "function_calling": False, "vision": False},
            },
        })
        assert len(catalog) == 1
        assert catalog[0].provider == "claude"
        assert catalog[0].pricing.input == 0.003

    def test_unknown_model_costs_zero(self):
        assert estimate_cost_from_catalog([], 1000, 1000, "nope") == 0.0

    @pytest.mark.parametrize("adapter_cls", ALL_ADAPTERS)
    def test_zero_tokens_cost_zero(self, adapter_cls):
        adapter = adapter_cls(None)
        for model in adapter.get_available_models():
            assert adapter.estimate_cost(0, 0, model.model_id) == 0

    @pytest.mark.parametrize("adapter_cls", ALL_ADAPTERS)
    def test_thousand_tokens_cost_is_price_sum(self, adapter_cls):
        adapter = adapter_cls(None)
        for model in adapter.get_available_models():
            expected = model.pricing.input + model.pricing.output
            assert adapter.estimate_cost(1000, 1000, model.model_id) == pytest.approx(expected)

    def test_scenario_cost(self):
        adapter = ClaudeProvider(None)
        cost = adapter.estimate_cost(500, 200, "claude-3-5-sonnet-20241022")
        assert cost == pytest.approx(0.0045)


class TestAdapterContract:

    @pytest.mark.parametrize("adapter_cls", ALL_ADAPTERS)
    def test_satisfies_protocol(self, adapter_cls):
        assert isinstance(adapter_cls("key"), LLMProvider)

    @pytest.mark.parametrize("adapter_cls", ALL_ADAPTERS)
    def test_is_configured_iff_credential(self, adapter_cls):
        assert adapter_cls("key").is_configured() is True
        assert adapter_cls("").is_configured() is False
        assert adapter_cls(None).is_configured() is False

    @pytest.mark.parametrize("adapter_cls", ALL_ADAPTERS)
    def test_model_ids_unique(self, adapter_cls):
        ids = [m.model_id for m in adapter_cls(None).get_available_models()]
        assert len(ids) == len(set(ids))

    @pytest.mark.parametrize("adapter_cls", ALL_ADAPTERS)
    def test_default_model_in_catalog(self, adapter_cls):
        adapter = adapter_cls(None)
        assert adapter.default_model in [m.model_id for m in adapter.get_available_models()]


class TestChatStream:

    @pytest.mark.asyncio
    async def test_yields_in_order_and_closes(self):
        async def fragments():
            for text in ("a", "b", "c"):
                yield text

        stream = ChatStream(fragments(), "openai", "gpt-4o")
        collected = [fragment async for fragment in stream]

        assert collected == ["a", "b", "c"]
        assert stream.closed is True

    @pytest.mark.asyncio
    async def test_not_restartable(self):
        async def fragments():
            yield "only"

        stream = ChatStream(fragments(), "openai", "gpt-4o")
        assert [f async for f in stream] == ["only"]
        assert [f async for f in stream] == []

    @pytest.mark.asyncio
    async def test_aclose_runs_generator_cleanup(self):
        cleaned_up = []

        async def fragments():
            try:
                for i in range(100):
                    yield str(i)
            finally:
                cleaned_up.append(True)

        async with ChatStream(fragments(), "claude", "m") as stream:
            assert await stream.__anext__() == "0"

        assert cleaned_up == [True]
        assert stream.closed is True
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()
