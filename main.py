#!/usr/bin/env python3
"""
CodeForge AI Router - multi-provider LLM routing

Routes chat requests across Anthropic Claude, OpenAI and OpenRouter
using a static preference table keyed by task type and quality tier,
and records per-call cost and token usage.

Configuration comes from an optional config.ini overlaid by process
environment variables (API keys, base URLs, default models).
"""

import argparse
import asyncio
import configparser
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Mapping, Optional

import httpx

from core.data_models import TaskDescriptor, TaskType, QualityTier
from core.exceptions import ConfigurationError, LLMRouterError
from core.usage_tracker import UsageTracker, DEFAULT_BASELINE_COST_PER_CALL
from llm_providers.base_provider import ChatMessage, ChatRequest
from llm_providers.factory import ProviderFactory, ProviderManager, create_provider_manager
from project_dna import DNAGenerator
from routers import AIRouter, TaskRouter

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 60.0
DEFAULT_SYSTEM_PROMPT = "You are an expert software engineer. Generate clean, production-ready code."


def _env_prefix(api_key_env: str) -> str:
    # ANTHROPIC_API_KEY -> ANTHROPIC
    return api_key_env[: -len("_API_KEY")]


def _parse_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid numeric value for {key}: {value!r}")


def load_config(config_file: str = "config.ini", environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Load configuration from an INI file and the process environment.

    The INI file is optional. Environment variables take precedence over
    file values. Missing credentials are a valid state: the matching
    provider simply reports itself as not configured.

    Args:
        config_file: Path to configuration file
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Configuration dictionary with "provider_configs" and "routing" keys

    Raises:
        ConfigurationError: If a numeric setting cannot be parsed
    """
    environ = os.environ if environ is None else environ

    config = configparser.ConfigParser()
    config_path = Path(config_file)
    if config_path.exists():
        config.read(config_path)
        logger.info(f"Configuration loaded from {config_path}")
    else:
        logger.info(f"Configuration file {config_path} not found; using environment only")

    provider_section = config["PROVIDER_CONFIGS"] if "PROVIDER_CONFIGS" in config else {}
    routing_section = config["ROUTING_CONFIG"] if "ROUTING_CONFIG" in config else {}

    request_timeout = _parse_float(
        environ.get("LLM_REQUEST_TIMEOUT") or routing_section.get("request_timeout", DEFAULT_REQUEST_TIMEOUT),
        "request_timeout",
    )

    provider_configs: Dict[str, Dict[str, Any]] = {}
    for provider_type, provider_info in ProviderFactory.PROVIDERS.items():
        prefix = _env_prefix(provider_info["api_key_env"])
        key_prefix = prefix.lower()

        def setting(name: str) -> Optional[str]:
            value = environ.get(f"{prefix}_{name.upper()}") or provider_section.get(f"{key_prefix}_{name}")
            return value.strip() if value else None

        provider_configs[provider_type.value] = {
            "api_key": setting("api_key"),
            "base_url": setting("base_url"),
            "default_model": setting("default_model") or provider_info["default_model"],
            "timeout": request_timeout,
        }

    baseline = _parse_float(
        environ.get("USAGE_BASELINE_COST_PER_CALL")
        or routing_section.get("baseline_cost_per_call", DEFAULT_BASELINE_COST_PER_CALL),
        "baseline_cost_per_call",
    )

    return {
        "provider_configs": provider_configs,
        "routing": {
            "baseline_cost_per_call": baseline,
            "request_timeout": request_timeout,
        },
    }


@dataclass
class AppContext:
    """Process-wide router state, built once at startup and injected into handlers"""
    provider_manager: ProviderManager
    usage_tracker: UsageTracker
    ai_router: AIRouter
    dna_generator: DNAGenerator

    async def aclose(self) -> None:
        await self.ai_router.aclose()


def create_ai_router(config: Dict[str, Any], http_client: Optional[httpx.AsyncClient] = None) -> AIRouter:
    """
    Create and return a configured AIRouter instance.

    Args:
        config: Configuration dictionary from load_config
        http_client: Optional client shared by all provider adapters

    Returns:
        AIRouter: Router facade over every registered provider
    """
    provider_manager = create_provider_manager(config["provider_configs"], http_client=http_client)
    usage_tracker = UsageTracker(config["routing"]["baseline_cost_per_call"])
    router = AIRouter(provider_manager, usage_tracker, TaskRouter(provider_manager))

    available = router.get_available_providers()
    if available:
        logger.info(f"Configured providers: {available}")
    else:
        logger.warning("No AI providers configured. Routing will fail until an API key is set.")
    return router


def create_app_context(config: Dict[str, Any], http_client: Optional[httpx.AsyncClient] = None) -> AppContext:
    router = create_ai_router(config, http_client=http_client)
    return AppContext(
        provider_manager=router.provider_manager,
        usage_tracker=router.usage_tracker,
        ai_router=router,
        dna_generator=DNAGenerator(router),
    )


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Send a prompt through the multi-provider AI router")
    parser.add_argument("prompt", help="User prompt")
    parser.add_argument("--task-type", default=TaskType.CODE_GENERATION.value,
                        choices=[t.value for t in TaskType])
    parser.add_argument("--quality", default=QualityTier.STANDARD.value,
                        choices=[q.value for q in QualityTier])
    parser.add_argument("--provider", help="Preferred provider (requires --model)")
    parser.add_argument("--model", help="Preferred model (requires --provider)")
    parser.add_argument("--max-cost", type=float, help="Cost ceiling for the routing estimate")
    parser.add_argument("--max-latency-ms", type=int, help="Latency ceiling in milliseconds")
    parser.add_argument("--max-tokens", type=int, help="Maximum output tokens")
    parser.add_argument("--temperature", type=float, help="Sampling temperature")
    parser.add_argument("--system", default=DEFAULT_SYSTEM_PROMPT, help="System prompt")
    parser.add_argument("--stream", action="store_true", help="Stream the response as it arrives")
    parser.add_argument("--config", default="config.ini", help="Path to configuration file")
    return parser


async def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    context = create_app_context(config)

    task = TaskDescriptor(
        task_type=args.task_type,
        quality_tier=args.quality,
        preferred_provider=args.provider,
        preferred_model=args.model,
        max_cost=args.max_cost,
        max_latency_ms=args.max_latency_ms,
    )
    request = ChatRequest(
        messages=[
            ChatMessage(role="system", content=args.system),
            ChatMessage(role="user", content=args.prompt),
        ],
        max_output_tokens=args.max_tokens,
        temperature=args.temperature,
    )

    try:
        decision = context.ai_router.route_task(task)
        print(f"Routing: {decision.provider}/{decision.model_id} ({decision.reason}, confidence={decision.confidence})")

        if args.stream:
            stream = await context.ai_router.stream_chat(task, request)
            async with stream:
                async for fragment in stream:
                    print(fragment, end="", flush=True)
            print()
        else:
            response = await context.ai_router.chat(task, request)
            print(response.text)
            print(f"\nTokens: {response.input_token_count} in / {response.output_token_count} out")
            print(f"Cost: ${response.cost_estimate:.6f}")

            stats = context.ai_router.get_usage_stats()
            print(f"Total cost this session: ${stats['total_cost']:.6f}")
    except LLMRouterError as e:
        print(f"Error: [{e.classification}] {e.detail}", file=sys.stderr)
        return 1
    finally:
        await context.aclose()

    return 0


def main(argv=None) -> int:
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "WARNING").upper())
    args = build_arg_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
