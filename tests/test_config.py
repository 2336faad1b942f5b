"""Tests for configuration loading and application wiring."""

import pytest

from core.exceptions import ConfigurationError
from llm_providers import ClaudeProvider, OpenAIProvider, OpenRouterProvider
from llm_providers.factory import ProviderFactory, ProviderManager, create_provider_manager
from main import load_config, create_ai_router, create_app_context, build_arg_parser

SAMPLE_INI = """
[PROVIDER_CONFIGS]
anthropic_api_key = file-anthropic
openai_api_key =
openrouter_base_url = http://router.local/v1

[ROUTING_CONFIG]
request_timeout = 15
baseline_cost_per_call = 0.5
"""


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text(SAMPLE_INI)
    return str(path)


class TestLoadConfig:

    def test_missing_file_is_fine(self, tmp_path):
        config = load_config(str(tmp_path / "absent.ini"), environ={})

        assert set(config["provider_configs"]) == {"claude", "openai", "openrouter"}
        assert all(c["api_key"] is None for c in config["provider_configs"].values())
        assert config["routing"]["baseline_cost_per_call"] == 0.20
        assert config["provider_configs"]["openai"]["default_model"] == "gpt-4o"

    def test_file_values(self, config_file):
        config = load_config(config_file, environ={})
        providers = config["provider_configs"]

        assert providers["claude"]["api_key"] == "file-anthropic"
        assert providers["openai"]["api_key"] is None
        assert providers["openrouter"]["base_url"] == "http://router.local/v1"
        assert providers["claude"]["timeout"] == 15.0
        assert config["routing"]["baseline_cost_per_call"] == 0.5

    def test_environment_overrides_file(self, config_file):
        environ = {
            "ANTHROPIC_API_KEY": "env-anthropic",
            "OPENAI_API_KEY": "env-openai",
            "OPENAI_DEFAULT_MODEL": "gpt-4o-mini",
            "OPENROUTER_BASE_URL": "http://other.local/v1",
            "LLM_REQUEST_TIMEOUT": "5",
            "USAGE_BASELINE_COST_PER_CALL": "0.1",
        }
        config = load_config(config_file, environ=environ)
        providers = config["provider_configs"]

        assert providers["claude"]["api_key"] == "env-anthropic"
        assert providers["openai"]["api_key"] == "env-openai"
        assert providers["openai"]["default_model"] == "gpt-4o-mini"
        assert providers["openrouter"]["base_url"] == "http://other.local/v1"
        assert providers["openai"]["timeout"] == 5.0
        assert config["routing"]["baseline_cost_per_call"] == 0.1

    def test_invalid_number(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(str(tmp_path / "absent.ini"), environ={"LLM_REQUEST_TIMEOUT": "soon"})


class TestProviderFactory:

    def test_create_each_provider(self):
        assert isinstance(ProviderFactory.create_provider("claude", "k"), ClaudeProvider)
        assert isinstance(ProviderFactory.create_provider("OpenAI", "k"), OpenAIProvider)
        assert isinstance(ProviderFactory.create_provider("openrouter", "k"), OpenRouterProvider)

    def test_unknown_provider(self):
        with pytest.raises(ConfigurationError):
            ProviderFactory.create_provider("google", "k")

    def test_provider_info(self):
        info = ProviderFactory.get_provider_info("openai")
        assert info["api_key_env"] == "OPENAI_API_KEY"
        assert info["total_models"] == 4

    def test_manager_keeps_registration_order(self, tmp_path):
        config = load_config(str(tmp_path / "absent.ini"), environ={"OPENROUTER_API_KEY": "a", "ANTHROPIC_API_KEY": "b"})
        manager = create_provider_manager(config["provider_configs"])

        assert manager.list_providers() == ["claude", "openai", "openrouter"]
        assert [p.value for p in manager.available_providers()] == ["claude", "openrouter"]
        assert manager.get_provider("nope") is None

    def test_describe(self):
        manager = ProviderManager()
        manager.add_provider(OpenAIProvider("k"))

        description = manager.describe()

        assert description["openai"]["configured"] is True
        assert description["openai"]["default_model"] == "gpt-4o"
        models = description["openai"]["models"]
        assert models[0]["pricing"] == {"input": 0.0025, "output": 0.01}


class TestWiring:

    @pytest.mark.asyncio
    async def test_context_shares_components(self, tmp_path):
        config = load_config(str(tmp_path / "absent.ini"), environ={"OPENAI_API_KEY": "k"})
        context = create_app_context(config)

        assert context.ai_router.usage_tracker is context.usage_tracker
        assert context.ai_router.provider_manager is context.provider_manager
        assert context.dna_generator.ai_router is context.ai_router
        assert context.ai_router.get_available_providers() == ["openai"]
        await context.aclose()

    def test_baseline_from_config(self, config_file):
        router = create_ai_router(load_config(config_file, environ={}))
        assert router.usage_tracker.baseline_cost_per_call == 0.5

    def test_cli_arguments(self):
        args = build_arg_parser().parse_args(["write a parser", "--quality", "high", "--stream"])
        assert args.prompt == "write a parser"
        assert args.quality == "high"
        assert args.task_type == "code_generation"
        assert args.stream is True


class TestStartServer:

    def test_api_keys_detected(self):
        from start_server import check_api_keys
        assert check_api_keys({"OPENAI_API_KEY": "k", "ANTHROPIC_API_KEY": ""}) == ["openai"]

    def test_server_settings(self):
        from start_server import server_settings
        settings = server_settings({"PORT": "9000", "RELOAD": "false"})
        assert settings == {"host": "0.0.0.0", "port": 9000, "reload": False, "log_level": "info"}

    def test_missing_config_file_is_not_fatal(self, tmp_path):
        from start_server import check_config_file
        assert check_config_file(str(tmp_path / "config.ini")) is False
