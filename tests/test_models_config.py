"""Tests for switchboard.models.config - config models, env expansion and loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from switchboard.models.config import (
    CacheConfig,
    ProviderConfig,
    SwitchboardConfig,
    default_config,
    expand_env,
    find_project_root,
    load_config,
)

_ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GEMINI_API_KEY",
    "SWITCHBOARD_DEFAULT_PROVIDER",
    "SWITCHBOARD_OPENAI_ENABLED",
    "SWITCHBOARD_ANTHROPIC_ENABLED",
    "SWITCHBOARD_GEMINI_ENABLED",
    "SWITCHBOARD_CACHE_ENABLED",
    "SWITCHBOARD_LOGGING_ENABLED",
    "OPENAI_MODEL",
    "SB_TEST_KEY",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        # setenv first so values written by load_dotenv are undone afterwards
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


class TestProviderConfig:
    """Test ProviderConfig model."""

    def test_defaults(self):
        """ProviderConfig has sensible defaults."""
        config = ProviderConfig()
        assert config.adapter is None
        assert config.enabled is True
        assert config.timeout == 30.0
        assert config.connect_timeout == 10.0
        assert config.model is None

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError, match="extra_forbidden"):
            ProviderConfig.model_validate({"api_secret": "x"})

    def test_frozen(self):
        config = ProviderConfig(api_key="k")
        with pytest.raises(ValidationError):
            config.api_key = "other"

    def test_temperature_bounds(self):
        with pytest.raises(ValidationError):
            ProviderConfig(temperature=3.0)


class TestSwitchboardConfig:
    """Test the project-level model."""

    def test_defaults(self):
        config = SwitchboardConfig()
        assert config.default_provider == "openai"
        assert config.providers == {}
        assert config.cache.enabled is False
        assert config.cache.ttl == 1440
        assert config.cache.prefix == "switchboard_"
        assert config.logging.enabled is False
        assert config.rate_limiting.max_requests == 60
        assert config.rate_limiting.decay_minutes == 1

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError, match="extra_forbidden"):
            SwitchboardConfig.model_validate({"unknown_field": True})

    def test_nested_validation(self):
        config = SwitchboardConfig.model_validate(
            {
                "default_provider": "claude",
                "providers": {"claude": {"adapter": "anthropic", "api_key": "k"}},
                "cache": {"enabled": True, "ttl": 10},
            }
        )
        assert config.providers["claude"].adapter == "anthropic"
        assert config.cache == CacheConfig(enabled=True, ttl=10)


class TestExpandEnv:
    """Test ${VAR} and ${VAR:-default} expansion."""

    def test_expands_set_variable(self, monkeypatch):
        monkeypatch.setenv("SB_TEST_KEY", "secret")
        assert expand_env("key=${SB_TEST_KEY}") == "key=secret"

    def test_default_used_when_unset(self):
        assert expand_env("${SB_TEST_KEY:-fallback}") == "fallback"

    def test_unset_without_default_is_empty(self):
        assert expand_env("${SB_TEST_KEY}") == ""

    def test_recurses_into_containers(self, monkeypatch):
        monkeypatch.setenv("SB_TEST_KEY", "v")
        data = {"a": ["${SB_TEST_KEY}", 3], "b": {"c": "${SB_TEST_KEY}"}, "d": True}
        assert expand_env(data) == {"a": ["v", 3], "b": {"c": "v"}, "d": True}


class TestDefaultConfig:
    """Test the environment-driven builtin configuration."""

    def test_only_openai_enabled_by_default(self):
        config = default_config()
        assert set(config.providers) == {"openai", "anthropic", "gemini"}
        assert config.providers["openai"].enabled is True
        assert config.providers["anthropic"].enabled is False
        assert config.providers["gemini"].enabled is False

    def test_reads_keys_and_flags(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
        monkeypatch.setenv("SWITCHBOARD_GEMINI_ENABLED", "true")
        monkeypatch.setenv("SWITCHBOARD_DEFAULT_PROVIDER", "gemini")
        monkeypatch.setenv("SWITCHBOARD_CACHE_ENABLED", "1")
        config = default_config()
        assert config.providers["openai"].api_key == "sk-env"
        assert config.providers["gemini"].enabled is True
        assert config.default_provider == "gemini"
        assert config.cache.enabled is True

    def test_model_defaults(self):
        config = default_config()
        assert config.providers["openai"].model == "gpt-4o"
        assert config.providers["gemini"].embedding_model == "embedding-001"


class TestFindProjectRoot:
    """Test find_project_root function."""

    def test_finds_config_file(self, tmp_path):
        (tmp_path / "switchboard.yaml").write_text("default_provider: openai\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path.resolve()

    def test_finds_storage_dir(self, tmp_path):
        (tmp_path / ".switchboard").mkdir()
        assert find_project_root(tmp_path) == tmp_path.resolve()

    def test_falls_back_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert find_project_root(tmp_path / "missing-dir") == Path.cwd()


class TestLoadConfig:
    """Test load_config."""

    def test_no_file_uses_default_config(self, tmp_path):
        config = load_config(tmp_path)
        assert "openai" in config.providers

    def test_loads_yaml_with_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("SB_TEST_KEY", "sk-yaml")
        (tmp_path / "switchboard.yaml").write_text(
            "default_provider: primary\n"
            "providers:\n"
            "  primary:\n"
            "    adapter: openai\n"
            "    api_key: ${SB_TEST_KEY}\n"
            "    model: ${OPENAI_MODEL:-gpt-4o-mini}\n"
            "cache:\n"
            "  enabled: true\n"
        )
        config = load_config(tmp_path)
        assert config.default_provider == "primary"
        assert config.providers["primary"].api_key == "sk-yaml"
        assert config.providers["primary"].model == "gpt-4o-mini"
        assert config.cache.enabled is True

    def test_dotenv_is_loaded(self, tmp_path):
        (tmp_path / ".env").write_text("SB_TEST_KEY=from-dotenv\n")
        (tmp_path / "switchboard.yaml").write_text(
            "providers:\n  openai:\n    adapter: openai\n    api_key: ${SB_TEST_KEY}\n"
        )
        config = load_config(tmp_path)
        assert config.providers["openai"].api_key == "from-dotenv"

    def test_empty_file_uses_default_config(self, tmp_path):
        (tmp_path / "switchboard.yaml").write_text("")
        assert set(load_config(tmp_path).providers) == {"openai", "anthropic", "gemini"}

    def test_invalid_file_raises(self, tmp_path):
        (tmp_path / "switchboard.yaml").write_text("bogus: 1\n")
        with pytest.raises(ValidationError):
            load_config(tmp_path)
