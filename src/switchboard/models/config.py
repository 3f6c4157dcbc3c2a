"""Configuration models for switchboard.

Captures switchboard.yaml fields with sensible defaults: the named
provider entries, the default provider, and the cache, logging and
rate-limiting settings of the collaborators around the dispatch core.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

CONFIG_FILENAME = "switchboard.yaml"
STORAGE_DIRNAME = ".switchboard"

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


class ProviderConfig(BaseModel):
    """Settings for one named provider instance.

    Frozen once built: adapters read it but never change it. Fields left
    unset fall back to the adapter's hard-coded defaults.
    """

    model_config = {"extra": "forbid", "frozen": True}

    name: str | None = None
    adapter: str | None = None
    api_key: str | None = None
    api_base_url: str | None = None
    model: str | None = None
    embedding_model: str | None = None
    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    system_prompt: str | None = None
    enabled: bool = True
    timeout: float = Field(default=30.0, gt=0)
    connect_timeout: float = Field(default=10.0, gt=0)
    anthropic_version: str | None = None
    organization: str | None = None


class CacheConfig(BaseModel):
    """Response cache settings. Caching is off unless enabled."""

    model_config = {"extra": "forbid"}

    enabled: bool = False
    ttl: int = Field(default=60 * 24, ge=1)
    prefix: str = "switchboard_"


class LoggingConfig(BaseModel):
    """Audit logging and log output settings."""

    model_config = {"extra": "forbid"}

    enabled: bool = False
    level: str = "INFO"
    json_output: bool = False
    storage_dir: str = STORAGE_DIRNAME


class RateLimitConfig(BaseModel):
    """Sliding-window limits applied per caller and provider."""

    model_config = {"extra": "forbid"}

    enabled: bool = False
    max_requests: int = Field(default=60, ge=1)
    decay_minutes: int = Field(default=1, ge=1)


class SwitchboardConfig(BaseModel):
    """Project-level configuration loaded from switchboard.yaml."""

    model_config = {"extra": "forbid"}

    default_provider: str = "openai"
    providers: dict[str, ProviderConfig] = Field(default_factory=dict)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    rate_limiting: RateLimitConfig = Field(default_factory=RateLimitConfig)


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def expand_env(value: Any) -> Any:
    """Recursively expand ``${VAR}`` and ``${VAR:-default}`` in strings.

    Unset variables without a default expand to the empty string.
    Non-string scalars are returned unchanged.
    """
    if isinstance(value, str):
        return _ENV_PATTERN.sub(
            lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""),
            value,
        )
    if isinstance(value, dict):
        return {key: expand_env(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_env(item) for item in value]
    return value


def default_config() -> SwitchboardConfig:
    """Build the builtin configuration from environment variables.

    Mirrors the shipped defaults: OpenAI enabled, Anthropic and Gemini
    disabled unless their SWITCHBOARD_*_ENABLED variable says otherwise.
    """
    env = os.environ.get
    providers = {
        "openai": ProviderConfig(
            adapter="openai",
            enabled=_parse_bool(env("SWITCHBOARD_OPENAI_ENABLED"), True),
            api_key=env("OPENAI_API_KEY"),
            api_base_url=env("OPENAI_API_BASE_URL"),
            organization=env("OPENAI_ORGANIZATION"),
            model=env("OPENAI_MODEL", "gpt-4o"),
            embedding_model=env("OPENAI_EMBEDDING_MODEL", "text-embedding-3-small"),
        ),
        "anthropic": ProviderConfig(
            adapter="anthropic",
            enabled=_parse_bool(env("SWITCHBOARD_ANTHROPIC_ENABLED"), False),
            api_key=env("ANTHROPIC_API_KEY"),
            api_base_url=env("ANTHROPIC_API_BASE_URL"),
            model=env("ANTHROPIC_MODEL", "claude-3-opus-20240229"),
            system_prompt=env("ANTHROPIC_SYSTEM_PROMPT"),
        ),
        "gemini": ProviderConfig(
            adapter="gemini",
            enabled=_parse_bool(env("SWITCHBOARD_GEMINI_ENABLED"), False),
            api_key=env("GEMINI_API_KEY"),
            api_base_url=env("GEMINI_API_BASE_URL"),
            model=env("GEMINI_MODEL", "gemini-1.5-pro"),
            embedding_model=env("GEMINI_EMBEDDING_MODEL", "embedding-001"),
        ),
    }
    return SwitchboardConfig(
        default_provider=env("SWITCHBOARD_DEFAULT_PROVIDER", "openai"),
        providers=providers,
        cache=CacheConfig(enabled=_parse_bool(env("SWITCHBOARD_CACHE_ENABLED"), False)),
        logging=LoggingConfig(enabled=_parse_bool(env("SWITCHBOARD_LOGGING_ENABLED"), False)),
    )


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default: cwd) looking for switchboard.yaml or .switchboard/.

    Args:
        start: Starting path (file or directory). Defaults to cwd.

    Returns:
        Path to the directory containing switchboard.yaml or .switchboard/,
        or cwd if neither is found.
    """
    current = (start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent
    while current != current.parent:
        if (current / CONFIG_FILENAME).exists() or (current / STORAGE_DIRNAME).exists():
            return current
        current = current.parent
    return Path.cwd()


def load_config(project_root: Path | None = None) -> SwitchboardConfig:
    """Load SwitchboardConfig from switchboard.yaml.

    Loads a ``.env`` file first so ``${VAR}`` references resolve. Falls
    back to :func:`default_config` when no config file exists.

    Args:
        project_root: Directory holding switchboard.yaml. If None,
            uses find_project_root() to locate it.

    Returns:
        Validated SwitchboardConfig instance.
    """
    from dotenv import load_dotenv

    if project_root is None:
        project_root = find_project_root()
    load_dotenv(project_root / ".env")

    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        return default_config()
    import yaml

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if raw is None:
        return default_config()
    return SwitchboardConfig.model_validate(expand_env(raw))
