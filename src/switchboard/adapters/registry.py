"""Adapter resolution: identifier + provider config -> live adapter.

An identifier is one of:

- a builtin adapter class name ("OpenAIAdapter"),
- a fully-qualified dotted path ("my.module.MyAdapter"),
- a short alias ("openai", "open_ai", "gemini"), which is studly-cased,
  suffixed with "Adapter" and matched case-insensitively against the
  builtin class names.
"""

from __future__ import annotations

import importlib
import re
from collections.abc import Mapping
from typing import Any

import httpx

from switchboard.adapters.base import BaseAdapter
from switchboard.errors import AdapterNotFoundError
from switchboard.models.config import ProviderConfig

# Builtin adapter class names to their fully-qualified class paths.
ADAPTER_CLASSES: dict[str, str] = {
    "OpenAIAdapter": "switchboard.adapters.openai_adapter.OpenAIAdapter",
    "AnthropicAdapter": "switchboard.adapters.anthropic_adapter.AnthropicAdapter",
    "GeminiAdapter": "switchboard.adapters.gemini_adapter.GeminiAdapter",
}

_WORD_SEPARATORS = re.compile(r"[-_\s]+")


def studly(value: str) -> str:
    """Convert ``open_ai`` / ``open-ai`` / ``open ai`` to ``OpenAi``."""
    return "".join(part[:1].upper() + part[1:] for part in _WORD_SEPARATORS.split(value) if part)


def _import_class(dotted_path: str, identifier: str) -> type:
    module_path, _, class_name = dotted_path.rpartition(".")
    if not module_path or not class_name:
        raise AdapterNotFoundError(identifier)
    try:
        module = importlib.import_module(module_path)
    except ImportError as exc:
        raise AdapterNotFoundError(identifier) from exc
    try:
        return getattr(module, class_name)
    except AttributeError:
        raise AdapterNotFoundError(identifier) from None


def resolve_adapter_class(identifier: str) -> type[BaseAdapter]:
    """Resolve an adapter identifier to its class without instantiating it.

    Raises:
        AdapterNotFoundError: If no class matches, or the match is not a
            BaseAdapter subclass.
    """
    if identifier in ADAPTER_CLASSES:
        dotted_path = ADAPTER_CLASSES[identifier]
    elif "." in identifier:
        dotted_path = identifier
    else:
        wanted = (studly(identifier) + "Adapter").lower()
        matches = [path for name, path in ADAPTER_CLASSES.items() if name.lower() == wanted]
        if not matches:
            raise AdapterNotFoundError(identifier)
        dotted_path = matches[0]

    cls = _import_class(dotted_path, identifier)
    if not isinstance(cls, type) or not issubclass(cls, BaseAdapter):
        raise AdapterNotFoundError(identifier)
    return cls


def resolve_adapter(
    identifier: str,
    config: ProviderConfig | Mapping[str, Any] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> BaseAdapter:
    """Resolve an adapter identifier and instantiate it with ``config``.

    Args:
        identifier: Builtin class name, dotted path or short alias.
        config: Provider configuration handed to the adapter.
        transport: Optional httpx transport, used by tests.

    Returns:
        A configured adapter instance.

    Raises:
        AdapterNotFoundError: If the identifier cannot be resolved.
        ConfigurationError: If the adapter rejects the config.
    """
    cls = resolve_adapter_class(identifier)
    return cls(config, transport=transport)


class AdapterRegistry:
    """Runtime name -> adapter mapping for adapters registered by callers.

    Lookup through :func:`resolve_adapter` does not consult this
    registry; it only records what callers have registered.
    """

    def __init__(self) -> None:
        self._adapters: dict[str, type[BaseAdapter] | str] = {}

    def register_adapter(self, name: str, adapter: type[BaseAdapter] | str) -> None:
        """Register an adapter class (or its dotted path) under ``name``."""
        self._adapters[name] = adapter

    def get_adapters(self) -> dict[str, type[BaseAdapter] | str]:
        """Return a copy of all registered adapters."""
        return dict(self._adapters)
