"""switchboard adapters - provider adapter abstraction layer.

Re-exports the BaseAdapter ABC, the uniform message/result dataclasses,
the adapter resolver and the builtin adapter implementations.
"""

from switchboard.adapters.anthropic_adapter import AnthropicAdapter
from switchboard.adapters.base import (
    BaseAdapter,
    Capabilities,
    ChatResult,
    EmbeddingEntry,
    GenerationOptions,
    Message,
    RequestSpec,
    TokenUsage,
)
from switchboard.adapters.gemini_adapter import GeminiAdapter
from switchboard.adapters.openai_adapter import OpenAIAdapter
from switchboard.adapters.registry import AdapterRegistry, resolve_adapter

__all__ = [
    "AdapterRegistry",
    "AnthropicAdapter",
    "BaseAdapter",
    "Capabilities",
    "ChatResult",
    "EmbeddingEntry",
    "GenerationOptions",
    "GeminiAdapter",
    "Message",
    "OpenAIAdapter",
    "RequestSpec",
    "TokenUsage",
    "resolve_adapter",
]
