"""Anthropic adapter for the switchboard dispatch layer.

Converts uniform Messages to the Anthropic messages format, where the
system prompt travels as a separate top-level field, and maps the
response back into a ChatResult.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from switchboard.adapters.base import (
    BaseAdapter,
    Capabilities,
    ChatResult,
    GenerationOptions,
    Message,
    RequestSpec,
    TokenUsage,
    coerce_options,
    first_item,
)
from switchboard.models.config import ProviderConfig

DEFAULT_ANTHROPIC_VERSION = "2023-06-01"


class AnthropicAdapter(BaseAdapter):
    """Adapter for the Anthropic messages API.

    Anthropic exposes no embeddings endpoint, so this adapter declares
    no embeddings capability and inherits the unsupported default.
    """

    default_base_url = "https://api.anthropic.com/v1"
    default_model = "claude-3-opus-20240229"
    capabilities = Capabilities(generate=True, chat=True, embeddings=False)

    def __init__(
        self,
        config: ProviderConfig | Mapping[str, Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(config, transport)
        self.require_config(["api_key"])

    def build_request_options(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any],
        extra_headers: dict[str, str],
    ) -> RequestSpec:
        """Custom-header auth plus the pinned API version."""
        headers = {
            "x-api-key": self.config.api_key or "",
            "anthropic-version": self.config.anthropic_version or DEFAULT_ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }
        headers.update(extra_headers)
        return RequestSpec(headers=headers, json=payload or None)

    def _extract_system(
        self, messages: Sequence[Message]
    ) -> tuple[str | None, list[Message]]:
        """Split the first system message off the conversation.

        Later system messages are dropped, as are roles Anthropic does
        not accept in its messages array.

        Args:
            messages: Conversation history as uniform Message objects.

        Returns:
            Tuple of (first system content or None, user/assistant messages).
        """
        system_prompt: str | None = None
        remaining: list[Message] = []
        for msg in messages:
            if msg.role == "system":
                if system_prompt is None:
                    system_prompt = msg.content
            elif msg.role in ("user", "assistant"):
                remaining.append(msg)
        return system_prompt, remaining

    def _resolve_system_prompt(
        self, options: GenerationOptions, from_messages: str | None
    ) -> str | None:
        """Explicit option > in-conversation system message > configured default."""
        return options.system or from_messages or self.config.system_prompt or None

    async def generate(
        self,
        prompt: str,
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> str:
        """Wrap the prompt as a single user message and return the reply text."""
        result = await self.chat([Message(role="user", content=prompt)], options)
        return result.message.content

    async def chat(
        self,
        messages: Sequence[Message],
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> ChatResult:
        """Send a conversation to the messages endpoint.

        Args:
            messages: Conversation history as uniform Message objects.
            options: Optional per-call overrides; ``system`` takes
                precedence over any system message in the conversation.

        Returns:
            ChatResult with input/output token counts renamed to the
            uniform prompt/completion fields.
        """
        options = coerce_options(options)
        model, temperature, max_tokens = self.resolve_generation(options)

        in_conversation, remaining = self._extract_system(messages)
        system_prompt = self._resolve_system_prompt(options, in_conversation)

        payload: dict[str, Any] = {
            "model": model,
            "messages": [msg.to_dict() for msg in remaining],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        if system_prompt:
            payload["system"] = system_prompt

        # Pass through provider-specific extras
        payload.update(options.extras)

        response = await self.execute("POST", "messages", payload)

        block = first_item(response.get("content"))
        role = "tool_use" if block and block.get("type") != "text" else "assistant"

        usage = response.get("usage")
        if not isinstance(usage, dict):
            usage = {}

        return ChatResult(
            message=Message(role=role, content=block.get("text") or ""),
            usage=TokenUsage.from_counts(
                usage.get("input_tokens", 0), usage.get("output_tokens", 0)
            ),
            id=response.get("id"),
        )
