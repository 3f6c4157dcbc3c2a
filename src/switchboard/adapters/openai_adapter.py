"""OpenAI adapter for the switchboard dispatch layer.

Speaks the OpenAI-compatible REST API: bearer-token auth, the
chat/completions endpoint for generate and chat, and the embeddings
endpoint. Responses are already close to the uniform shape.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from switchboard.adapters.base import (
    BaseAdapter,
    Capabilities,
    ChatResult,
    EmbeddingEntry,
    GenerationOptions,
    Message,
    RequestSpec,
    TokenUsage,
    coerce_options,
    first_item,
    normalize_input,
)
from switchboard.models.config import ProviderConfig


class OpenAIAdapter(BaseAdapter):
    """Adapter for the OpenAI chat completion and embeddings APIs.

    Also works against OpenAI-compatible servers by pointing
    ``api_base_url`` at them.
    """

    default_base_url = "https://api.openai.com/v1"
    default_model = "gpt-4o"
    default_embedding_model = "text-embedding-3-small"
    capabilities = Capabilities(generate=True, chat=True, embeddings=True)

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
        """Bearer-token auth, plus the organization header when configured."""
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }
        if self.config.organization:
            headers["OpenAI-Organization"] = self.config.organization
        headers.update(extra_headers)
        return RequestSpec(headers=headers, json=payload or None)

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
        """Send the conversation unchanged to chat/completions.

        Args:
            messages: Conversation history as uniform Message objects.
            options: Optional per-call overrides.

        Returns:
            ChatResult built from the first choice, the reported usage
            and the response id.
        """
        options = coerce_options(options)
        model, temperature, max_tokens = self.resolve_generation(options)

        payload: dict[str, Any] = {
            "model": model,
            "messages": [msg.to_dict() for msg in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        # Pass through provider-specific extras
        payload.update(options.extras)

        response = await self.execute("POST", "chat/completions", payload)

        reply = first_item(response.get("choices")).get("message")
        if not isinstance(reply, dict):
            reply = {}

        return ChatResult(
            message=Message(
                role=reply.get("role") or "assistant",
                content=reply.get("content") or "",
            ),
            usage=self._usage(response.get("usage")),
            id=response.get("id"),
        )

    async def embeddings(
        self,
        input: str | Sequence[str],
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> list[EmbeddingEntry]:
        """Embed all texts with one batched request to the embeddings endpoint."""
        options = coerce_options(options)
        payload: dict[str, Any] = {
            "model": self.resolve_embedding_model(options),
            "input": normalize_input(input),
        }
        payload.update(options.extras)

        response = await self.execute("POST", "embeddings", payload)

        data = response.get("data")
        if not isinstance(data, list):
            return []
        return [
            EmbeddingEntry(
                embedding=list(entry.get("embedding") or []),
                index=entry.get("index", position),
                object=entry.get("object", "embedding"),
            )
            for position, entry in enumerate(data)
            if isinstance(entry, dict)
        ]

    @staticmethod
    def _usage(usage: Any) -> TokenUsage:
        """Copy the provider's usage object, computing a missing total."""
        if not isinstance(usage, dict):
            return TokenUsage()
        result = TokenUsage.from_counts(
            usage.get("prompt_tokens", 0), usage.get("completion_tokens", 0)
        )
        total = usage.get("total_tokens")
        if isinstance(total, int) and total >= 0:
            result.total_tokens = total
        return result
