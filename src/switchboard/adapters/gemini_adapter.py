"""Gemini adapter for the switchboard dispatch layer.

Gemini authenticates with a ``key`` query parameter, addresses the
model in the URL path and has no system role: system messages are
folded into the first user turn. Assistant turns use the ``model`` role.
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


def _first_text(response: dict[str, Any]) -> tuple[str, Any]:
    """Return (first candidate's first text part, candidate index)."""
    candidate = first_item(response.get("candidates"))
    content = candidate.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    text = first_item(parts).get("text")
    return (text if isinstance(text, str) else ""), candidate.get("index")


class GeminiAdapter(BaseAdapter):
    """Adapter for the Google Gemini generateContent and embedding APIs."""

    default_base_url = "https://generativelanguage.googleapis.com/v1"
    default_model = "gemini-1.5-pro"
    default_embedding_model = "embedding-001"
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
        """The API key travels as the ``key`` query parameter."""
        headers = {"Content-Type": "application/json"}
        headers.update(extra_headers)
        return RequestSpec(
            headers=headers,
            params={"key": self.config.api_key or ""},
            json=payload or None,
        )

    def _generation_config(self, options: GenerationOptions) -> tuple[str, dict[str, Any]]:
        """Resolve the model and build ``generationConfig`` with extras merged in."""
        model, temperature, max_tokens = self.resolve_generation(options)
        generation_config: dict[str, Any] = {
            "temperature": temperature,
            "maxOutputTokens": max_tokens,
        }
        generation_config.update(options.extras)
        return model, generation_config

    def _format_messages(self, messages: Sequence[Message]) -> list[dict[str, Any]]:
        """Convert uniform Messages to Gemini ``contents``.

        All system messages are joined with newlines, in order, and
        prepended (followed by a blank line) to the first user message.
        Assistant turns become ``model``; every other role is sent as
        ``user``.
        """
        system_parts = [msg.content for msg in messages if msg.role == "system"]
        system_text = "\n".join(system_parts)

        contents: list[dict[str, Any]] = []
        pending_system = bool(system_text)
        for msg in messages:
            if msg.role == "system":
                continue
            role = "model" if msg.role == "assistant" else "user"
            text = msg.content
            if role == "user" and pending_system:
                text = f"{system_text}\n\n{text}"
                pending_system = False
            contents.append({"role": role, "parts": [{"text": text}]})
        return contents

    async def generate(
        self,
        prompt: str,
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> str:
        """Send a single-part prompt to generateContent."""
        options = coerce_options(options)
        model, generation_config = self._generation_config(options)

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        response = await self.execute("POST", f"models/{model}:generateContent", payload)

        text, _ = _first_text(response)
        return text

    async def chat(
        self,
        messages: Sequence[Message],
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> ChatResult:
        """Send a formatted conversation to generateContent.

        Gemini returns no response id; the responding candidate's index
        stands in for it.
        """
        options = coerce_options(options)
        model, generation_config = self._generation_config(options)

        payload = {
            "contents": self._format_messages(messages),
            "generationConfig": generation_config,
        }
        response = await self.execute("POST", f"models/{model}:generateContent", payload)

        text, index = _first_text(response)
        metadata = response.get("usageMetadata")
        if not isinstance(metadata, dict):
            metadata = {}

        return ChatResult(
            message=Message(role="assistant", content=text),
            usage=TokenUsage.from_counts(
                metadata.get("promptTokenCount", 0),
                metadata.get("candidatesTokenCount", 0),
            ),
            id=index,
        )

    async def embeddings(
        self,
        input: str | Sequence[str],
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> list[EmbeddingEntry]:
        """Embed all texts with one batchEmbedContents request.

        An empty batch returns [] without contacting the provider.
        """
        options = coerce_options(options)
        texts = normalize_input(input)
        if not texts:
            return []

        model = self.resolve_embedding_model(options)
        model_path = f"models/{model}"
        payload = {
            "requests": [
                {"model": model_path, "content": {"parts": [{"text": text}]}}
                for text in texts
            ]
        }
        response = await self.execute("POST", f"{model_path}:batchEmbedContents", payload)

        embeddings = response.get("embeddings")
        if not isinstance(embeddings, list):
            return []
        return [
            EmbeddingEntry(
                embedding=list(item.get("values") or []) if isinstance(item, dict) else [],
                index=index,
            )
            for index, item in enumerate(embeddings)
        ]
