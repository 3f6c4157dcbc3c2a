"""Dispatch facade: the single entry point for generate, chat and embeddings.

Switchboard holds the enabled-provider map loaded once from
configuration, resolves a provider name to a live adapter per call and
wraps every call with cache lookup, timing and one audit record.
Collaborators are injected; nothing here is a global.
"""

from __future__ import annotations

import copy
import hashlib
import json
import logging
import time
from collections.abc import Awaitable, Callable, Mapping, Sequence
from pathlib import Path
from typing import Any, TypeVar

import httpx

from switchboard.adapters.base import (
    BaseAdapter,
    ChatResult,
    EmbeddingEntry,
    GenerationOptions,
    Message,
    coerce_options,
)
from switchboard.adapters.registry import resolve_adapter
from switchboard.audit import AuditLogger, AuditSink
from switchboard.cache import FileCache, InMemoryCache, ResponseCache
from switchboard.errors import ProviderNotFoundError
from switchboard.models.config import ProviderConfig, SwitchboardConfig
from switchboard.models.interaction import OperationKind
from switchboard.storage.json_store import InteractionStore

logger = logging.getLogger("switchboard.dispatch")

T = TypeVar("T")


def _compact_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _md5(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def estimate_tokens(input_text: str, output_text: str) -> int:
    """Rough token count: one token per four characters of each text."""
    return len(input_text) // 4 + len(output_text) // 4


def fingerprint(
    prefix: str,
    operation: str,
    provider: str,
    input: Any,
    options: Mapping[str, Any],
) -> str:
    """Build the cache key for one (operation, provider, input, options) tuple.

    String input is hashed as-is; structured input is hashed as compact
    JSON. Options are always hashed as compact JSON.
    """
    raw_input = input if isinstance(input, str) else _compact_json(input)
    return f"{prefix}{operation}_{provider}_{_md5(raw_input)}_{_md5(_compact_json(dict(options)))}"


def _coerce_messages(messages: Sequence[Message | Mapping[str, Any]]) -> list[Message]:
    return [msg if isinstance(msg, Message) else Message.from_dict(msg) for msg in messages]


class Switchboard:
    """Route uniform AI calls to configured providers.

    Args:
        config: Project configuration holding the provider entries.
        cache: Response cache. Used only when ``config.cache.enabled``;
            an InMemoryCache is created if caching is enabled and none
            is given.
        audit: Receives one record per uncached call. None disables
            auditing.
        transport: Optional httpx transport handed to every adapter.
        user_id: Caller identity attached to audit records.
    """

    def __init__(
        self,
        config: SwitchboardConfig,
        cache: ResponseCache | None = None,
        audit: AuditSink | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        user_id: str | None = None,
    ) -> None:
        self.config = config
        self.cache = cache if cache is not None or not config.cache.enabled else InMemoryCache()
        self.audit = audit
        self.transport = transport
        self.user_id = user_id
        self._providers: dict[str, ProviderConfig] = {
            name: entry
            for name, entry in config.providers.items()
            if entry.adapter and entry.enabled
        }

    @classmethod
    def from_config(
        cls,
        config: SwitchboardConfig,
        project_root: Path,
        user_id: str | None = None,
    ) -> Switchboard:
        """Build a Switchboard with the default collaborators.

        Audit records go to the JSON interaction store under
        ``project_root`` when logging is enabled. When caching is enabled
        responses go to a FileCache in the same storage directory, so hits
        carry over between processes.
        """
        storage_root = project_root / config.logging.storage_dir
        audit = None
        if config.logging.enabled:
            store = InteractionStore(project_root, config.logging.storage_dir)
            audit = AuditLogger(store)
        cache = FileCache(storage_root / "cache") if config.cache.enabled else None
        return cls(config, cache=cache, audit=audit, user_id=user_id)

    @property
    def cache_enabled(self) -> bool:
        return self.config.cache.enabled and self.cache is not None

    def get_provider_names(self) -> list[str]:
        """Names of all enabled providers, in configuration order."""
        return list(self._providers)

    def provider(self, name: str | None = None) -> BaseAdapter:
        """Resolve a provider name (or the default) to a new adapter.

        The caller owns the returned adapter and should close it.

        Raises:
            ProviderNotFoundError: If the name has no enabled entry.
            AdapterNotFoundError: If the entry's adapter cannot be resolved.
            ConfigurationError: If the adapter rejects the entry's config.
        """
        name = name or self.config.default_provider
        entry = self._providers.get(name)
        if entry is None:
            raise ProviderNotFoundError(name)
        if entry.name is None:
            entry = entry.model_copy(update={"name": name})
        return resolve_adapter(entry.adapter or "", entry, transport=self.transport)

    async def generate(
        self,
        prompt: str,
        options: GenerationOptions | Mapping[str, Any] | None = None,
        provider: str | None = None,
    ) -> str:
        """Generate text for ``prompt`` with the named (or default) provider."""
        opts = coerce_options(options)

        async def call(adapter: BaseAdapter) -> str:
            return await adapter.generate(prompt, opts)

        return await self._dispatch(
            "generate",
            provider,
            input=prompt,
            options=opts,
            call=call,
            tokens=lambda result: estimate_tokens(prompt, result),
            serialize=lambda result: result,
            restore=lambda cached: cached,
        )

    async def chat(
        self,
        messages: Sequence[Message | Mapping[str, Any]],
        options: GenerationOptions | Mapping[str, Any] | None = None,
        provider: str | None = None,
    ) -> ChatResult:
        """Produce the next assistant turn for ``messages``.

        Messages may be Message objects or ``{role, content}`` mappings;
        mappings are validated here.
        """
        opts = coerce_options(options)
        conversation = _coerce_messages(messages)
        wire_messages = [msg.to_dict() for msg in conversation]

        async def call(adapter: BaseAdapter) -> ChatResult:
            return await adapter.chat(conversation, opts)

        def tokens(result: ChatResult) -> int:
            if result.usage.total_tokens > 0:
                return result.usage.total_tokens
            return estimate_tokens(_compact_json(wire_messages), _compact_json(result.to_dict()))

        return await self._dispatch(
            "chat",
            provider,
            input=wire_messages,
            options=opts,
            call=call,
            tokens=tokens,
            serialize=lambda result: result.to_dict(),
            restore=ChatResult.from_dict,
        )

    async def embeddings(
        self,
        input: str | Sequence[str],
        options: GenerationOptions | Mapping[str, Any] | None = None,
        provider: str | None = None,
    ) -> list[EmbeddingEntry]:
        """Embed one text or a batch of texts."""
        opts = coerce_options(options)
        payload: str | list[str] = input if isinstance(input, str) else list(input)
        joined = payload if isinstance(payload, str) else " ".join(payload)

        async def call(adapter: BaseAdapter) -> list[EmbeddingEntry]:
            return await adapter.embeddings(payload, opts)

        return await self._dispatch(
            "embeddings",
            provider,
            input=payload,
            options=opts,
            call=call,
            tokens=lambda result: estimate_tokens(joined, ""),
            serialize=lambda result: [entry.to_dict() for entry in result],
            restore=lambda cached: [EmbeddingEntry.from_dict(item) for item in cached],
        )

    async def _dispatch(
        self,
        operation: OperationKind,
        provider: str | None,
        *,
        input: Any,
        options: GenerationOptions,
        call: Callable[[BaseAdapter], Awaitable[T]],
        tokens: Callable[[T], int],
        serialize: Callable[[T], Any],
        restore: Callable[[Any], T],
    ) -> T:
        """Run one call through cache check, adapter, audit and cache store.

        The cache holds the serialized result; every hit is rebuilt with
        ``restore``, so callers never share a cached object.
        """
        provider_name = provider or self.config.default_provider
        option_values = options.to_dict()
        key = fingerprint(
            self.config.cache.prefix, operation, provider_name, input, option_values
        )

        if self.cache_enabled and self.cache.has(key):
            cached = self.cache.get(key)
            # None when the entry expired between has() and get()
            if cached is not None:
                logger.debug(
                    "Cache hit for %s on %s",
                    operation,
                    provider_name,
                    extra={"provider": provider_name, "operation": operation},
                )
                return restore(cached)

        start = time.perf_counter()
        try:
            async with self.provider(provider_name) as adapter:
                result = await call(adapter)
        except Exception as exc:
            duration = time.perf_counter() - start
            self._record(
                provider_name, operation, input, None, option_values, 0, duration,
                success=False, error=str(exc),
            )
            raise

        duration = time.perf_counter() - start
        output = serialize(result)
        self._record(
            provider_name, operation, input, output, option_values,
            tokens(result), duration, success=True,
        )

        if self.cache_enabled:
            self.cache.put(key, copy.deepcopy(output), self.config.cache.ttl)
        return result

    def _record(
        self,
        provider: str,
        operation: OperationKind,
        input: Any,
        output: Any,
        options: dict[str, Any],
        tokens_used: int,
        duration: float,
        success: bool,
        error: str | None = None,
    ) -> None:
        if self.audit is None:
            return
        try:
            self.audit.record(
                provider,
                operation,
                input,
                output,
                options,
                tokens_used,
                duration,
                success,
                error=error,
                user_id=self.user_id,
            )
        except Exception:
            logger.exception(
                "Audit sink failed for %s on %s",
                operation,
                provider,
                extra={"provider": provider, "operation": operation},
            )
