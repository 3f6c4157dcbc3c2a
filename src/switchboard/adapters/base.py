"""BaseAdapter ABC and the uniform message/result dataclasses.

All provider adapters (OpenAI, Anthropic, Gemini, custom) subclass
BaseAdapter and implement only the translation between the uniform
contract and their provider's wire format. Request execution, error
classification and introspection live here.

The dataclasses define the universal types that flow between callers,
the dispatch facade and the adapters. They are plain dataclasses (not
Pydantic) to keep the per-call path light.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import asdict, dataclass, field, fields
from typing import Any, ClassVar

import httpx

from switchboard.errors import (
    ApiError,
    ApiTimeoutError,
    AuthenticationError,
    BadRequestError,
    ConfigurationError,
    RateLimitError,
    ServerError,
    SwitchboardError,
    UnsupportedCapabilityError,
)
from switchboard.models.config import ProviderConfig

logger = logging.getLogger("switchboard.adapters")

ROLES: tuple[str, ...] = ("system", "user", "assistant")

# HTTP status -> error class. Unlisted statuses classify as ApiError.
STATUS_ERRORS: dict[int, type[SwitchboardError]] = {
    400: BadRequestError,
    422: BadRequestError,
    401: AuthenticationError,
    403: AuthenticationError,
    429: RateLimitError,
    500: ServerError,
    502: ServerError,
    503: ServerError,
    504: ServerError,
}


@dataclass
class Message:
    """A single turn in a conversation.

    Roles: system, user, assistant. Replies normalized from a provider
    may carry another role (Anthropic reports ``tool_use`` for
    non-text first blocks).
    """

    role: str
    content: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Message:
        """Build a Message from a ``{role, content}`` mapping.

        Raises:
            ValueError: If the role is outside the closed role set or
                the content is not a string.
        """
        role = data.get("role")
        if role not in ROLES:
            raise ValueError(
                f"Invalid message role {role!r}. Expected one of: {', '.join(ROLES)}."
            )
        content = data.get("content")
        if not isinstance(content, str):
            raise ValueError(f"Message content must be a string, got {type(content).__name__}.")
        return cls(role=role, content=content)

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class TokenUsage:
    """Token usage counts reported for a single call."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_counts(cls, prompt_tokens: Any, completion_tokens: Any) -> TokenUsage:
        """Build usage from two counts, computing the total as their sum."""
        prompt = _as_count(prompt_tokens)
        completion = _as_count(completion_tokens)
        return cls(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=prompt + completion,
        )


@dataclass
class ChatResult:
    """Uniform output of a chat call.

    ``id`` is the provider-assigned identifier when one exists. Gemini
    has none and reports the responding candidate's index instead.
    """

    message: Message
    usage: TokenUsage = field(default_factory=TokenUsage)
    id: str | int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ChatResult:
        """Rebuild a result produced by :meth:`to_dict`."""
        message = data.get("message") or {}
        usage = data.get("usage") or {}
        return cls(
            message=Message(role=message.get("role", "assistant"), content=message.get("content", "")),
            usage=TokenUsage(
                prompt_tokens=_as_count(usage.get("prompt_tokens")),
                completion_tokens=_as_count(usage.get("completion_tokens")),
                total_tokens=_as_count(usage.get("total_tokens")),
            ),
            id=data.get("id"),
        )


@dataclass
class EmbeddingEntry:
    """One embedding vector, positioned at ``index`` in the input batch."""

    embedding: list[float]
    index: int
    object: str = "embedding"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EmbeddingEntry:
        return cls(
            embedding=list(data.get("embedding") or []),
            index=data.get("index", 0),
            object=data.get("object", "embedding"),
        )


@dataclass
class GenerationOptions:
    """Sparse per-call overrides.

    Any field left as None falls back to the provider config and then
    to the adapter's hard-coded default. ``extras`` holds
    provider-specific keys that are merged into the outbound payload.
    """

    model: str | None = None
    temperature: float | None = None
    max_tokens: int | None = None
    system: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> GenerationOptions:
        """Build options from a flat mapping; unknown keys go to extras."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)} - {"extras"}
        values = {key: value for key, value in data.items() if key in known}
        extras = dict(data.get("extras") or {})
        extras.update(
            {key: value for key, value in data.items() if key not in known and key != "extras"}
        )
        return cls(**values, extras=extras)

    def to_dict(self) -> dict[str, Any]:
        """Return only the fields that were set, with extras flattened in."""
        result: dict[str, Any] = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "extras" and getattr(self, f.name) is not None
        }
        result.update(self.extras)
        return result


@dataclass(frozen=True)
class Capabilities:
    """Statically declared operations an adapter implements."""

    generate: bool = True
    chat: bool = True
    embeddings: bool = True

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)


@dataclass
class RequestSpec:
    """Provider-specific pieces of one outbound HTTP request."""

    headers: dict[str, str]
    params: dict[str, str] = field(default_factory=dict)
    json: dict[str, Any] | None = None


def coerce_options(
    options: GenerationOptions | Mapping[str, Any] | None,
) -> GenerationOptions:
    """Accept GenerationOptions, a plain mapping, or None."""
    if isinstance(options, GenerationOptions):
        return options
    return GenerationOptions.from_mapping(options)


def resolve_setting(option_value: Any, config_value: Any, default: Any) -> Any:
    """Apply the ``call option > adapter config > hard-coded default`` precedence."""
    if option_value is not None:
        return option_value
    if config_value is not None:
        return config_value
    return default


def normalize_input(value: str | Sequence[str]) -> list[str]:
    """Wrap a single string as a one-element list."""
    if isinstance(value, str):
        return [value]
    return list(value)


def join_url(base_url: str, endpoint: str) -> str:
    """Join base URL and endpoint with exactly one separating slash."""
    return base_url.rstrip("/") + "/" + endpoint.lstrip("/")


def first_item(value: Any) -> dict[str, Any]:
    """Return the first element of a list if it is a dict, else {}."""
    if isinstance(value, list) and value and isinstance(value[0], dict):
        return value[0]
    return {}


def decode_json_body(content: bytes) -> dict[str, Any]:
    """Decode a response body, yielding {} for empty, malformed or non-object JSON."""
    if not content:
        return {}
    try:
        data = json.loads(content)
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def extract_error_message(body: Mapping[str, Any], fallback: str) -> str:
    """Pick the most specific error text a provider put in its error body.

    Checks ``error.message``, then ``message``, then ``error`` when it
    is a plain string. Falls back to the transport error text.
    """
    error = body.get("error")
    if isinstance(error, dict) and error.get("message") is not None:
        return str(error["message"])
    if body.get("message") is not None:
        return str(body["message"])
    if isinstance(error, str):
        return error
    return fallback


def classify_error(adapter_name: str, exc: httpx.HTTPError) -> SwitchboardError:
    """Map an httpx failure to exactly one error kind.

    Args:
        adapter_name: Short adapter name used to prefix the message.
        exc: The transport or HTTP status exception.

    Returns:
        The classified error, with ``exc`` chained as its cause.
    """
    if isinstance(exc, (httpx.TimeoutException, httpx.ConnectError)):
        return ApiTimeoutError(f"{adapter_name} API Connection Timeout: {exc}", 0, exc)

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        body = decode_json_body(exc.response.content)
        text = extract_error_message(body, str(exc))
        error_class = STATUS_ERRORS.get(status, ApiError)
        return error_class(f"{adapter_name} API Error (Status: {status}): {text}", status, exc)

    return ApiError(f"{adapter_name} API Communication Error: {exc}", 0, exc)


def _as_count(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


class BaseAdapter(ABC):
    """Abstract base class for all provider adapters.

    Owns one ``httpx.AsyncClient`` for its lifetime; the configured
    timeout and connect timeout apply per request. Subclasses set the
    class-level defaults, call :meth:`require_config` for their
    mandatory fields right after ``super().__init__``, and implement
    :meth:`build_request_options`, :meth:`generate` and :meth:`chat`.
    Adapters that support embeddings override :meth:`embeddings` and
    declare it in ``capabilities``.
    """

    default_base_url: ClassVar[str] = ""
    default_model: ClassVar[str] = ""
    default_embedding_model: ClassVar[str | None] = None
    default_max_tokens: ClassVar[int] = 1000
    default_temperature: ClassVar[float] = 0.7
    capabilities: ClassVar[Capabilities] = Capabilities(embeddings=False)

    def __init__(
        self,
        config: ProviderConfig | Mapping[str, Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if config is None:
            config = ProviderConfig()
        elif not isinstance(config, ProviderConfig):
            config = ProviderConfig.model_validate(config)
        self.config: ProviderConfig = config
        self.api_base_url: str = config.api_base_url or self.default_base_url
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout, connect=config.connect_timeout),
            transport=transport,
        )

    # -- lifecycle ---------------------------------------------------------

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> BaseAdapter:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -- introspection -----------------------------------------------------

    def get_name(self) -> str:
        """Return the configured name, or the adapter class name."""
        return self.config.name or type(self).__name__

    def info(self) -> dict[str, Any]:
        """Return name, adapter type and the supported capability set."""
        return {
            "name": self.get_name(),
            "type": type(self).__name__,
            "capabilities": self.capabilities.as_dict(),
        }

    # -- configuration -----------------------------------------------------

    def require_config(self, keys: Sequence[str]) -> None:
        """Fail fast if any of ``keys`` is unset or empty in the config.

        Raises:
            ConfigurationError: Naming the first missing key.
        """
        for key in keys:
            value = getattr(self.config, key, None)
            if value is None or value == "":
                raise ConfigurationError(
                    f"The [{key}] configuration is required for {type(self).__name__}."
                )

    def resolve_setting(self, options: GenerationOptions, name: str, default: Any) -> Any:
        """Resolve a setting shared by options and config under the same name."""
        return resolve_setting(getattr(options, name), getattr(self.config, name), default)

    def resolve_generation(self, options: GenerationOptions) -> tuple[str, float, int]:
        """Resolve (model, temperature, max_tokens) for a generation call."""
        return (
            self.resolve_setting(options, "model", self.default_model),
            self.resolve_setting(options, "temperature", self.default_temperature),
            self.resolve_setting(options, "max_tokens", self.default_max_tokens),
        )

    def resolve_embedding_model(self, options: GenerationOptions) -> str | None:
        return resolve_setting(
            options.model, self.config.embedding_model, self.default_embedding_model
        )

    # -- transport ---------------------------------------------------------

    @abstractmethod
    def build_request_options(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any],
        extra_headers: dict[str, str],
    ) -> RequestSpec:
        """Produce provider-specific headers, query params and JSON body.

        The JSON body must be None when ``payload`` is empty.
        """
        ...

    async def execute(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Send one request to the provider and decode its JSON body.

        Args:
            method: HTTP method (e.g. "POST").
            endpoint: Path relative to ``api_base_url``.
            payload: JSON payload; omitted from the request when empty.
            extra_headers: Headers merged over the provider defaults.

        Returns:
            The decoded JSON object, or {} if the body is empty or not
            a JSON object.

        Raises:
            ConfigurationError: If ``api_base_url`` is empty.
            SwitchboardError: The classified transport/HTTP failure.
        """
        if not self.api_base_url:
            raise ConfigurationError(
                f"{type(self).__name__} must set api_base_url before making requests."
            )

        spec = self.build_request_options(method, endpoint, payload or {}, extra_headers or {})
        url = join_url(self.api_base_url, endpoint)

        start = time.perf_counter()
        try:
            response = await self._client.request(
                method,
                url,
                headers=spec.headers,
                params=spec.params or None,
                json=spec.json,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            error = classify_error(type(self).__name__, exc)
            logger.warning(
                "%s %s failed: %s",
                method,
                url,
                error.message,
                extra={"provider": self.get_name(), "status": error.status_code},
            )
            raise error from exc

        logger.debug(
            "%s %s -> %d in %.3fs",
            method,
            url,
            response.status_code,
            time.perf_counter() - start,
            extra={"provider": self.get_name(), "status": response.status_code},
        )
        return decode_json_body(response.content)

    # -- operations --------------------------------------------------------

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> str:
        """Generate text for a single prompt."""
        ...

    @abstractmethod
    async def chat(
        self,
        messages: Sequence[Message],
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> ChatResult:
        """Produce the next assistant turn for a conversation."""
        ...

    async def embeddings(
        self,
        input: str | Sequence[str],
        options: GenerationOptions | Mapping[str, Any] | None = None,
    ) -> list[EmbeddingEntry]:
        """Embed one text or a batch of texts.

        Adapters without an embeddings endpoint keep this default.

        Raises:
            UnsupportedCapabilityError: Always, unless overridden.
        """
        raise UnsupportedCapabilityError(type(self).__name__, "embeddings")
