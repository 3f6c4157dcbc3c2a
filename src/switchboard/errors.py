"""Error taxonomy shared by every adapter and the dispatch facade.

Every failure raised by switchboard is one of a closed set of kinds.
API failures are classified from the transport outcome by
:func:`switchboard.adapters.base.classify_error`; configuration and
lookup failures are raised directly where they are detected.

``UnsupportedCapabilityError`` sits outside the
``SwitchboardError`` tree: it signals a static capability gap of an
adapter, not a runtime condition.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Discriminator carried by every switchboard error class."""

    CONFIGURATION = "configuration"
    ADAPTER_NOT_FOUND = "adapter_not_found"
    PROVIDER_NOT_FOUND = "provider_not_found"
    TIMEOUT = "timeout"
    BAD_REQUEST = "bad_request"
    UNAUTHENTICATED = "unauthenticated"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    GENERIC = "generic"
    UNSUPPORTED_CAPABILITY = "unsupported_capability"


class SwitchboardError(Exception):
    """Base class for all classified switchboard failures.

    Attributes:
        message: Human-readable description.
        status_code: HTTP status code, or 0 if no response was obtained.
        cause: The underlying transport exception, if any.
    """

    kind: ErrorKind = ErrorKind.GENERIC

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        cause: BaseException | None = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.cause = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause


class ConfigurationError(SwitchboardError):
    """Mandatory configuration is missing or an adapter is misbuilt."""

    kind = ErrorKind.CONFIGURATION


class AdapterNotFoundError(SwitchboardError):
    """An adapter identifier could not be resolved to an adapter class."""

    kind = ErrorKind.ADAPTER_NOT_FOUND

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"AI adapter [{identifier}] not found.")


class ProviderNotFoundError(SwitchboardError):
    """A provider name has no enabled entry in the configuration."""

    kind = ErrorKind.PROVIDER_NOT_FOUND

    def __init__(self, provider: str | None) -> None:
        self.provider = provider
        super().__init__(f"AI provider [{provider}] not found.")


class ApiError(SwitchboardError):
    """Generic API failure: an unmapped HTTP status or transport error."""

    kind = ErrorKind.GENERIC


class ApiTimeoutError(SwitchboardError):
    """The connection failed or timed out before any response arrived."""

    kind = ErrorKind.TIMEOUT


class BadRequestError(SwitchboardError):
    """The provider rejected the request as malformed (400, 422)."""

    kind = ErrorKind.BAD_REQUEST


class AuthenticationError(SwitchboardError):
    """The provider rejected the credentials (401, 403)."""

    kind = ErrorKind.UNAUTHENTICATED


class RateLimitError(SwitchboardError):
    """The provider is throttling the caller (429)."""

    kind = ErrorKind.RATE_LIMITED


class ServerError(SwitchboardError):
    """The provider failed on its side (500, 502, 503, 504)."""

    kind = ErrorKind.SERVER_ERROR


# Every kind a transport/HTTP failure can be classified into.
API_ERRORS: tuple[type[SwitchboardError], ...] = (
    ApiError,
    ApiTimeoutError,
    BadRequestError,
    AuthenticationError,
    RateLimitError,
    ServerError,
)


class UnsupportedCapabilityError(NotImplementedError):
    """An adapter does not implement the requested operation."""

    kind = ErrorKind.UNSUPPORTED_CAPABILITY

    def __init__(self, adapter_name: str, capability: str, detail: str = "") -> None:
        self.adapter_name = adapter_name
        self.capability = capability
        message = f"{adapter_name} does not support {capability}."
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
