"""Tests for switchboard.errors - the classified error taxonomy."""

from __future__ import annotations

import pytest

from switchboard.errors import (
    API_ERRORS,
    AdapterNotFoundError,
    ApiError,
    ApiTimeoutError,
    AuthenticationError,
    BadRequestError,
    ConfigurationError,
    ErrorKind,
    ProviderNotFoundError,
    RateLimitError,
    ServerError,
    SwitchboardError,
    UnsupportedCapabilityError,
)


class TestSwitchboardError:
    """Test the shared base error."""

    def test_defaults(self) -> None:
        """status_code defaults to 0 and cause to None."""
        err = SwitchboardError("boom")
        assert err.message == "boom"
        assert err.status_code == 0
        assert err.cause is None
        assert str(err) == "boom"

    def test_cause_is_chained(self) -> None:
        """The cause is exposed both as .cause and as __cause__."""
        cause = RuntimeError("socket closed")
        err = ApiError("failed", 502, cause)
        assert err.cause is cause
        assert err.__cause__ is cause
        assert err.status_code == 502


class TestErrorKinds:
    """Every class carries exactly one ErrorKind."""

    @pytest.mark.parametrize(
        ("error_class", "kind"),
        [
            (ConfigurationError, ErrorKind.CONFIGURATION),
            (ApiError, ErrorKind.GENERIC),
            (ApiTimeoutError, ErrorKind.TIMEOUT),
            (BadRequestError, ErrorKind.BAD_REQUEST),
            (AuthenticationError, ErrorKind.UNAUTHENTICATED),
            (RateLimitError, ErrorKind.RATE_LIMITED),
            (ServerError, ErrorKind.SERVER_ERROR),
        ],
    )
    def test_kind(self, error_class: type[SwitchboardError], kind: ErrorKind) -> None:
        """Each API/config error class reports its own kind."""
        assert error_class("x").kind is kind
        assert issubclass(error_class, SwitchboardError)

    def test_api_errors_tuple(self) -> None:
        """API_ERRORS lists the six transport/HTTP classifications."""
        assert len(API_ERRORS) == 6
        assert ConfigurationError not in API_ERRORS
        assert isinstance(RateLimitError("slow down"), API_ERRORS)

    def test_kind_is_string_enum(self) -> None:
        """ErrorKind values compare equal to their string form."""
        assert ErrorKind.RATE_LIMITED == "rate_limited"


class TestLookupErrors:
    """Test adapter-not-found and provider-not-found messages."""

    def test_adapter_not_found(self) -> None:
        """AdapterNotFoundError names the identifier."""
        err = AdapterNotFoundError("mystery")
        assert err.identifier == "mystery"
        assert err.message == "AI adapter [mystery] not found."
        assert err.kind is ErrorKind.ADAPTER_NOT_FOUND

    def test_provider_not_found(self) -> None:
        """ProviderNotFoundError names the provider."""
        err = ProviderNotFoundError("nope")
        assert err.provider == "nope"
        assert err.message == "AI provider [nope] not found."
        assert err.kind is ErrorKind.PROVIDER_NOT_FOUND

    def test_lookup_errors_are_distinct(self) -> None:
        """Provider-not-found is not an adapter-not-found, and vice versa."""
        assert not isinstance(ProviderNotFoundError("a"), AdapterNotFoundError)
        assert not isinstance(AdapterNotFoundError("a"), ProviderNotFoundError)


class TestUnsupportedCapabilityError:
    """UnsupportedCapabilityError sits outside the API error tree."""

    def test_is_not_implemented_error(self) -> None:
        """It is a NotImplementedError, not a SwitchboardError."""
        err = UnsupportedCapabilityError("AnthropicAdapter", "embeddings")
        assert isinstance(err, NotImplementedError)
        assert not isinstance(err, SwitchboardError)
        assert not isinstance(err, API_ERRORS)

    def test_message(self) -> None:
        """Message names the adapter and the capability, plus any detail."""
        err = UnsupportedCapabilityError("AnthropicAdapter", "embeddings", "Use another provider.")
        assert str(err) == "AnthropicAdapter does not support embeddings. Use another provider."
        assert err.adapter_name == "AnthropicAdapter"
        assert err.capability == "embeddings"
        assert err.kind is ErrorKind.UNSUPPORTED_CAPABILITY
