"""Error taxonomy for outbound HTTP calls.

Every failure raised by ``ResilientClient`` is one of these, so callers only
ever need to handle ``HttpClientError``.
"""

from typing import Any

import httpx


class HttpClientError(Exception):
    """Base class for normalized outbound request failures."""

    def __init__(
        self,
        message: str,
        method: str,
        url: str,
        original_error: BaseException | None = None,
    ):
        self.message = message
        self.method = method
        self.url = url
        self.original_error = original_error
        super().__init__(message)


class ResponseError(HttpClientError):
    """The remote service answered with an error status."""

    def __init__(
        self,
        method: str,
        url: str,
        status_code: int,
        reason_phrase: str = "",
        data: Any = None,
        headers: dict[str, str] | None = None,
        original_error: BaseException | None = None,
    ):
        super().__init__(
            f"{method} {url} failed with status {status_code}",
            method,
            url,
            original_error,
        )
        self.status_code = status_code
        self.reason_phrase = reason_phrase
        self.data = data
        self.headers = headers or {}


class TransportError(HttpClientError):
    """No response was received (timeout, refused connection, DNS failure)."""

    def __init__(
        self,
        method: str,
        url: str,
        code: str,
        original_error: BaseException | None = None,
    ):
        super().__init__(
            f"{method} {url} - No response received ({code})",
            method,
            url,
            original_error,
        )
        self.code = code


class ConfigError(HttpClientError):
    """The request could not be built locally. Never retried."""


class UnknownError(HttpClientError):
    """Anything that does not fit the other categories."""


def _transport_code(error: httpx.TransportError) -> str:
    if isinstance(error, httpx.TimeoutException):
        return "timeout"
    if isinstance(error, httpx.ConnectError):
        return "connection_error"
    return "network_error"


def normalize_error(error: BaseException, method: str, url: str) -> HttpClientError:
    """Map any exception raised while sending a request onto the taxonomy."""
    if isinstance(error, HttpClientError):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        return ResponseError(
            method=method,
            url=url,
            status_code=response.status_code,
            reason_phrase=response.reason_phrase,
            data=_safe_body(response),
            headers=dict(response.headers),
            original_error=error,
        )

    # Must be checked before TransportError: httpx files these under transport
    if isinstance(error, (httpx.UnsupportedProtocol, httpx.InvalidURL)):
        return ConfigError(f"{method} {url} - {error}", method, url, error)

    if isinstance(error, httpx.TransportError):
        return TransportError(method, url, _transport_code(error), error)

    if isinstance(error, (TypeError, ValueError)):
        return ConfigError(f"{method} {url} - {error}", method, url, error)

    return UnknownError(
        f"{method} {url} - An unknown error occurred", method, url, error
    )


def is_retryable_error(error: BaseException) -> bool:
    """Transient failures: no response at all, 429, or any 5xx."""
    if isinstance(error, TransportError):
        return True
    if isinstance(error, (httpx.TimeoutException, httpx.ConnectError)):
        return True
    if isinstance(error, ResponseError):
        return error.status_code == 429 or error.status_code >= 500
    return False


def _safe_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
