"""Resilient async HTTP client used for every third-party API call."""

import asyncio
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, TypeVar

import httpx

from src.utils.http.errors import ConfigError, HttpClientError, normalize_error
from src.utils.http.retry import with_retry
from src.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SENSITIVE_HEADERS = frozenset(
    {"authorization", "cookie", "api-key", "x-api-key", "auth-token"}
)
REDACTED = "[REDACTED]"
SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})


def _normalize_base_url(base_url: str) -> str:
    return base_url[:-1] if base_url.endswith("/") else base_url


def _is_absolute_url(path: str) -> bool:
    return path.startswith(("http://", "https://"))


def _normalize_path(path: str) -> str:
    if _is_absolute_url(path):
        return path
    return path if path.startswith("/") else f"/{path}"


def sanitize_headers(headers: Mapping[str, Any]) -> dict[str, Any]:
    """Copy of ``headers`` with credential-bearing values redacted."""
    return {
        key: REDACTED if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


@dataclass(frozen=True)
class ClientConfig:
    """Immutable client defaults.

    The ``with_*`` helpers return a new config; nothing is ever mutated, so a
    config can be shared freely between concurrent requests.
    """

    base_url: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: float = 30.0

    def __post_init__(self):
        object.__setattr__(self, "base_url", _normalize_base_url(self.base_url))
        merged = {"Content-Type": "application/json", **dict(self.headers)}
        object.__setattr__(self, "headers", MappingProxyType(merged))

    def with_base_url(self, base_url: str) -> "ClientConfig":
        return replace(self, base_url=base_url)

    def with_headers(self, headers: Mapping[str, str]) -> "ClientConfig":
        return replace(self, headers={**self.headers, **headers})

    def with_auth_token(self, token: str, scheme: str = "Bearer") -> "ClientConfig":
        return self.with_headers({"Authorization": f"{scheme} {token}"})

    def without_auth_token(self) -> "ClientConfig":
        headers = {
            k: v for k, v in self.headers.items() if k.lower() != "authorization"
        }
        return replace(self, headers=headers)

    def with_api_key(self, api_key: str, header_name: str = "X-API-Key") -> "ClientConfig":
        return self.with_headers({header_name: api_key})


@dataclass(frozen=True)
class RequestOptions:
    """Per-call overrides layered on top of the client config."""

    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] | None = None
    timeout: float | None = None


@dataclass
class NormalizedResponse:
    data: Any
    status: int
    status_text: str
    headers: dict[str, str]
    method: str
    url: str


@dataclass
class BatchRequest:
    method: str
    path: str
    body: Any = None
    options: RequestOptions | None = None


@dataclass
class BatchResult:
    success: bool
    data: NormalizedResponse | None = None
    error: HttpClientError | None = None


class ResilientClient:
    """Thin wrapper over ``httpx.AsyncClient``.

    Adds header redaction in logs, error normalization into the
    ``HttpClientError`` family, retry with exponential backoff and
    independent-failure batches. Clients derived with ``with_config`` reuse
    the connection pool of the client they came from; only that original
    client closes it.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        http: httpx.AsyncClient | None = None,
    ):
        self.config = config or ClientConfig()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            timeout=self.config.timeout,
            transport=transport,
        )

    def with_config(self, config: ClientConfig) -> "ResilientClient":
        """New client with ``config`` over the same pool; this instance is left untouched."""
        return ResilientClient(config, http=self._http)

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "ResilientClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        options: RequestOptions | None = None,
    ) -> NormalizedResponse:
        method = method.upper()
        options = options or RequestOptions()
        path = _normalize_path(path)
        url = path if _is_absolute_url(path) else f"{self.config.base_url}{path}"

        if method not in SUPPORTED_METHODS:
            raise ConfigError(
                f"{method} {url} - Unsupported method: {method}", method, url
            )

        headers = {**self.config.headers, **options.headers}
        timeout = options.timeout if options.timeout is not None else self.config.timeout
        self._log_request(method, url, headers, options, body, timeout)

        try:
            response = await self._http.request(
                method,
                url,
                json=body if method not in ("GET", "DELETE") else None,
                params=dict(options.params) if options.params else None,
                headers=headers,
                timeout=timeout,
            )
            response.raise_for_status()
        except Exception as e:
            error = normalize_error(e, method, url)
            self._log_error(error)
            raise error from e

        return self._format_response(response, method, url)

    async def get(self, path: str, options: RequestOptions | None = None) -> NormalizedResponse:
        return await self.request("GET", path, options=options)

    async def post(
        self, path: str, body: Any = None, options: RequestOptions | None = None
    ) -> NormalizedResponse:
        return await self.request("POST", path, {} if body is None else body, options)

    async def put(
        self, path: str, body: Any = None, options: RequestOptions | None = None
    ) -> NormalizedResponse:
        return await self.request("PUT", path, {} if body is None else body, options)

    async def patch(
        self, path: str, body: Any = None, options: RequestOptions | None = None
    ) -> NormalizedResponse:
        return await self.request("PATCH", path, {} if body is None else body, options)

    async def delete(self, path: str, options: RequestOptions | None = None) -> NormalizedResponse:
        return await self.request("DELETE", path, options=options)

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int = 3,
        base_delay: float = 1.0,
    ) -> T:
        return await with_retry(operation, max_attempts, base_delay)

    async def parallel(self, requests: list[BatchRequest]) -> list[BatchResult]:
        """Run every request concurrently; results come back in input order."""
        outcomes = await asyncio.gather(
            *(
                self.request(r.method, r.path, r.body, r.options)
                for r in requests
            ),
            return_exceptions=True,
        )

        results: list[BatchResult] = []
        for index, (req, outcome) in enumerate(zip(requests, outcomes)):
            if isinstance(outcome, NormalizedResponse):
                results.append(BatchResult(success=True, data=outcome))
                continue
            if not isinstance(outcome, Exception):
                raise outcome
            error = normalize_error(outcome, req.method.upper(), req.path)
            logger.error(
                "Parallel request failed",
                index=index,
                method=req.method,
                path=req.path,
                error=error.message,
            )
            results.append(BatchResult(success=False, error=error))
        return results

    def _log_request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str],
        options: RequestOptions,
        body: Any,
        timeout: float,
    ) -> None:
        try:
            logger.info(
                "API Request",
                method=method,
                url=url,
                headers=sanitize_headers(headers),
                params=dict(options.params) if options.params else None,
                data="Present" if body is not None else "None",
                timeout=timeout,
            )
        except Exception as e:
            # Request logging must never fail the call itself
            logger.debug("Request logging failed", error=str(e))

    def _log_error(self, error: HttpClientError) -> None:
        try:
            logger.error(
                "API Response Error",
                method=error.method,
                url=error.url,
                message=error.message,
                type=type(error).__name__,
                status=getattr(error, "status_code", None),
            )
        except Exception as e:
            logger.debug("Error logging failed", error=str(e))

    @staticmethod
    def _format_response(
        response: httpx.Response, method: str, url: str
    ) -> NormalizedResponse:
        try:
            data = response.json() if response.content else None
        except ValueError:
            data = response.text

        logger.info(
            "API Response Success",
            method=method,
            url=url,
            status=response.status_code,
            data_size=len(response.content),
        )
        return NormalizedResponse(
            data=data,
            status=response.status_code,
            status_text=response.reason_phrase,
            headers=dict(response.headers),
            method=method,
            url=url,
        )
