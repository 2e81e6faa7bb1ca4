"""Async HTTP client with retry, rate limiting, OAuth2 and debug logging."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable, Generator
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from logging import getLogger
from typing import TYPE_CHECKING, TypedDict, Unpack

import httpx
from aiolimiter import AsyncLimiter
from pydantic import BaseModel, ConfigDict, ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_attempt,
    wait_exponential_jitter,
)

from pimsync.config.http_resilience import (
    OAuthCredentials,
    RateLimit,
    ResilienceConfig,
    RetryPolicy,
)

if TYPE_CHECKING:
    from types import TracebackType

    from httpx._types import HeaderTypes, QueryParamTypes, TimeoutTypes, URLTypes

log = getLogger(__name__)

__all__ = [
    "ClientCredentialsAuth",
    "LoggingTransport",
    "RateLimit",
    "RequestOptions",
    "ResilienceConfig",
    "ResilientClient",
    "RetryPolicy",
    "RetryingTransport",
    "TokenRequestError",
    "build_retry",
]

_REDACTED_HEADERS = frozenset({"authorization", "cookie", "set-cookie"})
_BODY_PREVIEW_LIMIT = 2000
# refresh a little before the server-side expiry
_TOKEN_EXPIRY_MARGIN_SECONDS = 30.0


class TokenRequestError(httpx.HTTPError):
    """Raised when the OAuth2 token endpoint does not issue an access token."""

    def __init__(self, message: str, *, response: httpx.Response) -> None:
        super().__init__(message)
        self.response = response


class _TokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    token_type: str = "Bearer"
    expires_in: float | None = None


@dataclass(slots=True)
class _AccessToken:
    value: str
    expires_at: float | None

    def is_fresh(self, now: float) -> bool:
        return self.expires_at is None or now < self.expires_at


class ClientCredentialsAuth(httpx.Auth):
    """OAuth2 client-credentials flow.

    The token request is yielded through the same client, so it shares the
    transport stack (and its debug logging) with regular requests. A 401 on a
    regular request drops the cached token and replays the request once.
    """

    requires_response_body = True

    def __init__(
        self,
        credentials: OAuthCredentials,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._credentials = credentials
        self._clock = clock
        self._token: _AccessToken | None = None

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if self._token is None or not self._token.is_fresh(self._clock()):
            token_response = yield self._build_token_request()
            self._store_token(token_response)

        response = yield self._authorize(request)
        if response.status_code != httpx.codes.UNAUTHORIZED:
            return

        log.debug("Access token rejected, requesting a new one")
        token_response = yield self._build_token_request()
        self._store_token(token_response)
        yield self._authorize(request)

    def _authorize(self, request: httpx.Request) -> httpx.Request:
        assert self._token is not None
        request.headers["Authorization"] = f"Bearer {self._token.value}"
        return request

    def _build_token_request(self) -> httpx.Request:
        return httpx.Request(
            "POST",
            self._credentials.token_url,
            data={
                "grant_type": "client_credentials",
                "client_id": self._credentials.client_id,
                "client_secret": self._credentials.client_secret,
            },
            headers={"Accept": "application/json"},
        )

    def _store_token(self, response: httpx.Response) -> None:
        if response.status_code != httpx.codes.OK:
            raise TokenRequestError(
                f"Token endpoint returned HTTP {response.status_code}", response=response
            )
        try:
            payload = _TokenResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise TokenRequestError("Malformed token response", response=response) from exc

        expires_at = None
        if payload.expires_in is not None:
            expires_at = self._clock() + max(
                payload.expires_in - _TOKEN_EXPIRY_MARGIN_SECONDS, 0.0
            )
        self._token = _AccessToken(value=payload.access_token, expires_at=expires_at)
        log.debug("Obtained access token (expires_in=%s)", payload.expires_in)


class LoggingTransport(httpx.AsyncBaseTransport):
    """Transport decorator logging every request and response at DEBUG level."""

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._transport = transport
        self._log = logger or log

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self._log.debug(
            "--> %s %s headers=%s body=%s",
            request.method,
            request.url,
            _redact(request.headers),
            _preview(request.content),
        )
        started = time.perf_counter()
        response = await self._transport.handle_async_request(request)
        await response.aread()
        self._log.debug(
            "<-- %s %s %s (%.0f ms) headers=%s body=%s",
            response.status_code,
            request.method,
            request.url,
            (time.perf_counter() - started) * 1000,
            _redact(response.headers),
            _preview(response.content),
        )
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()


def _redact(headers: httpx.Headers) -> dict[str, str]:
    return {
        key: ("<redacted>" if key.lower() in _REDACTED_HEADERS else value)
        for key, value in headers.items()
    }


def _preview(content: bytes) -> str:
    if not content:
        return "<empty>"
    text = content.decode("utf-8", errors="replace")
    if len(text) > _BODY_PREVIEW_LIMIT:
        return text[:_BODY_PREVIEW_LIMIT] + "..."
    return text


def _retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        pass
    try:
        moment = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    return max((moment - datetime.now(UTC)).total_seconds(), 0.0)


def build_retry(policy: RetryPolicy) -> AsyncRetrying:
    """Translate a ``RetryPolicy`` into a tenacity controller.

    Once attempts are exhausted the last outcome is handed back unchanged: the
    final response is returned, the final exception is re-raised.
    """

    backoff = wait_exponential_jitter(
        initial=policy.backoff_factor,
        max=policy.max_backoff_wait,
        jitter=policy.backoff_jitter,
    )

    def wait(retry_state: RetryCallState) -> float:
        outcome = retry_state.outcome
        if policy.respect_retry_after_header and outcome is not None and not outcome.failed:
            delay = _retry_after(outcome.result())
            if delay is not None:
                return min(delay, policy.max_backoff_wait)
        return backoff(retry_state)

    def before_sleep(retry_state: RetryCallState) -> None:
        log.debug(
            "Retrying request (attempt %s of %s)",
            retry_state.attempt_number + 1,
            policy.total + 1,
        )

    def last_outcome(retry_state: RetryCallState) -> httpx.Response:
        assert retry_state.outcome is not None
        return retry_state.outcome.result()

    return AsyncRetrying(
        stop=stop_after_attempt(policy.total + 1),
        wait=wait,
        retry=(
            retry_if_exception_type(policy.retry_on_exceptions)
            | retry_if_result(lambda response: response.status_code in policy.status_forcelist)
        ),
        before_sleep=before_sleep,
        retry_error_callback=last_outcome,
    )


class RetryingTransport(httpx.AsyncBaseTransport):
    """Transport decorator replaying requests whose method the policy allows."""

    def __init__(self, transport: httpx.AsyncBaseTransport, policy: RetryPolicy) -> None:
        self._transport = transport
        self._policy = policy

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self._policy.total <= 0 or request.method not in self._policy.allowed_methods:
            return await self._transport.handle_async_request(request)
        retrying = build_retry(self._policy)
        last: httpx.Response | None = None

        async def attempt() -> httpx.Response:
            nonlocal last
            # release the connection held by a response that is about to be replayed
            if last is not None:
                await last.aclose()
            last = await self._transport.handle_async_request(request)
            return last

        return await retrying(attempt)

    async def aclose(self) -> None:
        await self._transport.aclose()


class RequestOptions(TypedDict, total=False):
    json: object
    params: QueryParamTypes | None


class AsyncClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.AsyncBaseTransport
    auth: httpx.Auth


class ResilientClient:
    def __init__(
        self,
        config: ResilienceConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._limiter: AsyncLimiter | None = (
            AsyncLimiter(config.ratelimit.max_calls, config.ratelimit.per_seconds)
            if config.ratelimit
            else None
        )

        inner: httpx.AsyncBaseTransport = transport or httpx.AsyncHTTPTransport()
        if config.debug:
            inner = LoggingTransport(inner)
        retry_transport = RetryingTransport(inner, config.retry)

        headers = dict(config.default_headers) if config.default_headers else None

        client_kwargs: AsyncClientOptions = {
            "timeout": config.timeout_seconds,
            "transport": retry_transport,
        }
        if config.base_url is not None:
            client_kwargs["base_url"] = config.base_url
        if headers is not None:
            client_kwargs["headers"] = headers
        if config.credentials is not None:
            client_kwargs["auth"] = ClientCredentialsAuth(config.credentials)

        self._client = httpx.AsyncClient(**client_kwargs)

    async def __aenter__(self) -> ResilientClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        url: URLTypes,
        **kwargs: Unpack[RequestOptions],
    ) -> httpx.Response:
        async def do_request() -> httpx.Response:
            return await self._client.request(method, url, **kwargs)

        return await self._send(do_request)

    async def _send(self, func: Callable[[], Awaitable[httpx.Response]]) -> httpx.Response:
        if self._limiter is None:
            return await func()
        async with self._limiter:
            return await func()
