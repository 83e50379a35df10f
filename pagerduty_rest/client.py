"""PagerDuty REST API v2 client with hook system.

A stateless async client: every call builds one authenticated request (or,
for GET, one request per page), checks the status code against the single
status expected for the verb and either returns the result or raises a
PagerDutyApiError. Metrics, logging and retries run through hooks.
"""

import contextvars
import time
from collections.abc import AsyncGenerator, Mapping
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import httpx
import structlog
from pydantic import ValidationError

from pagerduty_rest.config import Settings
from pagerduty_rest.exceptions import (
    ConfigurationError,
    HttpStatusError,
    PaginationError,
    PaginationLimitError,
    TransportError,
)
from pagerduty_rest.hooks import Hooks, RetryConfig, invoke_with_hooks
from pagerduty_rest.metrics import pagerduty_request, pagerduty_request_duration
from pagerduty_rest.models import (
    DEFAULT_TIMEOUT,
    ApiResponse,
    ClientConfig,
    Page,
    RequestOptions,
)
from pagerduty_rest.url import update_url

logger = structlog.get_logger(__name__)

ACCEPT = "application/vnd.pagerduty+json;version=2"

EXPECTED_STATUS = {
    "GET": 200,
    "POST": 201,
    "PUT": 200,
    "DELETE": 204,
}

IDEMPOTENT_VERBS = frozenset({"GET", "PUT", "DELETE"})

# The request never reached the server, safe to retry for every verb
CONNECT_ERRORS: tuple[type[Exception], ...] = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
)
# Connection dropped mid request, only safe to replay idempotent verbs
IDEMPOTENT_RETRY_ERRORS: tuple[type[Exception], ...] = (
    *CONNECT_ERRORS,
    httpx.ReadError,
    httpx.RemoteProtocolError,
)

# Local storage for latency tracking (tuple stack to support nested calls)
_latency_tracker: contextvars.ContextVar[tuple[float, ...]] = contextvars.ContextVar(
    f"{__name__}.latency_tracker", default=()
)


@dataclass(frozen=True)
class PagerDutyApiCallContext:
    """Context information passed to API call hooks.

    Attributes:
        resource: First path segment of the request (e.g., "users")
        verb: HTTP verb (e.g., "GET")
        instance: API base url
    """

    resource: str
    verb: str
    instance: str


def _metrics_hook(context: PagerDutyApiCallContext) -> None:
    """Built-in Prometheus metrics hook."""
    pagerduty_request.labels(context.resource, context.verb).inc()


def _latency_start_hook(_context: PagerDutyApiCallContext) -> None:
    """Built-in hook to start latency measurement."""
    _latency_tracker.set((*_latency_tracker.get(), time.perf_counter()))


def _latency_end_hook(context: PagerDutyApiCallContext) -> None:
    """Built-in hook to record latency measurement."""
    stack = _latency_tracker.get()
    start_time = stack[-1]
    _latency_tracker.set(stack[:-1])
    duration = time.perf_counter() - start_time
    pagerduty_request_duration.labels(context.resource, context.verb).observe(
        duration
    )


def _request_log_hook(context: PagerDutyApiCallContext) -> None:
    """Built-in hook for logging API requests."""
    logger.debug(
        "API request",
        resource=context.resource,
        verb=context.verb,
        instance=context.instance,
    )


def _retry_log_hook(attempt: int) -> None:
    logger.warning("Retrying PagerDuty API request", attempt=attempt)


BUILTIN_HOOKS: Hooks[PagerDutyApiCallContext] = Hooks(
    pre_hooks=[_metrics_hook, _request_log_hook, _latency_start_hook],
    post_hooks=[_latency_end_hook],
    retry_hooks=[_retry_log_hook],
)


def build_headers(
    token: str, extra: Mapping[str, str] | None = None
) -> httpx.Headers:
    """Mandatory PagerDuty headers with caller headers merged on top.

    A caller header replaces a mandatory one with the same name. Names are
    compared the way httpx compares them (case-insensitive), so the request
    never carries two Authorization headers.
    """
    headers = httpx.Headers({
        "Accept": ACCEPT,
        "Authorization": f"Token token={token}",
    })
    headers.update(extra or {})
    return headers


def _resource(path: str) -> str:
    return urlsplit(path).path.strip("/").split("/", maxsplit=1)[0]


def _transport_error(exc: httpx.TransportError) -> TransportError:
    match exc:
        case httpx.TimeoutException():
            code = "timeout"
        case httpx.ConnectError():
            code = "connect"
        case httpx.NetworkError():
            code = "network"
        case httpx.ProtocolError():
            code = "protocol"
        case _:
            code = "transport"
    return TransportError(f"{type(exc).__name__}: {exc}", code=code)


def _response_body(response: httpx.Response) -> Any:
    if not response.content:
        return ""
    try:
        return response.json()
    except ValueError:
        return response.text


class PagerDutyApi:
    """Stateless PagerDuty REST API v2 client.

    GET requests are paginated automatically: pages are fetched one after
    another, following the ``more`` and ``limit`` hints of each response, and
    folded into one list. POST, PUT and DELETE are single requests.

    Hook System:
    - Always includes built-in hooks (metrics, logging, latency)
    - Supports additional custom hooks via the hooks parameter
    - Hooks receive PagerDutyApiCallContext with resource, verb, instance

    Example:
        >>> async with PagerDutyApi(token="...") as api:
        ...     users = await api.get("users?query=Dev%20Null", key="users")
        ...     await api.delete(f"users/{users[0]['id']}")
    """

    def __init__(
        self,
        token: str | None = None,
        timeout: float | None = None,
        *,
        base_url: str | None = None,
        max_retries: int | None = None,
        max_pages: int | None = None,
        max_items: int | None = None,
        hooks: Hooks[PagerDutyApiCallContext] | None = None,
        config: ClientConfig | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize PagerDuty API client.

        Args:
            token: Default PagerDuty access token (falls back to PAGERDUTY_TOKEN)
            timeout: Default timeout in seconds per round trip (default: 10)
            base_url: API base url (default: https://api.pagerduty.com/)
            max_retries: Retries for transient connection failures (default: 3)
            max_pages: Maximum pages per GET, unbounded if None
            max_items: Maximum aggregated items per GET, unbounded if None
            hooks: Optional custom hooks merged after the built-in hooks
            config: Fully resolved config, replaces all of the above
            settings: Environment settings used as fallback
            transport: Custom httpx transport
        """
        self.config = config or ClientConfig.resolve(
            token,
            timeout,
            base_url=base_url,
            max_retries=max_retries,
            max_pages=max_pages,
            max_items=max_items,
            settings=settings,
        )
        self._hooks = BUILTIN_HOOKS.merge(hooks)
        self._client = httpx.AsyncClient(transport=transport)

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    def _resolve_token(self, options: RequestOptions) -> str:
        token = options.token or self.config.token
        if not token:
            raise ConfigurationError("Must provide PagerDuty access token")
        return token

    def _resolve_timeout(self, options: RequestOptions) -> httpx.Timeout:
        if options.timeout is not None:
            return httpx.Timeout(options.timeout)
        if self.config.timeout is not None:
            return httpx.Timeout(self.config.timeout)
        return httpx.Timeout(DEFAULT_TIMEOUT)

    def _retry_config(self, verb: str) -> RetryConfig:
        if self._hooks.retry_config:
            return self._hooks.retry_config
        return RetryConfig(
            on=IDEMPOTENT_RETRY_ERRORS if verb in IDEMPOTENT_VERBS else CONNECT_ERRORS,
            attempts=self.config.max_retries + 1,
            timeout=None,
        )

    @staticmethod
    def _check(options: RequestOptions, *, require_body: bool = False) -> None:
        if not options.path:
            raise ConfigurationError("Must provide options.path")
        if require_body and options.body is None:
            raise ConfigurationError("Must provide options.body")

    async def _dispatch(
        self, verb: str, url: str, options: RequestOptions
    ) -> httpx.Response:
        """Send one request and check its status code.

        Raises:
            ConfigurationError: No access token could be resolved
            TransportError: Network failure or timeout, after retries
            HttpStatusError: Status differs from the one expected for verb
        """
        token = self._resolve_token(options)
        expected_status = EXPECTED_STATUS[verb]
        kwargs: dict[str, Any] = {
            "headers": build_headers(
                token, options.headers if verb in {"POST", "PUT"} else None
            ),
            "timeout": self._resolve_timeout(options),
        }
        if verb in {"POST", "PUT"}:
            kwargs["json"] = options.body

        async def send() -> httpx.Response:
            return await self._client.request(verb, url, **kwargs)

        def check_status(response: httpx.Response) -> None:
            if response.status_code != expected_status:
                raise HttpStatusError(
                    response.status_code, expected_status, response.text
                )

        try:
            return await invoke_with_hooks(
                PagerDutyApiCallContext(
                    resource=_resource(options.path),
                    verb=verb,
                    instance=self.config.base_url,
                ),
                send,
                self._hooks,
                retry_config=self._retry_config(verb),
                check=check_status,
            )
        except httpx.TransportError as e:
            raise _transport_error(e) from e

    def iter_pages(
        self,
        path: str,
        *,
        token: str | None = None,
        timeout: float | None = None,
    ) -> AsyncGenerator[Page, None]:
        """Yield the pages of a GET, one request per page.

        The next page is only requested when the consumer asks for it. The
        offset starts at 0 and advances by the limit reported by each page
        while the page reports ``more``.

        Args:
            path: URL path and query (e.g., "incidents?since=2017-04-04")
            token: PagerDuty access token, overrides the client default
            timeout: Timeout in seconds for each page request

        Raises:
            PaginationError: A page reports an invalid limit, or more data
                without a positive one
            PaginationLimitError: More than max_pages pages would be needed
        """
        return self._pages(RequestOptions(path=path, token=token, timeout=timeout))

    async def _pages(self, options: RequestOptions) -> AsyncGenerator[Page, None]:
        path = options.path
        self._check(options)
        self._resolve_token(options)

        offset = 0
        pages = 0
        while True:
            if self.config.max_pages is not None and pages >= self.config.max_pages:
                raise PaginationLimitError(
                    f"GET {path} exceeded max_pages={self.config.max_pages}",
                    pages=pages,
                )
            response = await self._dispatch(
                "GET", update_url(self._url(path), offset), options
            )
            try:
                body = response.json()
            except ValueError:
                logger.warning("Non JSON response body", path=path, offset=offset)
                body = response.text
            try:
                page = Page.from_body(body, offset)
            except ValidationError as e:
                raise PaginationError(
                    f"GET {path} reported an invalid limit: {body.get('limit')!r}"
                ) from e
            pages += 1
            yield page

            if not page.more:
                return
            if page.limit <= 0:
                raise PaginationError(
                    f"GET {path} reported more pages without a positive limit"
                )
            offset += page.limit

    async def get(
        self,
        path: str,
        *,
        key: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
    ) -> list[Any]:
        """Make a paginated GET request and return all results.

        Without ``key`` every page body is one element of the result. With
        ``key`` the ``body[key]`` of every page is collected, lists are
        flattened one level. Results keep the server's page order.

        Args:
            path: URL path and query
            key: Response body property to return
            token: PagerDuty access token, overrides the client default
            timeout: Timeout in seconds for each page request

        Returns:
            Aggregated results of all pages

        Example:
            >>> await api.get("users/PPPPPPA", key="user")
            [{'id': 'PPPPPPA', 'name': 'Dev Null', ...}]
        """
        options = RequestOptions(path=path, key=key, token=token, timeout=timeout)
        max_items = self.config.max_items
        results: list[Any] = []
        async with aclosing(self._pages(options)) as pages:
            fetched = 0
            async for page in pages:
                fetched += 1
                results.extend(page.extract(options.key))
                if max_items is not None and len(results) > max_items:
                    raise PaginationLimitError(
                        f"GET {path} exceeded max_items={max_items}",
                        pages=fetched,
                        items=len(results),
                    )
        return results

    async def _write(
        self, verb: str, options: RequestOptions, *, require_body: bool
    ) -> ApiResponse:
        self._check(options, require_body=require_body)
        response = await self._dispatch(verb, self._url(options.path), options)
        return ApiResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=_response_body(response),
        )

    async def post(
        self,
        path: str,
        body: Any = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        """Make a POST request, successful only on 201.

        Args:
            path: URL path and query
            body: JSON serializable request body
            token: PagerDuty access token, overrides the client default
            timeout: Timeout in seconds
            headers: Additional headers, merged over Accept and Authorization

        Example:
            >>> res = await api.post(
            ...     "users",
            ...     {"user": {"type": "user", "name": "Dev Null"}},
            ...     headers={"From": "devnull@company.com"},
            ... )
            >>> res.body["user"]["id"]
            'PPPPPPA'
        """
        return await self._write(
            "POST",
            RequestOptions(
                path=path,
                body=body,
                token=token,
                timeout=timeout,
                headers=dict(headers or {}),
            ),
            require_body=True,
        )

    async def put(
        self,
        path: str,
        body: Any = None,
        *,
        token: str | None = None,
        timeout: float | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> ApiResponse:
        """Make a PUT request, successful only on 200.

        Args:
            path: URL path and query
            body: JSON serializable request body
            token: PagerDuty access token, overrides the client default
            timeout: Timeout in seconds
            headers: Additional headers, merged over Accept and Authorization
        """
        return await self._write(
            "PUT",
            RequestOptions(
                path=path,
                body=body,
                token=token,
                timeout=timeout,
                headers=dict(headers or {}),
            ),
            require_body=True,
        )

    async def delete(
        self,
        path: str,
        *,
        token: str | None = None,
        timeout: float | None = None,
    ) -> ApiResponse:
        """Make a DELETE request, successful only on 204."""
        return await self._write(
            "DELETE",
            RequestOptions(path=path, token=token, timeout=timeout),
            require_body=False,
        )

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        await self._client.aclose()

    async def __aenter__(self) -> "PagerDutyApi":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
