"""Asynchronous Canvas API client.

:class:`APIClient` wraps :class:`httpx.AsyncClient` and layers the
behaviour every Canvas call needs on top of it:

1. bearer auth, ``Accept`` and ``User-Agent`` headers;
2. masquerading (``as_user_id``) on every request, next pages included;
3. a shared :class:`~canvas_cli.client.rate_limiter.RateLimiter` token
   before every attempt, retries included;
4. bounded retry of transient failures through
   :class:`~canvas_cli.client.retry.RetryPolicy`, with every failure
   classified by :func:`~canvas_cli.client.errors.classify`;
5. quota feedback from ``X-Rate-Limit-Remaining`` into the limiter;
6. dry-run mode, which prints a ``curl`` command and sends nothing;
7. an optional :class:`~canvas_cli.cache.ResponseCache` for successful GETs.

Collections are read with :meth:`APIClient.paginate`, which returns a lazy
:class:`~canvas_cli.client.pagination.Paginator` following ``Link`` headers.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import httpx

from canvas_cli.cache import ResponseCache
from canvas_cli.client.dry_run import build_curl, synthetic_response
from canvas_cli.client.errors import classify_response, classify_transport_error
from canvas_cli.client.pagination import Page, Paginator, parse_link_header
from canvas_cli.client.rate_limiter import DEFAULT_QUOTA_TOTAL, RateLimiter
from canvas_cli.client.retry import RetryPolicy
from canvas_cli.exceptions import APIError, RequestCancelledError, UnexpectedResponseError
from canvas_cli.models import ClientConfig, RequestSpec
from canvas_cli.output import debug, get_output

QUOTA_HEADER = "X-Rate-Limit-Remaining"
# The cached body is already decoded.
_STALE_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})


class APIClient:
    """Rate-limited, retrying client for one Canvas instance.

    Must be used as an async context manager. One client (and therefore one
    rate limiter) is shared by every request of a process run.

    Args:
        config: Resolved connection settings, see
            :func:`~canvas_cli.client.factory.resolve_client_config`.
        transport: Optional httpx transport; tests pass an
            :class:`httpx.MockTransport`.
        limiter: Override the limiter built from ``config``.
        retry_policy: Override the policy built from ``config``.
        cache: Response cache for GET requests. Hits skip the rate limiter
            and the network. The client closes it on exit.

    Example::

        async with APIClient(config) as client:
            response = await client.get("/api/v1/users/self")
            async for course in client.paginate(RequestSpec(path="/api/v1/courses")):
                print(course["name"])
    """

    def __init__(
        self,
        config: ClientConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        limiter: Optional[RateLimiter] = None,
        retry_policy: Optional[RetryPolicy] = None,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._limiter = limiter or RateLimiter(config.requests_per_second)
        self._retry = retry_policy or RetryPolicy(max_attempts=config.max_attempts)
        self._quota_total = DEFAULT_QUOTA_TOTAL
        self._cache = cache
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    # ------------------------------------------------------------------ #
    # Async context manager
    # ------------------------------------------------------------------ #

    async def __aenter__(self) -> APIClient:
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
        if self._cache is not None:
            self._cache.close()
            self._cache = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    async def do(self, spec: RequestSpec, timeout: Optional[float] = None) -> httpx.Response:
        """Perform one logical request, retrying transient failures.

        Args:
            spec: What to send.
            timeout: Overall deadline in seconds for the call, covering rate
                limit waits, every attempt and every backoff sleep.

        Returns:
            The first successful (< 400) :class:`httpx.Response`.

        Raises:
            APIError: The classified error of the last attempt once retrying
                stops (non-retryable failure or attempts exhausted).
            RequestCancelledError: If *timeout* expires first.
            asyncio.CancelledError: If the calling task is cancelled.
        """
        return await self._run(spec, {}, timeout)

    def paginate(
        self,
        spec: RequestSpec,
        per_page: Optional[int] = None,
        max_results: Optional[int] = None,
    ) -> Paginator[Any]:
        """Iterate every item of a collection endpoint, one page at a time.

        ``per_page`` is sent on every page request. Without the argument, a
        ``per_page`` already in the request's path or params is kept, else the
        configured page size is used. ``max_results`` defaults to the
        client's configured ``--limit`` (``0`` means unlimited).
        """
        size = str(per_page or _requested_page_size(spec) or self._config.per_page)
        limit = self._config.max_results if max_results is None else max_results

        async def fetch(cursor: Optional[str]) -> Page[Any]:
            page_spec = spec
            if cursor is not None:
                # The next link already carries the original query.
                page_spec = spec.model_copy(update={"path": self._relative(cursor), "params": ()})
            response = await self._run(page_spec, {"per_page": size}, None)
            items = _decode_page(response)
            links = parse_link_header(response.headers.get("Link"))
            return Page(items=items, next_cursor=links.next)

        return Paginator(fetch, max_results=limit or None)

    async def get(self, path: str, params: Any = None, timeout: Optional[float] = None) -> httpx.Response:
        return await self.do(RequestSpec(method="GET", path=path, params=params), timeout)

    async def post(
        self, path: str, json_body: Any = None, params: Any = None, timeout: Optional[float] = None
    ) -> httpx.Response:
        return await self.do(
            RequestSpec(method="POST", path=path, params=params, json_body=json_body), timeout
        )

    async def put(
        self, path: str, json_body: Any = None, params: Any = None, timeout: Optional[float] = None
    ) -> httpx.Response:
        return await self.do(
            RequestSpec(method="PUT", path=path, params=params, json_body=json_body), timeout
        )

    async def delete(self, path: str, params: Any = None, timeout: Optional[float] = None) -> httpx.Response:
        return await self.do(RequestSpec(method="DELETE", path=path, params=params), timeout)

    async def get_json(self, path: str, params: Any = None) -> Any:
        """GET *path* and decode the JSON body (``None`` for an empty body)."""
        response = await self.get(path, params=params)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise UnexpectedResponseError(f"Invalid JSON from GET {path}: {exc}") from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _run(
        self,
        spec: RequestSpec,
        overrides: dict[str, str],
        timeout: Optional[float],
    ) -> httpx.Response:
        if timeout is None:
            return await self._send_with_retry(spec, overrides)
        if timeout <= 0:
            raise RequestCancelledError(f"{spec.method} {spec.path}: deadline already expired")
        try:
            async with asyncio.timeout(timeout):
                return await self._send_with_retry(spec, overrides)
        except TimeoutError as exc:
            raise RequestCancelledError(
                f"{spec.method} {spec.path}: cancelled after {timeout:g}s"
            ) from exc

    async def _send_with_retry(self, spec: RequestSpec, overrides: dict[str, str]) -> httpx.Response:
        """Execute *spec* under the rate limiter and retry policy."""
        assert self._client is not None, "Client not initialised -- use as async context manager"

        path, params = self._request_target(spec, overrides)
        headers = self._headers(spec)

        if self._config.dry_run:
            return self._print_dry_run(spec, path, params, headers)

        cache_url: Optional[str] = None
        if self._cache is not None and spec.method.upper() == "GET":
            request = self._client.build_request(spec.method, path, params=params)
            cache_url = str(request.url)
            cached = self._cache.get(spec.method, cache_url)
            if cached is not None:
                debug(f"Cache hit: GET {path}")
                return httpx.Response(
                    cached["status_code"],
                    headers=cached["headers"],
                    content=cached["content"],
                    request=request,
                )

        context = self._retry.new_context()
        while True:
            context.attempt += 1
            await self._limiter.acquire()
            debug(f"{spec.method} {path} (attempt {context.attempt}/{context.max_attempts})")

            cause: Optional[Exception] = None
            try:
                response = await self._client.request(
                    spec.method, path, params=params, headers=headers, json=spec.json_body
                )
            except httpx.TransportError as exc:
                cause = exc
                error: APIError = classify_transport_error(exc)
            else:
                self._observe_quota(response)
                if response.status_code < 400:
                    if cache_url is not None:
                        self._store(cache_url, response)
                    return response
                error = classify_response(response)

            context.record(error)
            delay, should_retry = self._retry.next_delay(context.attempt, error)
            if not should_retry:
                raise error from cause
            debug(
                f"{error} -- retrying in {delay:.1f}s "
                f"(attempt {context.attempt}/{context.max_attempts})"
            )
            await self._retry.sleep(delay)

    def _request_target(
        self, spec: RequestSpec, overrides: dict[str, str]
    ) -> tuple[str, httpx.QueryParams]:
        """Split ``spec.path`` and merge its query with params and overrides.

        Keys from ``spec.params`` replace the same keys already in the path;
        ``overrides`` and ``as_user_id`` are set last, so none of them can
        appear twice.
        """
        path, _, raw_query = spec.path.partition("?")
        params = httpx.QueryParams(raw_query)
        if spec.params:
            params = params.merge(httpx.QueryParams(list(spec.params)))
        for key, value in overrides.items():
            params = params.set(key, value)
        if self._config.as_user_id > 0:
            params = params.set("as_user_id", str(self._config.as_user_id))
        return path, params

    def _headers(self, spec: RequestSpec) -> dict[str, str]:
        headers = dict(spec.headers)
        headers.update(
            {
                "Authorization": f"Bearer {self._config.token.get_secret_value()}",
                "Accept": "application/json",
                "User-Agent": self._config.user_agent,
            }
        )
        return headers

    def _relative(self, url: str) -> str:
        """Turn an absolute next-page URL into a path and query for this client."""
        base = self._config.base_url
        if url.startswith(base):
            return url[len(base):] or "/"
        parsed = httpx.URL(url)
        if parsed.is_absolute_url:
            return parsed.raw_path.decode("ascii")
        return url

    def _observe_quota(self, response: httpx.Response) -> None:
        remaining = response.headers.get(QUOTA_HEADER)
        if remaining is None:
            return
        try:
            value = float(remaining)
        except ValueError:
            debug(f"Ignoring malformed {QUOTA_HEADER} header: {remaining!r}")
            return
        self._limiter.adjust_for_quota(value, self._quota_total)

    def _store(self, url: str, response: httpx.Response) -> None:
        assert self._cache is not None
        self._cache.set(
            "GET",
            url,
            {
                "status_code": response.status_code,
                "headers": [
                    (name, value)
                    for name, value in response.headers.multi_items()
                    if name.lower() not in _STALE_HEADERS
                ],
                "content": response.content,
            },
        )

    def _print_dry_run(
        self,
        spec: RequestSpec,
        path: str,
        params: httpx.QueryParams,
        headers: dict[str, str],
    ) -> httpx.Response:
        """Print the request as curl and return a synthetic ``200 []``."""
        assert self._client is not None
        request = self._client.build_request(spec.method, path, params=params, headers=headers)
        url = str(request.url)
        get_output().print_data(
            build_curl(
                spec.method,
                url,
                headers.items(),
                json_body=spec.json_body,
                show_token=self._config.show_token,
            )
        )
        return synthetic_response(spec.method, url)


def _decode_page(response: httpx.Response) -> list[Any]:
    """Decode one page body, which must be a JSON array."""
    try:
        payload = response.json()
    except ValueError as exc:
        raise UnexpectedResponseError(
            f"Invalid JSON in page from {response.request.url}: {exc}"
        ) from exc
    if not isinstance(payload, list):
        raise UnexpectedResponseError(
            f"Expected a JSON array from {response.request.url}, got {type(payload).__name__}"
        )
    return payload


def _requested_page_size(spec: RequestSpec) -> Optional[str]:
    """The last ``per_page`` the caller put in the path query or params."""
    _, _, raw_query = spec.path.partition("?")
    sizes = httpx.QueryParams(raw_query).get_list("per_page")
    sizes += [value for key, value in spec.params if key == "per_page"]
    return sizes[-1] if sizes else None
