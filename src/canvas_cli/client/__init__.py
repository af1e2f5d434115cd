"""Resilient HTTP client for the Canvas REST API.

The pieces, leaf first:

* :class:`RateLimiter` -- shared token bucket bounding the request rate.
* :class:`RetryPolicy` -- exponential backoff for transient failures.
* :func:`classify` -- HTTP status and body to a typed
  :class:`~canvas_cli.exceptions.APIError`.
* :class:`Paginator` -- lazy iteration over ``Link``-header pages.
* :class:`APIClient` -- orchestrates all of the above over
  :class:`httpx.AsyncClient`.

Example::

    from canvas_cli.client import APIClient

    async with APIClient(config) as client:
        courses = await client.paginate(RequestSpec(path="/api/v1/courses")).collect()
"""

from canvas_cli.client.api_client import APIClient
from canvas_cli.client.errors import classify
from canvas_cli.client.pagination import Page, Paginator, parse_link_header
from canvas_cli.client.rate_limiter import RateLimiter
from canvas_cli.client.retry import RetryPolicy

__all__ = [
    "APIClient",
    "Page",
    "Paginator",
    "RateLimiter",
    "RetryPolicy",
    "classify",
    "parse_link_header",
]
