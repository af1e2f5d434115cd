"""Single-object lookup with a collection-scan fallback.

Some Canvas objects have no endpoint that returns one of them by ID from
the caller's point of view (enrollments for a course teacher are the usual
example). :func:`find_by_id` tries a direct endpoint first when one is
known and only falls back to reading the whole collection, which costs one
request per page, when that request answers 404 or another failure the
caller lists.
"""

from __future__ import annotations

from typing import Any, Optional

from canvas_cli.client.api_client import APIClient
from canvas_cli.exceptions import APIError, NotFoundError
from canvas_cli.models import RequestSpec
from canvas_cli.output import debug


async def find_by_id(
    client: APIClient,
    collection_spec: RequestSpec,
    target_id: Any,
    direct_spec: Optional[RequestSpec] = None,
    id_field: str = "id",
    fallback_on: tuple[type[APIError], ...] = (NotFoundError,),
) -> Any:
    """Return the object whose *id_field* equals *target_id*.

    Args:
        client: An entered API client.
        collection_spec: Request for the collection to scan.
        target_id: ID to look for; compared as a string.
        direct_spec: Optional single-object request tried first.
        id_field: Key holding the ID in each collection item.
        fallback_on: Direct-request failures that send the lookup to the scan.

    Raises:
        NotFoundError: Neither the direct request nor the scan found the object.
        APIError: Any other failure, including a direct failure not listed
            in *fallback_on*; the scan is not attempted in that case.
    """
    if direct_spec is not None:
        try:
            response = await client.do(direct_spec)
        except fallback_on as exc:
            debug(f"{direct_spec.path} failed ({exc.status_code}); scanning {collection_spec.path}")
        else:
            return response.json()

    wanted = str(target_id)
    scanned = 0
    async for item in client.paginate(collection_spec, max_results=0):
        scanned += 1
        if isinstance(item, dict) and str(item.get(id_field)) == wanted:
            return item

    debug(f"Scanned {scanned} items of {collection_spec.path} without a match")
    raise NotFoundError(
        f"No object with {id_field} {wanted} in {collection_spec.path}",
        suggestion="Verify the ID and the parent resource, then try again.",
    )
