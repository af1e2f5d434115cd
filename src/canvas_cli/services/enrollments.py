"""Enrollment requests.

Canvas lists enrollments per course, section or user. Fetching one
enrollment by ID is only possible through the account-level endpoint,
which needs account admin rights; course-level callers get there by
scanning the course's enrollments instead (see
:func:`~canvas_cli.services.lookup.find_by_id`).
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from canvas_cli.client.api_client import APIClient
from canvas_cli.client.pagination import Paginator
from canvas_cli.exceptions import AuthError, InvalidUsageError, NotFoundError
from canvas_cli.models import RequestSpec
from canvas_cli.services.lookup import find_by_id

ENROLLMENT_TYPES = (
    "StudentEnrollment",
    "TeacherEnrollment",
    "TaEnrollment",
    "ObserverEnrollment",
    "DesignerEnrollment",
)


def list_spec(
    course_id: Optional[int] = None,
    user_id: Optional[int] = None,
    types: Sequence[str] = (),
    states: Sequence[str] = (),
    include: Sequence[str] = (),
) -> RequestSpec:
    """Build the collection request for a course's or a user's enrollments.

    Exactly one of *course_id* and *user_id* must be given.
    """
    if (course_id is None) == (user_id is None):
        raise InvalidUsageError("Specify exactly one of --course-id or --user-id")
    unknown = [t for t in types if t not in ENROLLMENT_TYPES]
    if unknown:
        raise InvalidUsageError(
            f"Unknown enrollment type(s): {', '.join(unknown)} "
            f"(expected one of {', '.join(ENROLLMENT_TYPES)})"
        )
    if course_id is not None:
        path = f"/api/v1/courses/{course_id}/enrollments"
    else:
        path = f"/api/v1/users/{user_id}/enrollments"
    return RequestSpec(
        path=path,
        params={"type[]": list(types), "state[]": list(states), "include[]": list(include)},
    )


def list_enrollments(client: APIClient, spec: RequestSpec) -> Paginator[Any]:
    return client.paginate(spec)


async def get_enrollment(
    client: APIClient,
    course_id: int,
    enrollment_id: int,
    try_direct: bool = True,
) -> Any:
    """Fetch one enrollment of *course_id*.

    With *try_direct* the account-level endpoint is tried first. A 404,
    or the 401/403 a non-admin caller gets there, falls back to scanning
    the course's enrollments.
    """
    direct = (
        RequestSpec(path=f"/api/v1/accounts/self/enrollments/{enrollment_id}")
        if try_direct
        else None
    )
    enrollment = await find_by_id(
        client,
        list_spec(course_id=course_id),
        enrollment_id,
        direct_spec=direct,
        fallback_on=(NotFoundError, AuthError),
    )
    owner = enrollment.get("course_id") if isinstance(enrollment, dict) else None
    if owner is not None and str(owner) != str(course_id):
        raise NotFoundError(f"Enrollment {enrollment_id} does not belong to course {course_id}")
    return enrollment
