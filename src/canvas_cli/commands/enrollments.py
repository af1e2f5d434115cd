"""Enrollment commands.

Examples::

    canvas enrollments list --course-id 123 --type StudentEnrollment
    canvas enrollments get 123 789
    canvas enrollments get 123 789 --scan
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from canvas_cli.commands import helpers
from canvas_cli.models import InvocationOptions, RequestSpec
from canvas_cli.output import format_response

enrollments_app = typer.Typer(no_args_is_help=True)


@enrollments_app.command("list")
def enrollments_list(
    ctx: typer.Context,
    course_id: Optional[int] = typer.Option(None, "--course-id", help="List a course's enrollments."),
    user_id: Optional[int] = typer.Option(None, "--user-id", help="List a user's enrollments."),
    types: Optional[list[str]] = typer.Option(
        None, "--type", help="Filter by enrollment type, e.g. StudentEnrollment (repeatable)."
    ),
    states: Optional[list[str]] = typer.Option(
        None, "--state", help="Filter by state, e.g. active, invited, completed (repeatable)."
    ),
    include: Optional[list[str]] = typer.Option(
        None, "--include", help="Extra data to include, e.g. avatar_url (repeatable)."
    ),
) -> None:
    """List enrollments of a course or a user (all pages, or up to ``--limit``)."""
    from canvas_cli.services.enrollments import list_spec

    options = helpers.get_options(ctx)
    with helpers.handle_errors():
        spec = list_spec(
            course_id=course_id,
            user_id=user_id,
            types=types or (),
            states=states or (),
            include=include or (),
        )
        items = helpers.run(_list(options, spec))
    format_response(items)


@enrollments_app.command("get")
def enrollments_get(
    ctx: typer.Context,
    course_id: int = typer.Argument(help="Course the enrollment belongs to."),
    enrollment_id: int = typer.Argument(help="Enrollment ID."),
    scan: bool = typer.Option(
        False, "--scan", help="Skip the account-level lookup and scan the course directly."
    ),
) -> None:
    """Show one enrollment of a course.

    The account-level enrollment endpoint is tried first; when it answers
    404 the course's enrollments are scanned page by page instead.
    """
    options = helpers.get_options(ctx)
    with helpers.handle_errors():
        enrollment = helpers.run(_get(options, course_id, enrollment_id, try_direct=not scan))
    format_response(enrollment)


async def _list(options: InvocationOptions, spec: RequestSpec) -> list[Any]:
    from canvas_cli.services.enrollments import list_enrollments

    async with helpers.open_client(options) as client:
        return await list_enrollments(client, spec).collect()


async def _get(options: InvocationOptions, course_id: int, enrollment_id: int, try_direct: bool) -> Any:
    from canvas_cli.services.enrollments import get_enrollment

    async with helpers.open_client(options) as client:
        return await get_enrollment(client, course_id, enrollment_id, try_direct=try_direct)
