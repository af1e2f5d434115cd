"""Tests for enrollment requests."""

from __future__ import annotations

import pytest

from canvas_cli.exceptions import InvalidUsageError, NotFoundError, ServerError
from canvas_cli.services.enrollments import get_enrollment, list_enrollments, list_spec


class TestListSpec:
    def test_course(self) -> None:
        spec = list_spec(course_id=10, types=["StudentEnrollment"], states=["active"], include=["avatar_url"])
        assert spec.path == "/api/v1/courses/10/enrollments"
        assert spec.params == (
            ("type[]", "StudentEnrollment"),
            ("state[]", "active"),
            ("include[]", "avatar_url"),
        )

    def test_user(self) -> None:
        spec = list_spec(user_id=5)
        assert spec.path == "/api/v1/users/5/enrollments"
        assert spec.params == ()

    @pytest.mark.parametrize("kwargs", [{}, {"course_id": 1, "user_id": 2}])
    def test_exactly_one_owner(self, kwargs) -> None:
        with pytest.raises(InvalidUsageError, match="exactly one"):
            list_spec(**kwargs)

    def test_unknown_type(self) -> None:
        with pytest.raises(InvalidUsageError, match="Unknown enrollment type"):
            list_spec(course_id=1, types=["Student"])


@pytest.mark.asyncio
async def test_list_enrollments_reads_every_page(canvas, make_client) -> None:
    canvas.pages(
        "/api/v1/courses/10/enrollments",
        [[{"id": 1, "course_id": 10}], [{"id": 2, "course_id": 10}]],
    )
    async with make_client() as client:
        items = await list_enrollments(client, list_spec(course_id=10)).collect()
    assert [item["id"] for item in items] == [1, 2]


class TestGetEnrollment:
    @pytest.mark.asyncio
    async def test_direct_endpoint(self, canvas, make_client) -> None:
        canvas.json("/api/v1/accounts/self/enrollments/7", {"id": 7, "course_id": 10})
        async with make_client() as client:
            enrollment = await get_enrollment(client, 10, 7)
        assert enrollment["id"] == 7
        assert canvas.paths() == ["/api/v1/accounts/self/enrollments/7"]

    @pytest.mark.asyncio
    async def test_scan_fallback(self, canvas, make_client) -> None:
        canvas.pages(
            "/api/v1/courses/10/enrollments",
            [[{"id": 6, "course_id": 10}], [{"id": 7, "course_id": 10}]],
        )
        async with make_client() as client:
            enrollment = await get_enrollment(client, 10, 7)
        assert enrollment["id"] == 7
        assert canvas.paths()[0] == "/api/v1/accounts/self/enrollments/7"

    @pytest.mark.asyncio
    async def test_scan_only(self, canvas, make_client) -> None:
        canvas.json("/api/v1/accounts/self/enrollments/7", {"id": 7, "course_id": 10})
        canvas.pages("/api/v1/courses/10/enrollments", [[{"id": 7, "course_id": 10}]])
        async with make_client() as client:
            await get_enrollment(client, 10, 7, try_direct=False)
        assert canvas.paths() == ["/api/v1/courses/10/enrollments"]

    @pytest.mark.asyncio
    async def test_direct_hit_in_another_course(self, canvas, make_client) -> None:
        canvas.json("/api/v1/accounts/self/enrollments/7", {"id": 7, "course_id": 99})
        async with make_client() as client:
            with pytest.raises(NotFoundError, match="does not belong"):
                await get_enrollment(client, 10, 7)

    @pytest.mark.asyncio
    async def test_missing(self, canvas, make_client) -> None:
        canvas.pages("/api/v1/courses/10/enrollments", [[{"id": 6, "course_id": 10}]])
        async with make_client() as client:
            with pytest.raises(NotFoundError):
                await get_enrollment(client, 10, 7)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_non_admin_falls_back_to_scan(self, canvas, make_client, status) -> None:
        canvas.json(
            "/api/v1/accounts/self/enrollments/789",
            {"errors": [{"message": "user not authorized to perform that action"}]},
            status=status,
        )
        canvas.pages("/api/v1/courses/123/enrollments", [[{"id": 789, "course_id": 123}]])
        async with make_client() as client:
            enrollment = await get_enrollment(client, 123, 789)
        assert enrollment == {"id": 789, "course_id": 123}
        assert canvas.paths() == [
            "/api/v1/accounts/self/enrollments/789",
            "/api/v1/courses/123/enrollments",
        ]

    @pytest.mark.asyncio
    async def test_server_error_is_not_masked(self, canvas, make_client) -> None:
        canvas.json("/api/v1/accounts/self/enrollments/7", {"message": "boom"}, status=500)
        async with make_client(max_attempts=1) as client:
            with pytest.raises(ServerError):
                await get_enrollment(client, 10, 7)
        assert "/api/v1/courses/10/enrollments" not in canvas.paths()
