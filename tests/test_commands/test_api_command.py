"""Tests for ``canvas api``."""

from __future__ import annotations

import json

import httpx
import pytest

from canvas_cli.app import app
from canvas_cli.commands.api import build_spec
from canvas_cli.exceptions import InvalidUsageError
from canvas_cli.exit_codes import EXIT_INVALID_USAGE, EXIT_NOT_FOUND

SECRET = "tok-very-secret-1234"


def _invoke(cli_runner, *args: str, input: str | None = None):
    return cli_runner.invoke(app, ["--json", "--quiet", *args], input=input)


class TestBuildSpec:
    def test_normalises_method_and_path(self) -> None:
        spec = build_spec("get", "api/v1/courses", [], [])
        assert spec.method == "GET"
        assert spec.path == "/api/v1/courses"

    def test_query_and_headers(self) -> None:
        spec = build_spec("GET", "/x", ["a=1", "a=2", "empty="], ["X-Trace: abc"])
        assert spec.params == (("a", "1"), ("a", "2"), ("empty", ""))
        assert spec.headers == (("X-Trace", "abc"),)

    @pytest.mark.parametrize(
        ("method", "query", "headers"),
        [("FETCH", [], []), ("GET", ["novalue"], []), ("GET", [], ["no-colon"])],
    )
    def test_invalid_input(self, method, query, headers) -> None:
        with pytest.raises(InvalidUsageError):
            build_spec(method, "/x", query, headers)


class TestSend:
    def test_get_prints_json(self, cli_runner, env_credentials, canvas) -> None:
        canvas.json("/api/v1/users/self", {"id": 1, "name": "Ada"})

        result = _invoke(cli_runner, "api", "GET", "/api/v1/users/self")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == {"id": 1, "name": "Ada"}
        request = canvas.requests[0]
        assert request.headers["Authorization"] == f"Bearer {SECRET}"
        assert request.headers["User-Agent"].startswith("canvas-cli/")

    def test_query_headers_and_masquerade(self, cli_runner, env_credentials, canvas) -> None:
        canvas.json("/api/v1/users", [])

        result = _invoke(
            cli_runner,
            "--as-user", "5",
            "api", "GET", "api/v1/users", "-q", "search_term=john", "-H", "X-Trace: t1",
        )

        assert result.exit_code == 0, result.output
        request = canvas.requests[0]
        assert request.url.params["search_term"] == "john"
        assert request.url.params["as_user_id"] == "5"
        assert request.headers["X-Trace"] == "t1"

    def test_post_json_body(self, cli_runner, env_credentials, canvas) -> None:
        canvas.json("/api/v1/accounts/1/courses", {"id": 9}, status=200)

        result = _invoke(
            cli_runner, "api", "POST", "/api/v1/accounts/1/courses", "-d", '{"course": {"name": "Test"}}'
        )

        assert result.exit_code == 0, result.output
        assert json.loads(canvas.requests[0].content) == {"course": {"name": "Test"}}

    def test_data_file(self, cli_runner, env_credentials, canvas, tmp_path) -> None:
        canvas.json("/api/v1/courses/1", {"id": 1})
        body = tmp_path / "body.json"
        body.write_text('{"course": {"name": "Renamed"}}')

        result = _invoke(cli_runner, "api", "PUT", "/api/v1/courses/1", "--data-file", str(body))

        assert result.exit_code == 0, result.output
        assert json.loads(canvas.requests[0].content)["course"]["name"] == "Renamed"

    def test_invalid_json_body(self, cli_runner, env_credentials, canvas) -> None:
        result = _invoke(cli_runner, "api", "POST", "/api/v1/x", "-d", "{nope")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Invalid JSON" in result.output
        assert canvas.requests == []

    def test_not_found(self, cli_runner, env_credentials, canvas) -> None:
        result = _invoke(cli_runner, "api", "GET", "/api/v1/courses/999")

        assert result.exit_code == EXIT_NOT_FOUND
        assert "The specified resource does not exist." in result.output
        assert len(canvas.requests) == 1

    def test_server_error_retried(self, cli_runner, env_credentials, canvas) -> None:
        replies = iter([httpx.Response(503), httpx.Response(200, json={"ok": True})])
        canvas.routes["/api/v1/flaky"] = lambda request: next(replies)

        result = _invoke(cli_runner, "api", "GET", "/api/v1/flaky")

        assert result.exit_code == 0, result.output
        assert len(canvas.requests) == 2

    def test_token_never_printed_on_error(self, cli_runner, env_credentials, canvas) -> None:
        canvas.json("/api/v1/users/self", {"errors": [{"message": "Invalid access token."}]}, status=401)
        result = _invoke(cli_runner, "api", "GET", "/api/v1/users/self")
        assert result.exit_code == 3
        assert SECRET not in result.output


class TestPaginate:
    def test_collects_every_page(self, cli_runner, env_credentials, canvas) -> None:
        canvas.pages("/api/v1/courses", [[{"id": 1}, {"id": 2}], [{"id": 3}]])

        result = _invoke(cli_runner, "api", "GET", "/api/v1/courses", "--paginate", "--per-page", "2")

        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [{"id": 1}, {"id": 2}, {"id": 3}]
        assert [r.url.params["per_page"] for r in canvas.requests] == ["2", "2"]

    def test_query_page_size_is_kept(self, cli_runner, env_credentials, canvas) -> None:
        canvas.pages("/api/v1/courses", [[{"id": 1}], [{"id": 2}]])

        result = _invoke(cli_runner, "api", "GET", "/api/v1/courses", "-q", "per_page=50", "--paginate")

        assert result.exit_code == 0, result.output
        assert [r.url.params.get_list("per_page") for r in canvas.requests] == [["50"], ["50"]]

    def test_limit(self, cli_runner, env_credentials, canvas) -> None:
        canvas.pages("/api/v1/courses", [[{"id": 1}, {"id": 2}], [{"id": 3}]])

        result = _invoke(cli_runner, "--limit", "1", "api", "GET", "/api/v1/courses", "--paginate")

        assert json.loads(result.output) == [{"id": 1}]
        assert len(canvas.requests) == 1

    def test_get_only(self, cli_runner, env_credentials, canvas) -> None:
        result = _invoke(cli_runner, "api", "POST", "/api/v1/courses", "--paginate")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert canvas.requests == []


class TestDelete:
    def test_declined(self, cli_runner, env_credentials, canvas) -> None:
        result = _invoke(cli_runner, "api", "DELETE", "/api/v1/courses/1", input="n\n")
        assert result.exit_code == 0
        assert canvas.requests == []

    def test_forced(self, cli_runner, env_credentials, canvas) -> None:
        canvas.json("/api/v1/courses/1", {"delete": True})
        result = _invoke(cli_runner, "--force", "api", "DELETE", "/api/v1/courses/1")
        assert result.exit_code == 0, result.output
        assert canvas.requests[0].method == "DELETE"

    def test_dry_run_prints_curl(self, cli_runner, env_credentials, canvas) -> None:
        result = _invoke(
            cli_runner, "--dry-run", "api", "DELETE", "/api/v1/courses/1", "-q", "event=delete"
        )

        assert result.exit_code == 0, result.output
        assert canvas.requests == []
        assert "curl -X DELETE 'https://canvas.test/api/v1/courses/1?event=delete'" in result.output
        assert "Bearer [REDACTED]" in result.output
        assert SECRET not in result.output

    def test_dry_run_show_token(self, cli_runner, env_credentials, canvas) -> None:
        result = _invoke(cli_runner, "--dry-run", "--show-token", "api", "GET", "/api/v1/users/self")
        assert f"Bearer {SECRET}" in result.output
