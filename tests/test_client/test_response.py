"""Tests for printing API responses."""

from __future__ import annotations

import json

import httpx

from canvas_cli.client.response import extract_response_data, format_api_response


def _response(status: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("GET", "https://canvas.test/x"), **kwargs)


class TestExtractResponseData:
    def test_json(self) -> None:
        assert extract_response_data(_response(json={"id": 1})) == {"id": 1}

    def test_text_fallback(self) -> None:
        assert extract_response_data(_response(text="plain body")) == "plain body"

    def test_empty(self) -> None:
        assert extract_response_data(_response(204)) is None


class TestFormatApiResponse:
    def test_json_body_to_stdout_status_to_stderr(self, json_output, capsys) -> None:
        format_api_response(_response(json=[{"id": 1}]))
        captured = capsys.readouterr()
        assert json.loads(captured.out) == [{"id": 1}]
        assert "HTTP 200 OK" in captured.err

    def test_empty_body_prints_nothing(self, json_output, capsys) -> None:
        format_api_response(_response(204))
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "HTTP 204" in captured.err

    def test_quiet_hides_status(self, quiet_output, capsys) -> None:
        format_api_response(_response(json={"name": "Intro"}))
        captured = capsys.readouterr()
        assert captured.err == ""
        assert "name\tIntro" in captured.out
