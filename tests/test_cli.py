"""End-to-end tests for the ``fetchkit`` command line.

Requests never leave the process: each test installs a shared client
whose transport is an :class:`httpx.MockTransport`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import httpx
import pytest

from fetchkit import __version__
from fetchkit.app import app
from fetchkit.cache import get_cache
from fetchkit.client import Client, HTTPXTransport, set_client
from fetchkit.config import load_config_file, save_config_file
from fetchkit.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_REQUEST,
    EXIT_INVALID_USAGE,
    EXIT_RESPONSE_ERROR,
)
from fetchkit.models import ClientConfig

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture
def seen() -> list[httpx.Request]:
    return []


@pytest.fixture
def serve(seen: list[httpx.Request]) -> Callable[[Handler], None]:
    """Install *handler* behind the shared client, recording every request."""

    def install(handler: Handler) -> None:
        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        set_client(Client(transport=HTTPXTransport(httpx.MockTransport(recording))))

    return install


def _json(data, status_code: int = 200) -> Handler:
    return lambda request: httpx.Response(status_code, json=data)


def _refused(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


def test_version(cli_runner) -> None:
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"fetchkit {__version__}" in result.output


# ---------------------------------------------------------------------------
# request
# ---------------------------------------------------------------------------


class TestRequestCommand:
    def test_get_json(self, cli_runner, serve, seen) -> None:
        serve(_json({"name": "quan"}))
        result = cli_runner.invoke(
            app, ["--json", "request", "https://api.example.com/me", "-p", "lang=vi"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"name": "quan"}
        assert seen[0].url.params["lang"] == "vi"

    def test_post_json_body_with_header(self, cli_runner, serve, seen) -> None:
        serve(_json({"ok": True}))
        result = cli_runner.invoke(
            app,
            [
                "--json",
                "request",
                "https://api.example.com/login",
                "-X",
                "post",
                "--json-body",
                '{"username": "quan"}',
                "-H",
                "Authorization: Bearer t",
            ],
        )
        assert result.exit_code == 0, result.output
        request = seen[0]
        assert request.method == "POST"
        assert json.loads(request.content) == {"username": "quan"}
        assert request.headers["authorization"] == "Bearer t"

    def test_form_upload(self, cli_runner, serve, seen, tmp_path: Path) -> None:
        (tmp_path / "me.png").write_bytes(b"\x89PNG")
        serve(_json({}))
        result = cli_runner.invoke(
            app,
            [
                "request",
                "https://api.example.com/upload",
                "-X",
                "POST",
                "-F",
                "name=quan",
                "-F",
                f"avatar=@{tmp_path / 'me.png'}",
            ],
        )
        assert result.exit_code == 0, result.output
        assert seen[0].headers["content-type"].startswith("multipart/form-data; boundary=")
        assert b'filename="me.png"' in seen[0].content

    def test_text_response(self, cli_runner, serve) -> None:
        serve(lambda request: httpx.Response(200, content=b"plain words"))
        result = cli_runner.invoke(
            app, ["--plain", "request", "https://api.example.com/", "--as", "text"]
        )
        assert result.exit_code == 0
        assert result.stdout == "plain words\n"

    def test_not_found(self, cli_runner, serve) -> None:
        serve(_json({"error": "missing"}, 404))
        result = cli_runner.invoke(app, ["request", "https://api.example.com/nope"])
        assert result.exit_code == EXIT_RESPONSE_ERROR
        assert "HTTP 404" in result.output

    def test_connection_refused(self, cli_runner, serve) -> None:
        serve(_refused)
        result = cli_runner.invoke(app, ["request", "https://api.example.com/"])
        assert result.exit_code == EXIT_CONNECTION_ERROR

    def test_invalid_url(self, cli_runner, serve, seen) -> None:
        serve(_json({}))
        result = cli_runner.invoke(app, ["request", "not a url"])
        assert result.exit_code == EXIT_INVALID_REQUEST
        assert "Invalid url: not a url" in result.output
        assert seen == []

    def test_invalid_json_response(self, cli_runner, serve) -> None:
        serve(lambda request: httpx.Response(200, content=b"<html>"))
        result = cli_runner.invoke(app, ["request", "https://api.example.com/"])
        assert result.exit_code == EXIT_DECODE_ERROR

    def test_conflicting_bodies(self, cli_runner, serve, seen) -> None:
        serve(_json({}))
        result = cli_runner.invoke(
            app, ["request", "https://api.example.com/", "--json-body", "{}", "-d", "raw"]
        )
        assert result.exit_code == EXIT_INVALID_USAGE
        assert seen == []

    def test_malformed_header(self, cli_runner, serve) -> None:
        serve(_json({}))
        result = cli_runner.invoke(app, ["request", "https://api.example.com/", "-H", "nocolon"])
        assert result.exit_code == EXIT_INVALID_USAGE

    def test_timeout_option_applied(self, cli_runner, serve, seen) -> None:
        serve(_json({}))
        result = cli_runner.invoke(app, ["--timeout", "2.5", "request", "https://api.example.com/"])
        assert result.exit_code == 0, result.output
        assert seen[0].extensions["timeout"]["connect"] == 2.5

    def test_config_file_headers_sent(self, cli_runner, serve, seen) -> None:
        save_config_file(ClientConfig(headers={"X-Team": "mobile"}))
        serve(_json({}))
        result = cli_runner.invoke(app, ["request", "https://api.example.com/"])
        assert result.exit_code == 0, result.output
        assert seen[0].headers["x-team"] == "mobile"


class TestRequestCaching:
    def test_success_is_stored(self, cli_runner, serve) -> None:
        serve(_json({"v": 1}))
        result = cli_runner.invoke(
            app, ["request", "https://api.example.com/", "--cache-key", "latest"]
        )
        assert result.exit_code == 0, result.output
        assert json.loads(get_cache().get("latest")) == {"v": 1}

    def test_cached_body_served_on_failure(self, cli_runner, serve) -> None:
        get_cache().put("latest", b'{"v": 1}')
        serve(_refused)
        result = cli_runner.invoke(
            app, ["--json", "request", "https://api.example.com/", "--cache-key", "latest"]
        )
        assert result.exit_code == 0, result.output
        assert "serving cached response" in result.output

    def test_failure_without_cached_body(self, cli_runner, serve) -> None:
        serve(_refused)
        result = cli_runner.invoke(
            app, ["request", "https://api.example.com/", "--cache-key", "absent"]
        )
        assert result.exit_code == EXIT_CONNECTION_ERROR


# ---------------------------------------------------------------------------
# graphql
# ---------------------------------------------------------------------------


class TestGraphQLCommand:
    def test_posts_envelope(self, cli_runner, serve, seen) -> None:
        serve(_json({"data": {"hero": {"name": "R2-D2"}}}))
        result = cli_runner.invoke(
            app,
            [
                "--json",
                "graphql",
                "https://api.example.com/graphql",
                "-q",
                "query Hero($episode: String!) { hero(episode: $episode) { name } }",
                "--variables",
                '{"episode": "JEDI"}',
            ],
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {"data": {"hero": {"name": "R2-D2"}}}
        envelope = json.loads(seen[0].content)
        assert seen[0].method == "POST"
        assert envelope["variables"] == '{"episode":"JEDI"}'

    def test_variables_must_be_object(self, cli_runner, serve) -> None:
        serve(_json({}))
        result = cli_runner.invoke(
            app, ["graphql", "https://api.example.com/graphql", "-q", "{ a }", "--variables", "[1]"]
        )
        assert result.exit_code == EXIT_INVALID_USAGE


# ---------------------------------------------------------------------------
# download
# ---------------------------------------------------------------------------


class TestDownloadCommand:
    def test_saves_to_dest(self, cli_runner, serve, tmp_path: Path) -> None:
        serve(lambda request: httpx.Response(200, content=b"file body"))
        dest = tmp_path / "saved.txt"
        result = cli_runner.invoke(
            app, ["-q", "download", "https://files.example.com/a.txt", "-o", str(dest)]
        )
        assert result.exit_code == 0, result.output
        assert dest.read_bytes() == b"file body"
        assert result.stdout.strip() == str(dest)

    def test_failure(self, cli_runner, serve) -> None:
        serve(lambda request: httpx.Response(500, content=b"oops"))
        result = cli_runner.invoke(app, ["download", "https://files.example.com/a.txt"])
        assert result.exit_code == EXIT_RESPONSE_ERROR


# ---------------------------------------------------------------------------
# cache
# ---------------------------------------------------------------------------


class TestCacheCommands:
    def test_put_get_delete(self, cli_runner) -> None:
        assert cli_runner.invoke(app, ["cache", "put", "k", "hello"]).exit_code == 0
        result = cli_runner.invoke(app, ["cache", "get", "k"])
        assert result.exit_code == 0
        assert result.stdout == "hello\n"
        assert cli_runner.invoke(app, ["cache", "delete", "k"]).exit_code == 0
        assert get_cache().get("k") is None

    def test_get_miss(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["cache", "get", "nothing"])
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "No cache entry" in result.output

    def test_clear(self, cli_runner) -> None:
        get_cache().put("a", b"1")
        get_cache().put("b", b"2")
        result = cli_runner.invoke(app, ["cache", "clear"])
        assert result.exit_code == 0
        assert len(get_cache()) == 0


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_show_defaults(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["-q", "--json", "config", "show"])
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout) == {
            "timeout": 60.0,
            "headers": {"Content-Type": "application/json"},
        }

    def test_set_timeout(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set-timeout", "15"])
        assert result.exit_code == 0, result.output
        assert load_config_file().timeout == 15

    def test_set_timeout_rejects_non_positive(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set-timeout", "0"])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert load_config_file().timeout == 60.0

    def test_set_header_replaces_case_insensitively(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "set-header", "content-type", "text/plain"])
        assert result.exit_code == 0, result.output
        assert load_config_file().headers == {"content-type": "text/plain"}

    def test_unset_header(self, cli_runner) -> None:
        result = cli_runner.invoke(app, ["config", "unset-header", "Content-Type"])
        assert result.exit_code == 0, result.output
        assert load_config_file().headers == {}

    def test_invalid_config_file(self, cli_runner) -> None:
        from fetchkit.config import get_config_dir

        (get_config_dir() / "config.json").write_text("{broken", encoding="utf-8")
        result = cli_runner.invoke(app, ["config", "show"])
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "Invalid config" in result.output
