"""Tests for file downloads and progress reporting."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import AsyncIterator

import httpx
import pytest

from fetchkit.client import Client, HTTPXTransport, immediate
from fetchkit.client.downloader import expected_length
from fetchkit.exceptions import InvalidUrl, NetworkError, ResponseFailure, UnknownError


async def _chunks(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        yield part


async def _broken(*parts: bytes) -> AsyncIterator[bytes]:
    for part in parts:
        yield part
    raise httpx.ReadError("connection reset")


def _client(handler, download_dir: Path) -> Client:
    return Client(
        transport=HTTPXTransport(transport=httpx.MockTransport(handler)),
        download_dir=download_dir,
    )


@pytest.fixture
def download_dir(tmp_path: Path) -> Path:
    path = tmp_path / "downloads"
    path.mkdir()
    return path


class TestExpectedLength:
    @pytest.mark.parametrize(
        "headers, expected",
        [
            ({"Content-Length": "1000"}, 1000),
            ({"Content-Length": "0"}, None),
            ({"Content-Length": "lots"}, None),
            ({}, None),
        ],
    )
    def test_values(self, headers: dict, expected) -> None:
        response = httpx.Response(200, headers=headers)
        assert expected_length(response) == expected


class TestDownloadAsync:
    @pytest.mark.anyio
    async def test_progress_fractions(self, download_dir: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"Content-Length": "1000"},
                content=_chunks(b"a" * 250, b"b" * 250, b"c" * 500),
            )

        progress: list[float] = []
        path = await _client(handler, download_dir).request(
            "https://files.example.com/report.pdf"
        ).response_file_async(on_progress=progress.append)

        assert progress == [0.25, 0.5, 1.0]
        assert path.parent == download_dir
        assert path.suffix == ".pdf"
        assert path.read_bytes() == b"a" * 250 + b"b" * 250 + b"c" * 500

    @pytest.mark.anyio
    async def test_unknown_length_reports_nothing(self, download_dir: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=_chunks(b"x" * 10, b"y" * 10))

        progress: list[float] = []
        path = await _client(handler, download_dir).request(
            "https://files.example.com/stream"
        ).response_file_async(on_progress=progress.append)

        assert progress == []
        assert path.read_bytes() == b"x" * 10 + b"y" * 10

    @pytest.mark.anyio
    async def test_http_error_leaves_no_file(self, download_dir: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, content=b"no such file")

        request = _client(handler, download_dir).request("https://files.example.com/missing")
        with pytest.raises(ResponseFailure) as exc_info:
            await request.response_file_async()

        assert exc_info.value.status_code == 404
        assert exc_info.value.data == b"no such file"
        assert list(download_dir.iterdir()) == []

    @pytest.mark.anyio
    async def test_transfer_interrupted_removes_partial_file(self, download_dir: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, headers={"Content-Length": "100"}, content=_broken(b"z" * 40)
            )

        progress: list[float] = []
        request = _client(handler, download_dir).request("https://files.example.com/big.iso")
        with pytest.raises(ResponseFailure) as exc_info:
            await request.response_file_async(on_progress=progress.append)

        assert isinstance(exc_info.value.cause, httpx.ReadError)
        assert progress == [0.4]
        assert list(download_dir.iterdir()) == []

    @pytest.mark.anyio
    async def test_connection_refused(self, download_dir: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        request = _client(handler, download_dir).request("https://files.example.com/a")
        with pytest.raises(ResponseFailure) as exc_info:
            await request.response_file_async()
        assert exc_info.value.status_code is None

    @pytest.mark.anyio
    async def test_missing_directory_is_unknown_error(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"data")

        request = _client(handler, tmp_path / "absent").request("https://files.example.com/a.bin")
        with pytest.raises(UnknownError) as exc_info:
            await request.response_file_async()
        assert isinstance(exc_info.value.cause, FileNotFoundError)

    @pytest.mark.anyio
    async def test_invalid_url(self, download_dir: Path) -> None:
        request = _client(lambda request: httpx.Response(200), download_dir).request("::")
        with pytest.raises(InvalidUrl):
            await request.response_file_async()


class TestDownloadCallback:
    def test_progress_then_completion_in_order(self, download_dir: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"Content-Length": "4"},
                content=_chunks(b"ab", b"cd"),
            )

        events: list[object] = []
        done = threading.Event()

        def on_success(path: Path) -> None:
            events.append(path)
            done.set()

        def on_failure(error: NetworkError) -> None:
            events.append(error)
            done.set()

        _client(handler, download_dir).request("https://files.example.com/tiny.bin").response_file(
            on_success, on_failure, on_progress=events.append, deliver=immediate
        )

        assert done.wait(timeout=5)
        assert events[:2] == [0.5, 1.0]
        assert isinstance(events[2], Path)
        assert events[2].read_bytes() == b"abcd"

    def test_construction_failure_synchronous(self, download_dir: Path) -> None:
        errors: list[NetworkError] = []
        _client(lambda request: httpx.Response(200), download_dir).request("bad url").response_file(
            lambda path: None, errors.append
        )
        assert len(errors) == 1
        assert isinstance(errors[0], InvalidUrl)
