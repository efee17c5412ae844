"""Tests for Client, the shared client and the module-level helpers."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

import fetchkit
from fetchkit.client import Client, HTTPXTransport, get_client, reset_client, set_client
from fetchkit.config import update_config
from fetchkit.exceptions import InvalidBody
from fetchkit.models import ClientConfig, FormData, HTTPMethod


def _echo(request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "method": request.method,
            "url": str(request.url),
            "headers": dict(request.headers),
            "body": request.content.decode("utf-8", errors="replace"),
        },
    )


class TestClient:
    def test_explicit_config(self) -> None:
        client = Client(ClientConfig(timeout=3, headers={}))
        request = client.request("https://api.example.com/")
        assert request.descriptor.timeout == 3
        assert request.descriptor.headers == {}

    def test_process_config_read_per_request(self) -> None:
        client = Client()
        first = client.request("https://api.example.com/")
        update_config(timeout=9)
        second = client.request("https://api.example.com/")
        assert first.descriptor.timeout == 60.0
        assert second.descriptor.timeout == 9

    def test_repr(self) -> None:
        assert repr(Client().request("https://api.example.com/a")) == (
            "<Request GET https://api.example.com/a>"
        )

    @pytest.mark.anyio
    async def test_form_data_request(self, make_client, tmp_path: Path) -> None:
        (tmp_path / "avatar.png").write_bytes(b"\x89PNG")
        form = FormData()
        form.append("name", "quan")
        form.append_file("avatar", tmp_path / "avatar.png")

        echoed = await make_client(_echo).form_data_request(
            "https://api.example.com/upload", form, method="POST"
        ).response_json_async()

        assert echoed["method"] == "POST"
        assert echoed["headers"]["content-type"].startswith("multipart/form-data; boundary=")
        assert 'name="avatar"; filename="avatar.png"' in echoed["body"]

    def test_form_data_request_defaults_to_get(self) -> None:
        request = Client().form_data_request("https://api.example.com/upload", FormData())
        assert request.descriptor.method is HTTPMethod.GET

    def test_form_data_request_unreadable_file(self, tmp_path: Path) -> None:
        form = FormData()
        form.append_file("doc", tmp_path / "nope.txt")
        request = Client().form_data_request("https://api.example.com/upload", form, "POST")
        assert isinstance(request.error, InvalidBody)
        assert request.partial.method is HTTPMethod.POST

    @pytest.mark.anyio
    async def test_graphql_request(self, make_client) -> None:
        echoed = await make_client(_echo).graphql_request(
            "https://api.example.com/graphql",
            "query Hero($episode: String!) { hero(episode: $episode) { name } }",
            {"episode": "JEDI"},
        ).response_json_async()

        assert echoed["method"] == "POST"
        envelope = json.loads(echoed["body"])
        assert envelope["variables"] == '{"episode":"JEDI"}'
        assert envelope["query"].startswith("query Hero")


class TestSharedClient:
    def test_lazily_created_and_reused(self) -> None:
        assert get_client() is get_client()

    def test_set_and_reset(self) -> None:
        custom = Client(ClientConfig(timeout=1))
        set_client(custom)
        assert get_client() is custom
        reset_client()
        assert get_client() is not custom

    @pytest.mark.anyio
    async def test_module_helpers_use_shared_client(self) -> None:
        set_client(Client(transport=HTTPXTransport(httpx.MockTransport(_echo))))

        echoed = await fetchkit.request(
            "https://api.example.com/items", "put", parameters={"id": "7"}, body=b"raw"
        ).response_json_async()
        assert echoed["method"] == "PUT"
        assert echoed["url"] == "https://api.example.com/items?id=7"
        assert echoed["body"] == "raw"

        graphql = await fetchkit.graphql_request(
            "https://api.example.com/graphql", "{ hero { name } }"
        ).response_json_async()
        assert json.loads(graphql["body"]) == {"query": "{ hero { name } }"}

        form = FormData()
        form.append("k", "v")
        uploaded = await fetchkit.form_data_request(
            "https://api.example.com/upload", form, "POST"
        ).response_json_async()
        assert 'name="k"' in uploaded["body"]
