"""HTTP commands -- ``fetchkit request``, ``fetchkit graphql`` and ``fetchkit download``.

Each command builds a request with the shared
:class:`~fetchkit.client.Client` transport and the defaults resolved by
:func:`~fetchkit.config.resolve_config`, then awaits the response with the
``*_async`` accessors. Classified failures are printed to stderr and exit
with the error's ``exit_code``.
"""

from __future__ import annotations

import asyncio
import json
import shutil
from enum import Enum
from pathlib import Path
from typing import Any, Optional

import typer

from fetchkit.cache import get_cache
from fetchkit.client import Client, get_client
from fetchkit.client.converters import to_json, to_text
from fetchkit.config import resolve_config
from fetchkit.exceptions import ConfigError, FetchkitError, ResponseFailure
from fetchkit.exit_codes import EXIT_INVALID_USAGE
from fetchkit.models import DataBody, FormData, HTTPMethod
from fetchkit.output import debug, error, format_response, get_output, info, warning


class ResponseAs(str, Enum):
    """How a response body is interpreted before printing."""

    JSON = "json"
    TEXT = "text"


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _client(ctx: typer.Context) -> Client:
    """A client using the resolved defaults and the shared client's transport."""
    timeout = (ctx.obj or {}).get("timeout")
    try:
        config = resolve_config(timeout)
    except ConfigError as exc:
        raise _fail(exc) from exc
    return Client(config, get_client().transport)


def _usage_error(message: str) -> typer.Exit:
    error(message)
    return typer.Exit(code=EXIT_INVALID_USAGE)


def _parse_pairs(values: list[str], separator: str, option: str) -> dict[str, str]:
    """Split ``NAME<sep>VALUE`` option values into a mapping (last one wins)."""
    pairs: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition(separator)
        if not sep or not name.strip():
            raise _usage_error(f"{option} expects NAME{separator}VALUE, got {item!r}")
        pairs[name.strip()] = value.strip() if separator == ":" else value
    return pairs


def _parse_form(values: list[str]) -> FormData:
    """Build form data from ``key=value`` and ``key=@path`` items."""
    form = FormData()
    for name, value in _parse_pairs(values, "=", "--form").items():
        if value.startswith("@"):
            form.append_file(name, value[1:])
        else:
            form.append(name, value)
    return form


def _parse_json_object(text: str, option: str) -> dict[str, Any]:
    try:
        value = json.loads(text)
    except json.JSONDecodeError as exc:
        raise _usage_error(f"{option} is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise _usage_error(f"{option} must be a JSON object")
    return value


def _fail(exc: FetchkitError) -> typer.Exit:
    if isinstance(exc, ResponseFailure) and exc.data:
        debug(f"Response body: {exc.data.decode('utf-8', errors='replace')}")
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


def _show(data: bytes, response_as: ResponseAs) -> None:
    if response_as == ResponseAs.JSON:
        format_response(to_json(data))
    else:
        format_response(to_text(data))


# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #


def request_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Absolute http(s) URL."),
    method: HTTPMethod = typer.Option(
        HTTPMethod.GET, "--method", "-X", case_sensitive=False, help="HTTP method."
    ),
    param: list[str] = typer.Option([], "--param", "-p", help="Query parameter NAME=VALUE."),
    header: list[str] = typer.Option([], "--header", "-H", help="Header 'Name: value'."),
    json_body: Optional[str] = typer.Option(None, "--json-body", help="JSON object body."),
    data: Optional[str] = typer.Option(None, "--data", "-d", help="Raw text body."),
    form: list[str] = typer.Option(
        [], "--form", "-F", help="Multipart field NAME=VALUE, or NAME=@PATH for a file."
    ),
    response_as: ResponseAs = typer.Option(
        ResponseAs.JSON, "--as", help="Interpret the response as json or text."
    ),
    cache_key: Optional[str] = typer.Option(
        None, "--cache-key", help="Store the body under this key; serve it if the request fails."
    ),
) -> None:
    """Send a request and print the response body.

    Example::

        fetchkit request https://httpbin.org/get -p q=1
        fetchkit request https://httpbin.org/post -X POST --json-body '{"name": "quan"}'
        fetchkit request https://httpbin.org/post -X POST -F name=quan -F avatar=@me.png
    """
    if sum(option is not None for option in (json_body, data)) + bool(form) > 1:
        raise _usage_error("Use only one of --json-body, --data and --form")

    parameters = _parse_pairs(param, "=", "--param")
    headers = _parse_pairs(header, ":", "--header")
    client = _client(ctx)

    if form:
        request = client.form_data_request(url, _parse_form(form), method, parameters, headers)
    else:
        body: Any = None
        if json_body is not None:
            body = _parse_json_object(json_body, "--json-body")
        elif data is not None:
            body = DataBody(content=data.encode("utf-8"))
        request = client.request(url, method, parameters, body, headers)

    try:
        payload = asyncio.run(request.response_data_async())
    except ResponseFailure as exc:
        cached = _cached(cache_key)
        if cached is None:
            raise _fail(exc) from exc
        warning(f"{exc}; serving cached response for {cache_key!r}")
        payload = cached
    except FetchkitError as exc:
        raise _fail(exc) from exc
    else:
        if cache_key is not None:
            _store(cache_key, payload)

    try:
        _show(payload, response_as)
    except FetchkitError as exc:
        raise _fail(exc) from exc


def _cached(key: Optional[str]) -> Optional[bytes]:
    if key is None:
        return None
    return get_cache().get(key)


def _store(key: str, payload: bytes) -> None:
    if not get_cache().put(key, payload):
        warning(f"Response is not text; not cached under {key!r}")


def graphql_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="GraphQL endpoint URL."),
    query: str = typer.Option(..., "--query", "-q", help="GraphQL query document."),
    variables: Optional[str] = typer.Option(None, "--variables", help="JSON object of variables."),
    header: list[str] = typer.Option([], "--header", "-H", help="Header 'Name: value'."),
) -> None:
    """POST a GraphQL query and print the JSON response.

    Example::

        fetchkit graphql https://api.example.com/graphql \\
            --query 'query Hero($episode: String!) { hero(episode: $episode) { name } }' \\
            --variables '{"episode": "JEDI"}'
    """
    parsed = _parse_json_object(variables, "--variables") if variables is not None else None
    headers = _parse_pairs(header, ":", "--header")
    request = _client(ctx).graphql_request(url, query, parsed, headers)
    try:
        result = asyncio.run(request.response_json_async())
    except FetchkitError as exc:
        raise _fail(exc) from exc
    format_response(result)


def download_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="URL of the file to download."),
    dest: Optional[Path] = typer.Option(
        None, "--dest", "-o", help="Move the download here instead of leaving it in a temp file."
    ),
    header: list[str] = typer.Option([], "--header", "-H", help="Header 'Name: value'."),
) -> None:
    """Download a file, showing progress, and print where it was saved."""
    headers = _parse_pairs(header, ":", "--header")
    request = _client(ctx).request(url, headers=headers)
    output = get_output()

    with output.progress_bar() as progress:
        task = progress.add_task("Downloading", total=1.0)

        def on_progress(fraction: float) -> None:
            progress.update(task, completed=fraction)

        try:
            path = asyncio.run(request.response_file_async(on_progress=on_progress))
        except FetchkitError as exc:
            raise _fail(exc) from exc

    if dest is not None:
        path = Path(shutil.move(str(path), str(dest)))
    info(f"Saved {url}")
    output.print_data(str(path))
