"""fetchkit -- ergonomic HTTP requests over httpx.

Build a request in one call, then consume the response the way the caller
prefers: callbacks, a single-value async stream, or ``await``. Bodies can be
JSON objects, raw bytes, multipart forms or GraphQL queries; failures arrive
as one of the :class:`~fetchkit.exceptions.NetworkError` variants.

Typical use::

    import fetchkit

    fetchkit.request("https://httpbin.org/get").response_json(print)

    user = await fetchkit.request(
        "https://api.example.com/login",
        method="POST",
        body={"username": "quan", "password": "secret"},
    ).response_decodable_async(User)

Process-wide defaults (timeout, default headers) live in
:mod:`fetchkit.config`::

    fetchkit.update_config(timeout=10, headers={"Accept": "application/json"})

Modules:
    models: Pydantic models shared across the package.
    builder: Request construction (URL, headers, body).
    encoding: Body encoding, including the GraphQL envelope.
    multipart: multipart/form-data encoding.
    client: Transport, dispatch styles and file downloads.
    cache: Persistent key/value cache.
    config: Process-wide defaults and the config file.
    exceptions: Exception hierarchy with exit-code mapping.
    app: ``fetchkit`` command line.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Union

from fetchkit.builder import BodyLike
from fetchkit.client import Client, HTTPXTransport, Request, get_client, immediate
from fetchkit.config import get_config, reset_config, set_config, update_config
from fetchkit.exceptions import (
    DecodeFailure,
    FetchkitError,
    InvalidBody,
    InvalidJSONResponse,
    InvalidUrl,
    NetworkError,
    ResponseFailure,
    UnknownError,
)
from fetchkit.models import (
    ClientConfig,
    DataBody,
    FormBody,
    FormData,
    GraphQLBody,
    HTTPMethod,
    JSONBody,
    RequestDescriptor,
)

__version__ = "0.1.0"

__all__ = [
    "Client",
    "ClientConfig",
    "DataBody",
    "DecodeFailure",
    "FetchkitError",
    "FormBody",
    "FormData",
    "GraphQLBody",
    "HTTPMethod",
    "HTTPXTransport",
    "InvalidBody",
    "InvalidJSONResponse",
    "InvalidUrl",
    "JSONBody",
    "NetworkError",
    "Request",
    "RequestDescriptor",
    "ResponseFailure",
    "UnknownError",
    "form_data_request",
    "get_config",
    "graphql_request",
    "immediate",
    "request",
    "reset_config",
    "set_config",
    "update_config",
]


def request(
    url: str,
    method: Union[HTTPMethod, str] = HTTPMethod.GET,
    parameters: Optional[Mapping[str, str]] = None,
    body: BodyLike = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Request:
    """Build a request with the shared client. See :meth:`Client.request`."""
    return get_client().request(url, method, parameters, body, headers)


def form_data_request(
    url: str,
    form_data: FormData,
    method: Union[HTTPMethod, str] = HTTPMethod.GET,
    parameters: Optional[Mapping[str, str]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Request:
    """Build a multipart request with the shared client. See :meth:`Client.form_data_request`."""
    return get_client().form_data_request(url, form_data, method, parameters, headers)


def graphql_request(
    url: str,
    query: str,
    variables: Optional[Mapping[str, Any]] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> Request:
    """Build a GraphQL ``POST`` with the shared client. See :meth:`Client.graphql_request`."""
    return get_client().graphql_request(url, query, variables, headers)
