"""The :class:`Client` -- request factory bound to a config and a transport.

A :class:`Client` turns call-site arguments into
:class:`~fetchkit.client.request.Request` objects. It owns no connections:
each request opens and closes its own httpx client when it is sent.

Configuration is explicit when a :class:`~fetchkit.models.ClientConfig` is
passed in. Otherwise every request reads the process-wide snapshot from
:func:`fetchkit.config.get_config` at build time, so later
:func:`~fetchkit.config.update_config` calls apply to later requests only.

The module-level helpers :func:`fetchkit.request`,
:func:`fetchkit.form_data_request` and :func:`fetchkit.graphql_request` use
the shared instance returned by :func:`get_client`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Union

from fetchkit.builder import BodyLike, build_request
from fetchkit.client.request import Request
from fetchkit.client.transport import HTTPXTransport
from fetchkit.config import get_config
from fetchkit.models import ClientConfig, FormBody, FormData, GraphQLBody, HTTPMethod


class Client:
    """Build requests against a fixed config and transport.

    Args:
        config: Timeout and default headers. ``None`` means the process-wide
            defaults, read each time a request is built.
        transport: The send primitive; a default :class:`HTTPXTransport`
            when ``None``.
        download_dir: Directory for downloaded temporary files; the system
            temporary directory when ``None``.

    Example::

        client = Client(ClientConfig(timeout=5))
        user = await client.request("https://api.example.com/me").response_decodable_async(User)
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[HTTPXTransport] = None,
        download_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self._config = config
        self._transport = transport or HTTPXTransport()
        self._download_dir = download_dir

    @property
    def config(self) -> ClientConfig:
        """The config requests are built with right now."""
        return self._config if self._config is not None else get_config()

    @property
    def transport(self) -> HTTPXTransport:
        return self._transport

    def request(
        self,
        url: str,
        method: Union[HTTPMethod, str] = HTTPMethod.GET,
        parameters: Optional[Mapping[str, str]] = None,
        body: BodyLike = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Request:
        """Build a request.

        Args:
            url: Absolute ``http``/``https`` URL.
            method: HTTP method.
            parameters: Query items merged into the URL.
            body: A body model, a mapping (sent as a JSON object), raw
                ``bytes``, or ``None`` for no body.
            headers: Headers merged over the configured defaults.

        Returns:
            A :class:`~fetchkit.client.request.Request`, valid or carrying
            its construction error.
        """
        outcome = build_request(url, method, parameters, body, headers, self.config)
        return Request(outcome, self._transport, self._download_dir)

    def form_data_request(
        self,
        url: str,
        form_data: FormData,
        method: Union[HTTPMethod, str] = HTTPMethod.GET,
        parameters: Optional[Mapping[str, str]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Request:
        """Build a request with a multipart/form-data body.

        Note the method still defaults to ``GET``; pass ``method="POST"``
        for typical uploads.
        """
        return self.request(url, method, parameters, FormBody(form=form_data), headers)

    def graphql_request(
        self,
        url: str,
        query: str,
        variables: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Request:
        """Build a ``POST`` carrying a GraphQL query and its variables."""
        body = GraphQLBody(query=query, variables=dict(variables) if variables is not None else None)
        return self.request(url, HTTPMethod.POST, body=body, headers=headers)


# ------------------------------------------------------------------ #
# Shared client instance
# ------------------------------------------------------------------ #

_client: Optional[Client] = None


def get_client() -> Client:
    """Return the shared :class:`Client`, creating it on first use."""
    global _client
    if _client is None:
        _client = Client()
    return _client


def set_client(client: Client) -> None:
    """Install *client* as the shared instance used by the module-level helpers."""
    global _client
    _client = client


def reset_client() -> None:
    """Drop the shared instance. Primarily useful in test suites."""
    global _client
    _client = None
