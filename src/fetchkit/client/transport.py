"""The send primitive -- a :class:`~fetchkit.models.RequestDescriptor` over :mod:`httpx`.

:class:`HTTPXTransport` is the only code in fetchkit that touches the
network. It exposes two coroutines:

* :meth:`HTTPXTransport.send` -- issue the request and return the fully read
  :class:`httpx.Response`, whatever its status.
* :meth:`HTTPXTransport.stream` -- issue the request and yield the response
  with its body still unread, for the file downloader.

Both raise :class:`httpx.HTTPError` subclasses on transport failure; mapping
those to :class:`~fetchkit.exceptions.NetworkError` is the dispatcher's job.

A fresh :class:`httpx.AsyncClient` is opened per call, which keeps a
transport usable from any event loop (the callback adapter runs each request
on its own loop). Tests inject an :class:`httpx.MockTransport`::

    transport = HTTPXTransport(transport=httpx.MockTransport(handler))
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from fetchkit.models import RequestDescriptor

logger = logging.getLogger(__name__)


class HTTPXTransport:
    """Send :class:`~fetchkit.models.RequestDescriptor` objects with :class:`httpx.AsyncClient`.

    Args:
        transport: Optional low-level httpx transport, e.g.
            :class:`httpx.MockTransport` in tests.
        verify: TLS verification setting passed through to httpx.
        follow_redirects: Whether 3xx responses are followed.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        verify: bool = True,
        follow_redirects: bool = True,
    ) -> None:
        self._transport = transport
        self._verify = verify
        self._follow_redirects = follow_redirects

    def _client(self, descriptor: RequestDescriptor) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self._transport,
            timeout=descriptor.timeout,
            verify=self._verify,
            follow_redirects=self._follow_redirects,
        )

    def _build(self, client: httpx.AsyncClient, descriptor: RequestDescriptor) -> httpx.Request:
        return client.build_request(
            method=descriptor.method.value,
            url=descriptor.url,
            headers=descriptor.headers,
            content=descriptor.body,
        )

    async def send(self, descriptor: RequestDescriptor) -> httpx.Response:
        """Send *descriptor* and return the response with its body read.

        Raises:
            httpx.HTTPError: On connection, timeout or protocol failures.
        """
        logger.debug("%s %s", descriptor.method.value, descriptor.url)
        async with self._client(descriptor) as client:
            response = await client.send(self._build(client, descriptor))
        logger.debug("%s %s -> %s", descriptor.method.value, descriptor.url, response.status_code)
        return response

    @asynccontextmanager
    async def stream(self, descriptor: RequestDescriptor) -> AsyncIterator[httpx.Response]:
        """Send *descriptor* and yield the response before its body is read.

        The response is closed when the context exits.

        Raises:
            httpx.HTTPError: On connection, timeout or protocol failures.
        """
        logger.debug("%s %s (streaming)", descriptor.method.value, descriptor.url)
        async with self._client(descriptor) as client:
            response = await client.send(self._build(client, descriptor), stream=True)
            try:
                yield response
            finally:
                await response.aclose()
