"""HTTP dispatch for fetchkit.

Turns built requests into results through :mod:`httpx`, offering three
consumption styles over one shared send-and-convert primitive.

Classes:
    :class:`Client` -- builds :class:`Request` objects from a config and a transport.
    :class:`Request` -- a built request with callback, stream and await accessors.
    :class:`HTTPXTransport` -- the send primitive.

Example::

    from fetchkit.client import Client

    request = Client().request("https://httpbin.org/get")
    data = await request.response_json_async()
"""

from fetchkit.client.dispatch import immediate
from fetchkit.client.http_client import Client, get_client, reset_client, set_client
from fetchkit.client.request import Request
from fetchkit.client.transport import HTTPXTransport

__all__ = [
    "Client",
    "HTTPXTransport",
    "Request",
    "get_client",
    "immediate",
    "reset_client",
    "set_client",
]
