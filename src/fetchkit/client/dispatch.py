"""Shared send-and-convert primitive and the callback runner.

Every dispatch style on :class:`~fetchkit.client.request.Request` is a thin
wrapper over :func:`fetch`, so a given descriptor fails with the same
classified error whether the caller used callbacks, a stream or ``await``:

* Transport error (DNS, refused, timeout): ``ResponseFailure`` with no status.
* Anything else raised while sending: ``UnknownError`` keeping the cause.
* Non-2xx status: ``ResponseFailure`` with status, body and headers.
* Converter raised a ``NetworkError``: that error, unchanged.
* Converter raised anything else: ``UnknownError`` keeping the cause.

Callback delivery
-----------------

:func:`run_with_callbacks` runs a coroutine on a daemon thread with its own
event loop and hands completion to a *delivery context*: any callable that
accepts a zero-argument function and arranges for it to run. Useful
contexts:

* ``loop.call_soon_threadsafe`` -- run on an asyncio loop (the default when
  the caller has a running loop, see :func:`default_context`).
* ``executor.submit`` -- run on a :class:`concurrent.futures.Executor`.
* :func:`immediate` -- run on the worker thread right away.
"""

from __future__ import annotations

import asyncio
import functools
import threading
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from fetchkit.client.converters import Converter
from fetchkit.client.transport import HTTPXTransport
from fetchkit.exceptions import NetworkError, ResponseFailure, UnknownError
from fetchkit.models import RequestDescriptor

T = TypeVar("T")

DeliveryContext = Callable[[Callable[[], None]], Any]
SuccessHandler = Callable[[T], None]
FailureHandler = Callable[[NetworkError], None]


def raise_for_status(response: httpx.Response) -> None:
    """Raise :class:`~fetchkit.exceptions.ResponseFailure` for a non-2xx *response*.

    The response body must have been read.
    """
    try:
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ResponseFailure(exc, response.status_code, response.content, response.headers) from exc


async def fetch(
    transport: HTTPXTransport, descriptor: RequestDescriptor, converter: Converter[T]
) -> T:
    """Send *descriptor* and convert the response body.

    Raises:
        ResponseFailure: On transport failure or a non-2xx status.
        InvalidJSONResponse: From :func:`~fetchkit.client.converters.to_json`.
        DecodeFailure: From :func:`~fetchkit.client.converters.to_model`.
        UnknownError: If sending or the converter raised anything else.
    """
    try:
        response = await transport.send(descriptor)
    except httpx.HTTPError as exc:
        raise ResponseFailure(exc) from exc
    except NetworkError:
        raise
    except Exception as exc:
        raise UnknownError(exc) from exc

    raise_for_status(response)

    try:
        return converter(response.content)
    except NetworkError:
        raise
    except Exception as exc:
        raise UnknownError(exc) from exc


def immediate(fn: Callable[[], None]) -> None:
    """Delivery context that runs *fn* on the current thread at once."""
    fn()


def default_context() -> DeliveryContext:
    """Return the delivery context for the calling thread.

    That is the running asyncio loop when there is one, otherwise
    :func:`immediate`, meaning callbacks run on the worker thread.
    """
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return immediate
    return loop.call_soon_threadsafe


def run_with_callbacks(
    operation: Callable[[], Awaitable[T]],
    on_success: SuccessHandler[T],
    on_failure: Optional[FailureHandler] = None,
    deliver: Optional[DeliveryContext] = None,
) -> threading.Thread:
    """Run *operation* in the background and deliver its outcome.

    Returns immediately. Exactly one of *on_success* / *on_failure* is
    handed to *deliver* once the operation completes. A missing
    *on_failure* means failures are dropped.

    Args:
        operation: Zero-argument coroutine function to run.
        on_success: Receives the operation's result.
        on_failure: Receives the :class:`~fetchkit.exceptions.NetworkError`.
            Exceptions outside that hierarchy arrive wrapped in
            :class:`~fetchkit.exceptions.UnknownError`.
        deliver: Delivery context; :func:`default_context` when ``None``.

    Returns:
        The started worker thread. Joining it waits for the I/O and for
        the delivery context to have been handed the callback.
    """
    context = deliver if deliver is not None else default_context()

    async def _run() -> None:
        try:
            result = await operation()
        except NetworkError as exc:
            failure: NetworkError = exc
        except Exception as exc:
            failure = UnknownError(exc)
        else:
            context(functools.partial(on_success, result))
            return
        if on_failure is not None:
            context(functools.partial(on_failure, failure))

    thread = threading.Thread(
        target=asyncio.run, args=(_run(),), name="fetchkit-dispatch", daemon=True
    )
    thread.start()
    return thread
