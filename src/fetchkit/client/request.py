"""The :class:`Request` object and its three response-consumption styles.

A :class:`Request` is what :meth:`fetchkit.client.Client.request` (and the
module-level :func:`fetchkit.request`) return. It holds either a ready
:class:`~fetchkit.models.RequestDescriptor` or the
:class:`~fetchkit.models.ConstructionFailure` explaining why none could be
built, and offers each result type in three styles:

* Callback: ``response_data``, ``response_string``, ``response_json``,
  ``response_decodable`` and ``response_file``.
* Stream: ``response_data_stream``, ``response_string_stream``,
  ``response_json_stream`` and ``response_decodable_stream``.
* Await: ``response_data_async``, ``response_string_async``,
  ``response_json_async``, ``response_decodable_async`` and
  ``response_file_async``.

All styles go through :func:`~fetchkit.client.dispatch.fetch` and the
converters in :mod:`fetchkit.client.converters`, so they classify failures
identically. A construction failure is reported before any I/O: callback
styles call ``on_failure`` synchronously, the other styles raise it.

Example::

    import fetchkit

    request = fetchkit.request("https://httpbin.org/get", parameters={"q": "1"})

    request.response_json(print, on_failure=lambda error: print(error.description))

    async for value in request.response_json_stream():
        print(value)

    value = await request.response_json_async()
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, AsyncIterator, Optional, TypeVar, Union

from fetchkit.client import converters
from fetchkit.client.converters import Converter
from fetchkit.client.dispatch import (
    DeliveryContext,
    FailureHandler,
    SuccessHandler,
    default_context,
    fetch,
    run_with_callbacks,
)
from fetchkit.client.downloader import ProgressHandler, download
from fetchkit.client.transport import HTTPXTransport
from fetchkit.exceptions import NetworkError
from fetchkit.models import ConstructionFailure, RequestDescriptor

T = TypeVar("T")


class Request:
    """A built request, or the reason it could not be built.

    Args:
        outcome: What :func:`~fetchkit.builder.build_request` produced.
        transport: The send primitive used when a response is requested.
        download_dir: Directory for :meth:`response_file` temporary files.
    """

    def __init__(
        self,
        outcome: Union[RequestDescriptor, ConstructionFailure],
        transport: HTTPXTransport,
        download_dir: Optional[Union[str, Path]] = None,
    ) -> None:
        self._outcome = outcome
        self._transport = transport
        self._download_dir = download_dir

    def __repr__(self) -> str:
        if isinstance(self._outcome, ConstructionFailure):
            return f"<Request error={self._outcome.error!r}>"
        return f"<Request {self._outcome.method.value} {self._outcome.url}>"

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def is_valid(self) -> bool:
        """Whether the request was built and can be sent."""
        return isinstance(self._outcome, RequestDescriptor)

    @property
    def descriptor(self) -> Optional[RequestDescriptor]:
        """The ready-to-send request, or ``None`` after a construction failure."""
        return self._outcome if isinstance(self._outcome, RequestDescriptor) else None

    @property
    def error(self) -> Optional[NetworkError]:
        """The construction error, or ``None`` for a valid request."""
        return self._outcome.error if isinstance(self._outcome, ConstructionFailure) else None

    @property
    def partial(self) -> Optional[RequestDescriptor]:
        """The request as far as it was built before its body failed to encode.

        ``None`` for valid requests, invalid URLs and invalid headers.
        """
        return self._outcome.partial if isinstance(self._outcome, ConstructionFailure) else None

    # ------------------------------------------------------------------ #
    # Shared plumbing
    # ------------------------------------------------------------------ #

    async def _fetch(self, converter: Converter[T]) -> T:
        if isinstance(self._outcome, ConstructionFailure):
            raise self._outcome.error
        return await fetch(self._transport, self._outcome, converter)

    def _callback(
        self,
        converter: Converter[T],
        on_success: SuccessHandler[T],
        on_failure: Optional[FailureHandler],
        deliver: Optional[DeliveryContext],
    ) -> None:
        if isinstance(self._outcome, ConstructionFailure):
            if on_failure is not None:
                on_failure(self._outcome.error)
            return
        run_with_callbacks(lambda: self._fetch(converter), on_success, on_failure, deliver)

    async def _stream(self, converter: Converter[T]) -> AsyncIterator[T]:
        yield await self._fetch(converter)

    # ------------------------------------------------------------------ #
    # Callback style
    # ------------------------------------------------------------------ #

    def response_data(
        self,
        on_success: SuccessHandler[bytes],
        on_failure: Optional[FailureHandler] = None,
        *,
        deliver: Optional[DeliveryContext] = None,
    ) -> None:
        """Send the request and pass the raw body to *on_success*.

        Returns immediately. The outcome is delivered through *deliver*
        (see :mod:`fetchkit.client.dispatch`). Without *on_failure*,
        failures are dropped.
        """
        self._callback(converters.to_data, on_success, on_failure, deliver)

    def response_string(
        self,
        on_success: SuccessHandler[str],
        on_failure: Optional[FailureHandler] = None,
        *,
        deliver: Optional[DeliveryContext] = None,
    ) -> None:
        """Like :meth:`response_data`, decoding the body as UTF-8 text."""
        self._callback(converters.to_text, on_success, on_failure, deliver)

    def response_json(
        self,
        on_success: SuccessHandler[Any],
        on_failure: Optional[FailureHandler] = None,
        *,
        deliver: Optional[DeliveryContext] = None,
    ) -> None:
        """Like :meth:`response_data`, parsing the body as JSON."""
        self._callback(converters.to_json, on_success, on_failure, deliver)

    def response_decodable(
        self,
        model: type[T],
        on_success: SuccessHandler[T],
        on_failure: Optional[FailureHandler] = None,
        *,
        deliver: Optional[DeliveryContext] = None,
    ) -> None:
        """Like :meth:`response_data`, validating the JSON body into *model*."""
        self._callback(converters.to_model(model), on_success, on_failure, deliver)

    def response_file(
        self,
        on_success: SuccessHandler[Path],
        on_failure: Optional[FailureHandler] = None,
        *,
        on_progress: Optional[ProgressHandler] = None,
        deliver: Optional[DeliveryContext] = None,
    ) -> None:
        """Download the body to a temporary file and pass its path to *on_success*.

        *on_progress* receives the completed fraction after each chunk when
        the response announces its length. Progress and completion are both
        delivered through *deliver*, in order.
        """
        if isinstance(self._outcome, ConstructionFailure):
            if on_failure is not None:
                on_failure(self._outcome.error)
            return

        context = deliver if deliver is not None else default_context()
        progress: Optional[ProgressHandler] = None
        if on_progress is not None:
            handler = on_progress

            def progress(fraction: float) -> None:
                context(lambda: handler(fraction))

        run_with_callbacks(
            lambda: self.response_file_async(on_progress=progress),
            on_success,
            on_failure,
            context,
        )

    # ------------------------------------------------------------------ #
    # Stream style
    # ------------------------------------------------------------------ #

    def response_data_stream(self) -> AsyncIterator[bytes]:
        """Return a cold single-value stream of the raw body.

        Nothing is sent until the stream is iterated. It then yields the
        value once, or raises the classified error. Each call returns a new,
        independent stream; a stream cannot be iterated twice.
        """
        return self._stream(converters.to_data)

    def response_string_stream(self) -> AsyncIterator[str]:
        """Like :meth:`response_data_stream`, decoding the body as UTF-8 text."""
        return self._stream(converters.to_text)

    def response_json_stream(self) -> AsyncIterator[Any]:
        """Like :meth:`response_data_stream`, parsing the body as JSON."""
        return self._stream(converters.to_json)

    def response_decodable_stream(self, model: type[T]) -> AsyncIterator[T]:
        """Like :meth:`response_data_stream`, validating the JSON body into *model*."""
        return self._stream(converters.to_model(model))

    # ------------------------------------------------------------------ #
    # Await style
    # ------------------------------------------------------------------ #

    async def response_data_async(self) -> bytes:
        """Send the request and return the raw body.

        Raises:
            NetworkError: The classified failure.
        """
        return await self._fetch(converters.to_data)

    async def response_string_async(self) -> str:
        """Send the request and return the body decoded as UTF-8 text."""
        return await self._fetch(converters.to_text)

    async def response_json_async(self) -> Any:
        """Send the request and return the body parsed as JSON."""
        return await self._fetch(converters.to_json)

    async def response_decodable_async(self, model: type[T]) -> T:
        """Send the request and return the JSON body validated into *model*."""
        return await self._fetch(converters.to_model(model))

    async def response_file_async(self, on_progress: Optional[ProgressHandler] = None) -> Path:
        """Download the body to a temporary file and return its path.

        *on_progress* is called directly from the downloading task.

        Raises:
            NetworkError: The construction error, or
                :class:`~fetchkit.exceptions.ResponseFailure`.
        """
        if isinstance(self._outcome, ConstructionFailure):
            raise self._outcome.error
        return await download(self._transport, self._outcome, on_progress, self._download_dir)
