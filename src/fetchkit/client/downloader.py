"""File downloads -- stream a response body into a temporary file.

:func:`download` never buffers the whole body in memory. While writing it
reports progress as ``bytes received / Content-Length``. Responses without a
usable ``Content-Length`` produce no progress reports at all, since there is
no total to divide by.

The temporary file's path is only returned on success. If the transfer
fails part way, the partial file is removed before the error propagates.
"""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path, PurePosixPath
from typing import Callable, Optional, Union

import httpx

from fetchkit.client.dispatch import raise_for_status
from fetchkit.client.transport import HTTPXTransport
from fetchkit.exceptions import NetworkError, ResponseFailure, UnknownError
from fetchkit.models import RequestDescriptor

logger = logging.getLogger(__name__)

ProgressHandler = Callable[[float], None]


def expected_length(response: httpx.Response) -> Optional[int]:
    """Return the positive ``Content-Length`` of *response*, or ``None``."""
    try:
        total = int(response.headers.get("content-length", ""))
    except ValueError:
        return None
    return total if total > 0 else None


def _suffix(url: str) -> str:
    return PurePosixPath(httpx.URL(url).path).suffix


async def _write(
    response: httpx.Response,
    suffix: str,
    directory: Optional[Union[str, Path]],
    on_progress: Optional[ProgressHandler],
) -> Path:
    total = expected_length(response)
    handle = tempfile.NamedTemporaryFile(
        prefix="fetchkit-", suffix=suffix, dir=directory, delete=False
    )
    path = Path(handle.name)
    try:
        with handle:
            async for chunk in response.aiter_bytes():
                handle.write(chunk)
                if total is not None and on_progress is not None:
                    on_progress(response.num_bytes_downloaded / total)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path


async def download(
    transport: HTTPXTransport,
    descriptor: RequestDescriptor,
    on_progress: Optional[ProgressHandler] = None,
    directory: Optional[Union[str, Path]] = None,
) -> Path:
    """Download the body of *descriptor*'s response into a temporary file.

    Args:
        transport: The send primitive.
        descriptor: The request to send.
        on_progress: Called with the completed fraction after every chunk.
        directory: Where the temporary file is created; the system
            temporary directory when ``None``.

    Returns:
        Path of the downloaded file. The caller owns it and should move or
        delete it.

    Raises:
        ResponseFailure: On transport failure (also mid-transfer) or a
            non-2xx status.
        UnknownError: If anything else fails, such as creating the file.
    """
    status: Optional[int] = None
    try:
        async with transport.stream(descriptor) as response:
            status = response.status_code
            if not response.is_success:
                await response.aread()
                raise_for_status(response)
            path = await _write(response, _suffix(descriptor.url), directory, on_progress)
    except httpx.HTTPError as exc:
        raise ResponseFailure(exc, status) from exc
    except NetworkError:
        raise
    except Exception as exc:
        raise UnknownError(exc) from exc
    logger.debug("Downloaded %s to %s", descriptor.url, path)
    return path
