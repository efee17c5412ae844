"""Exception hierarchy for fetchkit.

All exceptions inherit from :class:`FetchkitError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`fetchkit.exit_codes`.

Failures of the request pipeline are modelled as one subclass of
:class:`NetworkError` per failure kind, so that callers branch with
``except``/``isinstance`` instead of inspecting nullable fields::

    FetchkitError (exit 1)
    +-- ConfigError              (exit 1)
    +-- NetworkError             (exit 1)
        +-- InvalidUrl           (exit 3)  construction, before any I/O
        +-- InvalidBody          (exit 3)  construction, before any I/O
        +-- ResponseFailure      (exit 4 with a status, 5 without)
        +-- InvalidJSONResponse  (exit 6)  conversion
        +-- DecodeFailure        (exit 6)  conversion
        +-- UnknownError         (exit 1)

Every :class:`NetworkError` exposes ``cause``, ``status_code`` and ``data``
so a single handler can report on any variant.
"""

from __future__ import annotations

from typing import Mapping, Optional

from fetchkit.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_REQUEST,
    EXIT_RESPONSE_ERROR,
)


class FetchkitError(Exception):
    """Base exception for all fetchkit errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(FetchkitError):
    """Raised for configuration problems (unreadable or invalid config file, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


class NetworkError(FetchkitError):
    """Base class of every classified request failure.

    Args:
        message: Human-readable error description.
        cause: The underlying exception, when there is one.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    @property
    def description(self) -> str:
        """Human-readable description of the failure."""
        return str(self)

    @property
    def status_code(self) -> Optional[int]:
        """HTTP status of the failed response, if one was received."""
        return None

    @property
    def data(self) -> Optional[bytes]:
        """Raw response body of the failed response, if one was received."""
        return None


class InvalidUrl(NetworkError):
    """The target URL (with its query parameters) does not parse as an HTTP URL.

    Args:
        url: The URL string exactly as the caller passed it.
    """

    exit_code = EXIT_INVALID_REQUEST

    def __init__(self, url: str):
        super().__init__(f"Invalid url: {url}")
        self.url = url


class InvalidBody(NetworkError):
    """The request body could not be encoded."""

    exit_code = EXIT_INVALID_REQUEST

    def __init__(self, cause: BaseException):
        super().__init__(f"Invalid request body: {cause}", cause)


class InvalidJSONResponse(NetworkError):
    """The response body is not valid JSON."""

    exit_code = EXIT_DECODE_ERROR

    def __init__(self, cause: BaseException):
        super().__init__(f"Invalid JSON response: {cause}", cause)


class DecodeFailure(NetworkError):
    """The response body is JSON but does not match the requested type."""

    exit_code = EXIT_DECODE_ERROR

    def __init__(self, cause: BaseException):
        super().__init__(f"Failed to decode response: {cause}", cause)


class ResponseFailure(NetworkError):
    """The transport failed, or the server answered with a non-2xx status.

    When the failure happened before a response arrived (DNS, connection
    refused, timeout) ``status_code``, ``data`` and ``headers`` are ``None``.

    Args:
        cause: The transport or status exception.
        status_code: HTTP status of the response, if any.
        data: Raw body bytes received, if any.
        headers: Response headers, if any.
    """

    def __init__(
        self,
        cause: BaseException,
        status_code: Optional[int] = None,
        data: Optional[bytes] = None,
        headers: Optional[Mapping[str, str]] = None,
    ):
        if status_code is None:
            message = f"Request failed: {cause}"
        else:
            message = f"HTTP {status_code}: {cause}"
        super().__init__(message, cause)
        self._status_code = status_code
        self._data = data
        self.headers = dict(headers) if headers is not None else None
        self.exit_code = EXIT_RESPONSE_ERROR if status_code is not None else EXIT_CONNECTION_ERROR

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    @property
    def data(self) -> Optional[bytes]:
        return self._data


class UnknownError(NetworkError):
    """A failure that fits no other variant. The original exception is kept in ``cause``."""

    def __init__(self, cause: Optional[BaseException] = None):
        message = f"Unknown error: {cause}" if cause is not None else "Unknown error"
        super().__init__(message, cause)
