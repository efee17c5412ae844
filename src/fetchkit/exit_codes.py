"""Numeric process exit codes used by the ``fetchkit`` command line.

Each constant maps to a failure category and is referenced by the
corresponding :class:`~fetchkit.exceptions.FetchkitError` subclass.
Shell scripts wrapping ``fetchkit`` can inspect the exit code to tell a
malformed request apart from an HTTP error status or a network outage
without parsing stderr.

Example::

    $ fetchkit request https://httpbin.org/status/404
    $ echo $?
    4   # EXIT_RESPONSE_ERROR -- the server answered with a non-2xx status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_INVALID_REQUEST = 3
"""The request could not be built (malformed URL or unencodable body)."""

EXIT_RESPONSE_ERROR = 4
"""The server answered with a non-2xx HTTP status."""

EXIT_CONNECTION_ERROR = 5
"""A network-level error occurred before any status was received."""

EXIT_DECODE_ERROR = 6
"""The response body could not be parsed or decoded."""
