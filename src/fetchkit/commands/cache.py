"""Cache commands -- inspect and edit the persistent response cache.

Provides the ``fetchkit cache`` sub-command group over the process-wide
:class:`~fetchkit.cache.ResponseCache`. Entries are written by
``fetchkit request --cache-key`` or by ``fetchkit cache put``.
"""

from __future__ import annotations

import typer

from fetchkit.cache import get_cache
from fetchkit.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from fetchkit.output import error, get_output, info, success


cache_app = typer.Typer(no_args_is_help=True)


@cache_app.command("get")
def cache_get(
    key: str = typer.Argument(help="Cache key."),
) -> None:
    """Print the entry stored under KEY.

    Raises:
        typer.Exit: With code 1 if nothing is stored under *key*.

    Example::

        fetchkit cache get profile
    """
    data = get_cache().get(key)
    if data is None:
        error(f"No cache entry for {key!r}")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    get_output().print_data(data.decode("utf-8"))


@cache_app.command("put")
def cache_put(
    key: str = typer.Argument(help="Cache key."),
    value: str = typer.Argument(help="Text to store."),
) -> None:
    """Store VALUE under KEY, replacing any previous entry."""
    if not get_cache().put(key, value.encode("utf-8")):
        error(f"Value for {key!r} is not valid text")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    success(f"Stored {key!r}")


@cache_app.command("delete")
def cache_delete(
    key: str = typer.Argument(help="Cache key."),
) -> None:
    """Remove the entry stored under KEY."""
    if get_cache().delete(key):
        success(f"Deleted {key!r}")
    else:
        info(f"No cache entry for {key!r}")


@cache_app.command("clear")
def cache_clear() -> None:
    """Remove every cache entry."""
    cache = get_cache()
    count = len(cache)
    cache.clear()
    success(f"Cleared {count} cache entries from {cache.directory}")
