"""Config commands -- view and modify the persisted request defaults.

Provides the ``fetchkit config`` sub-command group for reading and
updating the config file (:class:`~fetchkit.models.ClientConfig`). The
file supplies the timeout and default headers for every CLI request; see
:func:`~fetchkit.config.resolve_config` for how it combines with
``--timeout`` and ``FETCHKIT_TIMEOUT``.
"""

from __future__ import annotations

import typer
from pydantic import ValidationError

from fetchkit.config import get_config_dir, load_config_file, save_config_file
from fetchkit.exceptions import ConfigError
from fetchkit.exit_codes import EXIT_INVALID_USAGE
from fetchkit.models import ClientConfig
from fetchkit.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


def _load() -> ClientConfig:
    try:
        return load_config_file()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _save(data: dict) -> ClientConfig:
    try:
        config = ClientConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    save_config_file(config)
    return config


@config_app.command("show")
def config_show() -> None:
    """Show the persisted defaults.

    Example::

        fetchkit config show
        fetchkit --json config show
    """
    config = _load()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set-timeout")
def config_set_timeout(
    seconds: float = typer.Argument(help="Request timeout in seconds."),
) -> None:
    """Set the default request timeout."""
    data = _load().model_dump()
    data["timeout"] = seconds
    config = _save(data)
    success(f"Set timeout = {config.timeout}")


@config_app.command("set-header")
def config_set_header(
    name: str = typer.Argument(help="Header name."),
    value: str = typer.Argument(help="Header value."),
) -> None:
    """Add or replace a default header.

    Header names match case-insensitively, so ``accept`` replaces an
    existing ``Accept`` entry.

    Example::

        fetchkit config set-header Accept application/json
    """
    data = _load().model_dump()
    headers = {k: v for k, v in data["headers"].items() if k.lower() != name.lower()}
    headers[name] = value
    data["headers"] = headers
    _save(data)
    success(f"Set header {name}: {value}")


@config_app.command("unset-header")
def config_unset_header(
    name: str = typer.Argument(help="Header name."),
) -> None:
    """Remove a default header."""
    data = _load().model_dump()
    headers = {k: v for k, v in data["headers"].items() if k.lower() != name.lower()}
    if len(headers) == len(data["headers"]):
        info(f"No default header named {name!r}")
        return
    data["headers"] = headers
    _save(data)
    success(f"Removed header {name}")
