"""Configuration management with XDG paths, atomic writes, and process-wide defaults.

This module handles all configuration for fetchkit:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.fetchkit/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_cache_dir`.
* **Process-wide defaults** -- the :class:`~fetchkit.models.ClientConfig`
  read by every request built without an explicit config. Access is guarded
  by a lock. Readers receive a private copy and writers store one, so
  mutating a returned config (its ``headers`` dict included) never changes
  what other requests see, and concurrent :func:`update_config` calls never
  expose a half-written value.
* **Config file** -- an optional ``config.json`` persisting the defaults,
  managed via :func:`load_config_file` and :func:`save_config_file`.
* **Precedence resolution** -- :func:`resolve_config` merges an explicit
  timeout, the ``FETCHKIT_TIMEOUT`` environment variable, the config file and
  the built-in defaults.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
import threading
from pathlib import Path
from typing import Mapping, Optional

from pydantic import ValidationError

from fetchkit.exceptions import ConfigError
from fetchkit.models import ClientConfig

_APP_NAME = "fetchkit"
_CONFIG_FILENAME = "config.json"
_TIMEOUT_ENV = "FETCHKIT_TIMEOUT"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/fetchkit/`` (default ``~/.config/fetchkit/``).
    On macOS/Windows: ``~/.fetchkit/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the key/value store behind :class:`~fetchkit.cache.ResponseCache`.
    Its contents can be deleted at any time.

    On Linux/BSD: ``$XDG_CACHE_HOME/fetchkit/`` (default ``~/.cache/fetchkit/``).
    On macOS/Windows: ``~/.fetchkit/cache/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CACHE_HOME", (".cache",)) / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Process-wide defaults ---


_lock = threading.Lock()
_config = ClientConfig()


def get_config() -> ClientConfig:
    """Return a copy of the process-wide request defaults.

    Changing the copy has no effect; use :func:`update_config` or
    :func:`set_config`.
    """
    with _lock:
        return _config.model_copy(deep=True)


def set_config(config: ClientConfig) -> None:
    """Replace the process-wide request defaults with a copy of *config*."""
    global _config
    with _lock:
        _config = config.model_copy(deep=True)


def update_config(
    *,
    timeout: Optional[float] = None,
    headers: Optional[Mapping[str, str]] = None,
) -> ClientConfig:
    """Change individual process-wide defaults and return a copy of the result.

    Args:
        timeout: New timeout in seconds, or ``None`` to keep the current one.
        headers: New default headers (replacing the current mapping), or
            ``None`` to keep the current ones.

    Raises:
        ConfigError: If the resulting configuration is invalid (for example
            a non-positive timeout).
    """
    global _config
    with _lock:
        data = _config.model_dump()
        if timeout is not None:
            data["timeout"] = timeout
        if headers is not None:
            data["headers"] = dict(headers)
        try:
            _config = ClientConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
        return _config.model_copy(deep=True)


def reset_config() -> None:
    """Restore the built-in defaults. Primarily useful in test suites."""
    set_config(ClientConfig())


# --- Config file ---


def _config_file_path() -> Path:
    """Path to the config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_config_file() -> ClientConfig:
    """Load request defaults from the config file.

    Returns:
        The deserialised :class:`~fetchkit.models.ClientConfig`, or the
        built-in defaults if the file does not exist.

    Raises:
        ConfigError: If the file contains invalid JSON or fails validation.
    """
    path = _config_file_path()
    if not path.is_file():
        return ClientConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return ClientConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid config at {path}: {exc}") from exc


def save_config_file(config: ClientConfig) -> Path:
    """Persist request defaults atomically and return the file path."""
    path = _config_file_path()
    _atomic_write(path, json.dumps(config.model_dump(mode="json"), indent=2) + "\n")
    return path


# --- Precedence resolution ---


def resolve_config(timeout: Optional[float] = None) -> ClientConfig:
    """Resolve the effective defaults from all configuration sources.

    Precedence (highest first):

    1. The explicit *timeout* argument (e.g. a ``--timeout`` CLI flag).
    2. The ``FETCHKIT_TIMEOUT`` environment variable.
    3. The config file.
    4. Built-in defaults.

    Headers only come from the config file or the built-in defaults.

    Raises:
        ConfigError: If the config file is invalid, or a timeout from any
            source is not a positive number.
    """
    config = load_config_file()

    if timeout is None:
        env_value = os.environ.get(_TIMEOUT_ENV, "")
        if env_value:
            try:
                timeout = float(env_value)
            except ValueError as exc:
                raise ConfigError(f"{_TIMEOUT_ENV} must be a number, got {env_value!r}") from exc

    if timeout is None:
        return config
    try:
        return ClientConfig(timeout=timeout, headers=config.headers)
    except ValidationError as exc:
        raise ConfigError(f"Invalid timeout {timeout!r}: {exc}") from exc
