"""Shared test fixtures for fetchkit.

Every test runs against fresh process-wide state: the request defaults,
the shared client, the cache instance and the output manager are reset
after each test, and XDG directories point into ``tmp_path`` so nothing
touches real user config.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import httpx
import pytest

from fetchkit.cache import reset_cache
from fetchkit.client import Client, HTTPXTransport, reset_client
from fetchkit.config import reset_config
from fetchkit.output import reset_output

Handler = Callable[[httpx.Request], httpx.Response]


# ---------------------------------------------------------------------------
# Auto-reset global state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_globals_between_tests() -> None:
    """Reset process-wide state after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test, the cached references go stale, so a fresh manager is created
    on next use.
    """
    yield
    reset_output()
    reset_client()
    reset_cache()
    reset_config()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate config and cache directories under tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "cache"))
    monkeypatch.setattr("fetchkit.config._is_xdg_platform", lambda: True)
    monkeypatch.delenv("FETCHKIT_TIMEOUT", raising=False)
    return tmp_path


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


# ---------------------------------------------------------------------------
# Transport helpers
# ---------------------------------------------------------------------------


def mock_transport(handler: Handler) -> HTTPXTransport:
    """Wrap a request handler in an HTTPXTransport over httpx.MockTransport."""
    return HTTPXTransport(transport=httpx.MockTransport(handler))


@pytest.fixture
def make_client() -> Callable[[Handler], Client]:
    """Factory for clients whose transport answers with *handler*."""

    def factory(handler: Handler) -> Client:
        return Client(transport=mock_transport(handler))

    return factory


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
