"""Shared test fixtures for xrdauthz.

Provides an isolated environment (no real tokens or proxy settings leak in
from the developer's shell), settings pointing at temporary directories,
and recording test doubles for backends, files and filesystems.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Any, Optional

import pytest

from xrdauthz.backends.base import Backend
from xrdauthz.backends.manager import BackendManager
from xrdauthz.models import AuthzSettings
from xrdauthz.output import reset_reporter
from xrdauthz.status import Status

_ENV_VARS = (
    "BEARER_TOKEN",
    "BEARER_TOKEN_FILE",
    "XDG_RUNTIME_DIR",
    "XCACHE_HOST",
    "XCACHE_PORT",
    "XRDAUTHZ_PLACEHOLDER_HOST",
    "XRDAUTHZ_LOG_LEVEL",
)


# ---------------------------------------------------------------------------
# Global state isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear every variable xrdauthz reads so host settings never leak in."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _reset_reporter_between_tests() -> None:
    """Drop the installed Reporter after every test.

    The reporter caches sys.stdout/sys.stderr at creation; CliRunner swaps
    those streams, so a stale reporter would write to closed files.
    """
    yield
    reset_reporter()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def fallback_dir(tmp_path: Path) -> Path:
    """Stand-in for /tmp so tests never read the real well-known file."""
    path = tmp_path / "fallback"
    path.mkdir()
    return path


@pytest.fixture
def settings(fallback_dir: Path) -> AuthzSettings:
    return AuthzSettings(
        proxy_host="real.example.org",
        proxy_port="1095",
        fallback_dir=fallback_dir,
    )


# ---------------------------------------------------------------------------
# Recording test doubles
# ---------------------------------------------------------------------------


class RecordingFile:
    """Underlying file double that records every call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        def _method(*args: Any) -> Any:
            self.calls.append((name, args))
            if name == "is_open":
                return True
            if name in ("set_property",):
                return True
            if name == "get_property":
                return f"prop:{args[0]}"
            return Status.success(), f"{name}-response"

        return _method


class RecordingFileSystem(RecordingFile):
    """Underlying filesystem double; remembers the URL it was built on."""

    def __init__(self, url: str) -> None:
        super().__init__()
        self.url = url


class RecordingBackend(Backend):
    """Backend double serving ``root`` and ``https``.

    Args:
        fail: Exception raised from :meth:`new_filesystem`, if any.
        delay: Event waited on inside :meth:`new_filesystem`, to widen races.
    """

    def __init__(
        self, fail: Optional[Exception] = None, delay: Optional[threading.Event] = None
    ) -> None:
        self.fail = fail
        self.delay = delay
        self.filesystems: list[RecordingFileSystem] = []
        self.files: list[RecordingFile] = []
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "recording"

    @property
    def schemes(self) -> tuple[str, ...]:
        return ("root", "https")

    def new_file(self) -> RecordingFile:
        f = RecordingFile()
        self.files.append(f)
        return f

    def new_filesystem(self, url: str) -> RecordingFileSystem:
        if self.delay is not None:
            self.delay.wait(timeout=1.0)
        if self.fail is not None:
            raise self.fail
        fs = RecordingFileSystem(url)
        with self._lock:
            self.filesystems.append(fs)
        return fs


@pytest.fixture
def recording_backend() -> RecordingBackend:
    return RecordingBackend()


@pytest.fixture
def backends(recording_backend: RecordingBackend) -> BackendManager:
    manager = BackendManager()
    manager.register(recording_backend)
    return manager
