"""CLI tests using typer.testing.CliRunner."""

from __future__ import annotations

import errno
import json
import sys
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from xrdauthz import __version__
from xrdauthz.app import app, main, register_commands
from xrdauthz.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_OPERATION_FAILED,
    EXIT_SUCCESS,
)
from xrdauthz.models import AuthzSettings, DirectoryList, DirEntry, StatInfo
from xrdauthz.status import ERR_ERROR_RESPONSE, OpenFlags, Status

register_commands()

runner = CliRunner()


# ---------------------------------------------------------------------------
# Fake plugin for the filesystem commands
# ---------------------------------------------------------------------------


class _FakeFileSystem:
    def __init__(self, missing: bool = False) -> None:
        self.missing = missing

    def stat(self, path: str) -> Any:
        if self.missing:
            return Status.failure(ERR_ERROR_RESPONSE, "HTTP 404 Not Found", errno=errno.ENOENT), None
        return Status.success(), StatInfo(size=10, flags=StatInfo.IS_READABLE)

    def dirlist(self, path: str, flags: int) -> Any:
        listing = DirectoryList(
            parent=path,
            size=2,
            dirlist=[
                DirEntry(name="a.root", statinfo=StatInfo(size=5)),
                DirEntry(name="sub", statinfo=StatInfo(flags=StatInfo.IS_DIR)),
            ],
        )
        return Status.success(), listing


class _FakeFile:
    def __init__(self) -> None:
        self.opened: list[tuple[str, int]] = []
        self.closed = False

    def open(self, url: str, flags: int = 0) -> Any:
        self.opened.append((url, flags))
        return Status.success(), None

    def read(self, offset: int, size: int) -> Any:
        return Status.success(), b"file-bytes\x00\x01"

    def close(self) -> Any:
        self.closed = True
        return Status.success(), None


class _FakeFactory:
    def __init__(self, missing: bool = False) -> None:
        self.fs = _FakeFileSystem(missing)
        self.file = _FakeFile()
        self.filesystem_urls: list[str] = []

    def create_filesystem(self, url: str) -> _FakeFileSystem:
        self.filesystem_urls.append(url)
        return self.fs

    def create_file(self, url: str) -> _FakeFile:
        return self.file


@pytest.fixture
def fake_factory(monkeypatch: pytest.MonkeyPatch) -> _FakeFactory:
    factory = _FakeFactory()
    monkeypatch.setattr("xrdauthz.commands.fs.get_plugin", lambda: factory)
    return factory


# ---------------------------------------------------------------------------
# Global options
# ---------------------------------------------------------------------------


class TestGlobalOptions:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == EXIT_SUCCESS
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == EXIT_SUCCESS
        for name in ("url", "token", "config", "stat", "ls", "cat"):
            assert name in result.output


# ---------------------------------------------------------------------------
# url / token / config
# ---------------------------------------------------------------------------


class TestUrlCommand:
    def test_masks_credential(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XCACHE_HOST", "real.example.org")
        monkeypatch.setenv("XCACHE_PORT", "1095")
        monkeypatch.setenv("BEARER_TOKEN", "T1")
        result = runner.invoke(app, ["url", "root://xcache:1094//store/f"])
        assert result.exit_code == EXIT_SUCCESS
        assert result.output.strip() == "root://real.example.org:1095//store/f?authz=***"

    def test_show_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BEARER_TOKEN", "T1")
        result = runner.invoke(app, ["url", "--show-token", "root://other//f"])
        assert result.exit_code == EXIT_SUCCESS
        assert result.output.strip() == "root://other//f?authz=Bearer%20T1"

    def test_verbose_shows_debug(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XCACHE_HOST", "real.example.org")
        result = runner.invoke(app, ["-v", "--no-color", "url", "root://other//f"])
        assert result.exit_code == EXIT_SUCCESS
        assert "[debug] Placeholder host 'xcache', proxy real.example.org" in result.output

    def test_debug_hidden_by_default(self) -> None:
        result = runner.invoke(app, ["--no-color", "url", "root://other//f"])
        assert result.exit_code == EXIT_SUCCESS
        assert "[debug]" not in result.output


class TestTokenCommand:
    def test_reports_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BEARER_TOKEN", "abcdefghijklmnop")
        result = runner.invoke(app, ["--json", "token"])
        assert result.exit_code == EXIT_SUCCESS
        data = json.loads(result.stdout)
        assert data["source"] == "env"
        assert data["location"] == "BEARER_TOKEN"
        assert data["length"] == 16
        assert data["token"] == "abcd...mnop"

    def test_show_full_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("BEARER_TOKEN", "abcdefghijklmnop")
        result = runner.invoke(app, ["--json", "token", "--show"])
        assert json.loads(result.stdout)["token"] == "abcdefghijklmnop"

    def test_no_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(
            "xrdauthz.auth.discovery.TokenDiscovery.well_known_name", lambda self: None
        )
        result = runner.invoke(app, ["token"])
        assert result.exit_code == EXIT_AUTH_FAILURE
        assert "No bearer token found" in result.output

    def test_no_token_lists_fallback_dir(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        settings = AuthzSettings(fallback_dir=tmp_path)
        monkeypatch.setattr("xrdauthz.config.load_settings", lambda: settings)
        monkeypatch.setattr(
            "xrdauthz.auth.discovery.TokenDiscovery.well_known_name", lambda self: "bt_u7"
        )
        result = runner.invoke(app, ["--no-color", "token"])
        assert result.exit_code == EXIT_AUTH_FAILURE
        assert str(tmp_path / "bt_u7") in result.output
        assert "$XDG_RUNTIME_DIR/bt_u7" in result.output


class TestConfigCommand:
    def test_json(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XCACHE_HOST", "real.example.org")
        monkeypatch.setenv("XCACHE_PORT", "1095")
        result = runner.invoke(app, ["--json", "config"])
        assert result.exit_code == EXIT_SUCCESS
        data = json.loads(result.stdout)
        assert data["proxy_host"] == "real.example.org"
        assert data["proxy_port"] == "1095"
        assert data["placeholder_host"] == "xcache"
        assert data["backends"]["root"] == "xrootd"
        assert data["backends"]["davs"] == "http"

    def test_invalid_port_warns(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XCACHE_PORT", "99999")
        result = runner.invoke(app, ["--plain", "--no-color", "config"])
        assert result.exit_code == EXIT_SUCCESS
        assert "not a valid port" in result.output


# ---------------------------------------------------------------------------
# stat / ls / cat
# ---------------------------------------------------------------------------


class TestFilesystemCommands:
    def test_stat(self, fake_factory: _FakeFactory) -> None:
        result = runner.invoke(app, ["--json", "stat", "root://xcache//store/f"])
        assert result.exit_code == EXIT_SUCCESS
        data = json.loads(result.stdout)
        assert data == {"path": "/store/f", "size": 10, "type": "file", "modtime": ""}
        assert fake_factory.filesystem_urls == ["root://xcache//store/f"]

    def test_stat_not_found(self, monkeypatch: pytest.MonkeyPatch) -> None:
        factory = _FakeFactory(missing=True)
        monkeypatch.setattr("xrdauthz.commands.fs.get_plugin", lambda: factory)
        result = runner.invoke(app, ["stat", "root://xcache//nope"])
        assert result.exit_code == EXIT_NOT_FOUND
        assert "HTTP 404" in result.output

    def test_ls(self, fake_factory: _FakeFactory) -> None:
        result = runner.invoke(app, ["--json", "ls", "root://xcache//store"])
        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(result.stdout) == [
            {"name": "a.root", "size": "5", "type": "file"},
            {"name": "sub", "size": "0", "type": "dir"},
        ]

    def test_ls_plain(self, fake_factory: _FakeFactory) -> None:
        result = runner.invoke(app, ["--plain", "ls", "root://xcache//store"])
        assert result.stdout.splitlines() == ["a.root\t5\tfile", "sub\t0\tdir"]

    def test_cat(self, fake_factory: _FakeFactory) -> None:
        result = runner.invoke(app, ["cat", "https://xcache//notes.txt"])
        assert result.exit_code == EXIT_SUCCESS
        assert result.stdout_bytes == b"file-bytes\x00\x01"
        assert fake_factory.file.opened == [("https://xcache//notes.txt", OpenFlags.READ)]
        assert fake_factory.file.closed

    def test_cat_open_failure(self, monkeypatch: pytest.MonkeyPatch) -> None:
        factory = _FakeFactory()
        factory.file.open = lambda url, flags=0: (  # type: ignore[method-assign]
            Status.failure(ERR_ERROR_RESPONSE, "HTTP 403 Forbidden", errno=errno.EACCES),
            None,
        )
        monkeypatch.setattr("xrdauthz.commands.fs.get_plugin", lambda: factory)
        result = runner.invoke(app, ["cat", "https://xcache//secret"])
        assert result.exit_code == EXIT_OPERATION_FAILED
        assert not factory.file.closed


# ---------------------------------------------------------------------------
# main() entry point
# ---------------------------------------------------------------------------


class TestMain:
    @pytest.fixture(autouse=True)
    def _no_signal_handlers(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("xrdauthz.app.signal.signal", lambda *args: None)

    def test_success_exits_zero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["xrdauthz", "url", "root://other//f"])
        with pytest.raises(SystemExit) as excinfo:
            main()
        assert excinfo.value.code in (0, None)

    def test_authz_error_maps_exit_code(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr(sys, "argv", ["xrdauthz", "url", "not-a-url"])
        with pytest.raises(SystemExit) as excinfo:
            main()
        assert excinfo.value.code == EXIT_INVALID_USAGE
        assert "no scheme" in capsys.readouterr().err

    def test_unexpected_error_writes_crash_log(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Any, capsys: pytest.CaptureFixture[str]
    ) -> None:
        def _boom() -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr("xrdauthz.commands.fs.get_plugin", _boom)
        monkeypatch.setattr("xrdauthz.config.get_data_dir", lambda: tmp_path)
        monkeypatch.setattr(sys, "argv", ["xrdauthz", "stat", "root://h//f"])
        with pytest.raises(SystemExit) as excinfo:
            main()
        assert excinfo.value.code == 1
        logs = list((tmp_path / "logs").glob("crash-*.log"))
        assert len(logs) == 1
        assert "RuntimeError: boom" in logs[0].read_text()
        assert "Traceback saved to" in capsys.readouterr().err
