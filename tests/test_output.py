"""Tests for xrdauthz.output -- stream discipline and formats."""

from __future__ import annotations

import json

import pytest

from xrdauthz.output import (
    OutputFormat,
    Reporter,
    get_reporter,
    reset_reporter,
    set_reporter,
)


class TestData:
    def test_json_record(self, capsys: pytest.CaptureFixture[str]) -> None:
        Reporter(format=OutputFormat.JSON).record({"a": 1})
        assert json.loads(capsys.readouterr().out) == {"a": 1}

    def test_plain_record(self, capsys: pytest.CaptureFixture[str]) -> None:
        Reporter(format=OutputFormat.PLAIN).record({"a": 1, "b": "x"})
        assert capsys.readouterr().out == "a\t1\nb\tx\n"

    def test_plain_rows(self, capsys: pytest.CaptureFixture[str]) -> None:
        Reporter(format=OutputFormat.PLAIN).rows(["n", "s"], [["f", "1"], ["g", "2"]])
        assert capsys.readouterr().out == "f\t1\ng\t2\n"

    def test_json_rows(self, capsys: pytest.CaptureFixture[str]) -> None:
        Reporter(format=OutputFormat.JSON).rows(["n", "s"], [["f", "1"]])
        assert json.loads(capsys.readouterr().out) == [{"n": "f", "s": "1"}]

    def test_auto_is_plain_when_piped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("xrdauthz.output._stdout_is_tty", lambda: False)
        assert Reporter().format == OutputFormat.PLAIN

    def test_auto_is_rich_on_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        monkeypatch.setattr("xrdauthz.output._stdout_is_tty", lambda: True)
        assert Reporter().format == OutputFormat.RICH
        assert Reporter(no_color=True).format == OutputFormat.PLAIN


class TestDiagnostics:
    def test_go_to_stderr(self, capsys: pytest.CaptureFixture[str]) -> None:
        reporter = Reporter(format=OutputFormat.PLAIN, no_color=True)
        reporter.say("info", "hello")
        reporter.say("warning", "careful")
        reporter.say("error", "broken")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "hello\nWarning: careful\nError: broken\n"

    def test_quiet_keeps_warnings_and_errors(self, capsys: pytest.CaptureFixture[str]) -> None:
        reporter = Reporter(no_color=True, quiet=True)
        reporter.say("info", "hidden")
        reporter.say("warning", "kept")
        reporter.say("error", "shown")
        assert capsys.readouterr().err == "Warning: kept\nError: shown\n"

    def test_debug_needs_verbose(self, capsys: pytest.CaptureFixture[str]) -> None:
        Reporter(no_color=True).debug("x")
        Reporter(no_color=True, verbose=True).debug("y")
        assert capsys.readouterr().err == "[debug] y\n"

    @pytest.mark.parametrize("env", [{"NO_COLOR": ""}, {"TERM": "dumb"}])
    def test_color_disabled_by_env(
        self, monkeypatch: pytest.MonkeyPatch, env: dict[str, str]
    ) -> None:
        for key, value in env.items():
            monkeypatch.setenv(key, value)
        assert Reporter(format=OutputFormat.PLAIN).no_color


class TestInstalledReporter:
    def test_set_and_reset(self) -> None:
        reporter = Reporter()
        set_reporter(reporter)
        assert get_reporter() is reporter
        reset_reporter()
        assert get_reporter() is not reporter
