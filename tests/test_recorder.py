"""Tests for the session recorder."""

import logging
from datetime import datetime
from pathlib import Path

import pytest

from look_tracker.logfile import HEADER_LINE
from look_tracker.recorder import RecorderState, RecorderStateError, SessionRecorder

NOW = datetime(2026, 10, 19, 14, 30, 5)
SEPARATOR = ";;--- NEW SESSION STARTED ON 2026-10-19 14:30:05 ---;"


@pytest.fixture
def log_path(tmp_path: Path) -> Path:
    return tmp_path / "LookTimeData_Acc_Sessions.csv"


@pytest.fixture
def recorder(log_path: Path) -> SessionRecorder:
    return SessionRecorder(log_path, clock=lambda: NOW)


class TestLoad:
    """Tests for SessionRecorder.load."""

    def test_first_run_starts_with_header(self, recorder: SessionRecorder) -> None:
        recorder.load()
        assert recorder.state is RecorderState.LOADED
        assert recorder.previous_text == f"{HEADER_LINE}\n{SEPARATOR}\n"

    def test_existing_log_is_kept_verbatim(
        self, recorder: SessionRecorder, log_path: Path
    ) -> None:
        old = f"{HEADER_LINE}\n2026-10-18 09:00:00;Lamp42;Lamp42;3.25\n"
        log_path.write_text(old, encoding="utf-8")

        recorder.load()

        assert recorder.previous_text == old + "\n\n" + SEPARATOR + "\n"

    def test_load_only_once(self, recorder: SessionRecorder) -> None:
        recorder.load()
        with pytest.raises(RecorderStateError):
            recorder.load()


class TestFlush:
    """Tests for SessionRecorder.flush."""

    def test_empty_flush_after_first_load(
        self, recorder: SessionRecorder, log_path: Path
    ) -> None:
        recorder.load()
        recorder.flush({})

        assert log_path.read_text(encoding="utf-8").splitlines() == [
            HEADER_LINE,
            SEPARATOR,
        ]
        assert recorder.state is RecorderState.FLUSHED

    def test_record_line_format(self, recorder: SessionRecorder, log_path: Path) -> None:
        recorder.load()
        recorder.flush({"Lamp42": 1.5})

        lines = log_path.read_text(encoding="utf-8").splitlines()
        assert lines[-1] == "2026-10-19 14:30:05;Lamp42;Lamp42;1.50"

    def test_threshold(self, recorder: SessionRecorder, log_path: Path) -> None:
        recorder.load()
        text = recorder.flush({"Short": 0.04, "Edge": 0.05, "Long": 2.5})

        assert text is not None
        assert "Short" not in text
        assert text.count(";Edge;Edge;0.05") == 1
        assert text.count(";Long;Long;2.50") == 1

    def test_appends_to_previous_sessions(
        self, recorder: SessionRecorder, log_path: Path
    ) -> None:
        old = f"{HEADER_LINE}\n2026-10-18 09:00:00;Vase;Vase;0.75\n"
        log_path.write_text(old, encoding="utf-8")

        recorder.load()
        recorder.flush({"Lamp42": 1.5})

        assert log_path.read_text(encoding="utf-8") == (
            old
            + "\n\n"
            + SEPARATOR
            + "\n"
            + "2026-10-19 14:30:05;Lamp42;Lamp42;1.50\n"
        )

    def test_creates_missing_directory(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "log.csv"
        recorder = SessionRecorder(path, clock=lambda: NOW)
        recorder.load()
        recorder.flush({"Lamp42": 1.0})
        assert path.exists()

    def test_custom_minimum(self, log_path: Path) -> None:
        recorder = SessionRecorder(log_path, min_look_time=1.0, clock=lambda: NOW)
        recorder.load()
        text = recorder.flush({"Lamp42": 0.9, "Vase": 1.0})
        assert text is not None
        assert "Lamp42" not in text
        assert "Vase" in text

    def test_flush_before_load(self, recorder: SessionRecorder) -> None:
        with pytest.raises(RecorderStateError):
            recorder.flush({})

    def test_flush_only_once(self, recorder: SessionRecorder) -> None:
        recorder.load()
        recorder.flush({})
        with pytest.raises(RecorderStateError):
            recorder.flush({})

    def test_write_failure_is_logged_not_raised(
        self,
        recorder: SessionRecorder,
        log_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        recorder.load()
        log_path.mkdir()

        with caplog.at_level(logging.ERROR, logger="look_tracker.recorder"):
            assert recorder.flush({"Lamp42": 1.5}) is None

        assert recorder.state is RecorderState.FLUSHED
        assert "Error writing session log" in caplog.text

    def test_accumulating_state(self, recorder: SessionRecorder) -> None:
        with pytest.raises(RecorderStateError):
            recorder.mark_accumulating()
        recorder.load()
        recorder.mark_accumulating()
        recorder.mark_accumulating()
        assert recorder.state is RecorderState.ACCUMULATING


class TestPreviousLogIsKeptVerbatim:
    """Prior log bytes must come back unchanged after a flush."""

    def test_crlf_line_endings(self, recorder: SessionRecorder, log_path: Path) -> None:
        old = f"{HEADER_LINE}\r\n2026-10-18 09:00:00;Vase;Vase;0.75\r\n".encode("utf-8")
        log_path.write_bytes(old)

        recorder.load()
        recorder.flush({"Lamp42": 1.5})

        written = log_path.read_bytes()
        assert written.startswith(old)
        assert written[len(old):] == (
            f"\n\n{SEPARATOR}\n2026-10-19 14:30:05;Lamp42;Lamp42;1.50\n"
        ).encode("utf-8")

    def test_invalid_utf8_does_not_abort_load(
        self,
        recorder: SessionRecorder,
        log_path: Path,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        old = f"{HEADER_LINE}\n2026-10-18 09:00:00;Caf".encode("utf-8") + b"\xe9;Caf\xe9;0.75\n"
        log_path.write_bytes(old)

        with caplog.at_level(logging.WARNING, logger="look_tracker.recorder"):
            recorder.load()
        assert "not valid UTF-8" in caplog.text

        assert recorder.flush({"Lamp42": 1.5}) is not None
        written = log_path.read_bytes()
        assert written.startswith(old)
        assert written.endswith(b"2026-10-19 14:30:05;Lamp42;Lamp42;1.50\n")
