"""Tests for console reporting helpers."""

from pathlib import Path

import pytest

from look_tracker.db import database_connection
from look_tracker.ingest import ingest_session_log
from look_tracker.logfile import HEADER_LINE
from look_tracker.reporting import (
    SummaryPrinter,
    aggregate_by_genre,
    format_decimal_minutes,
    format_minutes_seconds,
    format_time,
)


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [(None, "0 min 0 sec"), (0, "0 min 0 sec"), (65, "1 min 5 sec"), (119.6, "2 min 0 sec")],
)
def test_format_time(seconds, expected) -> None:
    assert format_time(seconds) == expected


def test_format_minutes_seconds() -> None:
    assert format_minutes_seconds(0) == "0:00"
    assert format_minutes_seconds(65) == "1:05"
    assert format_minutes_seconds(600) == "10:00"


def test_format_decimal_minutes() -> None:
    assert format_decimal_minutes(-3) == "0.00"
    assert format_decimal_minutes(90) == "1.50"


def test_aggregate_by_genre() -> None:
    rows = [
        {"object_name": "Lamp42", "product_genre": "Lighting", "seconds": 2.0},
        {"object_name": "Lamp7", "product_genre": "Lighting", "seconds": 1.0},
        {"object_name": "Box", "product_genre": None, "seconds": 5.0},
    ]
    assert aggregate_by_genre(rows) == [("Box", 5.0), ("Lighting", 3.0)]


class TestSummaryPrinter:
    """Tests for SummaryPrinter."""

    def test_empty_database(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        SummaryPrinter(tmp_path / "db.sqlite3").print_summary()
        assert "No look time recorded." in capsys.readouterr().out

    def test_summary(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        log_path = tmp_path / "log.csv"
        log_path.write_text(
            "\n".join(
                [
                    HEADER_LINE,
                    ";;--- NEW SESSION STARTED ON 2026-10-19 10:00:00 ---;",
                    "2026-10-19 10:05:00;Lamp42;Lamp42;75.00",
                    "2026-10-19 10:05:00;Box;Box;5.00",
                ]
            ),
            encoding="utf-8",
        )
        db_path = tmp_path / "db.sqlite3"
        with database_connection(db_path) as conn:
            ingest_session_log(conn, log_path, "alice")

        SummaryPrinter(db_path).print_summary()
        out = capsys.readouterr().out
        assert "Total look time: 1 min 20 sec" in out
        assert "1:15" in out

        SummaryPrinter(db_path).print_summary("alice")
        assert "Look time for alice" in capsys.readouterr().out
