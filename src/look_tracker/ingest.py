"""Load flushed session logs and seed data into the database."""

from __future__ import annotations

import json
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .db import (
    count_players,
    end_session,
    get_or_create_player,
    insert_look_times,
    session_exists,
    start_session,
    transaction,
)
from .logfile import parse_sessions

logger = logging.getLogger(__name__)

PLAYER_ID_OFFSET = 1000
SESSION_ID_OFFSET = 2000
LOOK_TIME_ID_OFFSET = 3000


@dataclass(slots=True)
class IngestResult:
    sessions: int = 0
    records: int = 0
    skipped_sessions: int = 0


def ingest_session_log(
    conn: sqlite3.Connection, log_path: Path, player_name: str
) -> IngestResult:
    """Import every session of a log file for ``player_name``.

    Sessions already stored for the player (same start time) are skipped, so
    re-importing a log that has grown since the last run only adds the new
    sessions. Everything is written in one transaction.
    """
    text = Path(log_path).read_text(encoding="utf-8")
    sessions = parse_sessions(text.splitlines())
    result = IngestResult()
    with transaction(conn):
        player_id = get_or_create_player(conn, player_name)
        for logged in sessions:
            if logged.started_at is None or not logged.records:
                result.skipped_sessions += 1
                continue
            if session_exists(conn, player_id, logged.started_at):
                result.skipped_sessions += 1
                continue
            session_id = start_session(conn, player_id, logged.started_at)
            result.records += insert_look_times(conn, session_id, logged.records)
            end_session(
                conn,
                session_id,
                max(record.timestamp for record in logged.records),
            )
            result.sessions += 1
    logger.info(
        "Imported %d sessions (%d records) from %s; skipped %d",
        result.sessions,
        result.records,
        log_path,
        result.skipped_sessions,
    )
    return result


def _read_seed_file(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        logger.info("Seed file not found: %s", path.name)
        return []
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path.name} must contain a JSON array")
    return data


def import_seed_data(conn: sqlite3.Connection, data_dir: Path) -> int:
    """Import ``players.json``, ``sessions.json`` and ``look_times.json``.

    Runs only against an empty database and returns the number of imported
    rows (0 when skipped). Seed ids are shifted by fixed offsets so they cannot
    collide with rows created through the API.
    """
    if count_players(conn) > 0:
        logger.info("Database already contains data; skipping seed import.")
        return 0

    data_dir = Path(data_dir)
    players = _read_seed_file(data_dir / "players.json")
    sessions = _read_seed_file(data_dir / "sessions.json")
    look_times = _read_seed_file(data_dir / "look_times.json")

    with transaction(conn):
        conn.executemany(
            "INSERT INTO players (id, player_name, created_at) VALUES (?, ?, ?)",
            [
                (PLAYER_ID_OFFSET + row["id"], row["player_name"], row["created_at"])
                for row in players
            ],
        )
        conn.executemany(
            "INSERT INTO sessions (id, player_id, started_at, ended_at) VALUES (?, ?, ?, ?)",
            [
                (
                    SESSION_ID_OFFSET + row["id"],
                    PLAYER_ID_OFFSET + row["player_id"],
                    row["started_at"],
                    row.get("ended_at"),
                )
                for row in sessions
            ],
        )
        conn.executemany(
            """
            INSERT INTO look_times (
                id, session_id, object_name, product_genre, total_time, created_at
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    LOOK_TIME_ID_OFFSET + row["id"],
                    SESSION_ID_OFFSET + row["session_id"],
                    row["object_name"],
                    row.get("product_genre"),
                    row["total_time"],
                    row["created_at"],
                )
                for row in look_times
            ],
        )

    total = len(players) + len(sessions) + len(look_times)
    logger.info(
        "Seed import complete: %d players, %d sessions, %d look times",
        len(players),
        len(sessions),
        len(look_times),
    )
    return total
