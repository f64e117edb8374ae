"""SQLite database layer for players, sessions and look times."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterable, Iterator, Optional

from .models import LookRecord


DATETIME_FMT = "%Y-%m-%d %H:%M:%S"


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    enable_foreign_keys(conn)
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run the enclosed statements atomically, rolling back on any error."""
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    else:
        conn.execute("COMMIT")


def enable_foreign_keys(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA foreign_keys = ON;")


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS players (
            id INTEGER PRIMARY KEY,
            player_name TEXT NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
        );

        CREATE TABLE IF NOT EXISTS sessions (
            id INTEGER PRIMARY KEY,
            player_id INTEGER NOT NULL REFERENCES players(id) ON DELETE CASCADE,
            started_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime')),
            ended_at TEXT
        );

        CREATE TABLE IF NOT EXISTS look_times (
            id INTEGER PRIMARY KEY,
            session_id INTEGER NOT NULL REFERENCES sessions(id) ON DELETE CASCADE,
            object_name TEXT NOT NULL,
            product_genre TEXT,
            total_time REAL NOT NULL,
            created_at TEXT NOT NULL DEFAULT (datetime('now', 'localtime'))
        );

        CREATE INDEX IF NOT EXISTS idx_sessions_started_at
            ON sessions(started_at);
        CREATE INDEX IF NOT EXISTS idx_look_times_session
            ON look_times(session_id);
        """
    )


def _format(value: Optional[datetime]) -> Optional[str]:
    return value.strftime(DATETIME_FMT) if value is not None else None


def insert_player(conn: sqlite3.Connection, player_name: str) -> int:
    cur = conn.execute(
        "INSERT INTO players (player_name) VALUES (?)", (player_name,)
    )
    return int(cur.lastrowid)


def find_player(conn: sqlite3.Connection, player_name: str) -> Optional[int]:
    row = conn.execute(
        "SELECT id FROM players WHERE player_name = ? ORDER BY id LIMIT 1",
        (player_name,),
    ).fetchone()
    return int(row["id"]) if row else None


def get_or_create_player(conn: sqlite3.Connection, player_name: str) -> int:
    existing = find_player(conn, player_name)
    if existing is not None:
        return existing
    return insert_player(conn, player_name)


def start_session(
    conn: sqlite3.Connection, player_id: int, started_at: Optional[datetime] = None
) -> int:
    if started_at is None:
        cur = conn.execute(
            "INSERT INTO sessions (player_id) VALUES (?)", (player_id,)
        )
    else:
        cur = conn.execute(
            "INSERT INTO sessions (player_id, started_at) VALUES (?, ?)",
            (player_id, _format(started_at)),
        )
    return int(cur.lastrowid)


def end_session(
    conn: sqlite3.Connection, session_id: int, ended_at: Optional[datetime] = None
) -> None:
    cur = conn.execute(
        "UPDATE sessions SET ended_at = ? WHERE id = ?",
        (_format(ended_at or datetime.now()), session_id),
    )
    if cur.rowcount == 0:
        raise ValueError(f"No session found for id={session_id}")


def session_exists(
    conn: sqlite3.Connection, player_id: int, started_at: datetime
) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sessions WHERE player_id = ? AND started_at = ?",
        (player_id, _format(started_at)),
    ).fetchone()
    return row is not None


def insert_look_times(
    conn: sqlite3.Connection, session_id: int, records: Iterable[LookRecord]
) -> int:
    rows = [
        (
            session_id,
            record.object_name,
            record.category,
            record.total_seconds,
            _format(record.timestamp),
        )
        for record in records
    ]
    conn.executemany(
        """
        INSERT INTO look_times (
            session_id,
            object_name,
            product_genre,
            total_time,
            created_at
        ) VALUES (?, ?, ?, ?, ?)
        """,
        rows,
    )
    return len(rows)


def count_players(conn: sqlite3.Connection) -> int:
    return int(conn.execute("SELECT COUNT(*) FROM players").fetchone()[0])


def fetch_recent_look_times(
    conn: sqlite3.Connection, limit: int = 100
) -> list[sqlite3.Row]:
    """Latest look-time rows joined with their session and player."""
    return list(
        conn.execute(
            """
            SELECT
                lt.object_name,
                lt.product_genre,
                lt.total_time,
                p.player_name,
                s.started_at AS session_date
            FROM look_times lt
            JOIN sessions s ON lt.session_id = s.id
            JOIN players p ON s.player_id = p.id
            ORDER BY s.started_at DESC, lt.id
            LIMIT ?
            """,
            (limit,),
        )
    )


def fetch_user_session_counts(
    conn: sqlite3.Connection, limit: int = 10
) -> list[sqlite3.Row]:
    """Players ranked by number of sessions; players without sessions are left out."""
    return list(
        conn.execute(
            """
            SELECT
                p.player_name AS user,
                COUNT(s.id) AS session_count
            FROM players p
            LEFT JOIN sessions s ON p.id = s.player_id
            GROUP BY p.id, p.player_name
            HAVING COUNT(s.id) > 0
            ORDER BY session_count DESC, p.player_name ASC
            LIMIT ?
            """,
            (limit,),
        )
    )


def fetch_genre_totals(conn: sqlite3.Connection) -> list[sqlite3.Row]:
    """Total look time and object count per product genre."""
    return list(
        conn.execute(
            """
            SELECT
                COALESCE(product_genre, object_name) AS genre,
                SUM(total_time) AS seconds,
                COUNT(DISTINCT object_name) AS objects
            FROM look_times
            GROUP BY genre
            ORDER BY seconds DESC, genre ASC;
            """
        )
    )


def fetch_object_totals(
    conn: sqlite3.Connection, player_name: Optional[str] = None
) -> list[sqlite3.Row]:
    """Total look time per object, optionally restricted to one player."""
    params: list[object] = []
    where = ""
    if player_name is not None:
        where = "WHERE p.player_name = ?"
        params.append(player_name)
    return list(
        conn.execute(
            f"""
            SELECT
                lt.object_name,
                lt.product_genre,
                SUM(lt.total_time) AS seconds
            FROM look_times lt
            JOIN sessions s ON lt.session_id = s.id
            JOIN players p ON s.player_id = p.id
            {where}
            GROUP BY lt.object_name, lt.product_genre
            ORDER BY seconds DESC, lt.object_name ASC
            """,
            params,
        )
    )
