"""Simple reporting utilities for CLI output."""

from __future__ import annotations

import math
from collections import defaultdict
from pathlib import Path
from typing import Iterable, Optional

from .db import database_connection, fetch_genre_totals, fetch_object_totals


class SummaryPrinter:
    """Render human-readable look-time summaries in the console."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def print_summary(self, player_name: Optional[str] = None, top: int = 5) -> None:
        with database_connection(self.db_path) as conn:
            rows = fetch_object_totals(conn, player_name)
            genre_rows = fetch_genre_totals(conn) if player_name is None else []
        if not rows:
            print("No look time recorded.")
            return

        total = sum(row["seconds"] for row in rows)
        title = f"Look time for {player_name}" if player_name else "Look time summary"
        print(title)
        print("-" * 40)
        print(f"Total look time: {format_time(total)}")
        print()

        genres = (
            [(row["genre"], row["seconds"]) for row in genre_rows]
            if genre_rows
            else aggregate_by_genre(rows)
        )
        print("Top categories:")
        for genre, seconds in genres[:top]:
            print(f"  {genre:<30} {format_time(seconds)}")

        print()
        print("Top objects:")
        for row in rows[:top]:
            print(f"  {row['object_name'][:30]:<30} {format_minutes_seconds(row['seconds'])}")


def aggregate_by_genre(rows: Iterable[dict]) -> list[tuple[str, float]]:
    totals: defaultdict[str, float] = defaultdict(float)
    for row in rows:
        genre = row["product_genre"] or row["object_name"]
        totals[genre] += row["seconds"]
    return sorted(totals.items(), key=lambda item: item[1], reverse=True)


def _split_minutes(seconds: float) -> tuple[int, int]:
    minutes = math.floor(seconds / 60)
    remaining = int(round(seconds % 60))
    if remaining == 60:
        minutes, remaining = minutes + 1, 0
    return minutes, remaining


def format_time(seconds: Optional[float]) -> str:
    if not seconds or seconds <= 0:
        return "0 min 0 sec"
    minutes, remaining = _split_minutes(seconds)
    return f"{minutes} min {remaining} sec"


def format_minutes_seconds(seconds: Optional[float]) -> str:
    if not seconds or seconds <= 0:
        return "0:00"
    minutes, remaining = _split_minutes(seconds)
    return f"{minutes}:{remaining:02d}"


def format_decimal_minutes(seconds: Optional[float]) -> str:
    if not seconds or seconds <= 0:
        return "0.00"
    return f"{seconds / 60:.2f}"
