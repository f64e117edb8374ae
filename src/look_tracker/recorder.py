"""Session recorder: loads the previous log at start, writes it back at shutdown."""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Mapping, Optional

from .logfile import HEADER_LINE, format_record, format_separator
from .models import LookRecord

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class RecorderState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LOADED = "loaded"
    ACCUMULATING = "accumulating"
    FLUSHED = "flushed"


class RecorderStateError(RuntimeError):
    """Raised when load or flush is called out of order."""


class SessionRecorder:
    """Bridges in-memory look-time totals to the on-disk session log."""

    def __init__(
        self,
        path: Path,
        *,
        min_look_time: float = 0.05,
        clock: Clock = datetime.now,
    ) -> None:
        self.path = Path(path)
        self.min_look_time = min_look_time
        self._clock = clock
        self._previous_text = ""
        self.state = RecorderState.UNINITIALIZED

    @property
    def previous_text(self) -> str:
        return self._previous_text

    def load(self) -> None:
        if self.state is not RecorderState.UNINITIALIZED:
            raise RecorderStateError(f"cannot load a recorder in state {self.state.value}")
        separator = format_separator(self._clock())
        if self.path.exists():
            self._previous_text = self._read_previous() + "\n\n" + separator + "\n"
            logger.info("Previous session data loaded from %s", self.path)
        else:
            self._previous_text = HEADER_LINE + "\n" + separator + "\n"
            logger.info("No session log at %s; starting a new one", self.path)
        self.state = RecorderState.LOADED

    def _read_previous(self) -> str:
        # Undecodable bytes and CRLF line endings must survive the rewrite.
        with self.path.open(
            encoding="utf-8", errors="surrogateescape", newline=""
        ) as handle:
            text = handle.read()
        if any("\udc80" <= char <= "\udcff" for char in text):
            logger.warning("Session log %s is not valid UTF-8; keeping raw bytes", self.path)
        return text

    def mark_accumulating(self) -> None:
        if self.state is RecorderState.LOADED:
            self.state = RecorderState.ACCUMULATING
        elif self.state is not RecorderState.ACCUMULATING:
            raise RecorderStateError(
                f"cannot accumulate in recorder state {self.state.value}"
            )

    def build_records(self, totals: Mapping[str, float]) -> list[LookRecord]:
        timestamp = self._clock()
        records: list[LookRecord] = []
        for key, seconds in totals.items():
            if seconds < self.min_look_time:
                continue
            records.append(
                LookRecord(
                    timestamp=timestamp,
                    object_name=key,
                    category=key,
                    total_seconds=seconds,
                )
            )
            logger.debug("Prepared %s (%.2fs)", key, seconds)
        return records

    def render(self, totals: Mapping[str, float]) -> str:
        lines = "".join(format_record(r) + "\n" for r in self.build_records(totals))
        return self._previous_text + lines

    def flush(self, totals: Mapping[str, float]) -> Optional[str]:
        """Write previous data plus this session's totals in one overwrite.

        Returns the written text, or ``None`` when the write failed.
        """
        if self.state not in (RecorderState.LOADED, RecorderState.ACCUMULATING):
            raise RecorderStateError(f"cannot flush a recorder in state {self.state.value}")
        self.state = RecorderState.FLUSHED
        text = self.render(totals)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open(
                "w", encoding="utf-8", errors="surrogateescape", newline=""
            ) as handle:
                handle.write(text)
        except OSError:
            logger.exception("Error writing session log to %s", self.path)
            return None
        logger.info("All session data written to %s", self.path)
        return text
