"""Domain models for recorded look time."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

Vector3 = tuple[float, float, float]


@dataclass(slots=True)
class LookRecord:
    """Total look time of one tracked object within a session."""

    timestamp: datetime
    object_name: str
    category: str
    total_seconds: float


@dataclass(slots=True)
class LoggedSession:
    """A run of records between two session separators in the log file."""

    started_at: Optional[datetime]
    records: list[LookRecord] = field(default_factory=list)

    @property
    def total_seconds(self) -> float:
        return sum(record.total_seconds for record in self.records)
