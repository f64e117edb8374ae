"""Configuration models and helpers for the look tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

DEFAULT_ROOT_NAME = "Products"


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the observation sampler and recorder."""

    look_distance: float = 10.0
    min_look_time: float = 0.05
    tick_interval: timedelta = timedelta(seconds=1 / 60)
    root_name: str = DEFAULT_ROOT_NAME

    @classmethod
    def from_values(
        cls,
        look_distance: float,
        min_look_time: float | None = None,
        tick_hz: float | None = None,
        root_name: str | None = None,
    ) -> "TrackerSettings":
        hz = tick_hz if tick_hz is not None else 60.0
        return cls(
            look_distance=look_distance,
            min_look_time=min_look_time if min_look_time is not None else 0.05,
            tick_interval=timedelta(seconds=1.0 / hz),
            root_name=root_name or DEFAULT_ROOT_NAME,
        )
