"""Per-tick observation sampling and look-time accumulation."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from .config import TrackerSettings
from .hierarchy import resolve_object_key
from .models import Vector3
from .scene import Raycaster, SceneNode

logger = logging.getLogger(__name__)


class LookTimeAccumulator:
    """Thread-safe mapping of tracked key to accumulated seconds."""

    def __init__(self) -> None:
        self._totals: dict[str, float] = {}
        self._lock = threading.Lock()

    def add(self, key: str, seconds: float) -> float:
        if seconds < 0:
            raise ValueError("elapsed time must not be negative")
        with self._lock:
            total = self._totals.get(key, 0.0) + seconds
            self._totals[key] = total
            return total

    def get(self, key: str) -> float:
        with self._lock:
            return self._totals.get(key, 0.0)

    def snapshot(self) -> dict[str, float]:
        with self._lock:
            return dict(self._totals)

    def __len__(self) -> int:
        with self._lock:
            return len(self._totals)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._totals


@dataclass(slots=True)
class SampleResult:
    """What a single tick observed and where its elapsed time went."""

    target: Optional[SceneNode]
    credited_key: Optional[str]
    credited_seconds: float


class ObservationSampler:
    """Credits each tick's elapsed time to the object observed on the previous tick."""

    def __init__(
        self,
        raycaster: Raycaster,
        settings: Optional[TrackerSettings] = None,
        accumulator: Optional[LookTimeAccumulator] = None,
    ) -> None:
        self.raycaster = raycaster
        self.settings = settings or TrackerSettings()
        self.accumulator = (
            accumulator if accumulator is not None else LookTimeAccumulator()
        )
        self._previous_target: Optional[SceneNode] = None

    @property
    def current_target(self) -> Optional[SceneNode]:
        return self._previous_target

    def tick(
        self,
        position: Vector3,
        forward: Vector3,
        elapsed: float,
        max_distance: Optional[float] = None,
    ) -> SampleResult:
        credited_key = self._credit_previous(elapsed)
        distance = self.settings.look_distance if max_distance is None else max_distance
        target = self.raycaster.cast(position, forward, distance)
        if target is not self._previous_target:
            logger.debug(
                "Observed target changed: %s -> %s",
                _name_of(self._previous_target),
                _name_of(target),
            )
        self._previous_target = target
        return SampleResult(
            target=target,
            credited_key=credited_key,
            credited_seconds=elapsed if credited_key is not None else 0.0,
        )

    def _credit_previous(self, elapsed: float) -> Optional[str]:
        previous = self._previous_target
        if previous is None:
            return None
        key = resolve_object_key(previous, self.settings.root_name)
        if key is None:
            return None
        self.accumulator.add(key, elapsed)
        return key


def _name_of(node: Optional[SceneNode]) -> Optional[str]:
    return node.name if node is not None else None
