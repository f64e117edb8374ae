"""Lifecycle wrapper tying the sampler and the recorder together."""

from __future__ import annotations

import atexit
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import TrackerSettings
from .models import Vector3
from .recorder import Clock, RecorderState, SessionRecorder
from .sampler import ObservationSampler, SampleResult
from .scene import Raycaster

logger = logging.getLogger(__name__)


class TrackingSession:
    """Owns one process lifetime of look-time tracking.

    ``start()`` loads the previous log, ``tick()`` is called once per frame by
    the host and ``close()`` flushes the log. ``close()`` is safe to call more
    than once, so it can be both registered as a shutdown hook and called
    explicitly.
    """

    def __init__(
        self,
        raycaster: Raycaster,
        log_path: Path,
        settings: Optional[TrackerSettings] = None,
        *,
        clock: Clock = datetime.now,
    ) -> None:
        self.settings = settings or TrackerSettings()
        self.sampler = ObservationSampler(raycaster, settings=self.settings)
        self.recorder = SessionRecorder(
            log_path, min_look_time=self.settings.min_look_time, clock=clock
        )
        self._closed = False
        self._atexit_registered = False

    @property
    def totals(self) -> dict[str, float]:
        return self.sampler.accumulator.snapshot()

    def start(self, *, register_atexit: bool = False) -> "TrackingSession":
        self.recorder.load()
        logger.info("Session log will be written to %s", self.recorder.path)
        if register_atexit and not self._atexit_registered:
            atexit.register(self.close)
            self._atexit_registered = True
        return self

    def tick(
        self,
        position: Vector3,
        forward: Vector3,
        elapsed: float,
        max_distance: Optional[float] = None,
    ) -> SampleResult:
        if self._closed:
            raise RuntimeError("tracking session is closed")
        self.recorder.mark_accumulating()
        return self.sampler.tick(position, forward, elapsed, max_distance)

    def close(self) -> Optional[str]:
        if self._closed:
            return None
        self._closed = True
        if self._atexit_registered:
            atexit.unregister(self.close)
            self._atexit_registered = False
        if self.recorder.state is RecorderState.UNINITIALIZED:
            logger.warning("Session closed before it was started; nothing to write.")
            return None
        return self.recorder.flush(self.totals)

    def __enter__(self) -> "TrackingSession":
        if self.recorder.state is RecorderState.UNINITIALIZED:
            self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
