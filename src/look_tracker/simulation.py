"""Scripted scenes for driving a tracking session without a game engine."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import TrackerSettings
from .scene import SceneObject, SceneRaycaster
from .session import TrackingSession

logger = logging.getLogger(__name__)


class SceneObjectSpec(BaseModel):
    name: str
    tags: list[str] = Field(default_factory=list)
    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    radius: Optional[float] = Field(default=None, gt=0)
    children: list["SceneObjectSpec"] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")

    def build(self) -> SceneObject:
        node = SceneObject(
            name=self.name,
            tags=frozenset(self.tags),
            position=self.position,
            radius=self.radius,
        )
        for child in self.children:
            node.add_child(child.build())
        return node


class FrameSpec(BaseModel):
    position: tuple[float, float, float]
    forward: tuple[float, float, float]
    dt: Optional[float] = Field(default=None, ge=0)
    repeat: int = Field(default=1, ge=1)

    model_config = ConfigDict(extra="forbid")


class ScenarioSpec(BaseModel):
    objects: list[SceneObjectSpec]
    frames: list[FrameSpec]

    model_config = ConfigDict(extra="forbid")


SceneObjectSpec.model_rebuild()


def load_scenario(path: Path) -> ScenarioSpec:
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return ScenarioSpec.model_validate(data)


def run_scenario(
    scenario: ScenarioSpec,
    log_path: Path,
    settings: Optional[TrackerSettings] = None,
) -> dict[str, float]:
    """Play every frame of ``scenario`` through a fresh tracking session.

    A frame's ``dt`` is the time since the previous tick, so it is credited to
    whatever the previous frame was looking at. Frames without a ``dt`` use the
    configured tick interval.
    """
    settings = settings or TrackerSettings()
    default_dt = settings.tick_interval.total_seconds()
    roots = [spec.build() for spec in scenario.objects]
    session = TrackingSession(SceneRaycaster(roots), log_path, settings)
    with session:
        ticks = 0
        for frame in scenario.frames:
            for _ in range(frame.repeat):
                elapsed = frame.dt if frame.dt is not None else default_dt
                session.tick(frame.position, frame.forward, elapsed)
                ticks += 1
        logger.info("Simulated %d ticks over %d objects", ticks, len(roots))
        return session.totals
