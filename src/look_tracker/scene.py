"""Scene-graph contracts and an in-memory scene host.

The sampler only depends on the :class:`SceneNode` and :class:`Raycaster`
protocols. :class:`SceneObject` and :class:`SceneRaycaster` are a small
host implementation used by the simulator and the tests: objects are nodes
in a parent/child tree and may carry a spherical collider.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional, Protocol, Sequence

from .models import Vector3


class SceneNode(Protocol):
    """Read-only view of an object in the host's scene tree."""

    @property
    def name(self) -> str: ...

    @property
    def parent(self) -> Optional["SceneNode"]: ...

    @property
    def children(self) -> Sequence["SceneNode"]: ...

    def has_tag(self, tag: str) -> bool: ...


class Raycaster(Protocol):
    def cast(
        self, origin: Vector3, direction: Vector3, max_distance: float
    ) -> Optional[SceneNode]: ...


@dataclass(eq=False)
class SceneObject:
    """A named node in an in-memory scene tree."""

    name: str
    tags: frozenset[str] = frozenset()
    position: Vector3 = (0.0, 0.0, 0.0)
    radius: Optional[float] = None
    parent: Optional["SceneObject"] = field(default=None, repr=False)
    children: list["SceneObject"] = field(default_factory=list, repr=False)

    def has_tag(self, tag: str) -> bool:
        return tag.casefold() in {t.casefold() for t in self.tags}

    def add_child(self, child: "SceneObject") -> "SceneObject":
        if child.parent is not None:
            child.parent.children.remove(child)
        child.parent = self
        self.children.append(child)
        return child

    def walk(self) -> Iterator["SceneObject"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, name: str) -> Optional["SceneObject"]:
        for node in self.walk():
            if node.name == name:
                return node
        return None


class SceneRaycaster:
    """Casts rays against the spherical colliders of a set of scene trees."""

    def __init__(self, roots: Iterable[SceneObject]) -> None:
        self._roots = list(roots)

    def colliders(self) -> Iterator[SceneObject]:
        for root in self._roots:
            for node in root.walk():
                if node.radius is not None and node.radius > 0:
                    yield node

    def cast(
        self, origin: Vector3, direction: Vector3, max_distance: float
    ) -> Optional[SceneObject]:
        unit = normalize(direction)
        if unit is None:
            return None
        nearest: Optional[SceneObject] = None
        nearest_distance = max_distance
        for node in self.colliders():
            radius = node.radius or 0.0
            distance = ray_sphere_distance(origin, unit, node.position, radius)
            if distance is not None and distance <= nearest_distance:
                nearest = node
                nearest_distance = distance
        return nearest


def normalize(vector: Vector3) -> Optional[Vector3]:
    length = math.sqrt(sum(component * component for component in vector))
    if length == 0:
        return None
    return (vector[0] / length, vector[1] / length, vector[2] / length)


def ray_sphere_distance(
    origin: Vector3, unit_direction: Vector3, center: Vector3, radius: float
) -> Optional[float]:
    """Distance along the ray to the first sphere intersection, if any.

    Origins inside the sphere report a distance of zero.
    """
    offset = tuple(o - c for o, c in zip(origin, center))
    b = sum(d * o for d, o in zip(unit_direction, offset))
    c = sum(o * o for o in offset) - radius * radius
    if c <= 0:
        return 0.0
    discriminant = b * b - c
    if discriminant < 0:
        return None
    distance = -b - math.sqrt(discriminant)
    if distance < 0:
        return None
    return distance
