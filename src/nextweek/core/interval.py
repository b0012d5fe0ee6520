"""Closed real intervals used for hit ranges and bounding-box extents."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Interval:
    """A real interval [min, max].

    An interval with min > max is empty. ``contains`` treats the bounds as
    inclusive; ``surrounds`` treats them as exclusive, which is what a ray
    hit range (t_min, t_max) needs.

    Attributes:
        min: Lower bound.
        max: Upper bound.
    """

    min: float = math.inf
    max: float = -math.inf

    @property
    def size(self) -> float:
        """Length of the interval (negative when empty)."""
        return self.max - self.min

    def is_empty(self) -> bool:
        return self.min > self.max

    def contains(self, x: float) -> bool:
        return self.min <= x <= self.max

    def surrounds(self, x: float) -> bool:
        return self.min < x < self.max

    def clamp(self, x: float) -> float:
        return min(max(x, self.min), self.max)

    def expand(self, delta: float) -> Interval:
        """Return the interval grown by delta / 2 on each side."""
        padding = delta / 2.0
        return Interval(self.min - padding, self.max + padding)

    def union(self, other: Interval) -> Interval:
        """Return the smallest interval enclosing both intervals."""
        return Interval(min(self.min, other.min), max(self.max, other.max))

    def intersection(self, other: Interval) -> Interval:
        """Return the overlap of both intervals (empty when they are disjoint)."""
        return Interval(max(self.min, other.min), min(self.max, other.max))


EMPTY = Interval(math.inf, -math.inf)
UNIVERSE = Interval(-math.inf, math.inf)
