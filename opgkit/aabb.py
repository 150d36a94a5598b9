"""Axis-aligned bounding boxes in three dimensions."""

from __future__ import annotations

import math
from typing import Iterable, Union

import numpy as np

PointLike = Iterable[float]


class Aabb:
    """Axis-aligned bounding box with mutable ``min`` and ``max`` corners.

    A freshly reset box is empty: its minimum is +inf and its maximum -inf,
    so including anything makes the box exactly enclose it.
    """

    __hash__ = None  # mutable

    def __init__(self, *args: Union["Aabb", PointLike]) -> None:
        self.min = np.empty(3, dtype=np.float64)
        self.max = np.empty(3, dtype=np.float64)
        self.reset()
        if args:
            self.include(*args)

    def __repr__(self) -> str:
        return f"Aabb(min={tuple(self.min.tolist())}, max={tuple(self.max.tolist())})"

    def __getitem__(self, i: int) -> np.ndarray:
        if i == 0:
            return self.min
        if i == 1:
            return self.max
        raise IndexError("Aabb index must be 0 or 1")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Aabb):
            return NotImplemented
        return bool(np.array_equal(self.min, other.min) and np.array_equal(self.max, other.max))

    @staticmethod
    def _point(p: PointLike) -> np.ndarray:
        arr = np.asarray(tuple(p), dtype=np.float64)
        if arr.shape != (3,):
            raise ValueError("expected a point with 3 components")
        return arr

    def _require_valid(self) -> None:
        if not self.valid():
            raise ValueError("Aabb is not valid")

    def reset(self) -> None:
        """Make the box empty."""
        self.min[:] = math.inf
        self.max[:] = -math.inf

    def valid(self) -> bool:
        """True if the minimum does not exceed the maximum on any axis."""
        return bool(np.all(self.min <= self.max))

    def contains(self, other: Union["Aabb", PointLike]) -> bool:
        """True if a point or box lies inside; the minimum faces are exclusive."""
        if isinstance(other, Aabb):
            lo, hi = other.min, other.max
        else:
            lo = hi = self._point(other)
        return bool(np.all(lo > self.min) and np.all(hi <= self.max))

    def include(self, *args: Union["Aabb", PointLike]) -> None:
        """Grow the box to enclose every given point or box."""
        for item in args:
            if isinstance(item, Aabb):
                lo, hi = item.min, item.max
            else:
                lo = hi = self._point(item)
            np.minimum(self.min, lo, out=self.min)
            np.maximum(self.max, hi, out=self.max)

    def center(self) -> np.ndarray:
        self._require_valid()
        return (self.min + self.max) * 0.5

    def extent(self) -> np.ndarray:
        self._require_valid()
        return self.max - self.min

    def volume(self) -> float:
        d = self.extent()
        return float(d[0] * d[1] * d[2])

    def area(self) -> float:
        return 2.0 * self.half_area()

    def half_area(self) -> float:
        d = self.extent()
        return float(d[0] * d[1] + d[1] * d[2] + d[2] * d[0])

    def longest_axis(self) -> int:
        """Index of the axis with the largest extent; ties go to the later axis."""
        dx, dy, dz = self.extent()
        if dx > dy:
            return 0 if dx > dz else 2
        return 1 if dy > dz else 2

    def max_extent(self) -> float:
        return float(self.extent()[self.longest_axis()])

    def intersects(self, other: "Aabb") -> bool:
        return not bool(np.any((other.min > self.max) | (other.max < self.min)))

    def intersection(self, other: "Aabb") -> None:
        """Shrink the box to its overlap with ``other``."""
        np.maximum(self.min, other.min, out=self.min)
        np.minimum(self.max, other.max, out=self.max)

    def enlarge(self, amount: float) -> None:
        """Move every face outwards by ``amount``."""
        self._require_valid()
        self.min -= amount
        self.max += amount

    def transform(self, m) -> None:
        """Replace the box by the bounds of its corners under the 4x4 matrix ``m``.

        ``m`` acts on column vectors ``(x, y, z, 1)``.
        """
        mat = np.asarray(m, dtype=np.float64)
        if mat.shape != (4, 4):
            raise ValueError("expected a 4x4 matrix")
        lo, hi = self.min.copy(), self.max.copy()
        corners = [
            (x, y, z)
            for x in (lo[0], hi[0])
            for y in (lo[1], hi[1])
            for z in (lo[2], hi[2])
        ]
        self.reset()
        for corner in corners:
            moved = mat @ np.array([*corner, 1.0])
            self.include(moved[:3])

    def is_flat(self) -> bool:
        """True if the box has collapsed to a single point."""
        return bool(np.array_equal(self.min, self.max))

    def distance(self, x: PointLike) -> float:
        return math.sqrt(self.distance2(x))

    def distance2(self, x: PointLike) -> float:
        """Squared distance from ``x`` to the box; zero inside."""
        ext = self.extent()
        v = self._point(x) - self.min
        excess = np.where(v < 0, v, np.where(v > ext, v - ext, 0.0))
        return float(np.sum(excess * excess))

    def signed_distance(self, x: PointLike) -> float:
        """Distance to the box, negative (distance to the nearest face) inside."""
        p = self._point(x)
        if np.all(self.min <= p) and np.all(p <= self.max):
            return -float(np.min(np.minimum(p - self.min, self.max - p)))
        return self.distance(p)