"""Pixel coordinates with overflow-checked arithmetic.

Coordinates model unsigned 32-bit values. Any addition that would leave
``[0, MAX_COORD]`` returns None instead of a Point, and callers treat that
as "cannot continue".

Scans walk one axis from a starting point and stop at the first coordinate
outside the buffer, so they are always finite for a real buffer.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np

from .frame import Pixel, pixel_at

MAX_COORD = 0xFFFFFFFF


def checked_add(a: int, b: int) -> int | None:
    """Add two coordinates, returning None on overflow."""
    total = a + b
    if total < 0 or total > MAX_COORD:
        return None
    return total


@dataclass(frozen=True)
class Point:
    """An (x, y) pixel coordinate, origin at the top left."""

    x: int
    y: int

    def checked_add(self, other: Point) -> Point | None:
        x = checked_add(self.x, other.x)
        y = checked_add(self.y, other.y)
        if x is None or y is None:
            return None
        return Point(x, y)

    def next_x(self) -> Point | None:
        x = checked_add(self.x, 1)
        return None if x is None else Point(x, self.y)

    def x_counter(self) -> Iterator[Point]:
        """Yield this point and every point to its right up to MAX_COORD."""
        for x in range(self.x, MAX_COORD + 1):
            yield Point(x, self.y)

    def y_counter(self) -> Iterator[Point]:
        """Yield this point and every point below it up to MAX_COORD."""
        for y in range(self.y, MAX_COORD + 1):
            yield Point(self.x, y)

    def pixel_at(self, buf: np.ndarray) -> tuple[Pixel, Point] | None:
        pixel = pixel_at(buf, self.x, self.y)
        if pixel is None:
            return None
        return pixel, self

    def scan_x(self, buf: np.ndarray) -> Iterator[tuple[Pixel, Point]]:
        """Yield (pixel, point) rightward until the buffer's right edge."""
        return _scan(buf, self.x_counter())

    def scan_y(self, buf: np.ndarray) -> Iterator[tuple[Pixel, Point]]:
        """Yield (pixel, point) downward until the buffer's bottom edge."""
        return _scan(buf, self.y_counter())


def _scan(buf: np.ndarray, points: Iterator[Point]) -> Iterator[tuple[Pixel, Point]]:
    for at in points:
        found = at.pixel_at(buf)
        if found is None:
            return
        yield found
