"""Straight-line synthetic pointer motion, one position per animation frame."""

from __future__ import annotations

import math
from typing import Iterator, Tuple

from .errors import InteractionCancelled

Point = Tuple[float, float]


def plan_cursor_path(current: Point, target: Point, speed: float) -> Iterator[Point]:
    """Return a lazy path from ``current`` to ``target`` moving ``speed`` per frame.

    The final position is always ``target`` itself, so a path never overshoots
    and never approaches forever. A distance of d yields ceil(d / speed) - 1
    intermediate points before the snap.
    """

    speed = float(speed)
    if not speed > 0:
        raise ValueError(f"cursor speed must be positive, got {speed!r}")
    return _walk(float(current[0]), float(current[1]), float(target[0]), float(target[1]), speed)


def _walk(x: float, y: float, end_x: float, end_y: float, speed: float) -> Iterator[Point]:
    while True:
        dx = end_x - x
        dy = end_y - y
        if math.hypot(dx, dy) <= speed:
            yield (end_x, end_y)
            return
        angle = math.atan2(dy, dx)
        x += speed * math.cos(angle)
        y += speed * math.sin(angle)
        yield (x, y)


def path_length(current: Point, target: Point) -> float:
    return math.hypot(target[0] - current[0], target[1] - current[1])


class CancelToken:
    """Cooperative cancellation flag checked at every frame and pause."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise InteractionCancelled("interaction cancelled")
