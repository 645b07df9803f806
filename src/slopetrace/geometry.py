"""slopetrace.geometry

PROV: SLOPETRACE.CORE.GEOMETRY.01
WHY: Provide deterministic distance and guarded slope helpers shared by every higher component.
"""

from __future__ import annotations

import math

from slopetrace.models import Point

# Replaces an exactly-zero run so a vertical segment yields a huge finite slope.
SLOPE_EPSILON = 1e-9


def distance(p: Point, q: Point) -> float:
    return math.hypot(p.x - q.x, p.y - q.y)


def is_vertical(p: Point, q: Point) -> bool:
    return q.x - p.x == 0


def segment_slope(p: Point, q: Point, epsilon: float = SLOPE_EPSILON) -> float:
    run = q.x - p.x
    if run == 0:
        run = epsilon
    return (q.y - p.y) / run
