"""slopetrace.fitting

PROV: SLOPETRACE.CORE.FITTING.01
WHY: Reduce an ordered trace to one representative slope, by regression or by its endpoints.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Sequence

import numpy as np

from slopetrace.geometry import SLOPE_EPSILON, is_vertical, segment_slope
from slopetrace.models import Point

logger = logging.getLogger(__name__)

FitMode = Literal["least-squares", "endpoints"]

FIT_MODES: tuple[FitMode, ...] = ("least-squares", "endpoints")


@dataclass(frozen=True)
class LineFit:
    slope: float
    intercept: float
    mode: FitMode
    vertical: bool = False  # all x equal; slope is a fallback, not a measurement


def _require_two(points: Sequence[Point]) -> None:
    if len(points) < 2:
        raise ValueError(f"line fit needs at least 2 points, got {len(points)}")


def fit_least_squares(points: Sequence[Point]) -> LineFit:
    """Ordinary least-squares regression of y on x.

    A vertical trace (every x identical) has no finite regression slope; it
    falls back to slope 0 with the first point's y as intercept and is flagged
    ``vertical`` so callers can tell the fallback apart from a flat line.
    """
    _require_two(points)
    x = np.array([p.x for p in points], dtype=np.float64)
    y = np.array([p.y for p in points], dtype=np.float64)
    n = float(len(points))

    sx = float(x.sum())
    sy = float(y.sum())
    sxx = float((x * x).sum())
    sxy = float((x * y).sum())

    d = n * sxx - sx * sx
    two_point = len(points) == 2 and not is_vertical(points[0], points[1])
    if not two_point and (d == 0 or bool(np.all(x == x[0]))):
        logger.debug("least-squares fit over %d points is vertical; using fallback", len(points))
        return LineFit(slope=0.0, intercept=float(points[0].y), mode="least-squares", vertical=True)

    if two_point:
        # Same arithmetic as the endpoints fit so both modes agree exactly.
        slope = segment_slope(points[0], points[1])
    else:
        slope = (n * sxy - sx * sy) / d
    intercept = (sy - slope * sx) / n
    return LineFit(slope=slope, intercept=intercept, mode="least-squares")


def fit_endpoints(points: Sequence[Point], epsilon: float = SLOPE_EPSILON) -> LineFit:
    _require_two(points)
    first, last = points[0], points[-1]
    slope = segment_slope(first, last, epsilon)
    return LineFit(
        slope=slope,
        intercept=first.y - slope * first.x,
        mode="endpoints",
        vertical=is_vertical(first, last),
    )


def fit_line(points: Sequence[Point], mode: FitMode, epsilon: float = SLOPE_EPSILON) -> LineFit:
    if mode == "least-squares":
        return fit_least_squares(points)
    if mode == "endpoints":
        return fit_endpoints(points, epsilon)
    raise ValueError(f"unknown fit mode: {mode!r} (expected one of {', '.join(FIT_MODES)})")
