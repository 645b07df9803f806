"""slopetrace.metrics

PROV: SLOPETRACE.CORE.METRICS.01
WHY: Turn a fitted slope and its trace into inclination figures (angle, grade, ratio, segment spread).
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Optional, Sequence

from slopetrace.errors import ERROR, ValidationError, make_error
from slopetrace.fitting import FitMode, fit_line
from slopetrace.geometry import SLOPE_EPSILON, segment_slope
from slopetrace.models import Point

logger = logging.getLogger(__name__)


def _nz(value: float) -> float:
    # -0.0 -> 0.0
    return value + 0.0


def angle_from_slope(slope: float) -> float:
    """Inclination in degrees, positive when the line rises to the right on a y-down image."""
    return math.degrees(-math.atan(slope))


def grade_from_angle(angle_deg: float) -> float:
    return math.tan(math.radians(angle_deg)) * 100.0


def ratio_from_angle(angle_deg: float) -> Optional[float]:
    """Run per unit rise (the N of "1:N"); None for a perfectly flat line."""
    t = math.tan(math.radians(angle_deg))
    if t == 0:
        return None
    return 1.0 / abs(t)


@dataclass(frozen=True)
class SegmentStats:
    angles: tuple[float, ...]
    min_angle: float
    max_angle: float
    spread: float
    max_abs_angle: float
    max_abs_grade: float


@dataclass(frozen=True)
class Metrics:
    mode: FitMode
    slope: float
    angle_deg: float
    grade_pct: float
    ratio: Optional[float]
    vertical_fit: bool
    segments: SegmentStats

    @property
    def ratio_defined(self) -> bool:
        return self.ratio is not None

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["segments"]["angles"] = list(self.segments.angles)
        out["ratio_defined"] = self.ratio_defined
        return out

    def summary_lines(self, precision: int = 2) -> list[str]:
        p = precision
        ratio = "∞" if self.ratio is None else f"{self.ratio:.{p}f}"
        s = self.segments
        lines = [
            f"angle: {self.angle_deg:.{p}f}°",
            f"grade: {self.grade_pct:.{p}f}%",
            f"ratio: 1:{ratio}",
            f"min segment angle: {s.min_angle:.{p}f}°",
            f"max segment angle: {s.max_angle:.{p}f}°",
            f"difference: {s.spread:.{p}f}°",
            f"steepest: {s.max_abs_angle:.{p}f}° / {s.max_abs_grade:.{p}f}%",
        ]
        if self.vertical_fit:
            lines.append("warning: vertical trace, slope is a fallback")
        return lines


def segment_stats(points: Sequence[Point], epsilon: float = SLOPE_EPSILON) -> SegmentStats:
    if len(points) < 2:
        raise ValueError(f"segment statistics need at least 2 points, got {len(points)}")
    angles = tuple(
        _nz(angle_from_slope(segment_slope(p, q, epsilon))) for p, q in zip(points, points[1:])
    )
    lo = min(angles)
    hi = max(angles)

    # First-seen wins on equal magnitude.
    steepest = angles[0]
    for a in angles[1:]:
        if abs(a) > abs(steepest):
            steepest = a

    return SegmentStats(
        angles=angles,
        min_angle=lo,
        max_angle=hi,
        spread=_nz(hi - lo),
        max_abs_angle=steepest,
        max_abs_grade=abs(grade_from_angle(steepest)),
    )


def check_trace(points: Sequence[Point]) -> list[ValidationError]:
    if len(points) < 2:
        return [
            make_error(
                ERROR.DEGENERATE_TRACE,
                "trace needs at least 2 points to compute metrics",
                field="trace",
                value=len(points),
            )
        ]
    return []


def compute_metrics(
    points: Sequence[Point], mode: FitMode, epsilon: float = SLOPE_EPSILON
) -> Optional[Metrics]:
    if check_trace(points):
        return None

    fit = fit_line(points, mode, epsilon)
    angle = _nz(angle_from_slope(fit.slope))
    metrics = Metrics(
        mode=mode,
        slope=fit.slope,
        angle_deg=angle,
        grade_pct=_nz(grade_from_angle(angle)),
        ratio=ratio_from_angle(angle),
        vertical_fit=fit.vertical,
        segments=segment_stats(points, epsilon),
    )
    logger.debug(
        "metrics mode=%s points=%d slope=%.6g angle=%.4f", mode, len(points), fit.slope, angle
    )
    return metrics
