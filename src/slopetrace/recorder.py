"""slopetrace.recorder

PROV: SLOPETRACE.CORE.RECORDER.01
WHY: Turn two-point pixel distances into measurement records and keep a bounded,
     most-recent-first history.
"""

from __future__ import annotations

import logging
import math
from collections import deque
from typing import Optional

from slopetrace.calibration import check_unit, parse_length
from slopetrace.errors import ERROR, ValidationError, make_error
from slopetrace.models import CalibrationState, MeasurementRecord, Point

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


def _has_text(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


class MeasurementRecorder:
    """Records measurements, newest first, evicting the oldest past ``limit``."""

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        if not 1 <= limit <= HISTORY_LIMIT:
            raise ValueError(f"history limit must be in [1, {HISTORY_LIMIT}], got {limit}")
        self.limit = limit
        self._history: deque[MeasurementRecord] = deque(maxlen=limit)

    @property
    def history(self) -> tuple[MeasurementRecord, ...]:
        return tuple(self._history)

    @property
    def latest(self) -> Optional[MeasurementRecord]:
        return self._history[0] if self._history else None

    def __len__(self) -> int:
        return len(self._history)

    def clear(self) -> None:
        self._history.clear()

    def build_record(
        self,
        a: Point,
        b: Point,
        pixel_distance: float,
        calibration: Optional[CalibrationState],
        fallback_length: object = None,
        fallback_unit: object = None,
    ) -> tuple[MeasurementRecord | None, list[ValidationError]]:
        if (
            isinstance(pixel_distance, bool)
            or not isinstance(pixel_distance, (int, float))
            or not math.isfinite(pixel_distance)
            or pixel_distance < 0
        ):
            return None, [
                make_error(
                    ERROR.INVALID_PIXEL_DISTANCE,
                    "pixel distance must be a finite number >= 0",
                    field="pixel_distance",
                    value=pixel_distance,
                )
            ]

        # An active scale always wins over a one-off length.
        if calibration is not None and calibration.is_active:
            real = float(pixel_distance) * calibration.scale_per_pixel
            return MeasurementRecord(
                a=a, b=b, pixel_distance=pixel_distance, real_distance=real, unit=calibration.unit
            ), []

        if not _has_text(fallback_length):
            return MeasurementRecord(a=a, b=b, pixel_distance=pixel_distance), []

        errors: list[ValidationError] = []
        length, length_errors = parse_length(fallback_length, field="fallback_length")
        errors.extend(length_errors)
        errors.extend(check_unit(fallback_unit, field="fallback_unit"))
        if errors:
            return None, errors
        return MeasurementRecord(
            a=a, b=b, pixel_distance=pixel_distance, real_distance=length, unit=fallback_unit
        ), []

    def record(
        self,
        a: Point,
        b: Point,
        pixel_distance: float,
        calibration: Optional[CalibrationState],
        fallback_length: object = None,
        fallback_unit: object = None,
    ) -> tuple[MeasurementRecord | None, list[ValidationError]]:
        rec, errors = self.build_record(a, b, pixel_distance, calibration, fallback_length, fallback_unit)
        if errors:
            logger.warning("measurement rejected: %s", ", ".join(e["code"] for e in errors))
            return None, errors
        assert rec is not None
        self._history.appendleft(rec)
        logger.debug("recorded %s (history=%d)", rec.describe(), len(self._history))
        return rec, []
