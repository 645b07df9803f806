"""slopetrace.calibration

PROV: SLOPETRACE.CORE.CALIBRATION.01
WHY: Derive a pixel-to-real-unit scale from a reference pixel distance and a declared length,
     with all-or-nothing updates of the active scale.
"""

from __future__ import annotations

import logging
import math

from slopetrace.errors import ERROR, ValidationError, make_error
from slopetrace.models import UNITS, CalibrationState, Unit

logger = logging.getLogger(__name__)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_length(raw: object, *, field: str = "length") -> tuple[float | None, list[ValidationError]]:
    """Validate a user-supplied real length (a number or the text typed into a box)."""
    if _is_number(raw):
        value = float(raw)
    elif isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None, [make_error(ERROR.INVALID_LENGTH, "length is required", field=field, value=raw)]
        try:
            value = float(text)
        except ValueError:
            return None, [make_error(ERROR.INVALID_LENGTH, f"length is not a number: {raw!r}", field=field, value=raw)]
    else:
        return None, [make_error(ERROR.INVALID_LENGTH, "length must be a number or numeric text", field=field)]

    if not math.isfinite(value) or value <= 0:
        return None, [
            make_error(ERROR.INVALID_LENGTH, "length must be a finite positive number", field=field, value=raw)
        ]
    return value, []


def check_unit(unit: object, *, field: str = "unit") -> list[ValidationError]:
    if unit not in UNITS:
        return [make_error(ERROR.INVALID_UNIT, f"unit must be one of {', '.join(UNITS)}", field=field, value=unit)]
    return []


def check_pixel_distance(pixel_distance: object) -> list[ValidationError]:
    if not _is_number(pixel_distance) or not math.isfinite(float(pixel_distance)):
        return [
            make_error(
                ERROR.INVALID_PIXEL_DISTANCE,
                "pixel distance must be a finite number",
                field="pixel_distance",
                value=pixel_distance,
            )
        ]
    if float(pixel_distance) <= 0:
        return [
            make_error(
                ERROR.ZERO_PIXEL_DISTANCE,
                "reference pixel distance must be greater than 0",
                field="pixel_distance",
                value=pixel_distance,
            )
        ]
    return []


def derive_scale(
    pixel_distance: float, real_length: object, unit: object
) -> tuple[CalibrationState | None, list[ValidationError]]:
    errors: list[ValidationError] = []
    errors.extend(check_pixel_distance(pixel_distance))
    length, length_errors = parse_length(real_length)
    errors.extend(length_errors)
    errors.extend(check_unit(unit))
    if errors:
        return None, errors

    assert length is not None
    scale = length / float(pixel_distance)
    if not math.isfinite(scale) or scale <= 0:
        return None, [
            make_error(
                ERROR.INVALID_PIXEL_DISTANCE,
                "pixel distance too small for a finite scale",
                field="pixel_distance",
                value=pixel_distance,
            )
        ]
    return CalibrationState(scale_per_pixel=scale, unit=unit), []


class CalibrationEngine:
    """Holds the active calibration; it only changes on a successful derive_scale()."""

    def __init__(self) -> None:
        self._state = CalibrationState()

    @property
    def state(self) -> CalibrationState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state.is_active

    def derive_scale(
        self, pixel_distance: float, real_length: object, unit: Unit | str
    ) -> tuple[CalibrationState | None, list[ValidationError]]:
        state, errors = derive_scale(pixel_distance, real_length, unit)
        if errors:
            logger.warning("calibration rejected: %s", ", ".join(e["code"] for e in errors))
            return None, errors
        assert state is not None
        self._state = state
        logger.info("calibrated: %s", state.describe(precision=4))
        return state, []

    def reset(self) -> None:
        self._state = CalibrationState()
