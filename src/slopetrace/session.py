"""slopetrace.session

PROV: SLOPETRACE.CORE.SESSION.01
WHY: Own one trace, one calibration, one measurement history and the two-point selectors
     as explicit state, so several independent sessions can coexist.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from slopetrace.calibration import CalibrationEngine, check_unit, parse_length
from slopetrace.config import SessionConfig
from slopetrace.errors import ERROR, ValidationError, make_error
from slopetrace.fitting import FIT_MODES, FitMode
from slopetrace.geometry import distance
from slopetrace.metrics import Metrics, compute_metrics
from slopetrace.models import CalibrationState, MeasurementRecord, Point, Unit
from slopetrace.pairing import PAIR_KINDS, PairKind, PairState, TwoPointSelector
from slopetrace.recorder import MeasurementRecorder

logger = logging.getLogger(__name__)

ClickTarget = Literal["trace", "calib", "measure"]


class Session:
    """State of one image being measured.

    Every operation runs to completion synchronously. Rejected inputs come back
    as ``(None, errors)`` and leave trace, calibration and history untouched.
    """

    def __init__(self, config: Optional[SessionConfig] = None) -> None:
        self.config = config or SessionConfig()
        self.mode: FitMode = self.config.fit_mode
        self.calibration = CalibrationEngine()
        self.recorder = MeasurementRecorder(limit=self.config.history_limit)
        self._trace: list[Point] = []
        self._selectors: dict[str, TwoPointSelector] = {k: TwoPointSelector(k) for k in PAIR_KINDS}
        self._preset: Optional[tuple[float, Unit]] = None
        self.status = ""

    # ----- trace -----

    @property
    def trace(self) -> list[Point]:
        return list(self._trace)

    def add_trace_point(self, p: Point) -> list[Point]:
        self._trace.append(p)
        return self.trace

    def reset_trace(self) -> list[Point]:
        self._trace = []
        logger.debug("trace reset")
        return self.trace

    def set_mode(self, mode: FitMode) -> FitMode:
        if mode not in FIT_MODES:
            raise ValueError(f"unknown fit mode: {mode!r}")
        self.mode = mode
        return self.mode

    def toggle_mode(self) -> FitMode:
        return self.set_mode("endpoints" if self.mode == "least-squares" else "least-squares")

    def compute_metrics(self, mode: Optional[FitMode] = None) -> Optional[Metrics]:
        return compute_metrics(self._trace, mode or self.mode, self.config.slope_epsilon)

    # ----- two-point gestures -----

    def _selector(self, kind: PairKind) -> TwoPointSelector:
        if kind not in self._selectors:
            raise ValueError(f"unknown pair kind: {kind!r}")
        return self._selectors[kind]

    def pair_state(self, kind: PairKind) -> PairState:
        return self._selector(kind).state

    def begin_or_complete_pair(self, kind: PairKind, p: Point) -> PairState:
        state = self._selector(kind).click(p)
        if not state.is_pending:
            return state

        px = state.pixel_distance
        p_ = self.config.precision
        if kind == "calib":
            if self._preset is not None:
                length, unit = self._preset
                self.calibrate_pending("calib", length, unit)
                return self.pair_state(kind)
            self.status = f"calibration span: {px:.{p_}f} px -> enter the real length to calibrate"
        else:
            cal = self.calibration.state
            if cal.is_active:
                real = px * cal.scale_per_pixel
                self.status = f"length: {px:.{p_}f} px / approx. {real:.{p_}f} {cal.unit}"
            else:
                self.status = f"length: {px:.{p_}f} px"
        return state

    def set_length_input(self, kind: PairKind, text: str) -> PairState:
        return self._selector(kind).set_length_input(text)

    def clear_pending(self, kind: PairKind) -> PairState:
        self.status = ""
        return self._selector(kind).clear()

    def _no_pending(self, kind: PairKind) -> list[ValidationError]:
        return [make_error(ERROR.NO_PENDING_PAIR, f"no completed {kind} pair to use", kind=kind)]

    # ----- calibration -----

    def derive_scale(
        self, pixel_distance: float, real_length: object, unit: object
    ) -> tuple[CalibrationState | None, list[ValidationError]]:
        state, errors = self.calibration.derive_scale(pixel_distance, real_length, unit)
        if errors:
            self.status = errors[0]["message"]
            return None, errors
        assert state is not None
        self.status = f"calibrated: {state.describe(precision=4)}"
        return state, []

    def calibrate_pending(
        self, kind: PairKind, real_length: object = None, unit: object = None
    ) -> tuple[CalibrationState | None, list[ValidationError]]:
        """Calibrate from the completed pair of either gesture.

        A calibration pair is consumed on success; a measurement pair stays
        pending so it can still be recorded.
        """
        selector = self._selector(kind)
        pair = selector.state
        if not pair.is_pending:
            return None, self._no_pending(kind)
        if real_length is None:
            real_length = pair.length_input
        state, errors = self.derive_scale(pair.pixel_distance, real_length, unit or self.config.default_unit)
        if errors:
            return None, errors
        if kind == "calib":
            selector.clear()
        return state, []

    def set_preset_length(self, raw: object, unit: object = None) -> tuple[float | None, list[ValidationError]]:
        """Length typed before clicking; an empty value removes the preset."""
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            self._preset = None
            return None, []
        unit = unit or self.config.default_unit
        errors: list[ValidationError] = []
        length, length_errors = parse_length(raw, field="preset_length")
        errors.extend(length_errors)
        errors.extend(check_unit(unit))
        if errors:
            return None, errors
        assert length is not None
        self._preset = (length, unit)
        return length, []

    @property
    def preset_length(self) -> Optional[tuple[float, Unit]]:
        return self._preset

    # ----- measurement -----

    @property
    def history(self) -> tuple[MeasurementRecord, ...]:
        return self.recorder.history

    def record_measurement(
        self,
        a: Point,
        b: Point,
        fallback_length: object = None,
        fallback_unit: object = None,
        pixel_distance: Optional[float] = None,
    ) -> tuple[MeasurementRecord | None, list[ValidationError]]:
        if pixel_distance is None:
            pixel_distance = distance(a, b)
        if fallback_unit is None:
            fallback_unit = self.config.default_unit
        rec, errors = self.recorder.record(
            a, b, pixel_distance, self.calibration.state, fallback_length, fallback_unit
        )
        if errors:
            self.status = errors[0]["message"]
            return None, errors
        assert rec is not None
        self.status = f"recorded: {rec.describe(self.config.precision)}"
        return rec, []

    def record_pending(
        self, fallback_length: object = None, fallback_unit: object = None
    ) -> tuple[MeasurementRecord | None, list[ValidationError]]:
        selector = self._selector("measure")
        pair = selector.state
        if not pair.is_pending:
            return None, self._no_pending("measure")
        if fallback_length is None:
            fallback_length = pair.length_input
        rec, errors = self.record_measurement(
            pair.a, pair.b, fallback_length, fallback_unit, pixel_distance=pair.pixel_distance
        )
        if errors:
            return None, errors
        selector.clear()
        return rec, []

    # ----- input routing -----

    def click(self, p: Point, target: ClickTarget = "trace") -> Any:
        """Route an image-space click; which target applies is decided by the caller."""
        if target == "trace":
            return self.add_trace_point(p)
        if target in PAIR_KINDS:
            return self.begin_or_complete_pair(target, p)
        raise ValueError(f"unknown click target: {target!r}")

    def new_image(self) -> None:
        """Reset everything tied to the previous image in one step."""
        self._trace = []
        self.calibration.reset()
        self.recorder.clear()
        for selector in self._selectors.values():
            selector.clear()
        self._preset = None
        self.status = ""
        logger.info("session reset for new image")

    def snapshot(self) -> dict[str, Any]:
        metrics = self.compute_metrics()
        return {
            "mode": self.mode,
            "trace": [p.model_dump() for p in self._trace],
            "metrics": metrics.to_dict() if metrics else None,
            "calibration": self.calibration.state.model_dump(),
            "history": [r.model_dump() for r in self.recorder.history],
            "pairs": {k: s.state.to_dict() for k, s in self._selectors.items()},
            "status": self.status,
        }
