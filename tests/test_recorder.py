# PROV: SLOPETRACE.TESTS.RECORDER.01
# WHY: Lock in scale precedence, the one-off length path and the bounded newest-first history.

from __future__ import annotations

import pytest

from slopetrace.errors import ERROR
from slopetrace.models import CalibrationState, Point
from slopetrace.recorder import HISTORY_LIMIT, MeasurementRecorder

A = Point(x=0, y=0)
B = Point(x=200, y=0)
CM_HALF = CalibrationState(scale_per_pixel=0.5, unit="cm")


def test_active_scale_converts_pixel_distance() -> None:
    rec, errors = MeasurementRecorder().record(A, B, 200, CM_HALF)
    assert errors == []
    assert rec is not None
    assert rec.real_distance == 100
    assert rec.unit == "cm"
    assert rec.in_unit("mm") == pytest.approx(1000)


def test_active_scale_takes_precedence_over_fallback_length() -> None:
    rec, _ = MeasurementRecorder().record(A, B, 200, CM_HALF, fallback_length="7", fallback_unit="m")
    assert rec is not None
    assert rec.real_distance == 100
    assert rec.unit == "cm"


def test_fallback_length_annotates_uncalibrated_record() -> None:
    rec, errors = MeasurementRecorder().record(A, B, 200, CalibrationState(), fallback_length="35", fallback_unit="mm")
    assert errors == []
    assert rec is not None
    assert rec.real_distance == 35.0
    assert rec.unit == "mm"


def test_pixel_only_record_without_scale_or_length() -> None:
    recorder = MeasurementRecorder()
    rec, errors = recorder.record(A, B, 200, None, fallback_length="", fallback_unit="cm")
    assert errors == []
    assert rec is not None
    assert rec.real_distance is None
    assert rec.unit is None
    assert rec.describe() == "200.00 px"
    assert rec.in_unit("cm") is None


def test_invalid_fallback_length_is_rejected_without_append() -> None:
    recorder = MeasurementRecorder()
    rec, errors = recorder.record(A, B, 200, None, fallback_length="abc", fallback_unit="cm")
    assert rec is None
    assert [e["code"] for e in errors] == [ERROR.INVALID_LENGTH]
    assert len(recorder) == 0


def test_negative_pixel_distance_is_rejected() -> None:
    recorder = MeasurementRecorder()
    rec, errors = recorder.record(A, B, -1.0, None)
    assert rec is None
    assert [e["code"] for e in errors] == [ERROR.INVALID_PIXEL_DISTANCE]


def test_zero_pixel_distance_is_a_valid_measurement() -> None:
    rec, errors = MeasurementRecorder().record(A, A, 0.0, CM_HALF)
    assert errors == []
    assert rec is not None
    assert rec.real_distance == 0.0


def test_history_is_capped_newest_first() -> None:
    recorder = MeasurementRecorder()
    for i in range(HISTORY_LIMIT + 1):
        recorder.record(A, B, float(i), None)

    history = recorder.history
    assert len(history) == HISTORY_LIMIT
    assert history[0].pixel_distance == float(HISTORY_LIMIT)
    assert recorder.latest == history[0]
    # Record 0 was evicted; record 1 is now the oldest.
    assert history[-1].pixel_distance == 1.0
    assert all(r.pixel_distance != 0.0 for r in history)


def test_custom_limit_and_clear() -> None:
    recorder = MeasurementRecorder(limit=3)
    for i in range(5):
        recorder.record(A, B, float(i), None)
    assert [r.pixel_distance for r in recorder.history] == [4.0, 3.0, 2.0]
    recorder.clear()
    assert recorder.history == ()
    assert recorder.latest is None
    with pytest.raises(ValueError):
        MeasurementRecorder(limit=0)
    with pytest.raises(ValueError):
        MeasurementRecorder(limit=HISTORY_LIMIT + 1)
