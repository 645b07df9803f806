# PROV: SLOPETRACE.TESTS.CALIBRATION.01
# WHY: Ensure scale derivation validates inputs and never partially updates the active calibration.

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from slopetrace.calibration import CalibrationEngine, derive_scale, parse_length
from slopetrace.errors import ERROR
from slopetrace.models import CalibrationState, convert_length


def test_derive_scale_reference_case() -> None:
    state, errors = derive_scale(100, 50, "cm")
    assert errors == []
    assert state is not None
    assert state.scale_per_pixel == 0.5
    assert state.unit == "cm"
    assert state.describe() == "1px ≈ 0.500 cm"


def test_negative_length_is_rejected_and_prior_state_kept() -> None:
    engine = CalibrationEngine()
    engine.derive_scale(200, "10", "mm")
    before = engine.state

    state, errors = engine.derive_scale(100, -1, "cm")
    assert state is None
    assert [e["code"] for e in errors] == [ERROR.INVALID_LENGTH]
    assert engine.state == before
    assert engine.state.scale_per_pixel == pytest.approx(0.05)
    assert engine.state.unit == "mm"


def test_zero_pixel_distance_is_rejected() -> None:
    engine = CalibrationEngine()
    state, errors = engine.derive_scale(0, 50, "cm")
    assert state is None
    assert [e["code"] for e in errors] == [ERROR.ZERO_PIXEL_DISTANCE]
    assert not engine.is_active
    assert engine.state == CalibrationState()


def test_all_failed_validations_are_named() -> None:
    _, errors = derive_scale(0, "abc", "inch")
    assert {e["code"] for e in errors} == {
        ERROR.ZERO_PIXEL_DISTANCE,
        ERROR.INVALID_LENGTH,
        ERROR.INVALID_UNIT,
    }


def test_successful_calibration_overwrites_previous_one() -> None:
    engine = CalibrationEngine()
    engine.derive_scale(100, 50, "cm")
    engine.derive_scale(10, 1, "m")
    assert engine.state.scale_per_pixel == pytest.approx(0.1)
    assert engine.state.unit == "m"
    engine.reset()
    assert not engine.is_active


@pytest.mark.parametrize("raw", ["", "   ", "abc", "0", "-3", "inf", "nan", None, True])
def test_parse_length_rejects_bad_input(raw: object) -> None:
    value, errors = parse_length(raw)
    assert value is None
    assert [e["code"] for e in errors] == [ERROR.INVALID_LENGTH]


def test_parse_length_accepts_typed_text_and_numbers() -> None:
    assert parse_length(" 12.5 ") == (12.5, [])
    assert parse_length("1e2") == (100.0, [])
    assert parse_length(3) == (3.0, [])


def test_calibration_state_fields_are_jointly_present() -> None:
    with pytest.raises(PydanticValidationError):
        CalibrationState(scale_per_pixel=0.5)
    with pytest.raises(PydanticValidationError):
        CalibrationState(unit="cm")
    assert CalibrationState().describe() == "uncalibrated"


def test_convert_length() -> None:
    assert convert_length(100, "cm", "mm") == pytest.approx(1000)
    assert convert_length(250, "mm", "m") == pytest.approx(0.25)
