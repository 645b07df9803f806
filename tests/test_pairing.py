# PROV: SLOPETRACE.TESTS.PAIRING.01
# WHY: Lock in the shared two-click state machine used by calibration and measurement.

from __future__ import annotations

import pytest

from slopetrace.models import Point
from slopetrace.pairing import PairPhase, TwoPointSelector


def test_first_click_arms_with_zero_length_preview() -> None:
    sel = TwoPointSelector("calib")
    state = sel.click(Point(x=10, y=20))
    assert state.phase is PairPhase.FIRST_POINT_ARMED
    assert state.a == state.b == Point(x=10, y=20)
    assert state.pixel_distance is None
    assert not state.is_pending


def test_second_click_completes_pair_with_distance() -> None:
    sel = TwoPointSelector("measure")
    sel.click(Point(x=0, y=0))
    state = sel.click(Point(x=30, y=40))
    assert state.phase is PairPhase.PENDING_PAIR
    assert state.is_pending
    assert state.pixel_distance == 50.0
    assert state.kind == "measure"


def test_click_on_pending_pair_moves_second_point() -> None:
    sel = TwoPointSelector("calib")
    sel.click(Point(x=0, y=0))
    sel.click(Point(x=3, y=4))
    state = sel.click(Point(x=6, y=8))
    assert state.a == Point(x=0, y=0)
    assert state.b == Point(x=6, y=8)
    assert state.pixel_distance == 10.0


def test_clear_returns_to_idle_and_drops_typed_length() -> None:
    sel = TwoPointSelector("calib")
    sel.click(Point(x=0, y=0))
    sel.click(Point(x=1, y=0))
    sel.set_length_input("12")
    assert sel.state.length_input == "12"

    state = sel.clear()
    assert state.phase is PairPhase.IDLE
    assert state.a is None and state.b is None
    assert state.length_input == ""


def test_clear_while_armed_cancels_gesture() -> None:
    sel = TwoPointSelector("measure")
    sel.click(Point(x=5, y=5))
    assert sel.clear().phase is PairPhase.IDLE
    # The next click starts a fresh pair.
    assert sel.click(Point(x=9, y=9)).a == Point(x=9, y=9)


def test_unknown_kind_is_rejected() -> None:
    with pytest.raises(ValueError):
        TwoPointSelector("angle")  # type: ignore[arg-type]


def test_to_dict_is_plain_data() -> None:
    sel = TwoPointSelector("calib")
    sel.click(Point(x=1, y=2))
    d = sel.state.to_dict()
    assert d["phase"] == "first_point_armed"
    assert d["a"] == {"x": 1.0, "y": 2.0}
