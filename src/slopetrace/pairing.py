"""slopetrace.pairing

PROV: SLOPETRACE.CORE.PAIRING.01
WHY: One explicit two-click state machine shared by calibration and measurement gestures.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Literal, Optional

from slopetrace.geometry import distance
from slopetrace.models import Point

logger = logging.getLogger(__name__)

PairKind = Literal["calib", "measure"]

PAIR_KINDS: tuple[PairKind, ...] = ("calib", "measure")


class PairPhase(str, Enum):
    """Where a two-point gesture currently stands."""
    IDLE = "idle"
    FIRST_POINT_ARMED = "first_point_armed"
    PENDING_PAIR = "pending_pair"


@dataclass(frozen=True)
class PairState:
    kind: PairKind
    phase: PairPhase = PairPhase.IDLE
    a: Optional[Point] = None
    b: Optional[Point] = None
    pixel_distance: Optional[float] = None  # only set once the pair is complete
    length_input: str = ""

    @property
    def is_pending(self) -> bool:
        return self.phase is PairPhase.PENDING_PAIR

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "phase": self.phase.value,
            "a": self.a.model_dump() if self.a else None,
            "b": self.b.model_dump() if self.b else None,
            "pixel_distance": self.pixel_distance,
            "length_input": self.length_input,
        }


class TwoPointSelector:
    """Idle -> FirstPointArmed -> PendingPair -> Idle.

    The first click shows a zero-length preview pair (A, A). The second click
    completes the pair and fixes its pixel distance; later clicks move the
    second point until the pair is consumed. Whatever the terminal
    action (calibrate, record or clear), ``clear()`` returns to Idle and drops
    the typed length text.
    """

    def __init__(self, kind: PairKind) -> None:
        if kind not in PAIR_KINDS:
            raise ValueError(f"unknown pair kind: {kind!r}")
        self.kind = kind
        self._state = PairState(kind=kind)

    @property
    def state(self) -> PairState:
        return self._state

    def click(self, p: Point) -> PairState:
        s = self._state
        if s.phase is PairPhase.IDLE:
            self._state = replace(s, phase=PairPhase.FIRST_POINT_ARMED, a=p, b=p, pixel_distance=None)
            return self._state

        # Second click completes the pair; a further click before a terminal
        # action moves B and keeps A.
        assert s.a is not None
        self._state = replace(s, phase=PairPhase.PENDING_PAIR, b=p, pixel_distance=distance(s.a, p))
        logger.debug("%s pair complete: %.2f px", self.kind, self._state.pixel_distance)
        return self._state

    def set_length_input(self, text: str) -> PairState:
        self._state = replace(self._state, length_input=str(text))
        return self._state

    def clear(self) -> PairState:
        self._state = PairState(kind=self.kind)
        return self._state
