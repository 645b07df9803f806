"""slopetrace

Slope tracing and two-point length measurement over image-pixel coordinates.
"""

from slopetrace.calibration import CalibrationEngine, derive_scale, parse_length
from slopetrace.errors import ERROR, ValidationError
from slopetrace.fitting import FIT_MODES, FitMode, LineFit, fit_line
from slopetrace.geometry import distance
from slopetrace.metrics import Metrics, SegmentStats, compute_metrics
from slopetrace.models import UNITS, CalibrationState, MeasurementRecord, Point, Unit
from slopetrace.pairing import PairKind, PairPhase, PairState, TwoPointSelector
from slopetrace.recorder import HISTORY_LIMIT, MeasurementRecorder
from slopetrace.session import Session

__all__ = [
    "CalibrationEngine",
    "CalibrationState",
    "ERROR",
    "FIT_MODES",
    "FitMode",
    "HISTORY_LIMIT",
    "LineFit",
    "MeasurementRecord",
    "MeasurementRecorder",
    "Metrics",
    "PairKind",
    "PairPhase",
    "PairState",
    "Point",
    "SegmentStats",
    "Session",
    "TwoPointSelector",
    "UNITS",
    "Unit",
    "ValidationError",
    "compute_metrics",
    "derive_scale",
    "distance",
    "fit_line",
    "parse_length",
]
