"""
Pydantic data models for the slope tracing engine.

Defines points in image-pixel space, the active calibration and the
measurement records kept in the rolling history.
"""

from __future__ import annotations

import math
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Unit = Literal["mm", "cm", "m"]

UNITS: tuple[Unit, ...] = ("mm", "cm", "m")

# Conversion factors to meters (base unit)
_TO_METERS: dict[str, float] = {
    "mm": 0.001,
    "cm": 0.01,
    "m": 1.0,
}


def convert_length(value: float, from_unit: Unit, to_unit: Unit) -> float:
    """Convert a length between supported units."""
    meters = value * _TO_METERS[from_unit]
    return meters / _TO_METERS[to_unit]


class Point(BaseModel):
    """Point in image-pixel coordinates (not display coordinates)."""
    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    @classmethod
    def parse(cls, text: str) -> "Point":
        """Parse an ``"x,y"`` string."""
        parts = [p.strip() for p in str(text).split(",")]
        if len(parts) != 2:
            raise ValueError(f"point must look like 'x,y', got {text!r}")
        x, y = float(parts[0]), float(parts[1])
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"point coordinates must be finite, got {text!r}")
        return cls(x=x, y=y)

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


class CalibrationState(BaseModel):
    """Active pixel-to-real-unit scale. Both fields are set together or not at all."""
    model_config = ConfigDict(frozen=True)

    scale_per_pixel: Optional[float] = None  # real units per image pixel
    unit: Optional[Unit] = None

    @model_validator(mode="after")
    def check_jointly_present(self) -> "CalibrationState":
        if (self.scale_per_pixel is None) != (self.unit is None):
            raise ValueError("scale_per_pixel and unit must be set together")
        if self.scale_per_pixel is not None:
            if not math.isfinite(self.scale_per_pixel) or self.scale_per_pixel <= 0:
                raise ValueError("scale_per_pixel must be a finite positive number")
        return self

    @property
    def is_active(self) -> bool:
        return self.scale_per_pixel is not None

    def describe(self, precision: int = 3) -> str:
        if not self.is_active:
            return "uncalibrated"
        return f"1px ≈ {self.scale_per_pixel:.{precision}f} {self.unit}"


class MeasurementRecord(BaseModel):
    """One recorded two-point measurement."""
    model_config = ConfigDict(frozen=True)

    a: Point
    b: Point
    pixel_distance: float = Field(ge=0)
    real_distance: Optional[float] = None
    unit: Optional[Unit] = None

    @model_validator(mode="after")
    def check_real_and_unit_together(self) -> "MeasurementRecord":
        if (self.real_distance is None) != (self.unit is None):
            raise ValueError("real_distance and unit must be set together")
        return self

    @property
    def has_real_distance(self) -> bool:
        return self.real_distance is not None

    def in_unit(self, unit: Unit) -> Optional[float]:
        """Real distance expressed in another unit, None for pixel-only records."""
        if self.real_distance is None or self.unit is None:
            return None
        return convert_length(self.real_distance, self.unit, unit)

    def describe(self, precision: int = 2) -> str:
        text = f"{self.pixel_distance:.{precision}f} px"
        if self.real_distance is not None:
            text += f" / {self.real_distance:.{precision}f} {self.unit}"
        return text
