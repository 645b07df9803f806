"""slopetrace.errors

PROV: SLOPETRACE.CORE.ERRORS.01
WHY: Provide stable, machine-readable rejection codes and a small JSON-safe error shape.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class ValidationError(TypedDict, total=False):
    code: str
    message: str
    path: str
    kind: str
    field: str
    value: Any


@dataclass(frozen=True)
class ErrorCodes:
    # User input
    INVALID_LENGTH: str = "E_INVALID_LENGTH"
    INVALID_UNIT: str = "E_INVALID_UNIT"
    INVALID_POINT: str = "E_INVALID_POINT"

    # Geometry
    ZERO_PIXEL_DISTANCE: str = "E_ZERO_PIXEL_DISTANCE"
    INVALID_PIXEL_DISTANCE: str = "E_INVALID_PIXEL_DISTANCE"
    DEGENERATE_TRACE: str = "E_DEGENERATE_TRACE"

    # Two-point selection
    NO_PENDING_PAIR: str = "E_NO_PENDING_PAIR"

    # Configuration
    CONFIG_MISSING: str = "E_CONFIG_MISSING"
    CONFIG_INVALID_YAML: str = "E_CONFIG_INVALID_YAML"
    CONFIG_INVALID: str = "E_CONFIG_INVALID"


ERROR = ErrorCodes()


def make_error(code: str, message: str, **context: Any) -> ValidationError:
    err: ValidationError = {"code": code, "message": message}
    for k, v in context.items():
        if v is None:
            continue
        err[k] = v
    return err


def error_codes(errors: list[ValidationError]) -> list[str]:
    return [e["code"] for e in errors]
