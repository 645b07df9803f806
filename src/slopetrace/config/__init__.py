"""
Configuration loading for slopetrace.

Packaged defaults live in ``default.yaml`` next to this module; a user file
only needs the keys it overrides.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from slopetrace.errors import ERROR, ValidationError, make_error
from slopetrace.fitting import FIT_MODES, FitMode
from slopetrace.models import UNITS, Unit
from slopetrace.recorder import HISTORY_LIMIT

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


@dataclass(frozen=True)
class SessionConfig:
    fit_mode: FitMode = "least-squares"
    slope_epsilon: float = 1e-9
    history_limit: int = HISTORY_LIMIT
    default_unit: Unit = "cm"
    precision: int = 2
    width_pct: int = 70


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override dict into base dict."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_yaml(path: Path) -> tuple[dict | None, list[ValidationError]]:
    try:
        with open(path, encoding="utf8") as f:
            obj = yaml.safe_load(f)
    except FileNotFoundError:
        return None, [make_error(ERROR.CONFIG_MISSING, f"missing config file: {path}", path=str(path))]
    except yaml.YAMLError as e:
        return None, [make_error(ERROR.CONFIG_INVALID_YAML, f"invalid YAML: {e}", path=str(path))]
    if obj is None:
        obj = {}
    if not isinstance(obj, dict):
        return None, [make_error(ERROR.CONFIG_INVALID, "config must be a YAML mapping", path=str(path))]
    return obj, []


def load_config(config_path: Path | None = None) -> tuple[dict | None, list[ValidationError]]:
    """Load the default configuration, optionally merged with a custom file."""
    config, errors = _read_yaml(DEFAULT_CONFIG_PATH)
    if errors:
        return None, errors
    assert config is not None

    if config_path:
        custom, errors = _read_yaml(Path(config_path))
        if errors:
            return None, errors
        assert custom is not None
        config = deep_merge(config, custom)

    return config, []


def _section(config: dict, name: str) -> dict[str, Any]:
    value = config.get(name, {})
    return value if isinstance(value, dict) else {}


def session_config_from_dict(config: dict) -> tuple[SessionConfig | None, list[ValidationError]]:
    errors: list[ValidationError] = []
    fitting = _section(config, "fitting")
    history = _section(config, "history")
    calibration = _section(config, "calibration")
    display = _section(config, "display")
    defaults = SessionConfig()

    mode = fitting.get("mode", defaults.fit_mode)
    if mode not in FIT_MODES:
        errors.append(
            make_error(ERROR.CONFIG_INVALID, f"fitting.mode must be one of {', '.join(FIT_MODES)}", field="fitting.mode", value=mode)
        )

    epsilon = fitting.get("slope_epsilon", defaults.slope_epsilon)
    if isinstance(epsilon, bool) or not isinstance(epsilon, (int, float)) or epsilon <= 0:
        errors.append(
            make_error(ERROR.CONFIG_INVALID, "fitting.slope_epsilon must be a positive number", field="fitting.slope_epsilon", value=epsilon)
        )

    limit = history.get("limit", defaults.history_limit)
    if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= HISTORY_LIMIT:
        errors.append(
            make_error(ERROR.CONFIG_INVALID, f"history.limit must be an integer in [1, {HISTORY_LIMIT}]", field="history.limit", value=limit)
        )

    unit = calibration.get("default_unit", defaults.default_unit)
    if unit not in UNITS:
        errors.append(
            make_error(ERROR.CONFIG_INVALID, f"calibration.default_unit must be one of {', '.join(UNITS)}", field="calibration.default_unit", value=unit)
        )

    precision = display.get("precision", defaults.precision)
    if isinstance(precision, bool) or not isinstance(precision, int) or precision < 0:
        errors.append(
            make_error(ERROR.CONFIG_INVALID, "display.precision must be an integer >= 0", field="display.precision", value=precision)
        )

    width_pct = display.get("width_pct", defaults.width_pct)
    if isinstance(width_pct, bool) or not isinstance(width_pct, int) or not 30 <= width_pct <= 150:
        errors.append(
            make_error(ERROR.CONFIG_INVALID, "display.width_pct must be an integer in [30, 150]", field="display.width_pct", value=width_pct)
        )

    if errors:
        return None, errors
    return SessionConfig(
        fit_mode=mode,
        slope_epsilon=float(epsilon),
        history_limit=limit,
        default_unit=unit,
        precision=precision,
        width_pct=width_pct,
    ), []
