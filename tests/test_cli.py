# PROV: SLOPETRACE.TESTS.CLI.01
# WHY: Ensure the CLI emits stable JSON payloads and exit codes for accepted and rejected input.

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from slopetrace.cli import cli
from slopetrace.errors import ERROR


def _run(args: list[str]):
    result = CliRunner().invoke(cli, args)
    return result, json.loads(result.output) if result.output.strip().startswith("{") else None


def test_metrics_command_reports_angle() -> None:
    result, payload = _run(["metrics", "-p", "0,10", "-p", "10,0", "--mode", "endpoints"])
    assert result.exit_code == 0
    assert payload["ok"] is True
    assert abs(payload["metrics"]["angle_deg"] - 45.0) < 1e-9
    assert payload["metrics"]["mode"] == "endpoints"
    assert payload["summary"][0] == "angle: 45.00°"


def test_metrics_command_flat_line_ratio_is_null() -> None:
    result, payload = _run(["metrics", "-p", "0,0", "-p", "10,0"])
    assert result.exit_code == 0
    assert payload["metrics"]["ratio"] is None
    assert payload["metrics"]["ratio_defined"] is False


def test_metrics_command_rejects_single_point() -> None:
    result, payload = _run(["metrics", "-p", "1,1"])
    assert result.exit_code == 2
    assert payload["ok"] is False
    assert payload["errors"][0]["code"] == ERROR.DEGENERATE_TRACE


def test_bad_point_is_a_usage_error() -> None:
    result, _ = _run(["metrics", "-p", "1;1"])
    assert result.exit_code == 2
    assert "x,y" in result.output


def test_calibrate_command() -> None:
    result, payload = _run(["calibrate", "--a", "0,0", "--b", "100,0", "--length", "50", "--unit", "cm"])
    assert result.exit_code == 0
    assert payload["calibration"] == {"scale_per_pixel": 0.5, "unit": "cm"}
    assert payload["pixel_distance"] == 100.0


def test_calibrate_command_rejects_non_positive_length() -> None:
    result, payload = _run(["calibrate", "--a", "0,0", "--b", "100,0", "--length", "-1"])
    assert result.exit_code == 2
    assert [e["code"] for e in payload["errors"]] == [ERROR.INVALID_LENGTH]


def test_measure_command_with_calibration_and_conversion() -> None:
    result, payload = _run(
        [
            "measure",
            "--a", "0,0",
            "--b", "200,0",
            "--calib-a", "0,0",
            "--calib-b", "100,0",
            "--calib-length", "50",
            "--calib-unit", "cm",
            "--as-unit", "m",
        ]
    )
    assert result.exit_code == 0
    assert payload["record"]["real_distance"] == 100.0
    assert payload["record"]["unit"] == "cm"
    assert abs(payload["converted"]["real_distance"] - 1.0) < 1e-12


def test_measure_command_pixel_only_and_one_off_length() -> None:
    result, payload = _run(["measure", "--a", "0,0", "--b", "3,4"])
    assert result.exit_code == 0
    assert payload["record"]["pixel_distance"] == 5.0
    assert payload["record"]["real_distance"] is None

    result, payload = _run(["measure", "--a", "0,0", "--b", "3,4", "--length", "8", "--unit", "mm"])
    assert payload["record"]["real_distance"] == 8.0
    assert payload["record"]["unit"] == "mm"


def test_measure_command_requires_complete_calibration_options() -> None:
    result, _ = _run(["measure", "--a", "0,0", "--b", "3,4", "--calib-a", "0,0"])
    assert result.exit_code == 2


def test_config_option_changes_default_mode(tmp_path: Path) -> None:
    custom = tmp_path / "custom.yaml"
    custom.write_text("fitting:\n  mode: endpoints\n", encoding="utf8")
    result, payload = _run(["--config", str(custom), "metrics", "-p", "0,1", "-p", "1,4", "-p", "2,5", "-p", "3,7"])
    assert result.exit_code == 0
    assert payload["metrics"]["mode"] == "endpoints"
    assert abs(payload["metrics"]["slope"] - 2.0) < 1e-12


def test_invalid_config_is_rejected(tmp_path: Path) -> None:
    custom = tmp_path / "custom.yaml"
    custom.write_text("history:\n  limit: -4\n", encoding="utf8")
    result, payload = _run(["--config", str(custom), "metrics", "-p", "0,0", "-p", "1,1"])
    assert result.exit_code == 2
    assert payload["errors"][0]["code"] == ERROR.CONFIG_INVALID
