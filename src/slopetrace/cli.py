"""
slopetrace - CLI entry point

Usage:
    slopetrace metrics --point 0,0 --point 10,5 [--mode endpoints]
    slopetrace calibrate --a 0,0 --b 100,0 --length 50 --unit cm
    slopetrace measure --a 0,0 --b 200,0 [--calib-a ... --calib-b ... --calib-length ...]
    slopetrace trace <image_path>
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click

from slopetrace.config import SessionConfig, load_config, session_config_from_dict
from slopetrace.errors import ValidationError
from slopetrace.fitting import FIT_MODES
from slopetrace.geometry import distance
from slopetrace.metrics import check_trace
from slopetrace.models import UNITS, Point
from slopetrace.session import Session


class PointParam(click.ParamType):
    name = "x,y"

    def convert(self, value, param, ctx):
        if isinstance(value, Point):
            return value
        try:
            return Point.parse(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


POINT = PointParam()


def _emit(payload: dict) -> None:
    click.echo(json.dumps(payload, indent=2, sort_keys=True))


def _fail(ctx: click.Context, errors: list[ValidationError]) -> None:
    _emit({"ok": False, "errors": errors})
    ctx.exit(2)


def _session(ctx: click.Context) -> Session:
    return Session(ctx.obj["config"])


@click.group()
@click.version_option(version="0.1.0")
@click.option("--config", "-c", type=click.Path(exists=True), help="Custom config file")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, config, debug):
    """slopetrace - measure slopes and lengths from points clicked on an image."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    )
    config_dict, errors = load_config(Path(config) if config else None)
    session_config: SessionConfig | None = None
    if not errors:
        assert config_dict is not None
        session_config, errors = session_config_from_dict(config_dict)
    if errors:
        _fail(ctx, errors)
    ctx.obj = {"config": session_config}


@cli.command()
@click.option("--point", "-p", "points", type=POINT, multiple=True, help="Trace point x,y (repeatable, in order)")
@click.option("--mode", type=click.Choice(FIT_MODES), default=None, help="Fit mode (default from config)")
@click.pass_context
def metrics(ctx, points, mode):
    """Compute angle, grade and ratio of a traced line."""
    session = _session(ctx)
    for p in points:
        session.add_trace_point(p)
    result = session.compute_metrics(mode)
    if result is None:
        _fail(ctx, check_trace(session.trace))
    _emit({"ok": True, "metrics": result.to_dict(), "summary": result.summary_lines(session.config.precision)})


@cli.command()
@click.option("--a", "a", type=POINT, required=True, help="First reference point x,y")
@click.option("--b", "b", type=POINT, required=True, help="Second reference point x,y")
@click.option("--length", "-l", required=True, help="Real length between the two points")
@click.option("--unit", "-u", type=click.Choice(UNITS), default=None, help="Unit of --length")
@click.pass_context
def calibrate(ctx, a, b, length, unit):
    """Derive the real length per pixel from two reference points."""
    session = _session(ctx)
    pixel_distance = distance(a, b)
    state, errors = session.derive_scale(pixel_distance, length, unit or session.config.default_unit)
    if errors:
        _fail(ctx, errors)
    _emit(
        {
            "ok": True,
            "pixel_distance": pixel_distance,
            "calibration": state.model_dump(),
            "summary": session.status,
        }
    )


@cli.command()
@click.option("--a", "a", type=POINT, required=True, help="First point x,y")
@click.option("--b", "b", type=POINT, required=True, help="Second point x,y")
@click.option("--calib-a", type=POINT, default=None, help="Calibration reference point x,y")
@click.option("--calib-b", type=POINT, default=None, help="Calibration reference point x,y")
@click.option("--calib-length", default=None, help="Real length between the calibration points")
@click.option("--calib-unit", type=click.Choice(UNITS), default=None)
@click.option("--length", "-l", default=None, help="One-off real length when uncalibrated")
@click.option("--unit", "-u", type=click.Choice(UNITS), default=None, help="Unit of --length")
@click.option("--as-unit", type=click.Choice(UNITS), default=None, help="Also report the length in this unit")
@click.pass_context
def measure(ctx, a, b, calib_a, calib_b, calib_length, calib_unit, length, unit, as_unit):
    """Measure the distance between two points, in pixels and real units."""
    session = _session(ctx)
    if calib_a is not None or calib_b is not None or calib_length is not None:
        if calib_a is None or calib_b is None or calib_length is None:
            raise click.UsageError("--calib-a, --calib-b and --calib-length must be given together")
        _, errors = session.derive_scale(
            distance(calib_a, calib_b), calib_length, calib_unit or session.config.default_unit
        )
        if errors:
            _fail(ctx, errors)

    rec, errors = session.record_measurement(a, b, fallback_length=length, fallback_unit=unit)
    if errors:
        _fail(ctx, errors)
    payload = {"ok": True, "record": rec.model_dump(), "summary": session.status}
    if as_unit:
        payload["converted"] = {"unit": as_unit, "real_distance": rec.in_unit(as_unit)}
    _emit(payload)


@cli.command()
@click.argument("image_path", type=click.Path(exists=True))
@click.option("--width-pct", type=click.IntRange(30, 150), default=None, help="Display width in percent")
@click.pass_context
def trace(ctx, image_path, width_pct):
    """Open an image and trace / calibrate / measure interactively.

    IMAGE_PATH: Path to a jpg/png/webp image
    """
    from slopetrace.viewer import TraceViewer

    try:
        viewer = TraceViewer(Path(image_path), _session(ctx), width_pct=width_pct)
    except ValueError as e:
        raise click.ClickException(str(e))
    viewer.run()


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
