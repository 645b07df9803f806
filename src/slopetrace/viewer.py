"""
Interactive OpenCV viewer for tracing slopes and measuring lengths.

This is the input/rendering side of the engine: it maps window clicks to
image-pixel coordinates, decides which gesture a click belongs to, and draws
whatever the session currently holds.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click
import cv2
import numpy as np

from slopetrace.models import UNITS, Point
from slopetrace.pairing import PairPhase
from slopetrace.session import ClickTarget, Session

# BGR colors
TRACE_COLOR = (94, 197, 34)      # Green
CALIB_COLOR = (246, 130, 59)     # Blue
MEASURE_COLOR = (11, 158, 245)   # Orange
TEXT_COLOR = (17, 17, 17)
PANEL_COLOR = (255, 255, 255)

WINDOW_NAME = "slopetrace - click to trace (1-3: tool, c/m: arm once, h: history, esc: cancel, q: quit)"

KEY_ESCAPE = 27

# Latest records shown on the overlay card
HISTORY_LINES = 3

TOOL_KEYS: dict[int, ClickTarget] = {
    ord("t"): "trace",
    ord("T"): "trace",
    ord("1"): "trace",
    ord("2"): "calib",
    ord("3"): "measure",
}

TOOL_STATUS: dict[str, str] = {
    "trace": "trace mode",
    "calib": "calibrate: click two points on the image",
    "measure": "measure: click two points on the image",
}


def resolve_click_target(armed: Optional[str], flags: int = 0, tool: ClickTarget = "trace") -> ClickTarget:
    """Pick the gesture a click belongs to.

    The selected tool, a modifier key (Alt for calibration, Shift for
    measurement) or a one-shot armed key each route the click; calibration
    wins when more than one applies.
    """
    if tool == "calib" or flags & cv2.EVENT_FLAG_ALTKEY or armed == "calib":
        return "calib"
    if tool == "measure" or flags & cv2.EVENT_FLAG_SHIFTKEY or armed == "measure":
        return "measure"
    return "trace"


def display_to_image(x: int, y: int, scale: float) -> Point:
    return Point(x=x / scale, y=y / scale)


def _px(p: Point, scale: float) -> tuple[int, int]:
    return int(round(p.x * scale)), int(round(p.y * scale))


def draw_dashed_line(
    frame: np.ndarray,
    p0: tuple[int, int],
    p1: tuple[int, int],
    color: tuple[int, int, int],
    thickness: int = 2,
    dash_len: int = 4,
    gap_len: int = 3,
) -> np.ndarray:
    length = float(np.hypot(p1[0] - p0[0], p1[1] - p0[1]))
    if length == 0:
        return frame
    step = dash_len + gap_len
    for start in np.arange(0.0, length, step):
        end = min(start + dash_len, length)
        a = (int(p0[0] + (p1[0] - p0[0]) * start / length), int(p0[1] + (p1[1] - p0[1]) * start / length))
        b = (int(p0[0] + (p1[0] - p0[0]) * end / length), int(p0[1] + (p1[1] - p0[1]) * end / length))
        cv2.line(frame, a, b, color, thickness)
    return frame


def _hershey_safe(text: str) -> str:
    # Hershey fonts only cover ASCII.
    return text.replace("°", " deg").replace("∞", "inf").replace("≈", "~")


def draw_text_panel(frame: np.ndarray, lines: list[str], origin: tuple[int, int]) -> np.ndarray:
    if not lines:
        return frame
    lines = [_hershey_safe(line) for line in lines]
    font = cv2.FONT_HERSHEY_SIMPLEX
    font_scale = 0.5
    font_thickness = 1
    line_h = 18
    width = max(cv2.getTextSize(line, font, font_scale, font_thickness)[0][0] for line in lines)
    x, y = origin
    cv2.rectangle(frame, (x, y), (x + width + 16, y + line_h * len(lines) + 10), PANEL_COLOR, -1)
    cv2.rectangle(frame, (x, y), (x + width + 16, y + line_h * len(lines) + 10), (0, 0, 0), 1)
    for i, line in enumerate(lines):
        cv2.putText(frame, line, (x + 8, y + 18 + i * line_h), font, font_scale, TEXT_COLOR, font_thickness)
    return frame


def draw_overlay(image: np.ndarray, session: Session, scale: float = 1.0) -> np.ndarray:
    """Render the session state over a resized copy of the image."""
    h, w = image.shape[:2]
    size = (max(1, int(round(w * scale))), max(1, int(round(h * scale))))
    frame = cv2.resize(image, size) if scale != 1.0 else image.copy()

    trace = session.trace
    for i, p in enumerate(trace):
        if i > 0:
            cv2.line(frame, _px(trace[i - 1], scale), _px(p, scale), TRACE_COLOR, 2)
        cv2.circle(frame, _px(p, scale), 3, TRACE_COLOR, -1)

    for kind, color in (("calib", CALIB_COLOR), ("measure", MEASURE_COLOR)):
        pair = session.pair_state(kind)
        if pair.a is None or pair.b is None:
            continue
        draw_dashed_line(frame, _px(pair.a, scale), _px(pair.b, scale), color)
        cv2.circle(frame, _px(pair.a, scale), 4, color, -1)
        if pair.a != pair.b:
            cv2.circle(frame, _px(pair.b, scale), 4, color, -1)

    precision = session.config.precision
    lines: list[str] = []
    metrics = session.compute_metrics()
    if metrics is not None:
        lines.extend(metrics.summary_lines(precision))
    if session.calibration.is_active:
        lines.append(session.calibration.state.describe())
    for i, rec in enumerate(session.history[:HISTORY_LINES]):
        lines.append(f"#{i + 1} {rec.describe(precision)}")
    if session.status:
        lines.append(session.status)
    draw_text_panel(frame, lines, (12, 12))
    return frame


class TraceViewer:
    """OpenCV window driving a Session from mouse clicks and keys."""

    def __init__(self, image_path: Path, session: Session, width_pct: Optional[int] = None):
        image = cv2.imread(str(image_path))
        if image is None:
            raise ValueError(f"Could not read image: {image_path}")
        self.image = image
        self.session = session
        self.scale = (width_pct or session.config.width_pct) / 100.0
        self.armed: Optional[str] = None
        self.tool: ClickTarget = "trace"
        self.session.new_image()

    def _on_mouse(self, event, x, y, flags, param) -> None:
        if event != cv2.EVENT_LBUTTONDOWN:
            return
        target = resolve_click_target(self.armed, flags, self.tool)
        p = display_to_image(x, y, self.scale)
        result = self.session.click(p, target)
        if target == "trace":
            click.echo(f"trace point {len(result)}: [{p.x:.1f}, {p.y:.1f}]")
            return

        if result.phase is PairPhase.FIRST_POINT_ARMED:
            return
        self.armed = None
        click.echo(self.session.status)
        if target == "calib" and result.is_pending:
            self._prompt_calibration()

    def _prompt_calibration(self) -> None:
        unit = self.session.config.default_unit
        raw = click.prompt("real length of the calibration span", default="", show_default=False)
        if not raw.strip():
            return
        unit = click.prompt("unit", type=click.Choice(UNITS), default=unit)
        self.session.calibrate_pending("calib", raw, unit)
        click.echo(self.session.status)

    def select_tool(self, tool: ClickTarget) -> None:
        """Switch the persistent tool; a one-shot armed key is dropped."""
        self.tool = tool
        self.armed = None
        self.session.status = TOOL_STATUS[tool]
        click.echo(self.session.status)

    def print_history(self) -> None:
        history = self.session.history
        if not history:
            click.echo("no measurements recorded")
            return
        precision = self.session.config.precision
        for i, rec in enumerate(history):
            click.echo(f"#{i + 1} {rec.describe(precision)}")

    def _record_measurement(self) -> None:
        if not self.session.pair_state("measure").is_pending:
            click.echo("no measurement pair to record")
            return
        raw = ""
        if not self.session.calibration.is_active:
            raw = click.prompt("real length (empty for pixels only)", default="", show_default=False)
        self.session.record_pending(raw)
        click.echo(self.session.status)

    def handle_key(self, key: int) -> bool:
        """Apply one key press; returns False when the viewer should close."""
        if key in (ord("q"), ord("Q")):
            return False
        if key in TOOL_KEYS:
            self.select_tool(TOOL_KEYS[key])
        elif key in (ord("c"), ord("C")):
            self.armed = "calib"
        elif key in (ord("m"), ord("M")):
            self.armed = "measure"
        elif key == KEY_ESCAPE:
            self.armed = None
            self.session.clear_pending("calib")
            self.session.clear_pending("measure")
        elif key in (ord("r"), ord("R")):
            self.session.reset_trace()
        elif key in (ord("f"), ord("F")):
            click.echo(f"fit mode: {self.session.toggle_mode()}")
        elif key in (ord("l"), ord("L")):
            self._record_measurement()
        elif key in (ord("h"), ord("H")):
            self.print_history()
        return True

    def run(self) -> None:
        cv2.namedWindow(WINDOW_NAME)
        cv2.setMouseCallback(WINDOW_NAME, self._on_mouse)
        try:
            while True:
                cv2.imshow(WINDOW_NAME, draw_overlay(self.image, self.session, self.scale))
                key = cv2.waitKey(20) & 0xFF
                if key != 0xFF and not self.handle_key(key):
                    break
        finally:
            cv2.destroyAllWindows()
