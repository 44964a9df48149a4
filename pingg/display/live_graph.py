"""
Full-screen live latency graph.

A prompt_toolkit Application with two framed panes: a one-line statistics
bar and an asciichartpy line chart of the rolling window. `q` or Ctrl-C
cancels the shared token and leaves the full-screen mode.
"""

import threading

import asciichartpy
from loguru import logger
from prompt_toolkit.application import Application
from prompt_toolkit.formatted_text import ANSI
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.layout import HSplit, Layout, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.styles import Style
from prompt_toolkit.widgets import Frame

from pingg.automation.handoff import CancelToken
from pingg.automation.stats_window import WindowSnapshot

STYLE = Style.from_dict({
    "stats": "ansiyellow",
    "frame.label": "bold",
})

STATS_PANE_ROWS = 3   # frame top + text + frame bottom
CHART_FRAME_ROWS = 2
Y_LABEL_WIDTH = 12    # asciichartpy "{:8.2f} " label plus axis glyph
CHART_FORMAT = "{:8.2f} "


class DisplayError(RuntimeError):
    """The terminal UI could not be initialised."""


def render_stats(snapshot: WindowSnapshot | None) -> str:
    if snapshot is None:
        return "Waiting for replies..."
    return snapshot.stats_line()


def render_chart(series: list[list[float]], height: int, width: int | None = None, color: bool = True) -> str:
    """
    Plot the window as an ASCII line chart.

    Args:
        series: Single-series collection, as exposed by the window
        height: Approximate chart rows; asciichartpy rounds to the value scale
        width: Max columns for data points; oldest points are cut first
        color: Wrap the line in ANSI green

    Returns:
        The chart text, or "" when there is nothing to plot
    """
    points = series[0] if series else []
    if width is not None and width > 0:
        points = points[-width:]
    if not points:
        return ""

    cfg = {"height": max(height, 1), "format": CHART_FORMAT}
    if color:
        cfg["colors"] = [asciichartpy.green]
    return asciichartpy.plot([points], cfg)


class LiveGraphSession:
    """
    Owns the full-screen terminal for the lifetime of one monitoring run.

    Usage:
        with LiveGraphSession("1.1.1.1", token) as display:
            display.update(window.snapshot())
            display.run()   # blocks until q / Ctrl-C / token cancel
    """

    def __init__(self, target: str, token: CancelToken):
        self.target = target
        self.token = token
        self._snapshot: WindowSnapshot | None = None
        self._lock = threading.Lock()
        self._app: Application | None = None

    def __enter__(self):
        try:
            self._app = self._build_app()
        except Exception as e:
            logger.error(f"Failed to initialize terminal UI: {e}")
            raise DisplayError(f"failed to initialize terminal UI: {e}") from e

        self.token.add_callback(self.request_exit)
        logger.debug("Display session opened")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.request_exit()
        self._app = None
        logger.debug("Display session closed")

    def run(self) -> None:
        """Take over the terminal until the user quits or the token is cancelled."""
        if self._app is None:
            raise DisplayError("display session not opened")

        logger.debug("Entering full-screen render loop")
        try:
            self._app.run(pre_run=self._exit_if_cancelled)
        except (OSError, EOFError) as e:
            raise DisplayError(f"terminal UI failed: {e}") from e
        logger.debug("Render loop returned, terminal restored")

    def update(self, snapshot: WindowSnapshot) -> None:
        """Publish a new snapshot and schedule a redraw. Thread-safe."""
        with self._lock:
            self._snapshot = snapshot
        if self._app is not None:
            self._app.invalidate()

    def request_exit(self) -> None:
        """Leave the render loop. Thread-safe and idempotent."""
        app = self._app
        if app is None or not app.is_running or app.loop is None:
            return
        app.loop.call_soon_threadsafe(self._exit_app)

    def _exit_app(self) -> None:
        if self._app is not None and self._app.is_running and not self._app.is_done:
            self._app.exit()

    def _exit_if_cancelled(self) -> None:
        if self.token.cancelled:
            self._exit_app()

    def _build_app(self) -> Application:
        kb = KeyBindings()

        @kb.add("q")
        @kb.add("c-c")
        def _quit(event):
            logger.debug(f"Quit key pressed: {event.key_sequence[0].key}")
            self.token.cancel()
            self._exit_app()

        stats = Frame(
            Window(FormattedTextControl(self._stats_fragments), height=1),
            title="Statistics",
        )
        chart = Frame(
            Window(FormattedTextControl(self._chart_fragments), wrap_lines=False, always_hide_cursor=True),
            title=f"Ping {self.target} (latency, ms)",
        )

        return Application(
            layout=Layout(HSplit([stats, chart])),
            key_bindings=kb,
            style=STYLE,
            full_screen=True,
        )

    def _current(self) -> WindowSnapshot | None:
        with self._lock:
            return self._snapshot

    def _stats_fragments(self):
        return [("class:stats", render_stats(self._current()))]

    def _chart_fragments(self):
        snapshot = self._current()
        if snapshot is None:
            return ANSI("")

        size = self._app.output.get_size()
        height = size.rows - STATS_PANE_ROWS - CHART_FRAME_ROWS - 1
        width = size.columns - Y_LABEL_WIDTH - 2
        return ANSI(render_chart(snapshot.series, height, width))
