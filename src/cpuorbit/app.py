"""cpuorbit - Main Textual application."""

import logging
import time
from collections.abc import Callable
from functools import partial

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.logging import TextualHandler
from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import Footer, Static

from cpuorbit.buffers import camera_buffer, usage_buffer
from cpuorbit.config import Settings
from cpuorbit.controller import CameraController
from cpuorbit.counters import CounterSource, default_counter_source
from cpuorbit.events import (
    CursorLeft,
    CursorMoved,
    KeyEvent,
    LineDelta,
    MouseButton,
    MouseButtonEvent,
    MouseWheel,
    NamedKey,
)
from cpuorbit.monitor import CpuUsageMonitor
from cpuorbit.scene import core_grid_positions, project_points

logger = logging.getLogger(__name__)

BAR_WIDTH = 20
COLUMN_HEIGHT = 4.0  # World units of a fully busy core
MIN_COLUMN = 0.05
CELL_ASPECT = 2.0  # Terminal cells are about twice as tall as wide


def usage_color(usage: float) -> str:
    """Colour name for a usage ratio."""
    if usage < 0.5:
        return "green"
    if usage < 0.8:
        return "yellow"
    return "red"


class CoreBars(Static):
    """Per-core usage bars."""

    DEFAULT_CSS = """
    CoreBars {
        width: 40;
        height: 1fr;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._usage: dict[str, float] = {}

    def update_usage(self, usage: dict[str, float]) -> None:
        """Redraw the bars from a core id -> usage mapping."""
        self._usage = dict(usage)
        self.update(self._get_bars())

    def _get_bars(self) -> str:
        if not self._usage:
            return "Collecting CPU samples..."
        lines = []
        for core_id, usage in self._usage.items():
            bar_len = min(int(usage * BAR_WIDTH), BAR_WIDTH)
            color = usage_color(usage)
            bar = f"[{color}]█[/{color}]" * bar_len + "[dim]░[/dim]" * (BAR_WIDTH - bar_len)
            # Use escaped brackets for the bar container
            lines.append(f"{core_id:<6} \\[{bar}] {usage * 100:5.1f}%")
        return "\n".join(lines)


class SceneView(Widget):
    """
    Projects one column per core through the orbit camera.

    Right-drag flings the camera, vertical drag tilts it, the wheel zooms.
    """

    DEFAULT_CSS = """
    SceneView {
        width: 1fr;
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._usage: list[float] = []

    @property
    def orbit_app(self) -> "CpuOrbitApp":
        return self.app  # type: ignore[return-value]

    def set_usage(self, usage: list[float]) -> None:
        self._usage = list(usage)
        self.refresh()

    def on_resize(self, event: events.Resize) -> None:
        self.orbit_app.controller.resize(event.size.width, event.size.height * CELL_ASPECT)

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if self._forward(MouseButtonEvent(_button(event.button), pressed=True)):
            self.capture_mouse()
            self._forward(self._cursor(event))

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self._forward(MouseButtonEvent(_button(event.button), pressed=False)):
            self.release_mouse()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        self._forward(self._cursor(event))

    def on_mouse_scroll_up(self, event: events.MouseScrollUp) -> None:
        self._forward(MouseWheel(LineDelta(0.0, 1.0)))

    def on_mouse_scroll_down(self, event: events.MouseScrollDown) -> None:
        self._forward(MouseWheel(LineDelta(0.0, -1.0)))

    def on_leave(self, event: events.Leave) -> None:
        self._forward(CursorLeft())

    def _cursor(self, event: events.MouseEvent) -> CursorMoved:
        # Cells are taller than wide; scale rows so drags feel even.
        return CursorMoved(
            float(event.screen_x), event.screen_y * CELL_ASPECT, self.orbit_app.frame_clock()
        )

    def _forward(self, event) -> bool:
        return self.orbit_app.controller.process_event(event)

    def render(self) -> Text:
        width, height = self.size.width, self.size.height
        if width <= 0 or height <= 0:
            return Text()

        cells: list[list[tuple[str, str]]] = [[(" ", "")] * width for _ in range(height)]
        depth = [[2.0] * width for _ in range(height)]

        def plot(column: int, row: int, z: float, char: str, style: str) -> None:
            if 0 <= column < width and 0 <= row < height and z < depth[row][column]:
                depth[row][column] = z
                cells[row][column] = (char, style)

        matrix = self.orbit_app.controller.camera.view_projection()
        bases = core_grid_positions(len(self._usage))
        tops = bases.copy()
        for index, usage in enumerate(self._usage):
            tops[index, 1] = COLUMN_HEIGHT * max(usage, MIN_COLUMN)

        base_cells = project_points(matrix, bases, width, height)
        top_cells = project_points(matrix, tops, width, height)
        for usage, base, top in zip(self._usage, base_cells, top_cells):
            if base is None or top is None:
                continue
            style = f"bold {usage_color(usage)}"
            steps = max(abs(top[0] - base[0]), abs(top[1] - base[1]), 1)
            for step in range(steps + 1):
                t = step / steps
                plot(
                    round(base[0] + (top[0] - base[0]) * t),
                    round(base[1] + (top[1] - base[1]) * t),
                    base[2] + (top[2] - base[2]) * t,
                    "█",
                    style,
                )

        text = Text(no_wrap=True)
        for row_index, row in enumerate(cells):
            for char, style in row:
                text.append(char, style)
            if row_index < height - 1:
                text.append("\n")
        return text


def _button(number: int) -> MouseButton:
    try:
        return MouseButton(number)
    except ValueError:
        return MouseButton.PRIMARY


class CpuOrbitApp(App):
    """Main cpuorbit application."""

    TITLE = "cpuorbit"
    SUB_TITLE = "Per-core CPU usage in orbit"

    CSS = """
    Screen {
        layout: vertical;
    }

    Horizontal {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("escape", "quit", "Quit", show=False, priority=True),
        Binding("up", "hold('up')", "Zoom in"),
        Binding("down", "hold('down')", "Zoom out"),
        Binding("left", "hold('left')", "Orbit left"),
        Binding("right", "hold('right')", "Orbit right"),
        Binding("space", "hold('space')", show=False),
    ]

    def __init__(
        self,
        settings: Settings | None = None,
        source: CounterSource | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the CpuOrbitApp."""
        super().__init__()
        self.orbit_settings = settings if settings is not None else Settings()
        self.frame_clock = clock
        self.usage_buffer = usage_buffer(self.orbit_settings.max_cores)
        self.camera_buffer = camera_buffer()
        self.controller = CameraController(
            settings=self.orbit_settings.camera_settings(), sink=self.camera_buffer
        )
        self.monitor = CpuUsageMonitor(
            source if source is not None else default_counter_source(),
            sink=self.usage_buffer,
            sample_period=self.orbit_settings.sample_period,
            clock=clock,
            history_capacity=self.orbit_settings.history_capacity,
            max_cores=self.orbit_settings.max_cores,
        )
        self._release_timers: dict[NamedKey, Timer] = {}
        self._last_frame = clock()

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield Horizontal(
            CoreBars(id="core-bars"),
            SceneView(id="scene"),
        )
        yield Footer()

    def on_mount(self) -> None:
        """Start the frame loop when the app is mounted."""
        logger.info("Monitoring %d cores", self.monitor.ncpus)
        self._last_frame = self.frame_clock()
        self.set_interval(1.0 / self.orbit_settings.frame_rate, self._frame)

    def _frame(self) -> None:
        """One frame: advance the camera, sample telemetry, redraw."""
        now = self.frame_clock()
        dt = now - self._last_frame
        self._last_frame = now

        self.controller.update(dt)
        values = self.monitor.update()

        self.query_one(SceneView).set_usage(values)
        self.query_one(CoreBars).update_usage(self.monitor.last_usage_by_core)

    def action_hold(self, name: str) -> None:
        """
        Treat a key press as held until it stops repeating.

        Terminals report no key releases, so a release is sent once no
        repeat has arrived for key_hold seconds.
        """
        key = NamedKey.from_name(name)
        if key is None:
            return
        self.controller.process_event(KeyEvent(key, pressed=True))

        timer = self._release_timers.pop(key, None)
        if timer is not None:
            timer.stop()
        self._release_timers[key] = self.set_timer(
            self.orbit_settings.key_hold, partial(self._release_key, key)
        )

    def _release_key(self, key: NamedKey) -> None:
        self._release_timers.pop(key, None)
        self.controller.process_event(KeyEvent(key, pressed=False))

    def action_quit(self) -> None:
        """Handle quit action."""
        self.exit()


def configure_logging(settings: Settings) -> None:
    """Send log records to a file, or to the Textual devtools console."""
    if settings.log_file:
        logging.basicConfig(
            filename=settings.log_file,
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.basicConfig(level=settings.log_level, handlers=[TextualHandler()])


def main(argv: list[str] | None = None) -> None:
    """Entry point for cpuorbit application."""
    settings = Settings.from_args(argv)
    configure_logging(settings)
    app = CpuOrbitApp(settings)
    app.run()


if __name__ == "__main__":
    main()
