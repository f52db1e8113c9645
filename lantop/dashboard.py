"""Terminal dashboard rendering engine snapshots with rich."""

from __future__ import annotations

import logging
import os
import select
import sys
import time
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console, ConsoleOptions, Group, RenderResult
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import TOP_TALKERS_LIMIT
from .engine import BandwidthEngine, BandwidthSnapshot
from .formatting import format_bps, format_bytes_total, format_ip, format_window
from .ranking import top

logger = logging.getLogger(__name__)

try:  # pragma: no cover - POSIX terminals only
    import termios
    import tty
except ImportError:  # pragma: no cover - Windows consoles
    termios = None  # type: ignore[assignment]
    tty = None  # type: ignore[assignment]

BLOCKS = " ▁▂▃▄▅▆▇█"
QUIT_KEYS = frozenset({"q", "c"})
NET_PANEL_HEIGHT = 16
GRAPH_HEIGHT = 6


def resample(values: Sequence[float], width: int) -> List[float]:
    """Fit *values* into *width* columns, keeping the peak of each bucket."""
    count = len(values)
    if width <= 0 or count == 0:
        return []
    columns = []
    for i in range(width):
        start = i * count // width
        end = max((i + 1) * count // width, start + 1)
        columns.append(max(values[start:end]))
    return columns


def sparkline(values: Sequence[float], width: int, height: int = 1) -> List[str]:
    """Block-character bar chart, one string per row, top row first."""
    columns = resample(values, width)
    ceiling = max(max(columns, default=0), 1)
    steps = len(BLOCKS) - 1
    levels = [round(value / ceiling * steps * height) for value in columns]
    rows = []
    for row in range(height):
        floor = (height - 1 - row) * steps
        rows.append("".join(BLOCKS[min(max(level - floor, 0), steps)] for level in levels))
    return rows


class HistoryGraph:
    """Renderable filling the available width with a history buffer's bars."""

    def __init__(self, values: Sequence[float], *, height: int = GRAPH_HEIGHT, style: str = "") -> None:
        self.values = values
        self.height = height
        self.style = style

    def __rich_console__(self, console: Console, options: ConsoleOptions) -> RenderResult:
        for line in sparkline(self.values, options.max_width, self.height):
            yield Text(line, style=self.style, no_wrap=True)


def _direction_text(arrow: str, current: float, peak: float, total: int, style: str) -> Text:
    text = Text(style=style)
    text.append(f"{arrow} ")
    text.append(format_bps(current), style="bold white")
    text.append("\n  Top: ", style="bright_black")
    text.append(format_bps(peak))
    text.append("\n  Tot: ", style="bright_black")
    text.append(format_bytes_total(total))
    return text


def rate_style(rate: float) -> str:
    if rate > 1_000_000.0:
        return "red"
    if rate > 10_000.0:
        return "bright_yellow"
    return "green"


def render_net_panel(snapshot: BandwidthSnapshot, interface: str) -> Panel:
    grid = Table.grid(expand=True)
    grid.add_column(ratio=7)
    grid.add_column(ratio=3)
    grid.add_row(
        Group(Text("Download", style="red"), HistoryGraph(snapshot.inbound_history, style="red")),
        _direction_text(
            "▼",
            snapshot.current_inbound_rate,
            snapshot.peak_inbound_rate,
            snapshot.total_inbound,
            "red",
        ),
    )
    grid.add_row(
        Group(Text("Upload", style="blue"), HistoryGraph(snapshot.outbound_history, style="blue")),
        _direction_text(
            "▲",
            snapshot.current_outbound_rate,
            snapshot.peak_outbound_rate,
            snapshot.total_outbound,
            "blue",
        ),
    )
    return Panel(grid, title=escape(f" net [{interface}] "), title_align="left", box=box.ROUNDED)


def render_talkers_table(snapshot: BandwidthSnapshot, limit: int = TOP_TALKERS_LIMIT) -> Table:
    table = Table(
        title=" Local Network Users ",
        title_justify="left",
        box=box.ROUNDED,
        expand=True,
        header_style="yellow on grey23",
    )
    table.add_column("IP Address", ratio=4)
    table.add_column(f"Avg Bandwidth ({format_window(snapshot.window_secs)})", ratio=4)
    table.add_column("Status", ratio=2)
    for host, rate in top(snapshot.ranking, limit):
        table.add_row(format_ip(host), Text(format_bps(rate), style=rate_style(rate)), "Active")
    return table


def render_dashboard(snapshot: BandwidthSnapshot, interface: str) -> Layout:
    layout = Layout()
    layout.split_column(
        Layout(render_net_panel(snapshot, interface), name="net", size=NET_PANEL_HEIGHT),
        Layout(render_talkers_table(snapshot), name="users"),
    )
    return layout


class KeyPoller:
    """Non-blocking single-key reads from stdin in cbreak mode."""

    def __init__(self, stream=None) -> None:
        self.stream = stream if stream is not None else sys.stdin
        self._saved = None

    def __enter__(self) -> "KeyPoller":
        if termios is not None and self._is_tty():
            fd = self.stream.fileno()
            self._saved = termios.tcgetattr(fd)
            tty.setcbreak(fd)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._saved is not None:
            termios.tcsetattr(self.stream.fileno(), termios.TCSADRAIN, self._saved)
            self._saved = None

    def poll(self, timeout: float) -> Optional[str]:
        if not self._is_tty():
            time.sleep(timeout)
            return None
        fd = self.stream.fileno()
        ready, _, _ = select.select([fd], [], [], timeout)
        if not ready:
            return None
        # Bytes held in the stdin buffer are invisible to select.
        data = os.read(fd, 1)
        return data.decode("latin-1") if data else None

    def _is_tty(self) -> bool:
        isatty = getattr(self.stream, "isatty", None)
        return bool(isatty and isatty())


def run_dashboard(
    engine: BandwidthEngine,
    interface: str,
    *,
    console: Optional[Console] = None,
    keys: Optional[KeyPoller] = None,
    screen: bool = True,
) -> None:
    """Redraw, wait for a key until the next tick is due, then tick; until quit."""
    console = console or Console()
    keys = keys or KeyPoller()

    try:
        with keys, Live(
            render_dashboard(engine.snapshot, interface),
            console=console,
            screen=screen,
            auto_refresh=False,
        ) as live:
            while True:
                live.update(render_dashboard(engine.snapshot, interface), refresh=True)
                key = keys.poll(engine.time_until_next_tick())
                if key is not None and key.lower() in QUIT_KEYS:
                    logger.info("Quit requested")
                    return
                engine.poll()
    except KeyboardInterrupt:
        logger.info("Interrupted")


__all__ = [
    "HistoryGraph",
    "KeyPoller",
    "rate_style",
    "render_dashboard",
    "render_net_panel",
    "render_talkers_table",
    "resample",
    "run_dashboard",
    "sparkline",
]
