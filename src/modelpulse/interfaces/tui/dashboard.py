"""Interactive dashboard: rich ``Live`` table driven by the endpoint monitor."""

from __future__ import annotations

import asyncio
import contextlib
import os
import sys
import termios
import tty
from collections.abc import Callable, Iterator, Mapping, Sequence
from enum import Enum

import structlog
from rich.console import Console, Group
from rich.live import Live

from modelpulse.domain.entities import TIER_LETTER_MAP, EndpointSnapshot
from modelpulse.infrastructure.probing import EndpointMonitor
from modelpulse.interfaces.tui.render import (
    SORT_KEYS,
    DashboardView,
    render_footer,
    render_table,
)

log = structlog.get_logger(__name__)

KEY_UP = "up"
KEY_DOWN = "down"
KEY_PAGE_UP = "page_up"
KEY_PAGE_DOWN = "page_down"
KEY_ENTER = "enter"
KEY_QUIT = "quit"

_ESCAPES: dict[str, str] = {
    "\x1b[A": KEY_UP,
    "\x1b[B": KEY_DOWN,
    "\x1b[5~": KEY_PAGE_UP,
    "\x1b[6~": KEY_PAGE_DOWN,
}

_PAGE = 10

# None plus every tier letter, cycled by "T".
_TIER_CYCLE: tuple[str | None, ...] = (None, *TIER_LETTER_MAP)


class Action(str, Enum):
    SELECT = "select"
    QUIT = "quit"


def decode_keys(data: str) -> list[str]:
    """Split raw terminal input into key names.

    Arrow and page keys become ``"up"``/``"down"``/``"page_up"``/``"page_down"``,
    Enter becomes ``"enter"``, ``q`` and Ctrl+C become ``"quit"``; any other
    character is returned as-is.
    """
    keys: list[str] = []
    i = 0
    while i < len(data):
        for seq, name in _ESCAPES.items():
            if data.startswith(seq, i):
                keys.append(name)
                i += len(seq)
                break
        else:
            ch = data[i]
            i += 1
            if ch in ("\r", "\n"):
                keys.append(KEY_ENTER)
            elif ch in ("q", "\x03"):
                keys.append(KEY_QUIT)
            elif ch == "\x1b":
                continue
            else:
                keys.append(ch)
    return keys


def next_tier_letter(current: str | None) -> str | None:
    index = _TIER_CYCLE.index(current) if current in _TIER_CYCLE else 0
    return _TIER_CYCLE[(index + 1) % len(_TIER_CYCLE)]


def apply_key(
    view: DashboardView,
    key: str,
    rows: Sequence[EndpointSnapshot],
    on_toggle_favorite: Callable[[str], frozenset[str]] | None = None,
) -> Action | None:
    """Update *view* for one key press; return an action for the caller."""
    if key == KEY_QUIT:
        return Action.QUIT
    if key == KEY_ENTER:
        return Action.SELECT if rows else None

    if key == KEY_UP:
        view.move_cursor(-1, len(rows))
    elif key == KEY_DOWN:
        view.move_cursor(1, len(rows))
    elif key == KEY_PAGE_UP:
        view.move_cursor(-_PAGE, len(rows))
    elif key == KEY_PAGE_DOWN:
        view.move_cursor(_PAGE, len(rows))
    elif key in SORT_KEYS:
        view.toggle_sort(SORT_KEYS[key])
    elif key == "T":
        view.tier_letter = next_tier_letter(view.tier_letter)
        view.cursor = 0
    elif key == "F":
        view.favorites_only = not view.favorites_only
        view.cursor = 0
    elif key == "f" and rows and on_toggle_favorite is not None:
        view.favorites = on_toggle_favorite(rows[view.cursor].id)
    return None


@contextlib.contextmanager
def cbreak_terminal(fd: int) -> Iterator[None]:
    """Put the terminal behind *fd* in cbreak mode; restore it on exit."""
    saved = termios.tcgetattr(fd)
    try:
        tty.setcbreak(fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, saved)


class Dashboard:
    """Owns the view state and redraws it from monitor snapshots.

    Key presses arrive on a single ``asyncio.Queue``; only :meth:`run`
    mutates the view. The monitor runs as a background task for the
    lifetime of the dashboard.
    """

    def __init__(
        self,
        monitor: EndpointMonitor,
        view: DashboardView,
        *,
        fps: int,
        interval_seconds: float,
        provider_names: Mapping[str, str] | None = None,
        on_toggle_favorite: Callable[[str], frozenset[str]] | None = None,
        console: Console | None = None,
        interactive: bool | None = None,
    ) -> None:
        self._monitor = monitor
        self._view = view
        self._fps = fps
        self._interval_seconds = interval_seconds
        self._provider_names = provider_names or {}
        self._on_toggle_favorite = on_toggle_favorite
        self._console = console or Console()
        self._keys: asyncio.Queue[str] = asyncio.Queue()
        # None: read keys only when stdin is a terminal.
        self._interactive = interactive

    @property
    def view(self) -> DashboardView:
        return self._view

    def feed(self, data: str) -> None:
        """Queue raw terminal input (also used by tests)."""
        for key in decode_keys(data):
            self._keys.put_nowait(key)

    def _render(self, rows: Sequence[EndpointSnapshot]) -> Group:
        return Group(
            render_table(rows, self._view, self._provider_names),
            render_footer(self._monitor.metrics.snapshot(), self._view),
        )

    def _drain_keys(self, rows: list[EndpointSnapshot]) -> Action | None:
        while not self._keys.empty():
            action = apply_key(
                self._view, self._keys.get_nowait(), rows, self._on_toggle_favorite
            )
            if action is not None:
                return action
            rows[:] = self._view.visible(self._monitor.snapshots())
            # Filters may have shrunk the list under the cursor.
            self._view.move_cursor(0, len(rows))
        return None

    async def _loop(self, live: Live) -> EndpointSnapshot | None:
        frame = 1 / self._fps
        while True:
            rows = self._view.visible(self._monitor.snapshots())
            self._view.move_cursor(0, len(rows))
            action = self._drain_keys(rows)
            if action is Action.QUIT:
                return None
            if action is Action.SELECT:
                return rows[self._view.cursor]
            live.update(self._render(rows))
            await asyncio.sleep(frame)

    async def run(self) -> EndpointSnapshot | None:
        """Show the dashboard until the operator selects a row or quits."""
        loop = asyncio.get_running_loop()
        monitor_task = asyncio.create_task(
            self._monitor.run_forever(self._interval_seconds)
        )
        interactive = (
            sys.stdin.isatty() if self._interactive is None else self._interactive
        )
        stdin_fd = sys.stdin.fileno() if interactive else None

        def _on_input() -> None:
            self.feed(os.read(stdin_fd, 64).decode(errors="ignore"))

        try:
            with contextlib.ExitStack() as stack:
                if stdin_fd is not None:
                    stack.enter_context(cbreak_terminal(stdin_fd))
                    loop.add_reader(stdin_fd, _on_input)
                    stack.callback(loop.remove_reader, stdin_fd)
                live = stack.enter_context(
                    Live(
                        console=self._console,
                        refresh_per_second=self._fps,
                        screen=True,
                        transient=True,
                    )
                )
                return await self._loop(live)
        finally:
            monitor_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await monitor_task
            log.info("dashboard_closed", cursor=self._view.cursor)
