"""
🖥️ Display - Full-screen status rendering + header spinner

render_screen() is pure: same watch list, status table and error always give
the same text. Display writes it (clear + redraw) and owns the spinner that
animates the header cell between two refreshes.
"""
import asyncio
import os
import subprocess
import sys
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, TextIO

from core.stream_types import LiveSession, normalize_login

# ANSI styling
COLOR_RESET = "\033[0m"
COLOR_GREEN = "\033[32m"
COLOR_YELLOW = "\033[33m"
COLOR_BLUE = "\033[34m"
STYLE_BOLD = "\033[1m"

CLEAR_SCREEN = "\033[H\033[2J\033[3J"
PROMPT = "> "
SEPARATOR = "-" * 42

SPINNER_FRAMES = ("/", "\\", "X")
SPINNER_PERIOD = 0.3


def format_duration(delta: timedelta) -> str:
    """HH:MM:SS, rounded to the second"""
    total = max(0, int(round(delta.total_seconds())))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def bool_to_status(value: bool) -> str:
    return "ENABLED" if value else "DISABLED"


def header_prefix(updated_at: datetime) -> str:
    """Plain header text up to and including the spinner's opening bracket"""
    return f"--- Twitch Stream Monitor --- (Last updated: {updated_at.astimezone().strftime('%H:%M:%S')}) ["


def spinner_column(updated_at: datetime) -> int:
    """1-based terminal column of the spinner cell on the first line"""
    return len(header_prefix(updated_at)) + 1


def render_screen(
    watchlist: Iterable[str],
    table: Dict[str, LiveSession],
    updated_at: datetime,
    error: Optional[str] = None,
    notices: Iterable[str] = (),
) -> str:
    """
    Build the whole screen.

    Args:
        watchlist: Names in display order
        table: Status table (normalized login -> LiveSession)
        updated_at: Refresh time (timezone-aware), also the uptime reference
        error: Fetch error message, shown instead of trusting the table
        notices: One-line messages from this refresh (recordings, failures)
    """
    clock = updated_at.astimezone().strftime("%H:%M:%S")
    lines: List[str] = [
        f"{COLOR_BLUE}--- Twitch Stream Monitor --- (Last updated: {STYLE_BOLD}{clock}"
        f"{COLOR_RESET}{COLOR_BLUE}) [ ]{COLOR_RESET}",
        "",
    ]

    watchlist = list(watchlist)
    if not watchlist:
        lines.append("No streamers in the list. Use 'add <username>' to add one.")
    elif error is not None:
        lines.append(f"Error fetching stream data: {error}")
    else:
        for name in watchlist:
            session = table.get(normalize_login(name))
            if session is None:
                lines.append(f"{COLOR_YELLOW}X{COLOR_RESET} {name} is offline.")
                continue
            uptime = format_duration(updated_at - session.started_at)
            lines.append(
                f"{COLOR_GREEN}O{COLOR_RESET} {session.user_name}: "
                f"{STYLE_BOLD}{session.title}{COLOR_RESET} [{session.game_name}] "
                f"({session.viewer_count} viewers) | Uptime: {uptime}"
            )

    for notice in notices:
        lines.append(notice)

    lines.append("")
    lines.append(f"{COLOR_BLUE}{SEPARATOR}{COLOR_RESET}")
    lines.append("Type 'help' for commands.")
    return "\n".join(lines) + "\n" + PROMPT


class Spinner:
    """
    Animates one header cell until stopped.

    stop() waits for the task to blank its cell, so a redraw that follows
    never races with a late frame.
    """

    def __init__(self, out: TextIO, column: int, period: float = SPINNER_PERIOD):
        self.out = out
        self.column = column
        self.period = period
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    def start(self):
        self._task = asyncio.create_task(self._run())

    async def _run(self):
        i = 0
        try:
            while not self._stop.is_set():
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=self.period)
                except asyncio.TimeoutError:
                    self._draw(SPINNER_FRAMES[i % len(SPINNER_FRAMES)])
                    i += 1
        finally:
            self._draw(" ")

    def _draw(self, char: str):
        # Save cursor, jump to the cell, restore cursor
        self.out.write(f"\033[s\033[1;{self.column}H{char}\033[u")
        self.out.flush()

    async def stop(self):
        if self._task is None:
            return
        self._stop.set()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()


class Display:
    """Terminal output shared by the poller and the command processor"""

    def __init__(self, out: Optional[TextIO] = None, animate: bool = True):
        self.out = out or sys.stdout
        self.animate = animate
        self._spinner: Optional[Spinner] = None

    def clear(self):
        if os.name == "nt" and self.out is sys.stdout:
            subprocess.run(["cmd", "/c", "cls"], check=False)
        else:
            self.out.write(CLEAR_SCREEN)

    def draw(self, screen: str):
        """Clear and redraw the whole screen"""
        self.clear()
        self.out.write(screen)
        self.out.flush()

    def write(self, text: str):
        self.out.write(text)
        self.out.flush()

    def prompt(self):
        self.write(PROMPT)

    def start_spinner(self, updated_at: datetime):
        if not self.animate:
            return
        self._spinner = Spinner(self.out, spinner_column(updated_at))
        self._spinner.start()

    async def stop_spinner(self):
        if self._spinner is None:
            return
        spinner, self._spinner = self._spinner, None
        await spinner.stop()
