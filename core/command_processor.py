#!/usr/bin/env python3
"""
⌨️ Command Processor - Interactive REPL on stdin

Reads one command per line and applies it to the shared state. Stdin is read
on a daemon thread so a blocking read never stalls the poller, and Ctrl+C
never waits for the pending read.

Commands mutating the watch list persist the config and trigger an immediate
refresh. Bad input prints a usage message and the loop keeps reading.
"""
import asyncio
import logging
import os
import sys
import threading
from typing import Awaitable, Callable, Dict, List, Optional

from core.app_state import AppState
from core.display import Display, bool_to_status

LOGGER = logging.getLogger(__name__)

HELP_TEXT = """
Available Commands:
  add <username>      - Add a streamer to the monitor list.
  remove <username>   - Remove a streamer from the list.
  list                - Show the current list of monitored streamers.
  toggle record       - Enable or disable recording of stream sessions.
  options             - Show current options.
  status              - Force an immediate status check.
  exit, quit          - Exit the application.
"""

UNKNOWN_COMMAND = "Unknown command. Type 'help' for a list of commands."


class StdinLineReader:
    """
    Blocking line reader on the stdin file descriptor.

    Reads with os.read, not sys.stdin: a read abandoned at Ctrl+C must not
    hold the stdin buffer lock while the interpreter shuts down.
    """

    def __init__(self, fd: Optional[int] = None, encoding: Optional[str] = None):
        # Resolved on first read, sys.stdin may be replaced until then
        self.fd = fd
        self.encoding = encoding
        self._buffer = b""

    def __call__(self) -> str:
        """Next line with its newline, the unterminated tail, or "" at end of input"""
        if self.fd is None:
            self.fd = sys.stdin.fileno()
        if self.encoding is None:
            self.encoding = getattr(sys.stdin, "encoding", None) or "utf-8"
        while b"\n" not in self._buffer:
            chunk = os.read(self.fd, 4096)
            if not chunk:
                tail, self._buffer = self._buffer, b""
                return tail.decode(self.encoding, errors="replace")
            self._buffer += chunk
        line, _, self._buffer = self._buffer.partition(b"\n")
        return (line + b"\n").decode(self.encoding, errors="replace")


class CommandProcessor:
    """
    Dispatches REPL commands.

    handle_line() returns False when the user asked to exit.
    """

    def __init__(self, state: AppState, poller, display: Display, read_line: Optional[Callable[[], str]] = None):
        """
        Args:
            state: Shared app state
            poller: Object exposing trigger() for immediate refreshes
            display: Terminal output
            read_line: Blocking line reader, defaults to StdinLineReader()
        """
        self.state = state
        self.poller = poller
        self.display = display
        self.read_line = read_line or StdinLineReader()

        self.commands: Dict[str, Callable[[List[str]], Awaitable[bool]]] = {
            "help": self._cmd_help,
            "add": self._cmd_add,
            "remove": self._cmd_remove,
            "list": self._cmd_list,
            "toggle": self._cmd_toggle,
            "options": self._cmd_options,
            "status": self._cmd_status,
            "exit": self._cmd_exit,
            "quit": self._cmd_exit,
        }

    async def run(self):
        """Read and apply commands until exit/quit, end of input or Ctrl+C"""
        try:
            while True:
                line = await self._read_line()
                if not line:
                    # The reader returns "" only at end of input (Ctrl+D)
                    self.display.write("\n")
                    await self._cmd_exit([])
                    return

                try:
                    if not await self.handle_line(line):
                        return
                except Exception as e:
                    LOGGER.error(f"❌ CLI error: {e}", exc_info=True)
                    self.display.write(f"Error: {e}\n")
                    self.display.prompt()
        except asyncio.CancelledError:
            # Ctrl+C: asyncio.run() cancels the main task
            LOGGER.info("⌨️ Interrupted")
            self.display.write("\n")
            await self._cmd_exit([])
            raise

    async def _read_line(self) -> str:
        """
        Run one blocking read on a daemon thread.

        Not the default executor: asyncio.run() joins its threads at shutdown.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def _settle(line, error):
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(line)

        def _reader():
            line, error = None, None
            try:
                line = self.read_line()
            except Exception as e:
                error = e
            try:
                loop.call_soon_threadsafe(_settle, line, error)
            except RuntimeError:
                # Loop already closed, nobody is waiting for this line
                pass

        threading.Thread(target=_reader, name="repl-stdin", daemon=True).start()
        return await future

    async def handle_line(self, line: str) -> bool:
        parts = line.strip().split()
        if not parts:
            self.display.prompt()
            return True

        command, args = parts[0].lower(), parts[1:]
        handler = self.commands.get(command)
        if handler is None:
            LOGGER.debug(f"Unknown command: {command}")
            self.display.write(UNKNOWN_COMMAND + "\n")
            self.display.prompt()
            return True
        return await handler(args)

    async def _cmd_help(self, args: List[str]) -> bool:
        self.display.write(HELP_TEXT)
        self.display.prompt()
        return True

    async def _cmd_add(self, args: List[str]) -> bool:
        if not args:
            self.display.write("Usage: add <username>\n")
            self.display.prompt()
            return True

        name = args[0]
        async with self.state.lock:
            if self.state.config.add_streamer(name):
                LOGGER.info(f"➕ Added streamer {name}")
                self.state.persist()
            else:
                LOGGER.info(f"Streamer {name} already monitored")
        self.poller.trigger()
        return True

    async def _cmd_remove(self, args: List[str]) -> bool:
        if not args:
            self.display.write("Usage: remove <username>\n")
            self.display.prompt()
            return True

        name = args[0]
        async with self.state.lock:
            removed = self.state.config.remove_streamer(name)
            # Evicted without a record: a removed account never produces one later
            self.state.tracker.evict(name)
            self.state.persist()
            LOGGER.info(f"➖ Removed streamer {name} ({removed} entries)")
        self.poller.trigger()
        return True

    async def _cmd_list(self, args: List[str]) -> bool:
        async with self.state.lock:
            lines = ["", "Monitored Streamers:"]
            for i, streamer in enumerate(self.state.config.streamers, start=1):
                lines.append(f"  {i}. {streamer}")
            if not self.state.config.streamers:
                lines.append("  (none)")
            self.display.write("\n".join(lines) + "\n")
            self.display.prompt()
        return True

    async def _cmd_toggle(self, args: List[str]) -> bool:
        if not args or args[0].lower() != "record":
            self.display.write("Usage: toggle record\n")
            self.display.prompt()
            return True

        async with self.state.lock:
            enabled = self.state.config.toggle_record_streams()
            self.state.persist()
            LOGGER.info(f"⏺️ record_streams={enabled}")
            self.display.write(f"Stream recording is now {bool_to_status(enabled)}.\n")
            self.display.prompt()
        return True

    async def _cmd_options(self, args: List[str]) -> bool:
        async with self.state.lock:
            self.display.write(
                "\nCurrent Options:\n"
                f"- Record Streams: {bool_to_status(self.state.config.record_streams)}\n"
            )
            self.display.prompt()
        return True

    async def _cmd_status(self, args: List[str]) -> bool:
        self.poller.trigger()
        return True

    async def _cmd_exit(self, args: List[str]) -> bool:
        self.display.write("Exiting.\n")
        return False
