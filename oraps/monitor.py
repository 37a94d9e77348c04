"""Polling loop for oraps: sample, join, render, wait."""

import signal
import subprocess
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import TextIO

import oracledb

from oraps.render import merge_rows, render_file_block, render_table
from oraps.sampler import sample_processes
from oraps.sessions import resolve_sessions_handler
from oraps.types import MonitorRow, MonitorSettings, ProcessSample
from oraps.ui import (
    clear_screen,
    print_banner,
    print_error,
    print_next_refresh,
    print_table,
)


class CancelToken:
    """Cooperative cancellation shared between signal handlers and the loop."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def sleep(self, seconds: float) -> bool:
        """Sleep up to ``seconds``, returning early (True) if cancelled."""
        return self._event.wait(seconds)


class MonitorState(Enum):
    RUNNING = "running"
    SAMPLING = "sampling"
    RENDERING = "rendering"
    WAITING = "waiting"
    STOPPED = "stopped"


@contextmanager
def cancel_on_signals(token: CancelToken) -> Iterator[None]:
    """Cancel ``token`` on SIGINT/SIGTERM, restoring the old handlers on exit."""

    def _handler(signum, frame):
        token.cancel()

    previous = {
        sig: signal.signal(sig, _handler) for sig in (signal.SIGINT, signal.SIGTERM)
    }
    try:
        yield
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)


def wait_interval(
    token: CancelToken,
    interval: int,
    sleep: Callable[[float], object] | None = None,
) -> bool:
    """Wait ``interval`` seconds in one-second slices.

    Returns False as soon as the token is cancelled, True if the whole
    interval elapsed.
    """
    sleep = sleep or token.sleep
    for _ in range(interval):
        if token.cancelled:
            return False
        sleep(1)
    return not token.cancelled


class MonitorLoop:
    def __init__(
        self,
        settings: MonitorSettings,
        connection: oracledb.Connection,
        token: CancelToken,
        output_file: TextIO | None = None,
        sleep: Callable[[float], object] | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings
        self.connection = connection
        self.token = token
        self.output_file = output_file
        self.sleep = sleep
        self.now = now
        self.state = MonitorState.STOPPED
        self.runs = 0

    def _sample(self) -> list[ProcessSample]:
        try:
            return sample_processes(self.settings.top, self.settings.command_width)
        except subprocess.CalledProcessError as e:
            print_error(f"ps failed: {(e.stderr or '').strip() or e}")
        except FileNotFoundError as e:
            print_error(f"ps not available: {e}")
        return []

    def collect_rows(self) -> list[MonitorRow]:
        samples = self._sample()
        sessions = resolve_sessions_handler(
            self.connection, [sample.pid for sample in samples]
        )
        return merge_rows(samples, sessions)

    def run_once(self) -> str | None:
        """Run a single sample/render pass and return the rendered table.

        Returns None without rendering if the token was cancelled while sampling.
        """
        self.state = MonitorState.SAMPLING
        rows = self.collect_rows()
        if self.token.cancelled:
            return None

        self.runs += 1
        self.state = MonitorState.RENDERING
        table = render_table(rows, self.settings.command_width)
        timestamp = self.now()

        clear_screen()
        print_banner(self.runs, timestamp, self.settings.count)
        print_table(table)

        if self.output_file is not None:
            self.output_file.write(render_file_block(table, self.runs, timestamp))
            self.output_file.flush()

        return table

    def _exhausted(self) -> bool:
        return self.settings.count is not None and self.runs >= self.settings.count

    def run(self) -> int:
        """Loop until the run count is reached or the token is cancelled.

        Returns the number of completed iterations.
        """
        self.state = MonitorState.RUNNING
        try:
            while not self.token.cancelled:
                if self.run_once() is None or self._exhausted():
                    break

                print_next_refresh(self.settings.interval)
                self.state = MonitorState.WAITING
                if not wait_interval(self.token, self.settings.interval, self.sleep):
                    break
                self.state = MonitorState.RUNNING
        finally:
            self.state = MonitorState.STOPPED
        return self.runs
