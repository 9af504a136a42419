"""
Status sinks receiving progress lines from a sync run.
"""
import sys
import threading
from typing import Callable, Optional, TextIO

from loguru import logger


class StatusSink:
    """
    Receives status text and a progress fraction.

    Called from upload worker threads, possibly many times per second, so
    implementations must be thread safe. The base sink writes to the log.
    """

    def report(self, text: str, progress: float, is_error: bool = False) -> None:
        if is_error:
            logger.error(f"[{progress:.0%}] {text}")
        else:
            logger.info(f"[{progress:.0%}] {text}")


class CallbackStatusSink(StatusSink):
    """Forwards every status update to a callable, one call at a time."""

    def __init__(self, callback: Callable[[str, float, bool], None]):
        self._callback = callback
        self._lock = threading.Lock()

    def report(self, text: str, progress: float, is_error: bool = False) -> None:
        with self._lock:
            self._callback(text, progress, is_error)


class ConsoleStatusSink(StatusSink):
    """Redraws a single progress line on a terminal stream."""

    def __init__(self, stream: Optional[TextIO] = None, width: int = 30):
        self.stream = stream or sys.stderr
        self.width = width
        self._lock = threading.Lock()

    def report(self, text: str, progress: float, is_error: bool = False) -> None:
        progress = min(max(progress, 0.0), 1.0)
        filled = int(self.width * progress)
        bar = '#' * filled + '-' * (self.width - filled)
        marker = '!' if is_error else ' '
        line = f"\r{marker}[{bar}] {progress:6.1%} {text}"

        with self._lock:
            self.stream.write(line)
            if progress >= 1.0 or is_error:
                self.stream.write('\n')
            self.stream.flush()
