"""
Handlers (output destinations).

A Handler receives every record its logger emits. SwapHandler is the
indirection each Logger holds so its destination can be replaced at runtime
while other threads are logging.
"""

import sys
import threading
from abc import ABC, abstractmethod
from collections import deque
from pathlib import Path
from typing import Callable, Optional, TextIO

from kvlog.errors import HandlerError
from kvlog.formatters import LogFormatter, LogfmtFormatter, TerminalFormatter
from kvlog.records import Level, LogRecord


class Handler(ABC):
    """Base handler. Writes records somewhere."""

    @abstractmethod
    def log(self, record: LogRecord) -> None:
        """Write a record. Raises HandlerError when the write fails."""
        ...

    def flush(self) -> None:
        """Flush any buffered output. Override in buffered handlers."""
        pass

    def close(self) -> None:
        """Cleanup. Override if handler holds resources."""
        self.flush()


class DiscardHandler(Handler):
    """Drops every record."""

    def log(self, record: LogRecord) -> None:
        pass


_DISCARD = DiscardHandler()


class SwapHandler(Handler):
    """
    Holds the currently active handler and lets it be replaced safely.

    log() reads the reference once and calls the handler outside any lock,
    so a slow handler never blocks swap(). Every record goes to exactly one
    handler: whichever was installed when log() read the reference.
    """

    def __init__(self, handler: Optional[Handler] = None):
        self._lock = threading.Lock()
        self._handler: Optional[Handler] = None
        if handler is not None:
            self.swap(handler)

    def get(self) -> Handler:
        handler = self._handler
        return handler if handler is not None else _DISCARD

    def swap(self, handler: Handler) -> Optional[Handler]:
        """Install `handler`. Returns the previously installed one, if any."""
        if handler is self:
            raise ValueError("SwapHandler cannot wrap itself")
        with self._lock:
            previous = self._handler
            self._handler = handler
        return previous

    def log(self, record: LogRecord) -> None:
        handler = self._handler
        if handler is None:
            return
        handler.log(record)

    def flush(self) -> None:
        handler = self._handler
        if handler is not None:
            handler.flush()

    def close(self) -> None:
        handler = self._handler
        if handler is not None:
            handler.close()


class FuncHandler(Handler):
    """Calls `fn(record)` for every record."""

    def __init__(self, fn: Callable[[LogRecord], None]):
        self.fn = fn

    def log(self, record: LogRecord) -> None:
        self.fn(record)


class StreamHandler(Handler):
    """
    Writes formatted lines to a text stream.
    Writes are serialized by the handler's own lock.
    """

    def __init__(self, stream: TextIO, formatter: LogFormatter | None = None):
        self.stream = stream
        self.formatter = formatter or LogfmtFormatter()
        self._lock = threading.Lock()

    def log(self, record: LogRecord) -> None:
        line = self.formatter.format(record) + "\n"
        with self._lock:
            try:
                self.stream.write(line)
                self.stream.flush()
            except (OSError, ValueError) as exc:
                raise HandlerError(f"write to stream failed: {exc}") from exc

    def flush(self) -> None:
        with self._lock:
            try:
                self.stream.flush()
            except (OSError, ValueError) as exc:
                raise HandlerError(f"flush of stream failed: {exc}") from exc


class FileHandler(Handler):
    """
    Appends formatted lines to a file, creating parent directories.
    The file is opened on first write.
    """

    def __init__(self, path: str | Path, formatter: LogFormatter | None = None):
        self.path = Path(path)
        self.formatter = formatter or LogfmtFormatter()
        self._file: Optional[TextIO] = None
        self._lock = threading.Lock()

    def _ensure_file(self) -> TextIO:
        """Open the file if needed. Must hold self._lock."""
        if self._file is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "a", encoding="utf-8")
        return self._file

    def log(self, record: LogRecord) -> None:
        line = self.formatter.format(record) + "\n"
        with self._lock:
            try:
                self._ensure_file().write(line)
            except OSError as exc:
                raise HandlerError(f"write to {self.path} failed: {exc}") from exc

    def flush(self) -> None:
        with self._lock:
            if self._file:
                self._file.flush()

    def close(self) -> None:
        with self._lock:
            if self._file:
                self._file.close()
                self._file = None


class MultiHandler(Handler):
    """
    Fans each record out to several handlers.
    Every handler is tried; the first failure is raised afterwards.
    """

    def __init__(self, *handlers: Handler):
        self.handlers = list(handlers)

    def log(self, record: LogRecord) -> None:
        first_error: Optional[HandlerError] = None
        for handler in self.handlers:
            try:
                handler.log(record)
            except HandlerError as exc:
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error

    def flush(self) -> None:
        for handler in self.handlers:
            handler.flush()

    def close(self) -> None:
        for handler in self.handlers:
            handler.close()


class LevelFilterHandler(Handler):
    """Forwards only records at least as severe as `max_level`."""

    def __init__(self, max_level: Level, handler: Handler):
        self.max_level = Level.from_value(max_level)
        self.handler = handler

    def log(self, record: LogRecord) -> None:
        if record.level <= self.max_level:
            self.handler.log(record)

    def flush(self) -> None:
        self.handler.flush()

    def close(self) -> None:
        self.handler.close()


class RingBufferHandler(Handler):
    """
    Keeps the last N records in memory.
    Does not grow unbounded.
    """

    def __init__(self, size: int = 10000):
        self._buffer: deque[LogRecord] = deque(maxlen=size)
        self._lock = threading.Lock()

    def log(self, record: LogRecord) -> None:
        with self._lock:
            self._buffer.append(record)

    def get_recent(self, n: int = 100, max_level: Level | None = None) -> list[LogRecord]:
        """Most recent records, oldest first, optionally filtered by level."""
        with self._lock:
            records = list(self._buffer)

        if max_level is not None:
            records = [r for r in records if r.level <= max_level]

        return records[-n:] if n > 0 else []

    def clear(self) -> None:
        with self._lock:
            self._buffer.clear()

    @property
    def count(self) -> int:
        return len(self._buffer)

    @property
    def size(self) -> int:
        return self._buffer.maxlen or 0


def _stream_handler(stream: TextIO) -> StreamHandler:
    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        return StreamHandler(stream, TerminalFormatter(color=True))
    return StreamHandler(stream, LogfmtFormatter())


def stdout_handler() -> StreamHandler:
    """Handler for standard output, colored if it is a terminal."""
    return _stream_handler(sys.stdout)


def stderr_handler() -> StreamHandler:
    """Handler for standard error, colored if it is a terminal."""
    return _stream_handler(sys.stderr)
