"""
Logger: a node in a tree of context-carrying loggers.

Each Logger owns an immutable context prefix, a level floor and a
SwapHandler. new() derives a child whose context extends the parent's and
whose handler starts as whatever the parent has installed at that moment.

The level gate is the first thing _write() does: a record below the floor
is dropped before anything is allocated.
"""

import time
from typing import Any, Optional, Sequence

from kvlog.context import new_context
from kvlog.errors import HandlerError, LogPanic
from kvlog.handlers import Handler, SwapHandler
from kvlog.records import DEFAULT_KEY_NAMES, CallSite, Level, LogRecord

# Frames between the user's call and _write(): the public method itself.
CALLER_DEPTH = 2

# Grace period between writing a panic record and raising.
PANIC_DELAY = 0.01


class Logger:
    """
    Usage:
        log = Logger(handler=StreamHandler(sys.stdout))
        db_log = log.new("module", "db")
        db_log.info("Connected", "host", "localhost", port=5432)
        db_log.warnf("%d retries left", 3)
    """

    # Re-export levels for convenience: Logger.DEBUG, etc.
    CRIT = Level.CRIT
    ERROR = Level.ERROR
    WARN = Level.WARN
    INFO = Level.INFO
    DEBUG = Level.DEBUG

    def __init__(
        self,
        context: Sequence[Any] = (),
        level: "Level | int | str" = Level.DEBUG,
        handler: Optional[Handler] = None,
    ) -> None:
        self._context: tuple = new_context((), context)
        self._max_level: Level = Level.from_value(level)
        self._handler = SwapHandler(handler)

    # ── Tree ──────────────────────────────────────────────────────

    def new(self, *ctx: Any, level: "Level | int | str | None" = None, **kw: Any) -> "Logger":
        """
        Child logger with this logger's context plus `ctx`.

        The child inherits this logger's level unless `level` is given, and
        its handler starts as the one installed here right now. Later
        set_handler() calls on either logger do not affect the other.
        """
        cls = type(self)
        child = cls.__new__(cls)
        child._context = new_context(self._context, ctx, kw)
        child._max_level = self._max_level if level is None else Level.from_value(level)
        child._handler = SwapHandler(self._handler.get())
        return child

    @property
    def context(self) -> tuple:
        return self._context

    # ── Configuration ─────────────────────────────────────────────

    @property
    def level(self) -> Level:
        return self._max_level

    @level.setter
    def level(self, value: "Level | int | str") -> None:
        self._max_level = Level.from_value(value)

    def set_level(self, level: "Level | int | str") -> None:
        """Set the floor for this logger only. Existing children keep theirs."""
        self._max_level = Level.from_value(level)

    def get_handler(self) -> Handler:
        return self._handler.get()

    def set_handler(self, handler: Handler) -> None:
        self._handler.swap(handler)

    def is_enabled_for(self, level: "Level | int | str") -> bool:
        return Level.from_value(level) <= self._max_level

    # ── Core write path ───────────────────────────────────────────

    def _write(
        self,
        message: str,
        level: Level,
        ctx: Sequence[Any],
        kw: Optional[dict] = None,
        skip: int = 0,
    ) -> None:
        """
        Build a record and hand it to the handler.

        The call site is taken CALLER_DEPTH + skip frames up from here, so
        every public entry point must reach _write() in exactly one call.
        Raises HandlerError if the installed handler fails.
        """
        if level > self._max_level:
            return
        self._handler.log(
            LogRecord.create(
                level=level,
                message=message,
                context=new_context(self._context, ctx, kw),
                call=CallSite.capture(CALLER_DEPTH + skip),
                key_names=DEFAULT_KEY_NAMES,
            )
        )

    def log(self, level: "Level | int | str", msg: Any, *ctx: Any, **kw: Any) -> None:
        try:
            self._write(str(msg), Level.from_value(level), ctx, kw)
        except HandlerError:
            # Logging is fire-and-forget for the caller
            pass

    # ── Convenience Methods ───────────────────────────────────────

    def debug(self, msg: Any, *ctx: Any, **kw: Any) -> None:
        try:
            self._write(str(msg), Level.DEBUG, ctx, kw)
        except HandlerError:
            pass

    def info(self, msg: Any, *ctx: Any, **kw: Any) -> None:
        try:
            self._write(str(msg), Level.INFO, ctx, kw)
        except HandlerError:
            pass

    def warn(self, msg: Any, *ctx: Any, **kw: Any) -> None:
        try:
            self._write(str(msg), Level.WARN, ctx, kw)
        except HandlerError:
            pass

    def error(self, msg: Any, *ctx: Any, **kw: Any) -> None:
        try:
            self._write(str(msg), Level.ERROR, ctx, kw)
        except HandlerError:
            pass

    def crit(self, msg: Any, *ctx: Any, **kw: Any) -> None:
        try:
            self._write(str(msg), Level.CRIT, ctx, kw)
        except HandlerError:
            pass

    # printf-style variants take no context

    def debugf(self, fmt: str, *args: Any) -> None:
        try:
            self._write(sprintf(fmt, args), Level.DEBUG, ())
        except HandlerError:
            pass

    def infof(self, fmt: str, *args: Any) -> None:
        try:
            self._write(sprintf(fmt, args), Level.INFO, ())
        except HandlerError:
            pass

    def warnf(self, fmt: str, *args: Any) -> None:
        try:
            self._write(sprintf(fmt, args), Level.WARN, ())
        except HandlerError:
            pass

    def errorf(self, fmt: str, *args: Any) -> None:
        try:
            self._write(sprintf(fmt, args), Level.ERROR, ())
        except HandlerError:
            pass

    def critf(self, fmt: str, *args: Any) -> None:
        try:
            self._write(sprintf(fmt, args), Level.CRIT, ())
        except HandlerError:
            pass

    # ── Panic ─────────────────────────────────────────────────────

    def panic(self, msg: Any, *ctx: Any, **kw: Any) -> None:
        """Write at CRIT, give the handler a moment, then raise LogPanic."""
        message = str(msg)
        try:
            self._write(message, Level.CRIT, ctx, kw)
        except HandlerError:
            pass
        time.sleep(PANIC_DELAY)
        raise LogPanic(message)

    def panicf(self, fmt: str, *args: Any) -> None:
        message = sprintf(fmt, args)
        try:
            self._write(message, Level.CRIT, ())
        except HandlerError:
            pass
        time.sleep(PANIC_DELAY)
        raise LogPanic(message)

    # ── Cleanup ───────────────────────────────────────────────────

    def flush(self) -> None:
        self._handler.flush()

    def close(self) -> None:
        self._handler.close()

    def __repr__(self) -> str:
        return f"Logger(level={self._max_level!s}, context={list(self._context)!r})"


def sprintf(fmt: str, args: Sequence[Any]) -> str:
    """
    %-interpolate `args` into `fmt`, always, so `%%` renders as `%` with or
    without arguments. A template that does not fit its arguments never
    raises: the raw template is kept and the arguments are appended after a
    `%!(BADARGS ...)` marker.
    """
    try:
        return fmt % tuple(args)
    except (TypeError, ValueError, KeyError):
        return f"{fmt} %!(BADARGS {tuple(args)!r})"
