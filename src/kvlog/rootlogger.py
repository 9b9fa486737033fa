"""
Process-wide root logger and package-level convenience functions.

The free functions call the root's _write() directly instead of going
through Logger.info() and friends, so the captured call site is the same
number of frames away as for the Logger methods.

Tests install an isolated root with set_root() and restore the previous
one afterwards.
"""

import threading
import time
from typing import Any, Optional

from kvlog.core import PANIC_DELAY, Logger, sprintf
from kvlog.errors import HandlerError, LogPanic
from kvlog.handlers import Handler, stdout_handler
from kvlog.records import Level

_root: Logger
_lock = threading.Lock()


def init_root(handler: Optional[Handler] = None, level: "Level | int | str" = Level.DEBUG) -> Logger:
    """
    Create a fresh root logger and install it.

    Defaults to standard output (colored when it is a terminal) at DEBUG.
    Returns the new root.
    """
    logger = Logger(level=level, handler=handler if handler is not None else stdout_handler())
    set_root(logger)
    return logger


def root() -> Logger:
    """The current root logger."""
    return _root


def set_root(logger: Logger) -> Optional[Logger]:
    """Replace the root logger. Returns the previous one."""
    global _root
    with _lock:
        previous = globals().get("_root")
        _root = logger
    return previous


def new(*ctx: Any, **kw: Any) -> Logger:
    """Child of the root logger with the given context."""
    return _root.new(*ctx, **kw)


def new_with_level(level: "Level | int | str", *ctx: Any, **kw: Any) -> Logger:
    """Child of the root logger with its own level floor."""
    return _root.new(*ctx, level=level, **kw)


def set_level(level: "Level | int | str") -> None:
    _root.set_level(level)


def get_level() -> Level:
    return _root.level


def set_handler(handler: Handler) -> None:
    _root.set_handler(handler)


def get_handler() -> Handler:
    return _root.get_handler()


# ── Leveled functions ─────────────────────────────────────────────

def debug(msg: Any, *ctx: Any, **kw: Any) -> None:
    try:
        _root._write(str(msg), Level.DEBUG, ctx, kw)
    except HandlerError:
        pass


def info(msg: Any, *ctx: Any, **kw: Any) -> None:
    try:
        _root._write(str(msg), Level.INFO, ctx, kw)
    except HandlerError:
        pass


def warn(msg: Any, *ctx: Any, **kw: Any) -> None:
    try:
        _root._write(str(msg), Level.WARN, ctx, kw)
    except HandlerError:
        pass


def error(msg: Any, *ctx: Any, **kw: Any) -> None:
    try:
        _root._write(str(msg), Level.ERROR, ctx, kw)
    except HandlerError:
        pass


def crit(msg: Any, *ctx: Any, **kw: Any) -> None:
    try:
        _root._write(str(msg), Level.CRIT, ctx, kw)
    except HandlerError:
        pass


def debugf(fmt: str, *args: Any) -> None:
    try:
        _root._write(sprintf(fmt, args), Level.DEBUG, ())
    except HandlerError:
        pass


def infof(fmt: str, *args: Any) -> None:
    try:
        _root._write(sprintf(fmt, args), Level.INFO, ())
    except HandlerError:
        pass


def warnf(fmt: str, *args: Any) -> None:
    try:
        _root._write(sprintf(fmt, args), Level.WARN, ())
    except HandlerError:
        pass


def errorf(fmt: str, *args: Any) -> None:
    try:
        _root._write(sprintf(fmt, args), Level.ERROR, ())
    except HandlerError:
        pass


def critf(fmt: str, *args: Any) -> None:
    try:
        _root._write(sprintf(fmt, args), Level.CRIT, ())
    except HandlerError:
        pass


def panic(msg: Any, *ctx: Any, **kw: Any) -> None:
    message = str(msg)
    try:
        _root._write(message, Level.CRIT, ctx, kw)
    except HandlerError:
        pass
    time.sleep(PANIC_DELAY)
    raise LogPanic(message)


def panicf(fmt: str, *args: Any) -> None:
    message = sprintf(fmt, args)
    try:
        _root._write(message, Level.CRIT, ())
    except HandlerError:
        pass
    time.sleep(PANIC_DELAY)
    raise LogPanic(message)


init_root()
