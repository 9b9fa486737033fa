"""
kvlog: leveled, key/value structured logging through a tree of loggers.

    import kvlog

    kvlog.info("Server started", "port", 8080)
    log = kvlog.new("module", "db")
    log.warn("Slow query", ms=412)
"""

__version__ = "0.1.0"

from kvlog.context import ERROR_KEY, Ctx, Lazy, normalize
from kvlog.core import Logger
from kvlog.errors import HandlerError, InvalidLevelName, KvlogError, LogPanic
from kvlog.formatters import JsonFormatter, LogFormatter, LogfmtFormatter, TerminalFormatter
from kvlog.handlers import (
    DiscardHandler,
    FileHandler,
    FuncHandler,
    Handler,
    LevelFilterHandler,
    MultiHandler,
    RingBufferHandler,
    StreamHandler,
    SwapHandler,
    stderr_handler,
    stdout_handler,
)
from kvlog.records import CallSite, Level, LogRecord, RecordKeyNames
from kvlog.rootlogger import (
    crit,
    critf,
    debug,
    debugf,
    error,
    errorf,
    get_handler,
    get_level,
    info,
    infof,
    init_root,
    new,
    new_with_level,
    panic,
    panicf,
    root,
    set_handler,
    set_level,
    set_root,
    warn,
    warnf,
)

__all__ = [
    "ERROR_KEY",
    "Ctx",
    "Lazy",
    "normalize",
    "Logger",
    "KvlogError",
    "InvalidLevelName",
    "HandlerError",
    "LogPanic",
    "LogFormatter",
    "LogfmtFormatter",
    "TerminalFormatter",
    "JsonFormatter",
    "Handler",
    "SwapHandler",
    "DiscardHandler",
    "FuncHandler",
    "StreamHandler",
    "FileHandler",
    "MultiHandler",
    "LevelFilterHandler",
    "RingBufferHandler",
    "stdout_handler",
    "stderr_handler",
    "Level",
    "LogRecord",
    "RecordKeyNames",
    "CallSite",
    "init_root",
    "root",
    "set_root",
    "new",
    "new_with_level",
    "set_level",
    "get_level",
    "set_handler",
    "get_handler",
    "debug",
    "info",
    "warn",
    "error",
    "crit",
    "debugf",
    "infof",
    "warnf",
    "errorf",
    "critf",
    "panic",
    "panicf",
]
