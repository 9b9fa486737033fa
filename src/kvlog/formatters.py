"""
Log formatters.

Each handler can use a different formatter.
  - logfmt:   t=2026-10-16T14:32:05.123+00:00 lvl=info msg="Server started" port=8080
  - terminal: INFO[10-16|14:32:05] Server started                           port=8080
  - json:     {"t": "...", "lvl": "info", "msg": "Server started", "port": 8080}
"""

import json
from abc import ABC, abstractmethod
from typing import Any

from kvlog.context import ERROR_KEY, Lazy
from kvlog.records import Level, LogRecord

MESSAGE_WIDTH = 40


class LogFormatter(ABC):
    """Base formatter. Transforms LogRecord → single line, no newline."""

    @abstractmethod
    def format(self, record: LogRecord) -> str: ...


def resolve_lazy(record: LogRecord) -> list[tuple[Any, Any]]:
    """
    Context pairs with every Lazy value evaluated.

    A Lazy that raises keeps its key with an error placeholder as the value,
    and an ERROR_KEY pair describing the failure is appended.
    """
    pairs: list[tuple[Any, Any]] = []
    errors: list[tuple[Any, Any]] = []
    for key, value in record.pairs():
        if isinstance(value, Lazy):
            try:
                value = value.evaluate()
            except Exception as exc:
                value = f"<lazy error: {exc}>"
                errors.append((ERROR_KEY, f"bad lazy value for key {key}: {exc!r}"))
        pairs.append((key, value))
    pairs.extend(errors)
    return pairs


class LogfmtFormatter(LogFormatter):
    """
    Machine-parsable key=value lines.
    Example: t=2026-10-16T14:32:05.123+00:00 lvl=info msg="Security matched" id=7
    """

    def format(self, record: LogRecord) -> str:
        names = record.key_names
        parts = [
            f"{names.time}={_format_time(record)}",
            f"{names.lvl}={record.level_name}",
            f"{names.msg}={_logfmt_value(record.message)}",
        ]
        for key, value in resolve_lazy(record):
            parts.append(f"{_logfmt_key(key)}={_logfmt_value(value)}")
        return " ".join(parts)


class TerminalFormatter(LogFormatter):
    """
    Human-friendly format for interactive terminals.
    Example: INFO[10-16|14:32:05] Security matched                         id=7
    """

    COLORS = {
        Level.CRIT: "\033[35m",     # magenta
        Level.ERROR: "\033[31m",    # red
        Level.WARN: "\033[33m",     # yellow
        Level.INFO: "\033[32m",     # green
        Level.DEBUG: "\033[36m",    # cyan
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True):
        self.color = color

    def format(self, record: LogRecord) -> str:
        lvl = record.level_name.upper()
        if self.color:
            lvl = f"{self.COLORS.get(record.level, '')}{lvl}{self.RESET}"
        ts = record.time.strftime("%m-%d|%H:%M:%S")
        line = f"{lvl}[{ts}] {record.message}"

        pairs = resolve_lazy(record)
        if not pairs:
            return line
        line = f"{lvl}[{ts}] {record.message:<{MESSAGE_WIDTH}}"
        extras = []
        for key, value in pairs:
            key_str = _logfmt_key(key)
            if self.color:
                key_str = f"{self.COLORS.get(record.level, '')}{key_str}{self.RESET}"
            extras.append(f"{key_str}={_logfmt_value(value)}")
        return f"{line} {' '.join(extras)}"


class JsonFormatter(LogFormatter):
    """
    Structured JSON for machine parsing.
    One JSON object per line.
    """

    def __init__(self, pretty: bool = False):
        self.pretty = pretty

    def format(self, record: LogRecord) -> str:
        names = record.key_names
        obj: dict[str, Any] = {
            names.time: record.time.isoformat(),
            names.lvl: record.level_name,
            names.msg: record.message,
        }
        for key, value in resolve_lazy(record):
            obj[str(key)] = _serialize_value(value)
        if self.pretty:
            return json.dumps(obj, default=str, indent=2)
        return json.dumps(obj, default=str)


def _format_time(record: LogRecord) -> str:
    return record.time.isoformat(timespec="milliseconds")


def _logfmt_key(key: Any) -> str:
    if key is None:
        return "nil"
    s = str(key)
    if not s:
        return '""'
    return "".join("_" if c in ' ="' else c for c in s)


def _logfmt_value(v: Any) -> str:
    """Format a context value for key=value display."""
    if v is None:
        return "nil"
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, float):
        return f"{v:.3f}"
    if isinstance(v, Level):
        return str(v)
    s = str(v)
    if s == "" or any(c in s for c in ' ="\n\t\\'):
        return json.dumps(s)
    return s


def _serialize_value(v: Any) -> Any:
    """Make a value JSON-serializable."""
    if isinstance(v, Level):
        return str(v)
    if isinstance(v, (str, int, float, bool, type(None))):
        return v
    if isinstance(v, (list, tuple)):
        return [_serialize_value(i) for i in v]
    if isinstance(v, dict):
        return {str(k): _serialize_value(val) for k, val in v.items()}
    return str(v)
