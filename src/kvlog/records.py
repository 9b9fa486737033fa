"""
Log records and level definitions.

Levels are ordered by severity with the most severe first: a logger whose
floor is WARN emits CRIT, ERROR and WARN, and drops INFO and DEBUG.
"""

import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional

from kvlog.errors import InvalidLevelName

TIME_KEY = "t"
LEVEL_KEY = "lvl"
MESSAGE_KEY = "msg"


class Level(IntEnum):
    """Log levels. Lower value = more severe."""
    CRIT = 0
    ERROR = 1
    WARN = 2
    INFO = 3
    DEBUG = 4

    def __str__(self) -> str:
        return _SHORT_NAMES[self]

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)

    @classmethod
    def from_name(cls, name: str) -> "Level":
        """Resolve level from its short name or long alias."""
        try:
            return _PARSE_NAMES[name]
        except KeyError:
            raise InvalidLevelName(name, list(_PARSE_NAMES)) from None

    @classmethod
    def from_value(cls, value: "int | str | Level") -> "Level":
        """Resolve level from int ordinal or string name."""
        if isinstance(value, Level):
            return value
        if isinstance(value, str):
            return cls.from_name(value)
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise ValueError(
                    f"No level with value {value}. "
                    f"Valid values: {', '.join(f'{m.name}={m.value}' for m in cls)}"
                ) from None
        raise TypeError(f"Expected int or str, got {type(value).__name__}")


_SHORT_NAMES: dict[Level, str] = {
    Level.CRIT: "crit",
    Level.ERROR: "eror",
    Level.WARN: "warn",
    Level.INFO: "info",
    Level.DEBUG: "dbug",
}

_PARSE_NAMES: dict[str, Level] = {
    "crit": Level.CRIT,
    "error": Level.ERROR,
    "eror": Level.ERROR,
    "warn": Level.WARN,
    "info": Level.INFO,
    "debug": Level.DEBUG,
    "dbug": Level.DEBUG,
}


@dataclass(frozen=True)
class RecordKeyNames:
    """Field names a formatter uses for the fixed record properties."""
    time: str = TIME_KEY
    msg: str = MESSAGE_KEY
    lvl: str = LEVEL_KEY


DEFAULT_KEY_NAMES = RecordKeyNames()


@dataclass(frozen=True)
class CallSite:
    """Source location of a logging call."""
    filename: str
    lineno: int
    function: str

    def __str__(self) -> str:
        return f"{os.path.basename(self.filename)}:{self.lineno}"

    @classmethod
    def capture(cls, depth: int) -> Optional["CallSite"]:
        """
        Capture the frame `depth` levels above the caller of capture().

        depth=0 is the function calling capture() itself. Returns None when
        the stack is shallower than requested.
        """
        try:
            frame = sys._getframe(depth + 1)
        except ValueError:
            return None
        code = frame.f_code
        return cls(filename=code.co_filename, lineno=frame.f_lineno, function=code.co_name)


@dataclass(frozen=True)
class LogRecord:
    """
    Immutable log record. Created by Logger._write(), handed to the handler.

    `context` is a flat, even-length sequence of alternating keys and values.
    """
    time: datetime
    level: Level
    message: str
    context: tuple = ()
    call: Optional[CallSite] = None
    key_names: RecordKeyNames = field(default=DEFAULT_KEY_NAMES)

    @classmethod
    def create(
        cls,
        level: Level,
        message: str,
        context: tuple = (),
        call: Optional[CallSite] = None,
        key_names: RecordKeyNames = DEFAULT_KEY_NAMES,
    ) -> "LogRecord":
        """Factory method with auto-timestamp."""
        return cls(
            time=datetime.now(timezone.utc),
            level=level,
            message=message,
            context=tuple(context),
            call=call,
            key_names=key_names,
        )

    @property
    def level_name(self) -> str:
        return str(self.level)

    def pairs(self) -> list[tuple[Any, Any]]:
        """Context as (key, value) pairs, in order."""
        ctx = self.context
        return [(ctx[i], ctx[i + 1]) for i in range(0, len(ctx) - 1, 2)]

    def context_dict(self) -> dict[str, Any]:
        """Context as a dict. Later duplicates win."""
        return {str(k): v for k, v in self.pairs()}
