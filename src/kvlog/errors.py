"""
Exception types.

Each error also derives from the builtin a caller would naturally catch,
so `except ValueError` still works around level parsing.
"""


class KvlogError(Exception):
    """Base class for every error raised by kvlog."""


class InvalidLevelName(KvlogError, ValueError):
    """A level string matched none of the recognized names."""

    def __init__(self, name: str, valid: list[str]):
        self.name = name
        self.valid = valid
        super().__init__(
            f"Unknown level: {name!r}. Valid levels: {', '.join(valid)}"
        )


class HandlerError(KvlogError, OSError):
    """A handler failed to write a record."""


class LogPanic(KvlogError, RuntimeError):
    """Raised by panic()/panicf() after the critical record was written."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
