"""
Runtime reconfiguration.

Provides runtime control over a logger without restart:
- Change its level
- Swap its handler, directly or from config
- Get status overview
- Access an in-memory ring buffer

Usage:
    reconfig = LoggerReconfig()
    reconfig.set_level("warn")
    reconfig.apply({"handlers": {"recent": {"type": "ring_buffer"}}})
    status = reconfig.status()
    recent = reconfig.get_buffer(n=50)
"""

from __future__ import annotations

from typing import Any

from kvlog.config import LoggerConfig, configure
from kvlog.core import Logger
from kvlog.handlers import (
    FileHandler,
    Handler,
    LevelFilterHandler,
    MultiHandler,
    RingBufferHandler,
    StreamHandler,
)
from kvlog.records import Level
from kvlog.rootlogger import root


class LoggerReconfig:
    """Runtime reconfiguration interface for a Logger (the root by default)."""

    def __init__(self, logger: Logger | None = None):
        self._log = logger or root()

    # ── Level management ──────────────────────────────────────

    def set_level(self, level: str | int | Level) -> None:
        self._log.set_level(level)

    def get_level(self) -> Level:
        return self._log.level

    # ── Handler management ────────────────────────────────────

    def set_handler(self, handler: Handler) -> None:
        self._log.set_handler(handler)

    def apply(self, config: LoggerConfig | dict) -> Handler:
        """Apply a full config: level plus freshly built handlers."""
        return configure(self._log, config)

    # ── Status ────────────────────────────────────────────────

    def status(self) -> dict[str, Any]:
        """
        Get complete logger status overview.

        Returns:
            {
                "level": int,
                "level_name": str,
                "context": [...],
                "handler": {"type": ..., ...},
            }
        """
        return {
            "level": int(self._log.level),
            "level_name": str(self._log.level),
            "context": [str(v) for v in self._log.context],
            "handler": _describe(self._log.get_handler()),
        }

    # ── Ring buffer access ────────────────────────────────────

    def get_buffer(self, n: int = 100, max_level: str | int | Level | None = None) -> list[dict[str, Any]]:
        """
        Read from the installed ring buffer, if any.

        Returns the records as plain dicts, oldest first.
        """
        buffer = _find_ring_buffer(self._log.get_handler())
        if buffer is None:
            return []

        level = Level.from_value(max_level) if max_level is not None else None
        return [
            {
                "time": r.time.isoformat(),
                "level": r.level_name,
                "message": r.message,
                "context": r.context_dict(),
                "call": str(r.call) if r.call else None,
            }
            for r in buffer.get_recent(n, level)
        ]

    def clear_buffer(self) -> None:
        buffer = _find_ring_buffer(self._log.get_handler())
        if buffer is not None:
            buffer.clear()


def _find_ring_buffer(handler: Handler) -> RingBufferHandler | None:
    if isinstance(handler, RingBufferHandler):
        return handler
    if isinstance(handler, LevelFilterHandler):
        return _find_ring_buffer(handler.handler)
    if isinstance(handler, MultiHandler):
        for child in handler.handlers:
            found = _find_ring_buffer(child)
            if found is not None:
                return found
    return None


def _describe(handler: Handler) -> dict[str, Any]:
    info: dict[str, Any] = {"type": type(handler).__name__}
    if isinstance(handler, (StreamHandler, FileHandler)):
        info["formatter"] = type(handler.formatter).__name__
    if isinstance(handler, FileHandler):
        info["path"] = str(handler.path)
    if isinstance(handler, RingBufferHandler):
        info["buffer_count"] = handler.count
        info["buffer_max"] = handler.size
    if isinstance(handler, LevelFilterHandler):
        info["max_level"] = str(handler.max_level)
        info["handler"] = _describe(handler.handler)
    if isinstance(handler, MultiHandler):
        info["handlers"] = [_describe(h) for h in handler.handlers]
    return info
