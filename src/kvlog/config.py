"""
Pydantic configuration schemas for kvlog.

Every field is optional with a sensible default; an empty YAML document
yields a DEBUG logger writing to stdout.

Usage:
    config = LoggerConfig.from_yaml("logging.yaml")
    configure(kvlog.root(), config)

Example YAML:
    level: info
    handlers:
      console: {type: stdout, formatter: terminal}
      audit:   {type: file, path: logs/audit.log, formatter: json, max_level: warn}
      recent:  {type: ring_buffer, size: 500}
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import yaml
from pydantic import BaseModel, field_validator

from kvlog.formatters import JsonFormatter, LogFormatter, LogfmtFormatter, TerminalFormatter
from kvlog.handlers import (
    DiscardHandler,
    FileHandler,
    Handler,
    LevelFilterHandler,
    MultiHandler,
    RingBufferHandler,
    stderr_handler,
    stdout_handler,
)
from kvlog.records import Level

if TYPE_CHECKING:
    from kvlog.core import Logger


class HandlerType(str, Enum):
    STDOUT = "stdout"
    STDERR = "stderr"
    FILE = "file"
    DISCARD = "discard"
    RING_BUFFER = "ring_buffer"


class FormatterType(str, Enum):
    LOGFMT = "logfmt"
    TERMINAL = "terminal"
    JSON = "json"


def _check_level(value: Any) -> Any:
    if value is None:
        return value
    Level.from_value(value)
    return value


class HandlerConfig(BaseModel):
    type: HandlerType
    formatter: Optional[FormatterType] = None   # stdout, stderr, file
    max_level: Optional[int | str] = None       # any
    path: Optional[str] = None                  # file
    color: Optional[bool] = None                # terminal formatter
    size: Optional[int] = None                  # ring_buffer

    @field_validator("max_level")
    @classmethod
    def validate_level(cls, v: Any) -> Any:
        return _check_level(v)

    @field_validator("size")
    @classmethod
    def validate_size(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError(f"size must be at least 1, got {v}")
        return v


class LoggerConfig(BaseModel):
    level: int | str = "debug"
    handlers: Optional[dict[str, HandlerConfig]] = None

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: Any) -> Any:
        return _check_level(v)

    @property
    def resolved_level(self) -> Level:
        return Level.from_value(self.level)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "LoggerConfig":
        """Load and validate from a YAML file."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.from_yaml_string(raw)

    @classmethod
    def from_yaml_string(cls, yaml_string: str) -> "LoggerConfig":
        """Load and validate from a YAML string."""
        data = yaml.safe_load(yaml_string)
        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "LoggerConfig":
        return cls.model_validate(data)

    def to_dict(self, exclude_none: bool = True) -> dict:
        return self.model_dump(mode="json", exclude_none=exclude_none)


# ── Builders ──────────────────────────────────────────────────────────

def build_formatter(cfg: HandlerConfig) -> LogFormatter | None:
    """Formatter named in `cfg`, or None to let the handler choose."""
    if cfg.formatter is None:
        return None
    if cfg.formatter == FormatterType.LOGFMT:
        return LogfmtFormatter()
    if cfg.formatter == FormatterType.TERMINAL:
        return TerminalFormatter(color=True if cfg.color is None else cfg.color)
    if cfg.formatter == FormatterType.JSON:
        return JsonFormatter()
    raise ValueError(f"Unknown formatter '{cfg.formatter}'")


def build_handler(name: str, cfg: HandlerConfig | dict) -> Handler:
    """Build a handler from its config entry."""
    if isinstance(cfg, dict):
        cfg = HandlerConfig.model_validate(cfg)
    formatter = build_formatter(cfg)

    handler: Handler
    if cfg.type == HandlerType.STDOUT:
        handler = stdout_handler()
        if formatter is not None:
            handler.formatter = formatter
    elif cfg.type == HandlerType.STDERR:
        handler = stderr_handler()
        if formatter is not None:
            handler.formatter = formatter
    elif cfg.type == HandlerType.FILE:
        if not cfg.path:
            raise ValueError(f"Handler '{name}' of type file requires a path")
        handler = FileHandler(cfg.path, formatter)
    elif cfg.type == HandlerType.DISCARD:
        handler = DiscardHandler()
    elif cfg.type == HandlerType.RING_BUFFER:
        handler = RingBufferHandler(size=10000 if cfg.size is None else cfg.size)
    else:
        raise ValueError(f"Unknown handler type '{cfg.type}' for handler '{name}'")

    if cfg.max_level is not None:
        handler = LevelFilterHandler(Level.from_value(cfg.max_level), handler)
    return handler


def build_handlers(config: LoggerConfig) -> Handler:
    """One handler for the whole config: stdout when empty, a MultiHandler when several."""
    if not config.handlers:
        return stdout_handler()
    handlers = [build_handler(name, cfg) for name, cfg in config.handlers.items()]
    if len(handlers) == 1:
        return handlers[0]
    return MultiHandler(*handlers)


def configure(logger: "Logger", config: LoggerConfig | dict) -> Handler:
    """Apply `config` to `logger`. Returns the handler that was installed."""
    if isinstance(config, dict):
        config = LoggerConfig.from_dict(config)
    handler = build_handlers(config)
    logger.set_level(config.resolved_level)
    logger.set_handler(handler)
    return handler
