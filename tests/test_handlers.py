"""
Tests for handlers and formatters.

Covers:
- SwapHandler (get/swap/log, nothing installed)
- Stream, file, func, multi, level-filter and ring-buffer handlers
- Terminal detection for stdout/stderr handlers
- Formatters (logfmt, terminal, JSON) including Lazy evaluation
"""

import io
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from kvlog.context import ERROR_KEY, Lazy
from kvlog.errors import HandlerError
from kvlog.formatters import JsonFormatter, LogfmtFormatter, TerminalFormatter, resolve_lazy
from kvlog.handlers import (
    DiscardHandler,
    FileHandler,
    FuncHandler,
    LevelFilterHandler,
    MultiHandler,
    RingBufferHandler,
    StreamHandler,
    SwapHandler,
    stderr_handler,
    stdout_handler,
)
from kvlog.records import Level, LogRecord, RecordKeyNames

TS = datetime(2026, 10, 16, 14, 32, 5, 123000, tzinfo=timezone.utc)


def _record(level=Level.INFO, message="hello", context=(), key_names=None):
    kwargs = {}
    if key_names is not None:
        kwargs["key_names"] = key_names
    return LogRecord(time=TS, level=level, message=message, context=tuple(context), **kwargs)


class _Tty(io.StringIO):
    def isatty(self):
        return True


# ═══════════════════════════════════════════════════════════════════
#  SwapHandler
# ═══════════════════════════════════════════════════════════════════

class TestSwapHandler:
    def test_empty_get_is_discard(self):
        assert isinstance(SwapHandler().get(), DiscardHandler)

    def test_empty_log_is_noop(self):
        SwapHandler().log(_record())

    def test_swap_and_get(self):
        ring = RingBufferHandler()
        swap = SwapHandler()
        assert swap.swap(ring) is None
        assert swap.get() is ring

    def test_swap_returns_previous(self):
        a, b = RingBufferHandler(), RingBufferHandler()
        swap = SwapHandler(a)
        assert swap.swap(b) is a

    def test_log_forwards_to_current(self):
        a, b = RingBufferHandler(), RingBufferHandler()
        swap = SwapHandler(a)
        swap.log(_record(message="one"))
        swap.swap(b)
        swap.log(_record(message="two"))
        assert [r.message for r in a.get_recent()] == ["one"]
        assert [r.message for r in b.get_recent()] == ["two"]

    def test_cannot_wrap_itself(self):
        swap = SwapHandler()
        with pytest.raises(ValueError):
            swap.swap(swap)

    def test_errors_propagate(self):
        broken = MagicMock()
        broken.log.side_effect = HandlerError("nope")
        swap = SwapHandler(broken)
        with pytest.raises(HandlerError):
            swap.log(_record())


# ═══════════════════════════════════════════════════════════════════
#  Concrete handlers
# ═══════════════════════════════════════════════════════════════════

class TestStreamHandler:
    def test_writes_line(self):
        stream = io.StringIO()
        StreamHandler(stream).log(_record(context=("k", "v")))
        out = stream.getvalue()
        assert out.endswith("\n")
        assert "msg=hello k=v" in out

    def test_closed_stream_raises_handler_error(self):
        stream = io.StringIO()
        stream.close()
        with pytest.raises(HandlerError, match="write to stream failed"):
            StreamHandler(stream).log(_record())

    def test_handler_error_is_os_error(self):
        stream = io.StringIO()
        stream.close()
        with pytest.raises(OSError):
            StreamHandler(stream).log(_record())


class TestFileHandler:
    def test_writes_to_file(self, tmp_path):
        path = tmp_path / "app.log"
        handler = FileHandler(path)
        handler.log(_record(message="file test"))
        handler.close()
        assert "file test" in path.read_text()

    def test_appends(self, tmp_path):
        path = tmp_path / "app.log"
        for msg in ("first", "second"):
            handler = FileHandler(path)
            handler.log(_record(message=msg))
            handler.close()
        lines = path.read_text().splitlines()
        assert len(lines) == 2

    def test_creates_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "test.log"
        handler = FileHandler(path, JsonFormatter())
        handler.log(_record())
        handler.close()
        assert json.loads(path.read_text())["msg"] == "hello"

    def test_close_idempotent(self, tmp_path):
        handler = FileHandler(tmp_path / "x.log")
        handler.close()
        handler.close()

    def test_unwritable_path_raises_handler_error(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        handler = FileHandler(blocker / "app.log")
        with pytest.raises(HandlerError):
            handler.log(_record())


class TestFuncHandler:
    def test_calls_function(self):
        seen = []
        FuncHandler(seen.append).log(_record())
        assert len(seen) == 1


class TestMultiHandler:
    def test_fans_out(self):
        a, b = RingBufferHandler(), RingBufferHandler()
        MultiHandler(a, b).log(_record())
        assert a.count == 1 and b.count == 1

    def test_tries_all_then_raises_first(self):
        broken = MagicMock()
        broken.log.side_effect = HandlerError("first")
        also_broken = MagicMock()
        also_broken.log.side_effect = HandlerError("second")
        ring = RingBufferHandler()
        with pytest.raises(HandlerError, match="first"):
            MultiHandler(broken, ring, also_broken).log(_record())
        assert ring.count == 1
        also_broken.log.assert_called_once()


class TestLevelFilterHandler:
    def test_filters_less_severe(self):
        ring = RingBufferHandler()
        handler = LevelFilterHandler(Level.WARN, ring)
        for level in Level:
            handler.log(_record(level=level))
        assert [r.level for r in ring.get_recent()] == [Level.CRIT, Level.ERROR, Level.WARN]

    def test_accepts_level_name(self):
        handler = LevelFilterHandler("error", RingBufferHandler())
        assert handler.max_level == Level.ERROR


class TestRingBufferHandler:
    def test_ring_buffer(self):
        ring = RingBufferHandler(size=5)
        for i in range(10):
            ring.log(_record(message=f"msg {i}"))
        assert ring.count == 5
        recent = ring.get_recent(n=3)
        assert len(recent) == 3
        assert recent[-1].message == "msg 9"

    def test_filter_by_level(self):
        ring = RingBufferHandler()
        ring.log(_record(level=Level.DEBUG))
        ring.log(_record(level=Level.ERROR))
        assert len(ring.get_recent(max_level=Level.WARN)) == 1

    def test_zero_returns_nothing(self):
        ring = RingBufferHandler()
        ring.log(_record())
        assert ring.get_recent(n=0) == []

    def test_clear(self):
        ring = RingBufferHandler()
        ring.log(_record())
        ring.clear()
        assert ring.count == 0


class TestTerminalDetection:
    def test_stdout_plain_when_not_tty(self, monkeypatch):
        monkeypatch.setattr("sys.stdout", io.StringIO())
        assert isinstance(stdout_handler().formatter, LogfmtFormatter)

    def test_stdout_terminal_when_tty(self, monkeypatch):
        monkeypatch.setattr("sys.stdout", _Tty())
        assert isinstance(stdout_handler().formatter, TerminalFormatter)

    def test_stderr_terminal_when_tty(self, monkeypatch):
        stream = _Tty()
        monkeypatch.setattr("sys.stderr", stream)
        handler = stderr_handler()
        assert handler.stream is stream
        assert isinstance(handler.formatter, TerminalFormatter)


# ═══════════════════════════════════════════════════════════════════
#  Formatters
# ═══════════════════════════════════════════════════════════════════

class TestResolveLazy:
    def test_evaluates(self):
        record = _record(context=("n", Lazy(lambda: 41 + 1)))
        assert resolve_lazy(record) == [("n", 42)]

    def test_failure_adds_error_pair(self):
        def bad():
            raise RuntimeError("nope")

        pairs = resolve_lazy(_record(context=("n", Lazy(bad), "ok", 1)))
        assert pairs[0][0] == "n"
        assert "nope" in pairs[0][1]
        assert pairs[1] == ("ok", 1)
        assert pairs[2][0] == ERROR_KEY

    def test_evaluated_on_every_format(self):
        counter = iter(range(10))
        record = _record(context=("tick", Lazy(lambda: next(counter))))
        formatter = LogfmtFormatter()
        assert "tick=0" in formatter.format(record)
        assert "tick=1" in formatter.format(record)


class TestLogfmtFormatter:
    def test_basic_format(self):
        out = LogfmtFormatter().format(_record(context=("port", 8080)))
        assert out == "t=2026-10-16T14:32:05.123+00:00 lvl=info msg=hello port=8080"

    def test_quotes_values_with_spaces(self):
        out = LogfmtFormatter().format(_record(message="two words", context=("k", 'a "b"')))
        assert 'msg="two words"' in out
        assert 'k="a \\"b\\""' in out

    def test_none_and_bool(self):
        out = LogfmtFormatter().format(_record(context=("a", None, "b", True)))
        assert "a=nil b=true" in out

    def test_custom_key_names(self):
        names = RecordKeyNames(time="ts", msg="message", lvl="level")
        out = LogfmtFormatter().format(_record(key_names=names))
        assert out.startswith("ts=")
        assert "level=info" in out
        assert "message=hello" in out

    def test_odd_marker_rendered(self):
        out = LogfmtFormatter().format(
            _record(context=("lonely", None, ERROR_KEY, "Normalized odd number of arguments by adding nil"))
        )
        assert "lonely=nil" in out
        assert f'{ERROR_KEY}="Normalized odd number' in out


class TestTerminalFormatter:
    def test_plain(self):
        out = TerminalFormatter(color=False).format(_record(level=Level.WARN, message="careful"))
        assert out == "WARN[10-16|14:32:05] careful"

    def test_context_padded(self):
        out = TerminalFormatter(color=False).format(_record(context=("k", 1)))
        assert out.startswith("INFO[10-16|14:32:05] hello" + " " * 35)
        assert out.endswith(" k=1")

    def test_color_codes_applied(self):
        out = TerminalFormatter(color=True).format(_record(level=Level.ERROR))
        assert "\033[31m" in out
        assert "\033[0m" in out


class TestJsonFormatter:
    def test_valid_json(self):
        out = JsonFormatter().format(_record(context=("port", 8080, "tags", ("a", "b"))))
        parsed = json.loads(out)
        assert parsed["lvl"] == "info"
        assert parsed["msg"] == "hello"
        assert parsed["port"] == 8080
        assert parsed["tags"] == ["a", "b"]

    def test_serializes_complex_types(self):
        out = JsonFormatter().format(_record(context=("obj", object(), "nested", {"a": {"b": 1}})))
        parsed = json.loads(out)
        assert parsed["obj"].startswith("<object")
        assert parsed["nested"] == {"a": {"b": 1}}

    def test_level_value_serialized_as_name(self):
        parsed = json.loads(JsonFormatter().format(_record(context=("floor", Level.WARN))))
        assert parsed["floor"] == "warn"
