"""qrbrand structured logging with audit events and call tracing."""

import functools
import json
import logging
import sys
import time
import traceback
from datetime import datetime, timezone

# Custom AUDIT level (between WARNING=30 and ERROR=40)
AUDIT = 35
logging.addLevelName(AUDIT, "AUDIT")

ROOT_LOGGER = "qrbrand"

# Library use stays silent until setup_logging installs handlers
logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


def _truncate(value: object, max_len: int = 80) -> str:
    """Truncate a string for safe logging."""
    s = str(value)
    if len(s) > max_len:
        return s[:max_len] + "..."
    return s


def _summarize(value: object) -> str:
    """Short description of a return value; images and arrays report their shape."""
    if isinstance(value, (str, int, float, bool)):
        return _truncate(repr(value), 80)
    if isinstance(value, (list, tuple)):
        return f"{type(value).__name__}[{len(value)}]"
    if isinstance(value, dict):
        return f"dict[{len(value)} keys]"
    size = getattr(value, "size", None)
    if isinstance(size, tuple) and len(size) == 2:
        return f"{type(value).__name__}[{size[0]}x{size[1]}]"
    shape = getattr(value, "shape", None)
    if isinstance(shape, tuple):
        return f"{type(value).__name__}{list(shape)}"
    return type(value).__name__


def _clock(record: logging.LogRecord, pattern: str) -> str:
    """UTC wall-clock time of a record, to the millisecond."""
    stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return stamp.strftime(pattern)[:-3]


def _plain_message(record: logging.LogRecord) -> str:
    """Free-form message of a record that is not a structured event."""
    if getattr(record, "event", None) is None:
        return record.getMessage()
    return ""


def _exception_text(record: logging.LogRecord) -> list[str]:
    if record.exc_info and record.exc_info[1]:
        return traceback.format_exception(*record.exc_info)
    return []


class JsonFormatter(logging.Formatter):
    """One JSON object per line: ts, level, src, then event/ctx or msg."""

    def format(self, record):
        entry = {"ts": _clock(record, "%Y-%m-%dT%H:%M:%S.%f") + "Z",
                 "level": record.levelname, "src": record.name}
        for key in ("event", "duration_ms", "ctx"):
            if hasattr(record, key):
                entry[key] = getattr(record, key)
        if "duration_ms" in entry:
            entry["duration_ms"] = round(entry["duration_ms"], 2)
        message = _plain_message(record)
        if message:
            entry["msg"] = message
        tb = _exception_text(record)
        if tb:
            entry["traceback"] = tb
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output for terminals."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "AUDIT": "\033[35m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
    }
    RESET = "\033[0m"

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelname, "")
        fields = [_clock(record, "%H:%M:%S.%f"),
                  f"{color}{record.levelname:5s}{self.RESET}",
                  f"[{record.name}]"]
        event = getattr(record, "event", None)
        if event is not None:
            fields.append(event)
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            fields.append(f"({duration:.1f}ms)")
        ctx = getattr(record, "ctx", None)
        if ctx:
            fields.append(" ".join(f"{k}={_truncate(v)}" for k, v in ctx.items()))
        else:
            message = _plain_message(record)
            if message:
                fields.append(message)
        tb = _exception_text(record)
        if tb:
            fields.append("\n" + "".join(tb))
        return " ".join(fields)


def setup_logging(level: str = "INFO", log_file: str | None = None, json_format: bool = False):
    """Install qrbrand's handlers on its root logger, replacing any earlier ones.

    The console handler writes to stderr, so stdout is left to the command's
    own output. A ``log_file`` always receives JSON lines regardless of
    ``json_format``, which only affects the console. Unknown level names
    fall back to INFO; ``"AUDIT"`` is accepted.
    """
    root = logging.getLogger(ROOT_LOGGER)
    level_no = logging.getLevelName(level.upper())
    root.setLevel(level_no if isinstance(level_no, int) else logging.INFO)
    root.handlers.clear()

    handlers = [(logging.StreamHandler(sys.stderr), JsonFormatter() if json_format else ConsoleFormatter())]
    if log_file:
        handlers.append((logging.FileHandler(log_file), JsonFormatter()))
    for handler, formatter in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def get_logger(module_name: str) -> logging.Logger:
    """Get a logger scoped under the qrbrand namespace."""
    return logging.getLogger(f"{ROOT_LOGGER}.{module_name}")


def _emit(log: logging.Logger, level: int, event: str, ctx: dict,
          duration_ms: float | None = None, exc_info=None):
    record = log.makeRecord(
        name=log.name, level=level, fn="", lno=0,
        msg="", args=(), exc_info=exc_info,
    )
    record.event = event
    record.ctx = ctx
    if duration_ms is not None:
        record.duration_ms = duration_ms
    log.handle(record)


def audit(event: str, logger: logging.Logger | None = None, **context):
    """Emit an AUDIT-level structured log entry.

    Args:
        event: Machine-readable event tag (e.g., "qr.rendered").
        logger: Logger to use. Defaults to the qrbrand root.
        **context: Key-value pairs for the event context.
    """
    log = logger or logging.getLogger(ROOT_LOGGER)
    if not log.isEnabledFor(AUDIT):
        return
    _emit(log, AUDIT, event, context)


def _describe_arg(value: object) -> str:
    """Images, arrays and long reprs are summarized; everything else is shown."""
    kind = type(value).__name__
    text = repr(value)
    if len(text) > 100 or "Image" in kind or kind == "ndarray":
        return f"<{_summarize(value)}>"
    return _truncate(text)


def trace(func=None, *, logger_name: str | None = None):
    """Log each call of the wrapped function with its timing.

    Emits ``<name>.enter`` at DEBUG with summarized arguments,
    ``<name>.done`` at INFO with the elapsed time and a result summary, or
    ``<name>.error`` at ERROR with the traceback before re-raising. Usable
    bare (``@trace``) or with a logger name (``@trace(logger_name="x")``).
    """
    def decorator(fn):
        name = fn.__name__
        log = get_logger(logger_name or fn.__module__.replace(f"{ROOT_LOGGER}.", ""))

        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            if log.isEnabledFor(logging.DEBUG):
                _emit(log, logging.DEBUG, f"{name}.enter", {
                    "args": [_describe_arg(a) for a in args],
                    "kwargs": {k: _truncate(repr(v)) for k, v in kwargs.items()},
                })

            started = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
            except Exception:
                if log.isEnabledFor(logging.ERROR):
                    _emit(log, logging.ERROR, f"{name}.error", {"function": name},
                          duration_ms=(time.perf_counter() - started) * 1000,
                          exc_info=sys.exc_info())
                raise
            if log.isEnabledFor(logging.INFO):
                _emit(log, logging.INFO, f"{name}.done", {"result": _summarize(result)},
                      duration_ms=(time.perf_counter() - started) * 1000)
            return result

        return wrapper

    return decorator(func) if func is not None else decorator
