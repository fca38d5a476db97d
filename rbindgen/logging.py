import datetime as _dt
import logging as _logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, TextIO

_LOGGER_NAMESPACE = "rbindgen"

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LEVEL_COLORS = {
    _logging.DEBUG: "\033[36m",
    _logging.INFO: "\033[37m",
    _logging.WARNING: "\033[33m",
    _logging.ERROR: "\033[31m",
    _logging.CRITICAL: "\033[41m",
}
_RESET = "\033[0m"


@dataclass
class LoggingState:
    log_path: Optional[str]
    console_level: int
    file_level: int


_state: Optional[LoggingState] = None


def _parse_level(value, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    name = str(value).strip().upper()
    if name.isdigit():
        return int(name)
    level = _logging.getLevelNamesMapping().get(name)
    if level is None:
        raise ValueError(f"Unknown log level: {value}")
    return level


class _ColorFormatter(_logging.Formatter):
    """Colours whole records by level when writing to a terminal."""

    def __init__(self, use_color: bool) -> None:
        super().__init__(fmt=_FORMAT, datefmt=_DATEFMT)
        self.use_color = use_color

    def format(self, record: _logging.LogRecord) -> str:
        text = super().format(record)
        color = _LEVEL_COLORS.get(record.levelno) if self.use_color else None
        return f"{color}{text}{_RESET}" if color else text


class _BelowLevelFilter(_logging.Filter):
    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: _logging.LogRecord) -> bool:
        return record.levelno < self.level


def _stream_handler(stream: TextIO, level: int, use_color: bool) -> _logging.Handler:
    handler = _logging.StreamHandler(stream=stream)
    handler.setLevel(level)
    isatty = getattr(stream, "isatty", None)
    handler.setFormatter(_ColorFormatter(use_color and bool(isatty and isatty())))
    return handler


def _console_handlers(stream: Optional[TextIO], level: int, use_color: bool) -> list[_logging.Handler]:
    if stream is not None:
        return [_stream_handler(stream, level, use_color)]
    # bindings may be written to stdout; only records below ERROR share it
    below_error = _stream_handler(sys.stdout, level, use_color)
    below_error.addFilter(_BelowLevelFilter(_logging.ERROR))
    errors = _stream_handler(sys.stderr, max(level, _logging.ERROR), use_color)
    return [below_error, errors]


def _log_file_name(pattern: str, timestamp_format: str) -> str:
    stamp = _dt.datetime.now().strftime(timestamp_format)
    return pattern.format(timestamp=stamp, pid=os.getpid())


def get_logger(name: Optional[str] = None) -> _logging.Logger:
    if name is None:
        return _logging.getLogger(_LOGGER_NAMESPACE)
    if name == _LOGGER_NAMESPACE or name.startswith(f"{_LOGGER_NAMESPACE}."):
        return _logging.getLogger(name)
    return _logging.getLogger(f"{_LOGGER_NAMESPACE}.{name}")


def configure_logging(
    config: Dict[str, Any],
    *,
    console_level_override: Optional[str] = None,
    file_level_override: Optional[str] = None,
    log_dir_override: Optional[str] = None,
    disable_color: bool = False,
    force_reconfigure: bool = False,
    console_stream: Optional[TextIO] = None,
) -> LoggingState:
    """Install the console (and optional file) handlers of the ``rbindgen`` logger.

    Console records below ERROR go to stdout and the rest to stderr, unless
    ``console_stream`` is given, which then receives all of them. A log file
    is only written when ``[logging].dir`` is set or ``log_dir_override`` is
    given.
    """
    global _state

    settings: Dict[str, Any] = (config or {}).get("logging", {})
    console_level = _parse_level(console_level_override or settings.get("console_level"), _logging.WARNING)
    file_level = _parse_level(file_level_override or settings.get("file_level"), _logging.DEBUG)

    logger = get_logger()
    if logger.handlers and not force_reconfigure and _state is not None:
        return _state

    log_dir = log_dir_override or settings.get("dir") or None
    use_color = bool(settings.get("color", True)) and not disable_color

    logger.handlers.clear()
    logger.propagate = False
    for handler in _console_handlers(console_stream, console_level, use_color):
        logger.addHandler(handler)

    log_path = None
    if log_dir:
        log_dir = os.path.abspath(log_dir)
        os.makedirs(log_dir, exist_ok=True)
        log_path = os.path.join(log_dir, _log_file_name(
            settings.get("filename_pattern", "rbindgen-{timestamp}.log"),
            settings.get("timestamp_format", "%Y%m%dT%H%M%S"),
        ))
        file_handler = _logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(_logging.Formatter(_FORMAT, _DATEFMT))
        logger.addHandler(file_handler)
        logger.setLevel(min(console_level, file_level))
    else:
        logger.setLevel(console_level)

    _state = LoggingState(log_path=log_path, console_level=console_level, file_level=file_level)
    return _state


def get_logging_state() -> Optional[LoggingState]:
    return _state


######## Diagnostic sinks handed to a generation run ########
class Logger(Protocol):
    """Receives the user-facing diagnostics of one generation run.

    Callbacks are invoked synchronously on the thread running the pass.
    """

    def error(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...


class NullLogger:
    def error(self, msg: str) -> None:
        pass

    def warn(self, msg: str) -> None:
        pass


class StdLogger:
    """Forwards run diagnostics to the ``rbindgen`` package logger."""

    def __init__(self, name: Optional[str] = None):
        self._logger = get_logger(name)

    def error(self, msg: str) -> None:
        self._logger.error(msg)

    def warn(self, msg: str) -> None:
        self._logger.warning(msg)


class CollectingLogger:
    def __init__(self):
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def error(self, msg: str) -> None:
        self.errors.append(msg)

    def warn(self, msg: str) -> None:
        self.warnings.append(msg)


class SpanLogger:
    """Prefixes every message with the location the run was invoked from."""

    def __init__(self, inner: Logger, span):
        self._inner = inner
        self._span = span

    def error(self, msg: str) -> None:
        self._inner.error(f"{self._span}: {msg}")

    def warn(self, msg: str) -> None:
        self._inner.warn(f"{self._span}: {msg}")
