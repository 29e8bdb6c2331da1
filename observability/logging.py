"""Logging for SiteChat.

Crawl and session context (``crawl_url``, ``domain``, ``session_id``,
``page_url``) is bound with :func:`log_context` and attached to every record
by :class:`CrawlContextFilter`, so both the console and the JSON file show
which crawl or session a line belongs to.
"""

from __future__ import annotations
import contextvars
import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

CONTEXT_FIELDS = ('crawl_url', 'domain', 'session_id', 'page_url')

QUIET_LOGGERS = ('urllib3', 'uvicorn', 'httpx', 'anthropic')

_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar('sitechat_log_context', default={})

_STANDARD_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', None, None))) | {'message', 'asctime'}


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Bind crawl/session fields to every record logged inside the block.

    Nested blocks extend the outer context; ``None`` values are ignored.
    """
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context fields: {sorted(unknown)}")

    merged = {**_context.get(), **{k: v for k, v in fields.items() if v is not None}}
    token = _context.set(merged)
    try:
        yield merged
    finally:
        _context.reset(token)


class CrawlContextFilter(logging.Filter):
    """Copy the bound crawl/session context onto each record.

    Values passed explicitly through ``extra`` win over the bound ones.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def _context_of(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: getattr(record, key) for key in CONTEXT_FIELDS if getattr(record, key, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, crawl/session fields grouped under ``context``."""

    def __init__(self, service_name: str = "sitechat"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
                                 .isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
        }

        context = _context_of(record)
        if context:
            entry["context"] = context

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and key not in CONTEXT_FIELDS:
                entry[key] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Console lines: ``time | LEVEL | logger | message [key=value ...]``."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime('%H:%M:%S')
        level = record.levelname
        if self.use_colors and level in self.COLORS:
            level = f"{self.COLORS[level]}{level:8}{self.RESET}"
        else:
            level = f"{level:8}"

        line = f"{timestamp} | {level} | {record.name} | {record.getMessage()}"

        context = _context_of(record)
        if context:
            line += " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    use_json: bool = False,
    use_colors: Optional[bool] = None,
    service_name: str = "sitechat"
) -> None:
    """Configure the root logger for the API or the CLI.

    Args:
        level: Log level name; unknown names fall back to INFO
        log_file: Optional path of a JSON log file, parent directories are created
        use_json: Emit JSON on the console instead of colored lines
        use_colors: Color console lines; defaults to whether stdout is a terminal
        service_name: ``service`` field of JSON entries
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    if use_colors is None:
        use_colors = sys.stdout.isatty()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)

    handlers = [logging.StreamHandler(sys.stdout)]
    handlers[0].setFormatter(JSONFormatter(service_name) if use_json else ColoredFormatter(use_colors))

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(JSONFormatter(service_name))
        handlers.append(file_handler)

    context_filter = CrawlContextFilter()
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.addFilter(context_filter)
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def setup_logging_from_settings(settings) -> None:
    """Configure logging from a :class:`config.settings.Settings`."""
    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        use_json=settings.log_json
    )
