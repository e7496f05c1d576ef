"""
Structured logging implementation for chat content moderation.

Provides JSON and console logging formats with configurable levels,
file rotation, and redaction of credentials in structured context.
"""

import json
import logging
import logging.handlers
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional


# Compared with the last word of a key: api_key and access_token match,
# author_id and keyword_count do not
SENSITIVE_KEYS = {
    'token', 'password', 'secret', 'key', 'credential', 'authorization'
}

# Attributes present on every LogRecord; anything else came in through extra=
_RESERVED_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', None, None))) | {'message', 'asctime'}


def redact(context: Dict[str, Any]) -> Dict[str, Any]:
    """Mask values whose key looks like a credential."""
    filtered = {}
    for key, value in context.items():
        last_word = key.lower().replace('-', '_').rsplit('_', 1)[-1]
        if last_word in SENSITIVE_KEYS:
            # Show only first/last few characters of long secrets
            if isinstance(value, str) and len(value) > 8:
                filtered[key] = f"{value[:4]}...{value[-4:]}"
            else:
                filtered[key] = "[REDACTED]"
        else:
            filtered[key] = value
    return filtered


def extract_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Collect the structured fields attached to a log record."""
    context = {
        key: value for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and key != 'extra_data'
    }
    extra_data = getattr(record, 'extra_data', None)
    if extra_data:
        context.update(extra_data)
    return redact(context)


class JsonFormatter(logging.Formatter):
    """Custom formatter for JSON log output."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        log_data.update(extract_context(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ConsoleFormatter(logging.Formatter):
    """Custom formatter for console output with colors and structured data."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'      # Reset
    }

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output."""
        color = self.COLORS.get(record.levelname, '') if self.use_colors else ''
        reset = self.COLORS['RESET'] if self.use_colors else ''

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        message = f"{timestamp} {color}{record.levelname:<8}{reset} [{record.name}] {record.getMessage()}"

        context = extract_context(record)
        if context:
            message += " | " + ", ".join(f"{key}={value}" for key, value in context.items())

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


def setup_logging(
    level: str = "INFO",
    format_type: str = "console",
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    logger_name: str = "chatguard"
) -> logging.Logger:
    """
    Install handlers on the package logger.

    Module loggers (``logging.getLogger(__name__)``) propagate to it, so
    their ``extra`` context is rendered by the formatters above.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Output format ('json' or 'console')
        log_file: Path to log file (optional)
        max_file_size: Maximum file size before rotation (bytes)
        backup_count: Number of backup files to keep
        logger_name: Logger to configure

    Returns:
        The configured logger
    """
    root = logging.getLogger(logger_name)
    root.setLevel(getattr(logging, level.upper()))
    root.handlers.clear()
    root.propagate = False

    console_handler = logging.StreamHandler()
    if format_type == "json":
        console_handler.setFormatter(JsonFormatter())
    else:
        console_handler.setFormatter(ConsoleFormatter())
    root.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        # Always use JSON format for file output
        file_handler.setFormatter(JsonFormatter())
        root.addHandler(file_handler)

    return root


class StructuredLogger:
    """
    Logger wrapper that takes structured context as keyword arguments.

    Usage:
        logger = get_logger("chatguard.service")
        logger.info("Moderation enabled", backend="azure", threshold=0.8)
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _log(self, level: int, message: str, exc_info: bool = False, **context):
        extra = {'extra_data': redact(context)} if context else {}
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(self, message: str, **context):
        """Log debug message with context."""
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        """Log info message with context."""
        self._log(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        """Log warning message with context."""
        self._log(logging.WARNING, message, **context)

    def error(self, message: str, **context):
        """Log error message with context."""
        self._log(logging.ERROR, message, **context)

    def exception(self, message: str, **context):
        """Log exception with traceback."""
        self._log(logging.ERROR, message, exc_info=True, **context)


_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    """
    Get or create a structured logger instance.

    Args:
        name: Logger name

    Returns:
        StructuredLogger instance
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]
