"""
Logging configuration and utilities for drivekit.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from drivekit.config.settings import get_settings
from drivekit.security.sanitizer import DataSanitizer, sanitize_dict


class JSONFormatter(logging.Formatter):
    """JSON log formatter with optional sanitization."""

    def __init__(self, *args, sanitize: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.sanitize = sanitize
        self.sanitizer = DataSanitizer() if sanitize else None

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        if self.sanitize and self.sanitizer:
            record = self.sanitizer.sanitize_log_record(record)

        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Session-scoped context
        for field in ("session_id", "command", "element_id", "url", "locator"):
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class SanitizingHandler(logging.Handler):
    """Log handler that sanitizes messages before passing to wrapped handler."""

    def __init__(self, handler: logging.Handler, sanitizer: Optional[DataSanitizer] = None):
        super().__init__()
        self.handler = handler
        self.sanitizer = sanitizer or DataSanitizer()
        self.setLevel(handler.level)

    def emit(self, record: logging.LogRecord) -> None:
        """Emit sanitized record to wrapped handler."""
        try:
            sanitized_record = self.sanitizer.sanitize_log_record(record)
            self.handler.emit(sanitized_record)
        except Exception:
            self.handleError(record)


class ContextLogAdapter(logging.LoggerAdapter):
    """Log adapter that stamps every record with fixed context (e.g. a session id)."""

    def process(
        self, msg: str, kwargs: Dict[str, Any]
    ) -> tuple[str, Dict[str, Any]]:
        """Add context to log records."""
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


TEXT_FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _with_redaction(handler: logging.Handler, format_type: str, sanitize: bool) -> logging.Handler:
    if format_type == "json":
        handler.setFormatter(JSONFormatter(sanitize=sanitize))
        return handler
    return SanitizingHandler(handler) if sanitize else handler


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None,
    sanitize_logs: Optional[bool] = None,
) -> logging.Logger:
    """
    Route drivekit's records to the console and, optionally, a file.

    JSON output goes to stdout; text output is rendered by rich on stderr.
    Every argument falls back to the corresponding setting.

    Returns:
        Root logger instance
    """
    settings = get_settings()
    level = getattr(logging, (log_level or settings.log_level).upper())
    format_type = log_format or settings.log_format
    file_path = log_file or settings.log_file
    sanitize = settings.sanitize_logs if sanitize_logs is None else sanitize_logs

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if format_type == "json":
        console: logging.Handler = logging.StreamHandler(sys.stdout)
    else:
        console = RichHandler(console=Console(stderr=True), rich_tracebacks=True)
    console.setLevel(level)
    root_logger.addHandler(_with_redaction(console, format_type, sanitize))

    if file_path:
        file_handler = logging.FileHandler(file_path)
        file_handler.setLevel(level)
        if format_type != "json":
            file_handler.setFormatter(logging.Formatter(TEXT_FILE_FORMAT))
        root_logger.addHandler(_with_redaction(file_handler, format_type, sanitize))

    root_logger.setLevel(level)
    for noisy in ("asyncio", "playwright"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str, **context: Any) -> logging.Logger:
    """
    Get a logger instance with optional context.

    Args:
        name: Logger name
        **context: Additional context to include in logs

    Returns:
        Logger instance
    """
    logger = logging.getLogger(name)

    if context:
        return ContextLogAdapter(logger, context)

    return logger


def log_driver_command(
    command: str,
    session_id: Optional[str] = None,
    params: Optional[Dict[str, Any]] = None,
    outcome: str = "received",
) -> None:
    """
    Log a protocol command passing through the dispatcher.

    Args:
        command: Command name
        session_id: Target session, if any
        params: Command parameters (sanitized before emission)
        outcome: received, success or error
    """
    logger = logging.getLogger("drivekit.commands")

    extra: Dict[str, Any] = {
        "command": command,
        "outcome": outcome,
    }

    if session_id:
        extra["session_id"] = session_id

    if params:
        # Redacted here too: records may reach handlers setup_logging did not install
        extra["params"] = sanitize_dict(params)

    logger.debug(f"Driver command {command}: {outcome}", extra=extra)


def log_performance_metric(
    metric_name: str,
    value: float,
    unit: str = "ms",
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log a performance metric.

    Args:
        metric_name: Name of the metric
        value: Metric value
        unit: Unit of measurement
        context: Additional context
    """
    logger = logging.getLogger("drivekit.performance")

    extra = {
        "metric_name": metric_name,
        "value": value,
        "unit": unit,
    }

    if context:
        extra.update(context)

    logger.info(f"Performance metric: {metric_name}={value}{unit}", extra=extra)
