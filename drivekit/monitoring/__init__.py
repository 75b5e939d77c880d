"""
Monitoring module exports.
"""

from drivekit.monitoring.logger import (
    get_logger,
    log_driver_command,
    log_performance_metric,
    setup_logging,
    ContextLogAdapter,
    JSONFormatter,
    SanitizingHandler,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "log_driver_command",
    "log_performance_metric",
    "ContextLogAdapter",
    "JSONFormatter",
    "SanitizingHandler",
]
