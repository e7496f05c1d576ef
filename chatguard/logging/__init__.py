"""
Logging module for chat content moderation.

This module provides structured logging with JSON and console output
formats, configurable log levels, file rotation and credential redaction.
"""

from .logger import (
    StructuredLogger,
    JsonFormatter,
    ConsoleFormatter,
    get_logger,
    setup_logging
)

__all__ = [
    'StructuredLogger',
    'JsonFormatter',
    'ConsoleFormatter',
    'get_logger',
    'setup_logging'
]
