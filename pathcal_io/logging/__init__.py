"""
Structured Logging for Pathcal I/O
==================================

Bounded Context: Observability

JSON-structured logging for persistence and messaging.

Public API
----------
    LogEvent: Typed event names (enum)
    StructuredLogger: JSON logger implementation
    create_logger: Factory function

Example:
    >>> from pathcal_io.logging import create_logger, LogEvent
    >>> logger = create_logger("alarms")
    >>> logger.info(
    ...     event=LogEvent.ALARM_PLACED,
    ...     message="Alarm placed",
    ...     metadata={'meters': 20.0, 'pixel': 200}
    ... )
"""

from .events import LogEvent
from .structured import StructuredLogger, JSONFormatter, create_logger

__all__ = [
    'LogEvent',
    'StructuredLogger',
    'JSONFormatter',
    'create_logger',
]
