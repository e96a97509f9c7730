"""
MQTT Publishers
==============

Bounded Context: Message Production

Public API
----------
    BasePublisher: Abstract publisher (connection management)
    AlarmPublisher: Alarm message publisher
"""

from .base import BasePublisher
from .alarm import AlarmPublisher

__all__ = [
    'BasePublisher',
    'AlarmPublisher',
]
