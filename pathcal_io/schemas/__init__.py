"""
Pathcal I/O Schemas
===================

Bounded Context: Data Structures

Immutable, typed structures for backend documents and MQTT messages.

Public API
----------
    Timestamp: ISO 8601 timestamp wrapper
    MapInfo: Map listing entry
    MapDocument: Persisted geometry of one map
    AlarmMessage: Alarm event message
"""

from .common import Timestamp
from .maps import MapInfo, MapDocument
from .alarm import AlarmMessage

__all__ = [
    'Timestamp',
    'MapInfo',
    'MapDocument',
    'AlarmMessage',
]
