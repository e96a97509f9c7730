"""
Alarm Message Schema
====================

Bounded Context: Alarm Event Data Structures

Schema of the alarm messages published via MQTT.

Message Flow:
    EditorSession.trigger_alarm → AlarmLog → AlarmMessage → AlarmPublisher → MQTT
"""

from dataclasses import dataclass
from typing import Any, Dict

from pathcal_zone import Alarm
from .common import Timestamp


@dataclass(frozen=True)
class AlarmMessage:
    """
    Alarm message for MQTT publication.

    Attributes:
        schema_version: Message schema version (for evolution)
        timestamp: ISO 8601 timestamp of message creation
        map_id: Map the alarm was placed on
        alarm: The placed alarm

    Example:
        >>> msg = AlarmMessage(
        ...     schema_version="1.0",
        ...     timestamp=Timestamp.now(),
        ...     map_id=3,
        ...     alarm=alarm
        ... )
    """
    schema_version: str
    timestamp: Timestamp
    map_id: int
    alarm: Alarm

    def __post_init__(self):
        if self.map_id < 0:
            raise ValueError(f"Map ID must be >= 0, got {self.map_id}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'schema_version': self.schema_version,
            'timestamp': self.timestamp.to_dict(),
            'map_id': self.map_id,
            'alarm': self.alarm.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AlarmMessage':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                schema_version=str(data['schema_version']),
                timestamp=Timestamp(value=data['timestamp']),
                map_id=int(data['map_id']),
                alarm=Alarm.from_dict(data['alarm']),
            )
        except KeyError as e:
            raise ValueError(f"Missing required AlarmMessage field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid AlarmMessage data: {e}")
