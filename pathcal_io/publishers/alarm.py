"""
Alarm Publisher
===============

Bounded Context: Alarm Message Production

Message Flow:
    AlarmLog.trigger → Alarm → AlarmPublisher → MQTT Broker

Example:
    >>> from pathcal_io.publishers import AlarmPublisher
    >>> from pathcal_io.logging import create_logger
    >>>
    >>> publisher = AlarmPublisher(
    ...     broker_host="localhost",
    ...     topic="pathcal/map_3/alarms",
    ...     map_id=3,
    ...     logger=create_logger("alarms")
    ... )
    >>> publisher.connect()
    >>> publisher.publish_alarm(alarm)
"""

from typing import Any, Dict, Optional

from pathcal_zone import Alarm
from .base import BasePublisher
from ..logging import StructuredLogger, LogEvent
from ..schemas import AlarmMessage, Timestamp


class AlarmPublisher(BasePublisher):
    """
    Publishes placed alarms of one map.

    Attributes:
        Same as BasePublisher, plus:
        map_id: Map the alarms belong to
        schema_version: Current schema version for messages
    """

    def __init__(
        self,
        broker_host: str,
        topic: str,
        map_id: int,
        logger: StructuredLogger,
        broker_port: int = 1883,
        client_id: str = "pathcal_alarm_publisher",
        username: Optional[str] = None,
        password: Optional[str] = None,
        qos: int = 1
    ):
        super().__init__(
            broker_host=broker_host,
            broker_port=broker_port,
            topic=topic,
            client_id=client_id,
            logger=logger,
            username=username,
            password=password,
            qos=qos
        )
        self.map_id = map_id
        self.schema_version = "1.0"

    def format_message(self, alarm: Alarm) -> Dict[str, Any]:
        """Wrap an alarm into a versioned AlarmMessage dict."""
        message = AlarmMessage(
            schema_version=self.schema_version,
            timestamp=Timestamp.now(),
            map_id=self.map_id,
            alarm=alarm,
        )
        formatted = message.to_dict()
        self.logger.debug(
            event=LogEvent.ALARM_SERIALIZED,
            message="Serialized alarm message",
            metadata={'alarm_id': alarm.id, 'map_id': self.map_id}
        )
        return formatted

    def publish_alarm(self, alarm: Alarm) -> bool:
        """
        Publish one alarm.

        Returns:
            True if published successfully, False otherwise
        """
        success = self.publish(self.format_message(alarm))
        if success:
            self.logger.info(
                event=LogEvent.ALARM_PLACED,
                message=f"Published alarm at {alarm.meters_value} m",
                metadata={
                    'alarm_id': alarm.id,
                    'segment_index': alarm.segment_index,
                    'pixel': alarm.pixel_offset_absolute,
                    'zone_id': alarm.zone_id,
                }
            )
        return success
