"""
Messaging Tests (MQTTControlPlane, AlarmPublisher, structured logging)
======================================================================

Runs without a real MQTT broker: commands are fed through the message
callback and publishers are exercised up to the network boundary.

Usage:
    pytest test_messaging.py
"""

import json
import logging
from types import SimpleNamespace

import pytest

from pathcal_zone import Alarm
from pathcal_control import MQTTControlPlane
from pathcal_io.logging import LogEvent, create_logger
from pathcal_io.publishers import AlarmPublisher
from pathcal_io.schemas import AlarmMessage, Timestamp


def _control_plane(max_pending: int = 256) -> MQTTControlPlane:
    return MQTTControlPlane(
        broker_host="localhost",
        broker_port=1883,
        command_topic="pathcal/control/map_3/commands",
        status_topic="pathcal/control/map_3/status",
        client_id="test_control",
        max_pending=max_pending,
    )


def _message(payload) -> SimpleNamespace:
    raw = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
    return SimpleNamespace(topic="pathcal/control/map_3/commands", payload=raw)


def _alarm() -> Alarm:
    return Alarm(
        id=1700000000000,
        segment_index=1,
        pixel_offset_relative=20.0,
        pixel_offset_absolute=120,
        meters_value=12.0,
        zone_id=2,
        x=100.0,
        y=20.0,
    )


# ===== Control plane =====

def test_commands_run_on_dispatch_only():
    plane = _control_plane()
    received = []
    plane.command_registry.register('alarm', received.append, "Alarm", takes_payload=True)

    plane._on_message(plane.client, None, _message({'command': 'ALARM', 'meters': 12.5}))
    assert received == []

    assert plane.dispatch_pending() == 1
    assert received[0]['command'] == 'alarm'
    assert received[0]['meters'] == 12.5
    assert plane.dispatch_pending() == 0


def test_bad_messages_are_dropped():
    plane = _control_plane()
    plane._on_message(plane.client, None, _message(b"{not json"))
    plane._on_message(plane.client, None, _message([1, 2, 3]))
    plane._on_message(plane.client, None, _message({'meters': 1}))
    assert plane.pending.empty()


def test_unknown_commands_and_bad_payloads_do_not_raise():
    plane = _control_plane()

    def needs_meters(payload):
        return float(payload['meters'])

    plane.command_registry.register('alarm', needs_meters, "Alarm", takes_payload=True)
    plane.submit({'command': 'explode'})
    plane.submit({'command': 'alarm'})
    plane.submit({'command': 'alarm', 'meters': 'far'})

    assert plane.dispatch_pending() == 3


def test_dispatch_limit_and_full_queue():
    plane = _control_plane(max_pending=2)
    plane.command_registry.register('status', lambda: None, "Status")

    assert plane.submit({'command': 'status'})
    assert plane.submit({'command': 'status'})
    assert not plane.submit({'command': 'status'})

    assert plane.dispatch_pending(limit=1) == 1
    assert plane.dispatch_pending() == 1


# ===== Alarm publisher =====

def test_alarm_message_format():
    publisher = AlarmPublisher(
        broker_host="localhost",
        topic="pathcal/data/map_3/alarms",
        map_id=3,
        logger=create_logger("test_alarms", level=logging.CRITICAL),
    )
    formatted = publisher.format_message(_alarm())

    assert formatted['schema_version'] == "1.0"
    assert formatted['map_id'] == 3
    assert formatted['alarm']['positionPxAbsolute'] == 120
    assert formatted['alarm']['zoneID'] == 2

    message = AlarmMessage.from_dict(json.loads(json.dumps(formatted)))
    assert message.alarm == _alarm()
    assert message.timestamp.to_datetime().tzinfo is not None


def test_publish_requires_connection():
    publisher = AlarmPublisher(
        broker_host="localhost",
        topic="pathcal/data/map_3/alarms",
        map_id=3,
        logger=create_logger("test_alarms", level=logging.CRITICAL),
    )
    assert not publisher.is_connected()
    assert not publisher.publish_alarm(_alarm())
    assert publisher.get_stats()['message_count'] == 0


def test_alarm_message_validation():
    with pytest.raises(ValueError):
        AlarmMessage(schema_version="1.0", timestamp=Timestamp.now(), map_id=-1, alarm=_alarm())
    with pytest.raises(ValueError):
        AlarmMessage.from_dict({"schema_version": "1.0", "map_id": 3})


# ===== Structured logging =====

class _Collector(logging.Handler):
    def __init__(self):
        super().__init__()
        self.lines = []

    def emit(self, record):
        self.lines.append(record.getMessage())


def test_structured_logger_emits_json():
    event_logger = create_logger("test_structured", level=logging.DEBUG)
    collector = _Collector()
    event_logger.logger.addHandler(collector)
    try:
        event_logger.info(
            event=LogEvent.ALARM_PLACED,
            message="Alarm placed",
            metadata={'pixel': 120},
        )
        event_logger.error(
            event=LogEvent.PERSISTENCE_ERROR,
            message="PUT failed",
            exc_info=RuntimeError("boom"),
        )
    finally:
        event_logger.logger.removeHandler(collector)

    placed, failed = [json.loads(line) for line in collector.lines]
    assert placed['event'] == "alarm.placed"
    assert placed['component'] == "test_structured"
    assert placed['metadata'] == {'pixel': 120}
    assert failed['level'] == "ERROR"
    assert failed['exception'] == {'type': 'RuntimeError', 'message': 'boom'}
    assert event_logger.logger.name == "pathcal.test_structured"
