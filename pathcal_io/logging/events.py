"""
Structured Log Event Types
==========================

Bounded Context: Observability Event Taxonomy

Typed event names for structured logging.

Event Naming Convention:
    <component>.<category>.<action>

    component: path, calibration, zone, persistence, alarm, mqtt, error
    category: segment, point, fetch, save, publish
    action: added, success, failed

Example Log Query (CloudWatch Insights):
    fields @timestamp, event, message, metadata.map_id
    | filter event = "persistence.save.failed"
    | stats count() by bin(1h)
"""

from enum import Enum


class LogEvent(str, Enum):
    """
    Typed log event names for structured logging.

    Categories:
    - path.*, calibration.*, zone.*: Edits applied to a map
    - persistence.*: Backend reads and writes
    - alarm.*: Alarm projection
    - mqtt.*: MQTT broker interactions
    - error.*: Error conditions
    """

    # ========== Editing Events ==========
    PATH_SEGMENT_ADDED = "path.segment.added"
    """Segment finalized by a click."""

    PATH_RESET = "path.reset"
    """Path, calibration and zones cleared."""

    CALIBRATION_POINT_ADDED = "calibration.point.added"
    """Calibration point placed on the path."""

    CALIBRATION_METERS_SET = "calibration.meters.set"
    """Meters value assigned to a calibration point."""

    ZONE_CREATED = "zone.created"
    """Zone boundary placed."""

    ZONE_RESET = "zone.reset"
    """All zones cleared."""

    # ========== Persistence Events ==========
    PERSISTENCE_FETCH_SUCCESS = "persistence.fetch.success"
    """Map data fetched from the backend."""

    PERSISTENCE_SAVE_QUEUED = "persistence.save.queued"
    """Snapshot handed to the save thread."""

    PERSISTENCE_SAVE_SUCCESS = "persistence.save.success"
    """Snapshot written to the backend."""

    PERSISTENCE_SAVE_FAILED = "persistence.save.failed"
    """Snapshot could not be written."""

    MAP_LOADED = "persistence.map.loaded"
    """Fetched map swapped into the session."""

    # ========== Alarm Events ==========
    ALARM_PLACED = "alarm.placed"
    """Alarm projected onto the path."""

    ALARM_UNPLACED = "alarm.unplaced"
    """Alarm position undeterminable (no zone / no calibration)."""

    ALARM_SERIALIZED = "alarm.serialized"
    """Alarm message serialized to JSON."""

    # ========== MQTT Events ==========
    MQTT_CONNECTED = "mqtt.connected"
    """MQTT broker connection established."""

    MQTT_DISCONNECTED = "mqtt.disconnected"
    """MQTT broker connection lost."""

    MQTT_PUBLISH_SUCCESS = "mqtt.publish.success"
    """Message successfully published to broker."""

    MQTT_PUBLISH_FAILED = "mqtt.publish.failed"
    """Message publication failed."""

    # ========== Error Events ==========
    PERSISTENCE_ERROR = "error.persistence"
    """Backend unreachable or returned an error."""

    SERIALIZATION_ERROR = "error.serialization"
    """Failed to serialize message to JSON."""

    SCHEMA_VALIDATION_ERROR = "error.schema_validation"
    """Fetched or received data failed schema validation."""

    MQTT_CONNECTION_ERROR = "error.mqtt_connection"
    """Failed to connect to MQTT broker."""
