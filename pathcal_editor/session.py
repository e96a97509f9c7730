"""
Editor Session - Orchestrates one map's editing and alarm projection.

Wires the core stores (MapModel), the interaction controller, the backend
repository, the background save worker, the alarm publisher and the MQTT
control plane.

Threading Model:
- Owner thread: every store mutation (clicks, keys, queued commands)
- Save thread (SaveWorker): PUTs immutable snapshots
- paho-mqtt network threads: control plane and alarm publisher

Load Policy:
- load() builds a complete new MapModel, then swaps it in. A failed fetch or
  a malformed record leaves the current stores untouched.
"""

import logging
import queue
from concurrent.futures import Future
from typing import Any, Dict, Optional, Union

from pathcal_zone import Alarm, CalibrationPoint, MapModel, MapSnapshot, Point, Segment, Zone
from pathcal_control import InteractionController, MQTTControlPlane
from pathcal_io.backend import BaseImage, MapRepository, SaveWorker
from pathcal_io.logging import LogEvent, StructuredLogger, create_logger
from pathcal_io.publishers import AlarmPublisher
from pathcal_editor.config import EditorConfig

logger = logging.getLogger(__name__)


class EditorSession:
    """
    One editing session over one map.

    Example:
        config = EditorConfig.from_yaml(Path("config/editor.yaml"))
        session = EditorSession.from_config(config)
        session.start()
        session.load()

        while running:
            session.process_pending_commands()

        session.stop()
    """

    def __init__(
        self,
        config: EditorConfig,
        repository: MapRepository,
        save_worker: SaveWorker,
        control_plane: Optional[MQTTControlPlane] = None,
        alarm_publisher: Optional[AlarmPublisher] = None,
        event_logger: Optional[StructuredLogger] = None,
    ):
        self.config = config
        self.repository = repository
        self.save_worker = save_worker
        self.control_plane = control_plane
        self.alarm_publisher = alarm_publisher
        self.event_logger = event_logger or create_logger("session")

        self.frame_resolution_wh = config.frame_resolution_wh
        self.model = MapModel(tolerance=config.geometry.hit_tolerance)
        self.controller = self._build_controller(self.model)

        if self.control_plane is not None:
            self._register_commands(self.control_plane)

    @classmethod
    def from_config(cls, config: EditorConfig) -> "EditorSession":
        """Build a session with real HTTP and MQTT components."""
        repository = MapRepository(
            base_url=config.backend.base_url,
            map_id=config.map_id,
            logger=create_logger("repository"),
            timeout=config.backend.timeout,
        )
        save_worker = SaveWorker(repository, logger=create_logger("save"))

        mqtt = config.mqtt
        command_topic, status_topic, alarm_topic = mqtt.topics_for(config.map_id)
        control_plane = MQTTControlPlane(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            command_topic=command_topic,
            status_topic=status_topic,
            client_id=f"{config.client_id}_control",
            username=mqtt.username,
            password=mqtt.password,
        )
        alarm_publisher = AlarmPublisher(
            broker_host=mqtt.broker,
            broker_port=mqtt.port,
            topic=alarm_topic,
            map_id=config.map_id,
            logger=create_logger("alarms"),
            client_id=f"{config.client_id}_alarms",
            username=mqtt.username,
            password=mqtt.password,
            qos=mqtt.qos,
        )
        return cls(
            config=config,
            repository=repository,
            save_worker=save_worker,
            control_plane=control_plane,
            alarm_publisher=alarm_publisher,
        )

    # ===== Lifecycle =====

    def start(self, connect_timeout: float = 5.0) -> bool:
        """
        Start the save thread and connect MQTT components.

        Returns:
            False if a broker connection failed (the session still works locally)
        """
        self.save_worker.start()

        connected = True
        if self.control_plane is not None:
            connected = self.control_plane.connect(timeout=connect_timeout) and connected
        if self.alarm_publisher is not None:
            connected = self.alarm_publisher.connect(timeout=connect_timeout) and connected

        if self.control_plane is not None and self.control_plane.is_connected():
            self.control_plane.publish_status("running", self.status_summary())
        return connected

    def stop(self) -> None:
        """Drain pending saves, then disconnect."""
        self.save_worker.stop()
        if self.alarm_publisher is not None:
            self.alarm_publisher.disconnect()
        if self.control_plane is not None:
            self.control_plane.disconnect()

    # ===== Persistence =====

    def load(self, with_image: bool = True) -> MapModel:
        """
        Fetch the map and replace the in-memory stores.

        Args:
            with_image: Also fetch the base image to bound clicks by its size
                (skipped when frame_resolution_wh is configured)

        Raises:
            PersistenceError: On fetch failure; current stores are kept
            ValueError: If the base image cannot be decoded
        """
        document = self.repository.fetch_document()
        model = MapModel.from_parts(
            document.lines,
            document.points,
            document.zones,
            tolerance=self.config.geometry.hit_tolerance,
        )

        resolution = self.frame_resolution_wh
        if with_image and self.config.frame_resolution_wh is None:
            resolution = BaseImage.decode(self.repository.fetch_image()).frame_resolution_wh

        self.frame_resolution_wh = resolution
        self.model = model
        self.controller = self._build_controller(model)

        self.event_logger.info(
            event=LogEvent.MAP_LOADED,
            message="Map loaded",
            metadata={
                'map_id': self.config.map_id,
                'lines': len(model.path),
                'points': len(model.calibration),
                'zones': len(model.zones),
                'frame_resolution_wh': resolution,
            }
        )
        return model

    def snapshot(self) -> MapSnapshot:
        return self.model.snapshot()

    def save(self) -> "Future[None]":
        """
        Queue a snapshot of the current stores for saving.

        Raises:
            RuntimeError: If the save thread is not running
            queue.Full: If too many saves are pending
        """
        return self.save_worker.submit(self.snapshot())

    # ===== Editing =====

    def click(self, point: Point) -> Optional[Union[Segment, Zone]]:
        """Forward a click to the controller and record what it created."""
        created = self.controller.click(point)
        if isinstance(created, Segment):
            self.event_logger.debug(
                event=LogEvent.PATH_SEGMENT_ADDED,
                message=f"Segment {created.index} added",
                metadata={'index': created.index, 'length_px': created.length}
            )
        elif isinstance(created, Zone):
            self.event_logger.info(
                event=LogEvent.ZONE_CREATED,
                message=f"Zone {created.id} created",
                metadata=created.to_dict()
            )
        return created

    def handle_key(self, key: str) -> bool:
        """Forward a key press; automatic or explicit calibration points are recorded."""
        known_ids = {point.id for point in self.model.calibration}
        handled = self.controller.handle_key(key)
        for point in self.model.calibration:
            if point.id not in known_ids:
                self.event_logger.info(
                    event=LogEvent.CALIBRATION_POINT_ADDED,
                    message=f"Calibration point {point.id} added",
                    metadata=point.to_dict()
                )
        return handled

    def set_meters(self, point_id: int, meters: float) -> CalibrationPoint:
        """
        Assign a real-world distance to a calibration point.

        Raises:
            KeyError: If the point does not exist
        """
        point = self.model.calibration.set_meters(point_id, meters)
        self.event_logger.info(
            event=LogEvent.CALIBRATION_METERS_SET,
            message=f"Calibration point {point_id} set to {meters} m",
            metadata={'point_id': point_id, 'meters': meters, 'pixel': point.pixel_offset_absolute}
        )
        return point

    def reset_path(self) -> None:
        """Clear path, calibration and zones (alarms are kept)."""
        self.controller.reset()
        self.event_logger.info(
            event=LogEvent.PATH_RESET,
            message="Path, calibration and zones cleared",
            metadata={'map_id': self.config.map_id}
        )

    def reset_zones(self) -> None:
        self.model.zones.reset()
        self.controller.needs_redraw = True
        self.event_logger.info(
            event=LogEvent.ZONE_RESET,
            message="Zones cleared",
            metadata={'map_id': self.config.map_id}
        )

    # ===== Alarms =====

    def trigger_alarm(self, meters: float) -> Optional[Alarm]:
        """
        Project an alarm at `meters` onto the path and publish it.

        Returns:
            The placed Alarm, or None if its position is undeterminable
        """
        alarm = self.model.alarms.trigger(meters)
        if alarm is None:
            self.event_logger.warning(
                event=LogEvent.ALARM_UNPLACED,
                message=f"No position for alarm at {meters} m",
                metadata={
                    'meters': meters,
                    'zones': len(self.model.zones),
                    'points': len(self.model.calibration),
                }
            )
            self._publish_status("alarm_unplaced", {'meters': meters})
            return None

        self.controller.needs_redraw = True
        if self.alarm_publisher is not None:
            self.alarm_publisher.publish_alarm(alarm)
        else:
            self.event_logger.info(
                event=LogEvent.ALARM_PLACED,
                message=f"Alarm placed at {meters} m",
                metadata={'alarm_id': alarm.id, 'pixel': alarm.pixel_offset_absolute}
            )
        self._publish_status("alarm_placed", {'alarm': alarm.to_dict()})
        return alarm

    # ===== Remote commands =====

    def process_pending_commands(self, limit: Optional[int] = None) -> int:
        """Run queued MQTT commands on the calling (owner) thread."""
        if self.control_plane is None:
            return 0
        return self.control_plane.dispatch_pending(limit=limit)

    def status_summary(self) -> Dict[str, Any]:
        latest = self.model.alarms.latest
        return {
            'map_id': self.config.map_id,
            'segments': len(self.model.path),
            'path_length_px': self.model.path.total_length,
            'calibration_points': len(self.model.calibration),
            'zones': len(self.model.zones),
            'alarms': len(self.model.alarms),
            'latest_alarm': latest.to_dict() if latest else None,
            'zone_marking': self.controller.zone_marking,
        }

    def _register_commands(self, control_plane: MQTTControlPlane) -> None:
        registry = control_plane.command_registry
        registry.register('alarm', self._handle_alarm, "Place an alarm at {meters}", takes_payload=True)
        registry.register('save', self._handle_save, "Save path, calibration and zones")
        registry.register('set_meters', self._handle_set_meters, "Set {meters} of calibration point {point_id}", takes_payload=True)
        registry.register('reset_path', self._handle_reset_path, "Clear path, calibration and zones")
        registry.register('reset_zones', self._handle_reset_zones, "Clear all zones")
        registry.register('toggle_zone', self._handle_toggle_zone, "Toggle zone marking")
        registry.register('status', self._handle_status, "Publish session status")
        logger.info(f"Registered commands: {', '.join(sorted(registry.available_commands))}")

    def _handle_alarm(self, payload: Dict[str, Any]) -> Optional[Alarm]:
        return self.trigger_alarm(float(payload['meters']))

    def _handle_save(self) -> Optional["Future[None]"]:
        try:
            future = self.save()
        except (queue.Full, RuntimeError) as e:
            reason = "too many saves pending" if isinstance(e, queue.Full) else str(e)
            self.event_logger.warning(
                event=LogEvent.PERSISTENCE_SAVE_FAILED,
                message="Save not queued",
                metadata={'map_id': self.config.map_id, 'reason': reason}
            )
            self._publish_status("save_failed", {'error': reason})
            return None
        future.add_done_callback(self._report_save)
        return future

    def _report_save(self, future: "Future[None]") -> None:
        # Runs on the save thread; publishing is thread-safe in paho
        error = future.exception()
        if error is None:
            self._publish_status("saved")
        else:
            self._publish_status("save_failed", {'error': str(error)})

    def _handle_set_meters(self, payload: Dict[str, Any]) -> CalibrationPoint:
        point_id = int(payload['point_id'])
        meters = float(payload['meters'])
        try:
            point = self.set_meters(point_id, meters)
        except KeyError:
            raise ValueError(f"Unknown calibration point {point_id}")
        self._publish_status("meters_set", {'point': point.to_dict()})
        return point

    def _handle_reset_path(self) -> None:
        self.reset_path()
        self._publish_status("path_reset")

    def _handle_reset_zones(self) -> None:
        self.reset_zones()
        self._publish_status("zones_reset")

    def _handle_toggle_zone(self) -> bool:
        marking = self.controller.toggle_zone_marking()
        self._publish_status("zone_marking", {'zone_marking': marking})
        return marking

    def _handle_status(self) -> Dict[str, Any]:
        summary = self.status_summary()
        self._publish_status("running", summary)
        return summary

    # ===== Internals =====

    def _build_controller(self, model: MapModel) -> InteractionController:
        keys = self.config.keys
        return InteractionController(
            model,
            frame_resolution_wh=self.frame_resolution_wh,
            toggle_zone_key=keys.toggle_zone,
            cancel_key=keys.cancel,
            calibrate_key=keys.calibrate,
        )

    def _publish_status(self, status: str, data: Optional[Dict[str, Any]] = None) -> None:
        if self.control_plane is not None and self.control_plane.is_connected():
            self.control_plane.publish_status(status, data)
