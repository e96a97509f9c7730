"""
MQTTControlPlane - Remote commands for an editor session

Bounded Context: MQTT connection management + command reception
Responsibilities:
  - MQTT connection lifecycle (connect, disconnect)
  - Command reception (subscribe to command topic)
  - Status publishing (retained, on status topic)
  - Hand-off of commands to the thread that owns the map stores

QoS Policy:
  - Commands: QoS 1 (at-least-once delivery)
  - Status: QoS 1 + retained (last status persisted)

Threading:
  - paho-mqtt runs its own network thread (loop_start/loop_stop)
  - _on_message only parses and enqueues
  - dispatch_pending() runs handlers on the caller's (owner) thread
"""

import json
import logging
import queue
from datetime import datetime
from threading import Event
from typing import Any, Dict, Optional

import paho.mqtt.client as mqtt

from .registry import CommandRegistry, CommandNotAvailableError

logger = logging.getLogger(__name__)


class MQTTControlPlane:
    """
    MQTT control plane receiving commands and publishing status.

    Example:
        control_plane = MQTTControlPlane(
            broker_host="localhost",
            broker_port=1883,
            command_topic="pathcal/control/map_1/commands",
            status_topic="pathcal/control/map_1/status",
            client_id="pathcal_editor_1"
        )
        control_plane.command_registry.register(
            'alarm', session.handle_alarm, "Place an alarm", takes_payload=True
        )

        if control_plane.connect(timeout=5.0):
            while running:
                control_plane.dispatch_pending()
        control_plane.disconnect()
    """

    def __init__(
        self,
        broker_host: str,
        broker_port: int,
        command_topic: str,
        status_topic: str,
        client_id: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        max_pending: int = 256,
    ):
        """
        Args:
            broker_host: MQTT broker hostname
            broker_port: MQTT broker port (typically 1883)
            command_topic: Topic for receiving commands (subscribe)
            status_topic: Topic for publishing status (publish)
            client_id: MQTT client identifier
            username: Optional MQTT authentication username
            password: Optional MQTT authentication password
            max_pending: Capacity of the command hand-off queue
        """
        self.broker_host = broker_host
        self.broker_port = broker_port
        self.command_topic = command_topic
        self.status_topic = status_topic
        self.client_id = client_id

        self.client = mqtt.Client(
            mqtt.CallbackAPIVersion.VERSION2,
            client_id=client_id,
            protocol=mqtt.MQTTv311,
        )
        self.client.on_connect = self._on_connect
        self.client.on_message = self._on_message
        self.client.on_disconnect = self._on_disconnect

        if username and password:
            self.client.username_pw_set(username, password)

        self._connected = Event()
        self._running = False

        self.command_registry = CommandRegistry()
        self.pending: "queue.Queue[Dict[str, Any]]" = queue.Queue(maxsize=max_pending)

    def connect(self, timeout: float = 5.0) -> bool:
        """
        Connect to the broker and wait for the CONNACK.

        Returns:
            True if connected within timeout, False otherwise
        """
        try:
            logger.info(f"Connecting to MQTT broker: {self.broker_host}:{self.broker_port}")
            self.client.connect(self.broker_host, self.broker_port, keepalive=60)
            self.client.loop_start()
            self._running = True

            if self._connected.wait(timeout=timeout):
                logger.info("MQTT control plane connected")
                return True
            logger.error(f"Connection timeout after {timeout}s")
            return False

        except OSError as e:
            logger.error(f"Error connecting to MQTT: {e}")
            return False

    def disconnect(self) -> None:
        """Disconnect from the broker. Safe to call multiple times."""
        if self._running:
            logger.info("Disconnecting from MQTT broker")
            self.publish_status("disconnected")
            self.client.loop_stop()
            self.client.disconnect()
            self._running = False
            self._connected.clear()

    def is_connected(self) -> bool:
        return self._connected.is_set()

    def publish_status(self, status: str, data: Optional[Dict[str, Any]] = None) -> None:
        """
        Publish a retained status update.

        Args:
            status: Status string (e.g. "running", "alarm_placed")
            data: Optional extra fields merged into the message
        """
        message = {
            "status": status,
            "timestamp": datetime.now().isoformat(),
            "client_id": self.client_id,
        }
        if data:
            message.update(data)

        result = self.client.publish(self.status_topic, json.dumps(message), qos=1, retain=True)
        if result.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning(f"Status '{status}' not published (rc={result.rc})")
        else:
            logger.debug(f"Status published: {status}")

    def submit(self, command_data: Dict[str, Any]) -> bool:
        """
        Queue a parsed command for the owner thread.

        Returns:
            False if the command was rejected (empty or queue full)
        """
        command = str(command_data.get('command', '')).strip().lower()
        if not command:
            logger.warning("Empty command received")
            return False

        try:
            self.pending.put_nowait({**command_data, 'command': command})
            return True
        except queue.Full:
            logger.error(f"Command queue full, dropping '{command}'")
            return False

    def dispatch_pending(self, limit: Optional[int] = None) -> int:
        """
        Execute queued commands on the calling thread.

        Args:
            limit: Maximum number of commands to run (None = drain)

        Returns:
            Number of commands taken from the queue
        """
        handled = 0
        while limit is None or handled < limit:
            try:
                command_data = self.pending.get_nowait()
            except queue.Empty:
                break
            handled += 1

            command = command_data['command']
            logger.info(f"Executing command: {command}")
            try:
                self.command_registry.execute(command, command_data)
            except CommandNotAvailableError as e:
                logger.warning(str(e))
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Invalid payload for '{command}': {e}")
        return handled

    # ===== MQTT Callbacks (run in MQTT thread) =====

    def _on_connect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.error(f"Connection failed ({reason_code})")
            self._connected.clear()
            return

        client.subscribe(self.command_topic, qos=1)
        logger.info(f"Subscribed to: {self.command_topic} (QoS 1)")
        self.publish_status("connected")
        self._connected.set()

    def _on_disconnect(self, client, userdata, flags, reason_code, properties):
        if reason_code.is_failure:
            logger.warning(f"Unexpected disconnection ({reason_code})")
        else:
            logger.info("Disconnected from broker")
        self._connected.clear()

    def _on_message(self, client, userdata, msg):
        try:
            command_data = json.loads(msg.payload.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.error(f"Error decoding command: {msg.payload!r} ({e})")
            return

        if not isinstance(command_data, dict):
            logger.error(f"Command must be a JSON object, got: {command_data!r}")
            return

        self.submit(command_data)
