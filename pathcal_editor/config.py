"""
Configuration schema for the map editor session.

Backend location, geometry tolerance, key bindings and MQTT settings for one
map, loaded from YAML and validated at startup.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple
import yaml

from pathcal_zone import DEFAULT_HIT_TOLERANCE
from pathcal_control import (
    DEFAULT_TOGGLE_ZONE_KEY,
    DEFAULT_CANCEL_KEY,
    DEFAULT_CALIBRATE_KEY,
)


@dataclass(frozen=True)
class BackendConfig:
    """HTTP backend configuration."""

    base_url: str = "http://localhost:5000"
    timeout: float = 10.0

    def __post_init__(self):
        if not self.base_url.startswith(("http://", "https://")):
            raise ValueError(
                f"base_url must start with http:// or https://, got {self.base_url!r}"
            )
        if self.timeout <= 0:
            raise ValueError(f"timeout must be > 0, got {self.timeout}")


@dataclass(frozen=True)
class GeometryConfig:
    """Hit-test tolerance in pixels (distance-sum error, strictly below)."""

    hit_tolerance: float = DEFAULT_HIT_TOLERANCE

    def __post_init__(self):
        if self.hit_tolerance <= 0:
            raise ValueError(
                f"hit_tolerance must be > 0, got {self.hit_tolerance}"
            )


@dataclass(frozen=True)
class KeyConfig:
    """Keyboard bindings of the drawing surface."""

    toggle_zone: str = DEFAULT_TOGGLE_ZONE_KEY
    cancel: str = DEFAULT_CANCEL_KEY
    calibrate: str = DEFAULT_CALIBRATE_KEY

    def __post_init__(self):
        keys = [self.toggle_zone.lower(), self.cancel.lower(), self.calibrate.lower()]
        if any(len(key) != 1 for key in keys):
            raise ValueError(f"Key bindings must be single characters, got {keys}")
        if len(set(keys)) != len(keys):
            raise ValueError(f"Key bindings must be distinct, got {keys}")


@dataclass(frozen=True)
class MQTTConfig:
    """MQTT broker configuration."""

    broker: str = "localhost"
    port: int = 1883
    username: Optional[str] = None
    password: Optional[str] = None
    qos: int = 1

    command_topic: str = "pathcal/control/map_{map_id}/commands"
    status_topic: str = "pathcal/control/map_{map_id}/status"
    alarm_topic: str = "pathcal/data/map_{map_id}/alarms"

    def __post_init__(self):
        if not 1 <= self.port <= 65535:
            raise ValueError(
                f"MQTT port must be in [1, 65535], got {self.port}"
            )

        if self.qos not in {0, 1, 2}:
            raise ValueError(
                f"MQTT QoS must be 0, 1, or 2, got {self.qos}"
            )

    def topics_for(self, map_id: int) -> Tuple[str, str, str]:
        """(command, status, alarm) topics with {map_id} filled in."""
        return (
            self.command_topic.format(map_id=map_id),
            self.status_topic.format(map_id=map_id),
            self.alarm_topic.format(map_id=map_id),
        )


@dataclass(frozen=True)
class EditorConfig:
    """
    Main configuration of an editor session.

    Immutable after construction (frozen dataclass).
    """

    map_id: int
    backend: BackendConfig = field(default_factory=BackendConfig)
    geometry: GeometryConfig = field(default_factory=GeometryConfig)
    keys: KeyConfig = field(default_factory=KeyConfig)
    mqtt: MQTTConfig = field(default_factory=MQTTConfig)

    # None: take the resolution of the fetched base image
    frame_resolution_wh: Optional[Tuple[int, int]] = None

    def __post_init__(self):
        if self.map_id < 0:
            raise ValueError(f"map_id must be >= 0, got {self.map_id}")

        if self.frame_resolution_wh is not None:
            width, height = self.frame_resolution_wh
            if width <= 0 or height <= 0:
                raise ValueError(
                    f"frame_resolution_wh must have positive dimensions, got {self.frame_resolution_wh}"
                )

    @property
    def client_id(self) -> str:
        return f"pathcal_editor_map_{self.map_id}"

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "EditorConfig":
        """
        Load configuration from YAML file.

        Example YAML:
            map_id: 3
            frame_resolution_wh: [1920, 1080]  # optional

            backend:
              base_url: "http://localhost:5000"
              timeout: 10

            geometry:
              hit_tolerance: 0.5

            keys:
              toggle_zone: "z"
              cancel: "x"
              calibrate: "c"

            mqtt:
              broker: "localhost"
              port: 1883
              alarm_topic: "pathcal/data/map_{map_id}/alarms"

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If a value is missing or invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        if "map_id" not in data:
            raise ValueError(f"map_id missing in {yaml_path}")

        try:
            backend = BackendConfig(**data.get("backend", {}))
            geometry = GeometryConfig(**data.get("geometry", {}))
            keys = KeyConfig(**data.get("keys", {}))
            mqtt = MQTTConfig(**data.get("mqtt", {}))
        except TypeError as e:
            raise ValueError(f"Unknown config key in {yaml_path}: {e}")

        frame_resolution_data = data.get("frame_resolution_wh")
        frame_resolution_wh = (
            tuple(frame_resolution_data) if frame_resolution_data is not None else None
        )

        return cls(
            map_id=int(data["map_id"]),
            backend=backend,
            geometry=geometry,
            keys=keys,
            mqtt=mqtt,
            frame_resolution_wh=frame_resolution_wh,
        )
