"""
pathcal_editor - Session orchestration for one map

Responsibilities:
  - Configuration (EditorConfig, loaded from YAML)
  - Wiring stores, controller, backend, save thread and MQTT (EditorSession)
"""

from .config import (
    EditorConfig,
    BackendConfig,
    GeometryConfig,
    KeyConfig,
    MQTTConfig,
)
from .session import EditorSession

__all__ = [
    "EditorConfig",
    "BackendConfig",
    "GeometryConfig",
    "KeyConfig",
    "MQTTConfig",
    "EditorSession",
]
