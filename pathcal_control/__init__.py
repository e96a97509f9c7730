"""
pathcal_control - Interaction and remote control for map editing

Bounded Context: Turning operator input into store mutations
Responsibilities:
  - Pointer/keyboard state machine (InteractionController)
  - Command registration and validation (CommandRegistry)
  - MQTT command reception and status (MQTTControlPlane)

Design Philosophy:
  - Explicit registration (fail-fast, lists available commands on error)
  - One owner thread mutates the stores; MQTT callbacks only enqueue
"""

from .registry import CommandRegistry, CommandNotAvailableError
from .controller import (
    InteractionController,
    DrawingState,
    DEFAULT_TOGGLE_ZONE_KEY,
    DEFAULT_CANCEL_KEY,
    DEFAULT_CALIBRATE_KEY,
)
from .plane import MQTTControlPlane

__all__ = [
    "CommandRegistry",
    "CommandNotAvailableError",
    "InteractionController",
    "DrawingState",
    "DEFAULT_TOGGLE_ZONE_KEY",
    "DEFAULT_CANCEL_KEY",
    "DEFAULT_CALIBRATE_KEY",
    "MQTTControlPlane",
]
