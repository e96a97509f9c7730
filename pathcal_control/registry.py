"""
CommandRegistry - Explicit command registration pattern

Bounded Context: Command registration and dispatch
Responsibilities:
  - Register named commands (keys or remote commands) with handlers
  - Validate command existence before execution
  - Provide introspection (available_commands, get_help)

Used twice:
  - InteractionController: keyboard keys -> controller actions
  - MQTTControlPlane / EditorSession: remote commands -> session actions

Threading: Registration is guarded by a lock; dispatch happens on the thread
that owns the stores.
"""

from typing import Any, Callable, Dict, Optional, Set
import threading


class CommandNotAvailableError(Exception):
    """Raised when attempting to execute an unregistered command"""
    pass


class CommandRegistry:
    """
    Registry of named commands with explicit registration.

    Names are case-insensitive and stored lowercase.

    Example:
        registry = CommandRegistry()
        registry.register('z', controller.toggle_zone_marking, "Toggle zone marking")
        registry.register('alarm', session.handle_alarm, "Place an alarm", takes_payload=True)

        registry.execute('Z')
        registry.execute('alarm', {'meters': 20})
    """

    def __init__(self):
        self._commands: Dict[str, Callable] = {}
        self._descriptions: Dict[str, str] = {}
        self._takes_payload: Dict[str, bool] = {}
        self._lock = threading.Lock()

    def register(
        self,
        command: str,
        handler: Callable,
        description: str,
        takes_payload: bool = False
    ) -> None:
        """
        Register a command with its handler.

        Args:
            command: Command name or key
            handler: Callable executing the command
            description: Human-readable help text
            takes_payload: Whether the handler receives the command payload

        Raises:
            ValueError: If the command is empty or already registered
        """
        name = command.strip().lower()
        if not name:
            raise ValueError("Command name cannot be empty")

        with self._lock:
            if name in self._commands:
                raise ValueError(f"Command '{name}' already registered")

            self._commands[name] = handler
            self._descriptions[name] = description
            self._takes_payload[name] = takes_payload

    def execute(self, command: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        """
        Execute a registered command.

        Returns:
            Whatever the handler returns

        Raises:
            CommandNotAvailableError: If command not registered
        """
        name = command.strip().lower()
        if name not in self._commands:
            raise CommandNotAvailableError(
                f"Command '{name}' not available. "
                f"Available commands: {', '.join(sorted(self.available_commands))}"
            )

        handler = self._commands[name]
        if self._takes_payload[name]:
            return handler(payload or {})
        return handler()

    def is_available(self, command: str) -> bool:
        return command.strip().lower() in self._commands

    @property
    def available_commands(self) -> Set[str]:
        """Snapshot of registered command names."""
        return set(self._commands.keys())

    def get_help(self) -> Dict[str, str]:
        """Snapshot of {command: description}."""
        return dict(self._descriptions)

    def count(self) -> int:
        return len(self._commands)
