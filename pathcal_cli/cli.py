"""
Pathcal CLI - Main entry point.

Lists maps and locates distances through the HTTP backend, and sends MQTT
commands to a running editor session.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, Any, List, Optional

from pathcal_zone import MapModel
from pathcal_editor.config import BackendConfig, EditorConfig, MQTTConfig
from pathcal_io.backend import MapRepository, PersistenceError
from pathcal_io.logging import create_logger

from .mqtt_client import MQTTCommandClient

REMOTE_COMMANDS = {
    'alarm', 'save', 'set-meters', 'reset-path', 'reset-zones', 'toggle-zone', 'status',
}


def resolve_config(args: argparse.Namespace) -> EditorConfig:
    """
    Session settings from --config, or from the individual flags.

    Raises:
        FileNotFoundError: If the config file doesn't exist
        ValueError: If the config is invalid
    """
    if args.config:
        return EditorConfig.from_yaml(Path(args.config))
    return EditorConfig(
        map_id=args.map_id,
        backend=BackendConfig(base_url=args.backend),
        mqtt=MQTTConfig(broker=args.broker, port=args.port),
    )


def build_command(args: argparse.Namespace) -> Dict[str, Any]:
    """Command payload for one of the remote subcommands."""
    if args.command == 'alarm':
        return {'command': 'alarm', 'meters': args.meters}
    if args.command == 'set-meters':
        return {'command': 'set_meters', 'point_id': args.point_id, 'meters': args.meters}
    return {'command': args.command.replace('-', '_')}


def send_command(command: Dict[str, Any], config: EditorConfig) -> None:
    """Send command to the editor session of config.map_id via MQTT."""
    command_topic, _, _ = config.mqtt.topics_for(config.map_id)
    client = MQTTCommandClient(
        broker=config.mqtt.broker,
        port=config.mqtt.port,
        username=config.mqtt.username,
        password=config.mqtt.password,
    )
    client.send_command(command_topic, command, qos=1)


def _repository(config: EditorConfig) -> MapRepository:
    return MapRepository(
        base_url=config.backend.base_url,
        map_id=config.map_id,
        logger=create_logger("cli", level=logging.WARNING),
        timeout=config.backend.timeout,
    )


def list_maps(config: EditorConfig) -> None:
    for info in _repository(config).list_maps():
        owner = f" ({info.owner})" if info.owner else ""
        print(f"{info.id:>5}  {info.name}{owner}")


def locate(config: EditorConfig, meters: float) -> Optional[Dict[str, Any]]:
    """
    Project `meters` onto the stored path of the map, without placing an alarm.

    Returns:
        The placement as a dict, or None if undeterminable
    """
    document = _repository(config).fetch_document()
    model = MapModel.from_parts(
        document.lines,
        document.points,
        document.zones,
        tolerance=config.geometry.hit_tolerance,
    )
    placement = model.mapper.meters_to_pixels(meters)
    if placement is None:
        print(f"⚠️  No position for {meters} m on map {config.map_id}")
        return None

    result = {
        'segment_index': placement.segment_index,
        'pixel_absolute': placement.pixel_absolute,
        'pixel_relative': placement.pixel_relative,
        'zone_id': placement.zone_id,
    }
    if placement.point is not None:
        result['x'], result['y'] = placement.point.as_tuple()
    print(f"{meters} m → " + ", ".join(f"{key}={value}" for key, value in result.items()))
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Pathcal CLI - Query maps and control editor sessions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Backend queries
  pathcal-cli maps
  pathcal-cli --config config/editor.yaml locate 20

  # Commands to a running session
  pathcal-cli --map-id 3 alarm 12.5
  pathcal-cli --map-id 3 set-meters 2 15
  pathcal-cli --map-id 3 save
  pathcal-cli --map-id 3 reset-zones
  pathcal-cli --map-id 3 status
"""
    )

    parser.add_argument("--config", help="Editor config YAML (overrides the flags below)")
    parser.add_argument("--map-id", type=int, default=0, help="Target map ID (default: 0)")
    parser.add_argument(
        "--backend",
        default="http://localhost:5000",
        help="Backend base URL (default: http://localhost:5000)"
    )
    parser.add_argument("--broker", default="localhost", help="MQTT broker host (default: localhost)")
    parser.add_argument("--port", type=int, default=1883, help="MQTT broker port (default: 1883)")

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('maps', help='List maps stored on the backend')

    locate_parser = subparsers.add_parser('locate', help='Show where a distance falls on the path')
    locate_parser.add_argument('meters', type=float, help='Distance in meters')

    alarm = subparsers.add_parser('alarm', help='Place an alarm in the running session')
    alarm.add_argument('meters', type=float, help='Distance in meters')

    set_meters = subparsers.add_parser('set-meters', help='Set the meters of a calibration point')
    set_meters.add_argument('point_id', type=int, help='Calibration point ID')
    set_meters.add_argument('meters', type=float, help='Distance in meters')

    subparsers.add_parser('save', help='Save path, calibration and zones')
    subparsers.add_parser('reset-path', help='Clear path, calibration and zones')
    subparsers.add_parser('reset-zones', help='Clear all zones')
    subparsers.add_parser('toggle-zone', help='Toggle zone marking')
    subparsers.add_parser('status', help='Query session status')

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        config = resolve_config(args)

        if args.command == 'maps':
            list_maps(config)

        elif args.command == 'locate':
            if locate(config, args.meters) is None:
                sys.exit(2)

        elif args.command in REMOTE_COMMANDS:
            send_command(build_command(args), config)

    except (PersistenceError, ConnectionError, FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
