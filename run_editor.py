#!/usr/bin/env python3
"""
Editor Service - Entry Point
============================

Runs a headless editor session for one map:
- Loads path, calibration and zones from the HTTP backend
- Places alarms received over MQTT and publishes them
- Saves, resets and recalibrates on MQTT commands

Usage:
    python run_editor.py --config config/editor.yaml

Lifecycle:
    1. Load configuration from YAML
    2. Setup logging (console + file)
    3. Create EditorSession (repository, save thread, control plane, publisher)
    4. Start session, load map
    5. Drain MQTT commands until a stop signal arrives
    6. Graceful shutdown (pending saves are flushed)

Signals:
    - SIGTERM / SIGINT (Ctrl+C): Graceful shutdown
"""

import argparse
import signal
import sys
import logging
import threading
from pathlib import Path
from typing import Optional

from pathcal_editor import EditorConfig, EditorSession
from pathcal_io.backend import PersistenceError


def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """Console logging, plus a file when log_file is given."""
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            *(
                [logging.FileHandler(log_file)]
                if log_file
                else []
            )
        ]
    )
    return logging.getLogger(__name__)


class EditorApp:
    """
    Application wrapper for EditorSession.

    Handles configuration loading, signal handling and graceful shutdown.
    """

    def __init__(self, config_path: Path, log_file: Optional[Path] = None, poll_interval: float = 0.05):
        self.config_path = config_path
        self.poll_interval = poll_interval
        self.logger = setup_logging(log_file)

        self.config: Optional[EditorConfig] = None
        self.session: Optional[EditorSession] = None

        self._stop_event = threading.Event()
        self._shutdown_requested = False

    def setup(self):
        self.logger.info("=" * 80)
        self.logger.info("🚀 Pathcal Editor - Starting")
        self.logger.info("=" * 80)

        self.logger.info(f"📄 Loading configuration: {self.config_path}")
        self.config = EditorConfig.from_yaml(self.config_path)
        self.logger.info(f"✅ Configuration loaded (map_id={self.config.map_id})")

        self.session = EditorSession.from_config(self.config)
        command_topic, status_topic, alarm_topic = self.config.mqtt.topics_for(self.config.map_id)
        self.logger.info(f"  - Command topic: {command_topic}")
        self.logger.info(f"  - Status topic: {status_topic}")
        self.logger.info(f"  - Alarm topic: {alarm_topic}")

    def run(self):
        """Blocks until shutdown is requested."""
        if not self.session:
            raise RuntimeError("Session not initialized. Call setup() first.")

        signal.signal(signal.SIGTERM, self._signal_handler)
        signal.signal(signal.SIGINT, self._signal_handler)

        if not self.session.start():
            self.logger.warning("⚠️  MQTT not fully connected, remote commands may be lost")

        try:
            model = self.session.load()
            self.logger.info(f"✅ Map loaded: {model!r}")
        except PersistenceError as e:
            self.logger.error(f"❌ Could not load map {self.config.map_id}: {e}")
            self.shutdown()
            sys.exit(1)

        self.logger.info("Press Ctrl+C to stop")
        while not self._stop_event.is_set():
            self.session.process_pending_commands()
            self._stop_event.wait(self.poll_interval)

        self.shutdown()

    def shutdown(self):
        if self._shutdown_requested:
            return
        self._shutdown_requested = True

        self.logger.info("🛑 Shutting down editor session")
        if self.session:
            self.session.stop()
        self.logger.info("✅ Shutdown complete")

    def _signal_handler(self, signum, frame):
        self.logger.info(f"⚠️  Received signal {signal.Signals(signum).name} ({signum})")
        self._stop_event.set()


def parse_args():
    parser = argparse.ArgumentParser(
        description="Pathcal Editor - headless alarm projection service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_editor.py --config config/editor.yaml
  python run_editor.py --config config/editor.yaml --no-log-file
        """
    )
    parser.add_argument('--config', type=Path, required=True, help='Path to editor configuration YAML file')
    parser.add_argument(
        '--log-file',
        type=Path,
        default=Path('logs/editor.log'),
        help='Path to log file (default: logs/editor.log)'
    )
    parser.add_argument('--no-log-file', action='store_true', help='Disable file logging (console only)')
    return parser.parse_args()


def main():
    args = parse_args()
    log_file = None if args.no_log_file else args.log_file

    if not args.config.exists():
        print(f"❌ Error: Configuration file not found: {args.config}", file=sys.stderr)
        sys.exit(1)

    app = EditorApp(config_path=args.config, log_file=log_file)
    try:
        app.setup()
        app.run()
    except (ValueError, OSError) as e:
        print(f"❌ Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
