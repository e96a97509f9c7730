"""
pathcal_io - Persistence and messaging for path-calibrated maps
================================================================

Bounded Context: Everything that leaves the process.

Architecture:

    pathcal_io/
    ├── logging/       # StructuredLogger, LogEvent (JSON logs)
    ├── schemas/       # MapInfo, MapDocument, AlarmMessage, Timestamp
    ├── backend/       # MapRepository (HTTP), BaseImage, SaveWorker
    └── publishers/    # BasePublisher, AlarmPublisher (MQTT)

Design:
- Core geometry (pathcal_zone) never imports this package
- Failures surface as PersistenceError or a False publish result
"""

__version__ = "1.0.0"
