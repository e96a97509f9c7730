"""
Pathcal Zone Core v1.0
======================

Bounded Context: Path calibration over a floor-plan image.

Design Philosophy:
- Separation of Concerns: Geometry, Calibration, Zones, Alarms separated
- Indices, not references: zones and calibration point at segments by position
- Undeterminable results are None, never exceptions

Architecture:

    pathcal_zone/
    ├── geometry/          # Pixel-space primitives (immutable) + path
    │   ├── shapes.py      # Point, Segment, colors
    │   ├── path.py        # PathModel (prefix sums)
    │   └── locator.py     # SegmentLocator (stateless cursor lookup)
    │
    ├── calibration/       # Pixel <-> meters
    │   ├── store.py       # CalibrationStore, CalibrationPoint
    │   └── mapper.py      # PxMetersMapper, AlarmPlacement
    │
    ├── zones/
    │   └── store.py       # ZoneStore, Zone
    │
    ├── alarms.py          # AlarmLog, Alarm
    └── model.py           # MapModel aggregate, MapSnapshot

Usage:

    from pathcal_zone import MapModel, Point, SegmentColor

    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)
    model.path.append_segment(Point(100, 0), Point(100, 50), SegmentColor.GREEN)

    first = model.calibration.add_at(0, 0.0)         # stored at pixel 1
    last = model.calibration.add(Point(100, 50))
    model.calibration.set_meters(last.id, 15.0)

    model.mapper.pixels_to_meters(75.0)
    model.zones.add_boundary(Point(100, 50))
    alarm = model.alarms.trigger(7.0)
"""

# Geometry Layer
from pathcal_zone.geometry import (
    Point,
    Segment,
    SegmentColor,
    PathModel,
    SegmentLocator,
    PathPosition,
    DEFAULT_HIT_TOLERANCE,
)

# Calibration Layer
from pathcal_zone.calibration import (
    CalibrationPoint,
    CalibrationStore,
    PxMetersMapper,
    AlarmPlacement,
)

# Zones Layer
from pathcal_zone.zones import Zone, ZoneStore

# Alarms
from pathcal_zone.alarms import Alarm, AlarmLog

# Aggregate
from pathcal_zone.model import MapModel, MapSnapshot

__all__ = [
    # Geometry
    "Point",
    "Segment",
    "SegmentColor",
    "PathModel",
    "SegmentLocator",
    "PathPosition",
    "DEFAULT_HIT_TOLERANCE",
    # Calibration
    "CalibrationPoint",
    "CalibrationStore",
    "PxMetersMapper",
    "AlarmPlacement",
    # Zones
    "Zone",
    "ZoneStore",
    # Alarms
    "Alarm",
    "AlarmLog",
    # Aggregate
    "MapModel",
    "MapSnapshot",
]

__version__ = "1.0.0"
