"""
Geometry Layer
==============

Bounded Context: Path geometry in image pixel space.

Responsibilities:
- Primitive representation (Point, Segment, immutable)
- Polyline bookkeeping (PathModel, prefix sums)
- Cursor-to-path lookup (SegmentLocator)
- NO calibration, NO zones, NO drawing
"""

from pathcal_zone.geometry.shapes import (
    Point,
    Segment,
    SegmentColor,
    MARKER_COLOR,
    ZONE_COLORS,
    ALARM_COLOR,
)
from pathcal_zone.geometry.path import PathModel
from pathcal_zone.geometry.locator import SegmentLocator, PathPosition, DEFAULT_HIT_TOLERANCE

__all__ = [
    "Point",
    "Segment",
    "SegmentColor",
    "MARKER_COLOR",
    "ZONE_COLORS",
    "ALARM_COLOR",
    "PathModel",
    "SegmentLocator",
    "PathPosition",
    "DEFAULT_HIT_TOLERANCE",
]
