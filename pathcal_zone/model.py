"""
Map Model Module
================

Aggregate wiring the stores of one map together.

Design:
- One PathModel, CalibrationStore, ZoneStore, mapper and AlarmLog per map
- Loading builds a complete new model; callers swap it in only on success
- snapshot() freezes the persisted state as plain records
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

from pathcal_zone.alarms import AlarmLog
from pathcal_zone.calibration.mapper import PxMetersMapper
from pathcal_zone.calibration.store import CalibrationPoint, CalibrationStore
from pathcal_zone.geometry.locator import DEFAULT_HIT_TOLERANCE
from pathcal_zone.geometry.path import PathModel
from pathcal_zone.geometry.shapes import Segment
from pathcal_zone.zones.store import Zone, ZoneStore


@dataclass(frozen=True)
class MapSnapshot:
    """
    Immutable copy of the persisted state of a map at one instant.

    Records are already in wire format (see Segment/CalibrationPoint/Zone
    to_dict), so later edits to the stores cannot leak into a save.
    """

    lines: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    points: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)
    zones: Tuple[Dict[str, Any], ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, list]:
        return {
            'line_list': list(self.lines),
            'point_list': list(self.points),
            'zone_list': list(self.zones),
        }


class MapModel:
    """
    All geometry state of one map.

    Usage:
        model = MapModel(tolerance=0.5)
        model.path.append_segment(...)
        model.calibration.add(Point(10, 0))
        model.zones.add_boundary(Point(80, 0))
        model.alarms.trigger(12.0)
    """

    def __init__(self, tolerance: float = DEFAULT_HIT_TOLERANCE):
        self.tolerance = tolerance
        self.path = PathModel()
        self.calibration = CalibrationStore(self.path, tolerance=tolerance)
        self.mapper = PxMetersMapper(self.path, self.calibration)
        self.zones = ZoneStore(self.path, self.calibration, self.mapper, tolerance=tolerance)
        self.mapper.zones = self.zones
        self.alarms = AlarmLog(self.mapper)

    @classmethod
    def from_records(
        cls,
        lines: Iterable[Dict[str, Any]],
        points: Iterable[Dict[str, Any]],
        zones: Iterable[Dict[str, Any]],
        tolerance: float = DEFAULT_HIT_TOLERANCE
    ) -> "MapModel":
        """
        Build a model from persisted records.

        Raises:
            ValueError: If any record is malformed
        """
        return cls.from_parts(
            [Segment.from_dict(line) for line in lines],
            [CalibrationPoint.from_dict(point) for point in points],
            [Zone.from_dict(zone) for zone in zones],
            tolerance=tolerance,
        )

    @classmethod
    def from_parts(
        cls,
        segments: Iterable[Segment],
        points: Iterable[CalibrationPoint],
        zones: Iterable[Zone],
        tolerance: float = DEFAULT_HIT_TOLERANCE
    ) -> "MapModel":
        """
        Build a model from already parsed segments, points and zones.

        Raises:
            ValueError: If two calibration points share an id
        """
        model = cls(tolerance=tolerance)
        model.path.load(segments)
        model.calibration.load(points)
        model.zones.load(zones)
        return model

    def snapshot(self) -> MapSnapshot:
        return MapSnapshot(
            lines=tuple(segment.to_dict() for segment in self.path),
            points=tuple(point.to_dict() for point in self.calibration),
            zones=tuple(zone.to_dict() for zone in self.zones),
        )

    def reset(self) -> None:
        """Clear path, calibration and zones. The alarm log is kept."""
        self.zones.reset()
        self.calibration.reset()
        self.path.reset()

    def __repr__(self) -> str:
        return f"MapModel({self.path!r}, {self.calibration!r}, {self.zones!r})"
