"""
Zone Store Module
=================

Stateful, append-only sequence of zones carved out of the path.

Design:
- Zones chain: each starts one pixel (and one meter) after the previous end
- Meters end resolved once through the mapper, then frozen
- Immutable Zone snapshots (frozen dataclass)
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from pathcal_zone.calibration.mapper import PxMetersMapper, round_half_up
from pathcal_zone.calibration.store import CalibrationStore
from pathcal_zone.geometry.locator import SegmentLocator, DEFAULT_HIT_TOLERANCE
from pathcal_zone.geometry.path import PathModel
from pathcal_zone.geometry.shapes import Point, ZONE_COLORS


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(frozen=True)
class Zone:
    """
    Contiguous sub-range of the path with pixel and meters extents.

    Meters fields are None when no calibration could resolve them.

    Attributes:
        id: Sequential zone identifier (1-based)
        segment_index: Segment holding the zone's end boundary
        pixel_offset_absolute_start / _end: Pixel extent along the path
        pixel_length: end - start
        meters_offset_absolute_start / _end: Meters extent
        meters_length: end - start
        color: Display color
    """

    id: int
    segment_index: int
    pixel_offset_absolute_start: float
    pixel_offset_absolute_end: float
    pixel_length: float
    meters_offset_absolute_start: Optional[float] = None
    meters_offset_absolute_end: Optional[float] = None
    meters_length: Optional[float] = None
    color: str = ZONE_COLORS[0]

    @property
    def is_resolved(self) -> bool:
        """True when both meters boundaries are known."""
        return self.meters_offset_absolute_start is not None and self.meters_offset_absolute_end is not None

    def contains_meters(self, meters: float) -> bool:
        """Check whether a meters value lies inside the zone (bounds inclusive)."""
        if not self.is_resolved:
            return False
        low = min(self.meters_offset_absolute_start, self.meters_offset_absolute_end)
        high = max(self.meters_offset_absolute_start, self.meters_offset_absolute_end)
        return low <= meters <= high

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted zone record."""
        return {
            'id': self.id,
            'segmentIndex': self.segment_index,
            'positionZoneStartPixelsAbsolute': self.pixel_offset_absolute_start,
            'positionZoneEndPixelsAbsolute': self.pixel_offset_absolute_end,
            'positionZoneTotalLengthPixels': self.pixel_length,
            'positionZoneStartMetersAbsolute': self.meters_offset_absolute_start,
            'positionZoneEndMetersAbsolute': self.meters_offset_absolute_end,
            'positionZoneTotalLengthMeters': self.meters_length,
            'color': self.color,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Zone":
        """Deserialize a persisted zone record.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            return cls(
                id=int(data['id']),
                segment_index=int(data['segmentIndex']),
                pixel_offset_absolute_start=float(data['positionZoneStartPixelsAbsolute']),
                pixel_offset_absolute_end=float(data['positionZoneEndPixelsAbsolute']),
                pixel_length=float(data['positionZoneTotalLengthPixels']),
                meters_offset_absolute_start=_optional_float(data.get('positionZoneStartMetersAbsolute')),
                meters_offset_absolute_end=_optional_float(data.get('positionZoneEndMetersAbsolute')),
                meters_length=_optional_float(data.get('positionZoneTotalLengthMeters')),
                color=str(data.get('color', ZONE_COLORS[0])),
            )
        except KeyError as e:
            raise ValueError(f"Missing required Zone field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Zone data: {e}")


class ZoneStore:
    """
    Zones of one map, in creation order.

    Usage:
        zones = ZoneStore(path, calibration, mapper)
        zone = zones.add_boundary(Point(120, 40))   # None if off the path
        zones.zone_containing_meters(12.0)
    """

    def __init__(
        self,
        path: PathModel,
        calibration: CalibrationStore,
        mapper: PxMetersMapper,
        tolerance: float = DEFAULT_HIT_TOLERANCE
    ):
        self.path = path
        self.calibration = calibration
        self.mapper = mapper
        self.tolerance = tolerance
        self._zones: List[Zone] = []

    def add_boundary(self, point: Point) -> Optional[Zone]:
        """
        Close a new zone at the path position under `point`.

        Returns:
            The appended Zone, or None if no segment is within tolerance
        """
        position = SegmentLocator.locate(self.path, point, self.tolerance)
        if position is None:
            return None
        return self.add_boundary_at(position.segment_index, position.pixel_offset_absolute)

    def add_boundary_at(self, segment_index: int, pixel_offset_absolute: float) -> Zone:
        """Close a new zone at a known path position."""
        previous = self._zones[-1] if self._zones else None

        pixel_start = previous.pixel_offset_absolute_end + 1 if previous else 1.0
        pixel_end = float(pixel_offset_absolute)

        meters_start = self._meters_start(previous)
        meters_end = self.mapper.pixels_to_meters(pixel_end)
        if meters_end is not None:
            meters_end = float(round_half_up(meters_end))
        meters_length = (
            meters_end - meters_start
            if meters_start is not None and meters_end is not None
            else None
        )

        zone = Zone(
            id=len(self._zones) + 1,
            segment_index=segment_index,
            pixel_offset_absolute_start=pixel_start,
            pixel_offset_absolute_end=pixel_end,
            pixel_length=pixel_end - pixel_start,
            meters_offset_absolute_start=meters_start,
            meters_offset_absolute_end=meters_end,
            meters_length=meters_length,
            color=ZONE_COLORS[len(self._zones) % len(ZONE_COLORS)],
        )
        self._zones.append(zone)
        return zone

    def _meters_start(self, previous: Optional[Zone]) -> Optional[float]:
        if previous is not None:
            if previous.meters_offset_absolute_end is None:
                return None
            return previous.meters_offset_absolute_end + 1

        ordered = self.calibration.sorted_by_offset()
        if not ordered:
            return None
        return ordered[0].meters_value + 1

    def zone_containing_meters(self, meters: float) -> Optional[Zone]:
        """First zone whose meters extent contains `meters`."""
        for zone in self._zones:
            if zone.contains_meters(meters):
                return zone
        return None

    def get(self, zone_id: int) -> Optional[Zone]:
        for zone in self._zones:
            if zone.id == zone_id:
                return zone
        return None

    @property
    def zones(self) -> List[Zone]:
        """Copy of the zones in creation order."""
        return list(self._zones)

    def load(self, zones: Iterable[Zone]) -> None:
        """Replace the store content with persisted zones."""
        self._zones = list(zones)

    def reset(self) -> None:
        """Remove all zones."""
        self._zones.clear()

    def __len__(self) -> int:
        return len(self._zones)

    def __iter__(self):
        return iter(list(self._zones))

    def __repr__(self) -> str:
        return f"ZoneStore(zones={len(self._zones)})"
