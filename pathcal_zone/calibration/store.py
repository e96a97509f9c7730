"""
Calibration Store Module
========================

Stateful set of calibration points anchored to the path.

Design:
- Immutable points (frozen dataclass), replaced on meters update
- Insertion order preserved, so ties on pixel offset resolve first-created first
- NO interpolation here (see mapper.py)
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

from pathcal_zone.geometry.locator import SegmentLocator, DEFAULT_HIT_TOLERANCE
from pathcal_zone.geometry.path import PathModel
from pathcal_zone.geometry.shapes import Point, MARKER_COLOR


@dataclass(frozen=True)
class CalibrationPoint:
    """
    User-anchored (pixel offset, meters) correspondence.

    Attributes:
        id: Positive integer, unique within the store
        segment_index: 0-based position of the anchoring segment
        pixel_offset_absolute: Offset from the path origin (>= 0)
        meters_value: Real-world distance entered by the operator
        color: Marker color
    """

    id: int
    segment_index: int
    pixel_offset_absolute: float
    meters_value: float = 0.0
    color: str = MARKER_COLOR

    def __post_init__(self):
        """Validate invariants."""
        if self.id < 1:
            raise ValueError(f"CalibrationPoint id must be >= 1, got {self.id}")
        if self.segment_index < 0:
            raise ValueError(f"segment_index must be >= 0, got {self.segment_index}")
        if self.pixel_offset_absolute < 0:
            raise ValueError(
                f"pixel_offset_absolute must be >= 0, got {self.pixel_offset_absolute}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted point record."""
        return {
            'id': self.id,
            'lineIndex': self.segment_index,
            'positionPx': self.pixel_offset_absolute,
            'color': self.color,
            'positionMeters': self.meters_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalibrationPoint":
        """Deserialize a persisted point record.

        `segmentIndex` is accepted in place of `lineIndex`.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            segment_index = data['lineIndex'] if 'lineIndex' in data else data['segmentIndex']
            return cls(
                id=int(data['id']),
                segment_index=int(segment_index),
                pixel_offset_absolute=float(data['positionPx']),
                meters_value=float(data.get('positionMeters') or 0.0),
                color=str(data.get('color', MARKER_COLOR)),
            )
        except KeyError as e:
            raise ValueError(f"Missing required CalibrationPoint field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid CalibrationPoint data: {e}")


class CalibrationStore:
    """
    Calibration points of one map.

    Usage:
        store = CalibrationStore(path)
        point = store.add(Point(50, 0))          # None if not on the path
        store.set_meters(point.id, 5.0)
        ordered = store.sorted_by_offset()
    """

    def __init__(self, path: PathModel, tolerance: float = DEFAULT_HIT_TOLERANCE):
        self.path = path
        self.tolerance = tolerance
        self._points: Dict[int, CalibrationPoint] = {}

    def add(self, point: Point) -> Optional[CalibrationPoint]:
        """
        Anchor a calibration point at the path position under `point`.

        Returns:
            The new CalibrationPoint (meters 0), or None if no segment is
            within tolerance
        """
        position = SegmentLocator.locate(self.path, point, self.tolerance)
        if position is None:
            return None
        return self.add_at(position.segment_index, position.pixel_offset_absolute)

    def add_at(self, segment_index: int, pixel_offset_absolute: float) -> CalibrationPoint:
        """
        Anchor a calibration point at a known path position.

        An offset of exactly 0 is stored as 1 so that no interpolation base
        starts at the path origin.
        """
        if pixel_offset_absolute == 0:
            pixel_offset_absolute = 1.0

        calibration = CalibrationPoint(
            id=self._next_id(),
            segment_index=segment_index,
            pixel_offset_absolute=pixel_offset_absolute,
        )
        self._points[calibration.id] = calibration
        return calibration

    def set_meters(self, point_id: int, meters: float) -> CalibrationPoint:
        """
        Set the meters value of a point. Dependents are not recomputed.

        Raises:
            KeyError: If point_id is unknown
        """
        if point_id not in self._points:
            raise KeyError(f"Calibration point {point_id} not found")
        updated = replace(self._points[point_id], meters_value=float(meters))
        self._points[point_id] = updated
        return updated

    def get(self, point_id: int) -> Optional[CalibrationPoint]:
        return self._points.get(point_id)

    def sorted_by_offset(self) -> List[CalibrationPoint]:
        """Points ascending by pixel offset; equal offsets keep insertion order."""
        return sorted(self._points.values(), key=lambda p: p.pixel_offset_absolute)

    def on_segment(self, segment_index: int) -> List[CalibrationPoint]:
        """Points anchored to one segment, in insertion order."""
        return [p for p in self._points.values() if p.segment_index == segment_index]

    def load(self, points: Iterable[CalibrationPoint]) -> None:
        """Replace the store content with persisted points.

        Raises:
            ValueError: If two points share an id
        """
        loaded: Dict[int, CalibrationPoint] = {}
        for point in points:
            if point.id in loaded:
                raise ValueError(f"Duplicate calibration point id: {point.id}")
            loaded[point.id] = point
        self._points = loaded

    def reset(self) -> None:
        """Remove all calibration points."""
        self._points.clear()

    def _next_id(self) -> int:
        return max(self._points, default=0) + 1

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self):
        return iter(list(self._points.values()))

    def __repr__(self) -> str:
        return f"CalibrationStore(points={len(self._points)})"
