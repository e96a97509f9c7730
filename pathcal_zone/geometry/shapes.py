"""
Geometric Primitives Module
===========================

Pure geometric representations - NO state, NO side effects.

Design:
- Immutable primitives (frozen dataclass pattern)
- Distance-sum test for "point lies on segment" (tolerance based)
- Wire format helpers (to_dict/from_dict) on every primitive
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Any, Tuple


class SegmentColor(str, Enum):
    """Alternating stroke colors of path segments."""
    RED = "#D80300"
    GREEN = "#39FF14"

    def toggled(self) -> "SegmentColor":
        """Return the other color of the pair."""
        return SegmentColor.GREEN if self is SegmentColor.RED else SegmentColor.RED


MARKER_COLOR = "#FDEE2F"
ZONE_COLORS = ("#1E90FF", "#FF8C00")
ALARM_COLOR = "#FF00FF"

# Stored lengths may differ from the endpoint distance by float noise only
LENGTH_TOLERANCE = 1e-6


@dataclass(frozen=True)
class Point:
    """
    Immutable (x, y) position in image pixel space.

    Invariants:
        - x and y are finite
    """

    x: float
    y: float

    def __post_init__(self):
        """Validate coordinates."""
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError(f"Point coordinates must be finite, got ({self.x}, {self.y})")

    def distance_to(self, other: "Point") -> float:
        """Euclidean distance to another point."""
        return math.hypot(other.x - self.x, other.y - self.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, float]:
        """Serialize to JSON-compatible dict."""
        return {'x': self.x, 'y': self.y}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Point":
        """Deserialize from dict.

        Raises:
            ValueError: If keys are missing or values invalid
        """
        try:
            return cls(x=float(data['x']), y=float(data['y']))
        except KeyError as e:
            raise ValueError(f"Missing required Point field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Point data: {e}")


@dataclass(frozen=True)
class Segment:
    """
    Immutable straight piece of the path.

    Attributes:
        start: Segment start point
        end: Segment end point
        length: Euclidean length in pixels (not rounded)
        color: Stroke color assigned at creation
        index: 1-based creation sequence number

    Invariants:
        - length >= 0
        - index >= 1
    """

    start: Point
    end: Point
    length: float
    color: SegmentColor
    index: int

    def __post_init__(self):
        """Validate invariants."""
        if self.length < 0:
            raise ValueError(f"Segment length must be >= 0, got {self.length}")
        if self.index < 1:
            raise ValueError(f"Segment index must be >= 1, got {self.index}")

    @classmethod
    def between(cls, start: Point, end: Point, color: SegmentColor, index: int) -> "Segment":
        """Create a segment whose length is measured from its endpoints."""
        return cls(start=start, end=end, length=start.distance_to(end), color=color, index=index)

    def hit_error(self, point: Point) -> float:
        """
        Distance-sum deviation of a point from this segment.

        Zero when the point lies exactly on the segment; grows as the point
        moves away from it (and beyond its endpoints).
        """
        return abs(self.length - (point.distance_to(self.start) + point.distance_to(self.end)))

    def contains(self, point: Point, tolerance: float) -> bool:
        """Check whether a point lies on the segment within tolerance."""
        return self.hit_error(point) < tolerance

    def point_at(self, distance: float) -> Point:
        """
        Point located `distance` pixels from the start along the segment.

        Distances outside [0, length] are clamped to the segment.
        """
        if self.length == 0:
            return self.start
        t = min(max(distance / self.length, 0.0), 1.0)
        return Point(
            x=self.start.x + t * (self.end.x - self.start.x),
            y=self.start.y + t * (self.end.y - self.start.y),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the persisted line record."""
        return {
            'start': self.start.to_dict(),
            'end': self.end.to_dict(),
            'length': self.length,
            'color': self.color.value,
            'index': self.index,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Segment":
        """Deserialize a persisted line record.

        Raises:
            ValueError: If required fields missing or invalid, or if the
                stored length disagrees with the endpoints
        """
        try:
            segment = cls(
                start=Point.from_dict(data['start']),
                end=Point.from_dict(data['end']),
                length=float(data['length']),
                color=SegmentColor(data.get('color', SegmentColor.RED.value)),
                index=int(data['index']),
            )
        except KeyError as e:
            raise ValueError(f"Missing required Segment field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Segment data: {e}")

        measured = segment.start.distance_to(segment.end)
        if not math.isclose(segment.length, measured, rel_tol=1e-9, abs_tol=LENGTH_TOLERANCE):
            raise ValueError(
                f"Segment {segment.index} length {segment.length} does not match its endpoints ({measured})"
            )
        return segment
