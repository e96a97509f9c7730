"""
Segment Locator Module
======================

Stateless lookup of the path position under a cursor.

Design:
- Pure functions (no state)
- Distance-sum test against every segment, nearest wins
- Returns None when nothing is within tolerance (caller no-ops)
"""

from dataclasses import dataclass
from typing import Optional

from pathcal_zone.geometry.path import PathModel
from pathcal_zone.geometry.shapes import Point


DEFAULT_HIT_TOLERANCE = 0.5


@dataclass(frozen=True)
class PathPosition:
    """
    Position on the path resolved from an image point.

    Attributes:
        segment_index: 0-based position of the segment in the path
        pixel_offset_relative: Distance from the segment start
        pixel_offset_absolute: cumulative_offset(segment_index) + relative
    """

    segment_index: int
    pixel_offset_relative: float
    pixel_offset_absolute: float


class SegmentLocator:
    """
    Stateless locator for positions on a PathModel.

    All methods are static; the path is injected.
    """

    @staticmethod
    def nearest_segment(
        path: PathModel,
        point: Point,
        tolerance: float = DEFAULT_HIT_TOLERANCE
    ) -> Optional[int]:
        """
        Index of the segment whose line best contains the point.

        Args:
            path: Path to search
            point: Image-space point (e.g. click position)
            tolerance: Maximum distance-sum deviation accepted

        Returns:
            0-based segment index, or None if no segment qualifies
        """
        best_index = None
        best_error = tolerance
        for segment_index, segment in enumerate(path):
            error = segment.hit_error(point)
            if error < best_error:
                best_index, best_error = segment_index, error
        return best_index

    @staticmethod
    def locate(
        path: PathModel,
        point: Point,
        tolerance: float = DEFAULT_HIT_TOLERANCE
    ) -> Optional[PathPosition]:
        """
        Resolve an image point to a position along the path.

        Returns:
            PathPosition, or None if no segment is within tolerance
        """
        segment_index = SegmentLocator.nearest_segment(path, point, tolerance)
        if segment_index is None:
            return None

        relative = path.segment(segment_index).start.distance_to(point)
        return PathPosition(
            segment_index=segment_index,
            pixel_offset_relative=relative,
            pixel_offset_absolute=path.cumulative_offset(segment_index) + relative,
        )
