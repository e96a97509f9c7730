"""
Path Model Module
=================

Ordered polyline of segments in pixel space.

Design:
- Segments are appended, never edited or removed individually
- Prefix sums maintained on append (O(1) cumulative offsets)
- Offsets are located with a binary search over the prefix sums
- Callers reference segments by integer position, never by object
"""

from bisect import bisect_right
from typing import Iterable, List, Optional, Tuple

from pathcal_zone.geometry.shapes import Point, Segment, SegmentColor


class PathModel:
    """
    Stateful polyline traced by the operator.

    `segment_index` arguments are 0-based positions in the path, while
    `Segment.index` is the 1-based sequence number stored with each segment.

    Usage:
        path = PathModel()
        path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)
        path.append_segment(Point(100, 0), Point(100, 50), SegmentColor.GREEN)

        path.cumulative_offset(1)   # 100.0
        path.locate_offset(120.0)   # (1, 20.0)
    """

    def __init__(self):
        self._segments: List[Segment] = []
        # _prefix[i] == sum of lengths of segments [0, i)
        self._prefix: List[float] = [0.0]

    def append_segment(self, start: Point, end: Point, color: SegmentColor) -> Segment:
        """
        Append a segment from start to end.

        A zero-length segment (start == end) is accepted.

        Returns:
            The created Segment
        """
        segment = Segment.between(start, end, color=color, index=len(self._segments) + 1)
        self._segments.append(segment)
        self._prefix.append(self._prefix[-1] + segment.length)
        return segment

    def cumulative_offset(self, segment_index: int) -> float:
        """
        Sum of the lengths of all segments before `segment_index`.

        Args:
            segment_index: 0-based position, 0 <= segment_index <= len(path)

        Raises:
            IndexError: If segment_index is out of range
        """
        if not 0 <= segment_index < len(self._prefix):
            raise IndexError(
                f"segment_index must be in [0, {len(self._segments)}], got {segment_index}"
            )
        return self._prefix[segment_index]

    @property
    def total_length(self) -> float:
        """Length of the whole path in pixels."""
        return self._prefix[-1]

    @property
    def segments(self) -> Tuple[Segment, ...]:
        """Immutable snapshot of the segments in creation order."""
        return tuple(self._segments)

    def segment(self, segment_index: int) -> Segment:
        return self._segments[segment_index]

    def locate_offset(self, pixel_offset_absolute: float) -> Optional[Tuple[int, float]]:
        """
        Find the segment holding an absolute offset along the path.

        An offset on a shared vertex belongs to the later segment, except at
        the very end of the path.

        Returns:
            (segment_index, offset relative to segment start), or None when
            the path is empty or the offset lies outside [0, total_length]
        """
        if not self._segments:
            return None
        if pixel_offset_absolute < 0 or pixel_offset_absolute > self.total_length:
            return None

        segment_index = min(bisect_right(self._prefix, pixel_offset_absolute) - 1, len(self._segments) - 1)
        return segment_index, pixel_offset_absolute - self._prefix[segment_index]

    def point_at(self, pixel_offset_absolute: float) -> Optional[Point]:
        """Image-space point at an absolute offset, or None if off the path."""
        located = self.locate_offset(pixel_offset_absolute)
        if located is None:
            return None
        segment_index, relative = located
        return self._segments[segment_index].point_at(relative)

    def load(self, segments: Iterable[Segment]) -> None:
        """Replace the path with previously persisted segments (kept in order)."""
        self.reset()
        for segment in segments:
            self._segments.append(segment)
            self._prefix.append(self._prefix[-1] + segment.length)

    def reset(self) -> None:
        """Remove all segments."""
        self._segments.clear()
        self._prefix = [0.0]

    def __len__(self) -> int:
        return len(self._segments)

    def __iter__(self):
        return iter(self._segments)

    def __repr__(self) -> str:
        return f"PathModel(segments={len(self._segments)}, length={self.total_length:.2f})"
