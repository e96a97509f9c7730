"""
Pixel/Meters Mapper Module
==========================

Bidirectional conversion between pixel offsets along the path and meters,
using calibration points as control points of a piecewise-linear function.

Design:
- Stateless over its inputs: every query reads the current stores
- Both directions share one interpolation routine (_piecewise_linear)
- Undeterminable results are None, never exceptions

Edge-case policy:
- Exact hit on a control point returns its value (first-created on ties)
- Between two control points: linear interpolation
- Before the first / after the last: linear extrapolation using the two
  outermost control points with distinct keys
- Fewer than two distinct keys: undetermined (None)
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, TYPE_CHECKING

import numpy as np

from pathcal_zone.calibration.store import CalibrationPoint, CalibrationStore
from pathcal_zone.geometry.path import PathModel
from pathcal_zone.geometry.shapes import Point

if TYPE_CHECKING:
    from pathcal_zone.zones.store import Zone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlarmPlacement:
    """
    Result of projecting a meters value onto the path.

    Attributes:
        pixel_absolute: Offset from the path origin, rounded to the nearest pixel
        pixel_relative: Offset from the start of `segment_index`
        segment_index: 0-based segment holding the position
        zone_id: Enclosing zone (None when the map has no zones)
        point: Image-space position, None if the offset is off the drawn path
    """

    pixel_absolute: int
    pixel_relative: float
    segment_index: int
    zone_id: Optional[int] = None
    point: Optional[Point] = None


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves upward."""
    return int(math.floor(value + 0.5))


def _piecewise_linear(keys: np.ndarray, values: np.ndarray, target: float) -> Optional[float]:
    """
    Evaluate the piecewise-linear function through (keys[i], values[i]).

    `keys` must be sorted ascending with a stable order, so that among equal
    keys the lowest index is the first-created point.
    """
    count = len(keys)
    if count < 2:
        return None

    upper = int(np.searchsorted(keys, target, side="right"))
    lower = int(np.searchsorted(keys, target, side="left"))

    if upper > lower:
        return float(values[lower])

    if lower == 0:
        a = 0
        b = int(np.searchsorted(keys, keys[0], side="right"))
        if b == count:
            return None
    elif lower == count:
        b = int(np.searchsorted(keys, keys[-1], side="left"))
        if b == 0:
            return None
        a = int(np.searchsorted(keys, keys[b - 1], side="left"))
    else:
        a = int(np.searchsorted(keys, keys[upper - 1], side="left"))
        b = lower

    slope = (values[b] - values[a]) / (keys[b] - keys[a])
    return float(values[a] + (target - keys[a]) * slope)


class PxMetersMapper:
    """
    Converts pixel offsets to meters and meters back to path placements.

    Usage:
        mapper = PxMetersMapper(path, calibration)
        mapper.pixels_to_meters(75.0)          # 7.5, or None
        mapper.zones = zone_store
        placement = mapper.meters_to_pixels(20.0)
    """

    def __init__(
        self,
        path: PathModel,
        calibration: CalibrationStore,
        zones: Optional[Iterable["Zone"]] = None
    ):
        self.path = path
        self.calibration = calibration
        self.zones = zones if zones is not None else ()

    def pixels_to_meters(self, target_pixel_offset: float) -> Optional[float]:
        """
        Meters at an absolute pixel offset along the path.

        Returns:
            Unrounded meters, or None with fewer than two calibration points
        """
        points = self.calibration.sorted_by_offset()
        keys = np.array([p.pixel_offset_absolute for p in points], dtype=float)
        values = np.array([p.meters_value for p in points], dtype=float)

        meters = _piecewise_linear(keys, values, float(target_pixel_offset))
        if meters is None:
            logger.debug(f"Meters undetermined at pixel {target_pixel_offset} ({len(points)} points)")
        return meters

    def meters_to_pixels(
        self,
        target_meters: float,
        zones: Optional[Iterable["Zone"]] = None
    ) -> Optional[AlarmPlacement]:
        """
        Project a meters value onto the path.

        With zones defined, the enclosing zone selects the calibration points
        of its segment; fewer than two of them fall back to the zone's uniform
        scale. Without any zone, the whole calibration set is inverted.

        Returns:
            AlarmPlacement, or None if the position is undeterminable
        """
        zone_list = list(self.zones if zones is None else zones)
        target = float(target_meters)

        if zone_list:
            zone = self._enclosing_zone(zone_list, target)
            if zone is None:
                logger.debug(f"No zone encloses {target} m")
                return None
            pixel = self._pixel_in_zone(zone, target)
        else:
            zone = None
            pixel = self._invert(self.calibration.sorted_by_offset(), target)

        if pixel is None:
            logger.debug(f"Pixel position undetermined for {target} m")
            return None

        return self._place(round_half_up(pixel), zone)

    def _pixel_in_zone(self, zone: "Zone", target: float) -> Optional[float]:
        points = self.calibration.on_segment(zone.segment_index)
        if len(points) >= 2:
            pixel = self._invert(points, target)
            if pixel is not None:
                return pixel

        if not zone.is_resolved:
            return None
        meters_length = zone.meters_offset_absolute_end - zone.meters_offset_absolute_start
        # a zero-length zone in either unit pins everything to its start
        if meters_length == 0 or not zone.pixel_length:
            return float(zone.pixel_offset_absolute_start)
        meters_per_pixel = meters_length / zone.pixel_length
        return zone.pixel_offset_absolute_start + (target - zone.meters_offset_absolute_start) / meters_per_pixel

    @staticmethod
    def _invert(points: Sequence[CalibrationPoint], target: float) -> Optional[float]:
        ordered: List[CalibrationPoint] = sorted(points, key=lambda p: p.meters_value)
        keys = np.array([p.meters_value for p in ordered], dtype=float)
        values = np.array([p.pixel_offset_absolute for p in ordered], dtype=float)
        return _piecewise_linear(keys, values, target)

    @staticmethod
    def _enclosing_zone(zones: Sequence["Zone"], target: float) -> Optional["Zone"]:
        for zone in zones:
            if zone.contains_meters(target):
                return zone
        return None

    def _place(self, pixel_absolute: int, zone: Optional["Zone"]) -> AlarmPlacement:
        located = self.path.locate_offset(pixel_absolute)
        if located is not None:
            segment_index, relative = located
        else:
            if zone is not None:
                segment_index = zone.segment_index
            elif len(self.path) and pixel_absolute > 0:
                segment_index = len(self.path) - 1
            else:
                segment_index = 0
            relative = pixel_absolute - self._segment_start(segment_index)

        return AlarmPlacement(
            pixel_absolute=pixel_absolute,
            pixel_relative=relative,
            segment_index=segment_index,
            zone_id=zone.id if zone is not None else None,
            point=self.path.point_at(pixel_absolute),
        )

    def _segment_start(self, segment_index: int) -> float:
        if 0 <= segment_index <= len(self.path):
            return self.path.cumulative_offset(segment_index)
        return 0.0
