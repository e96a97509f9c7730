"""
Alarm Log Module
================

Append-only log of alarms projected onto the path.

Design:
- Alarms are created only through trigger(), never edited or removed
- Ids derive from the trigger time in milliseconds, kept strictly increasing
- Unplaceable alarms are not logged (trigger returns None)
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from pathcal_zone.calibration.mapper import PxMetersMapper
from pathcal_zone.geometry.shapes import ALARM_COLOR


@dataclass(frozen=True)
class Alarm:
    """
    One-shot event located at a real-world distance.

    Attributes:
        id: Millisecond timestamp of the trigger (unique within the log)
        segment_index: Segment holding the alarm
        pixel_offset_relative: Offset within that segment
        pixel_offset_absolute: Offset from the path origin
        meters_value: Distance given by the trigger
        zone_id: Enclosing zone, None if the map has no zones
        color: Display color
        x, y: Image-space position, None if off the drawn path
    """

    id: int
    segment_index: int
    pixel_offset_relative: float
    pixel_offset_absolute: int
    meters_value: float
    zone_id: Optional[int] = None
    color: str = ALARM_COLOR
    x: Optional[float] = None
    y: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        return {
            'id': self.id,
            'segmentIndex': self.segment_index,
            'positionPxRelative': self.pixel_offset_relative,
            'positionPxAbsolute': self.pixel_offset_absolute,
            'positionMeters': self.meters_value,
            'zoneID': self.zone_id,
            'color': self.color,
            'x': self.x,
            'y': self.y,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Alarm":
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            zone_id = data.get('zoneID')
            x, y = data.get('x'), data.get('y')
            return cls(
                id=int(data['id']),
                segment_index=int(data['segmentIndex']),
                pixel_offset_relative=float(data['positionPxRelative']),
                pixel_offset_absolute=int(data['positionPxAbsolute']),
                meters_value=float(data['positionMeters']),
                zone_id=None if zone_id is None else int(zone_id),
                color=str(data.get('color', ALARM_COLOR)),
                x=None if x is None else float(x),
                y=None if y is None else float(y),
            )
        except KeyError as e:
            raise ValueError(f"Missing required Alarm field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid Alarm data: {e}")


class AlarmLog:
    """
    Append-only alarm history of one map.

    Usage:
        log = AlarmLog(mapper)
        alarm = log.trigger(20.0)    # None if the position is undeterminable
        log.alarms                   # all placed alarms, oldest first
    """

    def __init__(self, mapper: PxMetersMapper, clock: Callable[[], float] = time.time):
        self.mapper = mapper
        self._clock = clock
        self._alarms: List[Alarm] = []

    def trigger(self, meters: float) -> Optional[Alarm]:
        """
        Place an alarm at `meters` and append it to the log.

        Returns:
            The new Alarm, or None if no placement could be derived
        """
        placement = self.mapper.meters_to_pixels(meters)
        if placement is None:
            return None

        alarm = Alarm(
            id=self._next_id(),
            segment_index=placement.segment_index,
            pixel_offset_relative=placement.pixel_relative,
            pixel_offset_absolute=placement.pixel_absolute,
            meters_value=float(meters),
            zone_id=placement.zone_id,
            x=placement.point.x if placement.point else None,
            y=placement.point.y if placement.point else None,
        )
        self._alarms.append(alarm)
        return alarm

    def _next_id(self) -> int:
        candidate = int(self._clock() * 1000)
        if self._alarms and candidate <= self._alarms[-1].id:
            candidate = self._alarms[-1].id + 1
        return candidate

    @property
    def alarms(self) -> List[Alarm]:
        return list(self._alarms)

    @property
    def latest(self) -> Optional[Alarm]:
        return self._alarms[-1] if self._alarms else None

    def __len__(self) -> int:
        return len(self._alarms)
