"""
Map Document Schema
===================

Bounded Context: Backend Data Structures

Typed views of the backend responses.

Design:
- MapInfo: One entry of GET /maps
- MapDocument: Body of GET /maps/{id}, records parsed into core types

Missing or null lists are read as empty (a map that was never edited).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pathcal_zone import CalibrationPoint, Segment, Zone


def _record_list(data: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    records = data.get(key)
    if records is None:
        return []
    if not isinstance(records, list):
        raise ValueError(f"'{key}' must be a list, got {type(records).__name__}")
    return records


def _require_unique_ids(key: str, records: Tuple[Any, ...]) -> None:
    seen = set()
    for record in records:
        if record.id in seen:
            raise ValueError(f"Duplicate id {record.id} in '{key}'")
        seen.add(record.id)


@dataclass(frozen=True)
class MapInfo:
    """
    Map listing entry.

    Attributes:
        id: Backend map identifier
        name: Display name
        owner: Owning user (may be empty)
        image: Image reference as stored by the backend
    """
    id: int
    name: str
    owner: str = ""
    image: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'owner': self.owner, 'name': self.name, 'image': self.image}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MapInfo':
        """Deserialize from dict.

        Raises:
            ValueError: If required fields missing or invalid
        """
        try:
            image = data.get('image')
            return cls(
                id=int(data['id']),
                name=str(data.get('name') or ''),
                owner=str(data.get('owner') or ''),
                image=None if image is None else str(image),
            )
        except KeyError as e:
            raise ValueError(f"Missing required MapInfo field: {e}")
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid MapInfo data: {e}")


@dataclass(frozen=True)
class MapDocument:
    """
    Persisted geometry of one map.

    Attributes:
        map_id: Backend map identifier
        lines: Path segments, in path order
        points: Calibration points
        zones: Zones, in creation order

    Example:
        >>> doc = MapDocument.from_dict(3, {'line_list': [], 'point_list': None})
        >>> doc.is_empty
        True
    """
    map_id: int
    lines: Tuple[Segment, ...] = field(default_factory=tuple)
    points: Tuple[CalibrationPoint, ...] = field(default_factory=tuple)
    zones: Tuple[Zone, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.map_id,
            'line_list': [segment.to_dict() for segment in self.lines],
            'point_list': [point.to_dict() for point in self.points],
            'zone_list': [zone.to_dict() for zone in self.zones],
        }

    @classmethod
    def from_dict(cls, map_id: int, data: Dict[str, Any]) -> 'MapDocument':
        """Deserialize a GET /maps/{id} body.

        Raises:
            ValueError: If the body or any record is malformed, or if two
                calibration points or two zones share an id
        """
        if not isinstance(data, dict):
            raise ValueError(f"Map document must be a JSON object, got {type(data).__name__}")

        lines = tuple(Segment.from_dict(record) for record in _record_list(data, 'line_list'))
        points = tuple(CalibrationPoint.from_dict(record) for record in _record_list(data, 'point_list'))
        zones = tuple(Zone.from_dict(record) for record in _record_list(data, 'zone_list'))
        _require_unique_ids("point_list", points)
        _require_unique_ids("zone_list", zones)
        return cls(map_id=map_id, lines=lines, points=points, zones=zones)

    @property
    def is_empty(self) -> bool:
        return not (self.lines or self.points or self.zones)
