"""
Zones Layer
===========

Bounded Context: Consecutive zones carved out of the path.
"""

from pathcal_zone.zones.store import Zone, ZoneStore

__all__ = [
    "Zone",
    "ZoneStore",
]
