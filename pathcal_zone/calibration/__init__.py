"""
Calibration Layer
=================

Bounded Context: Binding pixel distance along the path to meters.

Responsibilities:
- Calibration point storage (CalibrationStore, stateful)
- Pixel <-> meters conversion (PxMetersMapper, stateless over the stores)
"""

from pathcal_zone.calibration.store import CalibrationPoint, CalibrationStore
from pathcal_zone.calibration.mapper import PxMetersMapper, AlarmPlacement, round_half_up

__all__ = [
    "CalibrationPoint",
    "CalibrationStore",
    "PxMetersMapper",
    "AlarmPlacement",
    "round_half_up",
]
