"""
Zone, Alarm and MapModel Tests
==============================

Usage:
    pytest test_zones.py
"""

import pytest

from pathcal_zone import (
    Alarm,
    AlarmLog,
    CalibrationPoint,
    MapModel,
    Point,
    SegmentColor,
    Zone,
)
from pathcal_zone.geometry.shapes import ALARM_COLOR, ZONE_COLORS


def _calibrated_line() -> MapModel:
    """One 300 px segment, 0 px -> 0 m and 300 px -> 30 m."""
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(300, 0), SegmentColor.RED)
    model.calibration.load([
        CalibrationPoint(id=1, segment_index=0, pixel_offset_absolute=0.0, meters_value=0.0),
        CalibrationPoint(id=2, segment_index=0, pixel_offset_absolute=300.0, meters_value=30.0),
    ])
    return model


# ===== Zones =====

def test_zones_chain_in_pixels_and_meters():
    model = _calibrated_line()
    first = model.zones.add_boundary_at(0, 100.0)
    second = model.zones.add_boundary_at(0, 200.0)
    third = model.zones.add_boundary(Point(250, 0))

    zones = model.zones.zones
    assert [z.id for z in zones] == [1, 2, 3]

    assert first.pixel_offset_absolute_start == 1
    for previous, current in zip(zones, zones[1:]):
        assert current.pixel_offset_absolute_start == previous.pixel_offset_absolute_end + 1
        assert current.meters_offset_absolute_start == previous.meters_offset_absolute_end + 1

    assert (first.meters_offset_absolute_start, first.meters_offset_absolute_end) == (1.0, 10.0)
    assert (second.meters_offset_absolute_start, second.meters_offset_absolute_end) == (11.0, 20.0)
    assert (third.meters_offset_absolute_start, third.meters_offset_absolute_end) == (21.0, 25.0)
    assert third.pixel_length == pytest.approx(49.0)
    assert third.meters_length == 4.0
    assert [z.color for z in zones] == [ZONE_COLORS[0], ZONE_COLORS[1], ZONE_COLORS[0]]


def test_zone_click_off_path_is_ignored():
    model = _calibrated_line()
    assert model.zones.add_boundary(Point(150, 40)) is None
    assert len(model.zones) == 0


def test_zone_meters_are_frozen_at_creation():
    model = _calibrated_line()
    zone = model.zones.add_boundary_at(0, 100.0)

    model.calibration.set_meters(2, 60.0)
    assert model.zones.get(zone.id).meters_offset_absolute_end == 10.0
    assert model.mapper.pixels_to_meters(100.0) == pytest.approx(20.0)


def test_zone_without_calibration_is_unresolved():
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)

    zone = model.zones.add_boundary_at(0, 50.0)
    assert not zone.is_resolved
    assert zone.meters_offset_absolute_start is None
    assert zone.meters_length is None
    assert not zone.contains_meters(0.0)

    assert model.mapper.meters_to_pixels(5.0) is None
    assert model.alarms.trigger(5.0) is None
    assert len(model.alarms) == 0


def test_meters_to_pixels_within_zones():
    model = _calibrated_line()
    model.zones.add_boundary_at(0, 100.0)
    model.zones.add_boundary_at(0, 200.0)

    placement = model.mapper.meters_to_pixels(15.0)
    assert placement.zone_id == 2
    assert placement.pixel_absolute == 150

    assert model.zones.zone_containing_meters(10.0).id == 1
    # between zone 1 (..10 m) and zone 2 (11 m..)
    assert model.mapper.meters_to_pixels(10.5) is None
    assert model.mapper.meters_to_pixels(25.0) is None


def test_zone_segment_with_one_point_uses_uniform_scale():
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)
    model.path.append_segment(Point(100, 0), Point(100, 100), SegmentColor.GREEN)
    model.calibration.load([
        CalibrationPoint(id=1, segment_index=0, pixel_offset_absolute=0.0, meters_value=0.0),
        CalibrationPoint(id=2, segment_index=1, pixel_offset_absolute=200.0, meters_value=20.0),
    ])
    zone = model.zones.add_boundary_at(1, 200.0)
    assert (zone.meters_offset_absolute_start, zone.meters_offset_absolute_end) == (1.0, 20.0)

    placement = model.mapper.meters_to_pixels(10.0)
    # 1 px + 9 m / (19 m / 199 px)
    assert placement.pixel_absolute == 95
    assert placement.segment_index == 0
    assert placement.zone_id == zone.id


def test_zone_with_equal_meter_bounds_places_at_its_start():
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)
    model.zones.load([Zone(
        id=1,
        segment_index=0,
        pixel_offset_absolute_start=1.0,
        pixel_offset_absolute_end=40.0,
        pixel_length=39.0,
        meters_offset_absolute_start=5.0,
        meters_offset_absolute_end=5.0,
        meters_length=0.0,
    )])

    placement = model.mapper.meters_to_pixels(5.0)
    assert placement.zone_id == 1
    assert placement.pixel_absolute == 1
    assert model.mapper.meters_to_pixels(5.5) is None


def test_zone_wire_format():
    record = {
        'id': 1,
        'segmentIndex': 0,
        'positionZoneStartPixelsAbsolute': 1,
        'positionZoneEndPixelsAbsolute': 100,
        'positionZoneTotalLengthPixels': 99,
        'positionZoneStartMetersAbsolute': None,
        'positionZoneEndMetersAbsolute': None,
        'positionZoneTotalLengthMeters': None,
        'color': '#1E90FF',
    }
    zone = Zone.from_dict(record)
    assert zone.pixel_offset_absolute_end == 100.0
    assert not zone.is_resolved
    assert zone.to_dict() == {**record, 'positionZoneStartPixelsAbsolute': 1.0,
                              'positionZoneEndPixelsAbsolute': 100.0,
                              'positionZoneTotalLengthPixels': 99.0}

    with pytest.raises(ValueError):
        Zone.from_dict({'id': 1, 'segmentIndex': 0})


# ===== Alarms =====

def test_alarm_is_projected_and_logged():
    model = _calibrated_line()
    alarm = model.alarms.trigger(7.5)

    assert alarm.segment_index == 0
    assert alarm.pixel_offset_absolute == 75
    assert alarm.pixel_offset_relative == pytest.approx(75.0)
    assert alarm.meters_value == 7.5
    assert alarm.zone_id is None
    assert alarm.color == ALARM_COLOR
    assert (alarm.x, alarm.y) == (75.0, 0.0)
    assert model.alarms.latest == alarm
    assert len(model.alarms) == 1


def test_alarm_ids_strictly_increase():
    model = _calibrated_line()
    log = AlarmLog(model.mapper, clock=lambda: 1700000000.0)

    first = log.trigger(5.0)
    second = log.trigger(6.0)
    assert first.id == 1700000000000
    assert second.id == first.id + 1
    assert [a.id for a in log.alarms] == [first.id, second.id]


def test_alarm_wire_format():
    model = _calibrated_line()
    alarm = model.alarms.trigger(12.0)
    record = alarm.to_dict()

    assert record['positionPxAbsolute'] == 120
    assert record['zoneID'] is None
    assert Alarm.from_dict(record) == alarm

    with pytest.raises(ValueError):
        Alarm.from_dict({'id': 1})


# ===== MapModel =====

def test_snapshot_uses_wire_records():
    model = _calibrated_line()
    model.zones.add_boundary_at(0, 100.0)

    snapshot = model.snapshot().to_dict()
    assert set(snapshot) == {'line_list', 'point_list', 'zone_list'}
    assert snapshot['line_list'][0]['length'] == 300.0
    assert snapshot['point_list'][1]['positionMeters'] == 30.0
    assert snapshot['zone_list'][0]['positionZoneEndMetersAbsolute'] == 10.0

    rebuilt = MapModel.from_records(snapshot['line_list'], snapshot['point_list'], snapshot['zone_list'])
    assert rebuilt.snapshot() == model.snapshot()


def test_snapshot_is_isolated_from_later_edits():
    model = _calibrated_line()
    snapshot = model.snapshot()
    model.calibration.set_meters(2, 99.0)
    assert snapshot.points[1]['positionMeters'] == 30.0


def test_reset_keeps_alarms():
    model = _calibrated_line()
    model.zones.add_boundary_at(0, 100.0)
    model.alarms.trigger(5.0)

    model.reset()
    assert len(model.path) == 0
    assert len(model.calibration) == 0
    assert len(model.zones) == 0
    assert len(model.alarms) == 1
