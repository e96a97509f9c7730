"""
Calibration Tests (CalibrationStore, PxMetersMapper)
====================================================

Usage:
    pytest test_calibration.py
"""

import pytest

from pathcal_zone import (
    CalibrationPoint,
    CalibrationStore,
    MapModel,
    Point,
    PxMetersMapper,
    SegmentColor,
    PathModel,
    Zone,
)
from pathcal_zone.calibration.mapper import round_half_up


def _two_segment_model() -> MapModel:
    """Segments of 100 px and 50 px, calibrated 0 px -> 0 m and 150 px -> 15 m."""
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)
    model.path.append_segment(Point(100, 0), Point(100, 50), SegmentColor.GREEN)
    model.calibration.load([
        CalibrationPoint(id=1, segment_index=0, pixel_offset_absolute=0.0, meters_value=0.0),
        CalibrationPoint(id=2, segment_index=1, pixel_offset_absolute=150.0, meters_value=15.0),
    ])
    return model


def _straight_model(first=(20.0, 3.0), second=(180.0, 35.0)) -> MapModel:
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(200, 0), SegmentColor.RED)
    model.calibration.load([
        CalibrationPoint(id=1, segment_index=0, pixel_offset_absolute=first[0], meters_value=first[1]),
        CalibrationPoint(id=2, segment_index=0, pixel_offset_absolute=second[0], meters_value=second[1]),
    ])
    return model


# ===== CalibrationStore =====

def test_add_anchors_point_on_path():
    path = PathModel()
    path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)
    path.append_segment(Point(100, 0), Point(100, 50), SegmentColor.GREEN)
    store = CalibrationStore(path)

    point = store.add(Point(100, 30))
    assert point.id == 1
    assert point.segment_index == 1
    assert point.pixel_offset_absolute == pytest.approx(130.0)
    assert point.meters_value == 0.0

    assert store.add(Point(40, 40)) is None
    assert len(store) == 1


def test_add_at_origin_is_stored_at_pixel_one():
    store = CalibrationStore(PathModel())
    point = store.add_at(0, 0.0)
    assert point.pixel_offset_absolute == 1.0


def test_ids_are_unique_and_increasing():
    store = CalibrationStore(PathModel())
    store.load([CalibrationPoint(id=4, segment_index=0, pixel_offset_absolute=10.0)])
    assert store.add_at(0, 20.0).id == 5
    assert store.add_at(0, 30.0).id == 6


def test_set_meters_replaces_point():
    store = CalibrationStore(PathModel())
    point = store.add_at(0, 42.0)

    updated = store.set_meters(point.id, 12.5)
    assert updated.meters_value == 12.5
    assert updated.pixel_offset_absolute == 42.0
    assert store.get(point.id) == updated
    assert point.meters_value == 0.0

    with pytest.raises(KeyError):
        store.set_meters(99, 1.0)


def test_sorted_by_offset_keeps_insertion_order_on_ties():
    store = CalibrationStore(PathModel())
    store.add_at(0, 50.0)
    store.add_at(0, 10.0)
    store.add_at(0, 50.0)
    assert [p.id for p in store.sorted_by_offset()] == [2, 1, 3]


def test_load_rejects_duplicate_ids():
    store = CalibrationStore(PathModel())
    duplicate = CalibrationPoint(id=1, segment_index=0, pixel_offset_absolute=5.0)
    with pytest.raises(ValueError):
        store.load([duplicate, duplicate])


def test_point_wire_format():
    record = {'id': 3, 'segmentIndex': 1, 'positionPx': 120.5, 'positionMeters': 12, 'color': '#FDEE2F'}
    point = CalibrationPoint.from_dict(record)
    assert point.segment_index == 1
    assert point.to_dict() == {
        'id': 3, 'lineIndex': 1, 'positionPx': 120.5, 'color': '#FDEE2F', 'positionMeters': 12.0,
    }

    with pytest.raises(ValueError):
        CalibrationPoint.from_dict({'id': 1, 'positionPx': 1.0})
    with pytest.raises(ValueError):
        CalibrationPoint.from_dict({'id': 0, 'lineIndex': 0, 'positionPx': 1.0})


# ===== PxMetersMapper =====

def test_two_segment_scenario():
    model = _two_segment_model()

    assert model.mapper.pixels_to_meters(75) == pytest.approx(7.5)

    placement = model.mapper.meters_to_pixels(7.5)
    assert placement.pixel_absolute == 75
    assert placement.segment_index == 0
    assert placement.pixel_relative == pytest.approx(75.0)
    assert placement.zone_id is None
    assert placement.point == Point(75, 0)


def test_placement_on_second_segment():
    model = _two_segment_model()
    placement = model.mapper.meters_to_pixels(12.0)
    assert placement.pixel_absolute == 120
    assert placement.segment_index == 1
    assert placement.pixel_relative == pytest.approx(20.0)
    assert placement.point == Point(100, 20)


def test_no_calibration_is_undetermined():
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)

    assert model.mapper.pixels_to_meters(50) is None
    assert model.mapper.meters_to_pixels(5) is None

    model.calibration.add_at(0, 40.0)
    assert model.mapper.pixels_to_meters(50) is None
    assert model.mapper.meters_to_pixels(5) is None


def test_exact_hit_returns_control_value():
    model = _straight_model()
    assert model.mapper.pixels_to_meters(20.0) == 3.0
    assert model.mapper.pixels_to_meters(180.0) == 35.0


def test_round_trip_between_points():
    model = _straight_model()
    for pixel in [21, 50.5, 100, 133.25, 179]:
        meters = model.mapper.pixels_to_meters(pixel)
        placement = model.mapper.meters_to_pixels(meters)
        assert abs(placement.pixel_absolute - pixel) <= 0.5 + 1e-9


def test_extrapolation_is_monotonic_increasing():
    model = _straight_model()
    pixels = [model.mapper.meters_to_pixels(m).pixel_absolute for m in (36, 40, 50, 60)]
    assert all(a < b for a, b in zip(pixels, pixels[1:]))
    # 180 px + 5 m * (160 px / 32 m)
    assert pixels[1] == 205


def test_extrapolation_is_monotonic_decreasing():
    # meters decrease along the pixel direction
    model = _straight_model(first=(20.0, 35.0), second=(180.0, 3.0))
    pixels = [model.mapper.meters_to_pixels(m).pixel_absolute for m in (36, 37, 38)]
    assert pixels == [15, 10, 5]
    assert all(a > b for a, b in zip(pixels, pixels[1:]))


def test_extrapolation_before_first_point():
    model = _straight_model()
    # 20 px - 1 m * 5 px/m
    assert model.mapper.pixels_to_meters(15.0) == pytest.approx(2.0)
    assert model.mapper.meters_to_pixels(2.0).pixel_absolute == 15


def test_tied_offsets_use_first_created_point():
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(200, 0), SegmentColor.RED)
    model.calibration.load([
        CalibrationPoint(id=1, segment_index=0, pixel_offset_absolute=100.0, meters_value=10.0),
        CalibrationPoint(id=2, segment_index=0, pixel_offset_absolute=100.0, meters_value=99.0),
        CalibrationPoint(id=3, segment_index=0, pixel_offset_absolute=200.0, meters_value=20.0),
    ])
    assert model.mapper.pixels_to_meters(100.0) == 10.0
    # interpolates from the tie group's first point: 10 + 50 * (10 / 100)
    assert model.mapper.pixels_to_meters(150.0) == pytest.approx(15.0)


def test_meters_are_not_rounded():
    model = _two_segment_model()
    assert model.mapper.pixels_to_meters(33.3) == pytest.approx(3.33)


def test_alarm_pixel_rounds_half_up():
    assert round_half_up(74.5) == 75
    assert round_half_up(74.49) == 74
    assert round_half_up(-0.5) == 0

    model = _two_segment_model()
    assert model.mapper.meters_to_pixels(7.45).pixel_absolute == 75


def test_uniform_scale_inside_zone():
    zone = Zone(
        id=1,
        segment_index=0,
        pixel_offset_absolute_start=0.0,
        pixel_offset_absolute_end=300.0,
        pixel_length=300.0,
        meters_offset_absolute_start=0.0,
        meters_offset_absolute_end=30.0,
        meters_length=30.0,
    )
    mapper = PxMetersMapper(PathModel(), CalibrationStore(PathModel()), zones=[zone])

    placement = mapper.meters_to_pixels(20.0)
    assert placement.pixel_absolute == 200
    assert placement.zone_id == 1
    assert placement.segment_index == 0
    assert placement.point is None

    assert mapper.meters_to_pixels(31.0) is None
