"""
Persistence Tests (MapRepository, SaveWorker, BaseImage, schemas)
=================================================================

HTTP is replaced by an in-process fake session; no backend is needed.

Usage:
    pytest test_persistence.py
"""

import json
import logging

import cv2
import numpy as np
import pytest
import requests

from pathcal_zone import MapModel, Point, SegmentColor
from pathcal_io.backend import BaseImage, MapRepository, PersistenceError, SaveWorker
from pathcal_io.logging import create_logger
from pathcal_io.schemas import MapDocument, MapInfo

BASE_URL = "http://backend.test"

LINE = {'start': {'x': 0, 'y': 0}, 'end': {'x': 100, 'y': 0}, 'length': 100, 'color': '#D80300', 'index': 1}
POINT = {'id': 1, 'lineIndex': 0, 'positionPx': 1, 'color': '#FDEE2F', 'positionMeters': 0}


def _response(status: int, body=None, content: bytes = b"") -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response.encoding = "utf-8"
    response._content = json.dumps(body).encode() if body is not None else content
    return response


class FakeSession:
    """Stands in for requests.Session, keyed by (method, path)."""

    def __init__(self, routes):
        self.routes = routes
        self.calls = []

    def request(self, method, url, timeout=None, **kwargs):
        path = url[len(BASE_URL):]
        self.calls.append((method, path, kwargs.get('json')))
        outcome = self.routes[(method, path)]
        if isinstance(outcome, Exception):
            raise outcome
        outcome.url = url
        return outcome

    def close(self):
        pass


def _repository(routes) -> MapRepository:
    return MapRepository(
        BASE_URL,
        map_id=3,
        logger=create_logger("test_repository", level=logging.CRITICAL),
        session=FakeSession(routes),
    )


# ===== Reads =====

def test_list_maps():
    repository = _repository({
        ('GET', '/maps'): _response(200, [
            {'id': 3, 'owner': 'ops', 'name': 'Tunnel A', 'image': 'tunnel.png'},
            {'id': 4, 'name': 'Tunnel B'},
        ]),
    })
    maps = repository.list_maps()
    assert maps == [
        MapInfo(id=3, name='Tunnel A', owner='ops', image='tunnel.png'),
        MapInfo(id=4, name='Tunnel B'),
    ]


def test_fetch_document_parses_records():
    repository = _repository({
        ('GET', '/maps/3'): _response(200, {'name': 'Tunnel A', 'line_list': [LINE], 'point_list': [POINT], 'zone_list': None}),
    })
    document = repository.fetch_document()

    assert document.map_id == 3
    assert document.lines[0].length == 100.0
    assert document.points[0].pixel_offset_absolute == 1.0
    assert document.zones == ()
    assert repository.fetch_path()[0].color is SegmentColor.RED


def test_malformed_document_raises_persistence_error():
    broken_line = dict(LINE)
    del broken_line['index']
    repository = _repository({
        ('GET', '/maps/3'): _response(200, {'line_list': [broken_line]}),
    })
    with pytest.raises(PersistenceError):
        repository.fetch_document()


def test_invalid_json_raises_persistence_error():
    repository = _repository({('GET', '/maps'): _response(200, content=b"<html>")})
    with pytest.raises(PersistenceError):
        repository.list_maps()


def test_http_error_keeps_status_code():
    repository = _repository({('GET', '/maps/3'): _response(503, {'error': 'down'})})
    with pytest.raises(PersistenceError) as error:
        repository.fetch_document()
    assert error.value.status_code == 503


def test_unreachable_backend():
    repository = _repository({('GET', '/maps/3/image'): requests.ConnectionError("refused")})
    with pytest.raises(PersistenceError) as error:
        repository.fetch_image()
    assert error.value.status_code is None


def test_fetch_rejects_inconsistent_records():
    duplicate_ids = {'line_list': [LINE], 'point_list': [POINT, dict(POINT, positionPx=50)]}
    repository = _repository({('GET', '/maps/3'): _response(200, duplicate_ids)})
    with pytest.raises(PersistenceError):
        repository.fetch_document()

    wrong_length = {'line_list': [dict(LINE, length=80)]}
    repository = _repository({('GET', '/maps/3'): _response(200, wrong_length)})
    with pytest.raises(PersistenceError):
        repository.fetch_path()


def test_fetch_calibration_and_zones():
    zone = {
        'id': 1, 'segmentIndex': 0,
        'positionZoneStartPixelsAbsolute': 1, 'positionZoneEndPixelsAbsolute': 60,
        'positionZoneTotalLengthPixels': 59,
        'positionZoneStartMetersAbsolute': None, 'positionZoneEndMetersAbsolute': None,
        'positionZoneTotalLengthMeters': None, 'color': '#1E90FF',
    }
    repository = _repository({
        ('GET', '/maps/3'): _response(200, {'line_list': [LINE], 'point_list': [POINT], 'zone_list': [zone]}),
    })
    points = repository.fetch_calibration()
    zones = repository.fetch_zones()

    assert [p.id for p in points] == [1]
    assert zones[0].pixel_offset_absolute_end == 60.0
    assert not zones[0].is_resolved


# ===== Writes =====

def test_save_snapshot_puts_each_list():
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)
    model.calibration.add_at(0, 40.0)
    model.zones.add_boundary_at(0, 80.0)

    ok = _response(200, {'status': 'ok'})
    repository = _repository({('PUT', '/maps/3'): ok})
    repository.save_snapshot(model.snapshot())

    calls = repository.session.calls
    assert [(method, path) for method, path, _ in calls] == [('PUT', '/maps/3')] * 3
    assert [list(body) for _, _, body in calls] == [['line_list'], ['point_list'], ['zone_list']]
    assert calls[1][2]['point_list'][0]['positionPx'] == 40.0
    assert calls[2][2]['zone_list'][0]['positionZoneEndPixelsAbsolute'] == 80.0


def test_save_stops_at_first_failure():
    repository = _repository({('PUT', '/maps/3'): _response(500, {'error': 'boom'})})
    with pytest.raises(PersistenceError):
        repository.save_snapshot(MapModel().snapshot())
    assert len(repository.session.calls) == 1


def test_save_typed_lists():
    model = MapModel()
    model.path.append_segment(Point(0, 0), Point(100, 0), SegmentColor.RED)
    model.calibration.add_at(0, 40.0)
    model.zones.add_boundary_at(0, 80.0)

    repository = _repository({('PUT', '/maps/3'): _response(200, {'status': 'ok'})})
    repository.save_path(model.path)
    repository.save_calibration(model.calibration)
    repository.save_zones(model.zones)

    bodies = [body for _, _, body in repository.session.calls]
    assert bodies == [
        {'line_list': [model.path.segment(0).to_dict()]},
        {'point_list': [model.calibration.get(1).to_dict()]},
        {'zone_list': [model.zones.get(1).to_dict()]},
    ]


# ===== SaveWorker =====

class RecordingRepository:
    map_id = 3

    def __init__(self, error=None):
        self.error = error
        self.saved = []

    def save_snapshot(self, snapshot):
        if self.error is not None:
            raise self.error
        self.saved.append(snapshot)


def test_save_worker_resolves_future():
    repository = RecordingRepository()
    worker = SaveWorker(repository, logger=create_logger("test_save", level=logging.CRITICAL))
    worker.start()
    try:
        snapshot = MapModel().snapshot()
        future = worker.submit(snapshot)
        assert future.result(timeout=5) is None
        assert repository.saved == [snapshot]
    finally:
        worker.stop()


def test_save_worker_delivers_failure():
    repository = RecordingRepository(error=PersistenceError("backend down", status_code=503))
    worker = SaveWorker(repository, logger=create_logger("test_save", level=logging.CRITICAL))
    worker.start()
    try:
        future = worker.submit(MapModel().snapshot())
        assert isinstance(future.exception(timeout=5), PersistenceError)
    finally:
        worker.stop()


def test_save_worker_must_be_started():
    worker = SaveWorker(RecordingRepository(), logger=create_logger("test_save", level=logging.CRITICAL))
    with pytest.raises(RuntimeError):
        worker.submit(MapModel().snapshot())


def test_save_worker_survives_unexpected_errors():
    repository = RecordingRepository(error=RuntimeError("disk full"))
    worker = SaveWorker(repository, logger=create_logger("test_save", level=logging.CRITICAL))
    worker.start()
    try:
        failed = worker.submit(MapModel().snapshot())
        assert isinstance(failed.exception(timeout=5), RuntimeError)

        repository.error = None
        assert worker.submit(MapModel().snapshot()).result(timeout=5) is None
        assert len(repository.saved) == 1
    finally:
        worker.stop()


# ===== BaseImage / schemas =====

def test_base_image_resolution():
    ok, encoded = cv2.imencode('.png', np.zeros((48, 64, 3), dtype=np.uint8))
    assert ok
    image = BaseImage.decode(encoded.tobytes())
    assert image.frame_resolution_wh == (64, 48)

    with pytest.raises(ValueError):
        BaseImage.decode(b"not an image")
    with pytest.raises(ValueError):
        BaseImage.decode(b"")


def test_map_document_rejects_non_list():
    with pytest.raises(ValueError):
        MapDocument.from_dict(1, {'line_list': {'a': 1}})
    assert MapDocument.from_dict(1, {}).is_empty
