"""
Map Repository
==============

Bounded Context: Persistence

HTTP client for the map backend.

Endpoints:
    GET  /maps                 → list of {id, owner, name, image}
    GET  /maps/{id}            → {line_list, point_list, zone_list, ...}
    GET  /maps/{id}/image      → image bytes
    PUT  /maps/{id}            ← one of {line_list}, {point_list}, {zone_list}

Error Policy:
    Every transport failure, non-2xx status or malformed body surfaces as
    PersistenceError. Nothing here touches the in-memory stores.
"""

from typing import Any, Dict, Iterable, List, Optional

import requests

from pathcal_zone import CalibrationPoint, MapSnapshot, Segment, Zone
from ..logging import StructuredLogger, LogEvent
from ..schemas import MapDocument, MapInfo


class PersistenceError(Exception):
    """Backend unreachable, rejected the request or returned malformed data."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MapRepository:
    """
    Reads and writes one map on the backend.

    Example:
        >>> repository = MapRepository("http://localhost:5000", map_id=3, logger=logger)
        >>> document = repository.fetch_document()
        >>> repository.save_path(document.lines)
    """

    def __init__(
        self,
        base_url: str,
        map_id: int,
        logger: StructuredLogger,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0
    ):
        self.base_url = base_url.rstrip('/')
        self.map_id = map_id
        self.logger = logger
        self.session = session or requests.Session()
        self.timeout = timeout

    # ===== Reads =====

    def list_maps(self) -> List[MapInfo]:
        body = self._request_json('GET', '/maps')
        if not isinstance(body, list):
            raise self._malformed('/maps', "expected a JSON list")
        try:
            return [MapInfo.from_dict(entry) for entry in body]
        except ValueError as e:
            raise self._malformed('/maps', str(e))

    def fetch_document(self) -> MapDocument:
        """
        Fetch path, calibration and zones of the map.

        Raises:
            PersistenceError: On transport failure or malformed records
        """
        path = f'/maps/{self.map_id}'
        body = self._request_json('GET', path)
        try:
            document = MapDocument.from_dict(self.map_id, body)
        except ValueError as e:
            raise self._malformed(path, str(e))

        self.logger.info(
            event=LogEvent.PERSISTENCE_FETCH_SUCCESS,
            message="Fetched map document",
            metadata={
                'map_id': self.map_id,
                'lines': len(document.lines),
                'points': len(document.points),
                'zones': len(document.zones),
            }
        )
        return document

    def fetch_path(self) -> List[Segment]:
        return list(self.fetch_document().lines)

    def fetch_calibration(self) -> List[CalibrationPoint]:
        return list(self.fetch_document().points)

    def fetch_zones(self) -> List[Zone]:
        return list(self.fetch_document().zones)

    def fetch_image(self) -> bytes:
        """Raw bytes of the floor-plan image."""
        response = self._request('GET', f'/maps/{self.map_id}/image')
        return response.content

    # ===== Writes =====

    def save_path(self, segments: Iterable[Segment]) -> None:
        self._put('line_list', [segment.to_dict() for segment in segments])

    def save_calibration(self, points: Iterable[CalibrationPoint]) -> None:
        self._put('point_list', [point.to_dict() for point in points])

    def save_zones(self, zones: Iterable[Zone]) -> None:
        self._put('zone_list', [zone.to_dict() for zone in zones])

    def save_snapshot(self, snapshot: MapSnapshot) -> None:
        """
        Write path, calibration and zones of a snapshot (three PUTs).

        Raises:
            PersistenceError: On the first failed PUT; later ones are skipped
        """
        self._put('line_list', list(snapshot.lines))
        self._put('point_list', list(snapshot.points))
        self._put('zone_list', list(snapshot.zones))
        self.logger.info(
            event=LogEvent.PERSISTENCE_SAVE_SUCCESS,
            message="Saved map snapshot",
            metadata={
                'map_id': self.map_id,
                'lines': len(snapshot.lines),
                'points': len(snapshot.points),
                'zones': len(snapshot.zones),
            }
        )

    def close(self) -> None:
        self.session.close()

    # ===== Internals =====

    def _put(self, key: str, records: List[Dict[str, Any]]) -> None:
        self._request('PUT', f'/maps/{self.map_id}', json={key: records})

    def _request_json(self, method: str, path: str) -> Any:
        response = self._request(method, path)
        try:
            return response.json()
        except ValueError as e:
            raise self._malformed(path, f"invalid JSON ({e})")

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
            return response
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            self.logger.error(
                event=LogEvent.PERSISTENCE_ERROR,
                message=f"{method} {path} failed",
                exc_info=e,
                metadata={'map_id': self.map_id, 'status_code': status}
            )
            raise PersistenceError(f"{method} {url} returned {status}", status_code=status) from e
        except requests.RequestException as e:
            self.logger.error(
                event=LogEvent.PERSISTENCE_ERROR,
                message=f"{method} {path} unreachable",
                exc_info=e,
                metadata={'map_id': self.map_id}
            )
            raise PersistenceError(f"{method} {url} failed: {e}") from e

    def _malformed(self, path: str, detail: str) -> PersistenceError:
        self.logger.error(
            event=LogEvent.SCHEMA_VALIDATION_ERROR,
            message=f"Malformed response from {path}",
            metadata={'map_id': self.map_id, 'detail': detail}
        )
        return PersistenceError(f"Malformed response from {path}: {detail}")
