"""Schedule sources: where the network's stops and lines come from.

Any object with list_stops() and list_lines() can feed the NetworkStore:
- InMemoryScheduleSource: fixed lists (tests, fixtures)
- SqlScheduleSource: transit_stops / transit_lines / transit_line_stops tables
- GtfsDirectoryScheduleSource: a directory of GTFS .txt files
"""

import csv
import logging
from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Tuple, Union, runtime_checkable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from src.transit_bc.exceptions import DataUnavailableError, InvalidCoordinatesError
from src.transit_bc.line.domain.entities.line import DEFAULT_COLOR, DEFAULT_FARE, Line, TransportMode
from src.transit_bc.line.infrastructure.models import LineModel
from src.transit_bc.stop.domain.entities.stop import Stop
from src.transit_bc.stop.infrastructure.models import StopModel

logger = logging.getLogger(__name__)


@runtime_checkable
class ScheduleSource(Protocol):
    """Read-only provider of the raw network data."""

    def list_stops(self) -> List[Stop]:
        ...

    def list_lines(self) -> List[Line]:
        ...


class InMemoryScheduleSource:
    """Serves stops and lines held in memory."""

    def __init__(self, stops: Iterable[Stop], lines: Iterable[Line]):
        self._stops = list(stops)
        self._lines = list(lines)

    def list_stops(self) -> List[Stop]:
        return list(self._stops)

    def list_lines(self) -> List[Line]:
        return list(self._lines)


class SqlScheduleSource:
    """Reads stops and lines through SQLAlchemy.

    Args:
        session_factory: Callable returning a new Session (e.g. SessionLocal)
    """

    def __init__(self, session_factory: Callable[[], Session], default_fare: float = DEFAULT_FARE):
        self.session_factory = session_factory
        self.default_fare = default_fare

    def list_stops(self) -> List[Stop]:
        try:
            with self.session_factory() as db:
                rows = db.query(StopModel).order_by(StopModel.id).all()
                candidates = [
                    Stop(id=row.id, name=row.name, lat=row.lat, lon=row.lon, code=row.code)
                    for row in rows
                ]
        except SQLAlchemyError as e:
            raise DataUnavailableError(f"Failed to read stops: {e}") from e

        stops = []
        for stop in candidates:
            try:
                stop.coordinates  # validates lat/lon range
            except InvalidCoordinatesError as e:
                logger.warning(f"Skipping stop {stop.id}: {e}")
                continue
            stops.append(stop)
        return stops

    def list_lines(self) -> List[Line]:
        try:
            with self.session_factory() as db:
                rows = (
                    db.query(LineModel)
                    .options(selectinload(LineModel.stops))
                    .order_by(LineModel.id)
                    .all()
                )
                return [self._to_line(row) for row in rows]
        except SQLAlchemyError as e:
            raise DataUnavailableError(f"Failed to read lines: {e}") from e

    def _to_line(self, row: LineModel) -> Line:
        try:
            mode = TransportMode(row.mode)
        except ValueError:
            logger.warning(f"Line {row.id} has unknown mode '{row.mode}', treating as bus")
            mode = TransportMode.BUS

        return Line(
            id=row.id,
            name=row.name,
            mode=mode,
            stop_ids=tuple(line_stop.stop_id for line_stop in row.stops),
            fare=row.fare if row.fare is not None else self.default_fare,
            color=row.color or DEFAULT_COLOR,
            short_name=row.short_name,
        )


class GtfsDirectoryScheduleSource:
    """Reads a static GTFS feed unpacked into a directory.

    A route's stop sequence is taken from its first trip listed in
    trips.txt, ordered by stop_sequence. Every line gets the same flat fare.
    """

    STOPS_FILE = "stops.txt"
    ENRICHED_STOPS_FILE = "stops-enriched.txt"  # Same columns, human-readable names

    def __init__(self, path: Union[str, Path], default_fare: float = DEFAULT_FARE):
        self.path = Path(path)
        self.default_fare = default_fare

    def _read_csv(self, filename: str) -> List[Dict[str, str]]:
        filepath = self.path / filename
        if not filepath.is_file():
            raise DataUnavailableError(f"GTFS file not found: {filepath}")

        try:
            with open(filepath, "r", encoding="utf-8-sig", newline="") as f:
                reader = csv.DictReader(f)
                if reader.fieldnames:
                    reader.fieldnames = [name.strip() for name in reader.fieldnames]
                return [
                    {key: (value or "").strip() for key, value in row.items() if key}
                    for row in reader
                ]
        except (OSError, csv.Error, UnicodeDecodeError) as e:
            raise DataUnavailableError(f"Failed to read {filepath}: {e}") from e

    def list_stops(self) -> List[Stop]:
        if not self.path.is_dir():
            raise DataUnavailableError(f"GTFS directory not found: {self.path}")

        filename = self.STOPS_FILE
        if (self.path / self.ENRICHED_STOPS_FILE).is_file():
            logger.info("Using enriched stop names")
            filename = self.ENRICHED_STOPS_FILE

        stops = []
        skipped = 0
        for row in self._read_csv(filename):
            try:
                stop = Stop.from_gtfs(row)
                stop.coordinates  # validates lat/lon range
                stops.append(stop)
            except ValueError:
                skipped += 1

        if skipped:
            logger.warning(f"Skipped {skipped} stops with unreadable coordinates in {filename}")
        logger.info(f"Loaded {len(stops):,} stops from GTFS")
        return stops

    def list_lines(self) -> List[Line]:
        if not self.path.is_dir():
            raise DataUnavailableError(f"GTFS directory not found: {self.path}")

        routes = self._read_csv("routes.txt")
        sequences = self._route_stop_sequences()

        lines = [
            Line.from_gtfs(route, sequences.get(route.get("route_id", ""), ()), self.default_fare)
            for route in routes
        ]
        logger.info(f"Loaded {len(lines):,} lines from GTFS")
        return lines

    def _route_stop_sequences(self) -> Dict[str, Tuple[str, ...]]:
        """Stop sequence of each route's first trip."""
        first_trip_by_route: Dict[str, str] = {}
        for trip in self._read_csv("trips.txt"):
            route_id = trip.get("route_id")
            trip_id = trip.get("trip_id")
            if route_id and trip_id and route_id not in first_trip_by_route:
                first_trip_by_route[route_id] = trip_id

        wanted = set(first_trip_by_route.values())
        stop_times: Dict[str, List[Tuple[int, str]]] = defaultdict(list)
        for row in self._read_csv("stop_times.txt"):
            trip_id = row.get("trip_id")
            if trip_id not in wanted:
                continue
            sequence = _parse_int(row.get("stop_sequence"))
            if sequence is None:
                continue
            stop_times[trip_id].append((sequence, row.get("stop_id", "")))

        sequences: Dict[str, Tuple[str, ...]] = {}
        for route_id, trip_id in first_trip_by_route.items():
            ordered = sorted(stop_times.get(trip_id, []))
            # A stop visited twice keeps its first position
            stop_ids = dict.fromkeys(stop_id for _, stop_id in ordered if stop_id)
            sequences[route_id] = tuple(stop_ids)
        return sequences


def _parse_int(value: Optional[str]) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
