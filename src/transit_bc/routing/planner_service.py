"""Route planning service.

Entry point for planning requests, by stop ID or by raw coordinates. Reads
the network snapshot once per call, runs one search per optimization filter
and assembles the itineraries.

Coordinate requests add first/last-mile walking: the traveller walks from
the exact origin to a boarding stop and from the alighting stop to the
exact destination. Up to N distinct boarding stops are tried and, per
filter, the best door-to-door candidate is kept.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Tuple, Union

from src.transit_bc.exceptions import StopNotFoundError
from src.transit_bc.line.domain.entities.line import Line
from src.transit_bc.routing.edge_weights import RouteFilter
from src.transit_bc.routing.itinerary import Itinerary, WalkingLeg, build_itinerary
from src.transit_bc.routing.nearest_stops import (
    DEFAULT_CANDIDATES,
    find_nearest_stop,
    find_nearest_stops,
    find_stops_within,
)
from src.transit_bc.routing.network import NetworkSnapshot
from src.transit_bc.routing.network_store import NetworkStore
from src.transit_bc.routing.routing_service import RoutingService
from src.transit_bc.stop.domain.entities.stop import Stop
from src.transit_bc.stop.domain.value_objects.geo import Coordinates, haversine_distance_km

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

WALKING_METERS_PER_MINUTE = 80.0  # Access/egress walking pace
MIN_TRIP_DISTANCE_KM = 0.2  # Below this, suggest walking instead of transit
LONG_WALK_NOTICE_KM = 0.5
NEARBY_RADIUS_KM = 1.5  # About 15-20 minutes on foot
NEARBY_LIMIT = 8
FAR_TRIP_KM = 50.0


def walking_minutes(distance_km: float) -> int:
    """Walking time at WALKING_METERS_PER_MINUTE, rounded to whole minutes."""
    return int(round(distance_km * 1000 / WALKING_METERS_PER_MINUTE))


# =============================================================================
# Walking geometry
# =============================================================================

@dataclass(frozen=True)
class WalkingGeometry:
    """Pedestrian path returned by a routing service."""
    coordinates: Tuple[Coordinates, ...]
    distance_km: float
    duration_minutes: int
    source: str


class WalkingRouteProvider(Protocol):
    """Optional provider of real pedestrian paths.

    Returns None when no path could be computed; planning then falls back to
    a straight-line estimate.
    """

    def route(self, origin: Coordinates, destination: Coordinates) -> Optional[WalkingGeometry]:
        ...


# =============================================================================
# Results
# =============================================================================

@dataclass(frozen=True)
class RoutePlan:
    """Result of planning between two stops.

    An empty itineraries tuple means no route was found.
    """
    origin: Stop
    destination: Stop
    itineraries: Tuple[Itinerary, ...]
    # Snapshot the plan was computed on, for resolving names
    snapshot: Optional[NetworkSnapshot] = field(default=None, repr=False, compare=False)

    @property
    def found(self) -> bool:
        return bool(self.itineraries)

    def for_filter(self, route_filter: RouteFilter) -> Optional[Itinerary]:
        for itinerary in self.itineraries:
            if itinerary.route_filter == route_filter:
                return itinerary
        return None


@dataclass(frozen=True)
class WalkingSuggestion:
    """Returned instead of transit when walking is the sensible answer."""
    distance_km: float
    duration_minutes: int
    message: str


@dataclass(frozen=True)
class NearbyStop:
    stop: Stop
    distance_km: float
    lines: Tuple[Line, ...] = ()


@dataclass(frozen=True)
class CoordinatePlan:
    """Result of planning between two arbitrary points."""
    origin: Coordinates
    destination: Coordinates
    origin_stops: Tuple[Stop, ...] = ()
    destination_stop: Optional[Stop] = None
    itineraries: Tuple[Itinerary, ...] = ()
    walking_suggestion: Optional[WalkingSuggestion] = None
    notices: Tuple[str, ...] = ()
    snapshot: Optional[NetworkSnapshot] = field(default=None, repr=False, compare=False)

    @property
    def found(self) -> bool:
        return bool(self.itineraries)

    def for_filter(self, route_filter: RouteFilter) -> Optional[Itinerary]:
        for itinerary in self.itineraries:
            if itinerary.route_filter == route_filter:
                return itinerary
        return None


# =============================================================================
# Service
# =============================================================================

def _ranking_key(itinerary: Itinerary):
    """Door-to-door ranking among candidates for the same filter."""
    minutes = itinerary.door_to_door_minutes
    if itinerary.route_filter == RouteFilter.FEWEST_TRANSFERS:
        return (itinerary.summary.transfer_count, minutes)
    if itinerary.route_filter == RouteFilter.CHEAPEST:
        return (itinerary.summary.total_fare, minutes)
    return (minutes,)


class RoutePlannerService:
    """Plans itineraries over the NetworkStore's current snapshot."""

    def __init__(
        self,
        store: Optional[NetworkStore] = None,
        walking_provider: Optional[WalkingRouteProvider] = None,
        origin_candidates: int = DEFAULT_CANDIDATES,
        min_trip_distance_km: float = MIN_TRIP_DISTANCE_KM,
        long_walk_notice_km: float = LONG_WALK_NOTICE_KM,
    ):
        self.store = store or NetworkStore.get_instance()
        self.walking_provider = walking_provider
        self.origin_candidates = origin_candidates
        self.min_trip_distance_km = min_trip_distance_km
        self.long_walk_notice_km = long_walk_notice_km

    @staticmethod
    def _filters(route_filter: Union[RouteFilter, str, None]) -> List[RouteFilter]:
        """Requested filters; None means all of them."""
        if route_filter is None:
            return list(RouteFilter)
        return [RouteFilter.parse(route_filter)]

    @staticmethod
    def _search(
        snapshot: NetworkSnapshot,
        origin_stop_id: str,
        destination_stop_id: str,
        filters: Iterable[RouteFilter],
    ) -> List[Itinerary]:
        routing = RoutingService(snapshot)
        itineraries = []
        for route_filter in filters:
            edges = routing.find_route(origin_stop_id, destination_stop_id, route_filter)
            itinerary = build_itinerary(edges, snapshot, route_filter)
            if itinerary is not None:
                itineraries.append(itinerary)
        return itineraries

    def plan(
        self,
        origin_stop_id: str,
        destination_stop_id: str,
        route_filter: Union[RouteFilter, str, None] = None,
    ) -> RoutePlan:
        """Plan between two stops.

        Args:
            origin_stop_id: Origin stop ID
            destination_stop_id: Destination stop ID
            route_filter: One filter, or None for all three

        Returns:
            RoutePlan with one itinerary per filter that found a route

        Raises:
            StopNotFoundError: if either stop ID is unknown
            InvalidFilterError: for an unknown filter name
        """
        filters = self._filters(route_filter)
        snapshot = self.store.get_snapshot()

        origin = snapshot.get_stop(origin_stop_id)
        destination = snapshot.get_stop(destination_stop_id)

        itineraries = self._search(snapshot, origin.id, destination.id, filters)
        if not itineraries:
            logger.info(f"No route found from {origin.id} to {destination.id}")

        return RoutePlan(
            origin=origin,
            destination=destination,
            itineraries=tuple(itineraries),
            snapshot=snapshot,
        )

    def plan_from_coordinates(
        self,
        origin,
        destination,
        route_filter: Union[RouteFilter, str, None] = None,
    ) -> CoordinatePlan:
        """Plan between two arbitrary points.

        Accepts Coordinates, [lat, lon] or {"lat", "lng"/"lon"} for both ends.

        Raises:
            InvalidCoordinatesError: for malformed or out-of-range coordinates
            InvalidFilterError: for an unknown filter name
            StopNotFoundError: if the network has no stops
        """
        filters = self._filters(route_filter)
        origin = Coordinates.parse(origin)
        destination = Coordinates.parse(destination)

        direct_km = haversine_distance_km(origin, destination)
        if direct_km < self.min_trip_distance_km:
            return CoordinatePlan(
                origin=origin,
                destination=destination,
                walking_suggestion=self._walking_suggestion(
                    direct_km,
                    f"Origin and destination are less than {self.min_trip_distance_km * 1000:.0f} m apart.",
                ),
            )

        snapshot = self.store.get_snapshot()
        stops = list(snapshot.stops.values())
        if not stops:
            raise StopNotFoundError(f"near {origin.lat},{origin.lon}")

        destination_stop = find_nearest_stop(destination, stops)
        nearest_origin_stop = find_nearest_stop(origin, stops)

        if nearest_origin_stop.id == destination_stop.id:
            return CoordinatePlan(
                origin=origin,
                destination=destination,
                origin_stops=(nearest_origin_stop,),
                destination_stop=destination_stop,
                snapshot=snapshot,
                walking_suggestion=self._walking_suggestion(
                    direct_km,
                    f"Both points are closest to stop {destination_stop.name}.",
                ),
            )

        origin_stops = [
            stop for stop in find_nearest_stops(origin, stops, self.origin_candidates)
            if stop.id != destination_stop.id
        ]

        best: Dict[RouteFilter, Itinerary] = {}
        for origin_stop in origin_stops:
            for itinerary in self._search(snapshot, origin_stop.id, destination_stop.id, filters):
                candidate = itinerary.with_walking_legs(
                    self._straight_leg(origin, origin_stop.coordinates),
                    self._straight_leg(destination_stop.coordinates, destination),
                )
                current = best.get(candidate.route_filter)
                if current is None or _ranking_key(candidate) < _ranking_key(current):
                    best[candidate.route_filter] = candidate

        chosen = [best[f] for f in filters if f in best]
        chosen = self._with_walking_geometry(chosen)

        notices = self._notices(chosen, stops=snapshot.stops)
        if not chosen:
            logger.info(
                f"No route found from {origin.lat},{origin.lon} to "
                f"{destination.lat},{destination.lon} ({len(origin_stops)} boarding candidates)"
            )
            notices = self._no_route_notices(direct_km)

        return CoordinatePlan(
            origin=origin,
            destination=destination,
            origin_stops=tuple(origin_stops),
            destination_stop=destination_stop,
            itineraries=tuple(chosen),
            notices=tuple(notices),
            snapshot=snapshot,
        )

    def nearby_stops(
        self,
        coords,
        radius_km: float = NEARBY_RADIUS_KM,
        limit: int = NEARBY_LIMIT,
    ) -> List[NearbyStop]:
        """Stops within walking distance, nearest first, with the lines serving each."""
        coords = Coordinates.parse(coords)
        snapshot = self.store.get_snapshot()
        return [
            NearbyStop(stop=stop, distance_km=distance, lines=snapshot.lines_serving(stop.id))
            for stop, distance in find_stops_within(coords, snapshot.stops.values(), radius_km, limit)
        ]

    # -------------------------------------------------------------------------
    # Walking legs
    # -------------------------------------------------------------------------

    @staticmethod
    def _walking_suggestion(distance_km: float, reason: str) -> WalkingSuggestion:
        minutes = walking_minutes(distance_km)
        return WalkingSuggestion(
            distance_km=distance_km,
            duration_minutes=minutes,
            message=f"{reason} Walking {distance_km * 1000:.0f} m takes about {minutes} min.",
        )

    @staticmethod
    def _straight_leg(start: Coordinates, end: Coordinates) -> WalkingLeg:
        distance = haversine_distance_km(start, end)
        return WalkingLeg(
            origin=start,
            destination=end,
            distance_km=distance,
            duration_minutes=walking_minutes(distance),
            coordinates=(start, end),
        )

    def _with_walking_geometry(self, itineraries: List[Itinerary]) -> List[Itinerary]:
        """Replace straight-line legs with provider paths where available.

        Only called for the chosen itineraries; each distinct leg is requested once.
        """
        if self.walking_provider is None or not itineraries:
            return itineraries

        cache: Dict[Tuple[Coordinates, Coordinates], Optional[WalkingGeometry]] = {}

        def refine(leg: Optional[WalkingLeg]) -> Optional[WalkingLeg]:
            if leg is None:
                return None
            key = (leg.origin, leg.destination)
            if key not in cache:
                cache[key] = self.walking_provider.route(leg.origin, leg.destination)
            geometry = cache[key]
            if geometry is None:
                return leg
            return WalkingLeg(
                origin=leg.origin,
                destination=leg.destination,
                distance_km=geometry.distance_km,
                duration_minutes=geometry.duration_minutes,
                coordinates=geometry.coordinates,
                source=geometry.source,
            )

        return [
            itinerary.with_walking_legs(refine(itinerary.access_leg), refine(itinerary.egress_leg))
            for itinerary in itineraries
        ]

    def _notices(self, itineraries: List[Itinerary], stops: Dict[str, Stop]) -> List[str]:
        notices: List[str] = []

        def add(message: str) -> None:
            if message not in notices:
                notices.append(message)

        for itinerary in itineraries:
            access, egress = itinerary.access_leg, itinerary.egress_leg
            if access and access.distance_km > self.long_walk_notice_km:
                name = stops[itinerary.origin_stop_id].name
                add(f"Walk {access.distance_km * 1000:.0f} m to the first stop ({name})")
            if egress and egress.distance_km > self.long_walk_notice_km:
                name = stops[itinerary.destination_stop_id].name
                add(f"Walk {egress.distance_km * 1000:.0f} m from the last stop ({name}) to the destination")
        return notices

    @staticmethod
    def _no_route_notices(direct_km: float) -> List[str]:
        if direct_km > FAR_TRIP_KM:
            return [f"Origin and destination are more than {FAR_TRIP_KM:.0f} km apart. Try closer points."]
        return ["No transit line connects these points. Try nearby stops or an intermediate point."]
