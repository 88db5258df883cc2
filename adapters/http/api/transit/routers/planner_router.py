from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from core.config import settings
from core.rate_limiter import limiter, RateLimits

from adapters.http.api.transit.schemas import (
    StopResponse,
    NearbyStopResponse,
    NearbyStopsResponse,
    LineResponse,
    JourneyStopResponse,
    JourneyCoordinate,
    JourneySegmentResponse,
    WalkingLegResponse,
    JourneyResponse,
    RoutePlannerResponse,
    CoordinatePlanRequest,
    WalkingSuggestionResponse,
    CoordinateRoutePlannerResponse,
)
from adapters.http.api.transit.utils.walking_route import HttpWalkingRouteProvider
from src.transit_bc.exceptions import (
    DataUnavailableError,
    InvalidCoordinatesError,
    InvalidFilterError,
    NotFoundError,
)
from src.transit_bc.routing.itinerary import Itinerary, Segment, WalkingLeg
from src.transit_bc.routing.network import NetworkSnapshot
from src.transit_bc.routing.network_store import NetworkStore
from src.transit_bc.routing.planner_service import RoutePlannerService, walking_minutes
from src.transit_bc.stop.domain.entities.stop import Stop
from src.transit_bc.stop.domain.value_objects.geo import Coordinates, bearing_degrees


router = APIRouter(prefix="/transit", tags=["Transit Planner"])


@lru_cache()
def get_walking_provider() -> Optional[HttpWalkingRouteProvider]:
    """Shared walking provider, or None when disabled."""
    walking = settings.walking
    if not walking.WALKING_PROVIDER_ENABLED:
        return None
    return HttpWalkingRouteProvider(
        brouter_url=walking.BROUTER_URL,
        osrm_url=walking.OSRM_URL,
        timeout=walking.WALKING_REQUEST_TIMEOUT,
    )


def get_planner_service() -> RoutePlannerService:
    """Dependency that provides the planner over the shared NetworkStore."""
    planner = settings.planner
    return RoutePlannerService(
        store=NetworkStore.get_instance(),
        walking_provider=get_walking_provider(),
        origin_candidates=planner.ORIGIN_CANDIDATES,
        min_trip_distance_km=planner.MIN_TRIP_DISTANCE_KM,
        long_walk_notice_km=planner.LONG_WALK_NOTICE_KM,
    )


def _unavailable(e: DataUnavailableError) -> HTTPException:
    return HTTPException(status_code=503, detail=f"Transit network not available: {e}")


# =============================================================================
# Response conversion
# =============================================================================

def _stop_response(stop: Stop) -> JourneyStopResponse:
    return JourneyStopResponse(id=stop.id, name=stop.name, lat=stop.lat, lon=stop.lon)


def _coordinate(coords: Coordinates) -> JourneyCoordinate:
    return JourneyCoordinate(lat=coords.lat, lon=coords.lon)


def _segment_response(segment: Segment, snapshot: NetworkSnapshot) -> JourneySegmentResponse:
    stops = [snapshot.stops[stop_id] for stop_id in segment.stop_ids]
    origin, destination = stops[0], stops[-1]
    line = snapshot.lines.get(segment.line_id) if segment.line_id else None

    return JourneySegmentResponse(
        type="walking" if segment.is_walking else "transit",
        mode=segment.mode,
        line_id=segment.line_id,
        line_name=line.short_name or line.name if line else None,
        line_color=line.color if line else None,
        origin=_stop_response(origin),
        destination=_stop_response(destination),
        duration_minutes=segment.duration_minutes,
        distance_meters=int(round(segment.distance_km * 1000)),
        intermediate_stops=[_stop_response(stop) for stop in stops[1:-1]],
        coordinates=[_coordinate(stop.coordinates) for stop in stops],
        suggested_heading=bearing_degrees(origin.coordinates, destination.coordinates),
    )


def _walking_leg_response(leg: Optional[WalkingLeg]) -> Optional[WalkingLegResponse]:
    if leg is None:
        return None
    return WalkingLegResponse(
        distance_meters=int(round(leg.distance_km * 1000)),
        duration_minutes=leg.duration_minutes,
        source=leg.source,
        coordinates=[_coordinate(c) for c in leg.coordinates],
    )


def _journey_response(itinerary: Itinerary, snapshot: NetworkSnapshot) -> JourneyResponse:
    summary = itinerary.summary
    walking = sum(s.duration_minutes for s in itinerary.segments if s.is_walking)
    for leg in (itinerary.access_leg, itinerary.egress_leg):
        if leg is not None:
            walking += leg.duration_minutes

    return JourneyResponse(
        filter=itinerary.route_filter.value,
        duration_minutes=summary.total_duration_minutes,
        door_to_door_minutes=itinerary.door_to_door_minutes,
        fare=summary.total_fare,
        distance_km=round(summary.total_distance_km, 3),
        transfers=summary.transfer_count,
        walking_minutes=walking,
        segments=[_segment_response(s, snapshot) for s in itinerary.segments],
        coordinates=[_coordinate(c) for c in itinerary.coordinates],
        access_walk=_walking_leg_response(itinerary.access_leg),
        egress_walk=_walking_leg_response(itinerary.egress_leg),
    )


def _to_stop_response(stop: Stop) -> StopResponse:
    return StopResponse(id=stop.id, name=stop.name, lat=stop.lat, lon=stop.lon, code=stop.code)


# =============================================================================
# Route planner
# =============================================================================

@router.get("/route-planner", response_model=RoutePlannerResponse)
@limiter.limit(RateLimits.ROUTE_PLANNER)
def plan_route(
    request: Request,
    from_stop: str = Query(..., alias="from", description="Origin stop ID"),
    to_stop: str = Query(..., alias="to", description="Destination stop ID"),
    route_filter: Optional[str] = Query(
        None,
        alias="filter",
        description="fastest, fewest_transfers or cheapest. Omit to get all three."
    ),
    planner: RoutePlannerService = Depends(get_planner_service),
):
    """Plan a route between two stops.

    Returns one journey per optimization filter:
    - fastest: minimum travel time, small penalty per transfer
    - fewest_transfers: minimum number of line changes
    - cheapest: minimum fare (each line boarded costs one flat fare)

    **Example requests:**
    ```
    GET /transit/route-planner?from=S1&to=S9
    GET /transit/route-planner?from=S1&to=S9&filter=cheapest
    ```
    """
    try:
        plan = planner.plan(from_stop, to_stop, route_filter)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidFilterError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataUnavailableError as e:
        raise _unavailable(e)

    if not plan.found:
        return RoutePlannerResponse(
            success=False,
            message=f"No route found from {plan.origin.name} to {plan.destination.name}",
            origin=_stop_response(plan.origin),
            destination=_stop_response(plan.destination),
        )

    return RoutePlannerResponse(
        success=True,
        origin=_stop_response(plan.origin),
        destination=_stop_response(plan.destination),
        journeys=[_journey_response(it, plan.snapshot) for it in plan.itineraries],
    )


@router.post("/route-planner/coordinates", response_model=CoordinateRoutePlannerResponse)
@limiter.limit(RateLimits.COORDINATE_PLANNER)
def plan_route_from_coordinates(
    request: Request,
    body: CoordinatePlanRequest,
    planner: RoutePlannerService = Depends(get_planner_service),
):
    """Plan a route between two arbitrary points.

    The nearest stops to both points are used as boarding/alighting stops
    (up to 3 boarding candidates are tried), and each journey includes the
    walk from the origin and to the destination.

    Points closer than 200 m, or sharing the same nearest stop, get a
    walking suggestion instead of journeys.

    **Example body:**
    ```
    {"from": [21.0285, 105.8542], "to": {"lat": 21.0368, "lng": 105.8342}, "filter": "fastest"}
    ```
    """
    try:
        plan = planner.plan_from_coordinates(body.from_, body.to, body.filter)
    except (InvalidCoordinatesError, InvalidFilterError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DataUnavailableError as e:
        raise _unavailable(e)

    suggestion = None
    if plan.walking_suggestion is not None:
        suggestion = WalkingSuggestionResponse(
            distance_meters=int(round(plan.walking_suggestion.distance_km * 1000)),
            duration_minutes=plan.walking_suggestion.duration_minutes,
            message=plan.walking_suggestion.message,
        )

    message = None
    if suggestion is not None:
        message = suggestion.message
    elif not plan.found:
        message = "No transit route found between these points"

    return CoordinateRoutePlannerResponse(
        success=plan.found,
        message=message,
        origin=_coordinate(plan.origin),
        destination=_coordinate(plan.destination),
        origin_stops=[_stop_response(s) for s in plan.origin_stops],
        destination_stop=_stop_response(plan.destination_stop) if plan.destination_stop else None,
        journeys=[_journey_response(it, plan.snapshot) for it in plan.itineraries],
        walking_suggestion=suggestion,
        notices=list(plan.notices),
    )


# =============================================================================
# Stops and lines
# =============================================================================

@router.get("/stops/nearby", response_model=NearbyStopsResponse)
@limiter.limit(RateLimits.NEARBY_STOPS)
def get_nearby_stops(
    request: Request,
    lat: float = Query(..., description="Latitude"),
    lon: float = Query(..., description="Longitude"),
    radius_km: Optional[float] = Query(None, gt=0, le=10, description="Search radius in km (default 1.5)"),
    limit: Optional[int] = Query(None, ge=1, le=50, description="Max stops to return (default 8)"),
    planner: RoutePlannerService = Depends(get_planner_service),
):
    """Get walkable stops around a point, nearest first."""
    radius = radius_km if radius_km is not None else settings.planner.NEARBY_RADIUS_KM
    max_stops = limit if limit is not None else settings.planner.NEARBY_LIMIT

    try:
        nearby = planner.nearby_stops((lat, lon), radius_km=radius, limit=max_stops)
    except InvalidCoordinatesError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except DataUnavailableError as e:
        raise _unavailable(e)

    stops: List[NearbyStopResponse] = [
        NearbyStopResponse(
            id=item.stop.id,
            name=item.stop.name,
            lat=item.stop.lat,
            lon=item.stop.lon,
            code=item.stop.code,
            distance_meters=int(round(item.distance_km * 1000)),
            walking_minutes=walking_minutes(item.distance_km),
            lines=[line.id for line in item.lines],
        )
        for item in nearby
    ]
    return NearbyStopsResponse(lat=lat, lon=lon, radius_km=radius, stops=stops)


@router.get("/stops/{stop_id}", response_model=StopResponse)
@limiter.limit(RateLimits.STOPS)
def get_stop(request: Request, stop_id: str):
    """Get a stop by ID."""
    try:
        stop = NetworkStore.get_instance().get_stop_by_id(stop_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Stop {stop_id} not found")
    except DataUnavailableError as e:
        raise _unavailable(e)
    return _to_stop_response(stop)


@router.get("/lines/{line_id}", response_model=LineResponse)
@limiter.limit(RateLimits.LINES)
def get_line(request: Request, line_id: str):
    """Get a line by ID, with its ordered stops."""
    try:
        snapshot = NetworkStore.get_instance().get_snapshot()
        line = snapshot.get_line(line_id)
    except NotFoundError:
        raise HTTPException(status_code=404, detail=f"Line {line_id} not found")
    except DataUnavailableError as e:
        raise _unavailable(e)

    return LineResponse(
        id=line.id,
        name=line.name,
        short_name=line.short_name,
        mode=line.mode.value,
        fare=line.fare,
        color=line.color,
        stops=[_to_stop_response(snapshot.stops[s]) for s in line.stop_ids if s in snapshot.stops],
    )
