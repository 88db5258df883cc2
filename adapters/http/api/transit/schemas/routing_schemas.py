"""Route planner request/response schemas.

A journey is one itinerary for one optimization filter:
- Segments alternate between transit rides and walking transfers
- Coordinate requests add access/egress walking legs at both ends
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JourneyStopResponse(BaseModel):
    """A stop within a journey segment."""
    id: str
    name: str
    lat: float
    lon: float


class JourneyCoordinate(BaseModel):
    """A coordinate point in a journey trace."""
    lat: float
    lon: float


class JourneySegmentResponse(BaseModel):
    """A single segment of a journey (transit ride or walking transfer).

    Each segment represents either:
    - A ride on a single line (type="transit")
    - A walk between nearby stops (type="walking")
    """
    type: str  # "transit" or "walking"
    mode: str  # "bus", "train", "ferry" or "walk"

    # Line info (only for transit segments)
    line_id: Optional[str] = None
    line_name: Optional[str] = None
    line_color: Optional[str] = None

    # Origin and destination
    origin: JourneyStopResponse
    destination: JourneyStopResponse

    duration_minutes: int
    distance_meters: int

    # Stops passed between origin and destination
    intermediate_stops: List[JourneyStopResponse] = []

    coordinates: List[JourneyCoordinate] = []

    # Suggested camera heading for map animations (degrees, 0-360)
    suggested_heading: float = 0.0


class WalkingLegResponse(BaseModel):
    """Walk between an exact point and a stop."""
    distance_meters: int
    duration_minutes: int
    source: str  # "straight_line", "brouter" or "osrm"
    coordinates: List[JourneyCoordinate] = []


class JourneyResponse(BaseModel):
    """Complete itinerary for one optimization filter."""
    filter: str  # "fastest", "fewest_transfers" or "cheapest"

    # Summary
    duration_minutes: int  # Network time only
    door_to_door_minutes: int  # Including access/egress walks
    fare: float
    distance_km: float
    transfers: int
    walking_minutes: int

    segments: List[JourneySegmentResponse]
    coordinates: List[JourneyCoordinate] = []

    # Only for coordinate requests
    access_walk: Optional[WalkingLegResponse] = None
    egress_walk: Optional[WalkingLegResponse] = None


class RoutePlannerResponse(BaseModel):
    """Response from the stop-to-stop route planner endpoint.

    `journeys` holds one entry per filter that found a route; when none did,
    success is False and message explains why.
    """
    success: bool
    message: Optional[str] = None

    origin: Optional[JourneyStopResponse] = None
    destination: Optional[JourneyStopResponse] = None

    journeys: List[JourneyResponse] = []


class CoordinatePlanRequest(BaseModel):
    """Body of the coordinate route planner.

    `from` and `to` accept [lat, lon], {"lat", "lng"} or {"lat", "lon"}.
    """
    model_config = ConfigDict(populate_by_name=True)

    from_: Any = Field(..., alias="from")
    to: Any
    filter: Optional[str] = None


class WalkingSuggestionResponse(BaseModel):
    distance_meters: int
    duration_minutes: int
    message: str


class CoordinateRoutePlannerResponse(BaseModel):
    """Response from the coordinate route planner endpoint."""
    success: bool
    message: Optional[str] = None

    origin: JourneyCoordinate
    destination: JourneyCoordinate

    # Boarding stops tried, nearest first
    origin_stops: List[JourneyStopResponse] = []
    destination_stop: Optional[JourneyStopResponse] = None

    journeys: List[JourneyResponse] = []

    # Set when walking makes more sense than transit
    walking_suggestion: Optional[WalkingSuggestionResponse] = None

    notices: List[str] = []
