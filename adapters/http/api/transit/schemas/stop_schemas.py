"""Stop and line response schemas."""

from typing import Optional, List
from pydantic import BaseModel


class StopResponse(BaseModel):
    id: str
    name: str
    lat: float
    lon: float
    code: Optional[str] = None


class NearbyStopResponse(StopResponse):
    """Stop with its straight-line distance from the query point."""
    distance_meters: int
    walking_minutes: int  # At 80 m/min
    lines: List[str] = []  # IDs of the lines calling here


class NearbyStopsResponse(BaseModel):
    lat: float
    lon: float
    radius_km: float
    stops: List[NearbyStopResponse]


class LineResponse(BaseModel):
    id: str
    name: str
    short_name: Optional[str] = None
    mode: str  # "bus", "train" or "ferry"
    fare: float
    color: Optional[str] = None
    stops: List[StopResponse] = []
