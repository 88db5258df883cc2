"""Centralized API schemas for transit endpoints."""

from .stop_schemas import (
    StopResponse,
    NearbyStopResponse,
    NearbyStopsResponse,
    LineResponse,
)

from .routing_schemas import (
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

__all__ = [
    "StopResponse",
    "NearbyStopResponse",
    "NearbyStopsResponse",
    "LineResponse",
    "JourneyStopResponse",
    "JourneyCoordinate",
    "JourneySegmentResponse",
    "WalkingLegResponse",
    "JourneyResponse",
    "RoutePlannerResponse",
    "CoordinatePlanRequest",
    "WalkingSuggestionResponse",
    "CoordinateRoutePlannerResponse",
]
