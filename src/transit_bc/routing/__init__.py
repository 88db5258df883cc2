"""Routing module for multi-criteria transit route planning.

Searches a (stop, line) state graph so transfers and per-line fares are
scored correctly.

Services:
- RoutingService: line-aware Dijkstra over a NetworkSnapshot
- RoutePlannerService: plans by stop ID or by coordinates, one itinerary per filter

Data stores:
- NetworkStore: in-memory singleton holding the current NetworkSnapshot
"""

from .edge_weights import RouteFilter, WeightProfile, WEIGHT_PROFILES, score_edge
from .network import Edge, NetworkSnapshot, build_snapshot
from .network_store import NetworkStore
from .routing_service import RoutingService, find_route
from .itinerary import Itinerary, Segment, Summary, WalkingLeg, build_itinerary
from .planner_service import CoordinatePlan, NearbyStop, RoutePlan, RoutePlannerService, WalkingGeometry
from .schedule_sources import (
    GtfsDirectoryScheduleSource,
    InMemoryScheduleSource,
    ScheduleSource,
    SqlScheduleSource,
)

__all__ = [
    "RouteFilter",
    "WeightProfile",
    "WEIGHT_PROFILES",
    "score_edge",
    "Edge",
    "NetworkSnapshot",
    "build_snapshot",
    "NetworkStore",
    "RoutingService",
    "find_route",
    "Itinerary",
    "Segment",
    "Summary",
    "WalkingLeg",
    "build_itinerary",
    "CoordinatePlan",
    "NearbyStop",
    "RoutePlan",
    "RoutePlannerService",
    "WalkingGeometry",
    "GtfsDirectoryScheduleSource",
    "InMemoryScheduleSource",
    "ScheduleSource",
    "SqlScheduleSource",
]
