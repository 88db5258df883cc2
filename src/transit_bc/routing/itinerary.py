"""Itinerary assembly.

Turns the raw edge path returned by the search into presentable segments,
an aggregate summary and a coordinate trace for map rendering.
"""

from dataclasses import dataclass, replace
from typing import List, Mapping, Optional, Tuple

from src.transit_bc.line.domain.entities.line import Line
from src.transit_bc.routing.edge_weights import RouteFilter, WALK_LABEL
from src.transit_bc.routing.network import Edge, NetworkSnapshot, WALK_MODE
from src.transit_bc.stop.domain.entities.stop import Stop
from src.transit_bc.stop.domain.value_objects.geo import Coordinates


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class Segment:
    """A maximal run of consecutive edges on the same line (or walking)."""
    line_id: Optional[str]  # None for walking segments
    mode: str
    from_stop_id: str
    to_stop_id: str
    stop_ids: Tuple[str, ...]  # Every stop traversed, in order, both ends included
    duration_minutes: int
    distance_km: float

    @property
    def is_walking(self) -> bool:
        return self.mode == WALK_MODE

    @property
    def key(self) -> Tuple[str, str]:
        return (self.line_id or WALK_LABEL, self.mode)


@dataclass(frozen=True)
class Summary:
    """Aggregate figures for an itinerary."""
    total_duration_minutes: int
    total_fare: float
    total_distance_km: float
    transfer_count: int


@dataclass(frozen=True)
class WalkingLeg:
    """Walk between an exact coordinate and a stop (first/last mile)."""
    origin: Coordinates
    destination: Coordinates
    distance_km: float
    duration_minutes: int
    coordinates: Tuple[Coordinates, ...] = ()
    source: str = "straight_line"


@dataclass(frozen=True)
class Itinerary:
    """One planned journey for a single optimization filter.

    Never mutated after assembly; with_walking_legs() returns a new instance.
    """
    route_filter: RouteFilter
    origin_stop_id: str
    destination_stop_id: str
    segments: Tuple[Segment, ...]
    summary: Summary
    coordinates: Tuple[Coordinates, ...] = ()
    access_leg: Optional[WalkingLeg] = None
    egress_leg: Optional[WalkingLeg] = None

    @property
    def line_ids(self) -> List[str]:
        """Distinct line IDs in boarding order."""
        seen: List[str] = []
        for segment in self.segments:
            if segment.line_id and segment.line_id not in seen:
                seen.append(segment.line_id)
        return seen

    @property
    def door_to_door_minutes(self) -> int:
        """Network duration plus access/egress walking."""
        total = self.summary.total_duration_minutes
        if self.access_leg:
            total += self.access_leg.duration_minutes
        if self.egress_leg:
            total += self.egress_leg.duration_minutes
        return total

    def with_walking_legs(
        self,
        access_leg: Optional[WalkingLeg],
        egress_leg: Optional[WalkingLeg],
    ) -> "Itinerary":
        return replace(self, access_leg=access_leg, egress_leg=egress_leg)


# =============================================================================
# Assembly
# =============================================================================

def _edge_key(edge: Edge) -> Tuple[str, str]:
    return (edge.line_id or WALK_LABEL, edge.mode)


def group_into_segments(edges: List[Edge]) -> List[Segment]:
    """Merge consecutive edges sharing (line, mode) into segments.

    A new segment starts whenever the line or the mode changes.
    """
    if not edges:
        return []

    segments: List[Segment] = []
    run: List[Edge] = [edges[0]]

    for edge in edges[1:]:
        if _edge_key(edge) == _edge_key(run[0]):
            run.append(edge)
        else:
            segments.append(_build_segment(run))
            run = [edge]

    segments.append(_build_segment(run))
    return segments


def _build_segment(run: List[Edge]) -> Segment:
    first = run[0]
    stop_ids = [first.from_stop_id] + [edge.to_stop_id for edge in run]
    return Segment(
        line_id=first.line_id,
        mode=first.mode,
        from_stop_id=first.from_stop_id,
        to_stop_id=run[-1].to_stop_id,
        stop_ids=tuple(stop_ids),
        duration_minutes=sum(edge.duration_minutes for edge in run),
        distance_km=sum(edge.distance_km for edge in run),
    )


def summarize(segments: List[Segment], lines: Mapping[str, Line]) -> Summary:
    """Compute totals for a list of segments.

    Each distinct non-walk line is charged its fare once, however many
    segments it appears in.
    """
    total_duration = 0
    total_distance = 0.0
    lines_used: List[str] = []

    for segment in segments:
        total_duration += segment.duration_minutes
        total_distance += segment.distance_km
        if not segment.is_walking and segment.line_id and segment.line_id not in lines_used:
            lines_used.append(segment.line_id)

    total_fare = 0.0
    for line_id in lines_used:
        line = lines.get(line_id)
        if line is not None:
            total_fare += line.fare

    return Summary(
        total_duration_minutes=total_duration,
        total_fare=total_fare,
        total_distance_km=total_distance,
        transfer_count=max(0, len(lines_used) - 1),
    )


def extract_coordinates(segments: List[Segment], stops: Mapping[str, Stop]) -> List[Coordinates]:
    """Ordered coordinates of the stops visited, for map rendering.

    A coordinate equal to the one just emitted (segment boundaries) is skipped.
    """
    coordinates: List[Coordinates] = []
    for segment in segments:
        for stop_id in segment.stop_ids:
            stop = stops.get(stop_id)
            if stop is None:
                continue
            point = stop.coordinates
            if coordinates and coordinates[-1] == point:
                continue
            coordinates.append(point)
    return coordinates


def build_itinerary(
    edges: List[Edge],
    snapshot: NetworkSnapshot,
    route_filter: RouteFilter,
) -> Optional[Itinerary]:
    """Assemble an itinerary from a search path (None for an empty path)."""
    if not edges:
        return None

    segments = group_into_segments(edges)
    return Itinerary(
        route_filter=route_filter,
        origin_stop_id=edges[0].from_stop_id,
        destination_stop_id=edges[-1].to_stop_id,
        segments=tuple(segments),
        summary=summarize(segments, snapshot.lines),
        coordinates=tuple(extract_coordinates(segments, snapshot.stops)),
    )
