"""In-memory transit network model.

A NetworkSnapshot is the immutable graph the planner searches:
- Stops and lines indexed by ID
- Directed edges derived from line stop sequences (transit hops)
- Directed edges between stops close enough to walk (walking hops)
- Adjacency map {stop_id: (edge, edge, ...)}

Edges are derived, never authored. Transit hops are emitted in both
directions even when the schedule only runs one way.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from src.transit_bc.exceptions import LineNotFoundError, StopNotFoundError
from src.transit_bc.line.domain.entities.line import Line, TransportMode
from src.transit_bc.stop.domain.entities.stop import Stop
from src.transit_bc.stop.domain.value_objects.geo import (
    EARTH_RADIUS_KM,
    Coordinates,
    haversine_distance_km,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

WALK_MODE = "walk"
WALK_THRESHOLD_KM = 0.1  # Max walking distance between two stops (100 m)
WALKING_SPEED_KMH = 5.0
BUS_SPEED_KMH = 20.0  # Average city bus speed
RAIL_SPEED_KMH = 40.0  # Average train/ferry speed

SPEED_BY_MODE_KMH = {
    TransportMode.BUS.value: BUS_SPEED_KMH,
    TransportMode.TRAIN.value: RAIL_SPEED_KMH,
    TransportMode.FERRY.value: RAIL_SPEED_KMH,
}


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class Edge:
    """A directed hop between two stops.

    line_id is None for walking edges. Edges carry no fare: fares are
    charged once per line when the itinerary is assembled.
    """
    from_stop_id: str
    to_stop_id: str
    line_id: Optional[str]
    mode: str  # "walk", "bus", "train" or "ferry"
    duration_minutes: int
    distance_km: float

    @property
    def is_walking(self) -> bool:
        return self.line_id is None

    def reversed(self) -> "Edge":
        return Edge(
            from_stop_id=self.to_stop_id,
            to_stop_id=self.from_stop_id,
            line_id=self.line_id,
            mode=self.mode,
            duration_minutes=self.duration_minutes,
            distance_km=self.distance_km,
        )


@dataclass(frozen=True, eq=False)
class NetworkSnapshot:
    """Fully built, read-only copy of the stop/line/edge graph.

    Never mutated after build_snapshot() returns it; a reload builds a new one.
    """
    stops: Dict[str, Stop]
    lines: Dict[str, Line]
    adjacency: Dict[str, Tuple[Edge, ...]]
    line_edge_count: int = 0
    walking_edge_count: int = 0
    built_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def get_stop(self, stop_id: str) -> Stop:
        stop = self.stops.get(stop_id)
        if stop is None:
            raise StopNotFoundError(stop_id)
        return stop

    def get_line(self, line_id: str) -> Line:
        line = self.lines.get(line_id)
        if line is None:
            raise LineNotFoundError(line_id)
        return line

    def has_stop(self, stop_id: str) -> bool:
        return stop_id in self.stops

    def lines_serving(self, stop_id: str) -> Tuple[Line, ...]:
        """Lines that call at a stop, in line ID order."""
        return tuple(
            line for _, line in sorted(self.lines.items()) if stop_id in line.stop_ids
        )

    def outgoing_edges(self, stop_id: str) -> Tuple[Edge, ...]:
        """Edges leaving a stop (empty tuple for unknown stops)."""
        return self.adjacency.get(stop_id, ())

    @property
    def stats(self) -> Dict[str, int]:
        return {
            "stops": len(self.stops),
            "lines": len(self.lines),
            "line_edges": self.line_edge_count,
            "walking_edges": self.walking_edge_count,
        }


# =============================================================================
# Edge derivation
# =============================================================================

def estimate_duration_minutes(distance_km: float, speed_kmh: float) -> int:
    """Travel time rounded up to whole minutes."""
    return math.ceil(distance_km / speed_kmh * 60)


def build_line_edges(line: Line, coords: Dict[str, Coordinates]) -> List[Edge]:
    """Build both directions of every consecutive stop pair on a line.

    Pairs referencing unknown stops, or repeating the same stop, are skipped.
    """
    mode = line.mode.value if isinstance(line.mode, TransportMode) else str(line.mode)
    speed = SPEED_BY_MODE_KMH.get(mode, BUS_SPEED_KMH)

    edges: List[Edge] = []
    for from_id, to_id in zip(line.stop_ids, line.stop_ids[1:]):
        if from_id == to_id:
            continue
        from_coords = coords.get(from_id)
        to_coords = coords.get(to_id)
        if from_coords is None or to_coords is None:
            continue

        distance = haversine_distance_km(from_coords, to_coords)
        edge = Edge(
            from_stop_id=from_id,
            to_stop_id=to_id,
            line_id=line.id,
            mode=mode,
            duration_minutes=estimate_duration_minutes(distance, speed),
            distance_km=distance,
        )
        edges.append(edge)
        edges.append(edge.reversed())

    return edges


def build_walking_edges(
    stops: Iterable[Stop],
    coords: Dict[str, Coordinates],
    threshold_km: float = WALK_THRESHOLD_KM,
) -> List[Edge]:
    """Build bidirectional walking edges between every pair of stops within threshold_km.

    Stops are swept by latitude: once the latitude gap alone exceeds the
    threshold, no later stop can be close enough.
    """
    max_lat_gap = math.degrees(threshold_km / EARTH_RADIUS_KM)
    ordered = sorted(stops, key=lambda s: coords[s.id].lat)

    edges: List[Edge] = []
    for i, stop1 in enumerate(ordered):
        c1 = coords[stop1.id]
        for j in range(i + 1, len(ordered)):
            stop2 = ordered[j]
            c2 = coords[stop2.id]
            if c2.lat - c1.lat > max_lat_gap:
                break
            if stop1.id == stop2.id:
                continue

            distance = haversine_distance_km(c1, c2)
            if distance > threshold_km:
                continue

            edge = Edge(
                from_stop_id=stop1.id,
                to_stop_id=stop2.id,
                line_id=None,
                mode=WALK_MODE,
                duration_minutes=estimate_duration_minutes(distance, WALKING_SPEED_KMH),
                distance_km=distance,
            )
            edges.append(edge)
            edges.append(edge.reversed())

    return edges


def build_snapshot(
    stops: Iterable[Stop],
    lines: Iterable[Line],
    walk_threshold_km: float = WALK_THRESHOLD_KM,
) -> NetworkSnapshot:
    """Derive edges and adjacency from raw stops and lines.

    Args:
        stops: All stops (first occurrence wins on duplicate IDs)
        lines: All lines with their ordered stop sequences
        walk_threshold_km: Max distance for a walking edge

    Returns:
        NetworkSnapshot ready for searching
    """
    stop_map: Dict[str, Stop] = {}
    for stop in stops:
        stop_map.setdefault(stop.id, stop)

    line_map: Dict[str, Line] = {}
    for line in lines:
        line_map.setdefault(line.id, line)

    coords = {stop_id: stop.coordinates for stop_id, stop in stop_map.items()}

    line_edges: List[Edge] = []
    for line in line_map.values():
        line_edges.extend(build_line_edges(line, coords))

    walking_edges = build_walking_edges(stop_map.values(), coords, walk_threshold_km)

    adjacency: Dict[str, List[Edge]] = defaultdict(list)
    for edge in line_edges:
        adjacency[edge.from_stop_id].append(edge)
    for edge in walking_edges:
        adjacency[edge.from_stop_id].append(edge)

    snapshot = NetworkSnapshot(
        stops=stop_map,
        lines=line_map,
        adjacency={stop_id: tuple(edges) for stop_id, edges in adjacency.items()},
        line_edge_count=len(line_edges),
        walking_edge_count=len(walking_edges),
    )

    logger.info(
        f"Built network: {len(stop_map):,} stops, {len(line_map):,} lines, "
        f"{len(line_edges):,} line edges, {len(walking_edges):,} walking edges"
    )
    return snapshot
