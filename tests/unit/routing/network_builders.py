"""Builders for small hand-made networks.

Hand-made edges let a test fix durations and distances exactly instead of
deriving them from coordinates.
"""

from collections import defaultdict

from src.transit_bc.line.domain.entities.line import Line, TransportMode
from src.transit_bc.routing.network import Edge, NetworkSnapshot, WALK_MODE
from src.transit_bc.stop.domain.entities.stop import Stop


def ride(from_id, to_id, line_id, minutes, km=1.0, mode="bus"):
    return Edge(from_id, to_id, line_id, mode, minutes, km)


def walk(from_id, to_id, minutes, km=0.1):
    return Edge(from_id, to_id, None, WALK_MODE, minutes, km)


def make_snapshot(edges, fares=None) -> NetworkSnapshot:
    """Snapshot from hand-made edges, each added in both directions.

    Stops are placed 0.01 deg of longitude apart, in order of first appearance.
    """
    fares = fares or {}
    stop_ids = []
    line_stops = defaultdict(list)
    adjacency = defaultdict(list)

    for edge in edges:
        for stop_id in (edge.from_stop_id, edge.to_stop_id):
            if stop_id not in stop_ids:
                stop_ids.append(stop_id)
            if edge.line_id and stop_id not in line_stops[edge.line_id]:
                line_stops[edge.line_id].append(stop_id)
        adjacency[edge.from_stop_id].append(edge)
        adjacency[edge.to_stop_id].append(edge.reversed())

    stops = {
        stop_id: Stop(stop_id, f"Stop {stop_id}", 10.0, 100.0 + i * 0.01)
        for i, stop_id in enumerate(stop_ids)
    }
    lines = {
        line_id: Line(line_id, f"Line {line_id}", TransportMode.BUS, tuple(ids), fare=fares.get(line_id, 7000))
        for line_id, ids in line_stops.items()
    }
    return NetworkSnapshot(
        stops=stops,
        lines=lines,
        adjacency={stop_id: tuple(out) for stop_id, out in adjacency.items()},
    )
