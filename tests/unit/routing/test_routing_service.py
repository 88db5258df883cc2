"""Unit tests for the line-aware shortest-path search."""

from dataclasses import replace

import pytest

from src.transit_bc.routing.edge_weights import WEIGHT_PROFILES, RouteFilter, WeightProfile
from src.transit_bc.routing.itinerary import build_itinerary
from src.transit_bc.routing.routing_service import (
    PriorityQueueItem,
    RoutingService,
    SearchState,
    find_route,
)
from tests.unit.routing.network_builders import make_snapshot, ride, walk


def _lines_used(edges):
    lines = []
    for edge in edges:
        if edge.line_id and edge.line_id not in lines:
            lines.append(edge.line_id)
    return lines


def _stops_visited(edges):
    return [edges[0].from_stop_id] + [e.to_stop_id for e in edges]


def min_transfers_exhaustive(snapshot, origin, destination):
    """Minimum (distinct lines - 1) over every simple path, by brute force."""
    best = [None]

    def dfs(stop_id, visited, lines):
        if stop_id == destination:
            transfers = max(0, len(lines) - 1)
            if best[0] is None or transfers < best[0]:
                best[0] = transfers
            return
        for edge in snapshot.outgoing_edges(stop_id):
            if edge.to_stop_id in visited:
                continue
            next_lines = lines | {edge.line_id} if edge.line_id else lines
            dfs(edge.to_stop_id, visited | {edge.to_stop_id}, next_lines)

    dfs(origin, {origin}, frozenset())
    return best[0]


class TestSearchState:

    def test_same_stop_different_line_are_distinct(self):
        assert SearchState("A", "L1") != SearchState("A", "L2")
        assert len({SearchState("A", "L1"), SearchState("A", "L2"), SearchState("A", "L1")}) == 2

    def test_queue_items_order_by_priority_then_insertion(self):
        a = PriorityQueueItem(1.0, 2, SearchState("A"))
        b = PriorityQueueItem(1.0, 1, SearchState("B"))
        c = PriorityQueueItem(0.5, 3, SearchState("C"))
        assert sorted([a, b, c]) == [c, b, a]


class TestFindRouteBasics:
    """Tests for trivial and failure cases."""

    def test_direct_line(self):
        snapshot = make_snapshot([ride("A", "B", "L1", 5), ride("B", "C", "L1", 5)])
        edges = find_route(snapshot, "A", "C")
        assert _stops_visited(edges) == ["A", "B", "C"]
        assert _lines_used(edges) == ["L1"]

    def test_reverse_direction(self):
        """Line edges are traversable both ways."""
        snapshot = make_snapshot([ride("A", "B", "L1", 5), ride("B", "C", "L1", 5)])
        edges = find_route(snapshot, "C", "A")
        assert _stops_visited(edges) == ["C", "B", "A"]

    def test_same_origin_and_destination(self):
        snapshot = make_snapshot([ride("A", "B", "L1", 5)])
        assert find_route(snapshot, "A", "A") == []

    def test_unknown_stops(self):
        snapshot = make_snapshot([ride("A", "B", "L1", 5)])
        assert find_route(snapshot, "A", "NOPE") == []
        assert find_route(snapshot, "NOPE", "A") == []

    @pytest.mark.parametrize("route_filter", list(RouteFilter))
    def test_disconnected_components(self, route_filter):
        snapshot = make_snapshot([
            ride("A1", "A2", "LA", 5),
            ride("A2", "A3", "LA", 5),
            ride("B1", "B2", "LB", 5),
            walk("B2", "B3", 2),
        ])
        assert find_route(snapshot, "A1", "B3", route_filter) == []

    def test_path_is_contiguous(self):
        snapshot = make_snapshot([
            ride("A", "B", "L1", 5),
            ride("B", "C", "L2", 5),
            walk("C", "D", 1),
            ride("D", "E", "L3", 5),
        ])
        edges = find_route(snapshot, "A", "E")
        assert edges[0].from_stop_id == "A"
        assert edges[-1].to_stop_id == "E"
        for prev, nxt in zip(edges, edges[1:]):
            assert prev.to_stop_id == nxt.from_stop_id

    def test_service_reusable_across_searches(self):
        snapshot = make_snapshot([ride("A", "B", "L1", 5), ride("B", "C", "L2", 5)])
        service = RoutingService(snapshot)
        assert len(service.find_route("A", "C", RouteFilter.FASTEST)) == 2
        assert len(service.find_route("C", "A", RouteFilter.CHEAPEST)) == 2

    def test_negative_weight_rejected(self):
        snapshot = make_snapshot([ride("A", "B", "L1", 5)])
        profiles = dict(WEIGHT_PROFILES)
        profiles[RouteFilter.FASTEST] = WeightProfile(duration_weight=-1.0)
        with pytest.raises(ValueError):
            RoutingService(snapshot, profiles)

    def test_misordered_penalties_rejected(self):
        snapshot = make_snapshot([ride("A", "B", "L1", 5)])
        profiles = dict(WEIGHT_PROFILES)
        profiles[RouteFilter.FASTEST] = replace(profiles[RouteFilter.FASTEST], transfer_penalty=1000)
        with pytest.raises(ValueError) as exc_info:
            RoutingService(snapshot, profiles)
        assert "fewest_transfers > cheapest > fastest" in str(exc_info.value)


class TestConcreteScenario:
    """Line A: A->B->C->D with 5-minute hops; line E reachable by walking from B."""

    @pytest.fixture
    def snapshot(self):
        return make_snapshot(
            [
                ride("A", "B", "LA", 5),
                ride("B", "C", "LA", 5),
                ride("C", "D", "LA", 5),
                walk("B", "C2", 6, km=0.5),
                ride("C2", "D2", "LE", 5),
                walk("D2", "D", 1, km=0.05),
            ],
            fares={"LA": 7000, "LE": 8000},
        )

    def test_fastest_stays_on_line_a(self, snapshot):
        edges = find_route(snapshot, "A", "D", RouteFilter.FASTEST)
        assert _lines_used(edges) == ["LA"]
        assert sum(e.duration_minutes for e in edges) == 15

    def test_cheapest_avoids_mixing_lines(self, snapshot):
        edges = find_route(snapshot, "A", "D", RouteFilter.CHEAPEST)
        assert _lines_used(edges) == ["LA"]

        itinerary = build_itinerary(edges, snapshot, RouteFilter.CHEAPEST)
        assert itinerary.summary.total_fare == 7000
        assert itinerary.summary.transfer_count == 0

    def test_cheapest_prefers_single_line_even_if_slower(self):
        """A 7-minute two-line trip loses to the 15-minute single-line trip."""
        snapshot = make_snapshot(
            [
                ride("A", "B", "LA", 5),
                ride("B", "C", "LA", 5),
                ride("C", "D", "LA", 5),
                ride("B", "D", "LE", 2),
            ],
            fares={"LA": 7000, "LE": 8000},
        )
        edges = find_route(snapshot, "A", "D", RouteFilter.CHEAPEST)
        assert _lines_used(edges) == ["LA"]
        assert sum(e.duration_minutes for e in edges) == 15


class TestTransfers:
    """Tests for transfer-aware scoring in the search."""

    @pytest.fixture
    def snapshot(self):
        """Slow direct line vs. a fast three-line chain."""
        return make_snapshot([
            ride("X", "Z", "SLOW", 100),
            ride("X", "M", "L1", 5),
            ride("M", "N", "L2", 5),
            ride("N", "Z", "L3", 5),
        ])

    def test_fastest_accepts_transfers_for_speed(self, snapshot):
        edges = find_route(snapshot, "X", "Z", RouteFilter.FASTEST)
        assert _lines_used(edges) == ["L1", "L2", "L3"]

    def test_fewest_transfers_takes_direct_line(self, snapshot):
        edges = find_route(snapshot, "X", "Z", RouteFilter.FEWEST_TRANSFERS)
        assert _lines_used(edges) == ["SLOW"]

    def test_fastest_transfer_penalty_keeps_you_on_board(self):
        """Switching lines costs 30: a 10-minute gain is not worth it."""
        snapshot = make_snapshot([
            ride("A", "B", "L1", 5),
            ride("B", "C", "L1", 20),
            ride("B", "C", "L2", 10),
        ])
        edges = find_route(snapshot, "A", "C", RouteFilter.FASTEST)
        assert _lines_used(edges) == ["L1"]

    def test_fastest_switches_when_gain_exceeds_penalty(self):
        snapshot = make_snapshot([
            ride("A", "B", "L1", 5),
            ride("B", "C", "L1", 60),
            ride("B", "C", "L2", 10),
        ])
        edges = find_route(snapshot, "A", "C", RouteFilter.FASTEST)
        assert _lines_used(edges) == ["L1", "L2"]


class TestFewestTransfersIsMinimal:
    """fewest_transfers matches a brute-force minimum on a small network."""

    @pytest.fixture
    def snapshot(self):
        #  R: 1-2-3-4-5   G: 1-6-7   B: 7-8-5   Y: 3-9-8   P: 6-9   Q: 9-10
        return make_snapshot([
            ride("1", "2", "R", 3), ride("2", "3", "R", 3), ride("3", "4", "R", 3), ride("4", "5", "R", 3),
            ride("1", "6", "G", 4), ride("6", "7", "G", 4),
            ride("7", "8", "B", 4), ride("8", "5", "B", 4),
            ride("3", "9", "Y", 2), ride("9", "8", "Y", 2),
            ride("6", "9", "P", 1),
            ride("9", "10", "Q", 6),
        ])

    @pytest.mark.parametrize("origin,destination", [
        ("1", "5"),
        ("6", "8"),
        ("2", "7"),
        ("4", "6"),
        ("5", "9"),
        ("1", "8"),
        ("1", "10"),
        ("7", "10"),
    ])
    def test_matches_exhaustive_minimum(self, snapshot, origin, destination):
        edges = find_route(snapshot, origin, destination, RouteFilter.FEWEST_TRANSFERS)
        itinerary = build_itinerary(edges, snapshot, RouteFilter.FEWEST_TRANSFERS)

        assert itinerary is not None
        assert itinerary.summary.transfer_count == min_transfers_exhaustive(snapshot, origin, destination)
