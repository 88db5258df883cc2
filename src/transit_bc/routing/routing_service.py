"""Route search using Dijkstra's algorithm over a line-aware state graph.

The search graph is built on the fly from a NetworkSnapshot, where:
- Nodes are (stop_id, line_label) pairs. line_label is None for the start
  node, "walk" after a walking edge, otherwise the line being ridden
- Edges are the snapshot's hops, scored by the active filter's WeightProfile

Two arrivals at the same stop on different lines are different nodes, so a
transfer (an edge whose line differs from the current line) can be penalized.
"""

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from src.transit_bc.routing.edge_weights import (
    RouteFilter,
    WALK_LABEL,
    WEIGHT_PROFILES,
    WeightProfile,
    score_edge,
    validate_profiles,
)
from src.transit_bc.routing.network import Edge, NetworkSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchState:
    """A node in the search graph: being at a stop, on a given line."""
    stop_id: str
    line_label: Optional[str] = None  # None only for the start state


@dataclass(order=True)
class PriorityQueueItem:
    """Item for the priority queue in Dijkstra's algorithm."""
    priority: float
    sequence: int  # Insertion order breaks ties between equal scores
    state: SearchState = field(compare=False)


def line_label_for(edge: Edge) -> str:
    """Line label of the state reached through an edge."""
    return WALK_LABEL if edge.is_walking else edge.line_id


class RoutingService:
    """Finds minimum-score paths in a network snapshot.

    Stateless apart from the snapshot reference, so one instance can serve
    concurrent searches.
    """

    def __init__(
        self,
        snapshot: NetworkSnapshot,
        profiles: Dict[RouteFilter, WeightProfile] = WEIGHT_PROFILES,
    ):
        validate_profiles(profiles)
        self.snapshot = snapshot
        self.profiles = profiles

    def find_route(
        self,
        origin_stop_id: str,
        destination_stop_id: str,
        route_filter: RouteFilter = RouteFilter.FASTEST,
    ) -> List[Edge]:
        """Find the minimum-score path between two stops.

        Args:
            origin_stop_id: Origin stop ID
            destination_stop_id: Destination stop ID
            route_filter: Optimization filter used to score edges

        Returns:
            Ordered list of edges from origin to destination. Empty when the
            destination is unreachable (or equals the origin).
        """
        start = SearchState(origin_stop_id, None)
        distances: Dict[SearchState, float] = {start: 0.0}
        previous: Dict[SearchState, Tuple[SearchState, Edge]] = {}
        visited: Set[SearchState] = set()

        counter = itertools.count()
        queue: List[PriorityQueueItem] = [PriorityQueueItem(0.0, next(counter), start)]

        while queue:
            item = heapq.heappop(queue)
            current = item.state

            # Skip stale queue entries
            if current in visited:
                continue
            visited.add(current)

            # First settled state at the destination stop wins
            if current.stop_id == destination_stop_id:
                return self._reconstruct_path(current, previous)

            current_score = item.priority
            for edge in self.snapshot.outgoing_edges(current.stop_id):
                neighbor = SearchState(edge.to_stop_id, line_label_for(edge))
                if neighbor in visited:
                    continue

                weight = score_edge(edge, route_filter, current.line_label, self.profiles)
                new_score = current_score + weight

                if new_score < distances.get(neighbor, float("inf")):
                    distances[neighbor] = new_score
                    previous[neighbor] = (current, edge)
                    heapq.heappush(queue, PriorityQueueItem(new_score, next(counter), neighbor))

        logger.debug(
            f"No route from {origin_stop_id} to {destination_stop_id} "
            f"({route_filter.value}, {len(visited)} states settled)"
        )
        return []

    @staticmethod
    def _reconstruct_path(
        target: SearchState,
        previous: Dict[SearchState, Tuple[SearchState, Edge]],
    ) -> List[Edge]:
        """Walk predecessor links back from the target state."""
        path: List[Edge] = []
        current = target
        while current in previous:
            prev_state, edge = previous[current]
            path.append(edge)
            current = prev_state
        path.reverse()
        return path


def find_route(
    snapshot: NetworkSnapshot,
    origin_stop_id: str,
    destination_stop_id: str,
    route_filter: RouteFilter = RouteFilter.FASTEST,
) -> List[Edge]:
    """Shortcut for RoutingService(snapshot).find_route(...)."""
    return RoutingService(snapshot).find_route(origin_stop_id, destination_stop_id, route_filter)
