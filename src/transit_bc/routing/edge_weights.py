"""Edge weight policy for the line-aware search.

Each optimization filter is a WeightProfile; one generic scoring function
consumes it. Scores are only comparison keys for the search, never shown
to users.

Line-change penalties must keep the order:
    fewest_transfers >> cheapest >> fastest
so each filter's dominant concern outweighs its secondary ones.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from src.transit_bc.exceptions import InvalidFilterError
from src.transit_bc.routing.network import Edge, WALK_MODE


# Line label of a search state reached by walking
WALK_LABEL = WALK_MODE


class RouteFilter(str, Enum):
    """Optimization objective controlling edge scoring."""
    FASTEST = "fastest"
    FEWEST_TRANSFERS = "fewest_transfers"
    CHEAPEST = "cheapest"

    @classmethod
    def parse(cls, value: Optional[str]) -> "RouteFilter":
        """Parse a filter name; None means the default (fastest)."""
        if value is None:
            return cls.FASTEST
        if isinstance(value, RouteFilter):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(f.value for f in cls)
            raise InvalidFilterError(f"Unknown filter '{value}'. Valid filters: {valid}")


@dataclass(frozen=True)
class WeightProfile:
    """Weighting scheme for one filter. All values must be non-negative."""
    transfer_penalty: float = 0.0
    new_line_penalty: float = 0.0
    walk_penalty: float = 0.0
    duration_weight: float = 0.0
    distance_weight: float = 0.0

    @property
    def line_change_penalty(self) -> float:
        return self.transfer_penalty + self.new_line_penalty


WEIGHT_PROFILES: Dict[RouteFilter, WeightProfile] = {
    # Boarding a second line always costs another full fare
    RouteFilter.CHEAPEST: WeightProfile(
        new_line_penalty=300,
        duration_weight=0.1,
    ),
    # Accept many times the direct travel time rather than add one transfer
    RouteFilter.FEWEST_TRANSFERS: WeightProfile(
        transfer_penalty=500,
        walk_penalty=50,
        duration_weight=0.01,
        distance_weight=0.1,
    ),
    RouteFilter.FASTEST: WeightProfile(
        transfer_penalty=30,
        duration_weight=1.0,
        distance_weight=0.5,
    ),
}


def validate_profiles(profiles: Dict[RouteFilter, WeightProfile] = WEIGHT_PROFILES) -> None:
    """Check non-negative weights and the line-change penalty ordering.

    Raises:
        ValueError: if a profile is missing, negative or out of order
    """
    for route_filter in RouteFilter:
        if route_filter not in profiles:
            raise ValueError(f"Missing weight profile for {route_filter.value}")
        profile = profiles[route_filter]
        for name, value in vars(profile).items():
            if value < 0:
                raise ValueError(f"{route_filter.value}.{name} must be non-negative, got {value}")

    fewest = profiles[RouteFilter.FEWEST_TRANSFERS].line_change_penalty
    cheapest = profiles[RouteFilter.CHEAPEST].line_change_penalty
    fastest = profiles[RouteFilter.FASTEST].line_change_penalty
    if not fewest > cheapest > fastest:
        raise ValueError(
            "Line change penalties must satisfy fewest_transfers > cheapest > fastest, "
            f"got {fewest} / {cheapest} / {fastest}"
        )


def is_line_change(edge: Edge, previous_line_label: Optional[str]) -> bool:
    """True when the edge boards a line different from the one being ridden.

    Leaving the start state (no label) or a walking state is not a line change.
    """
    if edge.is_walking:
        return False
    if previous_line_label is None or previous_line_label == WALK_LABEL:
        return False
    return edge.line_id != previous_line_label


def score_edge(
    edge: Edge,
    route_filter: RouteFilter,
    previous_line_label: Optional[str],
    profiles: Dict[RouteFilter, WeightProfile] = WEIGHT_PROFILES,
) -> float:
    """Score an edge for the search under a filter.

    Args:
        edge: Candidate edge
        route_filter: Active optimization filter
        previous_line_label: Line label of the state being departed
            (None at the start, "walk" after walking)
        profiles: Weight table (defaults to WEIGHT_PROFILES)

    Returns:
        Non-negative cost
    """
    profile = profiles[route_filter]

    score = edge.duration_minutes * profile.duration_weight + edge.distance_km * profile.distance_weight
    if is_line_change(edge, previous_line_label):
        score += profile.line_change_penalty
    if edge.is_walking:
        score += profile.walk_penalty

    return score
