"""Nearest-stop lookups by straight-line distance.

Linear scans over the stop collection; networks of a few thousand stops
stay well under a millisecond per query.
"""

from typing import Iterable, List, Tuple

from src.transit_bc.exceptions import StopNotFoundError
from src.transit_bc.stop.domain.entities.stop import Stop
from src.transit_bc.stop.domain.value_objects.geo import Coordinates, haversine_distance_km


# Candidates closer than this to an already chosen stop are skipped
MIN_SEPARATION_M = 50.0
DEFAULT_CANDIDATES = 3


def find_nearest_stop(coords: Coordinates, stops: Iterable[Stop]) -> Stop:
    """Return the stop closest to coords.

    Ties go to the first stop encountered.

    Raises:
        StopNotFoundError: if there are no stops
    """
    nearest = None
    best_distance = float("inf")

    for stop in stops:
        distance = haversine_distance_km(coords, stop.coordinates)
        if distance < best_distance:
            nearest = stop
            best_distance = distance

    if nearest is None:
        raise StopNotFoundError(f"near {coords.lat},{coords.lon}")
    return nearest


def _by_distance(coords: Coordinates, stops: Iterable[Stop]) -> List[Tuple[Stop, float]]:
    ranked = [(stop, haversine_distance_km(coords, stop.coordinates)) for stop in stops]
    # sort is stable, so equal distances keep input order
    ranked.sort(key=lambda pair: pair[1])
    return ranked


def find_nearest_stops(
    coords: Coordinates,
    stops: Iterable[Stop],
    k: int = DEFAULT_CANDIDATES,
    min_separation_m: float = MIN_SEPARATION_M,
) -> List[Stop]:
    """Return up to k nearby stops, nearest first, spread at least min_separation_m apart.

    Platforms of one station usually sit a few meters from each other; the
    separation filter keeps them from filling every candidate slot.
    """
    if k <= 0:
        return []

    min_separation_km = min_separation_m / 1000.0
    selected: List[Stop] = []

    for stop, _ in _by_distance(coords, stops):
        point = stop.coordinates
        too_close = any(
            haversine_distance_km(point, chosen.coordinates) < min_separation_km
            for chosen in selected
        )
        if too_close:
            continue
        selected.append(stop)
        if len(selected) >= k:
            break

    return selected


def find_stops_within(
    coords: Coordinates,
    stops: Iterable[Stop],
    radius_km: float,
    limit: int,
) -> List[Tuple[Stop, float]]:
    """Stops within radius_km of coords as (stop, distance_km), nearest first."""
    within = [pair for pair in _by_distance(coords, stops) if pair[1] <= radius_km]
    return within[:max(0, limit)]
