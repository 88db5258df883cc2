from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


# Flat fare charged once per boarding of a line
DEFAULT_FARE = 7000
DEFAULT_COLOR = "#1f8eed"

# GTFS route_type values treated as rail (tram, metro, rail and extended rail types)
RAIL_ROUTE_TYPES = {0, 1, 2, 400, 401, 402}
FERRY_ROUTE_TYPE = 4


class TransportMode(str, Enum):
    """Transport mode of a line."""
    BUS = "bus"
    TRAIN = "train"
    FERRY = "ferry"

    @classmethod
    def from_route_type(cls, route_type: Optional[int]) -> "TransportMode":
        """Map a GTFS route_type to a transport mode."""
        if route_type in RAIL_ROUTE_TYPES:
            return cls.TRAIN
        if route_type == FERRY_ROUTE_TYPE:
            return cls.FERRY
        return cls.BUS


@dataclass(frozen=True)
class Line:
    """Transit line entity - a named service over an ordered stop sequence."""

    id: str
    name: str
    mode: TransportMode
    stop_ids: Tuple[str, ...] = field(default_factory=tuple)
    fare: float = DEFAULT_FARE
    color: Optional[str] = None
    short_name: Optional[str] = None

    @classmethod
    def from_gtfs(cls, row: dict, stop_ids: Tuple[str, ...], fare: float = DEFAULT_FARE) -> "Line":
        """Create Line from GTFS routes.txt row and its stop sequence."""
        try:
            route_type = int(row.get("route_type", 3))
        except (TypeError, ValueError):
            route_type = 3

        color = row.get("route_color")
        return cls(
            id=row.get("route_id", ""),
            name=row.get("route_long_name") or row.get("route_short_name", ""),
            mode=TransportMode.from_route_type(route_type),
            stop_ids=tuple(stop_ids),
            fare=fare,
            color=f"#{color}" if color else DEFAULT_COLOR,
            short_name=row.get("route_short_name") or None,
        )
