from dataclasses import dataclass
from typing import Optional

from src.transit_bc.stop.domain.value_objects.geo import Coordinates


@dataclass(frozen=True)
class Stop:
    """Transit stop entity - a physical boarding/alighting location.

    A stop is mode-agnostic: several lines may serve it.
    """

    id: str
    name: str
    lat: float
    lon: float
    code: Optional[str] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.lat, self.lon)

    @classmethod
    def from_gtfs(cls, row: dict) -> "Stop":
        """Create Stop from GTFS CSV row."""
        return cls(
            id=row.get("stop_id", ""),
            name=row.get("stop_name", ""),
            lat=float(row.get("stop_lat", 0) or 0),
            lon=float(row.get("stop_lon", 0) or 0),
            code=row.get("stop_code") or None,
        )
