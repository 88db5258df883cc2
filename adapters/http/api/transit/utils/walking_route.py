"""Walking route generation using BRouter and OSRM.

Generates realistic pedestrian paths for the first/last mile of a trip
using routing services that follow actual sidewalks, crosswalks, and paths.

Services tried in order:
1. BRouter - trekking profile (better pedestrian paths)
2. OSRM (Open Source Routing Machine) - foot profile (fallback)
"""

import logging
import math
from typing import List, Optional

import httpx

from src.transit_bc.routing.planner_service import WalkingGeometry
from src.transit_bc.stop.domain.value_objects.geo import Coordinates

logger = logging.getLogger(__name__)

OSRM_URL = "https://router.project-osrm.org/route/v1/foot"
BROUTER_URL = "https://brouter.de/brouter"
REQUEST_TIMEOUT = 15.0
WALKING_SPEED_M_PER_S = 1.39  # 5 km/h


def _to_coordinates(coords_raw: List[List[float]]) -> tuple:
    # GeoJSON order is [lon, lat]
    return tuple(Coordinates(c[1], c[0]) for c in coords_raw)


def _minutes(seconds: float) -> int:
    return int(math.ceil(seconds / 60)) if seconds > 0 else 0


class HttpWalkingRouteProvider:
    """WalkingRouteProvider backed by public BRouter/OSRM instances.

    Never raises: any service error is logged and the next service is tried.
    """

    def __init__(
        self,
        brouter_url: str = BROUTER_URL,
        osrm_url: str = OSRM_URL,
        timeout: float = REQUEST_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self.brouter_url = brouter_url
        self.osrm_url = osrm_url
        self.client = client or httpx.Client(timeout=timeout)

    def route(self, origin: Coordinates, destination: Coordinates) -> Optional[WalkingGeometry]:
        """Generate a walking route between two points.

        Returns:
            WalkingGeometry or None if every service failed
        """
        # Try BRouter first (priority)
        result = self._try_brouter(origin, destination)
        if result:
            return result

        # Fallback to OSRM
        result = self._try_osrm(origin, destination)
        if result:
            return result

        logger.warning(
            f"All routing services failed for {origin.lat},{origin.lon} -> {destination.lat},{destination.lon}"
        )
        return None

    def _try_osrm(self, origin: Coordinates, destination: Coordinates) -> Optional[WalkingGeometry]:
        """Try OSRM routing service."""
        url = f"{self.osrm_url}/{origin.lon},{origin.lat};{destination.lon},{destination.lat}"

        try:
            response = self.client.get(url, params={"overview": "full", "geometries": "geojson"})
            if response.status_code != 200:
                logger.debug(f"OSRM returned HTTP {response.status_code}")
                return None

            data = response.json()
            if data.get('code') != 'Ok' or not data.get('routes'):
                return None

            route = data['routes'][0]

            # OSRM returns distance in meters and duration in seconds
            return WalkingGeometry(
                coordinates=_to_coordinates(route['geometry']['coordinates']),
                distance_km=float(route.get('distance', 0)) / 1000,
                duration_minutes=_minutes(float(route.get('duration', 0))),
                source="osrm",
            )

        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.debug(f"OSRM error: {e}")
            return None

    def _try_brouter(self, origin: Coordinates, destination: Coordinates) -> Optional[WalkingGeometry]:
        """Try BRouter routing service."""
        params = {
            "lonlats": f"{origin.lon},{origin.lat}|{destination.lon},{destination.lat}",
            "profile": "trekking",
            "format": "geojson",
        }

        try:
            response = self.client.get(self.brouter_url, params=params)
            if response.status_code != 200:
                logger.debug(f"BRouter returned HTTP {response.status_code}")
                return None

            data = response.json()
            feature = data['features'][0]
            props = feature['properties']

            distance_m = float(props.get('track-length', 0))
            walk_time_s = float(props.get('total-time', 0))

            # Estimate time if not provided (5 km/h walking speed)
            if walk_time_s == 0 and distance_m > 0:
                walk_time_s = distance_m / WALKING_SPEED_M_PER_S

            return WalkingGeometry(
                coordinates=_to_coordinates(feature['geometry']['coordinates']),
                distance_km=distance_m / 1000,
                duration_minutes=_minutes(walk_time_s),
                source="brouter",
            )

        except (httpx.HTTPError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.debug(f"BRouter error: {e}")
            return None
