"""Pytest configuration and fixtures.

The sample network (latitude ~21.0, 0.01 deg of latitude is ~1.1 km):

    S1 --L1-- S2 --L1-- S3 --L1-- S4
                        |
                        L2
                        |
                        S5 --L2-- S6 ~walk~ S8 --L3 (train)-- S9

    X1 --LX-- X2   (separate component)
"""

import pytest
from fastapi.testclient import TestClient

from app import app
from core.rate_limiter import limiter
from src.transit_bc.line.domain.entities.line import Line, TransportMode
from src.transit_bc.routing.network import NetworkSnapshot, build_snapshot
from src.transit_bc.routing.network_store import NetworkStore
from src.transit_bc.routing.schedule_sources import InMemoryScheduleSource
from src.transit_bc.stop.domain.entities.stop import Stop


@pytest.fixture
def network_stops():
    """Stops of the sample network."""
    return [
        Stop("S1", "Central Station", 21.000, 105.800, code="001"),
        Stop("S2", "Market", 21.010, 105.800),
        Stop("S3", "University", 21.020, 105.800),
        Stop("S4", "North Terminal", 21.030, 105.800),
        Stop("S5", "Hospital", 21.020, 105.815),
        Stop("S6", "Lake East", 21.020, 105.830),
        Stop("S8", "Lake Rail", 21.0205, 105.830),  # ~56 m from S6
        Stop("S9", "Airport", 21.040, 105.830),
        Stop("X1", "Island Pier", 21.500, 105.500),
        Stop("X2", "Island Beach", 21.510, 105.500),
    ]


@pytest.fixture
def network_lines():
    """Lines of the sample network."""
    return [
        Line("L1", "Line 1", TransportMode.BUS, ("S1", "S2", "S3", "S4"), fare=7000, color="#ff0000", short_name="1"),
        Line("L2", "Line 2", TransportMode.BUS, ("S3", "S5", "S6"), fare=7000, short_name="2"),
        Line("L3", "Airport Rail", TransportMode.TRAIN, ("S8", "S9"), fare=7000),
        Line("LX", "Island Shuttle", TransportMode.BUS, ("X1", "X2"), fare=7000),
    ]


@pytest.fixture
def network_source(network_stops, network_lines):
    return InMemoryScheduleSource(network_stops, network_lines)


@pytest.fixture
def network_snapshot(network_stops, network_lines) -> NetworkSnapshot:
    return build_snapshot(network_stops, network_lines)


@pytest.fixture
def network_store(network_source) -> NetworkStore:
    """A loaded store, independent of the singleton."""
    store = NetworkStore(source=network_source)
    store.load()
    return store


@pytest.fixture
def client(network_source):
    """Create a test client for the FastAPI app, with the sample network loaded."""
    NetworkStore.reset_instance()
    NetworkStore.get_instance().load(network_source)
    limiter.enabled = False

    with TestClient(app) as c:
        yield c

    limiter.enabled = True
    NetworkStore.reset_instance()


@pytest.fixture
def api_base_url():
    """Base URL for transit API endpoints."""
    return "/api/v1/transit"
