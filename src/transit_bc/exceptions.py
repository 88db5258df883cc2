"""Errors raised by the transit planning core.

"No route" is not an error: the planner returns an empty result for it.
"""


class RoutingError(Exception):
    """Base class for planning errors."""


class DataUnavailableError(RoutingError):
    """The schedule store could not be read, or returned no stops."""


class NotFoundError(RoutingError, LookupError):
    """An ID does not exist in the current network snapshot."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind} {entity_id} not found")


class StopNotFoundError(NotFoundError):
    def __init__(self, stop_id: str):
        super().__init__("Stop", stop_id)


class LineNotFoundError(NotFoundError):
    def __init__(self, line_id: str):
        super().__init__("Line", line_id)


class InvalidCoordinatesError(RoutingError, ValueError):
    """Latitude/longitude failed range or type validation."""


class InvalidFilterError(RoutingError, ValueError):
    """Unknown optimization filter name."""
