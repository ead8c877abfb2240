"""Error taxonomy for route construction."""

from __future__ import annotations


class RoutingError(Exception):
    """Base class for route construction failures.

    ``user_message`` is the short text shown to the user; ``str(exc)`` keeps
    the technical detail for logs.
    """

    default_message = "route could not be created"

    def __init__(self, detail: str | None = None, *, user_message: str | None = None) -> None:
        super().__init__(detail or self.default_message)
        self.detail = detail
        self.user_message = user_message or self.default_message


class InvalidInput(RoutingError, ValueError):
    """Client-side validation failure. Never reaches the network."""

    default_message = "invalid trip parameters"

    def __init__(self, detail: str | None = None, *, user_message: str | None = None) -> None:
        if user_message is None and detail:
            user_message = f"{self.default_message}: {detail}"
        super().__init__(detail, user_message=user_message)


class ProviderError(RoutingError):
    """Directions provider transport/HTTP failure or empty result for one request."""

    default_message = "could not reach directions service"


class RouteUnavailable(RoutingError):
    """The stitcher could not complete every window."""

    default_message = "could not build road route"


class PlanningFailed(RoutingError):
    """Planner service failure or malformed/unsuccessful response."""

    default_message = "could not reach routing service"


class OperationCancelled(RoutingError):
    """The request was superseded or cancelled before it finished."""

    default_message = "route request cancelled"
