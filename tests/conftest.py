from __future__ import annotations

from typing import Sequence

import pytest

from evroute.models.domain import DirectionsSegment, RoutePoint
from evroute.services.routing.errors import ProviderError


class DummyDirections:
    """Returns each waypoint plus a midpoint per leg, so a window of m points has 2m-1 coordinates."""

    def __init__(self, provider_limit: int = 25, fail_on_call: int | None = None) -> None:
        self.provider_limit = provider_limit
        self.fail_on_call = fail_on_call
        self.calls: list[list[RoutePoint]] = []
        self.segments: list[DirectionsSegment] = []

    async def fetch_segment(self, waypoints: Sequence[RoutePoint], profile: str | None = None) -> DirectionsSegment:
        self.calls.append(list(waypoints))
        if self.fail_on_call == len(self.calls):
            raise ProviderError("provider returned HTTP 503")
        coordinates = []
        for index, point in enumerate(waypoints):
            if index:
                previous = waypoints[index - 1]
                coordinates.append(
                    ((previous.longitude + point.longitude) / 2, (previous.latitude + point.latitude) / 2)
                )
            coordinates.append((point.longitude, point.latitude))
        legs = len(waypoints) - 1
        segment = DirectionsSegment(
            coordinates=tuple(coordinates),
            distance_meters=1000.0 * legs + 0.5,
            duration_seconds=60.0 * legs + 0.25,
        )
        self.segments.append(segment)
        return segment


def make_waypoints(count: int) -> list[RoutePoint]:
    points = []
    for index in range(count):
        if index == 0:
            kind = "start"
        elif index == count - 1:
            kind = "destination"
        else:
            kind = "charging"
        points.append(RoutePoint(latitude=40.0 + index * 0.01, longitude=29.0 + index * 0.01, kind=kind))
    return points


@pytest.fixture
def dummy_directions():
    return DummyDirections


@pytest.fixture
def waypoints():
    return make_waypoints
