"""Stitch directions for waypoint lists longer than the provider limit."""

from __future__ import annotations

import logging
import time
from typing import Protocol, Sequence

from ...config import settings
from ...models.domain import DirectionsSegment, LonLat, Route, RoutePoint
from ..geospatial import path_length_km
from .cancellation import CancellationToken
from .errors import InvalidInput, ProviderError, RouteUnavailable

logger = logging.getLogger(__name__)


class SegmentFetcher(Protocol):
    provider_limit: int

    async def fetch_segment(self, waypoints: Sequence[RoutePoint], profile: str | None = None) -> DirectionsSegment:
        ...


def plan_windows(count: int, window_size: int) -> list[tuple[int, int]]:
    """Split ``count`` waypoints into overlapping windows.

    Returns inclusive ``(first, last)`` index pairs. Each window after the
    first starts on the last index of the previous one, so ``plan_windows(47, 20)``
    gives ``[(0, 19), (19, 38), (38, 46)]``.
    """
    if window_size < 2:
        raise ValueError("Window size must be at least 2.")
    if count < 2:
        return []

    step = window_size - 1
    windows = []
    for first in range(0, count - 1, step):
        windows.append((first, min(first + step, count - 1)))
    return windows


def concatenate_segments(segments: Sequence[DirectionsSegment]) -> list[LonLat]:
    """Join per-window geometries, dropping the repeated boundary vertex."""
    coordinates: list[LonLat] = []
    for index, segment in enumerate(segments):
        if index == 0:
            coordinates.extend(segment.coordinates)
        else:
            coordinates.extend(segment.coordinates[1:])
    return coordinates


def straight_line_route(waypoints: Sequence[RoutePoint], average_speed_kmh: float | None = None) -> Route:
    """Approximate route drawn directly between the raw waypoints.

    Used when road geometry cannot be fetched so the map still has a line to
    draw. Marked with ``source="straight_line"``.
    """
    if len(waypoints) < 2:
        raise InvalidInput("at least two waypoints are required")
    speed = average_speed_kmh or settings.fallback_average_speed_kmh
    distance_km = path_length_km((point.latitude, point.longitude) for point in waypoints)
    return Route(
        points=tuple(waypoints),
        polyline=tuple(point.as_lonlat() for point in waypoints),
        distance_meters=distance_km * 1000.0,
        duration_seconds=(distance_km / speed) * 3600.0,
        source="straight_line",
    )


class SegmentStitcher:
    """Builds one continuous route from any number of waypoints.

    Routes within the provider limit are fetched with a single call. Longer
    routes are fetched window by window, strictly one after another, and
    joined on their shared boundary waypoint.
    """

    def __init__(
        self,
        client: SegmentFetcher,
        window_size: int | None = None,
        profile: str | None = None,
    ) -> None:
        self.client = client
        self.provider_limit = client.provider_limit
        self.window_size = window_size if window_size is not None else settings.directions_window_size
        if not 2 <= self.window_size <= self.provider_limit:
            raise ValueError(
                f"Window size must be between 2 and the provider limit ({self.provider_limit}), got {self.window_size}."
            )
        self.profile = profile

    async def stitch(self, waypoints: Sequence[RoutePoint], token: CancellationToken | None = None) -> Route:
        if len(waypoints) < 2:
            raise InvalidInput("at least two waypoints are required")

        points = tuple(waypoints)
        if len(points) <= self.provider_limit:
            segment = await self._fetch(points, token)
            return Route(
                points=points,
                polyline=segment.coordinates,
                distance_meters=segment.distance_meters,
                duration_seconds=segment.duration_seconds,
            )

        windows = plan_windows(len(points), self.window_size)
        start_time = time.time()
        logger.info(
            f"Splitting directions request: {len(points)} waypoints into {len(windows)} windows "
            f"(window size: {self.window_size}, provider limit: {self.provider_limit})"
        )

        segments: list[DirectionsSegment] = []
        # Strictly sequential: window k+1 is requested only after window k succeeded.
        for number, (first, last) in enumerate(windows, start=1):
            logger.debug(f"Fetching window {number}/{len(windows)}: waypoints {first} to {last}")
            segments.append(await self._fetch(points[first : last + 1], token))

        coordinates = concatenate_segments(segments)
        route = Route(
            points=points,
            polyline=tuple(coordinates),
            distance_meters=sum(segment.distance_meters for segment in segments),
            duration_seconds=sum(segment.duration_seconds for segment in segments),
        )
        logger.info(
            f"Combined {len(segments)} windows into route with {len(coordinates)} points "
            f"in {time.time() - start_time:.2f}s"
        )
        return route

    async def _fetch(self, waypoints: Sequence[RoutePoint], token: CancellationToken | None) -> DirectionsSegment:
        if token is not None:
            token.raise_if_cancelled()
        try:
            segment = await self.client.fetch_segment(waypoints, self.profile)
        except ProviderError as exc:
            logger.warning(f"Directions window failed, discarding partial route: {exc}")
            raise RouteUnavailable(str(exc)) from exc
        if token is not None:
            token.raise_if_cancelled()
        return segment
