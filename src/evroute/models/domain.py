"""Domain models for trip points, planned trips and road routes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional, Tuple

PointKind = Literal["start", "charging", "destination", "waypoint"]
RouteSource = Literal["directions", "straight_line"]

# (longitude, latitude), GeoJSON order
LonLat = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class RoutePoint:
    """A stop along the trip, in trip order."""

    latitude: float
    longitude: float
    kind: PointKind = "waypoint"
    station_ref: Optional[str] = None
    power_kw: Optional[float] = None
    title: Optional[str] = None

    def as_lonlat(self) -> LonLat:
        return (self.longitude, self.latitude)


@dataclass(frozen=True, slots=True)
class Route:
    """Road geometry for an ordered list of points.

    ``source`` tells a real road route (``"directions"``) apart from the
    approximate straight-line fallback.
    """

    points: Tuple[RoutePoint, ...]
    polyline: Tuple[LonLat, ...]
    distance_meters: float
    duration_seconds: float
    source: RouteSource = "directions"

    @property
    def is_approximate(self) -> bool:
        return self.source == "straight_line"


@dataclass(frozen=True, slots=True)
class DirectionsSegment:
    """Result of a single directions request."""

    coordinates: Tuple[LonLat, ...]
    distance_meters: float
    duration_seconds: float


@dataclass(frozen=True, slots=True)
class PlanSummary:
    distance_km: float
    duration_min: float
    charging_stops: int
    reserve_percent: float


@dataclass(frozen=True, slots=True)
class PlanResponse:
    points: Tuple[RoutePoint, ...]
    summary: PlanSummary

    @property
    def charging_points(self) -> Tuple[RoutePoint, ...]:
        return tuple(point for point in self.points if point.kind == "charging")
