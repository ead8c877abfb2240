"""Route preview orchestration: plan the stops, then fetch road geometry."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ...models.domain import PlanResponse, Route
from ...schemas.routing import PlanRequest
from ..export.geojson import points_to_markers, route_to_feature
from .cancellation import CancellationToken
from .errors import RouteUnavailable
from .planner import RoutePlanner
from .stitcher import SegmentStitcher, straight_line_route

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RoutePreview:
    """A planned trip together with the geometry drawn for it."""

    plan: PlanResponse
    route: Route

    def to_feature(self) -> dict:
        return route_to_feature(self.route)

    def markers(self) -> dict:
        return points_to_markers(self.plan.points)


async def build_route(
    stitcher: SegmentStitcher,
    plan: PlanResponse,
    token: CancellationToken | None = None,
) -> Route:
    """Road route through the planned points, or a straight-line fallback."""
    try:
        return await stitcher.stitch(plan.points, token)
    except RouteUnavailable as exc:
        logger.warning(f"Road route unavailable, falling back to straight lines: {exc}")
        return straight_line_route(plan.points)


async def build_preview(
    planner: RoutePlanner,
    stitcher: SegmentStitcher,
    request: PlanRequest,
    token: CancellationToken | None = None,
) -> RoutePreview:
    plan = await planner.plan(request, token)
    route = await build_route(stitcher, plan, token)
    return RoutePreview(plan=plan, route=route)
