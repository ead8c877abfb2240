"""Route preview endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ...models.domain import Route, RoutePoint
from ...schemas.routing import (
    LineStringGeometry,
    PlanRequest,
    PlanSummaryModel,
    RoutePointModel,
    RoutePreviewResponse,
    StitchRequest,
    StitchResponse,
)
from ...services.export.geojson import route_to_line
from ...services.routing.directions_client import DirectionsClient
from ...services.routing.errors import InvalidInput, PlanningFailed, RouteUnavailable
from ...services.routing.planner import HttpRoutePlanner, RoutePlanner
from ...services.routing.service import build_preview
from ...services.routing.stitcher import SegmentStitcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/routes", tags=["routes"])


def get_planner() -> RoutePlanner:
    try:
        return HttpRoutePlanner()
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Route planner is not configured. Set EVROUTE_PLANNER_BASE_URL.",
        ) from exc


def get_stitcher() -> SegmentStitcher:
    return SegmentStitcher(DirectionsClient())


def _stitch_response(route: Route) -> StitchResponse:
    return StitchResponse(
        geometry=LineStringGeometry(**route_to_line(route)),
        distance_meters=route.distance_meters,
        duration_seconds=route.duration_seconds,
        source=route.source,
    )


def _point_model(point: RoutePoint) -> RoutePointModel:
    return RoutePointModel(
        latitude=point.latitude,
        longitude=point.longitude,
        kind=point.kind,
        title=point.title,
        station_id=point.station_ref,
        power_kw=point.power_kw,
    )


@router.post("/preview", response_model=RoutePreviewResponse, response_model_by_alias=True)
async def preview(
    payload: PlanRequest,
    planner: RoutePlanner = Depends(get_planner),
    stitcher: SegmentStitcher = Depends(get_stitcher),
) -> RoutePreviewResponse:
    try:
        result = await build_preview(planner, stitcher, payload)
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.user_message) from exc
    except PlanningFailed as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.user_message) from exc
    except Exception as exc:
        logger.exception(f"Error building route preview: {exc}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to build route preview: {str(exc)}",
        ) from exc

    summary = result.plan.summary
    return RoutePreviewResponse(
        points=[_point_model(point) for point in result.plan.points],
        summary=PlanSummaryModel(
            distance_km=summary.distance_km,
            duration_min=summary.duration_min,
            charging_stops=summary.charging_stops,
            reserve_percent=summary.reserve_percent,
        ),
        route=_stitch_response(result.route),
        markers=result.markers(),
    )


@router.post("/stitch", response_model=StitchResponse, response_model_by_alias=True)
async def stitch(
    payload: StitchRequest,
    stitcher: SegmentStitcher = Depends(get_stitcher),
) -> StitchResponse:
    waypoints = [RoutePoint(latitude=point.latitude, longitude=point.longitude) for point in payload.waypoints]
    try:
        route = await stitcher.stitch(waypoints)
    except InvalidInput as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.user_message) from exc
    except RouteUnavailable as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=exc.user_message) from exc
    return _stitch_response(route)
