"""Route planner facade: validated contract with the external stop planner."""

from __future__ import annotations

import logging
import math
from typing import Protocol, Sequence

import httpx
from pydantic import ValidationError

from ...config import settings
from ...models.domain import PlanResponse, PlanSummary, RoutePoint
from ...schemas.routing import PlannerEnvelope, PlanRequest, RoutePointModel
from ..geospatial import path_length_km
from .cancellation import CancellationToken
from .errors import InvalidInput, PlanningFailed

logger = logging.getLogger(__name__)

PLAN_PATH = "/api/routes/plan"
MAX_RESERVE_PERCENT = 50.0


class RoutePlanner(Protocol):
    async def plan(self, request: PlanRequest, token: CancellationToken | None = None) -> PlanResponse:
        ...


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def validate_plan_request(request: PlanRequest) -> None:
    """Reject trip parameters the planner must never see."""
    numbers = {
        "maxRangeKm": request.vehicle.max_range_km,
        "currentSocPercent": request.current_soc_percent,
        "reservePercent": request.reserve_percent,
        "corridorKm": request.corridor_km,
        "chargeAfterStopPercent": request.charge_after_stop_percent,
        "start": request.start.latitude + request.start.longitude,
        "end": request.end.latitude + request.end.longitude,
    }
    for name, value in numbers.items():
        if not math.isfinite(value):
            raise InvalidInput(f"{name} must be a finite number")

    if request.vehicle.max_range_km <= 0:
        raise InvalidInput("maxRangeKm must be greater than 0")
    if not 0 <= request.current_soc_percent <= 100:
        raise InvalidInput("currentSocPercent must be between 0 and 100")
    if not 0 <= request.reserve_percent <= MAX_RESERVE_PERCENT:
        raise InvalidInput(f"reservePercent must be between 0 and {MAX_RESERVE_PERCENT:g}")
    if request.corridor_km < 0:
        raise InvalidInput("corridorKm must not be negative")
    if request.max_stops < 0:
        raise InvalidInput("maxStops must not be negative")
    for label, point in (("start", request.start), ("end", request.end)):
        if not (-90 <= point.latitude <= 90 and -180 <= point.longitude <= 180):
            raise InvalidInput(f"{label} coordinates are out of range")


def build_plan_payload(request: PlanRequest) -> dict:
    """camelCase request body with every percentage clamped to its range."""
    clamped = request.model_copy(
        update={
            "current_soc_percent": _clamp(request.current_soc_percent, 0.0, 100.0),
            "reserve_percent": _clamp(request.reserve_percent, 0.0, MAX_RESERVE_PERCENT),
            "charge_after_stop_percent": _clamp(request.charge_after_stop_percent, 0.0, 100.0),
        }
    )
    return clamped.model_dump(by_alias=True)


def _to_route_point(model: RoutePointModel, index: int, count: int) -> RoutePoint:
    kind = model.kind
    if kind is None:
        if index == 0:
            kind = "start"
        elif index == count - 1:
            kind = "destination"
        else:
            kind = "waypoint"
    return RoutePoint(
        latitude=model.latitude,
        longitude=model.longitude,
        kind=kind,
        station_ref=str(model.station_id) if model.station_id is not None else None,
        power_kw=model.power_kw,
        title=model.title,
    )


def normalize_plan_payload(body: object) -> PlanResponse:
    """Turn a planner response body into a ``PlanResponse`` or fail with ``PlanningFailed``."""
    try:
        envelope = PlannerEnvelope.model_validate(body)
    except ValidationError as exc:
        raise PlanningFailed(f"Malformed planner response: {exc.error_count()} validation errors") from exc

    if not envelope.success:
        detail = envelope.error or "planner reported failure"
        raise PlanningFailed(detail, user_message=envelope.error or None)
    if envelope.data is None:
        raise PlanningFailed("Planner response has no data")

    raw_points = envelope.data.points
    if len(raw_points) < 2:
        raise PlanningFailed(f"Planner returned {len(raw_points)} points; need at least start and destination")
    points = tuple(_to_route_point(model, index, len(raw_points)) for index, model in enumerate(raw_points))

    if points[0].kind != "start" or points[-1].kind != "destination":
        raise PlanningFailed("Planner points must begin with start and end with destination")

    summary = envelope.data.summary
    charging_count = sum(1 for point in points if point.kind == "charging")
    if summary.charging_stops != charging_count:
        raise PlanningFailed(
            f"Planner summary reports {summary.charging_stops} charging stops but returned {charging_count}"
        )

    return PlanResponse(
        points=points,
        summary=PlanSummary(
            distance_km=summary.distance_km,
            duration_min=summary.duration_min,
            charging_stops=summary.charging_stops,
            reserve_percent=summary.reserve_percent,
        ),
    )


class HttpRoutePlanner:
    """Sends trip parameters to the planner service and normalizes its answer.

    The service decides which stations become stops; nothing here selects
    stations.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.planner_base_url or "").rstrip("/")
        if not self.base_url:
            raise ValueError("Route planner base URL is not configured.")
        self.timeout = timeout if timeout is not None else settings.planner_timeout_seconds
        self._http_client = http_client

    async def plan(self, request: PlanRequest, token: CancellationToken | None = None) -> PlanResponse:
        validate_plan_request(request)
        payload = build_plan_payload(request)

        client = self._http_client or httpx.AsyncClient(timeout=self.timeout)
        try:
            response = await client.post(f"{self.base_url}{PLAN_PATH}", json=payload, timeout=self.timeout)
            body = response.json()
        except httpx.TimeoutException as exc:
            logger.warning(f"Route planner timed out after {self.timeout}s")
            raise PlanningFailed(f"Route planner timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            logger.warning(f"Route planner request failed: {exc}")
            raise PlanningFailed(f"Failed to reach route planner at {self.base_url}: {exc}") from exc
        except ValueError as exc:
            raise PlanningFailed(f"Route planner returned a non-JSON body (HTTP {response.status_code})") from exc
        finally:
            if self._http_client is None:
                await client.aclose()

        if token is not None:
            token.raise_if_cancelled()

        # Error bodies still carry the planner's message, so parse before checking status.
        if response.is_error:
            error = body.get("error") if isinstance(body, dict) else None
            logger.warning(f"Route planner returned HTTP {response.status_code}: {error}")
            raise PlanningFailed(
                error or f"Route planner returned HTTP {response.status_code}",
                user_message=error or None,
            )

        plan = normalize_plan_payload(body)
        logger.info(
            f"Planned route with {plan.summary.charging_stops} charging stops, "
            f"{plan.summary.distance_km:.1f} km"
        )
        return plan


class StubRoutePlanner:
    """Reference planner for tests and local runs.

    Places the configured charging stops between start and end in the given
    order and estimates the summary from great-circle legs. It does not
    choose stations.
    """

    def __init__(self, charging_stops: Sequence[RoutePoint] = (), average_speed_kmh: float = 70.0) -> None:
        self.charging_stops = tuple(charging_stops)
        self.average_speed_kmh = average_speed_kmh
        self.requests: list[PlanRequest] = []

    async def plan(self, request: PlanRequest, token: CancellationToken | None = None) -> PlanResponse:
        validate_plan_request(request)
        self.requests.append(request)
        if token is not None:
            token.raise_if_cancelled()

        points = (
            RoutePoint(request.start.latitude, request.start.longitude, "start"),
            *(
                RoutePoint(stop.latitude, stop.longitude, "charging", stop.station_ref, stop.power_kw, stop.title)
                for stop in self.charging_stops
            ),
            RoutePoint(request.end.latitude, request.end.longitude, "destination"),
        )
        distance_km = path_length_km((point.latitude, point.longitude) for point in points)
        return PlanResponse(
            points=points,
            summary=PlanSummary(
                distance_km=round(distance_km, 1),
                duration_min=round(distance_km / self.average_speed_kmh * 60),
                charging_stops=len(self.charging_stops),
                reserve_percent=request.reserve_percent,
            ),
        )
