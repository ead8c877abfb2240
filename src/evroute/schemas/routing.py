"""Route planning request/response schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LatLonModel(CamelModel):
    latitude: float
    longitude: float


class VehicleModel(CamelModel):
    max_range_km: float


class PlanRequest(CamelModel):
    """Trip parameters sent to the route planner service.

    Ranges are checked by the planner facade, not here, so an out-of-range
    value surfaces as ``InvalidInput`` instead of a schema error.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    start: LatLonModel
    end: LatLonModel
    vehicle: VehicleModel
    current_soc_percent: float = 100.0
    reserve_percent: float = 10.0
    corridor_km: float = 30.0
    max_stops: int = 8
    charge_after_stop_percent: float = 90.0


class RoutePointModel(CamelModel):
    latitude: float
    longitude: float
    kind: Optional[Literal["start", "charging", "destination", "waypoint"]] = Field(
        default=None,
        validation_alias=AliasChoices("kind", "type"),
    )
    title: Optional[str] = None
    station_id: Optional[str | int] = None
    power_kw: Optional[float] = Field(default=None, alias="powerKW")


class PlanSummaryModel(CamelModel):
    distance_km: float = Field(ge=0)
    duration_min: float = Field(ge=0)
    charging_stops: int = Field(ge=0)
    reserve_percent: float


class PlanDataModel(CamelModel):
    points: List[RoutePointModel]
    summary: PlanSummaryModel


class PlannerEnvelope(CamelModel):
    success: bool
    data: Optional[PlanDataModel] = None
    error: Optional[str] = None


class StitchRequest(CamelModel):
    waypoints: List[LatLonModel] = Field(..., description="Waypoints in trip order.")


class LineStringGeometry(BaseModel):
    type: Literal["LineString"] = "LineString"
    coordinates: List[List[float]]


class StitchResponse(CamelModel):
    geometry: LineStringGeometry
    distance_meters: float
    duration_seconds: float
    source: Literal["directions", "straight_line"]


class RoutePreviewResponse(CamelModel):
    points: List[RoutePointModel]
    summary: PlanSummaryModel
    route: StitchResponse
    markers: dict
