"""GeoJSON/WKT export of stitched routes for the map layer."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from ...models.domain import Route, RoutePoint

MARKER_COLORS = {
    "start": "#38e000",
    "charging": "#13aae0",
    "destination": "#e0003e",
    "waypoint": "#e0af00",
}


def route_to_line(route: Route) -> Dict[str, Any]:
    """Geometry contract consumed by the map: a GeoJSON LineString in [lon, lat] order."""
    return {
        "type": "LineString",
        "coordinates": [[lon, lat] for lon, lat in route.polyline],
    }


def route_to_feature(route: Route) -> Dict[str, Any]:
    return {
        "type": "Feature",
        "geometry": route_to_line(route),
        "properties": {
            "distance_meters": route.distance_meters,
            "duration_seconds": route.duration_seconds,
            "source": route.source,
            "approximate": route.is_approximate,
        },
    }


def points_to_markers(points: Sequence[RoutePoint]) -> Dict[str, Any]:
    """Typed marker points (start, charging, destination) as a FeatureCollection."""
    features: List[Dict[str, Any]] = []
    for sequence, point in enumerate(points):
        properties: Dict[str, Any] = {
            "kind": point.kind,
            "sequence": sequence,
            "color": MARKER_COLORS.get(point.kind, MARKER_COLORS["waypoint"]),
        }
        if point.title:
            properties["title"] = point.title
        if point.station_ref is not None:
            properties["station_ref"] = point.station_ref
        if point.power_kw is not None:
            properties["power_kw"] = point.power_kw
        features.append(
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [point.longitude, point.latitude]},
                "properties": properties,
            }
        )
    return {"type": "FeatureCollection", "features": features}


def linestring_to_wkt(route: Route) -> str:
    """Convert the route polyline to a WKT LINESTRING (lon lat order)."""
    if len(route.polyline) < 2:
        raise ValueError("LineString must have at least 2 coordinates")

    coord_pairs = [f"{lon} {lat}" for lon, lat in route.polyline]
    return f"LINESTRING({','.join(coord_pairs)})"
