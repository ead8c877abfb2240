"""Export services."""

from .geojson import (
    linestring_to_wkt,
    points_to_markers,
    route_to_feature,
    route_to_line,
)

__all__ = [
    "route_to_line",
    "route_to_feature",
    "points_to_markers",
    "linestring_to_wkt",
]
