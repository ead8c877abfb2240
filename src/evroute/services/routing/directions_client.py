"""HTTP client for the third-party directions provider."""

from __future__ import annotations

import logging
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import DirectionsSegment, RoutePoint
from .errors import ProviderError

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT_SECONDS = 5.0


def format_coordinates(waypoints: Sequence[RoutePoint]) -> str:
    """Convert waypoints to the provider path format 'lon,lat;lon,lat;...'."""
    return ";".join(f"{point.longitude},{point.latitude}" for point in waypoints)


class DirectionsClient:
    """Issues one bounded-size directions request per call.

    Stateless apart from its configuration. Pass ``http_client`` to reuse a
    connection pool or to substitute a fake transport; otherwise a client is
    opened and closed for each request.
    """

    def __init__(
        self,
        base_url: str | None = None,
        access_token: str | None = None,
        profile: str | None = None,
        timeout: float | None = None,
        provider_limit: int | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.directions_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("Directions base URL is not configured.")
        self.access_token = access_token if access_token is not None else settings.directions_access_token
        self.profile = profile or settings.directions_profile
        self.timeout = timeout if timeout is not None else settings.directions_timeout_seconds
        self.provider_limit = provider_limit if provider_limit is not None else settings.directions_provider_limit
        self._http_client = http_client

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, CONNECT_TIMEOUT_SECONDS)))

    def _params(self) -> dict[str, str]:
        params = {
            "geometries": "geojson",
            "steps": "true",
            "overview": "full",
            "annotations": "distance,duration",
            "continue_straight": "true",
        }
        if self.access_token:
            params["access_token"] = self.access_token
        return params

    async def fetch_segment(self, waypoints: Sequence[RoutePoint], profile: str | None = None) -> DirectionsSegment:
        """Fetch road geometry, distance and duration for ``waypoints``.

        Args:
            waypoints: Between 2 and ``provider_limit`` points in trip order.
            profile: Directions profile; defaults to the configured one.

        Returns:
            The first candidate route returned by the provider.

        Raises:
            ValueError: If the waypoint count is outside the provider bounds.
            ProviderError: On transport failure, timeout, non-success status
                or an empty route list.
        """
        if len(waypoints) < 2:
            raise ValueError("At least two waypoints are required for a directions request.")
        if len(waypoints) > self.provider_limit:
            raise ValueError(
                f"Directions request has {len(waypoints)} waypoints; provider limit is {self.provider_limit}."
            )

        url = f"{self.base_url}/directions/v5/mapbox/{profile or self.profile}/{format_coordinates(waypoints)}"
        client = self._http_client or self._build_client()
        try:
            response = await client.get(url, params=self._params(), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            logger.warning(f"Directions request timed out after {self.timeout}s ({len(waypoints)} waypoints)")
            raise ProviderError(f"Directions request timed out: {exc}") from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(f"Directions provider returned HTTP {exc.response.status_code}")
            raise ProviderError(f"Directions provider returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            logger.warning(f"Directions request failed: {exc}")
            raise ProviderError(f"Failed to reach directions provider at {self.base_url}: {exc}") from exc
        except ValueError as exc:
            raise ProviderError("Directions provider returned a non-JSON body") from exc
        finally:
            if self._http_client is None:
                await client.aclose()

        return _parse_first_route(data)


def _parse_first_route(data: object) -> DirectionsSegment:
    routes = data.get("routes") if isinstance(data, dict) else None
    if not routes:
        raise ProviderError("Directions provider returned no routes")

    try:
        route = routes[0]
        coordinates = tuple((float(lon), float(lat)) for lon, lat, *_ in route["geometry"]["coordinates"])
        distance = float(route["distance"])
        duration = float(route["duration"])
    except (KeyError, TypeError, ValueError) as exc:
        raise ProviderError(f"Malformed directions route: {exc}") from exc

    logger.debug(f"Received route with {len(coordinates)} coordinate points")
    return DirectionsSegment(
        coordinates=coordinates,
        distance_meters=max(0.0, distance),
        duration_seconds=max(0.0, duration),
    )


def check_health(base_url: str | None = None, access_token: str | None = None) -> bool:
    """Check directions provider health with a minimal two-point request."""
    base = (base_url or settings.directions_base_url).rstrip("/")
    token = access_token if access_token is not None else settings.directions_access_token
    if not base:
        return False
    test_coords = "13.388860,52.517037;13.385983,52.496891"
    url = f"{base}/directions/v5/mapbox/{settings.directions_profile}/{test_coords}"
    params = {"overview": "false"}
    if token:
        params["access_token"] = token
    try:
        response = httpx.get(url, params=params, timeout=5.0)
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError):
        return False
    return isinstance(data, dict) and bool(data.get("routes"))
