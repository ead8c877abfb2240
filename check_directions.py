#!/usr/bin/env python3
"""Script to verify directions provider connectivity and window stitching."""

import asyncio
import sys
import time
from pathlib import Path

# Add src to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from evroute.config import settings
from evroute.models.domain import RoutePoint
from evroute.services.routing.directions_client import DirectionsClient, check_health
from evroute.services.routing.errors import RoutingError
from evroute.services.routing.stitcher import SegmentStitcher, plan_windows


async def _run_checks() -> int:
    print("2. Testing single directions request...")
    client = DirectionsClient()
    berlin = [
        RoutePoint(52.517037, 13.388860, "start"),
        RoutePoint(52.496891, 13.385983, "destination"),
    ]
    try:
        segment = await client.fetch_segment(berlin)
    except RoutingError as e:
        print(f"   [ERROR] Directions request failed: {e}")
        return 1
    print(f"   [OK] Received {len(segment.coordinates)} coordinates")
    print(f"   [OK] Distance: {segment.distance_meters:.0f} m, duration: {segment.duration_seconds:.0f} s")
    print()

    print("3. Testing stitched route with 47 waypoints...")
    waypoints = [RoutePoint(52.40 + (i % 8) * 0.02, 13.20 + (i // 8) * 0.03) for i in range(47)]
    windows = plan_windows(len(waypoints), settings.directions_window_size)
    print(f"   [INFO] Window size: {settings.directions_window_size}, expected requests: {len(windows)}")
    start_time = time.time()
    try:
        route = await SegmentStitcher(client).stitch(waypoints)
    except RoutingError as e:
        print(f"   [ERROR] Stitching failed: {e}")
        return 1
    print(f"   [OK] Stitched {len(route.polyline)} coordinates in {time.time() - start_time:.2f}s")
    print(f"   [OK] Distance: {route.distance_meters / 1000:.1f} km")
    return 0


def main():
    print("=" * 60)
    print("Directions Provider Check")
    print("=" * 60)
    print()

    print("1. Checking directions configuration...")
    if not settings.directions_access_token:
        print("   [ERROR] Access token is not configured")
        print("   Please set EVROUTE_DIRECTIONS_ACCESS_TOKEN in your .env file")
        return 1
    print(f"   [OK] Base URL: {settings.directions_base_url}")
    print(f"   [OK] Profile: {settings.directions_profile}")
    print(f"   [OK] Provider limit: {settings.directions_provider_limit} waypoints")
    if not check_health():
        print("   [ERROR] Directions provider is not responding")
        return 1
    print("   [OK] Directions provider is healthy")
    print()

    result = asyncio.run(_run_checks())
    if result == 0:
        print()
        print("=" * 60)
        print("[SUCCESS] Directions provider is connected and stitching works!")
        print("=" * 60)
    return result


if __name__ == "__main__":
    sys.exit(main())
