#!/usr/bin/env python3
"""Helper script to check and create .env file for provider and planner configuration."""

from pathlib import Path
import os

ENV_TEMPLATE = """# Directions provider (Mapbox-compatible)
EVROUTE_DIRECTIONS_BASE_URL=https://api.mapbox.com
EVROUTE_DIRECTIONS_ACCESS_TOKEN=your-access-token-here
EVROUTE_DIRECTIONS_PROFILE=driving
# EVROUTE_DIRECTIONS_PROVIDER_LIMIT=25
# EVROUTE_DIRECTIONS_WINDOW_SIZE=20
# EVROUTE_DIRECTIONS_TIMEOUT_SECONDS=10

# Route planner service
EVROUTE_PLANNER_BASE_URL=http://localhost:3000
# EVROUTE_PLANNER_TIMEOUT_SECONDS=15

# API Configuration
EVROUTE_API_PREFIX=/api
# EVROUTE_FRONTEND_ALLOWED_ORIGINS - Leave commented to use defaults
# If you need to override, use JSON array format: ["http://localhost:8081"]
# Or comma-separated: http://localhost:8081,http://localhost:19006
"""


def _mask(value: str) -> str:
    if len(value) > 20:
        return value[:12] + "..." + value[-6:]
    return value


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("EV Route Builder Environment Checker")
    print("=" * 60)
    print()

    if env_file.exists():
        print(f"✅ Found .env file at: {env_file}")
        print()
        print("Current contents:")
        print("-" * 60)
        with open(env_file, "r", encoding="utf-8") as f:
            for line in f.read().split("\n"):
                # Mask the token for security
                if "ACCESS_TOKEN" in line and "=" in line:
                    name, value = line.split("=", 1)
                    print(f"{name}={_mask(value.strip())}")
                else:
                    print(line)
        print("-" * 60)
        print()
    else:
        print(f"❌ .env file NOT found at: {env_file}")
        print()
        print("Creating template .env file...")
        with open(env_file, "w", encoding="utf-8") as f:
            f.write(ENV_TEMPLATE)
        print(f"✅ Created .env file at: {env_file}")
        print()
        print("⚠️  Please edit .env and add your directions access token and planner URL!")
        print()
        return

    print("Checking environment variables...")
    print()
    for name in ("EVROUTE_DIRECTIONS_ACCESS_TOKEN", "EVROUTE_PLANNER_BASE_URL"):
        value = os.getenv(name)
        if value:
            print(f"✅ {name} (from environment): {_mask(value)}")
        else:
            print(f"❌ {name} not found in environment")
    print()

    print("Testing config loading...")
    print()
    try:
        import sys
        sys.path.insert(0, str(project_root / "src"))
        from evroute.config import settings

        print(f"   Directions: {settings.directions_base_url} (profile {settings.directions_profile})")
        print(f"   Provider limit: {settings.directions_provider_limit}, window size: {settings.directions_window_size}")
        print(f"   Planner: {settings.planner_base_url or 'not configured'}")
        print()

        if settings.directions_access_token and settings.planner_base_url:
            print("=" * 60)
            print("✅ SUCCESS: directions provider and planner are configured!")
            print("=" * 60)
        else:
            print("=" * 60)
            print("❌ ERROR: configuration is incomplete")
            print("=" * 60)
            print()
            print("Troubleshooting:")
            print("1. Make sure .env file exists in project root")
            print("2. Make sure variables start with EVROUTE_ prefix")
            print("3. Make sure there are no spaces around = sign")
            print("4. Restart backend after editing .env")
            print()
    except Exception as e:
        print(f"❌ Error loading config: {e}")
        print()
        print("Make sure you're running this from the project root directory")


if __name__ == "__main__":
    main()
