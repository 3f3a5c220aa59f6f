"""Configuration for the weather dashboard server."""

import os
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent  # wxdash/config.py → wxdash/ → project/

# Upstream endpoints
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"
REVERSE_GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/reverse"
AIR_QUALITY_URL = "https://air-quality-api.open-meteo.com/v1/air-quality"
WARNINGS_URL = "https://api.open-meteo.com/v1/warnings"
IP_LOOKUP_URL = "https://ipapi.co/json/"
RADAR_LISTING_URL = "https://api.rainviewer.com/public/weather-maps.json"
RADAR_TILE_TEMPLATE = (
    "https://tilecache.rainviewer.com/v2/radar/{path}/512/{{z}}/{{x}}/{{y}}/2/1_1.png"
)

# Sent with every upstream request
USER_AGENT = os.getenv("WXDASH_USER_AGENT", "wxdash/1.0")

# Seconds before an upstream call is abandoned
UPSTREAM_TIMEOUT = float(os.getenv("WXDASH_UPSTREAM_TIMEOUT", "15"))

# Forecast window (today + 6 days)
FORECAST_DAYS = 7

# Geocoding
GEOCODE_DEFAULT_COUNT = 10
GEOCODE_MAX_COUNT = 20
SUGGESTION_LIMIT = 8

# Radar playback
RADAR_PAST_FRAMES = 6
RADAR_OPACITY = 0.7
RADAR_STEP_MS = 800
RADAR_MIN_STEP_MS = 200
RADAR_BASE_Z_INDEX = 400
RADAR_FALLBACK_Z_INDEX = 450
RADAR_FALLBACK_PATH = "nowcast_0"

# Client state
RECENT_LIMIT = 5
OUTLOOK_DAYS = 5
STATE_FILE = Path(
    os.getenv("WXDASH_STATE_FILE", str(PROJECT_ROOT / "server_side" / "data" / "state.json"))
)

# Server port
SERVER_PORT = int(os.getenv("WXDASH_PORT", "8081"))
