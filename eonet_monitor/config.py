# config.py
# Project settings for the EONET event monitor

import os

# Base URL for the NASA EONET v3 events API
EONET_EVENTS_URL = os.environ.get("EONET_EVENTS_URL", "https://eonet.gsfc.nasa.gov/api/v3/events")

# Seconds before an HTTP request to the feed is abandoned
FETCH_TIMEOUT_SECONDS = float(os.environ.get("EONET_FETCH_TIMEOUT", "60"))

# Full refresh period for every live feed (5 minutes)
REFRESH_INTERVAL_SECONDS = float(os.environ.get("EONET_REFRESH_INTERVAL", "300"))

# How often the open dashboard re-reads the published snapshots
UI_POLL_SECONDS = float(os.environ.get("EONET_UI_POLL", "30"))

# Live feeds shown on the dashboard. "category" is the EONET category id.
FEEDS = {
    "wildfires": {"category": "wildfires", "status": "open", "interval": REFRESH_INTERVAL_SECONDS},
    "volcanoes": {"category": "volcanoes", "status": "open", "interval": REFRESH_INTERVAL_SECONDS},
}

# Single time zone used to turn timestamps into calendar days
DISPLAY_TIMEZONE = os.environ.get("EONET_DISPLAY_TIMEZONE", "UTC")


# --- Regions ---
GLOBAL_REGION = "Global"

# Longitude-only bands (min, max), inclusive. Bands overlap on purpose.
REGION_BOUNDS = {
    "North America": (-170.0, -50.0),
    "South America": (-90.0, -30.0),
    "Europe": (-10.0, 40.0),
    "Africa": (-20.0, 50.0),
    "Asia": (60.0, 150.0),
    "Australia": (110.0, 155.0),
}


# --- Risk scoring (age based) ---
RISK_WINDOW_DAYS = 7      # each full week of age adds one level
MAX_RISK_LEVEL = 5
DEFAULT_RISK_LEVEL = 1    # used when an event cannot be scored

# Five-step ramp, level 1 first (RGBA for pydeck)
RISK_COLORS = [
    [0, 128, 0, 200],      # green
    [255, 255, 0, 200],    # yellow
    [255, 165, 0, 200],    # orange
    [255, 0, 0, 200],      # red
    [128, 0, 128, 200],    # purple
]
UNKNOWN_RISK_COLOR = [128, 128, 128, 160]


# --- Emissions dataset ---
EMISSIONS_CSV_PATH = os.environ.get(
    "EMISSIONS_CSV_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "data", "emissions_data.csv"),
)
EMISSIONS_NUMERIC_COLUMNS = ["year", "population", "gdp", "co2", "methane", "nitrous_oxide"]
NUMERIC_FALLBACK = 0.0


# --- Logging ---
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(module)s - %(message)s'
LOG_LEVEL = os.environ.get("EONET_LOG_LEVEL", "INFO")
