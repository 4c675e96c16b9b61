"""
Configuration file for the Transit Redesign Comparison Project

Contains paths, scenario definitions, routing parameters and shared settings.
"""

import os
from datetime import datetime
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
DATA_RAW = DATA_DIR / "raw"
DATA_EXTERNAL = DATA_DIR / "external"
REPORTS_DIR = PROJECT_ROOT / "reports"
FIGURES_DIR = REPORTS_DIR / "figures"

# Road network extract (one *.osm.pbf) and GTFS snapshots (one folder per scenario)
NETWORK_DIR = DATA_RAW / "network"
GTFS_DIR = DATA_RAW / "gtfs"

# Points of interest: Google Sheets document id, or a local CSV fallback
POI_SHEET_ID = os.getenv("POI_SHEET_ID", "")
POI_LOCAL_FILE = DATA_EXTERNAL / "points_of_interest.csv"
POI_REQUIRED_COLUMNS = ["id", "lat", "lon"]


def _departure_from_env(name: str, default: datetime) -> datetime:
    value = os.getenv(name)
    if not value:
        return default
    return datetime.fromisoformat(value)


# Scenarios: the same weekday morning before and after the network redesign.
# Each departure must fall inside the service calendar of its GTFS snapshot.
SCENARIOS = {
    "before": {
        "departure": _departure_from_env("DEPARTURE_BEFORE", datetime(2023, 5, 16, 8, 0)),
        "gtfs_dir": GTFS_DIR / "before",
    },
    "after": {
        "departure": _departure_from_env("DEPARTURE_AFTER", datetime(2024, 5, 14, 8, 0)),
        "gtfs_dir": GTFS_DIR / "after",
    },
}

# Routing parameters, identical for both scenarios (minutes)
ROUTING_PARAMS = {
    "transport_modes": ("WALK", "TRANSIT"),
    "time_window": 30,
    "max_walk_time": 30,
    "max_trip_duration": 150,
}

# Columns of the per-minute travel time records returned by the routing client
RECORD_COLUMNS = [
    "from_id", "to_id", "departure_minute",
    "total_time", "access_time", "egress_time", "transfer_time",
]

# Report settings
REPORT_CONFIG = {
    "title": "Public transit travel times before and after the network redesign",
    "table_file": "travel_time_comparison.html",
    "map_file": "points_of_interest_map.html",
    "csv_file": "travel_time_comparison.csv",
    "map_zoom_start": 12,
    "page_length": 25,
}

# Visualization settings
VIZ_CONFIG = {
    "figure_size": (12, 8),
    "dpi": 150,
    "style": "seaborn-v0_8-whitegrid",
}

# Download sources for network inputs (filled per study area)
# Format: {"name": {"url": ..., "filename": ..., "target": "network" | "before" | "after"}}
DOWNLOAD_SOURCES = {}
