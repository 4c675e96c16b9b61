"""
pytest configuration and shared fixtures
"""
import os
import sys
from pathlib import Path

import pandas as pd
import pytest

os.environ.setdefault("MPLBACKEND", "Agg")

# Put src/ on sys.path so modules import the way the runner imports them
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))


def make_records(rows):
    """Build travel time records from (from_id, to_id, minute, total, access, egress, transfer) tuples."""
    return pd.DataFrame(rows, columns=[
        "from_id", "to_id", "departure_minute",
        "total_time", "access_time", "egress_time", "transfer_time",
    ])


@pytest.fixture
def sample_pois():
    """Three points of interest"""
    return pd.DataFrame({
        "id": ["central_station", "city_hospital", "university"],
        "label": ["Central Station", "City Hospital", "University Campus"],
        "lat": [60.1699, 60.1890, 60.2049],
        "lon": [24.9384, 24.9100, 24.9630],
    })


@pytest.fixture
def before_records():
    """Per-minute records for the "before" scenario"""
    return make_records([
        ("central_station", "city_hospital", 0, 10.0, 3.0, 2.0, 0.0),
        ("central_station", "city_hospital", 1, 20.0, 4.0, 2.0, 1.0),
        ("central_station", "city_hospital", 2, 30.0, 5.0, 2.0, 2.0),
        ("central_station", "central_station", 0, 0.0, 0.0, 0.0, 0.0),
        ("city_hospital", "university", 0, 40.0, 10.0, 5.0, 3.0),
        ("city_hospital", "university", 1, 44.0, 10.0, 5.0, 5.0),
        ("university", "central_station", 0, 25.0, 6.0, 4.0, 0.0),
    ])


@pytest.fixture
def after_records():
    """Per-minute records for the "after" scenario; university -> central_station is unreachable"""
    return make_records([
        ("central_station", "city_hospital", 0, 12.0, 3.0, 3.0, 0.0),
        ("central_station", "city_hospital", 2, 18.0, 3.0, 1.0, 0.0),
        ("city_hospital", "university", 0, 33.0, 8.0, 4.0, 1.0),
        ("university", "city_hospital", 0, 15.0, 5.0, 5.0, 0.0),
    ])


class FakeRouter:
    """Routing client stand-in returning fixed records"""

    def __init__(self, records, error=None):
        self.records = records
        self.error = error
        self.calls = []

    def expanded_travel_time_matrix(self, origins, destinations, departure, **kwargs):
        self.calls.append({"departure": departure, **kwargs})
        if self.error is not None:
            raise self.error
        return self.records


@pytest.fixture
def fake_router_cls():
    return FakeRouter
