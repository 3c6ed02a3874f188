"""
Shared fixtures: small EONET-shaped payloads and a fixed evaluation time.
No test touches the network.
"""

from datetime import datetime, timezone

import pytest


NOW = datetime(2024, 8, 20, 12, 0, tzinfo=timezone.utc)


def make_event(event_id, title, points):
    """points: list of (date, lon, lat), in the feed's [lon, lat] order."""
    return {
        "id": event_id,
        "title": title,
        "geometry": [
            {"date": d, "type": "Point", "coordinates": [lon, lat]} for d, lon, lat in points
        ],
    }


@pytest.fixture()
def now():
    return NOW


@pytest.fixture()
def fire_feed():
    # Two events: three points on 2024-08-18, one point on 2024-08-19
    return {
        "title": "EONET Events",
        "events": [
            make_event("EONET_1", "Park Fire, California", [
                ("2024-08-18T01:00:00Z", -121.9, 39.8),
                ("2024-08-18T09:30:00Z", -121.8, 39.9),
                ("2024-08-18T22:15:00Z", -121.7, 40.0),
            ]),
            make_event("EONET_2", "Wildfire near Athens, Greece", [
                ("2024-08-19T14:00:00Z", 23.9, 38.1),
            ]),
        ],
    }
