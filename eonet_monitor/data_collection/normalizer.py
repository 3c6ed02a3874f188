# Module that flattens raw EONET events into point observations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Annotated, Any

import pandas as pd
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator
from shapely.errors import GEOSException
from shapely.geometry import shape

from eonet_monitor.errors import MalformedFeedError

logger = logging.getLogger(__name__)

OBSERVATION_COLUMNS = ["event_id", "title", "timestamp", "latitude", "longitude"]

# ISO-8601 calendar date at the start of the value; rejects words like "now"
ISO_DATE_PREFIX = re.compile(r"\d{4}-\d{2}-\d{2}")

Longitude = Annotated[float, Field(strict=True, ge=-180.0, le=180.0, allow_inf_nan=False)]
Latitude = Annotated[float, Field(strict=True, ge=-90.0, le=90.0, allow_inf_nan=False)]


class FeedGeometry(BaseModel):
    """One geometry entry of an EONET event. Source order is [longitude, latitude]."""
    date: datetime | None
    type: str = "Point"
    coordinates: tuple[Longitude, Latitude]

    @model_validator(mode="before")
    @classmethod
    def _polygon_to_centroid(cls, data: Any) -> Any:
        # Area events are reduced to their centroid
        if not isinstance(data, Mapping) or data.get("type") != "Polygon":
            return data
        try:
            centroid = shape({"type": "Polygon", "coordinates": data.get("coordinates")}).centroid
        except (ValueError, TypeError, IndexError, AttributeError, GEOSException) as e:
            raise ValueError(f"invalid polygon coordinates ({e})") from e
        if centroid.is_empty:
            raise ValueError("empty polygon")
        return {**data, "coordinates": [centroid.x, centroid.y]}

    @field_validator("date", mode="wrap")
    @classmethod
    def _lenient_date(cls, value: Any, handler) -> datetime | None:
        # The key is required, but an unreadable value only costs this point its timestamp
        if not isinstance(value, str) or not ISO_DATE_PREFIX.match(value.strip()):
            logger.warning(f"Unreadable geometry date {value!r}; keeping the point without a timestamp")
            return None
        try:
            parsed = handler(value.strip())
        except ValidationError:
            logger.warning(f"Unreadable geometry date {value!r}; keeping the point without a timestamp")
            return None
        # EONET dates carry a 'Z'; anything without an offset is read as UTC
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.astimezone(timezone.utc)


class FeedEvent(BaseModel):
    id: str
    title: str
    geometry: list[FeedGeometry]


class EventFeed(BaseModel):
    events: list[FeedEvent]


@dataclass(frozen=True)
class Observation:
    """One geometry entry of one event: a point in time and space."""
    event_id: str
    title: str
    timestamp: datetime | None
    latitude: float
    longitude: float


def _validate_feed(payload) -> EventFeed:
    if isinstance(payload, Sequence) and not isinstance(payload, (str, bytes)):
        payload = {"events": payload}
    try:
        return EventFeed.model_validate(payload)
    except ValidationError as e:
        first = e.errors()[0]
        where = ".".join(str(part) for part in first["loc"]) or "feed"
        raise MalformedFeedError(
            f"Feed failed validation with {e.error_count()} error(s); first at {where}: {first['msg']}"
        ) from e


def normalize_events(payload) -> list[Observation]:
    """
    Flattens an EONET feed into Observations, one per geometry entry.

    Args:
        payload: The feed document ({"events": [...]}) or the list of events.

    Returns:
        list[Observation]: In feed order; events without geometry add nothing.
                           A point whose date cannot be read keeps timestamp=None.

    Raises:
        MalformedFeedError: on any structural problem. Nothing is returned
                            for a partially valid feed.
    """
    feed = _validate_feed(payload)
    observations = [
        Observation(
            event_id=event.id,
            title=event.title,
            timestamp=geo.date,
            latitude=float(geo.coordinates[1]),
            longitude=float(geo.coordinates[0]),
        )
        for event in feed.events
        for geo in event.geometry
    ]

    logger.debug(f"Normalized {len(feed.events)} events into {len(observations)} observations")
    return observations


def observations_to_frame(observations: Sequence[Observation]) -> pd.DataFrame:
    """DataFrame view of the observations for tables and maps."""
    if not observations:
        return pd.DataFrame(columns=OBSERVATION_COLUMNS)
    return pd.DataFrame([asdict(o) for o in observations], columns=OBSERVATION_COLUMNS)
