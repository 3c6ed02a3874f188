# risk_assessment/assessor.py
# Age-based risk assessment of natural events

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, asdict
from datetime import datetime, timezone

import pandas as pd

from eonet_monitor.config import (
    DEFAULT_RISK_LEVEL, MAX_RISK_LEVEL, RISK_COLORS, RISK_WINDOW_DAYS, UNKNOWN_RISK_COLOR,
)
from eonet_monitor.data_collection.normalizer import ISO_DATE_PREFIX, Observation

logger = logging.getLogger(__name__)

RISK_RECORD_COLUMNS = ["event_id", "title", "timestamp", "latitude", "longitude", "risk_level"]
SECONDS_PER_DAY = 24 * 3600


@dataclass(frozen=True)
class RiskRecord:
    event_id: str
    title: str
    timestamp: datetime | None
    latitude: float
    longitude: float
    risk_level: int


def _as_utc(value) -> datetime | None:
    """Datetime or ISO string to an aware UTC datetime; None when it can't be read."""
    if value is None:
        return None
    if isinstance(value, str) and not ISO_DATE_PREFIX.match(value.strip()):
        return None
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError):
        return None
    if pd.isna(ts):
        return None
    ts = ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")
    return ts.to_pydatetime()


def assess_risk_level(timestamp, now: datetime | None = None) -> int:
    """
    Risk level of an event from how long ago it started.

    Every full RISK_WINDOW_DAYS of age adds one level, capped at
    MAX_RISK_LEVEL. Events dated in the future count as zero days old.
    A missing or unparseable timestamp gets DEFAULT_RISK_LEVEL.

    Args:
        timestamp: datetime or ISO-8601 string; naive values are read as UTC.
        now (datetime): Evaluation time, defaults to the current UTC time.

    Returns:
        int: 1 (lowest) to 5.
    """
    start = _as_utc(timestamp)
    if start is None:
        logger.warning(f"Cannot read event timestamp {timestamp!r}; using risk level {DEFAULT_RISK_LEVEL}")
        return DEFAULT_RISK_LEVEL

    now = _as_utc(now) or datetime.now(timezone.utc)
    age_days = max((now - start).total_seconds() / SECONDS_PER_DAY, 0.0)
    return min(math.floor(age_days / RISK_WINDOW_DAYS) + 1, MAX_RISK_LEVEL)


def score_events(observations: Sequence[Observation], now: datetime | None = None) -> list[RiskRecord]:
    """
    One RiskRecord per event, in order of first appearance.

    The event's first geometry entry in the feed marks where and when it
    started; that entry gives the position and the age.
    """
    now = now or datetime.now(timezone.utc)
    first_seen: dict[str, Observation] = {}
    for obs in observations:
        first_seen.setdefault(obs.event_id, obs)

    records = []
    for obs in first_seen.values():
        records.append(RiskRecord(
            event_id=obs.event_id,
            title=obs.title,
            timestamp=obs.timestamp,
            latitude=obs.latitude,
            longitude=obs.longitude,
            risk_level=assess_risk_level(obs.timestamp, now),
        ))
    return records


def risk_color(risk_level) -> list[int]:
    """RGBA colour for a level on the five-step ramp; grey for anything else."""
    if isinstance(risk_level, int) and not isinstance(risk_level, bool) and 1 <= risk_level <= len(RISK_COLORS):
        return list(RISK_COLORS[risk_level - 1])
    return list(UNKNOWN_RISK_COLOR)


def summarize_risk_levels(records: Sequence[RiskRecord]) -> pd.Series:
    """Number of events per level, every level 1..MAX_RISK_LEVEL present."""
    levels = pd.Series([r.risk_level for r in records], dtype="int64")
    return levels.value_counts().reindex(range(1, MAX_RISK_LEVEL + 1), fill_value=0)


def risk_records_to_frame(records: Sequence[RiskRecord]) -> pd.DataFrame:
    """Frame for the map layer, with a 'color' column from risk_color."""
    if not records:
        return pd.DataFrame(columns=RISK_RECORD_COLUMNS + ["color"])
    df = pd.DataFrame([asdict(r) for r in records], columns=RISK_RECORD_COLUMNS)
    df['color'] = df['risk_level'].apply(lambda level: risk_color(int(level)))
    return df


def filter_by_risk_levels(records: Sequence[RiskRecord], levels) -> list[RiskRecord]:
    """Records whose level is one of `levels`, highest risk first, feed order within a level."""
    wanted = set(levels)
    selected = [r for r in records if r.risk_level in wanted]
    return sorted(selected, key=lambda r: r.risk_level, reverse=True)
