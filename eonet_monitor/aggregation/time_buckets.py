# Daily counts of observations for the time series charts

import logging
from collections.abc import Sequence
from datetime import date
from typing import NamedTuple

import pandas as pd

from eonet_monitor.config import DISPLAY_TIMEZONE
from eonet_monitor.data_collection.normalizer import Observation

logger = logging.getLogger(__name__)


class DailyCount(NamedTuple):
    date: date
    count: int


def observation_dates(observations: Sequence[Observation], tz: str | None = None) -> pd.Series:
    """Calendar day of each timestamped observation in the display time zone, input order."""
    tz = tz or DISPLAY_TIMEZONE
    timestamps = pd.to_datetime([obs.timestamp for obs in observations if obs.timestamp is not None], utc=True)
    return pd.Series(timestamps.tz_convert(tz).date, dtype=object)


def bucket_by_day(observations: Sequence[Observation], tz: str | None = None,
                  chronological: bool = True) -> list[DailyCount]:
    """
    Counts observations per calendar day.

    Args:
        observations: Normalized observations. Those without a timestamp
                      belong to no day and are left out.
        tz: Time zone name for the day boundary; defaults to DISPLAY_TIMEZONE.
        chronological: Sort days ascending (default). When False, days keep
                       the order in which they first appear in the input.

    Returns:
        list[DailyCount]: Only days with at least one observation.
    """
    days = observation_dates(observations, tz)
    if len(days) < len(observations):
        logger.debug(f"{len(observations) - len(days)} observations without a timestamp left out of daily counts")
    if days.empty:
        return []

    counts = days.value_counts(sort=False)
    if chronological:
        counts = counts.sort_index()
    else:
        counts = counts.reindex(days.drop_duplicates())

    return [DailyCount(day, int(n)) for day, n in counts.items()]


def daily_counts_frame(counts: Sequence[DailyCount]) -> pd.DataFrame:
    """Date-indexed frame, ready for st.line_chart."""
    frame = pd.DataFrame(list(counts), columns=["date", "count"])
    return frame.set_index("date")
