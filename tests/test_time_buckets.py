from datetime import date, datetime, timezone

from eonet_monitor.aggregation.time_buckets import DailyCount, bucket_by_day, daily_counts_frame
from eonet_monitor.data_collection.normalizer import Observation, normalize_events


def obs_at(iso):
    ts = datetime.fromisoformat(iso).astimezone(timezone.utc)
    return Observation("e", "t", ts, 0.0, 0.0)


def test_two_events_two_days(fire_feed):
    counts = bucket_by_day(normalize_events(fire_feed), tz="UTC")
    assert counts == [DailyCount(date(2024, 8, 18), 3), DailyCount(date(2024, 8, 19), 1)]


def test_empty_input():
    assert bucket_by_day([]) == []


def test_chronological_by_default():
    observations = [obs_at("2024-08-19T10:00:00+00:00"), obs_at("2024-08-17T10:00:00+00:00"),
                    obs_at("2024-08-19T11:00:00+00:00")]

    counts = bucket_by_day(observations, tz="UTC")

    assert counts == [(date(2024, 8, 17), 1), (date(2024, 8, 19), 2)]


def test_first_occurrence_order():
    observations = [obs_at("2024-08-19T10:00:00+00:00"), obs_at("2024-08-17T10:00:00+00:00"),
                    obs_at("2024-08-19T11:00:00+00:00"), obs_at("2024-08-18T00:00:00+00:00")]

    counts = bucket_by_day(observations, tz="UTC", chronological=False)

    assert [c.date for c in counts] == [date(2024, 8, 19), date(2024, 8, 17), date(2024, 8, 18)]
    assert [c.count for c in counts] == [2, 1, 1]


def test_no_gap_filling():
    observations = [obs_at("2024-01-01T00:00:00+00:00"), obs_at("2024-01-05T00:00:00+00:00")]
    assert len(bucket_by_day(observations, tz="UTC")) == 2


def test_day_boundary_follows_time_zone():
    # 23:30 UTC on the 18th is already the 19th in Tokyo
    observations = [obs_at("2024-08-18T23:30:00+00:00")]

    assert bucket_by_day(observations, tz="UTC") == [(date(2024, 8, 18), 1)]
    assert bucket_by_day(observations, tz="Asia/Tokyo") == [(date(2024, 8, 19), 1)]


def test_counts_are_plain_ints(fire_feed):
    counts = bucket_by_day(normalize_events(fire_feed), tz="UTC")
    assert all(type(c.count) is int for c in counts)


def test_daily_counts_frame(fire_feed):
    frame = daily_counts_frame(bucket_by_day(normalize_events(fire_feed), tz="UTC"))
    assert list(frame["count"]) == [3, 1]
    assert frame.index.name == "date"


def test_observations_without_timestamp_are_left_out():
    observations = [obs_at("2024-08-19T10:00:00+00:00"), Observation("e", "t", None, 0.0, 0.0)]

    assert bucket_by_day(observations, tz="UTC") == [(date(2024, 8, 19), 1)]
    assert bucket_by_day([Observation("e", "t", None, 0.0, 0.0)], tz="UTC") == []
