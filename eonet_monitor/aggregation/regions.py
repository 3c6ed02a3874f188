# Longitude band region filter for observations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from functools import cached_property

from shapely.geometry import Point, box

from eonet_monitor.config import GLOBAL_REGION, REGION_BOUNDS
from eonet_monitor.data_collection.normalizer import Observation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegionBucket:
    """A named longitude band spanning every latitude. Bounds are inclusive."""
    name: str
    min_longitude: float
    max_longitude: float

    @cached_property
    def geometry(self):
        return box(self.min_longitude, -90.0, self.max_longitude, 90.0)

    def covers(self, observation: Observation) -> bool:
        # covers() keeps points on the boundary, within() would drop them
        return self.geometry.covers(Point(observation.longitude, observation.latitude))


def load_region_buckets(bounds: Mapping[str, tuple[float, float]] = REGION_BOUNDS) -> dict[str, RegionBucket]:
    return {name: RegionBucket(name, float(lo), float(hi)) for name, (lo, hi) in bounds.items()}


# Loaded once when the module is imported, never mutated
REGION_BUCKETS = load_region_buckets()


def region_names(regions: Mapping[str, RegionBucket] | None = None) -> list[str]:
    """Selectable region names, "Global" first."""
    regions = REGION_BUCKETS if regions is None else regions
    return [GLOBAL_REGION] + list(regions)


def filter_by_region(observations: Sequence[Observation], region_name: str,
                     regions: Mapping[str, RegionBucket] | None = None) -> list[Observation]:
    """
    Keeps the observations whose longitude is inside the region's band.

    "Global" is the identity filter. An unknown region name also returns the
    input unchanged (logged) so a bad selection shows everything, not nothing.
    Order is preserved.
    """
    regions = REGION_BUCKETS if regions is None else regions
    if region_name == GLOBAL_REGION:
        return list(observations)

    bucket = regions.get(region_name)
    if bucket is None:
        logger.warning(f"Unknown region '{region_name}'; showing all {len(observations)} observations")
        return list(observations)

    return [obs for obs in observations if bucket.covers(obs)]


def regions_for(observation: Observation, regions: Mapping[str, RegionBucket] | None = None) -> list[str]:
    """Every region whose band covers the observation. Bands may overlap."""
    regions = REGION_BUCKETS if regions is None else regions
    return [name for name, bucket in regions.items() if bucket.covers(observation)]
