# risk_assessment/alerts.py
# Operator alerts raised from the dashboard. Delivery is the log; the UI shows the returned message.

import logging
from collections.abc import Sequence

from eonet_monitor.config import MAX_RISK_LEVEL
from eonet_monitor.data_collection.normalizer import Observation
from eonet_monitor.risk_assessment.assessor import RiskRecord

logger = logging.getLogger(__name__)


def notify_base_station(region: str, observations: Sequence[Observation]) -> str:
    """Raises a fire alert for one region and returns the confirmation text."""
    events = {obs.event_id for obs in observations}
    message = (f"Alert sent to base station for fires in {region}: "
               f"{len(events)} events, {len(observations)} observations")
    logger.warning(message)
    return message


def alert_authorities(record: RiskRecord) -> str:
    """Raises a volcano alert for one event and returns the confirmation text."""
    message = (f"Alert sent to authorities about {record.title} "
               f"(risk level {record.risk_level}/{MAX_RISK_LEVEL})")
    logger.warning(message)
    return message
