# Module for downloading natural event feeds (wildfires, volcanoes) from NASA EONET

from datetime import date
import logging
import asyncio
import aiohttp # Async HTTP requests

from eonet_monitor.config import EONET_EVENTS_URL, FETCH_TIMEOUT_SECONDS, FEEDS, LOG_FORMAT, LOG_LEVEL
from eonet_monitor.errors import FetchError

logger = logging.getLogger(__name__)


def build_feed_params(category: str, status: str = "open", date: date | str | None = None,
                      days: int | None = None) -> dict[str, str]:
    """Query string for one EONET events request."""
    params = {"category": category, "status": status}
    if date is not None:
        params["date"] = date.isoformat() if hasattr(date, "isoformat") else str(date)
    if days is not None:
        params["days"] = str(int(days))
    return params


async def fetch_events_feed(category: str, session: aiohttp.ClientSession, status: str = "open",
                            date: date | str | None = None, days: int | None = None,
                            url: str = EONET_EVENTS_URL) -> dict:
    """
    Downloads the open events of one EONET category.

    Args:
        category (str): EONET category id, e.g. "wildfires" or "volcanoes".
        session (aiohttp.ClientSession): The aiohttp session to use for requests.
        status (str): "open", "closed" or "all".
        date: Optional day the events must be active on.
        days (int): Optional look-back window in days.
        url (str): Events endpoint, overridable for tests.

    Returns:
        dict: The decoded JSON document, untouched.

    Raises:
        FetchError: on any HTTP, connection, timeout or decoding failure.
    """
    params = build_feed_params(category, status=status, date=date, days=days)
    logger.info(f"Fetching '{category}' events from: {url} (params={params})")

    try:
        timeout = aiohttp.ClientTimeout(total=FETCH_TIMEOUT_SECONDS)
        async with session.get(url, params=params, timeout=timeout) as response:
            response.raise_for_status()
            payload = await response.json(content_type=None)

    except aiohttp.ClientResponseError as http_err:
        logger.error(f"HTTP error {http_err.status} while fetching '{category}' events - URL: {url}")
        raise FetchError(f"HTTP {http_err.status} from events feed", url=url, status=http_err.status) from http_err
    except aiohttp.ClientConnectionError as conn_err:
        logger.error(f"Connection error while fetching '{category}' events: {conn_err} - URL: {url}")
        raise FetchError(f"Connection error: {conn_err}", url=url) from conn_err
    except asyncio.TimeoutError as timeout_err:
        logger.error(f"Timeout after {FETCH_TIMEOUT_SECONDS}s fetching '{category}' events - URL: {url}")
        raise FetchError("Timed out fetching events feed", url=url) from timeout_err
    except aiohttp.ClientError as req_err:
        logger.error(f"Request error while fetching '{category}' events: {req_err} - URL: {url}")
        raise FetchError(f"Request error: {req_err}", url=url) from req_err
    except ValueError as decode_err:
        logger.error(f"Events feed for '{category}' is not valid JSON: {decode_err}")
        raise FetchError("Events feed returned invalid JSON", url=url) from decode_err

    n_events = len(payload.get("events", [])) if isinstance(payload, dict) else "?"
    logger.info(f"Fetched '{category}' feed with {n_events} events")
    return payload


def make_feed_fetcher(category: str, status: str = "open", url: str = EONET_EVENTS_URL, **params):
    """
    Returns a zero-argument coroutine function that downloads one feed.
    A new session is opened per call so the fetcher can run on any event loop.
    """
    async def fetch_feed() -> dict:
        async with aiohttp.ClientSession() as session:
            return await fetch_events_feed(category, session, status=status, url=url, **params)

    fetch_feed.__name__ = f"fetch_{category}_feed"
    return fetch_feed


async def main_test_runner():
    """Downloads every configured feed once and logs a summary."""
    logger.info("Running the EONET collector as a script.")
    async with aiohttp.ClientSession() as session:
        for feed_name, feed in FEEDS.items():
            try:
                payload = await fetch_events_feed(feed["category"], session, status=feed["status"])
            except FetchError as e:
                logger.warning(f"Feed '{feed_name}' failed: {e}")
                continue
            logger.info(f"Feed '{feed_name}': {len(payload.get('events', []))} events")


if __name__ == "__main__":
    # python -m eonet_monitor.data_collection.collector
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    asyncio.run(main_test_runner())
