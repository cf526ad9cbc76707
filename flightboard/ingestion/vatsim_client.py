"""
VATSIM data feed client.

Fetches the v3 network data JSON, which the network regenerates roughly
every 15 seconds. Only the pilot list and the general update timestamp
are consumed:

    {
        "general": {"update_timestamp": "2024-05-01T12:00:00.1234567Z", ...},
        "pilots": [{"cid": ..., "callsign": ..., "flight_plan": {...}}, ...],
        ...
    }

Network failures are logged and re-raised; retrying is left to the caller.
"""

import logging
import time
from typing import Optional

import requests

from flightboard.config import config
from flightboard.models import TrafficSnapshot

logger = logging.getLogger(__name__)


class VatsimClient:
    """
    Client for the VATSIM data feed.

    Handles:
    - GET requests to the v3 data endpoint
    - Minimum interval between requests (the feed updates every ~15s)
    - Parsing into a TrafficSnapshot
    """

    def __init__(
        self,
        data_url: str = 'https://data.vatsim.net/v3/vatsim-data.json',
        timeout: int = 15,
        min_interval: float = 5.0,
    ):
        self.data_url = data_url
        self.timeout = timeout
        self.session = requests.Session()
        self.last_request_time: float = 0
        self._min_interval = min_interval

    @classmethod
    def from_config(cls) -> 'VatsimClient':
        """Create client from application configuration."""
        return cls(
            data_url=config.vatsim.data_url,
            timeout=config.vatsim.timeout,
        )

    def _wait_for_rate_limit(self) -> None:
        """Enforce minimum interval between requests."""
        elapsed = time.time() - self.last_request_time
        if elapsed < self._min_interval:
            sleep_time = self._min_interval - elapsed
            logger.debug(f'Rate limiting: sleeping {sleep_time:.1f}s')
            time.sleep(sleep_time)

    def fetch_raw(self) -> dict:
        """
        Fetch the raw decoded feed.

        Raises:
            requests.RequestException on network/API errors
            ValueError if the body is not a JSON object
        """
        self._wait_for_rate_limit()

        logger.debug(f'Fetching VATSIM data: {self.data_url}')

        try:
            response = self.session.get(self.data_url, timeout=self.timeout)
            self.last_request_time = time.time()

            response.raise_for_status()
            data = response.json()

        except requests.exceptions.Timeout:
            logger.error('VATSIM data feed timeout')
            raise
        except requests.exceptions.HTTPError as e:
            logger.error(f'VATSIM data feed error: {e.response.status_code}')
            raise
        except requests.exceptions.RequestException as e:
            logger.error(f'VATSIM request failed: {e}')
            raise
        except ValueError as e:
            logger.error(f'VATSIM data feed returned invalid JSON: {e}')
            raise

        if not isinstance(data, dict):
            raise ValueError('VATSIM data feed did not return a JSON object')

        return data

    def fetch_snapshot(self) -> Optional[TrafficSnapshot]:
        """
        Fetch and parse the current network snapshot.

        Returns None if the feed carries no pilot list.
        """
        data = self.fetch_raw()
        snapshot = TrafficSnapshot.from_dict(data)

        if snapshot is None:
            logger.warning('VATSIM data feed has no pilot list')
        else:
            logger.info(f'Received {len(snapshot.pilots)} pilots from VATSIM')

        return snapshot
