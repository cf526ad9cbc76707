"""
Airport registry loaded from VATSpy reference data.

VATSpy.dat is a sectioned, pipe-delimited text file. Only the [Airports]
section is used; each line has the form:

    ICAO|Name|Latitude|Longitude|IATA|FIR|IsPseudo

Pseudo airports (IsPseudo == '1') are synthetic entries used by VATSpy for
display purposes and are excluded, as are lines with non-numeric
coordinates.

Usage:
    from flightboard.ingestion.airports import AirportRegistry

    registry = AirportRegistry.from_text(content)
    airport = registry.get('kbos')
    print(airport.name)  # 'General Edward Lawrence Logan Intl'
"""

import logging
import math
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import requests

from flightboard.config import config
from flightboard.models import Airport

logger = logging.getLogger(__name__)

AIRPORTS_SECTION = '[Airports]'


def _parse_coordinate(value: str) -> Optional[float]:
    try:
        coordinate = float(value)
    except ValueError:
        return None
    # float() accepts 'nan' and 'inf'
    return coordinate if math.isfinite(coordinate) else None


def parse_vatspy(content: str) -> Dict[str, Airport]:
    """
    Parse VATSpy.dat content into an ICAO-keyed airport table.

    Malformed lines are skipped, never raised.
    """
    airports: Dict[str, Airport] = {}
    in_airports_section = False
    skipped = 0

    for line in content.splitlines():
        trimmed = line.strip()

        # Section headers switch parsing on or off
        if trimmed.startswith('['):
            in_airports_section = trimmed == AIRPORTS_SECTION
            continue

        if not trimmed or trimmed.startswith(';') or not in_airports_section:
            continue

        parts = trimmed.split('|')
        if len(parts) < 6:
            skipped += 1
            continue

        is_pseudo = len(parts) > 6 and parts[6].strip() == '1'
        lat = _parse_coordinate(parts[2])
        lon = _parse_coordinate(parts[3])

        if is_pseudo:
            continue
        if lat is None or lon is None:
            skipped += 1
            continue

        icao = parts[0].strip().upper()
        airports[icao] = Airport(
            icao=icao,
            name=parts[1].strip(),
            lat=lat,
            lon=lon,
            iata=parts[4].strip() or None,
            fir=parts[5].strip(),
        )

    if skipped:
        logger.debug(f'Skipped {skipped} malformed airport lines')

    return airports


class AirportRegistry:
    """
    ICAO-keyed airport lookup.

    Populated once and read-only afterwards, so concurrent readers need no
    locking.
    """

    def __init__(self, airports: Optional[Dict[str, Airport]] = None):
        self._airports: Dict[str, Airport] = dict(airports or {})

    @classmethod
    def from_text(cls, content: str) -> 'AirportRegistry':
        registry = cls()
        registry.load(content)
        return registry

    def load(self, content: str) -> Dict[str, Airport]:
        """Parse VATSpy content and replace the table with the result."""
        self._airports = parse_vatspy(content)
        logger.info(f'Loaded {len(self._airports)} airports from VATSpy')
        return self._airports

    def get(self, icao: Optional[str]) -> Optional[Airport]:
        """Look up an airport by ICAO code (case-insensitive)."""
        if not icao:
            return None
        return self._airports.get(icao.strip().upper())

    def search(self, query: Optional[str], limit: int = 10) -> List[Airport]:
        """
        Find airports whose ICAO, name or IATA code contains `query`.

        Results come back in table order; no ranking is applied.
        """
        if not query or limit <= 0:
            return []

        upper_query = query.strip().upper()
        if not upper_query:
            return []

        results = []
        for airport in self._airports.values():
            if (upper_query in airport.icao or
                    upper_query in airport.name.upper() or
                    (airport.iata and upper_query in airport.iata.upper())):
                results.append(airport)
                if len(results) >= limit:
                    break

        return results

    def __len__(self) -> int:
        return len(self._airports)

    def __contains__(self, icao: object) -> bool:
        return isinstance(icao, str) and icao.strip().upper() in self._airports

    def __iter__(self) -> Iterator[Airport]:
        return iter(self._airports.values())


def fetch_vatspy(url: Optional[str] = None, timeout: Optional[int] = None) -> str:
    """
    Download VATSpy.dat.

    Raises:
        requests.RequestException on network/HTTP errors
    """
    url = url or config.reference.vatspy_url
    timeout = timeout or config.reference.timeout

    logger.info(f'Fetching VATSpy data from {url}')
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.error(f'Failed to fetch VATSpy data: {e}')
        raise

    return response.text


def load_airport_registry(
    path: Optional[str] = None,
    url: Optional[str] = None,
) -> AirportRegistry:
    """
    Build the airport registry from a local file or the VATSpy URL.

    A local path (argument or VATSPY_FILE) takes precedence over the URL.
    """
    path = path or config.reference.vatspy_file
    if path:
        logger.info(f'Loading VATSpy data from {path}')
        content = Path(path).read_text(encoding='utf-8', errors='ignore')
    else:
        content = fetch_vatspy(url)

    return AirportRegistry.from_text(content)
