"""
Airline registry - callsign to airline resolution.

Callsigns on the network come in a few shapes:
- ICAO airline callsign: 'UAL839' (United flight 839)
- US registration used as a callsign: 'N172SP'
- IATA flight number, which is not valid on the network: 'UA839'
- Anything else a pilot chooses to type

classify() runs an ordered chain of rules; the first rule that matches
decides the result.

Usage:
    from flightboard.ingestion.airlines import AirlineRegistry

    registry = AirlineRegistry.from_file('airlines.json')
    info = registry.classify('ual839')
    print(info.name, info.flight_number)  # 'United Airlines' '839'
"""

import json
import logging
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional

from flightboard.config import config
from flightboard.models import AirlineInfo

logger = logging.getLogger(__name__)

PRIVATE_US_NAME = 'Private (United States)'
SUPERSONIC_MARKER = 'CONC'
SUPERSONIC_NAME = 'Concorde (Retired)'
IATA_CODE_NAME = 'Unknown Airline (IATA code)'

# N + 1-5 characters: digits, then at most two trailing letters
_N_NUMBER_RE = re.compile(r'^N(?=[0-9A-Z]{1,5}$)[0-9]{1,5}[A-Z]{0,2}$')
_IATA_CODE_RE = re.compile(r'^[A-Z]{2}[0-9]')
_ICAO_PREFIX_RE = re.compile(r'^[A-Z]{3}$')


def is_n_number(callsign: Optional[str]) -> bool:
    """Check if a callsign is a US civil registration (N-number)."""
    if not callsign:
        return False
    return bool(_N_NUMBER_RE.match(callsign.upper()))


def extract_airline_prefix(callsign: Optional[str]) -> Optional[str]:
    """Return the 3-letter ICAO airline prefix, or None if not alphabetic."""
    if not callsign or len(callsign) < 3:
        return None
    prefix = callsign[:3].upper()
    return prefix if _ICAO_PREFIX_RE.match(prefix) else None


class AirlineRegistry:
    """
    Static 3-letter prefix table plus the callsign classification rules.

    The table maps prefix -> {'name': ..., 'website': ...} and is never
    mutated after construction.
    """

    def __init__(self, table: Optional[Dict[str, dict]] = None):
        self._table: Dict[str, dict] = {
            prefix.strip().upper(): entry
            for prefix, entry in (table or {}).items()
            if isinstance(entry, dict)
        }
        # Ordered rule chain - order decides precedence
        self._rules: List[Callable[[str], Optional[AirlineInfo]]] = [
            self._match_private,
            self._match_supersonic,
            self._match_iata_code,
            self._match_icao_prefix,
        ]

    @classmethod
    def from_file(cls, path: Optional[str] = None) -> 'AirlineRegistry':
        """
        Load the airline table from a JSON file.

        Raises:
            OSError if the file cannot be read
            ValueError if it is not a JSON object
        """
        path = path or config.reference.airlines_file
        with open(Path(path), 'r', encoding='utf-8') as f:
            table = json.load(f)

        if not isinstance(table, dict):
            raise ValueError(f'Airline table in {path} must be a JSON object')

        registry = cls(table)
        logger.info(f'Loaded {len(registry)} airlines from {path}')
        return registry

    def get(self, prefix: Optional[str]) -> Optional[dict]:
        if not prefix:
            return None
        return self._table.get(prefix.upper())

    def __len__(self) -> int:
        return len(self._table)

    def classify(self, callsign: Optional[str]) -> AirlineInfo:
        """
        Classify a callsign. Never raises; every input gets a result.
        """
        callsign = (callsign or '').strip()

        if callsign:
            for rule in self._rules:
                info = rule(callsign)
                if info is not None:
                    return info

        return AirlineInfo(prefix=callsign[:3].upper() or None, kind='fallback')

    def display_name(self, callsign: Optional[str]) -> str:
        """Airline name for display, 'Unknown Airline' if unresolved."""
        return self.classify(callsign).display_name

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def _match_private(self, callsign: str) -> Optional[AirlineInfo]:
        if not is_n_number(callsign):
            return None
        return AirlineInfo(prefix=callsign.upper(), name=PRIVATE_US_NAME, kind='private')

    def _match_supersonic(self, callsign: str) -> Optional[AirlineInfo]:
        if not callsign.upper().startswith(SUPERSONIC_MARKER):
            return None
        remainder = callsign[len(SUPERSONIC_MARKER):].upper()
        return AirlineInfo(
            prefix=SUPERSONIC_MARKER,
            name=SUPERSONIC_NAME,
            flight_number=remainder or None,
            kind='supersonic',
        )

    def _match_iata_code(self, callsign: str) -> Optional[AirlineInfo]:
        if not _IATA_CODE_RE.match(callsign.upper()):
            return None
        return AirlineInfo(prefix=callsign[:2].upper(), name=IATA_CODE_NAME, kind='iata')

    def _match_icao_prefix(self, callsign: str) -> Optional[AirlineInfo]:
        prefix = extract_airline_prefix(callsign)
        if prefix is None:
            return None

        flight_number = callsign[3:].upper() or None
        airline = self._table.get(prefix)
        if airline is None:
            return AirlineInfo(prefix=prefix, flight_number=flight_number, kind='unknown')

        return AirlineInfo(
            prefix=prefix,
            name=airline.get('name'),
            website=airline.get('website'),
            flight_number=flight_number,
            kind='airline',
        )
