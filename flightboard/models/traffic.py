"""
Traffic snapshot models.

Parsed from the VATSIM v3 data feed. Only the fields the flight board
consumes are kept; everything else in the feed is ignored.

Pilot record format (subset):
    cid          - VATSIM member id
    callsign     - Flight callsign (e.g., 'BAW123', 'N172SP')
    name         - Pilot name
    latitude     - WGS84 latitude
    longitude    - WGS84 longitude
    altitude     - Altitude in feet
    groundspeed  - Ground speed in knots
    heading      - Heading in degrees
    flight_plan  - Optional {departure, arrival, aircraft_short, ...}
    logon_time   - ISO-8601 logon timestamp
    last_updated - ISO-8601 timestamp of the last position report
"""

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

# fromisoformat() only accepts up to 6 fractional digits, VATSIM sends 7
_FRACTION_RE = re.compile(r'(\.\d{6})\d+')


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None if absent or invalid."""
    if not value or not isinstance(value, str):
        return None
    value = _FRACTION_RE.sub(r'\1', value.strip().replace('Z', '+00:00'))
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    """Coerce a feed value to float, falling back to `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    # float() accepts 'nan' and 'inf'
    return number if math.isfinite(number) else default


def _clean_icao(value: Any) -> Optional[str]:
    if not value or not isinstance(value, str):
        return None
    return value.strip().upper() or None


@dataclass
class FlightPlan:
    """Pilot-filed flight plan (the parts the board uses)."""
    departure: Optional[str] = None
    arrival: Optional[str] = None
    aircraft_short: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional['FlightPlan']:
        if not isinstance(data, dict):
            return None
        aircraft = data.get('aircraft_short')
        if not isinstance(aircraft, str):
            aircraft = None
        return cls(
            departure=_clean_icao(data.get('departure')),
            arrival=_clean_icao(data.get('arrival')),
            aircraft_short=(aircraft or '').strip() or None,
        )


@dataclass
class PilotRecord:
    """
    One connected pilot from a traffic snapshot.

    Numeric telemetry defaults to 0 when the feed omits it, so downstream
    classification never has to deal with missing values.
    """
    cid: Optional[int]
    callsign: str
    name: Optional[str]
    latitude: float
    longitude: float
    altitude: float = 0.0
    groundspeed: float = 0.0
    heading: float = 0.0
    flight_plan: Optional[FlightPlan] = None
    logon_time: Optional[str] = None
    last_updated: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional['PilotRecord']:
        """
        Parse a raw pilot record.

        Returns None if the record is malformed or has no usable position.
        """
        if not isinstance(data, dict):
            return None

        latitude = _to_float(data.get('latitude'), None)
        longitude = _to_float(data.get('longitude'), None)
        if latitude is None or longitude is None:
            return None

        callsign = data.get('callsign')
        callsign = callsign.strip() if isinstance(callsign, str) else ''

        return cls(
            cid=data.get('cid'),
            callsign=callsign,
            name=data.get('name'),
            latitude=latitude,
            longitude=longitude,
            altitude=_to_float(data.get('altitude')),
            groundspeed=_to_float(data.get('groundspeed')),
            heading=_to_float(data.get('heading')),
            flight_plan=FlightPlan.from_dict(data.get('flight_plan')),
            logon_time=data.get('logon_time'),
            last_updated=data.get('last_updated'),
        )

    @property
    def departure(self) -> Optional[str]:
        return self.flight_plan.departure if self.flight_plan else None

    @property
    def arrival(self) -> Optional[str]:
        return self.flight_plan.arrival if self.flight_plan else None


@dataclass
class TrafficSnapshot:
    """Point-in-time network state: pilots plus the feed update timestamp."""
    pilots: List[PilotRecord] = field(default_factory=list)
    update_timestamp: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional['TrafficSnapshot']:
        """
        Parse a decoded VATSIM data feed.

        Returns None if the payload has no pilot list at all. Individual
        pilot records that cannot be parsed are dropped.
        """
        if not isinstance(data, dict) or not isinstance(data.get('pilots'), list):
            return None

        raw_pilots = data['pilots']
        pilots = []
        for raw in raw_pilots:
            pilot = PilotRecord.from_dict(raw)
            if pilot:
                pilots.append(pilot)

        skipped = len(raw_pilots) - len(pilots)
        if skipped:
            logger.debug(f'Dropped {skipped} pilot records without a usable position')

        general = data.get('general')
        timestamp = general.get('update_timestamp') if isinstance(general, dict) else None

        return cls(pilots=pilots, update_timestamp=timestamp)

    @property
    def update_time(self) -> Optional[datetime]:
        """Feed generation time, or None if absent or unparsable."""
        return parse_timestamp(self.update_timestamp)

    @property
    def update_time_display(self) -> Optional[str]:
        """Update time as a Zulu clock string (e.g., '14:05:09Z')."""
        update_time = self.update_time
        if update_time is None:
            return None
        if update_time.tzinfo is not None:
            update_time = update_time.astimezone(timezone.utc)
        return update_time.strftime('%H:%M:%SZ')
