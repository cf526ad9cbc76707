"""
Reference data records - airports and airline classifications.

Both are loaded once from static tables and never mutated afterwards,
so they are modelled as frozen dataclasses.
"""

from dataclasses import dataclass, asdict
from typing import Optional
from urllib.parse import urlparse


@dataclass(frozen=True)
class Airport:
    """
    Airport from the VATSpy reference data.

    Fields:
        icao: 4-letter ICAO code, upper-case (e.g., 'KBOS')
        name: Display name (e.g., 'General Edward Lawrence Logan Intl')
        lat/lon: WGS84 position in decimal degrees
        iata: 3-letter IATA code if the airport has one
        fir: Flight information region the airport belongs to
    """
    icao: str
    name: str
    lat: float
    lon: float
    iata: Optional[str] = None
    fir: str = ''

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class AirlineInfo:
    """
    Result of classifying a callsign.

    `kind` records which rule matched: private, supersonic, iata,
    airline (known prefix), unknown (3-letter prefix not in the table)
    or fallback.
    """
    prefix: Optional[str]
    name: Optional[str] = None
    website: Optional[str] = None
    flight_number: Optional[str] = None
    kind: str = 'fallback'

    @property
    def display_name(self) -> str:
        return self.name or 'Unknown Airline'

    @property
    def logo_domain(self) -> Optional[str]:
        """Website host without a leading 'www.', used for logo lookups."""
        if not self.website:
            return None
        host = urlparse(self.website).hostname
        if not host:
            return None
        return host[4:] if host.startswith('www.') else host

    def to_dict(self) -> dict:
        return {
            'prefix': self.prefix,
            'name': self.name,
            'display_name': self.display_name,
            'website': self.website,
            'logo_domain': self.logo_domain,
            'flight_number': self.flight_number,
            'kind': self.kind,
        }
