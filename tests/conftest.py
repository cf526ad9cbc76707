"""
Shared fixtures: small in-memory reference tables and snapshots.

Airports are real VATSpy lines for the Boston area and a few
destinations, plus one pseudo airport that must never load.
"""

import pytest

from flightboard.ingestion.airlines import AirlineRegistry
from flightboard.ingestion.airports import AirportRegistry

VATSPY_SAMPLE = """\
; VATSpy data project
[Countries]
United States|K|Center

[Airports]
KBOS|General Edward Lawrence Logan Intl|42.36197|-71.0079|BOS|KZBW|0
KATL|Hartsfield-Jackson Atlanta Intl|33.63672|-84.42807|ATL|KZTL|0
KJFK|John F Kennedy Intl|40.63975|-73.77893|JFK|KZNY|0
EGLL|London Heathrow|51.4775|-0.46139|LHR|EGTT|0
LFPG|Paris Charles de Gaulle|49.00972|2.54778|CDG|LFFF|0
KBED|Laurence G Hanscom Fld|42.46997|-71.28903||KZBW|0
XBOS|Boston Pseudo Display Point|42.4|-71.0||KZBW|1
; broken lines below
KBAD|Bad Coordinates|north|west||KZBW|0
KSHT|Too Short

[FIRs]
KZBW|Boston Center|BOS|
"""

AIRLINE_TABLE = {
    'UAL': {'name': 'United Airlines', 'website': 'https://www.united.com'},
    'DAL': {'name': 'Delta Air Lines', 'website': 'https://www.delta.com'},
    'BAW': {'name': 'British Airways', 'website': 'https://www.britishairways.com'},
}

SNAPSHOT_TIMESTAMP = '2024-05-01T14:05:09.1234567Z'


def make_pilot(
    callsign='UAL123',
    latitude=42.36197,
    longitude=-71.0079,
    altitude=0,
    groundspeed=0,
    departure=None,
    arrival=None,
    aircraft='B738',
    flight_plan=True,
    cid=1000001,
):
    """Build a raw pilot record as it appears in the VATSIM feed."""
    pilot = {
        'cid': cid,
        'name': 'Test Pilot',
        'callsign': callsign,
        'latitude': latitude,
        'longitude': longitude,
        'altitude': altitude,
        'groundspeed': groundspeed,
        'heading': 90,
        'logon_time': '2024-05-01T13:00:00.0000000Z',
        'last_updated': '2024-05-01T14:05:00.0000000Z',
        'flight_plan': None,
    }
    if flight_plan:
        pilot['flight_plan'] = {
            'departure': departure or '',
            'arrival': arrival or '',
            'aircraft_short': aircraft,
        }
    return pilot


def make_snapshot(*pilots):
    return {
        'general': {'update_timestamp': SNAPSHOT_TIMESTAMP},
        'pilots': list(pilots),
    }


@pytest.fixture
def airports():
    return AirportRegistry.from_text(VATSPY_SAMPLE)


@pytest.fixture
def airlines():
    return AirlineRegistry(AIRLINE_TABLE)
