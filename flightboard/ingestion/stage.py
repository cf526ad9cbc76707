"""
Flight stage detection from position and filed route.

The checks are ordered; the first one that holds decides the stage:

1. groundspeed < 50 kts AND altitude < 500 ft        -> GROUND
2. altitude < 10000 ft AND < 50 nm from departure    -> DEPARTING
3. altitude < 10000 ft AND < 100 nm from arrival     -> ARRIVING
4. altitude > 25000 ft                               -> CRUISING
5. closer to departure than arrival                  -> DEPARTING
6. otherwise                                         -> ARRIVING

An unknown airport counts as infinitely far away, so it never satisfies a
proximity check and loses the final tie-break.
"""

import math
from typing import Optional

from flightboard.geo import haversine_distance
from flightboard.models import Airport, FlightStage, PilotRecord

GROUND_SPEED_KTS = 50
GROUND_ALTITUDE_FT = 500
LOW_ALTITUDE_FT = 10000
CRUISE_ALTITUDE_FT = 25000
DEPARTURE_RADIUS_NM = 50
ARRIVAL_RADIUS_NM = 100


def distance_to_airport(pilot: PilotRecord, airport: Optional[Airport]) -> float:
    """Distance from the pilot to an airport in nm, infinite if unknown."""
    if airport is None:
        return math.inf
    return haversine_distance(pilot.latitude, pilot.longitude, airport.lat, airport.lon)


def detect_flight_stage(
    pilot: PilotRecord,
    departure_airport: Optional[Airport],
    arrival_airport: Optional[Airport],
) -> FlightStage:
    """Classify a pilot into one of the four flight stages."""
    altitude = pilot.altitude
    groundspeed = pilot.groundspeed

    if groundspeed < GROUND_SPEED_KTS and altitude < GROUND_ALTITUDE_FT:
        return FlightStage.GROUND

    dist_from_dep = distance_to_airport(pilot, departure_airport)
    dist_from_arr = distance_to_airport(pilot, arrival_airport)

    if altitude < LOW_ALTITUDE_FT and dist_from_dep < DEPARTURE_RADIUS_NM:
        return FlightStage.DEPARTING

    if altitude < LOW_ALTITUDE_FT and dist_from_arr < ARRIVAL_RADIUS_NM:
        return FlightStage.ARRIVING

    if altitude > CRUISE_ALTITUDE_FT:
        return FlightStage.CRUISING

    # Mid-altitude: whichever end is closer
    if dist_from_dep < dist_from_arr:
        return FlightStage.DEPARTING

    return FlightStage.ARRIVING
