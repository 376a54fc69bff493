"""Distance and delivery estimates between a shop and a customer's location.

All distances are great-circle kilometres rounded to two decimals, which is
what every listing endpoint reports back to clients.
"""

import math

EARTH_RADIUS_KM = 6371

MIN_DELIVERY_MINUTES = 20
MAX_DELIVERY_MINUTES = 60
BASE_PREP_MINUTES = 15
MINUTES_PER_KM = 3

FREE_SURCHARGE_RADIUS_KM = 5
SURCHARGE_PER_KM = 2


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for the positive amounts we deal in.

    Python's ``round`` uses banker's rounding, which would turn a 2.5 km
    surcharge step or a 10.5 tax into the even neighbour.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def haversine_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = math.sin(d_lat / 2) ** 2 + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return round_half_up(EARTH_RADIUS_KM * c, 2)


def estimated_delivery_minutes(distance_km: float) -> int:
    """Delivery estimate: 15 minutes of prep plus 3 per km, kept within [20, 60]."""
    raw = int(round_half_up(distance_km * MINUTES_PER_KM)) + BASE_PREP_MINUTES
    return max(MIN_DELIVERY_MINUTES, min(MAX_DELIVERY_MINUTES, raw))


def delivery_charge_for(base_charge: float, distance_km: float) -> float:
    """Shops charge 2 per km beyond the first 5 km on top of their base charge."""
    if distance_km > FREE_SURCHARGE_RADIUS_KM:
        return base_charge + round_half_up(distance_km - FREE_SURCHARGE_RADIUS_KM) * SURCHARGE_PER_KM
    return base_charge
