"""Address to coordinate lookup for provider matching.

StaticGeoLookup is a keyword table over Boston-area neighborhoods standing
in for a real geocoder. Anything that implements ``geocode(address) ->
Coordinates`` can replace it without touching the scoring code.
"""

from typing import Protocol

from care_calculators.provider_match_calculator.models import Coordinates

BOSTON_CENTER = Coordinates(lat=42.3601, lng=-71.0589)

# Ordered: the first keyword found in the address wins, so street-level and
# neighborhood keywords come before the catch-all city name.
NEIGHBORHOOD_COORDINATES: tuple[tuple[tuple[str, ...], Coordinates], ...] = (
    (("beacon hill", "beacon st"), Coordinates(lat=42.3584, lng=-71.0598)),
    (("back bay", "boylston"), Coordinates(lat=42.3505, lng=-71.0743)),
    (("south end",), Coordinates(lat=42.3398, lng=-71.0621)),
    (("longwood",), Coordinates(lat=42.3376, lng=-71.1062)),
    (("mission hill",), Coordinates(lat=42.3297, lng=-71.1043)),
    (("fenway",), Coordinates(lat=42.3429, lng=-71.1003)),
    (("charlestown",), Coordinates(lat=42.3782, lng=-71.0602)),
    (("jamaica plain",), Coordinates(lat=42.3097, lng=-71.1151)),
    (("cambridge",), Coordinates(lat=42.3736, lng=-71.1097)),
    (("brookline",), Coordinates(lat=42.3467, lng=-71.1206)),
    (("somerville",), Coordinates(lat=42.3875, lng=-71.0995)),
    (("chestnut hill",), Coordinates(lat=42.3302, lng=-71.1662)),
    (("newton",), Coordinates(lat=42.3370, lng=-71.2092)),
    (("watertown",), Coordinates(lat=42.3709, lng=-71.1828)),
    (("quincy",), Coordinates(lat=42.2529, lng=-71.0023)),
    (("medford",), Coordinates(lat=42.4184, lng=-71.1062)),
    (("malden",), Coordinates(lat=42.4251, lng=-71.0662)),
    (("waltham",), Coordinates(lat=42.3765, lng=-71.2356)),
    (("boston",), BOSTON_CENTER),
)


class Geocoder(Protocol):
    """Resolves a free-text address to coordinates."""

    def geocode(self, address: str) -> Coordinates: ...


class StaticGeoLookup:
    """Keyword lookup against NEIGHBORHOOD_COORDINATES.

    Args:
        default: Coordinates returned for unmatched addresses
    """

    def __init__(self, default: Coordinates = BOSTON_CENTER):
        self.default = default

    def geocode(self, address: str) -> Coordinates:
        if not address:
            return self.default
        lowered = address.lower()
        for keywords, coordinates in NEIGHBORHOOD_COORDINATES:
            if any(keyword in lowered for keyword in keywords):
                return coordinates
        return self.default
