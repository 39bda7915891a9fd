"""Provider Match Calculator.

Ranks candidate follow-up providers for a patient by proximity, insurance
network, specialty fit, availability and rating, with a plain-language
explanation for every score.
"""

from care_calculators.provider_match_calculator.calculator import ProviderMatchCalculator
from care_calculators.provider_match_calculator.geocoding import Geocoder, StaticGeoLookup
from care_calculators.provider_match_calculator.models import (
    Coordinates,
    MatchErr,
    MatchExplanation,
    MatchOk,
    MatchOutcome,
    ProviderInput,
    ProviderMatch,
)

__all__ = [
    "Coordinates",
    "Geocoder",
    "MatchErr",
    "MatchExplanation",
    "MatchOk",
    "MatchOutcome",
    "ProviderInput",
    "ProviderMatch",
    "ProviderMatchCalculator",
    "StaticGeoLookup",
]
