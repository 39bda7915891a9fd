"""Factor scoring for provider matching.

Distance, insurance network, specialty and rating sub-scores, plus the
weights that combine them with availability into a match score.
"""

import math

from care_calculators.provider_match_calculator.models import Coordinates, ProviderInput
from care_calculators.rounding import clamp

EARTH_RADIUS_MILES = 3959.0

# Relative importance of each factor; sums to 1.0
SCORING_WEIGHTS: dict[str, float] = {
    "insurance": 0.30,
    "distance": 0.25,
    "specialty": 0.20,
    "availability": 0.15,
    "rating": 0.10,
}

IN_NETWORK_SCORE = 100
OUT_OF_NETWORK_SCORE = 30
SPECIALTY_MATCH_SCORE = 100
SPECIALTY_MISMATCH_SCORE = 20

# (upper bound in miles, exclusive; score)
PROXIMITY_BANDS: tuple[tuple[float, int], ...] = (
    (1, 100),
    (3, 90),
    (5, 80),
    (10, 70),
    (15, 60),
    (20, 50),
    (30, 40),
    (50, 30),
)
FAR_DISTANCE_BASE_SCORE = 25

# Standard specialty -> terms that mean the same kind of care
SPECIALTY_SYNONYMS: dict[str, tuple[str, ...]] = {
    "physical therapy": ("physical therapy", "rehabilitation", "rehab", "sports medicine", "pt"),
    "cardiology": ("cardiology", "heart", "cardiac", "cardiovascular"),
    "orthopedics": ("orthopedics", "orthopedic", "bone", "joint", "musculoskeletal"),
    "surgery": ("surgery", "surgical", "operative"),
    "neurosurgery": ("neurosurgery", "brain surgery", "spine surgery", "neurological surgery"),
    "primary care": ("primary care", "family medicine", "internal medicine", "general practice"),
    "pediatrics": ("pediatrics", "children", "child", "adolescent"),
    "obgyn": ("obgyn", "obstetrics", "gynecology", "women's health"),
    "dermatology": ("dermatology", "skin", "cosmetic"),
    "psychiatry": ("psychiatry", "mental health", "behavioral health", "psychology"),
}


def haversine_distance(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance in miles between two points."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lng = math.radians(b.lng - a.lng)
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def proximity_score(distance: float) -> int:
    """Step score for distance; never increases as distance grows.

    Beyond 50 miles the score starts at 25 and drops one point per
    additional 10 miles, floored at 0.

    Raises:
        ValueError: If distance is NaN or negative
    """
    if math.isnan(distance) or distance < 0:
        raise ValueError(f"invalid distance: {distance!r}")
    for upper_bound, score in PROXIMITY_BANDS:
        if distance < upper_bound:
            return score
    return max(0, FAR_DISTANCE_BASE_SCORE - math.floor((distance - 50) / 10))


def _plans_match(plans: list[str], insurance: str) -> bool:
    for plan in plans:
        plan_lower = plan.strip().lower()
        if not plan_lower:
            continue
        if plan_lower == insurance or plan_lower in insurance or insurance in plan_lower:
            return True
    return False


def is_in_network(provider: ProviderInput, insurance: str | None) -> bool:
    """Whether the patient's plan matches the provider's published plans.

    Plans match when equal or when either contains the other, ignoring case.
    in_network_plans is checked first, then accepted_insurance.
    """
    if not insurance or not insurance.strip():
        return False
    insurance = insurance.strip().lower()
    if _plans_match(provider.in_network_plans, insurance):
        return True
    return _plans_match(provider.accepted_insurance, insurance)


def _direct_match(candidate: str, followup: str) -> bool:
    return candidate == followup or candidate in followup or followup in candidate


def _synonym_match(candidate: str, followup: str) -> bool:
    for specialty, terms in SPECIALTY_SYNONYMS.items():
        followup_hit = any(term in followup for term in terms)
        candidate_hit = specialty in candidate or any(term in candidate for term in terms)
        if followup_hit and candidate_hit:
            return True
    return False


def has_specialty_match(provider: ProviderInput, required_followup: str | None) -> bool:
    """Whether the provider's type or specialties cover the follow-up need.

    A candidate (the type or any specialty) matches on equality, substring
    either way, or when both fall in the same SPECIALTY_SYNONYMS entry.
    """
    if not required_followup or not required_followup.strip():
        return False
    followup = required_followup.strip().lower()
    candidates = [provider.type, *provider.specialties]
    for candidate in candidates:
        candidate = (candidate or "").strip().lower()
        if not candidate:
            continue
        if _direct_match(candidate, followup) or _synonym_match(candidate, followup):
            return True
    return False


def rating_score(rating: float | None) -> float:
    """Map a 0-5 star rating linearly onto 0-100."""
    if rating is None:
        return 0.0
    return round(clamp(rating / 5 * 100), 2)
