"""Explanation text for provider matches.

Every reason is derived from the same bands that produced the sub-scores,
so the text a coordinator reads always agrees with the numbers.
"""

from typing import Any

from care_calculators.provider_match_calculator.scoring import SCORING_WEIGHTS

ERROR_REASON = "Error calculating match score"


def _miles(distance: float) -> str:
    return f"{round(distance, 1)} miles"


def network_reason(in_network: bool) -> str:
    if in_network:
        return "In your insurance network"
    return "Out-of-network provider (higher costs)"


def specialty_reason(specialty_match: bool, required_followup: str) -> str:
    if specialty_match:
        return f"Specializes in {required_followup}"
    return f"May not specialize in {required_followup}"


def proximity_reason(distance: float) -> str:
    if distance < 1:
        return "Very close to your location (< 1 mile)"
    if distance < 5:
        return f"Close to your location ({_miles(distance)})"
    if distance < 15:
        return f"{_miles(distance)} from your location"
    return f"Far from your location ({_miles(distance)})"


def availability_reason(availability_score: int) -> str:
    if availability_score >= 95:
        return "Available immediately or tomorrow"
    if availability_score >= 80:
        return "Available this week"
    if availability_score >= 60:
        return "Available next week"
    if availability_score >= 40:
        return "Available within a month"
    return "Limited availability"


def rating_reason(rating: float | None) -> str:
    if rating is None:
        return "No patient rating yet"
    if rating >= 4.8:
        return "Exceptionally highly rated (4.8+ stars)"
    if rating >= 4.5:
        return "Highly rated by patients (4.5+ stars)"
    if rating >= 4.0:
        return "Well-rated provider (4.0+ stars)"
    if rating >= 3.5:
        return "Average rating (3.5+ stars)"
    return "Below average rating"


def build_reasons(
    *,
    in_network: bool,
    specialty_match: bool,
    required_followup: str,
    distance: float,
    availability_score: int,
    rating: float | None,
) -> list[str]:
    """Ordered reasons: network, specialty, proximity, availability, rating."""
    return [
        network_reason(in_network),
        specialty_reason(specialty_match, required_followup),
        proximity_reason(distance),
        availability_reason(availability_score),
        rating_reason(rating),
    ]


def _join_clauses(clauses: list[str]) -> str:
    if len(clauses) == 1:
        return clauses[0]
    if len(clauses) == 2:
        return f"{clauses[0]} and {clauses[1]}"
    return ", ".join(clauses[:-1]) + f", and {clauses[-1]}"


def why_this_provider(
    *,
    provider_name: str,
    required_service: str,
    match_score: int,
    in_network: bool,
    specialty_match: bool,
    distance: float,
    availability_score: int,
    rating: float | None,
) -> str:
    """Narrative "Why this provider?" sentence for the recommendation card."""
    service = required_service.lower()
    clauses: list[str] = []

    if in_network:
        clauses.append("they accept your insurance plan, which means lower out-of-pocket costs")
    else:
        clauses.append(
            "they provide the specialized care you need "
            "(though they're out-of-network, which may cost more)"
        )

    if specialty_match:
        clauses.append(f"they have proven expertise in {service}")
    else:
        clauses.append(f"they can provide {service} services")

    if distance < 1:
        clauses.append("they're extremely convenient to reach (less than 1 mile from your location)")
    elif distance < 3:
        clauses.append(f"they're very close to your location ({_miles(distance)} away)")
    elif distance < 10:
        clauses.append(f"they're reasonably close ({_miles(distance)} from your location)")
    elif distance < 20:
        clauses.append(f"they're within a reasonable driving distance ({_miles(distance)} away)")
    else:
        clauses.append(f"they're available for your care needs ({_miles(distance)} from your location)")

    if availability_score >= 95:
        clauses.append("they can see you immediately or tomorrow")
    elif availability_score >= 80:
        clauses.append("they have excellent availability this week")
    elif availability_score >= 60:
        clauses.append("they have good availability next week")
    elif availability_score >= 40:
        clauses.append("they can schedule you within the next month")
    else:
        clauses.append("they're working to accommodate your scheduling needs")

    if rating is not None:
        if rating >= 4.8:
            clauses.append("they have outstanding patient satisfaction ratings (4.8+ stars)")
        elif rating >= 4.5:
            clauses.append("they have excellent patient reviews (4.5+ stars)")
        elif rating >= 4.0:
            clauses.append("they have strong patient satisfaction scores (4.0+ stars)")
        elif rating >= 3.5:
            clauses.append("they maintain good patient relationships")

    explanation = f"{provider_name} is our top recommendation because {_join_clauses(clauses)}."

    if match_score >= 90:
        explanation += " This is an exceptional match that meets all your key requirements."
    elif match_score >= 80:
        explanation += " This is an excellent match for your specific needs."
    elif match_score >= 70:
        explanation += " This provider is a strong match for your care requirements."
    elif match_score >= 60:
        explanation += " This provider meets most of your important criteria."
    elif match_score >= 50:
        explanation += " While not perfect, this provider can address your care needs effectively."
    else:
        explanation += (
            " This provider is available to help, though you may want to consider "
            "other options if available."
        )
    return explanation


def scoring_algorithm_explanation() -> dict[str, Any]:
    """Describe the multi-factor matching algorithm and its weights."""
    return {
        "description": (
            "Multi-factor provider matching algorithm that evaluates providers "
            "across 5 key dimensions"
        ),
        "factors": [
            {
                "name": "Insurance Network Match",
                "weight": SCORING_WEIGHTS["insurance"],
                "description": "In-network providers score 100, out-of-network providers 30",
            },
            {
                "name": "Geographic Distance",
                "weight": SCORING_WEIGHTS["distance"],
                "description": "Closer providers score higher using distance-based tiers",
            },
            {
                "name": "Specialty Match",
                "weight": SCORING_WEIGHTS["specialty"],
                "description": "Providers matching the required service score 100, others 20",
            },
            {
                "name": "Availability",
                "weight": SCORING_WEIGHTS["availability"],
                "description": "Earlier availability scores higher (immediate=100, later=lower)",
            },
            {
                "name": "Provider Rating",
                "weight": SCORING_WEIGHTS["rating"],
                "description": "5-star rating converted to a 100-point scale",
            },
        ],
        "total_weight": round(sum(SCORING_WEIGHTS.values()), 10),
        "score_range": "0-100 (higher scores indicate better matches)",
    }
