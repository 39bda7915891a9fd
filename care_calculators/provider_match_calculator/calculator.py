"""Provider Match Calculator.

This module implements the main calculator class that:
1. Locates the patient (geocoded address) and each provider
2. Scores distance, insurance network, specialty, availability and rating
3. Combines the sub-scores with fixed weights into a 0-100 match score
4. Explains each score with ordered, human-readable reasons
5. Ranks providers, isolating any record that fails to score

Per-provider results are tagged MatchOk / MatchErr so one bad record is
reported, not raised, and cannot abort the batch.
"""

from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

import structlog

from care_calculators.provider_match_calculator.availability import (
    AvailabilityParser,
    KeywordAvailabilityParser,
)
from care_calculators.provider_match_calculator.explanations import (
    ERROR_REASON,
    build_reasons,
    why_this_provider,
)
from care_calculators.provider_match_calculator.geocoding import Geocoder, StaticGeoLookup
from care_calculators.provider_match_calculator.models import (
    Coordinates,
    MatchErr,
    MatchExplanation,
    MatchOk,
    MatchOutcome,
    MatchPatient,
    ProviderInput,
    ProviderMatch,
)
from care_calculators.provider_match_calculator.scoring import (
    IN_NETWORK_SCORE,
    OUT_OF_NETWORK_SCORE,
    SCORING_WEIGHTS,
    SPECIALTY_MATCH_SCORE,
    SPECIALTY_MISMATCH_SCORE,
    has_specialty_match,
    haversine_distance,
    is_in_network,
    proximity_score,
    rating_score,
)
from care_calculators.rounding import clamp, round_half_up

logger = structlog.get_logger(__name__)

DEFAULT_MATCH_LIMIT = 5
ERROR_MATCH_SCORE = 10
ERROR_DISTANCE = 999.0


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _has_critical_fields(record: Any) -> bool:
    """A provider needs an id, a name, an address and a type or specialties."""
    if record is None:
        return False
    return bool(
        _field(record, "id")
        and _field(record, "name")
        and _field(record, "address")
        and (_field(record, "specialties") or _field(record, "type"))
    )


def error_match(provider: ProviderInput) -> ProviderMatch:
    """Low-score placeholder ranked below any successfully scored provider."""
    return ProviderMatch(
        provider=provider,
        match_score=ERROR_MATCH_SCORE,
        distance=ERROR_DISTANCE,
        in_network=False,
        specialty_match=False,
        explanation=MatchExplanation(
            distance_score=0,
            insurance_score=0,
            availability_score=0,
            specialty_score=0,
            rating_score=0,
            reasons=[ERROR_REASON],
        ),
    )


class ProviderMatchCalculator:
    """Ranks providers against one patient's referral need.

    Example:
        >>> calculator = ProviderMatchCalculator()
        >>> matches = calculator.find_matches(providers, patient, limit=3)
        >>> for m in matches:
        ...     print(m.provider.name, m.match_score, m.explanation.reasons)
    """

    def __init__(
        self,
        geocoder: Geocoder | None = None,
        availability_parser: AvailabilityParser | None = None,
        as_of: date | None = None,
    ):
        """Initialize calculator.

        Args:
            geocoder: Address lookup; defaults to StaticGeoLookup
            availability_parser: Availability text scorer; defaults to
                KeywordAvailabilityParser relative to as_of
            as_of: Reference date for availability parsing (defaults to today)
        """
        self.geocoder = geocoder or StaticGeoLookup()
        self.availability_parser = availability_parser or KeywordAvailabilityParser(as_of=as_of)

    def _provider_coordinates(self, provider: ProviderInput) -> Coordinates:
        if provider.latitude is not None and provider.longitude is not None:
            return Coordinates(lat=provider.latitude, lng=provider.longitude)
        return self.geocoder.geocode(provider.address)

    def match(
        self,
        provider: ProviderInput | Mapping[str, Any],
        patient: MatchPatient | Mapping[str, Any] | Any,
    ) -> ProviderMatch:
        """Score one provider for a patient.

        Args:
            provider: Provider record
            patient: Patient record with address, insurance, required_followup

        Returns:
            ProviderMatch with match score, distance and explanation

        Raises:
            ValidationError: If the provider record is malformed
            ValueError: If a sub-score cannot be computed (e.g. NaN coordinates)
        """
        provider = ProviderInput.model_validate(provider)
        patient = self._match_patient(patient)
        required_followup = patient.required_followup or ""

        distance = haversine_distance(
            self.geocoder.geocode(patient.address or ""),
            self._provider_coordinates(provider),
        )
        distance_score = proximity_score(distance)

        in_network = is_in_network(provider, patient.insurance)
        insurance_score = IN_NETWORK_SCORE if in_network else OUT_OF_NETWORK_SCORE

        specialty_match = has_specialty_match(provider, required_followup)
        specialty_score = SPECIALTY_MATCH_SCORE if specialty_match else SPECIALTY_MISMATCH_SCORE

        availability_score = int(clamp(self.availability_parser.score(provider.availability_next)))
        provider_rating_score = rating_score(provider.rating)

        weighted = (
            insurance_score * SCORING_WEIGHTS["insurance"]
            + distance_score * SCORING_WEIGHTS["distance"]
            + specialty_score * SCORING_WEIGHTS["specialty"]
            + availability_score * SCORING_WEIGHTS["availability"]
            + provider_rating_score * SCORING_WEIGHTS["rating"]
        )
        match_score = int(clamp(round_half_up(weighted)))

        return ProviderMatch(
            provider=provider,
            match_score=match_score,
            distance=round(distance, 1),
            in_network=in_network,
            specialty_match=specialty_match,
            explanation=MatchExplanation(
                distance_score=distance_score,
                insurance_score=insurance_score,
                availability_score=availability_score,
                specialty_score=specialty_score,
                rating_score=provider_rating_score,
                reasons=build_reasons(
                    in_network=in_network,
                    specialty_match=specialty_match,
                    required_followup=required_followup,
                    distance=distance,
                    availability_score=availability_score,
                    rating=provider.rating,
                ),
                why_this_provider=why_this_provider(
                    provider_name=provider.name,
                    required_service=required_followup,
                    match_score=match_score,
                    in_network=in_network,
                    specialty_match=specialty_match,
                    distance=distance,
                    availability_score=availability_score,
                    rating=provider.rating,
                ),
            ),
        )

    @staticmethod
    def _match_patient(patient: Any) -> MatchPatient:
        if isinstance(patient, MatchPatient):
            return patient
        return MatchPatient(
            id=_field(patient, "id"),
            address=_field(patient, "address"),
            insurance=_field(patient, "insurance"),
            required_followup=_field(patient, "required_followup"),
        )

    def evaluate(self, provider: ProviderInput | Mapping[str, Any], patient: Any) -> MatchOutcome:
        """Score one provider, capturing failure as a MatchErr instead of raising."""
        try:
            return MatchOk(match=self.match(provider, patient))
        except Exception as exc:
            reference = ProviderInput(
                id=str(_field(provider, "id")), name=str(_field(provider, "name"))
            )
            return MatchErr(provider=reference, reason=f"{type(exc).__name__}: {exc}")

    def evaluate_all(self, providers: Sequence[Any], patient: Any) -> list[MatchOutcome]:
        """Tagged outcome per provider, in input order."""
        patient = self._match_patient(patient)
        return [self.evaluate(provider, patient) for provider in providers]

    def find_matches(
        self,
        providers: Sequence[ProviderInput | Mapping[str, Any]] | None,
        patient: Any,
        limit: int = DEFAULT_MATCH_LIMIT,
    ) -> list[ProviderMatch]:
        """Find and rank the best-fit providers for a patient.

        Args:
            providers: Candidate provider records
            patient: Patient with address, insurance and required_followup
            limit: Maximum number of matches to return

        Returns:
            Up to `limit` matches, highest match score first. Empty when the
            provider list is empty or the patient lacks a required field.
        """
        if not isinstance(providers, Sequence) or isinstance(providers, str) or not providers:
            logger.warning("no_providers_for_matching")
            return []

        if patient is None:
            logger.warning("patient_incomplete_for_matching", missing=["patient"])
            return []
        match_patient = self._match_patient(patient)
        missing = [
            name
            for name in ("address", "insurance", "required_followup")
            if not getattr(match_patient, name)
        ]
        if missing:
            logger.warning("patient_incomplete_for_matching", missing=missing)
            return []

        valid_providers = [p for p in providers if _has_critical_fields(p)]
        if len(valid_providers) < len(providers):
            logger.warning(
                "providers_missing_critical_fields",
                dropped=len(providers) - len(valid_providers),
            )
        if not valid_providers:
            logger.warning("no_valid_providers_for_matching")
            return []

        matches: list[ProviderMatch] = []
        for outcome in self.evaluate_all(valid_providers, match_patient):
            if isinstance(outcome, MatchOk):
                matches.append(outcome.match)
            else:
                logger.warning(
                    "provider_match_failed",
                    provider_id=outcome.provider.id,
                    reason=outcome.reason,
                )
                matches.append(error_match(outcome.provider))

        matches.sort(key=lambda m: m.match_score, reverse=True)
        return matches[: max(0, limit)]
