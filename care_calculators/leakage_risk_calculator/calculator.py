"""Leakage Risk Calculator.

This module implements the main calculator class that:
1. Scores six risk factors (age, diagnosis complexity, time since discharge,
   insurance, geography, referral history), each on a 0-100 scale
2. Combines them with fixed weights into a 0-100 leakage risk score
3. Thresholds the score into a low / medium / high level

Missing patient fields never raise; each factor has a moderate default.
"""

from collections.abc import Iterable, Mapping
from datetime import date, timedelta
from typing import Any

import structlog

from care_calculators.leakage_risk_calculator import tables
from care_calculators.leakage_risk_calculator.models import (
    EnhancedPatient,
    PatientInput,
    ReferralRecord,
    ReferralStatus,
    RiskFactors,
    RiskLevel,
    RiskResult,
)
from care_calculators.leakage_risk_calculator.referral_history import (
    ReferralHistoryProvider,
    validate_referrals,
)
from care_calculators.rounding import clamp, round_half_up

logger = structlog.get_logger(__name__)

RECENT_ACTIVITY_WINDOW = timedelta(days=30)


def _first_match(
    text: str,
    table: tuple[tuple[tuple[str, ...], int], ...],
    default: int,
) -> int:
    lowered = text.lower()
    for keywords, risk in table:
        if any(keyword in lowered for keyword in keywords):
            return risk
    return default


def risk_level_for(score: int) -> RiskLevel:
    """Threshold a 0-100 score into a risk level."""
    if score >= tables.HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if score >= tables.MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class LeakageRiskCalculator:
    """Leakage risk calculator for discharged patients.

    Example:
        >>> from datetime import date
        >>> calculator = LeakageRiskCalculator(as_of=date(2025, 1, 22))
        >>> patient = PatientInput(
        ...     id="P001",
        ...     date_of_birth=date(1958, 7, 22),
        ...     diagnosis="Cardiac Catheterization",
        ...     discharge_date=date(2025, 1, 19),
        ...     insurance="Blue Cross Blue Shield",
        ...     address="123 Cambridge St, Cambridge, MA 02139",
        ... )
        >>> result = calculator.score(patient)
        >>> print(f"Leakage risk: {result.score} ({result.level.value})")
    """

    def __init__(self, as_of: date | None = None):
        """Initialize calculator.

        Args:
            as_of: Reference date for age, days since discharge and recent
                referral activity. Defaults to today, read at each call.
        """
        self._as_of = as_of

    @property
    def as_of(self) -> date:
        return self._as_of or date.today()

    def _calculate_age(self, dob: date) -> int:
        """Age in completed years as of the reference date."""
        as_of = self.as_of
        age = as_of.year - dob.year
        if (as_of.month, as_of.day) < (dob.month, dob.day):
            age -= 1
        return max(0, age)

    def _days_since_discharge(self, discharge_date: date) -> int:
        return abs((self.as_of - discharge_date).days)

    def age_risk(self, dob: date | None) -> int:
        """Age factor: older patients are likelier to miss follow-up.

        Args:
            dob: Date of birth, or None if unknown

        Returns:
            Normalized risk 0-100 (50 when unknown)
        """
        if dob is None:
            return tables.MISSING_AGE_RISK
        age = self._calculate_age(dob)
        for min_age, risk in tables.AGE_RISK_BANDS:
            if age >= min_age:
                return risk
        return tables.YOUNGEST_AGE_RISK

    def diagnosis_complexity(self, diagnosis: str | None) -> int:
        """Diagnosis factor from the procedure complexity keyword lists."""
        if not diagnosis:
            return tables.DEFAULT_DIAGNOSIS_RISK
        return _first_match(
            diagnosis, tables.DIAGNOSIS_COMPLEXITY_RISK, tables.DEFAULT_DIAGNOSIS_RISK
        )

    def time_risk(self, discharge_date: date | None) -> int:
        """Time factor: risk rises with days elapsed since discharge.

        Args:
            discharge_date: Discharge date, or None if unknown

        Returns:
            Normalized risk 0-100 (25 when unknown)
        """
        if discharge_date is None:
            return tables.MISSING_TIME_RISK
        days = self._days_since_discharge(discharge_date)
        for min_days, risk in tables.TIME_RISK_BANDS:
            if days >= min_days:
                return risk
        return tables.RECENT_DISCHARGE_RISK

    def insurance_risk(self, insurance: str | None) -> int:
        if not insurance:
            return tables.MISSING_INSURANCE_RISK
        return _first_match(insurance, tables.INSURANCE_RISK, tables.DEFAULT_INSURANCE_RISK)

    def geographic_risk(self, address: str | None) -> int:
        if not address:
            return tables.MISSING_ADDRESS_RISK
        return _first_match(address, tables.GEOGRAPHIC_RISK, tables.UNLISTED_AREA_RISK)

    def referral_history_risk(self, referrals: list[ReferralRecord] | None) -> int:
        """Referral history factor from past referral outcomes.

        Cancellations, low completion, a pile of pending referrals, and a
        history with nothing in the last 30 days each add risk.

        Args:
            referrals: Past referrals for the patient, or None if unavailable

        Returns:
            Risk 0-100 (50 when there is no history)
        """
        if not referrals:
            return tables.NO_REFERRAL_HISTORY_RISK

        total = len(referrals)
        cancelled = sum(1 for r in referrals if r.status == ReferralStatus.CANCELLED)
        completed = sum(1 for r in referrals if r.status == ReferralStatus.COMPLETED)
        pending = sum(
            1 for r in referrals if r.status in (ReferralStatus.PENDING, ReferralStatus.SENT)
        )

        cancellation_rate = cancelled / total
        completion_rate = completed / total

        risk = 0
        if cancellation_rate >= 0.5:
            risk += 40
        elif cancellation_rate >= 0.3:
            risk += 25
        elif cancellation_rate >= 0.1:
            risk += 10

        if completion_rate < 0.3:
            risk += 20
        elif completion_rate < 0.5:
            risk += 10

        if pending >= 3:
            risk += 15
        elif pending >= 2:
            risk += 8

        window_start = self.as_of - RECENT_ACTIVITY_WINDOW
        if not any(r.created_at.date() > window_start for r in referrals):
            risk += 15

        return int(clamp(risk))

    def factors(
        self, patient: PatientInput, referrals: list[ReferralRecord] | None = None
    ) -> RiskFactors:
        """Compute every factor for a patient."""
        return RiskFactors(
            age=self.age_risk(patient.date_of_birth),
            diagnosis_complexity=self.diagnosis_complexity(patient.diagnosis),
            time_since_discharge=self.time_risk(patient.discharge_date),
            insurance_type=self.insurance_risk(patient.insurance),
            geographic_factors=self.geographic_risk(patient.address),
            previous_referral_history=self.referral_history_risk(referrals),
        )

    def score(
        self,
        patient: PatientInput | Mapping[str, Any],
        referrals: Iterable[ReferralRecord | Mapping[str, Any]] | None = None,
    ) -> RiskResult:
        """Calculate leakage risk for a single patient.

        Args:
            patient: Patient record; partial records are allowed
            referrals: Past referrals for the patient, if known

        Returns:
            RiskResult with score, level and factor breakdown
        """
        patient = PatientInput.model_validate(patient)
        history = validate_referrals(referrals) if referrals is not None else None

        factors = self.factors(patient, history)
        weighted = sum(
            getattr(factors, name) * weight for name, weight in tables.RISK_WEIGHTS.items()
        )
        score = int(clamp(round_half_up(weighted / 100)))

        return RiskResult(score=score, level=risk_level_for(score), factors=factors)

    async def score_with_history(
        self,
        patient: PatientInput | Mapping[str, Any],
        history_provider: ReferralHistoryProvider | None,
    ) -> RiskResult:
        """Fetch the patient's referral history, then score.

        A failed or unavailable fetch falls back to the no-history default
        for that factor; the score is still produced.

        Args:
            patient: Patient record; history is only fetched when it has an id
            history_provider: Collaborator supplying past referrals

        Returns:
            RiskResult with score, level and factor breakdown
        """
        patient = PatientInput.model_validate(patient)
        referrals: list[ReferralRecord] | None = None

        if patient.id and history_provider is not None:
            try:
                referrals = validate_referrals(await history_provider.fetch(patient.id))
            except Exception as exc:
                logger.warning(
                    "referral_history_unavailable",
                    patient_id=patient.id,
                    error=str(exc),
                )
                referrals = None

        return self.score(patient, referrals)

    def enhance_patient(
        self,
        patient: PatientInput | Mapping[str, Any],
        referrals: Iterable[ReferralRecord | Mapping[str, Any]] | None = None,
    ) -> EnhancedPatient:
        """Attach age, days since discharge and a fresh risk result.

        Any stored leakage_risk_score / leakage_risk_level is overwritten.
        """
        patient = PatientInput.model_validate(patient)
        result = self.score(patient, referrals)
        base_fields = set(PatientInput.model_fields) - {"leakage_risk_score", "leakage_risk_level"}
        return EnhancedPatient(
            **patient.model_dump(include=base_fields),
            leakage_risk_score=result.score,
            leakage_risk_level=result.level,
            age=self._calculate_age(patient.date_of_birth) if patient.date_of_birth else None,
            days_since_discharge=(
                self._days_since_discharge(patient.discharge_date)
                if patient.discharge_date
                else None
            ),
            leakage_risk=result,
        )

    def score_batch(self, patients: list[PatientInput | Mapping[str, Any]]) -> list[RiskResult]:
        """Calculate risk for multiple patients, in input order."""
        return [self.score(patient) for patient in patients]

    def prioritize(
        self,
        patients: list[PatientInput | Mapping[str, Any]],
        histories: Mapping[str, list[ReferralRecord]] | None = None,
    ) -> list[EnhancedPatient]:
        """Enhance patients and order them highest risk first.

        Args:
            patients: Patient records
            histories: Optional referral history keyed by patient id

        Returns:
            Enhanced patients sorted by descending score (stable for ties)
        """
        histories = histories or {}
        enhanced = []
        for patient in patients:
            patient = PatientInput.model_validate(patient)
            enhanced.append(
                self.enhance_patient(patient, histories.get(patient.id) if patient.id else None)
            )
        return sorted(enhanced, key=lambda p: p.leakage_risk.score, reverse=True)
