"""Data models for the leakage risk calculator."""

from datetime import date, datetime
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = structlog.get_logger(__name__)


class RiskLevel(str, Enum):
    """Categorical leakage risk level."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReferralStatus(str, Enum):
    """Lifecycle status of a referral row."""

    PENDING = "pending"
    SENT = "sent"
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def coerce_date(value: Any) -> date | None:
    """Coerce a DuckDB DATE/TIMESTAMP or ISO string into a date.

    Anything unparseable becomes None (with a warning) so the affected factor
    falls back to its default instead of rejecting the record.
    """
    value = _blank_to_none(value)
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    logger.warning("unparseable_date_ignored", value=repr(value))
    return None


class PatientInput(BaseModel):
    """A discharged patient as supplied by the caller.

    Every field is optional: the calculator substitutes a moderate default
    for anything missing instead of rejecting the record. Malformed dates
    and out-of-range stored priors are dropped to None with a warning.

    Attributes:
        id: Patient identifier, used to look up referral history
        name: Display name
        date_of_birth: Patient's date of birth
        diagnosis: Free-text discharge diagnosis or procedure
        discharge_date: Date the patient left the hospital
        required_followup: Free-text follow-up need (e.g. "Physical Therapy")
        insurance: Free-text insurance plan name
        address: Free-text home address
        leakage_risk_score: Previously stored score (a prior, not engine state)
        leakage_risk_level: Previously stored level
        referral_status: Workflow status of the patient's referral
    """

    id: str | None = None
    name: str | None = None
    date_of_birth: date | None = None
    diagnosis: str | None = None
    discharge_date: date | None = None
    required_followup: str | None = None
    insurance: str | None = None
    address: str | None = None
    leakage_risk_score: int | None = Field(default=None, ge=0, le=100)
    leakage_risk_level: RiskLevel | None = None
    referral_status: str | None = None

    @field_validator(
        "id",
        "name",
        "diagnosis",
        "required_followup",
        "insurance",
        "address",
        "referral_status",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        # DuckDB hands back UUID objects for uuid columns
        value = _blank_to_none(value)
        if value is not None and not isinstance(value, str):
            return str(value)
        return value

    @field_validator("date_of_birth", "discharge_date", mode="before")
    @classmethod
    def _lenient_date(cls, value: Any) -> date | None:
        return coerce_date(value)

    @field_validator("leakage_risk_score", mode="before")
    @classmethod
    def _drop_invalid_prior_score(cls, value: Any) -> int | None:
        value = _blank_to_none(value)
        if value is None:
            return None
        try:
            score = int(float(value))
        except (TypeError, ValueError, OverflowError):
            score = None
        if score is None or isinstance(value, bool) or not 0 <= score <= 100:
            logger.warning("stored_risk_score_ignored", value=repr(value))
            return None
        return score

    @field_validator("leakage_risk_level", mode="before")
    @classmethod
    def _drop_invalid_prior_level(cls, value: Any) -> RiskLevel | None:
        value = _blank_to_none(value)
        if value is None or isinstance(value, RiskLevel):
            return value
        try:
            return RiskLevel(str(value).strip().lower())
        except ValueError:
            logger.warning("stored_risk_level_ignored", value=repr(value))
            return None


class ReferralRecord(BaseModel):
    """One past referral, as returned by a referral history provider."""

    id: str | None = None
    patient_id: str | None = None
    provider_id: str | None = None
    service_type: str | None = None
    status: ReferralStatus
    created_at: datetime
    updated_at: datetime | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _lower_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value


class RiskFactors(BaseModel):
    """Per-factor leakage risk, each normalized to 0-100.

    Serializes with camelCase aliases (``diagnosisComplexity`` etc.) for
    callers that consume the dashboard shape.
    """

    model_config = ConfigDict(populate_by_name=True)

    age: int = Field(ge=0, le=100)
    diagnosis_complexity: int = Field(ge=0, le=100, alias="diagnosisComplexity")
    time_since_discharge: int = Field(ge=0, le=100, alias="timeSinceDischarge")
    insurance_type: int = Field(ge=0, le=100, alias="insuranceType")
    geographic_factors: int = Field(ge=0, le=100, alias="geographicFactors")
    previous_referral_history: int = Field(ge=0, le=100, alias="previousReferralHistory")


class RiskResult(BaseModel):
    """Output from leakage risk calculation.

    Attributes:
        score: Weighted leakage risk, 0-100
        level: low / medium / high, derived from score
        factors: Per-factor breakdown
    """

    score: int = Field(ge=0, le=100)
    level: RiskLevel
    factors: RiskFactors


class EnhancedPatient(PatientInput):
    """Patient record enriched with computed fields and a fresh risk result."""

    age: int | None = None
    days_since_discharge: int | None = None
    leakage_risk: RiskResult
