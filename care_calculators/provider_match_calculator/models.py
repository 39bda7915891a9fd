"""Data models for the provider match calculator."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class Coordinates(BaseModel):
    """A latitude/longitude pair in decimal degrees."""

    lat: float
    lng: float


class ProviderInput(BaseModel):
    """A candidate follow-up care provider.

    Attributes:
        id: Provider identifier
        name: Practice or clinician name
        type: Primary service type (e.g. "Physical Therapy")
        address: Free-text street address
        phone: Contact number
        specialties: Declared specialties
        accepted_insurance: Plans the provider accepts
        in_network_plans: Plans the provider is contracted in-network with
        rating: Patient rating, 0.0-5.0
        latitude: Optional latitude; geocoded from address when missing
        longitude: Optional longitude; geocoded from address when missing
        availability_next: Free text describing the next open appointment
    """

    id: str
    name: str
    type: str = ""
    address: str = ""
    phone: str | None = None
    specialties: list[str] = Field(default_factory=list)
    accepted_insurance: list[str] = Field(default_factory=list)
    in_network_plans: list[str] = Field(default_factory=list)
    rating: float | None = Field(default=None, ge=0.0, le=5.0)
    latitude: float | None = None
    longitude: float | None = None
    availability_next: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, str):
            return str(value)
        return value

    @field_validator("type", "address", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("specialties", "accepted_insurance", "in_network_plans", mode="before")
    @classmethod
    def _coerce_str_list(cls, value: Any) -> Any:
        # DuckDB may return VARCHAR[] as a tuple with NULL elements
        if value is None:
            return []
        if isinstance(value, (list, tuple)):
            return [str(item) for item in value if item is not None]
        return [str(value)]


class MatchPatient(BaseModel):
    """The slice of a patient record the matcher needs."""

    id: str | None = None
    address: str | None = None
    insurance: str | None = None
    required_followup: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, str):
            return str(value)
        return value


class MatchExplanation(BaseModel):
    """Sub-scores and reasons behind one provider's match score.

    Attributes:
        distance_score: Proximity sub-score, 0-100
        insurance_score: 100 in network, 30 otherwise
        availability_score: Next-appointment urgency sub-score, 0-100
        specialty_score: 100 on specialty match, 20 otherwise
        rating_score: Star rating mapped linearly onto 0-100
        reasons: Ordered short reasons (network, specialty, proximity,
            availability, rating)
        why_this_provider: Narrative recommendation sentence
    """

    distance_score: int = Field(ge=0, le=100)
    insurance_score: int = Field(ge=0, le=100)
    availability_score: int = Field(ge=0, le=100)
    specialty_score: int = Field(ge=0, le=100)
    rating_score: float = Field(ge=0, le=100)
    reasons: list[str] = Field(min_length=1)
    why_this_provider: str | None = None

    @field_validator("reasons")
    @classmethod
    def _reasons_distinct_and_non_empty(cls, value: list[str]) -> list[str]:
        if any(not reason.strip() for reason in value):
            raise ValueError("reasons must be non-empty strings")
        if len(set(value)) != len(value):
            raise ValueError("reasons must not repeat")
        return value


class ProviderMatch(BaseModel):
    """A provider scored against one patient's referral need."""

    provider: ProviderInput
    match_score: int = Field(ge=0, le=100)
    distance: float = Field(ge=0)
    in_network: bool
    specialty_match: bool = False
    explanation: MatchExplanation


class MatchOk(BaseModel):
    """A provider that scored successfully."""

    kind: Literal["ok"] = "ok"
    match: ProviderMatch


class MatchErr(BaseModel):
    """A provider whose record could not be scored.

    Attributes:
        provider: Minimal provider reference (id and name)
        reason: Why scoring failed
    """

    kind: Literal["err"] = "err"
    provider: ProviderInput
    reason: str


MatchOutcome = MatchOk | MatchErr
