from __future__ import annotations

from typing import Any, Iterable

import structlog
from pydantic import ValidationError

from care_calculators.leakage_risk_calculator.models import PatientInput, coerce_date

logger = structlog.get_logger(__name__)

PATIENT_COLUMNS = (
    "id",
    "name",
    "date_of_birth",
    "diagnosis",
    "discharge_date",
    "required_followup",
    "insurance",
    "address",
    "leakage_risk_score",
    "leakage_risk_level",
    "referral_status",
)

# A row with none of these carries nothing to score
SCORING_FIELDS = ("date_of_birth", "diagnosis", "discharge_date", "insurance", "address")

__all__ = ["PATIENT_COLUMNS", "SCORING_FIELDS", "coerce_date", "rows_to_patient_inputs"]


def rows_to_patient_inputs(
    rows: Iterable[tuple[Any, ...]],
) -> tuple[list[PatientInput], dict[str, Any]]:
    """
    Convert raw database rows into PatientInput objects.

    Expected row format follows PATIENT_COLUMNS. Rows with no scoring field at
    all are skipped; partial rows are kept and scored with defaults. A row
    that still fails validation is counted as invalid and skipped, so one bad
    row never aborts a batch.
    """
    patients: list[PatientInput] = []
    skipped = 0
    invalid = 0
    missing_field_counts: dict[str, int] = {}

    for row in rows:
        data = dict(zip(PATIENT_COLUMNS, row))
        data["id"] = str(data["id"]) if data["id"] is not None else None
        data["date_of_birth"] = coerce_date(data["date_of_birth"])
        data["discharge_date"] = coerce_date(data["discharge_date"])

        missing = [field for field in SCORING_FIELDS if data.get(field) in (None, "")]
        for field in missing:
            missing_field_counts[field] = missing_field_counts.get(field, 0) + 1
        if len(missing) == len(SCORING_FIELDS):
            skipped += 1
            continue

        try:
            patients.append(PatientInput(**data))
        except ValidationError as exc:
            invalid += 1
            logger.warning("patient_row_invalid", patient_id=data["id"], error=str(exc))

    return patients, {
        "skipped": skipped,
        "invalid": invalid,
        "missing_field_counts": missing_field_counts,
    }
