"""Provider matching over the DuckDB intake warehouse.

Loads one patient and the provider directory from DuckDB, ranks the
providers with ProviderMatchCalculator, and writes the ranked matches to
YAML for review.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

import duckdb
import structlog
import yaml

from care_calculators.provider_match_calculator.calculator import (
    DEFAULT_MATCH_LIMIT,
    ProviderMatchCalculator,
)
from care_calculators.provider_match_calculator.models import MatchPatient, ProviderMatch

logger = structlog.get_logger(__name__)

PROVIDER_COLUMNS = (
    "id",
    "name",
    "type",
    "address",
    "phone",
    "specialties",
    "accepted_insurance",
    "in_network_plans",
    "rating",
    "latitude",
    "longitude",
    "availability_next",
)


def rows_to_provider_records(rows: list[tuple[Any, ...]]) -> list[dict[str, Any]]:
    """Raw provider rows as dicts; validation happens per provider while matching."""
    records = []
    for row in rows:
        record = dict(zip(PROVIDER_COLUMNS, row))
        if record["id"] is not None:
            record["id"] = str(record["id"])
        records.append(record)
    return records


def match_from_duckdb(
    *,
    duckdb_path: str,
    patient_id: str,
    schema: str = "main_intake",
    patients_table: str = "patients",
    providers_table: str = "providers",
    limit: int = DEFAULT_MATCH_LIMIT,
    as_of: date | None = None,
) -> list[ProviderMatch]:
    """Rank providers in the warehouse for one patient.

    Raises:
        LookupError: If the patient id is not in `{schema}.{patients_table}`
    """
    con = duckdb.connect(str(Path(duckdb_path).expanduser().resolve()), read_only=True)
    try:
        patient_row = con.execute(
            f"""
            SELECT id, address, insurance, required_followup
            FROM {schema}.{patients_table}
            WHERE CAST(id AS VARCHAR) = ?
            """,
            [str(patient_id)],
        ).fetchone()
        if patient_row is None:
            raise LookupError(f"Patient {patient_id} not found in {schema}.{patients_table}")

        provider_rows = con.execute(
            f"""
            SELECT {", ".join(PROVIDER_COLUMNS)}
            FROM {schema}.{providers_table}
            ORDER BY id
            """
        ).fetchall()
    finally:
        con.close()

    patient = MatchPatient(
        id=patient_row[0],
        address=patient_row[1],
        insurance=patient_row[2],
        required_followup=patient_row[3],
    )
    providers = rows_to_provider_records(provider_rows)
    logger.info("matching_providers", patient_id=patient.id, providers=len(providers))

    calculator = ProviderMatchCalculator(as_of=as_of)
    return calculator.find_matches(providers, patient, limit=limit)


def write_matches_yaml(matches: list[ProviderMatch], output_path: str) -> Path:
    """Dump ranked matches (rank, provider, scores, reasons) to a YAML file."""
    path = Path(output_path).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = [
        {
            "rank": rank,
            "provider_id": match.provider.id,
            "provider_name": match.provider.name,
            "match_score": match.match_score,
            "distance_miles": match.distance,
            "in_network": match.in_network,
            "specialty_match": match.specialty_match,
            "explanation": match.explanation.model_dump(),
        }
        for rank, match in enumerate(matches, start=1)
    ]
    with path.open("w", encoding="utf-8") as f:
        yaml.dump(data, f, sort_keys=False)
    return path
