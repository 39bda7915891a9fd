"""Referral history collaborators for the leakage risk calculator.

The calculator only needs something with an async ``fetch(patient_id)``.
Two implementations ship here: an in-memory one for callers that already
hold the rows, and one backed by the DuckDB intake warehouse.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any, Protocol

import duckdb
import structlog
from pydantic import ValidationError

from care_calculators.leakage_risk_calculator.models import ReferralRecord

logger = structlog.get_logger(__name__)

REFERRAL_COLUMNS = (
    "id",
    "patient_id",
    "provider_id",
    "service_type",
    "status",
    "created_at",
    "updated_at",
)


class ReferralHistoryProvider(Protocol):
    """Supplies past referral outcomes for a patient."""

    async def fetch(self, patient_id: str) -> list[ReferralRecord]: ...


def validate_referrals(
    referrals: Iterable[ReferralRecord | Mapping[str, Any]],
) -> list[ReferralRecord]:
    """Validate referral records, dropping any that fail with a warning."""
    records: list[ReferralRecord] = []
    for referral in referrals:
        try:
            records.append(ReferralRecord.model_validate(referral))
        except ValidationError as exc:
            referral_id = referral.get("id") if isinstance(referral, Mapping) else None
            logger.warning("referral_row_invalid", referral_id=referral_id, error=str(exc))
    return records


def rows_to_referral_records(rows: Iterable[tuple[Any, ...]]) -> list[ReferralRecord]:
    """Convert raw referral rows (in REFERRAL_COLUMNS order) into records.

    Rows that fail validation are skipped.
    """
    prepared = []
    for row in rows:
        data = dict(zip(REFERRAL_COLUMNS, row))
        for key in ("id", "patient_id", "provider_id"):
            if data[key] is not None:
                data[key] = str(data[key])
        prepared.append(data)
    return validate_referrals(prepared)


class StaticReferralHistoryProvider:
    """In-memory referral history keyed by patient id."""

    def __init__(self, history: Mapping[str, Iterable[ReferralRecord | Mapping[str, Any]]]):
        self._history = {
            str(patient_id): validate_referrals(referrals)
            for patient_id, referrals in history.items()
        }

    async def fetch(self, patient_id: str) -> list[ReferralRecord]:
        return list(self._history.get(str(patient_id), []))


class DuckDBReferralHistoryProvider:
    """Reads referral rows for a patient from the DuckDB intake warehouse.

    Args:
        duckdb_path: Path to the DuckDB file
        schema: Schema holding the referrals table
        table: Referrals table name
    """

    def __init__(
        self,
        duckdb_path: str,
        schema: str = "main_intake",
        table: str = "referrals",
    ):
        self.duckdb_path = str(Path(duckdb_path).expanduser().resolve())
        self.schema = schema
        self.table = table

    def fetch_sync(self, patient_id: str) -> list[ReferralRecord]:
        """Blocking lookup, newest referral first."""
        con = duckdb.connect(self.duckdb_path, read_only=True)
        try:
            rows = con.execute(
                f"""
                SELECT {", ".join(REFERRAL_COLUMNS)}
                FROM {self.schema}.{self.table}
                WHERE CAST(patient_id AS VARCHAR) = ?
                ORDER BY created_at DESC
                """,
                [str(patient_id)],
            ).fetchall()
        finally:
            con.close()
        return rows_to_referral_records(rows)

    async def fetch(self, patient_id: str) -> list[ReferralRecord]:
        return await asyncio.to_thread(self.fetch_sync, patient_id)
