"""Tests for referral history providers and history-aware scoring."""

from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

import pytest
from structlog.testing import capture_logs

from care_calculators.leakage_risk_calculator import (
    DuckDBReferralHistoryProvider,
    LeakageRiskCalculator,
    PatientInput,
    ReferralRecord,
    RiskLevel,
    StaticReferralHistoryProvider,
)
from care_calculators.leakage_risk_calculator.referral_history import rows_to_referral_records


class FailingHistoryProvider:
    """History provider whose backing store is down."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    async def fetch(self, patient_id: str) -> list[ReferralRecord]:
        self.calls.append(patient_id)
        raise ConnectionError("referral store unavailable")


class MalformedHistoryProvider:
    """History provider whose rows have not been validated."""

    async def fetch(self, patient_id: str) -> list[dict]:
        return [
            {"patient_id": patient_id, "status": "cancelled", "created_at": datetime(2024, 11, 2)},
            {"patient_id": patient_id, "status": "cancelled", "created_at": datetime(2024, 11, 20)},
            {"patient_id": patient_id, "status": "pending", "created_at": datetime(2024, 12, 21)},
            {"patient_id": patient_id, "status": "misplaced", "created_at": None},
        ]


@pytest.fixture
def dorothy() -> PatientInput:
    return PatientInput(
        id="P008",
        name="Dorothy Walsh",
        date_of_birth=date(1940, 2, 2),
        diagnosis="Heart Surgery",
        discharge_date=date(2024, 12, 20),
        insurance="MassHealth Medicaid",
        address="12 Main St, Rural Township, MA 01001",
    )


def test_rows_to_referral_records_stringifies_ids() -> None:
    records = rows_to_referral_records(
        [(1, 2, None, "Cardiology", "Sent", datetime(2025, 1, 1), None)]
    )
    assert records[0].id == "1"
    assert records[0].patient_id == "2"
    assert records[0].provider_id is None
    assert records[0].status.value == "sent"


@pytest.mark.asyncio
async def test_static_provider_returns_copies() -> None:
    provider = StaticReferralHistoryProvider(
        {"P1": [{"status": "completed", "created_at": datetime(2025, 1, 2)}]}
    )
    first = await provider.fetch("P1")
    first.clear()
    assert len(await provider.fetch("P1")) == 1
    assert await provider.fetch("unknown") == []


@pytest.mark.asyncio
async def test_score_with_static_history(as_of, dorothy) -> None:
    provider = StaticReferralHistoryProvider(
        {
            "P008": [
                {"status": "cancelled", "created_at": datetime(2024, 11, 2)},
                {"status": "cancelled", "created_at": datetime(2024, 11, 20)},
                {"status": "pending", "created_at": datetime(2024, 12, 21)},
            ]
        }
    )
    result = await LeakageRiskCalculator(as_of=as_of).score_with_history(dorothy, provider)
    assert result.factors.previous_referral_history == 75
    assert result.score == 90
    assert result.level == RiskLevel.HIGH


@pytest.mark.asyncio
async def test_failing_provider_falls_back_to_default(as_of, dorothy) -> None:
    provider = FailingHistoryProvider()
    with capture_logs() as logs:
        result = await LeakageRiskCalculator(as_of=as_of).score_with_history(dorothy, provider)
    assert provider.calls == ["P008"]
    assert result.factors.previous_referral_history == 50
    assert result.score == 87
    assert logs[0]["event"] == "referral_history_unavailable"
    assert logs[0]["patient_id"] == "P008"
    assert "referral store unavailable" in logs[0]["error"]


@pytest.mark.asyncio
async def test_malformed_history_rows_are_dropped(as_of, dorothy) -> None:
    with capture_logs() as logs:
        result = await LeakageRiskCalculator(as_of=as_of).score_with_history(
            dorothy, MalformedHistoryProvider()
        )
    assert result.factors.previous_referral_history == 75
    assert result.score == 90
    assert [e["event"] for e in logs] == ["referral_row_invalid"]


def test_rows_to_referral_records_skips_invalid_rows() -> None:
    records = rows_to_referral_records(
        [
            ("R1", "P1", None, "Cardiology", "completed", datetime(2025, 1, 1), None),
            ("R2", "P1", None, "Cardiology", "lost", datetime(2025, 1, 2), None),
        ]
    )
    assert [r.id for r in records] == ["R1"]


@pytest.mark.asyncio
async def test_patient_without_id_skips_fetch(as_of) -> None:
    provider = FailingHistoryProvider()
    result = await LeakageRiskCalculator(as_of=as_of).score_with_history(
        {"diagnosis": "Appendectomy"}, provider
    )
    assert provider.calls == []
    assert result.factors.previous_referral_history == 50


@pytest.mark.asyncio
async def test_no_provider_scores_without_history(as_of, dorothy) -> None:
    result = await LeakageRiskCalculator(as_of=as_of).score_with_history(dorothy, None)
    assert result.factors.previous_referral_history == 50


def test_duckdb_provider_newest_first(seeded_duckdb: Path) -> None:
    provider = DuckDBReferralHistoryProvider(str(seeded_duckdb))
    records = provider.fetch_sync("P008")
    assert [r.id for r in records] == ["R006", "R005", "R004"]
    assert all(r.patient_id == "P008" for r in records)


@pytest.mark.asyncio
async def test_duckdb_provider_feeds_score(seeded_duckdb: Path, as_of, dorothy) -> None:
    provider = DuckDBReferralHistoryProvider(str(seeded_duckdb))
    result = await LeakageRiskCalculator(as_of=as_of).score_with_history(dorothy, provider)
    assert result.score == 90


@pytest.mark.asyncio
async def test_duckdb_provider_missing_table_falls_back(seeded_duckdb: Path, as_of, dorothy) -> None:
    provider = DuckDBReferralHistoryProvider(str(seeded_duckdb), table="no_such_table")
    result = await LeakageRiskCalculator(as_of=as_of).score_with_history(dorothy, provider)
    assert result.factors.previous_referral_history == 50
