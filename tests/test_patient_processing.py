from __future__ import annotations

from datetime import date, datetime

import pytest
from structlog.testing import capture_logs

from care_calculators.leakage_risk_calculator.patient_processing import (
    coerce_date,
    rows_to_patient_inputs,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        (None, None),
        ("", None),
        ("2025-01-18", date(2025, 1, 18)),
        ("2025-01-18T10:30:00", date(2025, 1, 18)),
        (datetime(2025, 1, 18, 10, 30), date(2025, 1, 18)),
        (date(2025, 1, 18), date(2025, 1, 18)),
    ],
)
def test_coerce_date(value, expected) -> None:
    assert coerce_date(value) == expected


def test_coerce_date_drops_garbage() -> None:
    with capture_logs() as logs:
        assert coerce_date("last tuesday") is None
        assert coerce_date(20250118) is None
    assert [e["event"] for e in logs] == ["unparseable_date_ignored"] * 2


def test_rows_to_patient_inputs_skips_rows_without_scoring_fields() -> None:
    rows = [
        ("P1", "Full", "1942-03-15", "Total Hip Replacement", "2025-01-18", "PT", "Medicare", "Boston", 95, "high", "needed"),
        ("P2", "Partial", None, "Appendectomy", None, None, None, None, None, None, None),
        ("P3", "Nothing", None, None, None, "Cardiology", "", None, None, None, "needed"),
    ]
    patients, stats = rows_to_patient_inputs(rows)

    assert [p.id for p in patients] == ["P1", "P2"]
    assert patients[0].date_of_birth == date(1942, 3, 15)
    assert patients[0].leakage_risk_score == 95
    assert stats["skipped"] == 1
    assert stats["missing_field_counts"]["date_of_birth"] == 2
    assert stats["missing_field_counts"]["insurance"] == 2
    assert "diagnosis" in stats["missing_field_counts"]


def test_rows_to_patient_inputs_keeps_malformed_rows() -> None:
    rows = [
        ("P1", "Good", "1942-03-15", "Appendectomy", "2025-01-18", None, "Medicare", None, 40, "medium", None),
        ("P2", "Bad date", "03/15/1942", "Heart Surgery", "2025-01-18", None, None, None, 120, "critical", None),
    ]
    patients, stats = rows_to_patient_inputs(rows)

    assert [p.id for p in patients] == ["P1", "P2"]
    assert patients[1].date_of_birth is None
    assert patients[1].leakage_risk_score is None
    assert patients[1].leakage_risk_level is None
    assert stats["skipped"] == 0
    assert stats["invalid"] == 0
