"""Tests for leakage risk explanations."""

import pytest

from care_calculators.leakage_risk_calculator import RiskFactors, RiskLevel
from care_calculators.leakage_risk_calculator.explanations import (
    FACTOR_EXPLANATIONS,
    FACTOR_INTERVENTIONS,
    STANDARD_FOLLOWUP,
    explain_factor,
    recommend_interventions,
    summarize_risk,
    top_factors,
)


@pytest.fixture
def elderly_hip_factors():
    return RiskFactors(
        age=100,
        diagnosis_complexity=65,
        time_since_discharge=20,
        insurance_type=75,
        geographic_factors=20,
        previous_referral_history=50,
    )


class TestExplainFactor:
    @pytest.mark.parametrize("value,index", [(100, 0), (70, 0), (69, 1), (40, 1), (39, 2), (0, 2)])
    def test_bands(self, value, index):
        assert explain_factor("age", value) == FACTOR_EXPLANATIONS["age"][index]

    def test_every_factor_has_text(self, elderly_hip_factors):
        for name, value in elderly_hip_factors.model_dump().items():
            assert explain_factor(name, value)

    def test_unknown_factor(self):
        with pytest.raises(KeyError):
            explain_factor("shoe_size", 50)


class TestTopFactors:
    def test_highest_first(self, elderly_hip_factors):
        assert top_factors(elderly_hip_factors) == ["age", "insurance_type"]

    def test_ties_keep_declaration_order(self):
        factors = RiskFactors(
            age=50,
            diagnosis_complexity=50,
            time_since_discharge=25,
            insurance_type=50,
            geographic_factors=50,
            previous_referral_history=50,
        )
        assert top_factors(factors, n=3) == ["age", "diagnosis_complexity", "insurance_type"]


class TestRecommendInterventions:
    def test_high_factors_get_interventions(self, elderly_hip_factors):
        recommendations = recommend_interventions(elderly_hip_factors)
        assert recommendations == [
            *FACTOR_INTERVENTIONS["age"],
            *FACTOR_INTERVENTIONS["insurance_type"],
        ]

    def test_low_risk_gets_standard_followup(self):
        factors = RiskFactors(
            age=17,
            diagnosis_complexity=25,
            time_since_discharge=5,
            insurance_type=25,
            geographic_factors=20,
            previous_referral_history=50,
        )
        assert recommend_interventions(factors) == [STANDARD_FOLLOWUP]


def test_summaries_by_level():
    assert "high risk" in summarize_risk(RiskLevel.HIGH)
    assert "moderate risk" in summarize_risk("medium")
    assert "low risk" in summarize_risk(RiskLevel.LOW)
