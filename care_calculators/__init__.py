"""Care calculators - discharge follow-up scoring implementations.

Available calculators:
    - LeakageRiskCalculator: leakage risk score for a discharged patient
    - ProviderMatchCalculator: ranked, explained provider matches for a referral
"""

from care_calculators.leakage_risk_calculator import LeakageRiskCalculator, PatientInput, RiskResult
from care_calculators.provider_match_calculator import (
    ProviderInput,
    ProviderMatch,
    ProviderMatchCalculator,
)

__all__ = [
    "LeakageRiskCalculator",
    "PatientInput",
    "ProviderInput",
    "ProviderMatch",
    "ProviderMatchCalculator",
    "RiskResult",
]
