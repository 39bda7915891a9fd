"""Leakage Risk Calculator.

Estimates how likely a discharged patient is to miss required follow-up care
("leak" out of the provider network) from age, diagnosis complexity, time
since discharge, insurance, geography and referral history.
"""

from care_calculators.leakage_risk_calculator.calculator import LeakageRiskCalculator
from care_calculators.leakage_risk_calculator.models import (
    EnhancedPatient,
    PatientInput,
    ReferralRecord,
    RiskFactors,
    RiskLevel,
    RiskResult,
)
from care_calculators.leakage_risk_calculator.referral_history import (
    DuckDBReferralHistoryProvider,
    ReferralHistoryProvider,
    StaticReferralHistoryProvider,
)

__all__ = [
    "DuckDBReferralHistoryProvider",
    "EnhancedPatient",
    "LeakageRiskCalculator",
    "PatientInput",
    "ReferralHistoryProvider",
    "ReferralRecord",
    "RiskFactors",
    "RiskLevel",
    "RiskResult",
    "StaticReferralHistoryProvider",
]
