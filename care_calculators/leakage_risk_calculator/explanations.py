"""Human-readable explanations for a leakage risk result.

Turns factor values into the text a care coordinator sees next to a score:
a per-factor explanation, the top contributing factors, targeted
interventions for high-risk factors, and a one-paragraph summary.
"""

from care_calculators.leakage_risk_calculator.models import RiskFactors, RiskLevel

HIGH_FACTOR_THRESHOLD = 70
MODERATE_FACTOR_THRESHOLD = 40

FACTOR_LABELS: dict[str, str] = {
    "age": "Age",
    "diagnosis_complexity": "Diagnosis Complexity",
    "time_since_discharge": "Time Since Discharge",
    "insurance_type": "Insurance Type",
    "geographic_factors": "Geographic Access",
    "previous_referral_history": "Referral History",
}

# (high, moderate, low) explanation per factor
FACTOR_EXPLANATIONS: dict[str, tuple[str, str, str]] = {
    "age": (
        "Elderly patients have higher risk of care discontinuity due to mobility "
        "challenges, multiple comorbidities, and potential cognitive issues that can "
        "complicate follow-up care.",
        "Middle-aged patients have moderate risk factors that may affect care "
        "continuity, including work obligations and family responsibilities.",
        "Younger patients typically have lower leakage risk due to fewer comorbidities "
        "and better mobility, making follow-up care easier to manage.",
    ),
    "diagnosis_complexity": (
        "Complex diagnosis requires specialized follow-up care that may be limited in "
        "availability. These conditions often require coordination between multiple "
        "specialists.",
        "Moderately complex condition requiring regular follow-up with widely "
        "available treatment options. Care coordination may still be challenging.",
        "Routine condition with standard follow-up needs that are widely available in "
        "most healthcare networks.",
    ),
    "time_since_discharge": (
        "Long time since discharge significantly increases risk as patients lose "
        "momentum in their care journey. Follow-up compliance drops sharply after 14 days.",
        "The 7-14 day window after discharge is critical for maintaining care "
        "continuity and preventing complications.",
        "Recent discharge means the patient is still actively engaged with the care "
        "system. Early follow-up within 7 days is associated with better outcomes.",
    ),
    "insurance_type": (
        "Insurance limitations significantly restrict provider options. Medicaid and "
        "certain Medicare plans have more limited provider networks.",
        "Some network restrictions may apply, potentially limiting access to certain "
        "specialists or facilities. HMO plans typically restrict networks more than PPO plans.",
        "Good insurance coverage with a wide provider network offers flexibility in "
        "choosing follow-up care providers.",
    ),
    "geographic_factors": (
        "Location has limited access to needed providers. Outlying areas often lack "
        "specialists and may require extensive travel for appointments.",
        "Moderate distance to care facilities may present logistical challenges for "
        "regular follow-up visits, particularly without reliable transportation.",
        "Good geographic access to needed care providers minimizes travel barriers to "
        "regular follow-up appointments.",
    ),
    "previous_referral_history": (
        "History of missed or cancelled appointments indicates significant risk of "
        "future non-compliance.",
        "Mixed history of referral completion suggests moderate risk. Previous "
        "compliance issues may point to barriers that should be addressed.",
        "Good history of completing referrals demonstrates engagement with the care plan.",
    ),
}

FACTOR_INTERVENTIONS: dict[str, tuple[str, str]] = {
    "age": (
        "Consider arranging transportation assistance for elderly patient",
        "Evaluate need for caregiver involvement in follow-up planning",
    ),
    "diagnosis_complexity": (
        "Schedule care coordination call to ensure clear understanding of follow-up needs",
        "Provide detailed written instructions for complex care requirements",
    ),
    "time_since_discharge": (
        "Prioritize immediate outreach to re-engage patient in care plan",
        "Schedule follow-up appointment within 48-72 hours if possible",
    ),
    "insurance_type": (
        "Verify in-network providers before making referrals",
        "Consider patient financial assistance programs if needed",
    ),
    "geographic_factors": (
        "Explore telehealth options for follow-up care",
        "Identify providers closer to patient's location when possible",
    ),
    "previous_referral_history": (
        "Implement enhanced appointment reminders (calls, texts, emails)",
        "Discuss specific barriers to keeping appointments with patient",
    ),
}

STANDARD_FOLLOWUP = "Monitor patient progress through standard follow-up protocols"

RISK_SUMMARIES: dict[RiskLevel, str] = {
    RiskLevel.HIGH: (
        "This patient has a high risk of care discontinuity and requires immediate "
        "intervention to prevent leakage from the care network."
    ),
    RiskLevel.MEDIUM: (
        "This patient has a moderate risk of care discontinuity. Proactive follow-up "
        "is recommended to address barriers before they escalate."
    ),
    RiskLevel.LOW: (
        "This patient has a low risk of care discontinuity. Standard follow-up "
        "protocols are appropriate."
    ),
}


def explain_factor(name: str, value: int) -> str:
    """Explanation text for one factor at a given value.

    Raises:
        KeyError: If name is not a known factor
    """
    high, moderate, low = FACTOR_EXPLANATIONS[name]
    if value >= HIGH_FACTOR_THRESHOLD:
        return high
    if value >= MODERATE_FACTOR_THRESHOLD:
        return moderate
    return low


def top_factors(factors: RiskFactors, n: int = 2) -> list[str]:
    """Names of the n highest factors; ties keep declaration order."""
    values = factors.model_dump()
    return sorted(values, key=lambda name: values[name], reverse=True)[:n]


def recommend_interventions(factors: RiskFactors) -> list[str]:
    """Interventions for every factor at or above the high threshold."""
    recommendations: list[str] = []
    for name, value in factors.model_dump().items():
        if value >= HIGH_FACTOR_THRESHOLD:
            recommendations.extend(FACTOR_INTERVENTIONS[name])
    return recommendations or [STANDARD_FOLLOWUP]


def summarize_risk(level: RiskLevel | str) -> str:
    return RISK_SUMMARIES[RiskLevel(level)]
