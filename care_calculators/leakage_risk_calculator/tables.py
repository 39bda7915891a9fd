"""Keyword tables for leakage risk scoring.

Each table is an explicit, ordered constant so the clinical scoring rule can
be audited line by line. Matching is case-insensitive substring; the first
row that matches wins.
"""

# Procedures whose follow-up needs specialized, scarce care
HIGH_COMPLEXITY_PROCEDURES: tuple[str, ...] = (
    "cardiac catheterization",
    "coronary artery bypass",
    "spinal fusion",
    "spine surgery",
    "lung surgery",
    "kidney surgery",
    "liver surgery",
    "brain surgery",
    "heart surgery",
)

MODERATE_COMPLEXITY_PROCEDURES: tuple[str, ...] = (
    "hip replacement",
    "knee replacement",
    "shoulder replacement",
    "prostate surgery",
    "gallbladder surgery",
    "hernia repair",
)

LOW_COMPLEXITY_PROCEDURES: tuple[str, ...] = (
    "cataract surgery",
    "thyroid surgery",
    "breast surgery",
    "appendectomy",
    "colonoscopy",
)

DIAGNOSIS_COMPLEXITY_RISK: tuple[tuple[tuple[str, ...], int], ...] = (
    (HIGH_COMPLEXITY_PROCEDURES, 85),
    (MODERATE_COMPLEXITY_PROCEDURES, 65),
    (LOW_COMPLEXITY_PROCEDURES, 25),
)
DEFAULT_DIAGNOSIS_RISK = 50

# Order matters: "Medicare Advantage HMO" is a Medicare plan first
INSURANCE_RISK: tuple[tuple[tuple[str, ...], int], ...] = (
    (("medicaid",), 85),
    (("medicare",), 75),
    (("hmo", "kaiser"), 60),
    (("blue cross", "united", "aetna", "cigna"), 25),
)
DEFAULT_INSURANCE_RISK = 50

GEOGRAPHIC_RISK: tuple[tuple[tuple[str, ...], int], ...] = (
    # Core city, next to the major medical centers
    (("boston", "cambridge", "longwood"), 20),
    # Near suburbs
    (("brookline", "somerville", "newton", "watertown"), 35),
    # Outer suburbs
    (("quincy", "medford", "malden", "waltham"), 55),
)
UNLISTED_AREA_RISK = 80

# (minimum age, normalized risk); raw 30/25/20/15/10/5 points over 30
AGE_RISK_BANDS: tuple[tuple[int, int], ...] = (
    (80, 100),
    (70, 83),
    (60, 67),
    (50, 50),
    (40, 33),
)
YOUNGEST_AGE_RISK = 17

# (minimum days since discharge, normalized risk); raw 20/16/12/8/4/1 over 20
TIME_RISK_BANDS: tuple[tuple[int, int], ...] = (
    (14, 100),
    (10, 80),
    (7, 60),
    (5, 40),
    (3, 20),
)
RECENT_DISCHARGE_RISK = 5

# Factor weights in percentage points; they sum to 100
RISK_WEIGHTS: dict[str, int] = {
    "age": 25,
    "diagnosis_complexity": 25,
    "time_since_discharge": 15,
    "insurance_type": 15,
    "geographic_factors": 10,
    "previous_referral_history": 10,
}

# Substitutes for missing inputs
MISSING_AGE_RISK = 50  # raw 15 of 30
MISSING_TIME_RISK = 25  # raw 5 of 20
MISSING_INSURANCE_RISK = 50
MISSING_ADDRESS_RISK = 50
NO_REFERRAL_HISTORY_RISK = 50

HIGH_RISK_THRESHOLD = 70
MEDIUM_RISK_THRESHOLD = 40
