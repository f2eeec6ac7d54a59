"""Shared constants for preprocessing and analysis."""

from pathlib import Path

import numpy as np
import pandas as pd

# Directory paths
REPO_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = REPO_DIR / "data"
RAW_DIR = DATA_DIR / "raw"
DEFAULT_DATASET_PATH = RAW_DIR / "fastfood_survey.csv"

OUTPUTS_DIR = REPO_DIR / "outputs"
OUTPUT_STATS_DIR = OUTPUTS_DIR / "stats"
OUTPUT_FIGURES_DIR = OUTPUTS_DIR / "figures"
OUTPUT_DATASETS_DIR = OUTPUTS_DIR / "datasets"

VALID_BUCKETS = {"core", "supplementary"}


def get_output_dir(bucket: str = "core", root: Path | None = None) -> Path:
    """Return (and create) the stats output directory for a bucket."""
    if bucket not in VALID_BUCKETS:
        raise ValueError(f"Unknown output bucket: {bucket}. Valid buckets: {sorted(VALID_BUCKETS)}")
    base = OUTPUT_STATS_DIR if root is None else Path(root) / "stats"
    out = base / bucket
    out.mkdir(parents=True, exist_ok=True)
    return out


def get_figures_dir(root: Path | None = None) -> Path:
    out = OUTPUT_FIGURES_DIR if root is None else Path(root) / "figures"
    out.mkdir(parents=True, exist_ok=True)
    return out


# Canonical columns
RESPONDENT_ID = "respondent_id"
SENIORITY = "seniority"
AGE = "age"
WORK_HOURS = "work_hours"
SLEEP_HOURS = "sleep_hours"
BSRS5 = "bsrs5"
PERSONAL_BURNOUT = "i_score"
WORK_BURNOUT = "j_score"
GENDER = "gender"
DIABETES = "diabetes"
HYPERTENSION = "hypertension"

PAIN_SITE_COLUMNS = [
    "pain_neck",
    "pain_upper_back",
    "pain_lower_back",
    "pain_shoulders",
    "pain_elbows",
    "pain_wrists",
    "pain_hips",
    "pain_knees",
    "pain_ankles",
]

NUMERIC_COLUMNS = [
    SENIORITY,
    AGE,
    WORK_HOURS,
    SLEEP_HOURS,
    BSRS5,
    PERSONAL_BURNOUT,
    WORK_BURNOUT,
    DIABETES,
    HYPERTENSION,
] + PAIN_SITE_COLUMNS

# Raw header spellings seen in survey exports
COLUMN_ALIASES = {
    "id": RESPONDENT_ID,
    "respondent": RESPONDENT_ID,
    "respondentid": RESPONDENT_ID,
    "subject_id": RESPONDENT_ID,
    "seniority_months": SENIORITY,
    "tenure": SENIORITY,
    "workhours": WORK_HOURS,
    "work_hour": WORK_HOURS,
    "hours_worked": WORK_HOURS,
    "sleep": SLEEP_HOURS,
    "sleephours": SLEEP_HOURS,
    "bsrs": BSRS5,
    "bsrs_5": BSRS5,
    "bsrs5_score": BSRS5,
    "sex": GENDER,
    "dm": DIABETES,
    "htn": HYPERTENSION,
    "neck": "pain_neck",
    "upper_back": "pain_upper_back",
    "lower_back": "pain_lower_back",
    "shoulders": "pain_shoulders",
    "elbows": "pain_elbows",
    "wrists": "pain_wrists",
    "hips": "pain_hips",
    "knees": "pain_knees",
    "ankles": "pain_ankles",
}

# Gender coding: 1 = male (regression reference level), 2 = female
GENDER_MALE = 1
GENDER_FEMALE = 2
MALE_TOKENS_EXACT = {"1", "m", "male", "man", "men"}
FEMALE_TOKENS_EXACT = {"2", "f", "female", "woman", "women"}

# Derived band columns
B_SCORE = "b_score"
I_SCORE_BAND = "i_score1"
J_SCORE_BAND = "j_score1"

# Inclusive cut-points as pandas Intervals, keyed by band code
BSRS5_BANDS = {
    1: pd.Interval(0, 5, closed="both"),
    2: pd.Interval(6, 9, closed="both"),
    3: pd.Interval(10, 14, closed="both"),
    4: pd.Interval(15, np.inf, closed="left"),
}
PERSONAL_BURNOUT_BANDS = {
    0: pd.Interval(0, 50, closed="left"),
    1: pd.Interval(50, 70, closed="both"),
    2: pd.Interval(70, np.inf, closed="neither"),
}
WORK_BURNOUT_BANDS = {
    0: pd.Interval(0, 45, closed="left"),
    1: pd.Interval(45, 60, closed="both"),
    2: pd.Interval(60, np.inf, closed="neither"),
}

# source column -> (band column, bands)
SCORE_RECODES = {
    BSRS5: (B_SCORE, BSRS5_BANDS),
    PERSONAL_BURNOUT: (I_SCORE_BAND, PERSONAL_BURNOUT_BANDS),
    WORK_BURNOUT: (J_SCORE_BAND, WORK_BURNOUT_BANDS),
}
BAND_COLUMNS = [B_SCORE, I_SCORE_BAND, J_SCORE_BAND]

# Region flags
REGION_COLUMNS = ["GROUP1", "GROUP2", "GROUP3"]
REGION_LABELS = {
    "GROUP1": "Trunk",
    "GROUP2": "Upper extremity",
    "GROUP3": "Lower extremity",
}

# Binary high-risk flags: flag column -> (band column, flag is 1 when band > threshold)
RISK_FLAGS = {
    "BGROUP": (B_SCORE, 2),
    "IGROUP": (I_SCORE_BAND, 0),
    "JGROUP": (J_SCORE_BAND, 0),
}

# Fixed median split of seniority (months)
SENIORITY_CAT = "seniority_cat"
SENIORITY_MEDIAN_MONTHS = 22

# Descriptive statistics: (column, display label)
DESCRIPTIVE_VARS = [
    (SENIORITY, "Seniority (months)"),
    (AGE, "Age (years)"),
    (WORK_HOURS, "Work hours (per week)"),
    (SLEEP_HOURS, "Sleep hours (per day)"),
]

CATEGORICAL_VARS = [GENDER] + BAND_COLUMNS + REGION_COLUMNS + list(RISK_FLAGS)

# Subgroup minimums
MIN_SUBGROUP_N = 1
MIN_SHAPIRO_N = 3
SPARSE_EXPECTED_COUNT = 5
