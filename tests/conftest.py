"""
Shared fixtures: deterministic synthetic survey data.
"""

import numpy as np
import pandas as pd
import pytest

from msk_burnout.preprocessing.constants import PAIN_SITE_COLUMNS


def make_survey(n: int = 400, seed: int = 7) -> pd.DataFrame:
    """Synthetic respondents with a real trunk-pain -> work-burnout association."""
    rng = np.random.default_rng(seed)

    pain = rng.binomial(1, 0.3, size=(n, len(PAIN_SITE_COLUMNS)))
    trunk = pain[:, :3].max(axis=1)
    work_hours = rng.normal(40, 8, n).round(1)

    logit_j = -0.6 + 1.2 * trunk + 0.03 * (work_hours - 40)
    high_work_burnout = rng.binomial(1, 1 / (1 + np.exp(-logit_j)))
    j_score = np.where(
        high_work_burnout == 1,
        rng.uniform(45, 95, n),
        rng.uniform(5, 44.9, n),
    ).round(1)

    df = pd.DataFrame({
        "respondent_id": np.arange(1, n + 1),
        "seniority": rng.integers(1, 60, n),
        "age": rng.integers(18, 60, n),
        "gender": rng.choice([1, 2], n),
        "work_hours": work_hours,
        "sleep_hours": rng.normal(6.5, 1.0, n).round(1),
        "bsrs5": rng.integers(0, 21, n),
        "i_score": rng.uniform(0, 100, n).round(1),
        "j_score": j_score,
        "diabetes": rng.binomial(1, 0.15, n),
        "hypertension": rng.binomial(1, 0.2, n),
    })
    for i, col in enumerate(PAIN_SITE_COLUMNS):
        df[col] = pain[:, i]
    return df


def make_respondent(**overrides) -> dict:
    """One respondent with every pain indicator at 0."""
    row = {
        "respondent_id": 1,
        "seniority": 30,
        "age": 35,
        "gender": 2,
        "work_hours": 40.0,
        "sleep_hours": 7.0,
        "bsrs5": 12,
        "i_score": 55.0,
        "j_score": 50.0,
        "diabetes": 0,
        "hypertension": 0,
    }
    row.update({col: 0 for col in PAIN_SITE_COLUMNS})
    row.update(overrides)
    return row


@pytest.fixture
def survey() -> pd.DataFrame:
    return make_survey()


@pytest.fixture
def datasets(survey):
    from msk_burnout.preprocessing.datasets import build_pipeline_datasets

    return build_pipeline_datasets(survey, verbose=False)
