"""
Preprocessing Module
====================

Loading, recoding and dataset derivation for the fast-food worker survey.

    from msk_burnout.preprocessing import load_survey_dataset, build_pipeline_datasets
    raw = load_survey_dataset("data/raw/fastfood_survey.csv")
    datasets = build_pipeline_datasets(raw)
    datasets.logit_prep, datasets.female, datasets.senior
"""

from .constants import (
    BAND_COLUMNS,
    DESCRIPTIVE_VARS,
    PAIN_SITE_COLUMNS,
    REGION_COLUMNS,
    SENIORITY_MEDIAN_MONTHS,
    get_output_dir,
)
from .core import (
    ensure_respondent_id,
    normalize_gender_series,
    normalize_gender_value,
    require_columns,
)
from .loaders import load_survey_dataset, prepare_survey_frame
from .recode import (
    band_series,
    bsrs5_band,
    classify_score,
    personal_burnout_band,
    recode_scores,
    unclassified_summary,
    work_burnout_band,
)
from .regions import REGION_SITES, PainSite, add_region_flags, resolve_site
from .datasets import (
    PipelineDatasets,
    add_risk_flags,
    add_seniority_category,
    build_pipeline_datasets,
    median_seniority,
    save_datasets,
    split_by_gender,
    split_by_seniority,
)

__all__ = [
    "BAND_COLUMNS",
    "DESCRIPTIVE_VARS",
    "PAIN_SITE_COLUMNS",
    "REGION_COLUMNS",
    "SENIORITY_MEDIAN_MONTHS",
    "get_output_dir",
    "ensure_respondent_id",
    "normalize_gender_series",
    "normalize_gender_value",
    "require_columns",
    "load_survey_dataset",
    "prepare_survey_frame",
    "band_series",
    "bsrs5_band",
    "classify_score",
    "personal_burnout_band",
    "recode_scores",
    "unclassified_summary",
    "work_burnout_band",
    "REGION_SITES",
    "PainSite",
    "add_region_flags",
    "resolve_site",
    "PipelineDatasets",
    "add_risk_flags",
    "add_seniority_category",
    "build_pipeline_datasets",
    "median_seniority",
    "save_datasets",
    "split_by_gender",
    "split_by_seniority",
]
