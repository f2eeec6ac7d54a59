"""
Core helpers for preprocessing.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional
import warnings

import numpy as np
import pandas as pd

from ..errors import MissingFieldError
from .constants import (
    COLUMN_ALIASES,
    FEMALE_TOKENS_EXACT,
    GENDER_FEMALE,
    GENDER_MALE,
    MALE_TOKENS_EXACT,
    RESPONDENT_ID,
)


def require_columns(df: pd.DataFrame, columns: Iterable[str], stage: Optional[str] = None) -> None:
    """Raise MissingFieldError naming every required column absent from df."""
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise MissingFieldError(missing, stage=stage, available=df.columns)


def normalize_column_name(name: object) -> str:
    cleaned = str(name).strip().lower()
    cleaned = re.sub(r"[\s\-]+", "_", cleaned)
    cleaned = re.sub(r"[^0-9a-z_]", "", cleaned)
    return COLUMN_ALIASES.get(cleaned, cleaned)


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Lower-case headers and map known aliases onto canonical names."""
    renamed = df.rename(columns={col: normalize_column_name(col) for col in df.columns})
    duplicated = renamed.columns[renamed.columns.duplicated()].tolist()
    if duplicated:
        raise ValueError(f"Duplicate columns after normalization: {duplicated}")
    return renamed


def ensure_respondent_id(df: pd.DataFrame, warn_threshold: float = 1.0) -> pd.DataFrame:
    """
    Ensure there is a 'respondent_id' column.
    Assigns 1..N in file order when the export carries no identifier.
    """
    if RESPONDENT_ID not in df.columns:
        df = df.copy()
        df.insert(0, RESPONDENT_ID, np.arange(1, len(df) + 1))
        return df

    missing_count = df[RESPONDENT_ID].isna().sum()
    missing_pct = missing_count / len(df) * 100 if len(df) > 0 else 0
    if missing_pct > warn_threshold:
        warnings.warn(
            f"respondent_id column has {missing_pct:.1f}% missing values ({missing_count}/{len(df)} rows).",
            UserWarning,
        )
    if df[RESPONDENT_ID].duplicated().any():
        warnings.warn("respondent_id contains duplicate values.", UserWarning)
    return df


def coerce_numeric(df: pd.DataFrame, columns: Iterable[str]) -> pd.DataFrame:
    present = [col for col in columns if col in df.columns]
    if not present:
        return df
    return df.assign(**{col: pd.to_numeric(df[col], errors="coerce") for col in present})


def _normalize_gender_string(value: object) -> str:
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    if isinstance(value, (float, np.floating)):
        if np.isnan(value) or not float(value).is_integer():
            return ""
        return str(int(value))
    if not isinstance(value, str):
        return ""
    cleaned = value.strip().lower()
    cleaned = re.sub(r"\.0+$", "", cleaned)
    return re.sub(r"[^0-9a-z]", "", cleaned)


def normalize_gender_value(value: object) -> Optional[int]:
    """
    Normalize gender text or codes to 1 (male) / 2 (female).
    Returns None if the value cannot be mapped.
    """
    token = _normalize_gender_string(value)
    if not token:
        return None
    if token in MALE_TOKENS_EXACT:
        return GENDER_MALE
    if token in FEMALE_TOKENS_EXACT:
        return GENDER_FEMALE
    return None


def normalize_gender_series(series: pd.Series) -> pd.Series:
    mapped = series.map(normalize_gender_value)
    return pd.Series(mapped, index=series.index).astype("Int64")
