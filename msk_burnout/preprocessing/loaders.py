"""Survey dataset loader."""

from __future__ import annotations

from pathlib import Path

import pandas as pd

from .constants import DEFAULT_DATASET_PATH, GENDER, NUMERIC_COLUMNS
from .core import coerce_numeric, ensure_respondent_id, normalize_columns, normalize_gender_series


def read_table(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix in {".xlsx", ".xls"}:
        return pd.read_excel(path)
    if suffix == ".tsv":
        return pd.read_csv(path, sep="\t", encoding="utf-8-sig")
    return pd.read_csv(path, encoding="utf-8-sig")


def prepare_survey_frame(df: pd.DataFrame) -> pd.DataFrame:
    """
    Canonicalize a raw survey export.

    Headers are normalized, a respondent id is ensured, numeric fields are
    coerced (unparseable cells become NaN) and gender is mapped to 1/2.
    """
    df = normalize_columns(df)
    df = ensure_respondent_id(df)
    df = coerce_numeric(df, NUMERIC_COLUMNS)
    if GENDER in df.columns:
        df = df.assign(**{GENDER: normalize_gender_series(df[GENDER])})
    return df.reset_index(drop=True)


def load_survey_dataset(path: Path | str | None = None, verbose: bool = False) -> pd.DataFrame:
    if path is None:
        path = DEFAULT_DATASET_PATH
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Survey dataset not found: {path}")

    df = prepare_survey_frame(read_table(path))
    if verbose:
        print(f"  [LOAD] {path.name}: {len(df)} rows, {len(df.columns)} cols")
        if GENDER in df.columns:
            n_unmapped = int(df[GENDER].isna().sum())
            if n_unmapped:
                print(f"  [WARN] gender could not be mapped for {n_unmapped} rows")
    return df
