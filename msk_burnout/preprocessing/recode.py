"""
Clinical cut-point recoding
===========================

Bands BSRS-5 totals and Copenhagen Burnout Inventory scores into the
severity categories used throughout the analyses.

    b_score   BSRS-5       [0-5]=1  [6-9]=2  [10-14]=3  [>=15]=4
    i_score1  personal CBI <50=0    [50-70]=1 >70=2
    j_score1  work CBI     <45=0    [45-60]=1 >60=2

Values that fall in no band (negative, missing, or a fractional BSRS-5 total
between two integer bands) are left unclassified: the band column holds
<NA> rather than a default band.
"""

from __future__ import annotations

import warnings
from typing import Mapping, Optional

import numpy as np
import pandas as pd

from ..errors import UnclassifiedValueError
from .constants import (
    BSRS5_BANDS,
    PERSONAL_BURNOUT_BANDS,
    SCORE_RECODES,
    WORK_BURNOUT_BANDS,
)
from .core import require_columns

STAGE = "recode"

Bands = Mapping[int, pd.Interval]


def classify_score(value: object, bands: Bands) -> Optional[int]:
    """Return the band code containing value, or None when unclassified."""
    if value is None or value is pd.NA:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if np.isnan(number):
        return None
    for code, interval in bands.items():
        if number in interval:
            return int(code)
    return None


def bsrs5_band(value: object) -> Optional[int]:
    return classify_score(value, BSRS5_BANDS)


def personal_burnout_band(value: object) -> Optional[int]:
    return classify_score(value, PERSONAL_BURNOUT_BANDS)


def work_burnout_band(value: object) -> Optional[int]:
    return classify_score(value, WORK_BURNOUT_BANDS)


def _interval_mask(values: pd.Series, interval: pd.Interval) -> pd.Series:
    lower = values >= interval.left if interval.closed_left else values > interval.left
    upper = values <= interval.right if interval.closed_right else values < interval.right
    return lower & upper


def band_series(series: pd.Series, bands: Bands) -> pd.Series:
    """Vectorized classify_score; unclassified rows are <NA> in an Int64 series."""
    values = pd.to_numeric(series, errors="coerce").astype(float)
    out = pd.Series(pd.NA, index=series.index, dtype="Int64")
    for code, interval in bands.items():
        mask = _interval_mask(values, interval).fillna(False).astype(bool)
        out[mask] = int(code)
    return out


def recode_scores(df: pd.DataFrame, strict: bool = False, verbose: bool = True) -> pd.DataFrame:
    """
    Add b_score, i_score1 and j_score1 to a copy of df.

    Source score columns are left untouched. Unclassified values trigger a
    UserWarning, or UnclassifiedValueError when strict is True.
    """
    require_columns(df, list(SCORE_RECODES), stage=STAGE)

    derived = {}
    for source, (target, bands) in SCORE_RECODES.items():
        banded = band_series(df[source], bands)
        unclassified = banded.isna()
        n_unclassified = int(unclassified.sum())
        if n_unclassified:
            examples = df.loc[unclassified, source].head(3).tolist()
            if strict:
                raise UnclassifiedValueError(source, n_unclassified, examples, stage=STAGE)
            warnings.warn(
                f"{n_unclassified} value(s) in '{source}' are unclassified; '{target}' left missing "
                f"(e.g. {examples}).",
                UserWarning,
            )
        derived[target] = banded

    recoded = df.assign(**derived)
    if verbose:
        counts = ", ".join(
            f"{target}={int(recoded[target].notna().sum())}" for target, _ in SCORE_RECODES.values()
        )
        print(f"  [RECODE] classified rows: {counts} (N={len(recoded)})")
    return recoded


def unclassified_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Per-score count of rows whose band is unclassified."""
    rows = []
    for source, (target, _) in SCORE_RECODES.items():
        if target not in df.columns:
            continue
        rows.append({
            'source': source,
            'band': target,
            'n_total': len(df),
            'n_unclassified': int(df[target].isna().sum()),
            'n_source_missing': int(df[source].isna().sum()) if source in df.columns else np.nan,
        })
    return pd.DataFrame(rows)
