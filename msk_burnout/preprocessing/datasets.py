"""
Named analysis datasets.

Each builder returns a new frame with derived columns appended; no builder
mutates the frame it is given. `build_pipeline_datasets` chains them into
the immutable set of named frames consumed by the analyses:

    raw -> recoded -> regions -> logit_prep -> male / female, junior / senior
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd

from ..errors import EmptySubgroupError, PipelineError, UnclassifiedValueError
from .constants import (
    GENDER,
    GENDER_FEMALE,
    GENDER_MALE,
    RISK_FLAGS,
    SENIORITY,
    SENIORITY_CAT,
    SENIORITY_MEDIAN_MONTHS,
)
from .core import require_columns
from .recode import recode_scores
from .regions import add_region_flags


def _threshold_flag(band: pd.Series, threshold: int) -> pd.Series:
    flag = (band > threshold).astype("Int64")
    return flag.where(band.notna(), pd.NA)


def add_risk_flags(df: pd.DataFrame) -> pd.DataFrame:
    """BGROUP = b_score > 2, IGROUP = i_score1 > 0, JGROUP = j_score1 > 0."""
    require_columns(df, [band for band, _ in RISK_FLAGS.values()], stage="risk_flags")
    return df.assign(**{
        flag: _threshold_flag(df[band].astype("Int64"), threshold)
        for flag, (band, threshold) in RISK_FLAGS.items()
    })


def add_seniority_category(df: pd.DataFrame, cut: float = SENIORITY_MEDIAN_MONTHS) -> pd.DataFrame:
    """seniority_cat = 1 below the cut, 2 at or above it; missing stays missing."""
    require_columns(df, [SENIORITY], stage="seniority_split")
    seniority = pd.to_numeric(df[SENIORITY], errors="coerce")
    category = pd.Series(pd.NA, index=df.index, dtype="Int64")
    category[seniority < cut] = 1
    category[seniority >= cut] = 2
    return df.assign(**{SENIORITY_CAT: category})


def median_seniority(df: pd.DataFrame) -> float:
    require_columns(df, [SENIORITY], stage="seniority_split")
    return float(pd.to_numeric(df[SENIORITY], errors="coerce").median())


def split_by_gender(df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Partition respondents into (male, female).

    Every row must carry gender 1 or 2 so the two frames cover the input
    exactly; anything else raises UnclassifiedValueError.
    """
    require_columns(df, [GENDER], stage="gender_split")
    gender = df[GENDER]
    is_male = (gender == GENDER_MALE).fillna(False).astype(bool)
    is_female = (gender == GENDER_FEMALE).fillna(False).astype(bool)
    invalid = ~(is_male | is_female)
    if invalid.any():
        raise UnclassifiedValueError(
            GENDER,
            int(invalid.sum()),
            df.loc[invalid, GENDER].head(3).tolist(),
            stage="gender_split",
        )
    return df[is_male].copy(), df[is_female].copy()


def split_by_seniority(df: pd.DataFrame) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Return (junior, senior) for seniority_cat 1 and 2."""
    require_columns(df, [SENIORITY_CAT], stage="seniority_split")
    category = df[SENIORITY_CAT]
    junior = df[(category == 1).fillna(False).astype(bool)].copy()
    senior = df[(category == 2).fillna(False).astype(bool)].copy()
    return junior, senior


def require_rows(df: pd.DataFrame, subgroup: str, stage: str, min_n: int = 1) -> pd.DataFrame:
    if len(df) < min_n:
        raise EmptySubgroupError(subgroup, len(df), stage=stage, min_n=min_n)
    return df


@dataclass(frozen=True, eq=False)
class PipelineDatasets:
    raw: pd.DataFrame
    recoded: pd.DataFrame
    regions: pd.DataFrame
    logit_prep: pd.DataFrame
    male: Optional[pd.DataFrame] = None
    female: Optional[pd.DataFrame] = None
    junior: Optional[pd.DataFrame] = None
    senior: Optional[pd.DataFrame] = None
    failures: Tuple[PipelineError, ...] = ()

    def as_dict(self) -> Dict[str, pd.DataFrame]:
        """Named frames that were built (failed splits are omitted)."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name != "failures" and getattr(self, f.name) is not None
        }

    def get(self, name: str) -> pd.DataFrame:
        """
        Return a named frame, raising the split failure that prevented it
        from being built when there is one.
        """
        valid = [f.name for f in fields(self) if f.name != "failures"]
        if name not in valid:
            raise ValueError(f"Unknown dataset: {name}. Valid datasets: {valid}")
        frame = getattr(self, name)
        if frame is None:
            for failure in self.failures:
                if name in failure.context.get("datasets", ()):
                    raise failure
            raise EmptySubgroupError(name, 0, stage="datasets")
        return frame


def build_pipeline_datasets(
    raw: pd.DataFrame,
    strict: bool = False,
    seniority_cut: float = SENIORITY_MEDIAN_MONTHS,
    verbose: bool = True,
) -> PipelineDatasets:
    """
    Run the recoding, region and outcome stages, then the two subgroup splits.

    Errors in the upstream stages propagate. A failed split is recorded in
    `failures` and only its own frames are left unset.
    """
    if verbose:
        print("=" * 60)
        print("Analysis dataset build")
        print("=" * 60)

    raw = raw.copy()
    recoded = recode_scores(raw, strict=strict, verbose=verbose)
    regions = add_region_flags(recoded, verbose=verbose)
    logit_prep = add_seniority_category(add_risk_flags(regions), cut=seniority_cut)

    splits: Dict[str, Optional[pd.DataFrame]] = {}
    failures = []
    for names, splitter in [(("male", "female"), split_by_gender), (("junior", "senior"), split_by_seniority)]:
        try:
            splits.update(zip(names, splitter(logit_prep)))
        except PipelineError as exc:
            exc.context["datasets"] = names
            failures.append(exc)
            splits.update(dict.fromkeys(names))
            if verbose:
                print(f"  [WARN] {exc}")

    if verbose:
        if splits["male"] is not None:
            print(f"  [SPLIT] male={len(splits['male'])}, female={len(splits['female'])}")
        if splits["senior"] is not None:
            print(
                f"  [SPLIT] seniority < {seniority_cut:g}: {len(splits['junior'])}, "
                f">= {seniority_cut:g}: {len(splits['senior'])} "
                f"(sample median={median_seniority(logit_prep):.1f})"
            )

    return PipelineDatasets(
        raw=raw,
        recoded=recoded,
        regions=regions,
        logit_prep=logit_prep,
        failures=tuple(failures),
        **splits,
    )


def save_datasets(datasets: PipelineDatasets, output_dir: Path, verbose: bool = True) -> None:
    output_dir.mkdir(parents=True, exist_ok=True)
    for name, frame in datasets.as_dict().items():
        path = output_dir / f"{name}.csv"
        frame.to_csv(path, index=False, encoding="utf-8-sig")
        if verbose:
            print(f"  [SAVE] {path}")
