"""
Pain-site to anatomical region aggregation.

GROUP1 (trunk)            neck, upper back, lower back
GROUP2 (upper extremity)  shoulders, elbows, wrists
GROUP3 (lower extremity)  hips, knees, ankles
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Union

import pandas as pd

from ..errors import MissingFieldError
from .constants import PAIN_SITE_COLUMNS, REGION_LABELS
from .core import require_columns

STAGE = "regions"


class PainSite(str, Enum):
    NECK = "pain_neck"
    UPPER_BACK = "pain_upper_back"
    LOWER_BACK = "pain_lower_back"
    SHOULDERS = "pain_shoulders"
    ELBOWS = "pain_elbows"
    WRISTS = "pain_wrists"
    HIPS = "pain_hips"
    KNEES = "pain_knees"
    ANKLES = "pain_ankles"

    @property
    def column(self) -> str:
        return self.value


REGION_SITES: Dict[str, List[PainSite]] = {
    "GROUP1": [PainSite.NECK, PainSite.UPPER_BACK, PainSite.LOWER_BACK],
    "GROUP2": [PainSite.SHOULDERS, PainSite.ELBOWS, PainSite.WRISTS],
    "GROUP3": [PainSite.HIPS, PainSite.KNEES, PainSite.ANKLES],
}


def resolve_site(site: Union[PainSite, str], stage: str = STAGE) -> PainSite:
    """
    Map a PainSite, its column name ('pain_knees'), member name ('KNEES')
    or short name ('knees') onto PainSite.
    """
    if isinstance(site, PainSite):
        return site
    token = str(site).strip()
    try:
        return PainSite(token)
    except ValueError:
        pass
    key = token.upper()
    if key.startswith("PAIN_"):
        key = key[len("PAIN_"):]
    if key in PainSite.__members__:
        return PainSite[key]
    raise MissingFieldError([token], stage=stage, available=PAIN_SITE_COLUMNS)


def region_flag(df: pd.DataFrame, sites: List[PainSite]) -> pd.Series:
    """1 when any of the site indicators equals 1, else 0."""
    columns = [site.column for site in sites]
    return (df[columns] == 1).any(axis=1).astype(int)


def add_region_flags(df: pd.DataFrame, verbose: bool = True) -> pd.DataFrame:
    require_columns(df, PAIN_SITE_COLUMNS, stage=STAGE)
    flagged = df.assign(**{region: region_flag(df, sites) for region, sites in REGION_SITES.items()})
    if verbose:
        counts = ", ".join(
            f"{REGION_LABELS[region]}={int(flagged[region].sum())}" for region in REGION_SITES
        )
        print(f"  [REGIONS] respondents with pain: {counts} (N={len(flagged)})")
    return flagged
