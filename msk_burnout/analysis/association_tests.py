"""
Chi-square Association Tests
============================

Pearson chi-square tests of independence between pain regions/sites and
depression or burnout severity bands.

    - Region x band: GROUP1..GROUP3 crossed with b_score, i_score1, j_score1
    - Site x band: any of the nine pain-site indicators crossed with a band
      (j_score1 by default)

Output:
    outputs/stats/core/chi_square_region_band.csv
    outputs/stats/core/chi_square_site_j_score1.csv
    outputs/stats/supplementary/contingency_tables.csv
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd
from scipy import stats

from ..preprocessing.constants import (
    BAND_COLUMNS,
    J_SCORE_BAND,
    REGION_COLUMNS,
    SPARSE_EXPECTED_COUNT,
)
from ..preprocessing.core import require_columns
from ..preprocessing.datasets import PipelineDatasets
from ..preprocessing.regions import PainSite, resolve_site
from .utils import format_pvalue, print_section_header, resolve_output_dir, save_table, significance_stars

STAGE = "association"


def contingency_table(df: pd.DataFrame, row: str, col: str, stage: str = STAGE) -> pd.DataFrame:
    """Observed counts; rows with either variable missing are excluded."""
    require_columns(df, [row, col], stage=stage)
    complete = df[[row, col]].dropna()
    return pd.crosstab(complete[row], complete[col])


def chi_square_test(df: pd.DataFrame, row: str, col: str, stage: str = STAGE) -> Dict[str, Any]:
    """
    Pearson chi-square test of independence for row x col.

    Returns
    -------
    dict
        chi2, dof, p_value, n, cramers_v, min_expected, pct_expected_lt5 and
        the observed 'table'
    """
    table = contingency_table(df, row, col, stage=stage)
    n = int(table.to_numpy().sum())
    result: Dict[str, Any] = {
        'row': row,
        'col': col,
        'n': n,
        'chi2': np.nan,
        'dof': 0,
        'p_value': np.nan,
        'cramers_v': np.nan,
        'min_expected': np.nan,
        'pct_expected_lt5': np.nan,
        'table': table,
    }
    if n == 0 or min(table.shape) < 2:
        warnings.warn(
            f"{row} x {col}: table is {table.shape[0]}x{table.shape[1]} (N={n}); chi-square undefined.",
            UserWarning,
        )
        return result

    chi2, p_value, dof, expected = stats.chi2_contingency(table.to_numpy(), correction=False)
    min_dim = min(table.shape) - 1
    pct_sparse = float((expected < SPARSE_EXPECTED_COUNT).mean() * 100)
    if pct_sparse > 20:
        warnings.warn(
            f"{row} x {col}: {pct_sparse:.0f}% of cells have expected count < {SPARSE_EXPECTED_COUNT}; "
            "chi-square may not be valid.",
            UserWarning,
        )

    result.update({
        'chi2': float(chi2),
        'dof': int(dof),
        'p_value': float(p_value),
        'cramers_v': float(np.sqrt(chi2 / (n * min_dim))),
        'min_expected': float(expected.min()),
        'pct_expected_lt5': pct_sparse,
    })
    return result


def _results_frame(results: list[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame([{k: v for k, v in res.items() if k != 'table'} for res in results])


def region_band_tests(
    df: pd.DataFrame,
    regions: list[str] = REGION_COLUMNS,
    bands: list[str] = BAND_COLUMNS,
) -> pd.DataFrame:
    """Chi-square for every region flag crossed with every severity band."""
    require_columns(df, list(regions) + list(bands), stage=STAGE)
    return _results_frame([chi_square_test(df, region, band) for region in regions for band in bands])


def site_band_test(
    df: pd.DataFrame,
    site: Union[PainSite, str],
    band: str = J_SCORE_BAND,
) -> Dict[str, Any]:
    """
    Chi-square of one pain-site indicator against a severity band.

    `site` may be a PainSite or a site/column name; anything that is not one
    of the nine sites, or a site column absent from df, raises
    MissingFieldError.
    """
    resolved = resolve_site(site, stage=STAGE)
    result = chi_square_test(df, resolved.column, band)
    result['site'] = resolved.name.lower()
    return result


def all_site_band_tests(df: pd.DataFrame, band: str = J_SCORE_BAND) -> pd.DataFrame:
    return _results_frame([site_band_test(df, site, band) for site in PainSite])


def tables_long(results: list[Dict[str, Any]]) -> pd.DataFrame:
    """Stack contingency tables into long form (row, col, row_level, col_level, count)."""
    frames = []
    for res in results:
        table = res['table']
        if table.empty:
            continue
        long = (
            table.rename_axis(index='row_level', columns='col_level')
            .reset_index()
            .melt(id_vars='row_level', value_name='count')
        )
        long.insert(0, 'col', res['col'])
        long.insert(0, 'row', res['row'])
        frames.append(long)
    if not frames:
        return pd.DataFrame(columns=['row', 'col', 'row_level', 'col_level', 'count'])
    return pd.concat(frames, ignore_index=True)


def _print_results(title: str, results_df: pd.DataFrame) -> None:
    print(f"\n  {title}")
    print("  " + "-" * 65)
    print(f"  {'Row':<18} {'Column':<10} {'N':>5} {'chi2':>9} {'df':>4} {'p':>9} {'V':>7}")
    print("  " + "-" * 65)
    for _, row in results_df.iterrows():
        print(
            f"  {row['row']:<18} {row['col']:<10} {row['n']:>5} {row['chi2']:>9.3f} {row['dof']:>4} "
            f"{format_pvalue(row['p_value']):>9} {row['cramers_v']:>7.3f}{significance_stars(row['p_value'])}"
        )


def run(
    datasets: PipelineDatasets,
    output_root: Optional[Path] = None,
    save: bool = True,
    verbose: bool = True,
    run_supplementary: bool = True,
    site_band: str = J_SCORE_BAND,
) -> dict[str, pd.DataFrame]:
    """
    Run region x band tests and the per-site test for all nine sites.
    """
    if verbose:
        print_section_header("CHI-SQUARE ASSOCIATION TESTS")

    df = datasets.regions
    region_results = [chi_square_test(df, region, band) for region in REGION_COLUMNS for band in BAND_COLUMNS]
    site_results = [site_band_test(df, site, site_band) for site in PainSite]

    results = {
        'region_band': _results_frame(region_results),
        'site_band': _results_frame(site_results),
    }
    if run_supplementary:
        results['tables'] = tables_long(region_results + site_results)

    if verbose:
        _print_results("Region x severity band", results['region_band'])
        _print_results(f"Pain site x {site_band}", results['site_band'])

    if save:
        output_dir = resolve_output_dir(output_root, "core")
        if verbose:
            print("\n  Output files:")
        save_table(results['region_band'], output_dir / "chi_square_region_band.csv", verbose)
        save_table(results['site_band'], output_dir / f"chi_square_site_{site_band}.csv", verbose)
        if 'tables' in results:
            supp_dir = resolve_output_dir(output_root, "supplementary")
            save_table(results['tables'], supp_dir / "contingency_tables.csv", verbose)

    return results
