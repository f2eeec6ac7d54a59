"""
Descriptive Statistics Analysis
===============================

Table-1 style summaries (N, Mean, SD, Median) with Shapiro-Wilk normality
diagnostics for the continuous work/sleep variables, plus frequency tables
for gender, severity bands and pain regions.

Variables:
    - seniority (months), age, work hours, sleep hours

Output:
    outputs/stats/core/table1_descriptives.csv
    outputs/stats/core/table1_categorical.csv
    outputs/stats/supplementary/table1_descriptives_by_gender.csv
    outputs/figures/normality_<variable>.png
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from scipy import stats

from ..preprocessing.constants import (
    CATEGORICAL_VARS,
    DESCRIPTIVE_VARS,
    GENDER,
    GENDER_FEMALE,
    GENDER_MALE,
    MIN_SHAPIRO_N,
    get_figures_dir,
)
from ..preprocessing.core import require_columns
from ..preprocessing.datasets import PipelineDatasets
from .utils import print_section_header, resolve_output_dir, save_table

STAGE = "descriptives"


def compute_descriptive_stats(
    df: pd.DataFrame,
    variables: list[tuple[str, str]] = DESCRIPTIVE_VARS,
    group_label: str = "Total",
) -> pd.DataFrame:
    """
    Compute descriptive statistics and normality tests for continuous variables.

    Parameters
    ----------
    df : pd.DataFrame
        Input dataframe
    variables : list of (column_name, display_label) tuples
        Variables to analyze, in report order
    group_label : str
        Label for this group (e.g., "Total", "Male", "Female")

    Returns
    -------
    pd.DataFrame
        One row per variable with N, Mean, SD, Median, Min, Max, Skewness,
        Kurtosis and the Shapiro-Wilk W statistic and p-value
    """
    require_columns(df, [col for col, _ in variables], stage=STAGE)

    results = []
    for col, label in variables:
        series = pd.to_numeric(df[col], errors="coerce").dropna()
        n = len(series)

        if n >= MIN_SHAPIRO_N and series.nunique() > 1:
            shapiro_w, shapiro_p = stats.shapiro(series)
        else:
            shapiro_w, shapiro_p = np.nan, np.nan

        results.append({
            'Group': group_label,
            'Variable': label,
            'Column': col,
            'N': n,
            'Mean': series.mean() if n else np.nan,
            'SD': series.std() if n > 1 else np.nan,
            'Median': series.median() if n else np.nan,
            'Min': series.min() if n else np.nan,
            'Max': series.max() if n else np.nan,
            'Skewness': stats.skew(series) if n > 2 else np.nan,
            'Kurtosis': stats.kurtosis(series) if n > 2 else np.nan,
            'Shapiro_W': float(shapiro_w),
            'Shapiro_p': float(shapiro_p),
        })

    return pd.DataFrame(results)


def normality_plot_data(
    df: pd.DataFrame,
    variables: list[tuple[str, str]] = DESCRIPTIVE_VARS,
) -> Dict[str, pd.DataFrame]:
    """
    Normal Q-Q coordinates per variable.

    Each frame holds the theoretical quantiles, ordered sample values and the
    least-squares reference line evaluated at the theoretical quantiles.
    """
    require_columns(df, [col for col, _ in variables], stage=STAGE)

    plot_data = {}
    for col, _ in variables:
        series = pd.to_numeric(df[col], errors="coerce").dropna()
        if len(series) < 2:
            plot_data[col] = pd.DataFrame(columns=['theoretical', 'sample', 'fitted'])
            continue
        (osm, osr), (slope, intercept, _) = stats.probplot(series, dist="norm")
        plot_data[col] = pd.DataFrame({
            'theoretical': osm,
            'sample': osr,
            'fitted': slope * osm + intercept,
        })
    return plot_data


def save_normality_figures(
    df: pd.DataFrame,
    plot_data: Dict[str, pd.DataFrame],
    output_dir: Path,
    variables: list[tuple[str, str]] = DESCRIPTIVE_VARS,
) -> list[Path]:
    """Histogram + Q-Q panel per variable."""
    paths = []
    for col, label in variables:
        qq = plot_data.get(col)
        if qq is None or qq.empty:
            continue
        fig, axes = plt.subplots(1, 2, figsize=(9, 3.5))
        sns.histplot(pd.to_numeric(df[col], errors="coerce").dropna(), kde=True, ax=axes[0], color="#4C72B0")
        axes[0].set_xlabel(label)
        axes[0].set_title("Distribution")
        axes[1].scatter(qq['theoretical'], qq['sample'], s=10, color="#4C72B0")
        axes[1].plot(qq['theoretical'], qq['fitted'], color="#C44E52", linewidth=1)
        axes[1].set_xlabel("Theoretical quantiles")
        axes[1].set_ylabel("Ordered values")
        axes[1].set_title("Normal Q-Q")
        fig.tight_layout()
        path = output_dir / f"normality_{col}.png"
        fig.savefig(path, dpi=150)
        plt.close(fig)
        paths.append(path)
    return paths


def compute_categorical_stats(df: pd.DataFrame, variables: Optional[list[str]] = None) -> pd.DataFrame:
    """
    Frequency and percentage per level of each categorical variable.

    Missing values are counted in their own row and excluded from the
    percentage denominator.
    """
    if variables is None:
        variables = [col for col in CATEGORICAL_VARS if col in df.columns]
    require_columns(df, variables, stage=STAGE)

    results = []
    for col in variables:
        series = df[col]
        counts = series.value_counts(dropna=True).sort_index()
        n_total = int(counts.sum())
        for level, n in counts.items():
            results.append({
                'Variable': col,
                'Category': level,
                'N': int(n),
                'Percent': n / n_total * 100 if n_total else np.nan,
            })
        n_missing = int(series.isna().sum())
        if n_missing > 0:
            results.append({
                'Variable': col,
                'Category': 'Missing',
                'N': n_missing,
                'Percent': np.nan,
            })

    return pd.DataFrame(results)


def compute_descriptives_by_gender(
    df: pd.DataFrame,
    variables: list[tuple[str, str]] = DESCRIPTIVE_VARS,
) -> pd.DataFrame:
    require_columns(df, [GENDER], stage=STAGE)
    frames = [compute_descriptive_stats(df, variables, group_label="Total")]
    for code, label in [(GENDER_MALE, "Male"), (GENDER_FEMALE, "Female")]:
        subset = df[(df[GENDER] == code).fillna(False).astype(bool)]
        frames.append(compute_descriptive_stats(subset, variables, group_label=label))
    return pd.concat(frames, ignore_index=True)


def print_apa_table(desc_df: pd.DataFrame, cat_df: Optional[pd.DataFrame] = None) -> None:
    """Print descriptive statistics in APA-style format."""
    print("\n  Table 1. Descriptive Statistics")
    print("  " + "-" * 75)

    if cat_df is not None and len(cat_df) > 0:
        print(f"  {'Variable':<20} {'Category':<15} {'N':>6} {'%':>10}")
        print("  " + "-" * 75)
        for _, row in cat_df.iterrows():
            pct = f"{row['Percent']:>10.1f}" if pd.notna(row['Percent']) else f"{'--':>10}"
            print(f"  {row['Variable']:<20} {str(row['Category']):<15} {row['N']:>6} {pct}")
        print("  " + "-" * 75)

    print(f"  {'Variable':<25} {'N':>5} {'M':>9} {'SD':>9} {'Mdn':>9} {'W':>7} {'p':>8}")
    print("  " + "-" * 75)
    for _, row in desc_df.iterrows():
        p_str = f"{row['Shapiro_p']:.3f}" if pd.notna(row['Shapiro_p']) else "NA"
        print(
            f"  {row['Variable']:<25} {row['N']:>5} {row['Mean']:>9.2f} {row['SD']:>9.2f} "
            f"{row['Median']:>9.2f} {row['Shapiro_W']:>7.3f} {p_str:>8}"
        )
    print("  " + "-" * 75)
    print("  Note. M = Mean; SD = Standard Deviation; Mdn = Median; W = Shapiro-Wilk")


def run(
    datasets: PipelineDatasets,
    output_root: Optional[Path] = None,
    save: bool = True,
    verbose: bool = True,
    run_supplementary: bool = True,
) -> dict[str, object]:
    """
    Run descriptive statistics on the region-augmented dataset.

    Returns
    -------
    dict
        'total', 'categorical', 'normality_plots' and, with supplementary
        analyses, 'by_gender'
    """
    if verbose:
        print_section_header("DESCRIPTIVE STATISTICS ANALYSIS")

    df = datasets.regions
    desc_total = compute_descriptive_stats(df, DESCRIPTIVE_VARS, group_label="Total")
    cat_stats = compute_categorical_stats(df)
    plot_data = normality_plot_data(df, DESCRIPTIVE_VARS)

    results: dict[str, object] = {
        'total': desc_total,
        'categorical': cat_stats,
        'normality_plots': plot_data,
    }

    if run_supplementary and GENDER in df.columns:
        results['by_gender'] = compute_descriptives_by_gender(df, DESCRIPTIVE_VARS)

    if verbose:
        print(f"  Total respondents: N = {len(df)}")
        print_apa_table(desc_total, cat_stats)

    if save:
        output_dir = resolve_output_dir(output_root, "core")
        if verbose:
            print("\n  Output files:")
        save_table(desc_total, output_dir / "table1_descriptives.csv", verbose)
        save_table(cat_stats, output_dir / "table1_categorical.csv", verbose)
        if 'by_gender' in results:
            supp_dir = resolve_output_dir(output_root, "supplementary")
            save_table(results['by_gender'], supp_dir / "table1_descriptives_by_gender.csv", verbose)
        figures_dir = get_figures_dir(output_root)
        for path in save_normality_figures(df, plot_data, figures_dir, DESCRIPTIVE_VARS):
            if verbose:
                print(f"    - {path}")

    return results
