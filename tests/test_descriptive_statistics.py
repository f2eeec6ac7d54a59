"""
Descriptive statistics and normality diagnostics.
"""

import numpy as np
import pandas as pd
import pytest

from msk_burnout.analysis import descriptive_statistics
from msk_burnout.analysis.descriptive_statistics import (
    compute_categorical_stats,
    compute_descriptive_stats,
    compute_descriptives_by_gender,
    normality_plot_data,
)
from msk_burnout.errors import MissingFieldError
from msk_burnout.preprocessing.constants import DESCRIPTIVE_VARS


class TestContinuous:
    """N, Mean, SD, Median and Shapiro-Wilk"""

    def test_matches_pandas(self, datasets):
        df = datasets.regions
        desc = compute_descriptive_stats(df).set_index("Column")
        assert list(desc.index) == [col for col, _ in DESCRIPTIVE_VARS]
        for col, _ in DESCRIPTIVE_VARS:
            assert desc.loc[col, "N"] == df[col].notna().sum()
            assert desc.loc[col, "Mean"] == pytest.approx(df[col].mean())
            assert desc.loc[col, "SD"] == pytest.approx(df[col].std())
            assert desc.loc[col, "Median"] == pytest.approx(df[col].median())
            assert 0 < desc.loc[col, "Shapiro_W"] <= 1
            assert 0 <= desc.loc[col, "Shapiro_p"] <= 1

    def test_missing_values_excluded(self):
        df = pd.DataFrame({"age": [20, 30, np.nan, 40]})
        desc = compute_descriptive_stats(df, [("age", "Age")])
        assert desc.loc[0, "N"] == 3
        assert desc.loc[0, "Mean"] == pytest.approx(30.0)

    def test_too_few_for_shapiro(self):
        df = pd.DataFrame({"age": [20, 30]})
        desc = compute_descriptive_stats(df, [("age", "Age")])
        assert np.isnan(desc.loc[0, "Shapiro_W"])
        assert desc.loc[0, "Median"] == pytest.approx(25.0)

    def test_constant_series(self):
        df = pd.DataFrame({"age": [30, 30, 30, 30]})
        desc = compute_descriptive_stats(df, [("age", "Age")])
        assert desc.loc[0, "SD"] == 0
        assert np.isnan(desc.loc[0, "Shapiro_p"])

    def test_missing_column(self):
        with pytest.raises(MissingFieldError):
            compute_descriptive_stats(pd.DataFrame({"age": [1, 2, 3]}))

    def test_by_gender(self, datasets):
        desc = compute_descriptives_by_gender(datasets.regions)
        assert set(desc["Group"]) == {"Total", "Male", "Female"}
        n = desc[desc["Column"] == "age"].set_index("Group")["N"]
        assert n["Male"] + n["Female"] == n["Total"]


class TestNormalityPlots:
    """Q-Q coordinates"""

    def test_lengths(self, datasets):
        df = datasets.regions
        plots = normality_plot_data(df)
        for col, _ in DESCRIPTIVE_VARS:
            qq = plots[col]
            assert len(qq) == df[col].notna().sum()
            assert qq["sample"].is_monotonic_increasing
            assert qq["theoretical"].is_monotonic_increasing

    def test_short_series(self):
        plots = normality_plot_data(pd.DataFrame({"age": [1.0]}), [("age", "Age")])
        assert plots["age"].empty


class TestCategorical:
    """Frequency tables"""

    def test_counts_and_percent(self):
        df = pd.DataFrame({"gender": pd.array([1, 2, 2, None], dtype="Int64")})
        cat = compute_categorical_stats(df, ["gender"])
        levels = cat.set_index("Category")
        assert levels.loc[1, "N"] == 1
        assert levels.loc[2, "Percent"] == pytest.approx(200 / 3)
        assert levels.loc["Missing", "N"] == 1

    def test_default_variables(self, datasets):
        cat = compute_categorical_stats(datasets.regions)
        assert {"gender", "b_score", "GROUP1"} <= set(cat["Variable"])
        assert "JGROUP" not in set(cat["Variable"])


def test_run_saves_outputs(datasets, tmp_path):
    results = descriptive_statistics.run(datasets, output_root=tmp_path, verbose=False)
    assert set(results) == {"total", "categorical", "normality_plots", "by_gender"}
    assert (tmp_path / "stats" / "core" / "table1_descriptives.csv").exists()
    assert (tmp_path / "stats" / "core" / "table1_categorical.csv").exists()
    assert (tmp_path / "stats" / "supplementary" / "table1_descriptives_by_gender.csv").exists()
    assert (tmp_path / "figures" / "normality_age.png").exists()
