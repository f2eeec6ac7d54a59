"""
Analysis Suite
==============

Descriptive statistics, chi-square association tests and adjusted logistic
regressions on the derived survey datasets.

Usage:
    from msk_burnout.analysis import descriptive_statistics, association_tests, logistic_regression
    descriptive_statistics.run(datasets)
"""

from . import association_tests, descriptive_statistics, logistic_regression
from .association_tests import chi_square_test, region_band_tests, site_band_test
from .descriptive_statistics import compute_descriptive_stats, normality_plot_data
from .logistic_regression import LogitModelSpec, LogitResult, fit_logit

__all__ = [
    "association_tests",
    "descriptive_statistics",
    "logistic_regression",
    "chi_square_test",
    "region_band_tests",
    "site_band_test",
    "compute_descriptive_stats",
    "normality_plot_data",
    "LogitModelSpec",
    "LogitResult",
    "fit_logit",
]
