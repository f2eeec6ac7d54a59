"""
Adjusted Logistic Regression
============================

Binary logistic models of high depression/burnout risk on pain regions,
adjusted for work and health covariates. The modelled event is always the
higher-coded outcome level, i.e. P(outcome = 1).

Primary models:
    - jgroup_overall: JGROUP on trunk pain + covariates (all respondents)
    - bgroup_female:  BGROUP on the three regions + covariates (women)
    - jgroup_senior:  JGROUP on the three regions + covariates (seniority >= 22 months)

Supplementary models:
    - bgroup_male:    bgroup_female specification fitted on men
    - jgroup_junior:  jgroup_senior specification fitted on seniority < 22 months

Output:
    outputs/stats/core/logit_coefficients.csv
    outputs/stats/core/logit_model_fit.csv
    outputs/stats/core/logit_failures.csv
"""

from __future__ import annotations

import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from statsmodels.tools.sm_exceptions import (
    ConvergenceWarning,
    PerfectSeparationError,
    PerfectSeparationWarning,
)

from ..errors import NonConvergenceError
from ..preprocessing.constants import (
    AGE,
    DIABETES,
    GENDER,
    GENDER_MALE,
    HYPERTENSION,
    MIN_SUBGROUP_N,
    SENIORITY,
    SLEEP_HOURS,
    WORK_HOURS,
)
from ..preprocessing.core import require_columns
from ..preprocessing.datasets import PipelineDatasets, require_rows
from .utils import (
    StageFailures,
    format_pvalue,
    print_section_header,
    resolve_output_dir,
    save_table,
    significance_stars,
)

STAGE = "regression"

MAX_ITER = 100
# Standard errors beyond this on the logit scale indicate quasi-complete separation
MAX_STANDARD_ERROR = 1e3
MIN_EVENTS_PER_PARAMETER = 10


@dataclass(frozen=True)
class LogitModelSpec:
    name: str
    outcome: str
    covariates: Tuple[str, ...]
    dataset: str
    categorical: Mapping[str, int] = field(default_factory=dict)
    supplementary: bool = False
    description: str = ""

    def term(self, covariate: str) -> str:
        if covariate in self.categorical:
            return f"C({covariate}, Treatment(reference={self.categorical[covariate]}))"
        return covariate

    def formula(self) -> str:
        return f"{self.outcome} ~ " + " + ".join(self.term(cov) for cov in self.covariates)

    @property
    def columns(self) -> List[str]:
        return [self.outcome] + list(self.covariates)


JGROUP_OVERALL = LogitModelSpec(
    name="jgroup_overall",
    outcome="JGROUP",
    covariates=("GROUP1", SENIORITY, AGE, GENDER, WORK_HOURS, SLEEP_HOURS, DIABETES, HYPERTENSION),
    dataset="logit_prep",
    categorical={GENDER: GENDER_MALE, "GROUP1": 0, HYPERTENSION: 0},
    description="Work burnout risk on trunk pain, all respondents",
)

BGROUP_FEMALE = LogitModelSpec(
    name="bgroup_female",
    outcome="BGROUP",
    covariates=("GROUP1", "GROUP2", "GROUP3", AGE, SENIORITY, WORK_HOURS, SLEEP_HOURS, DIABETES, HYPERTENSION),
    dataset="female",
    description="Depression risk on pain regions, women",
)

JGROUP_SENIOR = LogitModelSpec(
    name="jgroup_senior",
    outcome="JGROUP",
    covariates=("GROUP1", "GROUP2", "GROUP3", AGE, WORK_HOURS, SLEEP_HOURS, DIABETES, HYPERTENSION),
    dataset="senior",
    description="Work burnout risk on pain regions, seniority >= 22 months",
)

BGROUP_MALE = LogitModelSpec(
    name="bgroup_male",
    outcome=BGROUP_FEMALE.outcome,
    covariates=BGROUP_FEMALE.covariates,
    dataset="male",
    supplementary=True,
    description="Depression risk on pain regions, men",
)

JGROUP_JUNIOR = LogitModelSpec(
    name="jgroup_junior",
    outcome=JGROUP_SENIOR.outcome,
    covariates=JGROUP_SENIOR.covariates,
    dataset="junior",
    supplementary=True,
    description="Work burnout risk on pain regions, seniority < 22 months",
)

PRIMARY_MODELS = [JGROUP_OVERALL, BGROUP_FEMALE, JGROUP_SENIOR]
SUPPLEMENTARY_MODELS = [BGROUP_MALE, JGROUP_JUNIOR]


@dataclass
class LogitResult:
    spec: LogitModelSpec
    coefficients: pd.DataFrame
    n: int
    n_dropped: int
    events: int
    llf: float
    llnull: float
    llr: float
    llr_pvalue: float
    pseudo_r2: float
    aic: float
    converged: bool
    iterations: Optional[int]
    events_per_parameter: float

    def fit_row(self) -> Dict[str, Any]:
        return {
            'model': self.spec.name,
            'dataset': self.spec.dataset,
            'outcome': self.spec.outcome,
            'formula': self.spec.formula(),
            'n': self.n,
            'n_dropped': self.n_dropped,
            'events': self.events,
            'log_likelihood': self.llf,
            'log_likelihood_null': self.llnull,
            'lr_chi2': self.llr,
            'lr_p': self.llr_pvalue,
            'pseudo_r2': self.pseudo_r2,
            'aic': self.aic,
            'converged': self.converged,
            'iterations': self.iterations,
            'events_per_parameter': self.events_per_parameter,
            'supplementary': self.spec.supplementary,
        }


_CATEGORICAL_TERM = re.compile(r"^C\((?P<var>[^,\)]+).*\)\[T\.(?P<level>[^\]]+)\]$")


def _describe_term(term: str, spec: LogitModelSpec) -> Tuple[str, str]:
    """Map a patsy term name onto (covariate, readable label)."""
    match = _CATEGORICAL_TERM.match(term)
    if match:
        var = match.group("var").strip()
        return var, f"{var}={match.group('level')} vs {spec.categorical.get(var)}"
    return term, term


def prepare_model_frame(df: pd.DataFrame, spec: LogitModelSpec) -> Tuple[pd.DataFrame, int]:
    """
    Complete-case numeric frame for a model.

    Returns the frame and the number of rows dropped for missing values.
    """
    require_columns(df, spec.columns, stage=STAGE)
    model_df = df[spec.columns].apply(pd.to_numeric, errors="coerce").astype(float)
    n_before = len(model_df)
    model_df = model_df.dropna().copy()
    n_dropped = n_before - len(model_df)
    for col in spec.categorical:
        model_df[col] = model_df[col].astype(int)
    return model_df, n_dropped


def check_model_frame(model_df: pd.DataFrame, spec: LogitModelSpec, min_n: int = MIN_SUBGROUP_N) -> None:
    """Raise before fitting when the design cannot be estimated."""
    require_rows(model_df, f"{spec.dataset} (complete cases for {spec.name})", stage=STAGE, min_n=min_n)

    outcome_levels = set(model_df[spec.outcome].unique())
    if not outcome_levels <= {0, 1}:
        raise NonConvergenceError(
            spec.name, f"outcome '{spec.outcome}' is not binary 0/1: {sorted(outcome_levels)}",
            stage=STAGE, n_rows=len(model_df),
        )
    if len(outcome_levels) < 2:
        raise NonConvergenceError(
            spec.name, f"outcome '{spec.outcome}' has a single level {sorted(outcome_levels)}",
            stage=STAGE, n_rows=len(model_df),
        )

    for cov in spec.covariates:
        if model_df[cov].nunique() < 2:
            raise NonConvergenceError(
                spec.name, f"singular design: covariate '{cov}' is constant",
                stage=STAGE, n_rows=len(model_df),
            )
    for cov, reference in spec.categorical.items():
        if reference not in set(model_df[cov].unique()):
            raise NonConvergenceError(
                spec.name, f"reference level {reference} of '{cov}' is absent",
                stage=STAGE, n_rows=len(model_df),
            )


def coefficient_table(fit, spec: LogitModelSpec, alpha: float = 0.05) -> pd.DataFrame:
    conf = fit.conf_int(alpha=alpha)
    rows = []
    for term in fit.params.index:
        covariate, label = _describe_term(term, spec)
        coef = float(fit.params[term])
        rows.append({
            'model': spec.name,
            'term': term,
            'covariate': covariate,
            'label': label,
            'coef': coef,
            'se': float(fit.bse[term]),
            'z': float(fit.tvalues[term]),
            'p': float(fit.pvalues[term]),
            'odds_ratio': float(np.exp(coef)),
            'or_ci_low': float(np.exp(conf.loc[term, 0])),
            'or_ci_high': float(np.exp(conf.loc[term, 1])),
        })
    return pd.DataFrame(rows)


def fit_logit(df: pd.DataFrame, spec: LogitModelSpec, min_n: int = MIN_SUBGROUP_N) -> LogitResult:
    """
    Fit spec on df by maximum likelihood.

    Raises
    ------
    MissingFieldError
        A model column is absent from df.
    EmptySubgroupError
        Fewer than min_n complete cases.
    NonConvergenceError
        Degenerate design, separation, or an optimizer that did not converge.
    """
    model_df, n_dropped = prepare_model_frame(df, spec)
    if n_dropped:
        warnings.warn(f"{spec.name}: dropped {n_dropped} incomplete row(s) of {len(df)}.", UserWarning)
    check_model_frame(model_df, spec, min_n=min_n)

    n = len(model_df)
    try:
        with warnings.catch_warnings():
            warnings.filterwarnings("error", category=PerfectSeparationWarning)
            warnings.filterwarnings("error", category=ConvergenceWarning)
            fit = smf.logit(spec.formula(), data=model_df).fit(disp=False, maxiter=MAX_ITER)
    except (PerfectSeparationError, PerfectSeparationWarning) as exc:
        raise NonConvergenceError(spec.name, f"separation detected: {exc}", stage=STAGE, n_rows=n) from exc
    except ConvergenceWarning as exc:
        raise NonConvergenceError(spec.name, str(exc), stage=STAGE, n_rows=n) from exc
    except np.linalg.LinAlgError as exc:
        raise NonConvergenceError(spec.name, f"singular design: {exc}", stage=STAGE, n_rows=n) from exc

    retvals = getattr(fit, "mle_retvals", None) or {}
    if not bool(retvals.get("converged", True)):
        raise NonConvergenceError(spec.name, "optimizer reported no convergence", stage=STAGE, n_rows=n)
    if not (np.all(np.isfinite(fit.params)) and np.all(np.isfinite(fit.bse))):
        raise NonConvergenceError(spec.name, "non-finite estimates", stage=STAGE, n_rows=n)
    max_se = float(np.max(fit.bse))
    if max_se > MAX_STANDARD_ERROR:
        raise NonConvergenceError(
            spec.name, f"quasi-complete separation suspected (max SE={max_se:.3g})", stage=STAGE, n_rows=n,
        )

    events = int(model_df[spec.outcome].sum())
    n_params = max(int(fit.df_model), 1)
    epv = min(events, n - events) / n_params
    if epv < MIN_EVENTS_PER_PARAMETER:
        warnings.warn(
            f"{spec.name}: {epv:.1f} events per parameter (< {MIN_EVENTS_PER_PARAMETER}); estimates may be unstable.",
            UserWarning,
        )

    return LogitResult(
        spec=spec,
        coefficients=coefficient_table(fit, spec),
        n=n,
        n_dropped=int(n_dropped),
        events=events,
        llf=float(fit.llf),
        llnull=float(fit.llnull),
        llr=float(fit.llr),
        llr_pvalue=float(fit.llr_pvalue),
        pseudo_r2=float(fit.prsquared),
        aic=float(fit.aic),
        converged=bool(retvals.get("converged", True)),
        iterations=retvals.get("iterations"),
        events_per_parameter=float(epv),
    )


def fit_model_spec(datasets: PipelineDatasets, spec: LogitModelSpec) -> LogitResult:
    df = datasets.get(spec.dataset)
    require_rows(df, spec.dataset, stage=STAGE)
    return fit_logit(df, spec)


def print_model(result: LogitResult) -> None:
    print(f"\n  {result.spec.name}: {result.spec.description}")
    print(f"  {result.spec.formula()}")
    print(
        f"  N = {result.n} (events = {result.events}), LR chi2 = {result.llr:.2f}, "
        f"p = {format_pvalue(result.llr_pvalue)}, pseudo R2 = {result.pseudo_r2:.3f}"
    )
    print("  " + "-" * 70)
    print(f"  {'Term':<28} {'B':>8} {'SE':>7} {'OR':>7} {'95% CI':>16} {'p':>8}")
    print("  " + "-" * 70)
    for _, row in result.coefficients.iterrows():
        ci = f"[{row['or_ci_low']:.2f}, {row['or_ci_high']:.2f}]"
        print(
            f"  {row['label']:<28} {row['coef']:>8.3f} {row['se']:>7.3f} {row['odds_ratio']:>7.2f} "
            f"{ci:>16} {format_pvalue(row['p']):>8}{significance_stars(row['p'])}"
        )


def run(
    datasets: PipelineDatasets,
    output_root: Optional[Path] = None,
    save: bool = True,
    verbose: bool = True,
    run_supplementary: bool = True,
) -> dict[str, Any]:
    """
    Fit every model independently; a failing model is reported and skipped.

    Returns
    -------
    dict
        'models' (name -> LogitResult), 'coefficients', 'fit' and 'failures'
    """
    if verbose:
        print_section_header("LOGISTIC REGRESSION")

    specs = PRIMARY_MODELS + (SUPPLEMENTARY_MODELS if run_supplementary else [])
    failures = StageFailures()
    models: Dict[str, LogitResult] = {}
    for spec in specs:
        result = failures.run(spec.name, fit_model_spec, datasets, spec)
        if result is None:
            continue
        models[spec.name] = result
        if verbose:
            print_model(result)

    coefficients = (
        pd.concat([res.coefficients for res in models.values()], ignore_index=True)
        if models else pd.DataFrame()
    )
    fit_summary = pd.DataFrame([res.fit_row() for res in models.values()])
    failures_df = failures.to_frame()

    if save:
        output_dir = resolve_output_dir(output_root, "core")
        if verbose:
            print("\n  Output files:")
        if not coefficients.empty:
            save_table(coefficients, output_dir / "logit_coefficients.csv", verbose)
            save_table(fit_summary, output_dir / "logit_model_fit.csv", verbose)
        if not failures_df.empty:
            save_table(failures_df, output_dir / "logit_failures.csv", verbose)

    return {
        'models': models,
        'coefficients': coefficients,
        'fit': fit_summary,
        'failures': failures.errors,
    }
