"""Load the survey, derive analysis datasets and run all analyses."""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from msk_burnout.analysis import association_tests, descriptive_statistics, logistic_regression
from msk_burnout.analysis.utils import StageFailures
from msk_burnout.errors import PipelineError
from msk_burnout.preprocessing.constants import DEFAULT_DATASET_PATH, OUTPUT_DATASETS_DIR
from msk_burnout.preprocessing.datasets import PipelineDatasets, build_pipeline_datasets, save_datasets
from msk_burnout.preprocessing.loaders import load_survey_dataset


@dataclass
class PipelineOptions:
    strict: bool = False
    save: bool = True
    verbose: bool = True
    run_supplementary: bool = True
    output_dir: Optional[Path] = None


@dataclass
class PipelineResult:
    datasets: PipelineDatasets
    reports: Dict[str, Any] = field(default_factory=dict)
    failures: List[PipelineError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def run_analyses(raw: pd.DataFrame, options: Optional[PipelineOptions] = None) -> PipelineResult:
    """
    Build the derived datasets from an already-loaded frame and run
    descriptives, association tests and regressions.

    Errors while recoding or aggregating regions propagate: every analysis
    depends on those frames. Each later stage (and each regression model)
    fails on its own without stopping the others.
    """
    if options is None:
        options = PipelineOptions()

    datasets = build_pipeline_datasets(raw, strict=options.strict, verbose=options.verbose)
    failures = StageFailures()
    failures.extend(datasets.failures)

    output_root = options.output_dir
    if options.save:
        datasets_dir = OUTPUT_DATASETS_DIR if output_root is None else Path(output_root) / "datasets"
        save_datasets(datasets, datasets_dir, verbose=options.verbose)

    stage_kwargs = dict(
        output_root=output_root,
        save=options.save,
        verbose=options.verbose,
        run_supplementary=options.run_supplementary,
    )
    reports: Dict[str, Any] = {}
    for name, module in [
        ("descriptives", descriptive_statistics),
        ("association", association_tests),
        ("regression", logistic_regression),
    ]:
        report = failures.run(name, module.run, datasets, **stage_kwargs)
        if report is not None:
            reports[name] = report

    if "regression" in reports:
        failures.extend(reports["regression"]["failures"])

    if options.verbose:
        print("\n" + "=" * 70)
        if failures.errors:
            print(f"PIPELINE COMPLETE WITH {len(failures)} FAILURE(S)")
            for err in failures.errors:
                print(f"  - {err}")
        else:
            print("PIPELINE COMPLETE")
        print("=" * 70)

    return PipelineResult(datasets=datasets, reports=reports, failures=list(failures.errors))


def main(data_path: Optional[Path] = None, options: Optional[PipelineOptions] = None) -> PipelineResult:
    if sys.platform.startswith("win") and hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")
    if options is None:
        options = PipelineOptions()

    raw = load_survey_dataset(data_path or DEFAULT_DATASET_PATH, verbose=options.verbose)
    return run_analyses(raw, options)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the pain/burnout/depression survey pipeline against a dataset.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m msk_burnout.run_pipeline --data data/raw/fastfood_survey.csv
    python -m msk_burnout.run_pipeline --data survey.xlsx --output-dir outputs/run1 --strict
        """,
    )
    parser.add_argument("--data", type=Path, default=DEFAULT_DATASET_PATH, help="Survey CSV/Excel file.")
    parser.add_argument("--output-dir", type=Path, default=None, help="Output root (default: outputs/).")
    parser.add_argument("--strict", action="store_true", help="Fail when a score falls outside every band.")
    parser.add_argument("--no-save", action="store_true", help="Run without writing outputs to disk.")
    parser.add_argument("--skip-supplementary", action="store_true", help="Skip supplementary analyses.")
    parser.add_argument("--quiet", action="store_true", help="Suppress verbose output.")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    result = main(
        data_path=args.data,
        options=PipelineOptions(
            strict=args.strict,
            save=not args.no_save,
            verbose=not args.quiet,
            run_supplementary=not args.skip_supplementary,
            output_dir=args.output_dir,
        ),
    )
    sys.exit(0 if result.ok else 1)
