"""
Analysis Utilities
==================

Shared formatting, output and stage-runner helpers for the analysis modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

import pandas as pd

from ..errors import PipelineError
from ..preprocessing.constants import get_output_dir


def format_pvalue(p: float, threshold: float = 0.001) -> str:
    """Format p-value for publication."""
    if pd.isna(p):
        return "NA"
    if p < threshold:
        return f"< {threshold}"
    return f"{p:.3f}"


def significance_stars(p: float) -> str:
    if pd.isna(p):
        return ""
    return '***' if p < 0.001 else '**' if p < 0.01 else '*' if p < 0.05 else ''


def print_section_header(title: str, width: int = 70) -> None:
    """Print formatted section header."""
    print("\n" + "=" * width)
    print(title)
    print("=" * width)


def resolve_output_dir(output_root: Optional[Path], bucket: str = "core") -> Path:
    return get_output_dir(bucket, root=output_root)


def save_table(df: pd.DataFrame, path: Path, verbose: bool = True) -> Path:
    df.to_csv(path, index=False, encoding="utf-8-sig")
    if verbose:
        print(f"    - {path}")
    return path


@dataclass
class StageFailures:
    """Collects PipelineErrors raised by independent steps of a run."""

    errors: List[PipelineError] = field(default_factory=list)

    def run(self, step: str, func: Callable[..., Any], *args, **kwargs) -> Any:
        """
        Call func; a PipelineError aborts only this step and is recorded.
        Any other exception propagates.
        """
        try:
            return func(*args, **kwargs)
        except PipelineError as exc:
            if exc.stage is None:
                exc.stage = step
            self.errors.append(exc)
            print(f"[WARN] {step} failed: {exc}")
            return None

    def extend(self, errors) -> None:
        self.errors.extend(errors)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame([err.to_record() for err in self.errors])

    def __len__(self) -> int:
        return len(self.errors)
