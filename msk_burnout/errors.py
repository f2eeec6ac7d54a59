"""
Pipeline error kinds.

Every error carries the stage that raised it plus a context dict (field
names, row counts) so the runner can report failures per stage without
touching datasets that were already produced upstream.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


class PipelineError(Exception):
    """Base class for failures reported per stage."""

    kind = "pipeline_error"

    def __init__(self, message: str, stage: Optional[str] = None, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.context = context

    def __str__(self) -> str:
        prefix = f"[{self.stage}] " if self.stage else ""
        return f"{prefix}{self.message}"

    def to_record(self) -> dict[str, Any]:
        return {
            "stage": self.stage,
            "kind": self.kind,
            "message": self.message,
            **{k: v for k, v in self.context.items() if not isinstance(v, (list, set, tuple))},
        }


class MissingFieldError(PipelineError, KeyError):
    """A referenced column is absent from the dataset schema."""

    kind = "missing_field"

    def __init__(
        self,
        fields: Iterable[str],
        stage: Optional[str] = None,
        available: Optional[Iterable[str]] = None,
    ) -> None:
        self.fields = [str(f) for f in fields]
        message = f"Unknown field(s): {', '.join(self.fields)}"
        if available is not None:
            message += f". Available: {sorted(str(c) for c in available)}"
        super().__init__(message, stage=stage, fields=self.fields)


class UnclassifiedValueError(PipelineError, ValueError):
    """A value falls outside every defined band or code."""

    kind = "unclassified_value"

    def __init__(self, field: str, count: int, examples: Iterable[Any] = (), stage: Optional[str] = None) -> None:
        self.field = field
        self.count = int(count)
        self.examples = list(examples)
        message = f"{self.count} value(s) in '{field}' fall outside every defined band"
        if self.examples:
            message += f" (e.g. {self.examples})"
        super().__init__(message, stage=stage, field=field, count=self.count)


class EmptySubgroupError(PipelineError, ValueError):
    """A stratified filter or complete-case frame has too few rows."""

    kind = "empty_subgroup"

    def __init__(self, subgroup: str, n_rows: int, stage: Optional[str] = None, min_n: int = 1) -> None:
        self.subgroup = subgroup
        self.n_rows = int(n_rows)
        message = f"Subgroup '{subgroup}' has N={self.n_rows} (minimum {min_n})"
        super().__init__(message, stage=stage, subgroup=subgroup, n_rows=self.n_rows)


class NonConvergenceError(PipelineError, RuntimeError):
    """A model fit did not converge or detected separation."""

    kind = "non_convergence"

    def __init__(self, model: str, reason: str, stage: Optional[str] = None, n_rows: Optional[int] = None) -> None:
        self.model = model
        self.reason = reason
        message = f"Model '{model}': fitting did not converge ({reason})"
        super().__init__(message, stage=stage, model=model, reason=reason, n_rows=n_rows)
