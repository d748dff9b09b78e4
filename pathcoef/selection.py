"""Two-phase predictor selection: VIF pruning, then a stepwise model ladder.

Phase 1 (``vif_prune``) is a greedy elimination.  On every iteration the
correlations and the uncorrected VIF table of the current predictor set are
recomputed; while the largest VIF exceeds ``max_vif`` the predictor holding
it is removed (the first one in the current ordering on ties).  Removing a
regressor can never raise another predictor's R^2_i, so on a fixed
correlation structure the maximum VIF is non-increasing across iterations.

Phase 2 (``stepwise_ladder``) starts from the pruned set of p predictors
and solves p - 1 nested path models.  After each solve the predictor with
the smallest absolute direct effect is dropped, until exactly two remain.
Comparing R^2, condition number and VIF down the ladder shows how much each
removal costs in explained variance and buys in stability.

Both loops are inherently sequential: every iteration consumes the
previous iteration's predictor set.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from pathcoef.config import DEFAULT_MAX_VIF, check_predictor_names
from pathcoef.correlation import correlation_structure
from pathcoef.diagnostics import collinearity_diagnostics
from pathcoef.errors import InvalidConfigurationError, SelectionExhaustedError
from pathcoef.model import fit_path_model

Progress = Optional[Callable[[str], None]]

PRUNING_COLUMNS = ["removed", "vif_removed", "max_vif_after", "n_remaining"]


# -- Phase 1: VIF pruning --


@dataclass(frozen=True)
class PruningResult:
    """Outcome of greedy VIF elimination."""

    selected: Tuple[str, ...]
    summary: pd.DataFrame
    initial_vif: pd.Series
    final_vif: pd.Series
    max_vif: float

    @property
    def removed(self) -> Tuple[str, ...]:
        return tuple(self.summary["removed"])


def vif_prune(
    data: pd.DataFrame,
    predictors: Sequence[str],
    response: str,
    *,
    max_vif: float = DEFAULT_MAX_VIF,
    missing: str = "pairwise",
    progress: Progress = None,
) -> PruningResult:
    """Remove the largest-VIF predictor until every VIF is <= *max_vif*.

    Parameters
    ----------
    data : DataFrame
        Source table; correlations are rebuilt from it on every iteration
        so the listwise policy sees the rows complete for the current set.
    predictors : sequence of str
        Starting predictor set, in analysis order.
    response : str
        Dependent variable name.
    max_vif : float
        Pruning threshold.
    missing : str
        Missing-data policy.
    progress : callable, optional
        Called with a status line after every pruning iteration.

    Returns
    -------
    PruningResult
        ``summary`` has one row per removal with the columns
        ``removed, vif_removed, max_vif_after, n_remaining``.

    Raises
    ------
    SelectionExhaustedError
        Meeting the threshold would leave fewer than 2 predictors.
    """
    if not np.isfinite(max_vif) or max_vif < 1.0:
        raise InvalidConfigurationError(f"max_vif must be a finite number >= 1, got {max_vif!r}")
    current = check_predictor_names(predictors, response)

    def _vif(names):
        structure = correlation_structure(data, names, response, missing=missing)
        return collinearity_diagnostics(structure.corr_x).vif

    vif = _vif(current)
    initial = vif
    rows = []
    while vif.max() > max_vif:
        # idxmax returns the first label holding the maximum.
        worst = str(vif.idxmax())
        trigger = float(vif[worst])
        if len(current) <= 2:
            raise SelectionExhaustedError(
                f"Cannot bring max VIF below {max_vif:g}: {current} still has "
                f"VIF({worst}) = {trigger:.4g} and at least 2 predictors are required."
            )
        current = [p for p in current if p != worst]
        vif = _vif(current)
        rows.append({
            "removed": worst,
            "vif_removed": trigger,
            "max_vif_after": float(vif.max()),
            "n_remaining": len(current),
        })
        if progress is not None:
            progress(
                f"  pruning: removed {worst} (VIF={trigger:.4g}); "
                f"max VIF now {vif.max():.4g} with {len(current)} predictors"
            )

    summary = pd.DataFrame(rows, columns=PRUNING_COLUMNS)
    summary.index = pd.RangeIndex(1, len(rows) + 1, name="iteration")
    return PruningResult(
        selected=tuple(current),
        summary=summary,
        initial_vif=initial,
        final_vif=vif,
        max_vif=float(max_vif),
    )


# -- Phase 2: stepwise model ladder --


@dataclass(frozen=True)
class LadderStep:
    """One nested model of the ladder."""

    predictors: Tuple[str, ...]
    direct: pd.Series
    effects: pd.DataFrame
    r2: float
    residual: float
    vif: pd.Series
    condition_number: float
    determinant: float
    weightvar: str
    dropped: Optional[str] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def n_predictors(self) -> int:
        return len(self.predictors)

    @property
    def max_vif(self) -> float:
        return float(self.vif.max())


@dataclass(frozen=True)
class ModelLadder:
    """Nested path models from all selected predictors down to two."""

    steps: Tuple[LadderStep, ...]
    selected: Tuple[str, ...]
    k: float

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def __getitem__(self, idx: int) -> LadderStep:
        return self.steps[idx]

    def summary(self) -> pd.DataFrame:
        """One row per step: size, fit, conditioning and the predictor dropped next."""
        rows = []
        for step in self.steps:
            rows.append({
                "n_predictors": step.n_predictors,
                "r2": step.r2,
                "residual": step.residual,
                "max_vif": step.max_vif,
                "condition_number": step.condition_number,
                "determinant": step.determinant,
                "weightvar": step.weightvar,
                "dropped": step.dropped,
                "predictors": " + ".join(step.predictors),
            })
        out = pd.DataFrame(rows)
        out.index = pd.RangeIndex(1, len(rows) + 1, name="model")
        return out


def stepwise_ladder(
    data: pd.DataFrame,
    selected: Sequence[str],
    response: str,
    *,
    k: float = 0.0,
    missing: str = "pairwise",
    progress: Progress = None,
) -> ModelLadder:
    """Fit p - 1 nested path models, dropping the weakest predictor each step.

    The weakest predictor is the one with the smallest absolute direct
    effect (first in current order on ties); the surviving predictors keep
    their relative order.  Every step runs the full engine with the fixed
    correction *k*.
    """
    current = check_predictor_names(selected, response)
    start = tuple(current)
    p = len(current)
    steps = []
    for s in range(p - 1):
        model = fit_path_model(data, current, response, k=k, missing=missing)
        sol, diag = model.solution, model.diagnostics
        dropped = None
        if len(current) > 2:
            dropped = str(sol.direct.abs().idxmin())
        steps.append(LadderStep(
            predictors=tuple(current),
            direct=sol.direct,
            effects=sol.effects,
            r2=sol.r2,
            residual=sol.residual,
            vif=diag.vif,
            condition_number=diag.condition_number,
            determinant=diag.determinant,
            weightvar=diag.weightvar,
            dropped=dropped,
            warnings=model.warnings,
        ))
        if progress is not None:
            progress(
                f"  ladder step {s + 1}/{p - 1}: {len(current)} predictors, "
                f"R2={sol.r2:.4f}, CN={diag.condition_number:.4g}, max VIF={diag.vif.max():.4g}"
            )
        if dropped is not None:
            current = [c for c in current if c != dropped]

    return ModelLadder(steps=tuple(steps), selected=start, k=float(k))
