"""Path-coefficient analysis pipeline and grouped analysis.

Entry points:
  - path_coeff(): one analysis of a whole table -- correlations, optional
    k sweep, path solve, multicollinearity diagnostics and, on request,
    VIF pruning followed by the stepwise model ladder.
  - path_coeff_mat(): the same base analysis from a precomputed
    correlation matrix.
  - path_coeff_by_group(): one independent analysis per level of the
    grouping column, optionally spread over a thread pool, merged back in
    original group order.
  - analyze(): dispatches to path_coeff() or path_coeff_by_group()
    depending on whether the config names a grouping column.

Progress is reported through an optional ``progress`` callable that
receives plain status lines; nothing is printed unless one is passed.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from pathcoef.config import DEFAULT_K_GRID_SIZE, PathConfig
from pathcoef.correlation import CorrelationStructure, correlation_structure, structure_from_matrix
from pathcoef.diagnostics import CollinearityDiagnostics, EigenSummary, collinearity_diagnostics
from pathcoef.errors import InvalidConfigurationError, PathAnalysisError, SingularMatrixError
from pathcoef.model import fit_structure
from pathcoef.selection import ModelLadder, PruningResult, stepwise_ladder, vif_prune
from pathcoef.solver import PathSolution
from pathcoef.sweep import KSweepTable, k_sweep

Progress = Optional[Callable[[str], None]]


@dataclass(frozen=True)
class PathResult:
    """Everything one path analysis produces.

    Correlations and diagnostics are always present.  ``k_sweep`` is set
    when no fixed correction was configured; ``pruning`` and ``ladder`` are
    set when predictor selection ran.  ``solution`` is None only when no
    correction was configured and the uncorrected matrix is singular: the
    sweep is then the answer, and ``warnings`` says why.
    """

    response: str
    predictors: Tuple[str, ...]
    correlation: CorrelationStructure
    solution: Optional[PathSolution]
    diagnostics: CollinearityDiagnostics
    correction: float
    k_sweep: Optional[KSweepTable] = None
    pruning: Optional[PruningResult] = None
    ladder: Optional[ModelLadder] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    # -- Base result accessors --

    @property
    def corr_x(self) -> pd.DataFrame:
        return self.correlation.corr_x

    @property
    def corr_y(self) -> pd.Series:
        return self.correlation.corr_y

    @property
    def n_obs(self) -> int:
        return self.correlation.n_obs

    @property
    def solved(self) -> bool:
        return self.solution is not None

    @property
    def effects(self) -> Optional[pd.DataFrame]:
        return self.solution.effects if self.solved else None

    @property
    def direct(self) -> Optional[pd.Series]:
        return self.solution.direct if self.solved else None

    @property
    def r2(self) -> Optional[float]:
        return self.solution.r2 if self.solved else None

    @property
    def residual(self) -> Optional[float]:
        return self.solution.residual if self.solved else None

    @property
    def eigen(self) -> EigenSummary:
        return self.diagnostics.eigen

    @property
    def vif(self) -> pd.Series:
        return self.diagnostics.vif

    @property
    def condition_number(self) -> float:
        return self.diagnostics.condition_number

    @property
    def determinant(self) -> float:
        return self.diagnostics.determinant

    @property
    def weightvar(self) -> str:
        return self.diagnostics.weightvar

    @property
    def selected(self) -> Optional[Tuple[str, ...]]:
        return None if self.pruning is None else self.pruning.selected

    def summary(self) -> str:
        """Return a readable report of the analysis."""
        n_txt = f"n={self.n_obs}" if self.n_obs else "from correlation matrix"
        lines = [
            f"Path analysis of {self.response}  ({n_txt}, p={len(self.predictors)}, "
            f"k={self.correction:g})",
        ]
        if self.solved:
            lines.append(f"R2 = {self.r2:.4f}   residual effect = {self.residual:.4f}")
        else:
            lines.append("no base solution: singular correlation matrix at k=0 (see k sweep)")
        lines += [
            f"condition number = {self.condition_number:.4g}   "
            f"determinant = {self.determinant:.4g}   weightvar = {self.weightvar}",
            "",
            f"{'predictor':>14s}  {'r(y)':>8s}  {'direct':>8s}  {'indirect':>9s}  {'VIF':>9s}",
            "-" * 56,
        ]
        indirect = self.solution.indirect().sum(axis=1) if self.solved else None
        for name in self.predictors:
            if self.solved:
                paths = f"{self.direct[name]:+8.4f}  {indirect[name]:+9.4f}"
            else:
                paths = f"{'-':>8s}  {'-':>9s}"
            lines.append(
                f"{name:>14s}  {self.corr_y[name]:+8.4f}  {paths}  {self.vif[name]:9.3f}"
            )

        if self.k_sweep is not None:
            ks = self.k_sweep.ks
            lines += ["", f"k sweep: {len(ks)} values over [{ks[0]:g}, {ks[-1]:g}] (advisory)"]

        if self.pruning is not None:
            lines += ["", f"VIF pruning (max VIF {self.pruning.max_vif:g}):"]
            if len(self.pruning.summary) == 0:
                lines.append("  no predictor removed")
            for it, row in self.pruning.summary.iterrows():
                lines.append(
                    f"  {it:3d}. removed {row['removed']} (VIF={row['vif_removed']:.4g}), "
                    f"max VIF after = {row['max_vif_after']:.4g}, {row['n_remaining']} left"
                )
            lines.append(f"  selected: {', '.join(self.pruning.selected)}")

        if self.ladder is not None:
            lines += ["", "Stepwise ladder:",
                      f"  {'model':>5s}  {'p':>3s}  {'R2':>7s}  {'CN':>9s}  {'max VIF':>9s}  dropped"]
            for i, step in enumerate(self.ladder, start=1):
                lines.append(
                    f"  {i:5d}  {step.n_predictors:3d}  {step.r2:7.4f}  "
                    f"{step.condition_number:9.4g}  {step.max_vif:9.4g}  {step.dropped or '-'}"
                )

        if self.warnings:
            lines += ["", "Warnings:"] + [f"  - {w}" for w in self.warnings]
        return "\n".join(lines)


@dataclass(frozen=True)
class GroupOutcome:
    """Result of one group's analysis, or the error that stopped it."""

    group: Any
    result: Optional[PathResult] = None
    error: Optional[PathAnalysisError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> PathResult:
        """Return the result, re-raising the group's error if it failed."""
        if self.error is not None:
            raise self.error
        return self.result


def _emit(progress: Progress, msg: str) -> None:
    if progress is not None:
        progress(msg)


def _base_analysis(
    structure: CorrelationStructure,
    config: PathConfig,
    *,
    progress: Progress,
    label: str,
) -> Tuple[Optional[PathSolution], CollinearityDiagnostics, Optional[KSweepTable], float, List[str]]:
    """k sweep (when no correction), then the solve and diagnostics.

    Without a configured correction a singular k = 0 solve is not fatal:
    the sweep already holds the corrected solutions, so the solution is
    left empty and the reason recorded.  With a configured correction the
    ``SingularMatrixError`` propagates.
    """
    notes: List[str] = []
    sweep = None
    if config.correction is None:
        # The sweep is advisory; the base model is still solved uncorrected.
        sweep = k_sweep(structure.corr_x, structure.corr_y, n_k=config.k_grid_size)
        notes += list(sweep.warnings)
        _emit(progress, f"{label} k sweep over {config.k_grid_size} values done")
        k = 0.0
    else:
        k = float(config.correction)

    try:
        model = fit_structure(structure, k=k)
    except SingularMatrixError as exc:
        if sweep is None:
            raise
        diagnostics = collinearity_diagnostics(structure.corr_x)
        notes += [f"base solve skipped: {exc}"] + list(diagnostics.warnings)
        _emit(
            progress,
            f"{label} singular at k=0; no base solution, k sweep kept "
            f"(CN={diagnostics.condition_number:.4g}, weightvar={diagnostics.weightvar})",
        )
        return None, diagnostics, sweep, k, notes

    notes += list(model.warnings)
    _emit(
        progress,
        f"{label} R2={model.solution.r2:.4f}, CN={model.diagnostics.condition_number:.4g}, "
        f"max VIF={model.diagnostics.max_vif:.4g}, weightvar={model.diagnostics.weightvar}",
    )
    return model.solution, model.diagnostics, sweep, k, notes


def _analyze_table(
    data: pd.DataFrame,
    config: PathConfig,
    predictors: Sequence[str],
    *,
    progress: Progress,
    name: Optional[str],
) -> PathResult:
    label = f"[{name}]" if name else "[path]"
    structure = correlation_structure(
        data, predictors, config.response, missing=config.missing_data_policy
    )
    _emit(progress, f"{label} using n={structure.n_obs}, p={len(predictors)} "
                    f"({structure.missing} correlations)")

    solution, diagnostics, sweep, k, notes = _base_analysis(
        structure, config, progress=progress, label=label
    )

    pruning = ladder = None
    if config.run_selection:
        pruning = vif_prune(
            data, predictors, config.response,
            max_vif=config.max_vif, missing=config.missing_data_policy, progress=progress,
        )
        _emit(progress, f"{label} selected {len(pruning.selected)} of {len(predictors)} predictors")
        ladder = stepwise_ladder(
            data, pruning.selected, config.response,
            k=k, missing=config.missing_data_policy, progress=progress,
        )

    return PathResult(
        response=config.response,
        predictors=tuple(predictors),
        correlation=structure,
        solution=solution,
        diagnostics=diagnostics,
        correction=k,
        k_sweep=sweep,
        pruning=pruning,
        ladder=ladder,
        warnings=tuple(notes),
    )


def path_coeff(
    data: pd.DataFrame,
    config: PathConfig,
    *,
    progress: Progress = None,
    name: Optional[str] = None,
) -> PathResult:
    """Run a path-coefficient analysis on the whole table.

    Pipeline steps:
      1. Resolve the predictor list from the config (once).
      2. Build predictor and response correlations under the configured
         missing-data policy.
      3. Without a fixed correction, sweep k over [0, 1] (advisory) and
         solve with k = 0, leaving the solution empty if that matrix is
         singular; otherwise solve with the configured k.
      4. Diagnose multicollinearity on the uncorrected matrix.
      5. With ``run_selection``, prune by VIF and build the stepwise ladder.

    Args:
        data: Table of numeric columns.
        config: Analysis options; must not name a grouping column (see
            path_coeff_by_group).
        progress: Optional callable receiving status lines.
        name: Label used in status lines.

    Returns:
        PathResult.
    """
    if config.grouping is not None:
        raise InvalidConfigurationError(
            f"Config groups by {config.grouping!r}; use path_coeff_by_group() or analyze()."
        )
    predictors = config.resolve_predictors(data)
    return _analyze_table(data, config, predictors, progress=progress, name=name)


def path_coeff_mat(
    corr: pd.DataFrame,
    response: str,
    *,
    predictors: Optional[Sequence[str]] = None,
    correction: Optional[float] = None,
    k_grid_size: int = DEFAULT_K_GRID_SIZE,
    progress: Progress = None,
    name: Optional[str] = None,
) -> PathResult:
    """Path analysis from a precomputed correlation matrix.

    Selection is not available here: pruning and the ladder rebuild
    correlations from raw observations on every iteration.

    Args:
        corr: Square correlation matrix labelled by variable on both axes.
        response: Variable of *corr* to treat as the response.
        predictors: Predictor names; defaults to every other variable.
        correction: Fixed k in [0, 1), or None to run the k sweep.
        k_grid_size: Grid size of the k sweep.
        progress: Optional callable receiving status lines.
        name: Label used in status lines.
    """
    config = PathConfig(
        response=response,
        predictors=None if predictors is None else tuple(predictors),
        correction=correction,
        k_grid_size=k_grid_size,
    )
    structure = structure_from_matrix(corr, response, config.predictors)
    label = f"[{name}]" if name else "[path]"
    solution, diagnostics, sweep, k, notes = _base_analysis(
        structure, config, progress=progress, label=label
    )
    return PathResult(
        response=response,
        predictors=tuple(structure.predictors),
        correlation=structure,
        solution=solution,
        diagnostics=diagnostics,
        correction=k,
        k_sweep=sweep,
        warnings=tuple(notes),
    )


def path_coeff_by_group(
    data: pd.DataFrame,
    config: PathConfig,
    *,
    n_jobs: int = 1,
    progress: Progress = None,
) -> Dict[Any, GroupOutcome]:
    """One independent path analysis per level of ``config.grouping``.

    The predictor list is resolved once on the full table and shared by
    every group.  A group whose analysis raises a ``PathAnalysisError``
    (too few observations, singular matrix, exhausted selection) gets an
    outcome carrying that error; its siblings are unaffected.  Rows with
    no grouping value are rejected rather than silently left out.

    Args:
        data: Table holding the grouping column and the numeric variables.
        config: Analysis options with ``grouping`` set.
        n_jobs: Worker threads; 1 runs the groups sequentially.
        progress: Optional callable receiving status lines.

    Returns:
        Dict mapping group value -> GroupOutcome, in order of first
        appearance in *data*, whatever order the workers finish in.
    """
    if config.grouping is None:
        raise InvalidConfigurationError("path_coeff_by_group() needs config.grouping to be set.")
    if int(n_jobs) < 1:
        raise InvalidConfigurationError(f"n_jobs must be >= 1, got {n_jobs!r}")
    predictors = config.resolve_predictors(data)
    n_unlabelled = int(data[config.grouping].isna().sum())
    if n_unlabelled:
        raise InvalidConfigurationError(
            f"{n_unlabelled} row(s) have no value in grouping column {config.grouping!r}; "
            "fill or drop them before a grouped analysis."
        )
    groups = list(data.groupby(config.grouping, sort=False))

    def _run(item) -> GroupOutcome:
        key, frame = item
        name = f"{config.grouping}={key}"
        try:
            result = _analyze_table(frame, config, predictors, progress=progress, name=name)
        except PathAnalysisError as exc:
            _emit(progress, f"[{name}] failed: {type(exc).__name__}: {exc}")
            return GroupOutcome(group=key, error=exc)
        _emit(progress, f"[{name}] done")
        return GroupOutcome(group=key, result=result)

    if int(n_jobs) == 1 or len(groups) <= 1:
        outcomes = [_run(item) for item in groups]
    else:
        # map() yields in submission order, so the merge is deterministic.
        with ThreadPoolExecutor(max_workers=int(n_jobs)) as executor:
            outcomes = list(executor.map(_run, groups))

    return {outcome.group: outcome for outcome in outcomes}


def analyze(
    data: pd.DataFrame,
    config: PathConfig,
    *,
    n_jobs: int = 1,
    progress: Progress = None,
) -> Union[PathResult, Dict[Any, GroupOutcome]]:
    """Grouped analysis when the config names a grouping column, single otherwise."""
    if config.grouping is not None:
        return path_coeff_by_group(data, config, n_jobs=n_jobs, progress=progress)
    return path_coeff(data, config, progress=progress)
