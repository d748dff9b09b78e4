"""One full engine pass on a fixed predictor set.

correlation structure -> [diagonal correction] -> path solve -> diagnostics

This is the unit reused by the pipeline, the pruning loop and every rung of
the stepwise ladder.
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

import pandas as pd

from pathcoef.correlation import CorrelationStructure, correlation_structure
from pathcoef.diagnostics import CollinearityDiagnostics, collinearity_diagnostics
from pathcoef.solver import PathSolution, solve_paths


@dataclass(frozen=True)
class PathModel:
    structure: CorrelationStructure
    solution: PathSolution
    diagnostics: CollinearityDiagnostics

    @property
    def predictors(self) -> list:
        return self.structure.predictors

    @property
    def warnings(self) -> Tuple[str, ...]:
        return self.solution.warnings + self.diagnostics.warnings


def fit_structure(structure: CorrelationStructure, *, k: float = 0.0) -> PathModel:
    """Solve and diagnose an already built correlation structure."""
    solution = solve_paths(structure.corr_x, structure.corr_y, k=k)
    diagnostics = collinearity_diagnostics(structure.corr_x)
    return PathModel(structure=structure, solution=solution, diagnostics=diagnostics)


def fit_path_model(
    data: pd.DataFrame,
    predictors: Sequence[str],
    response: str,
    *,
    k: float = 0.0,
    missing: str = "pairwise",
) -> PathModel:
    """Build correlations from *data* and run the full engine with correction *k*."""
    structure = correlation_structure(data, predictors, response, missing=missing)
    return fit_structure(structure, k=k)
