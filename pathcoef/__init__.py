"""
pathcoef -- multicollinearity-aware path-coefficient analysis.

The package decomposes the correlation between a response and a set of
predictors into direct effects (standardized regression coefficients) and
indirect effects (the part of each association carried by correlated
predictors), while diagnosing and mitigating multicollinearity.

Key exports
-----------
path_coeff : function
    Full analysis of one table: correlations, optional k sweep, path
    solve, eigen/VIF diagnostics and, on request, predictor selection.
path_coeff_by_group : function
    Independent analyses per level of a grouping column; one group's
    failure is recorded in its outcome and does not stop the others.
path_coeff_mat : function
    Base analysis from a precomputed correlation matrix.
PathConfig : dataclass
    Validated option set (response, predictors, correction, max_vif, ...).
solve_paths, collinearity_diagnostics, k_sweep, vif_prune, stepwise_ladder
    The engine components, usable on their own.
"""

from pathcoef.analysis import (
    GroupOutcome,
    PathResult,
    analyze,
    path_coeff,
    path_coeff_by_group,
    path_coeff_mat,
)
from pathcoef.config import PathConfig
from pathcoef.correlation import CorrelationStructure, correlation_structure
from pathcoef.diagnostics import CollinearityDiagnostics, EigenSummary, collinearity_diagnostics
from pathcoef.errors import (
    InsufficientDataError,
    InvalidConfigurationError,
    PathAnalysisError,
    SelectionExhaustedError,
    SingularMatrixError,
)
from pathcoef.selection import LadderStep, ModelLadder, PruningResult, stepwise_ladder, vif_prune
from pathcoef.solver import PathSolution, solve_paths
from pathcoef.sweep import KSweepTable, k_sweep
from pathcoef.utils import add_to_diagonal

__version__ = "0.1.0"

__all__ = [
    "path_coeff",
    "path_coeff_by_group",
    "path_coeff_mat",
    "analyze",
    "PathConfig",
    "PathResult",
    "GroupOutcome",
    "correlation_structure",
    "CorrelationStructure",
    "add_to_diagonal",
    "solve_paths",
    "PathSolution",
    "collinearity_diagnostics",
    "CollinearityDiagnostics",
    "EigenSummary",
    "k_sweep",
    "KSweepTable",
    "vif_prune",
    "PruningResult",
    "stepwise_ladder",
    "ModelLadder",
    "LadderStep",
    "PathAnalysisError",
    "InsufficientDataError",
    "SingularMatrixError",
    "SelectionExhaustedError",
    "InvalidConfigurationError",
]
