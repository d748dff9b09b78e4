"""Package-wide constants and the analysis configuration.

This module centralizes every tuneable parameter of the path-coefficient
engine -- numerical tolerances, the minimum number of paired observations,
the k-sweep grid, the VIF pruning threshold -- so that scripts and the
command-line entry point import a single source of truth.

It also defines ``PathConfig``, the option set one analysis runs with.
Options are validated when the config is built, and the predictor list is
resolved against a concrete table exactly once (``resolve_predictors``)
before any numerical work starts; the engine itself never looks columns up
by pattern.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from pathcoef.errors import InvalidConfigurationError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Numerical floor used when a quantity like 1 - R^2 must be divided by.
# Anything at or below it is treated as exact collinearity (infinite VIF).
EPS = 1e-12

# Relative tolerance for declaring a correlation matrix singular: the
# matrix is treated as non-invertible when its smallest absolute
# eigenvalue is below SINGULAR_TOL times its largest one.
SINGULAR_TOL = 1e-10

# Absolute size below which a negative eigenvalue is considered
# floating-point noise.  Larger negative eigenvalues (possible with
# pairwise-complete correlations) are still clamped, but the warning
# says the matrix is indefinite.
EIGEN_NOISE_TOL = 1e-8

# Fewest complete observations for which a Pearson correlation is
# considered defined.
MIN_OBSERVATIONS = 3

# Number of equally spaced k values swept over K_GRID_BOUNDS when no
# fixed diagonal correction is configured.
DEFAULT_K_GRID_SIZE = 50
K_GRID_BOUNDS = (0.0, 1.0)

# Canonical variance inflation factor above which a predictor is
# treated as redundant given the others.
DEFAULT_MAX_VIF = 10.0

# --- Missing-data policies --------------------------------------------------

PAIRWISE = "pairwise"
LISTWISE = "listwise"

# Accepted spellings, mapped to the canonical policy name.  The long
# forms are the names used by R's cor(use = ...).
MISSING_POLICIES: Dict[str, str] = {
    "pairwise": PAIRWISE,
    "pairwise.complete.obs": PAIRWISE,
    "listwise": LISTWISE,
    "complete": LISTWISE,
    "complete.obs": LISTWISE,
}


def normalize_missing_policy(policy: str) -> str:
    """Return the canonical missing-data policy for *policy*.

    Raises ``InvalidConfigurationError`` for unknown names.
    """
    key = str(policy).strip().lower()
    if key not in MISSING_POLICIES:
        raise InvalidConfigurationError(
            f"Unknown missing-data policy {policy!r}; "
            f"expected one of {sorted(MISSING_POLICIES)}"
        )
    return MISSING_POLICIES[key]


def k_grid(n_k: int = DEFAULT_K_GRID_SIZE) -> np.ndarray:
    """Equally spaced diagonal corrections over ``K_GRID_BOUNDS``, endpoints included."""
    if isinstance(n_k, bool) or not isinstance(n_k, (int, np.integer)) or n_k < 2:
        raise InvalidConfigurationError(f"k grid size must be an integer >= 2, got {n_k!r}")
    lo, hi = K_GRID_BOUNDS
    return np.linspace(lo, hi, int(n_k))


# ---------------------------------------------------------------------------
# Analysis configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PathConfig:
    """Options for one path-coefficient analysis.

    Attributes
    ----------
    response : str
        Name of the dependent variable.
    predictors : sequence of str, optional
        Ordered predictor names.  ``None`` means every numeric column
        except the response (and the grouping column).
    grouping : str, optional
        Column whose values partition the table into independent analyses.
    exclude : bool
        When True, *predictors* lists columns to remove from the default
        set instead of the set itself.
    correction : float, optional
        Fixed diagonal correction k in [0, 1).  ``None`` runs the k sweep
        and solves the base model with k = 0.
    k_grid_size : int
        Number of k values swept when *correction* is None.
    run_selection : bool
        Run VIF pruning followed by the stepwise model ladder.
    max_vif : float
        VIF threshold used by the pruning phase.
    missing_data_policy : str
        ``"pairwise"`` (default) or ``"listwise"``.
    """

    response: str
    predictors: Optional[Tuple[str, ...]] = None
    grouping: Optional[str] = None
    exclude: bool = False
    correction: Optional[float] = None
    k_grid_size: int = DEFAULT_K_GRID_SIZE
    run_selection: bool = False
    max_vif: float = DEFAULT_MAX_VIF
    missing_data_policy: str = field(default=PAIRWISE)

    def __post_init__(self):
        if not isinstance(self.response, str) or not self.response:
            raise InvalidConfigurationError("A response variable name is required.")

        if self.predictors is not None:
            if isinstance(self.predictors, str):
                preds = (self.predictors,)
            else:
                preds = tuple(str(p) for p in self.predictors)
            dupes = sorted({p for p in preds if preds.count(p) > 1})
            if dupes:
                raise InvalidConfigurationError(f"Duplicated predictors: {dupes}")
            if self.response in preds and not self.exclude:
                raise InvalidConfigurationError(
                    f"Response {self.response!r} cannot also be a predictor."
                )
            # frozen dataclass: normalise through object.__setattr__
            object.__setattr__(self, "predictors", preds)

        if self.grouping is not None and self.grouping == self.response:
            raise InvalidConfigurationError("The grouping column cannot be the response.")

        if self.correction is not None:
            k = float(self.correction)
            lo, hi = K_GRID_BOUNDS
            if not np.isfinite(k) or k < lo or k >= hi:
                raise InvalidConfigurationError(
                    f"correction must lie in [{lo:g}, {hi:g}), got {self.correction!r}"
                )
            object.__setattr__(self, "correction", k)

        # Validates the grid size without keeping the grid.
        k_grid(self.k_grid_size)

        if not np.isfinite(self.max_vif) or self.max_vif < 1.0:
            raise InvalidConfigurationError(
                f"max_vif must be a finite number >= 1 (VIF is never below 1), got {self.max_vif!r}"
            )

        object.__setattr__(
            self, "missing_data_policy", normalize_missing_policy(self.missing_data_policy)
        )

    def resolve_predictors(self, data: pd.DataFrame) -> List[str]:
        """Turn the predictor options into a concrete, ordered list of columns.

        Default set: every numeric column of *data* except the response and
        the grouping column, in table order.  With ``exclude=True`` the
        configured names are removed from that default; otherwise the
        configured names are used as given (and must be numeric columns).
        """
        columns = [str(c) for c in data.columns]
        if self.response not in columns:
            raise InvalidConfigurationError(f"Response {self.response!r} is not a column of the data.")
        if self.grouping is not None and self.grouping not in columns:
            raise InvalidConfigurationError(f"Grouping column {self.grouping!r} is not a column of the data.")
        if not pd.api.types.is_numeric_dtype(data[self.response]):
            raise InvalidConfigurationError(f"Response {self.response!r} is not numeric.")

        reserved = {self.response, self.grouping}
        default = [
            c for c in data.columns
            if str(c) not in reserved and pd.api.types.is_numeric_dtype(data[c])
        ]
        default = [str(c) for c in default]

        if self.predictors is None:
            resolved = default
        else:
            unknown = [p for p in self.predictors if p not in columns]
            if unknown:
                raise InvalidConfigurationError(f"Unknown predictor columns: {unknown}")
            if self.exclude:
                drop = set(self.predictors)
                resolved = [c for c in default if c not in drop]
            else:
                non_numeric = [p for p in self.predictors if p not in default]
                if non_numeric:
                    raise InvalidConfigurationError(
                        f"Predictors must be numeric and distinct from response/grouping: {non_numeric}"
                    )
                resolved = list(self.predictors)

        if len(resolved) < 2:
            raise InvalidConfigurationError(
                f"At least 2 predictors are needed for a path analysis, got {resolved}"
            )
        return resolved


def check_predictor_names(predictors: Sequence[str], response: str) -> List[str]:
    """Validate an explicit VariableSet and return the predictors as a list."""
    preds = [str(p) for p in predictors]
    if len(set(preds)) != len(preds):
        raise InvalidConfigurationError(f"Duplicated predictors: {preds}")
    if response in preds:
        raise InvalidConfigurationError(f"Response {response!r} cannot also be a predictor.")
    if len(preds) < 2:
        raise InvalidConfigurationError(
            f"At least 2 predictors are needed for a path analysis, got {preds}"
        )
    return preds
