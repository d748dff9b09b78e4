"""Direct and indirect effects from a correlation structure.

The path solve is a standardized multiple regression written entirely in
terms of correlations.  With R the predictor correlation matrix, r the
predictor-response correlations and S = R + kI the matrix actually solved:

    b          = S^{-1} r                 -- direct effects
    effect_ij  = b_j * S_ij   (i != j)    -- indirect effect of i through j
    effect_ii  = b_i * S_ii = b_i (1 + k)
    R^2        = b . r
    residual   = sqrt(1 - R^2)

Each row of the effects table reproduces the predictor's correlation with
the response exactly, at every k (the path-analysis identity):

    sum_j b_j S_ij  =  (S b)_i  =  r_i

Off the diagonal S equals R, so indirect effects are the same products
b_j R_ij at any k; only the diagonal carries the correction.
"""

from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
import pandas as pd
import scipy.linalg

from pathcoef.errors import InvalidConfigurationError, SingularMatrixError
from pathcoef.utils import add_to_diagonal, is_singular


@dataclass(frozen=True)
class PathSolution:
    """Outcome of one path solve on a fixed predictor set and correction."""

    direct: pd.Series
    effects: pd.DataFrame
    r2: float
    residual: float
    k: float
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def predictors(self) -> list:
        return list(self.direct.index)

    def indirect(self) -> pd.DataFrame:
        """Effects table with the direct effects (diagonal) zeroed out."""
        vals = self.effects.to_numpy(dtype=np.float64, copy=True)
        np.fill_diagonal(vals, 0.0)
        return pd.DataFrame(vals, index=self.effects.index, columns=self.effects.columns)

    def total(self) -> pd.Series:
        """Row sums of the effects table: direct plus all indirect effects."""
        return self.effects.sum(axis=1).rename("total")


def _aligned_response(corr_x: pd.DataFrame, corr_y: pd.Series) -> np.ndarray:
    if list(corr_x.index) != list(corr_x.columns):
        raise InvalidConfigurationError("Predictor correlation matrix must be square with matching labels.")
    missing = [p for p in corr_x.index if p not in corr_y.index]
    if missing or len(corr_y) != len(corr_x):
        raise InvalidConfigurationError(
            "Response correlations must be indexed by the same predictors as the matrix "
            f"(missing: {missing})."
        )
    return corr_y.reindex(corr_x.index).to_numpy(dtype=np.float64)


def solve_paths(corr_x: pd.DataFrame, corr_y: pd.Series, *, k: float = 0.0) -> PathSolution:
    """Solve for direct effects, indirect effects, R^2 and the residual effect.

    Parameters
    ----------
    corr_x : DataFrame
        Uncorrected predictor correlation matrix.
    corr_y : Series
        Predictor-response correlations, indexed by predictor.
    k : float
        Diagonal correction applied before inversion (0 = none).

    Raises
    ------
    SingularMatrixError
        The (corrected) matrix cannot be inverted within tolerance.
    """
    r = _aligned_response(corr_x, corr_y)
    corrected = add_to_diagonal(corr_x, k)
    S = corrected.to_numpy(dtype=np.float64)

    # With k > 0 the correction is trusted; only a failed inversion raises.
    if k == 0 and is_singular(S):
        raise SingularMatrixError(
            "Predictor correlation matrix is singular (exact or near-exact collinearity); "
            "supply a diagonal correction k > 0 or drop redundant predictors."
        )
    try:
        inv = scipy.linalg.inv(S)
    except scipy.linalg.LinAlgError as exc:
        raise SingularMatrixError(f"Correlation matrix could not be inverted (k={k:g}): {exc}") from exc

    b = inv @ r
    names = list(corr_x.index)

    # Row i, column j: b_j * S_ij, so row i sums to r_i.  The diagonal is
    # b_i (1 + k), which is b_i itself when uncorrected.
    effects = S * b[np.newaxis, :]

    notes = []
    r2 = float(b @ r)
    if r2 > 1.0:
        notes.append(f"R^2 = {r2:.6g} exceeds 1 (numerical noise); residual effect clipped to 0.")
        residual = 0.0
    else:
        residual = float(np.sqrt(max(1.0 - r2, 0.0)))

    return PathSolution(
        direct=pd.Series(b, index=names, name="direct"),
        effects=pd.DataFrame(effects, index=names, columns=names),
        r2=r2,
        residual=residual,
        k=float(k),
        warnings=tuple(notes),
    )
