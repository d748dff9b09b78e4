"""Multicollinearity diagnostics for a predictor correlation matrix.

Always computed on the *uncorrected* matrix so the numbers describe the
data, not the regularised solve:

* eigenvalues / eigenvectors, sorted by decreasing eigenvalue;
* condition number  lambda_max / lambda_min  (large = near-collinear);
* determinant, the product of the eigenvalues (near 0 = near-singular);
* ``weightvar`` -- the predictor with the largest absolute loading on the
  eigenvector of the smallest eigenvalue, i.e. the variable that
  dominates the direction of strongest near-collinearity;
* variance inflation factors, VIF_i = 1 / (1 - R^2_i), where R^2_i comes
  from regressing predictor i on all the others.

Correlation matrices are positive semi-definite in exact arithmetic, but
rounding (or pairwise-complete estimation) can leave slightly negative
eigenvalues.  These are clamped to 0 and a warning is recorded instead of
failing the analysis.
"""

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
import pandas as pd

from pathcoef.config import DEFAULT_MAX_VIF, EIGEN_NOISE_TOL, EPS
from pathcoef.utils import regress_on_correlations, sorted_eigh


@dataclass(frozen=True)
class EigenSummary:
    """Eigen-structure of a correlation matrix, largest eigenvalue first."""

    eigenvalues: pd.Series
    eigenvectors: pd.DataFrame
    condition_number: float
    determinant: float
    weightvar: str
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    def pairs(self) -> List[Tuple[float, pd.Series]]:
        """(eigenvalue, eigenvector) pairs in descending eigenvalue order."""
        return [
            (float(self.eigenvalues.iloc[j]), self.eigenvectors.iloc[:, j])
            for j in range(len(self.eigenvalues))
        ]


@dataclass(frozen=True)
class CollinearityDiagnostics:
    """Eigen summary plus the VIF table of one predictor set."""

    eigen: EigenSummary
    vif: pd.Series

    @property
    def condition_number(self) -> float:
        return self.eigen.condition_number

    @property
    def determinant(self) -> float:
        return self.eigen.determinant

    @property
    def weightvar(self) -> str:
        return self.eigen.weightvar

    @property
    def max_vif(self) -> float:
        return float(self.vif.max())

    @property
    def warnings(self) -> Tuple[str, ...]:
        return self.eigen.warnings

    def flagged(self, threshold: float = DEFAULT_MAX_VIF) -> List[str]:
        """Predictors whose VIF exceeds *threshold*, in predictor order."""
        return [name for name, v in self.vif.items() if v > threshold]


def eigen_summary(corr_x: pd.DataFrame) -> EigenSummary:
    """Eigendecompose *corr_x* and derive condition number, determinant and weightvar."""
    names = [str(c) for c in corr_x.index]
    vals, vecs = sorted_eigh(corr_x.to_numpy(dtype=np.float64))

    notes = []
    negative = vals < 0
    if negative.any():
        worst = float(vals.min())
        if worst >= -EIGEN_NOISE_TOL:
            notes.append(
                f"{int(negative.sum())} tiny negative eigenvalue(s) (min {worst:.3g}) clamped to 0."
            )
        else:
            notes.append(
                f"Correlation matrix is not positive semi-definite (min eigenvalue {worst:.3g}); "
                "negative eigenvalues clamped to 0."
            )
        vals = np.where(negative, 0.0, vals)

    smallest = float(vals[-1])
    cond = float(vals[0] / smallest) if smallest > 0 else float("inf")
    det = float(np.prod(vals))

    # Loadings on the direction of strongest near-collinearity.
    weak = np.abs(vecs[:, -1])
    weightvar = names[int(np.argmax(weak))]

    components = [f"PC{j + 1}" for j in range(len(vals))]
    return EigenSummary(
        eigenvalues=pd.Series(vals, index=components, name="eigenvalue"),
        eigenvectors=pd.DataFrame(vecs, index=names, columns=components),
        condition_number=cond,
        determinant=det,
        weightvar=weightvar,
        warnings=tuple(notes),
    )


def vif_table(corr_x: pd.DataFrame) -> pd.Series:
    """Variance inflation factor of every predictor.

    For each predictor i the remaining predictors' correlation sub-matrix
    is solved against their correlations with i (the same standardized
    regression the path solve performs, with i as the local response).
    R^2_i is clamped to [0, 1]; when 1 - R^2_i is at or below ``EPS``
    the predictor is an exact linear combination of the others and its
    VIF is infinite.
    """
    names = [str(c) for c in corr_x.index]
    S = corr_x.to_numpy(dtype=np.float64)
    p = S.shape[0]
    out = np.empty(p, dtype=np.float64)
    for i in range(p):
        others = [j for j in range(p) if j != i]
        _, r2 = regress_on_correlations(S[np.ix_(others, others)], S[others, i])
        r2 = min(max(r2, 0.0), 1.0)
        tolerance = 1.0 - r2
        out[i] = np.inf if tolerance <= EPS else 1.0 / tolerance
    return pd.Series(out, index=names, name="VIF")


def collinearity_diagnostics(corr_x: pd.DataFrame) -> CollinearityDiagnostics:
    """Full multicollinearity diagnosis of an (uncorrected) predictor correlation matrix."""
    return CollinearityDiagnostics(eigen=eigen_summary(corr_x), vif=vif_table(corr_x))
