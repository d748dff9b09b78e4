"""Linear-algebra building blocks shared by the solver and the diagnostics.

* **Diagonal correction** -- the ridge-style ``R + kI`` transform that
  stabilises inversion of an ill-conditioned correlation matrix.
* **Singularity check** -- eigenvalue-ratio test for a matrix that cannot
  be inverted within numerical tolerance.
* **Regression on correlations** -- solves ``R b = r`` for standardized
  coefficients and returns ``R^2 = b . r``; this is the sub-solve behind
  every variance inflation factor.

Key notation throughout:
  - R : (p x p) predictor correlation matrix
  - r : (p,) correlations of each predictor with the (local) response
  - b : (p,) standardized coefficients, the direct effects
  - k : scalar added to the diagonal of R before inversion
"""

from typing import Tuple

import numpy as np
import pandas as pd

from pathcoef.config import SINGULAR_TOL
from pathcoef.errors import InvalidConfigurationError


def add_to_diagonal(corr: pd.DataFrame, k: float) -> pd.DataFrame:
    """Return a new matrix with *k* added to every diagonal entry.

    Inflating the diagonal shrinks the condition number of a correlation
    matrix: every eigenvalue lambda becomes lambda + k, so the ratio
    (lambda_max + k) / (lambda_min + k) can only go down.  This is the
    discrete analogue of ridge regression.  Off-diagonal entries are left
    untouched and *corr* is never modified; ``k = 0`` returns an equal copy.
    """
    k = float(k)
    if not np.isfinite(k) or k < 0:
        raise InvalidConfigurationError(f"Diagonal correction must be a finite k >= 0, got {k!r}")
    S = corr.to_numpy(dtype=np.float64, copy=True)
    S[np.diag_indices_from(S)] += k
    return pd.DataFrame(S, index=corr.index, columns=corr.columns)


def sorted_eigh(S: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Symmetric eigendecomposition with eigenvalues sorted descending.

    Returns (eigenvalues, eigenvectors) where column j of the eigenvector
    matrix belongs to eigenvalue j.  Each eigenvector's sign is fixed so
    that its largest-magnitude loading is positive, which makes repeated
    runs on the same matrix return identical output.
    """
    S = np.asarray(S, dtype=np.float64)
    # eigh returns ascending order; flip to descending.
    vals, vecs = np.linalg.eigh((S + S.T) / 2.0)
    order = np.argsort(vals)[::-1]
    vals = vals[order]
    vecs = vecs[:, order]
    pivot = np.argmax(np.abs(vecs), axis=0)
    signs = np.sign(vecs[pivot, np.arange(vecs.shape[1])])
    signs[signs == 0] = 1.0
    return vals, vecs * signs


def is_singular(S: np.ndarray, *, tol: float = SINGULAR_TOL) -> bool:
    """True when *S* is not invertible within relative tolerance *tol*.

    Uses the ratio of smallest to largest absolute eigenvalue (the
    reciprocal condition number of a symmetric matrix); a determinant
    test is too sensitive to the matrix dimension.
    """
    vals = np.abs(np.linalg.eigvalsh(np.asarray(S, dtype=np.float64)))
    top = float(vals.max()) if vals.size else 0.0
    if top == 0.0:
        return True
    return float(vals.min()) <= tol * top


def regress_on_correlations(R: np.ndarray, r: np.ndarray) -> Tuple[np.ndarray, float]:
    """Standardized regression of a variable on others, from correlations only.

    Solves ``R b = r`` in the least-squares sense and returns ``(b, R^2)``
    with ``R^2 = b . r``.  When *R* is singular (exact collinearity among
    the regressors) ``lstsq`` returns the minimum-norm solution, whose fit
    equals the projection of the local response onto the regressors'
    span, so R^2 stays meaningful.

    Parameters
    ----------
    R : (m, m) array
        Correlations among the regressors.
    r : (m,) array
        Correlations of the regressors with the local response.
    """
    R = np.asarray(R, dtype=np.float64)
    r = np.asarray(r, dtype=np.float64)
    if R.size == 0:
        return np.zeros(0), 0.0
    b, *_ = np.linalg.lstsq(R, r, rcond=None)
    return b, float(b @ r)
