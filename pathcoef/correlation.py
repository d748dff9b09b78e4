"""Correlation structure of a predictor set and its response.

Builds the two inputs every path solve starts from:

* ``corr_x`` -- the p x p predictor correlation matrix (labelled by
  predictor name, unit diagonal, symmetric);
* ``corr_y`` -- the correlation of each predictor with the response.

Two missing-data policies are supported.  *Pairwise* computes every
correlation from the rows where both of its columns are observed, so
different entries may rest on different rows.  *Listwise* first drops any
row with a missing value among the predictors and the response, and
computes all correlations from the remaining complete cases.

A correlation needs at least ``MIN_OBSERVATIONS`` complete pairs and a
non-constant column on both sides; otherwise it is undefined and the
builder raises ``InsufficientDataError`` naming the offending pair.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd

from pathcoef.config import MIN_OBSERVATIONS, LISTWISE, normalize_missing_policy, check_predictor_names
from pathcoef.errors import InsufficientDataError, InvalidConfigurationError


@dataclass(frozen=True)
class CorrelationStructure:
    """Predictor and response correlations for one variable set."""

    corr_x: pd.DataFrame
    corr_y: pd.Series
    n_obs: int
    missing: str

    @property
    def predictors(self) -> list:
        return list(self.corr_x.index)

    @property
    def response(self) -> str:
        return str(self.corr_y.name)


def _pairwise_counts(values: pd.DataFrame) -> pd.DataFrame:
    """Number of rows where both columns of each pair are observed."""
    # Indicator Gram matrix: entry (i, j) counts rows with i and j non-missing.
    observed = values.notna().to_numpy(dtype=np.float64)
    counts = observed.T @ observed
    return pd.DataFrame(counts.astype(np.int64), index=values.columns, columns=values.columns)


def correlation_structure(
    data: pd.DataFrame,
    predictors: Sequence[str],
    response: str,
    *,
    missing: str = "pairwise",
    min_obs: int = MIN_OBSERVATIONS,
) -> CorrelationStructure:
    """Compute ``corr_x`` and ``corr_y`` from raw numeric columns.

    Parameters
    ----------
    data : DataFrame
        Table holding at least the predictor and response columns.
    predictors : sequence of str
        Ordered predictor names; the output is indexed in this order.
    response : str
        Dependent variable name.
    missing : str
        Missing-data policy, ``"pairwise"`` or ``"listwise"``.
    min_obs : int
        Fewest complete pairs for which a correlation is defined.

    Returns
    -------
    CorrelationStructure
        ``n_obs`` is the smallest complete-pair count behind any entry.
    """
    policy = normalize_missing_policy(missing)
    preds = check_predictor_names(predictors, response)
    cols = preds + [response]
    absent = [c for c in cols if c not in data.columns]
    if absent:
        raise InvalidConfigurationError(f"Columns not found in data: {absent}")

    values = data.loc[:, cols].astype(np.float64)
    if policy == LISTWISE:
        values = values.dropna(axis=0, how="any")

    counts = _pairwise_counts(values)
    # Scan pairs in variable order so the reported pair is deterministic.
    for a in range(len(cols)):
        for b in range(a, len(cols)):
            n_ab = int(counts.iat[a, b])
            if n_ab < min_obs:
                what = cols[a] if a == b else f"{cols[a]!r} and {cols[b]!r}"
                raise InsufficientDataError(
                    f"Only {n_ab} valid observation(s) for {what} "
                    f"({policy} policy); at least {min_obs} are needed."
                )

    # pandas' Pearson correlation is already pairwise-complete; after a
    # listwise drop every pair sees the same rows.
    corr = values.corr(method="pearson", min_periods=min_obs)
    if corr.isna().to_numpy().any():
        bad = [c for c in cols if corr[c].isna().any()]
        raise InsufficientDataError(
            f"Correlation undefined for {bad}: constant column among the valid observations."
        )

    S = corr.to_numpy(dtype=np.float64)
    # Force exact symmetry and unit diagonal (float rounding can leave ~0.9999).
    S = (S + S.T) / 2.0
    np.fill_diagonal(S, 1.0)
    corr = pd.DataFrame(S, index=cols, columns=cols)

    corr_x = corr.loc[preds, preds]
    corr_y = corr.loc[preds, response].rename(response)
    n_obs = int(counts.to_numpy().min())
    return CorrelationStructure(corr_x=corr_x, corr_y=corr_y, n_obs=n_obs, missing=policy)


def structure_from_matrix(corr: pd.DataFrame, response: str, predictors: Sequence[str] = None) -> CorrelationStructure:
    """Split a precomputed correlation matrix into ``corr_x`` / ``corr_y``.

    *corr* must be square and labelled identically on both axes.  When
    *predictors* is None every variable except *response* is used, in
    matrix order.
    """
    if list(corr.index) != list(corr.columns):
        raise InvalidConfigurationError("Correlation matrix must have identical row and column labels.")
    names = [str(c) for c in corr.columns]
    if response not in names:
        raise InvalidConfigurationError(f"Response {response!r} is not in the correlation matrix.")
    if predictors is None:
        predictors = [c for c in names if c != response]
    preds = check_predictor_names(predictors, response)
    unknown = [p for p in preds if p not in names]
    if unknown:
        raise InvalidConfigurationError(f"Predictors not in the correlation matrix: {unknown}")

    S = corr.to_numpy(dtype=np.float64)
    if not np.all(np.isfinite(S)):
        raise InvalidConfigurationError("Correlation matrix contains non-finite entries.")
    if not np.allclose(S, S.T, atol=1e-8):
        raise InvalidConfigurationError("Correlation matrix is not symmetric.")
    frame = pd.DataFrame(S, index=names, columns=names)
    corr_x = frame.loc[preds, preds]
    corr_y = frame.loc[preds, response].rename(response)
    # Sample size is unknown for a supplied matrix.
    return CorrelationStructure(corr_x=corr_x, corr_y=corr_y, n_obs=0, missing="matrix")
