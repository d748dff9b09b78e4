from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

# Population correlation of (A, B, C, D, Y): well conditioned, every
# off-diagonal entry distinct.
KNOWN_CORR = np.array([
    [1.00, 0.30, 0.20, 0.10, 0.50],
    [0.30, 1.00, 0.25, 0.15, 0.40],
    [0.20, 0.25, 1.00, 0.05, 0.35],
    [0.10, 0.15, 0.05, 1.00, 0.20],
    [0.50, 0.40, 0.35, 0.20, 1.00],
])
KNOWN_NAMES = ["A", "B", "C", "D", "Y"]


def sample_from_corr(corr: np.ndarray, names, n: int, seed: int) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    L = np.linalg.cholesky(corr)
    Z = rng.standard_normal((n, corr.shape[0])) @ L.T
    return pd.DataFrame(Z, columns=names)


@pytest.fixture()
def known_corr() -> pd.DataFrame:
    return pd.DataFrame(KNOWN_CORR, index=KNOWN_NAMES, columns=KNOWN_NAMES)


@pytest.fixture()
def well_conditioned() -> pd.DataFrame:
    return sample_from_corr(KNOWN_CORR, KNOWN_NAMES, n=400, seed=7)


@pytest.fixture()
def collinear_pair() -> pd.DataFrame:
    """A and B perfectly collinear (B = 2A + 1); C independent."""
    rng = np.random.default_rng(11)
    n = 120
    a = rng.standard_normal(n)
    c = rng.standard_normal(n)
    y = 0.6 * a + 0.3 * c + 0.5 * rng.standard_normal(n)
    return pd.DataFrame({"A": a, "B": 2.0 * a + 1.0, "C": c, "Y": y})


@pytest.fixture()
def one_redundant() -> pd.DataFrame:
    """Six predictors; X6 = X1 + ... + X5 + noise, so VIF(X6) is about 40."""
    rng = np.random.default_rng(3)
    n = 2000
    X = rng.standard_normal((n, 5))
    sigma = np.sqrt(5.0 / 39.0)
    x6 = X.sum(axis=1) + sigma * rng.standard_normal(n)
    y = X @ np.array([0.5, 0.4, 0.3, 0.2, 0.02]) + rng.standard_normal(n)
    df = pd.DataFrame(X, columns=[f"X{i}" for i in range(1, 6)])
    df["X6"] = x6
    df["Y"] = y
    return df


@pytest.fixture()
def chained_collinearity() -> pd.DataFrame:
    """Seven predictors with two nested redundancies, for multi-step pruning."""
    rng = np.random.default_rng(5)
    n = 800
    base = rng.standard_normal((n, 5))
    df = pd.DataFrame(base, columns=["P1", "P2", "P3", "P4", "P5"])
    df["P6"] = df["P1"] + df["P2"] + 0.2 * rng.standard_normal(n)
    df["P7"] = df["P6"] + df["P3"] + 0.3 * rng.standard_normal(n)
    df["Y"] = base @ np.array([0.5, 0.4, 0.3, 0.2, 0.1]) + rng.standard_normal(n)
    return df


@pytest.fixture()
def grouped_frame() -> pd.DataFrame:
    """Three environments; 'E2' has only two observations."""
    rng = np.random.default_rng(21)
    frames = []
    for env, n in [("E1", 60), ("E2", 2), ("E3", 80)]:
        X = rng.standard_normal((n, 3))
        y = X @ np.array([0.5, 0.3, 0.2]) + 0.5 * rng.standard_normal(n)
        frame = pd.DataFrame(X, columns=["L1", "L2", "L3"])
        frame["Y"] = y
        frame.insert(0, "env", env)
        frames.append(frame)
    return pd.concat(frames, ignore_index=True)
