import numpy as np
import pandas as pd
import pytest

from pathcoef.config import DEFAULT_K_GRID_SIZE, DEFAULT_MAX_VIF, PathConfig, k_grid
from pathcoef.errors import InvalidConfigurationError


@pytest.fixture()
def mixed_frame() -> pd.DataFrame:
    rng = np.random.default_rng(0)
    return pd.DataFrame({
        "site": ["a", "b"] * 5,
        "ph": rng.standard_normal(10),
        "ed": rng.standard_normal(10),
        "label": list("abcdefghij"),
        "tkw": rng.standard_normal(10),
        "yield": rng.standard_normal(10),
    })


def test_defaults():
    config = PathConfig(response="yield")
    assert config.predictors is None
    assert config.correction is None
    assert config.k_grid_size == DEFAULT_K_GRID_SIZE == 50
    assert config.max_vif == DEFAULT_MAX_VIF == 10
    assert config.missing_data_policy == "pairwise"
    assert config.run_selection is False


def test_default_predictors_are_numeric_minus_response_and_group(mixed_frame):
    config = PathConfig(response="yield", grouping="site")
    assert config.resolve_predictors(mixed_frame) == ["ph", "ed", "tkw"]


def test_exclude_removes_from_default(mixed_frame):
    config = PathConfig(response="yield", predictors=["ed"], exclude=True)
    assert config.resolve_predictors(mixed_frame) == ["ph", "tkw"]


def test_explicit_predictors_keep_order(mixed_frame):
    config = PathConfig(response="yield", predictors=["tkw", "ph"])
    assert config.predictors == ("tkw", "ph")
    assert config.resolve_predictors(mixed_frame) == ["tkw", "ph"]


@pytest.mark.parametrize("predictors", [["ph", "nope"], ["ph", "label"]])
def test_unknown_or_non_numeric_predictors(mixed_frame, predictors):
    with pytest.raises(InvalidConfigurationError):
        PathConfig(response="yield", predictors=predictors).resolve_predictors(mixed_frame)


def test_fewer_than_two_predictors(mixed_frame):
    config = PathConfig(response="yield", predictors=["ph", "ed"], exclude=True)
    with pytest.raises(InvalidConfigurationError):
        config.resolve_predictors(mixed_frame)


def test_missing_response_column(mixed_frame):
    with pytest.raises(InvalidConfigurationError):
        PathConfig(response="grain").resolve_predictors(mixed_frame)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"response": ""},
        {"response": "y", "predictors": ["a", "a"]},
        {"response": "y", "predictors": ["a", "y"]},
        {"response": "y", "grouping": "y"},
        {"response": "y", "correction": 1.0},
        {"response": "y", "correction": -0.01},
        {"response": "y", "k_grid_size": 1},
        {"response": "y", "max_vif": 0.5},
        {"response": "y", "missing_data_policy": "mean-impute"},
    ],
)
def test_invalid_options(kwargs):
    with pytest.raises(InvalidConfigurationError):
        PathConfig(**kwargs)


def test_policy_is_normalised():
    assert PathConfig(response="y", missing_data_policy="complete.obs").missing_data_policy == "listwise"


def test_k_grid():
    ks = k_grid(5)
    assert np.allclose(ks, [0.0, 0.25, 0.5, 0.75, 1.0])
