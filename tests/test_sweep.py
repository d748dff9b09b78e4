import numpy as np
import pytest

from pathcoef.correlation import correlation_structure
from pathcoef.errors import InvalidConfigurationError
from pathcoef.solver import solve_paths
from pathcoef.sweep import k_sweep


def test_default_grid_shape_and_bounds(well_conditioned):
    s = correlation_structure(well_conditioned, ["A", "B", "C", "D"], "Y")
    sweep = k_sweep(s.corr_x, s.corr_y)
    assert sweep.table.shape == (50, 4)
    assert sweep.table.index.name == "k"
    assert sweep.ks[0] == 0.0
    assert sweep.ks[-1] == 1.0
    assert np.allclose(np.diff(sweep.ks), 1.0 / 49)
    assert list(sweep.table.columns) == ["A", "B", "C", "D"]
    assert sweep.warnings == ()


def test_rows_match_individual_solves(well_conditioned):
    s = correlation_structure(well_conditioned, ["A", "B", "C"], "Y")
    sweep = k_sweep(s.corr_x, s.corr_y, n_k=11)
    for k in (0.0, 0.3, 1.0):
        expected = solve_paths(s.corr_x, s.corr_y, k=k).direct
        assert np.allclose(sweep.at(k).to_numpy(), expected.to_numpy())


def test_singular_start_is_recorded_not_raised(collinear_pair):
    s = correlation_structure(collinear_pair, ["A", "B", "C"], "Y")
    sweep = k_sweep(s.corr_x, s.corr_y, n_k=10)
    assert sweep.table.iloc[0].isna().all()
    assert np.isfinite(sweep.table.iloc[1:].to_numpy()).all()
    assert len(sweep.warnings) == 1
    assert "k=0" in sweep.warnings[0]


def test_effects_stabilise_under_collinearity(collinear_pair):
    s = correlation_structure(collinear_pair, ["A", "B", "C"], "Y")
    sweep = k_sweep(s.corr_x, s.corr_y, n_k=21)
    change = sweep.stability()
    assert len(change) == 20
    # Changes between successive k shrink along the grid.
    assert change.iloc[-1].max() < change.iloc[1].max()


@pytest.mark.parametrize("n_k", [0, 1, 2.5])
def test_bad_grid_size_rejected(known_corr, n_k):
    R = known_corr.loc[["A", "B"], ["A", "B"]]
    with pytest.raises(InvalidConfigurationError):
        k_sweep(R, known_corr.loc[["A", "B"], "Y"], n_k=n_k)
