import numpy as np
import pytest

from pathcoef.errors import InvalidConfigurationError, SelectionExhaustedError
from pathcoef.selection import PRUNING_COLUMNS, stepwise_ladder, vif_prune


def test_prunes_the_redundant_predictor_first(one_redundant):
    preds = [f"X{i}" for i in range(1, 7)]
    result = vif_prune(one_redundant, preds, "Y", max_vif=5)
    first = result.summary.iloc[0]
    assert first["removed"] == "X6"
    assert 25 < first["vif_removed"] < 60
    assert result.initial_vif.idxmax() == "X6"
    assert len(result.summary) == 1
    assert result.selected == ("X1", "X2", "X3", "X4", "X5")
    assert (result.final_vif <= 5).all()
    assert list(result.summary.columns) == PRUNING_COLUMNS


def test_nothing_removed_when_under_threshold(well_conditioned):
    result = vif_prune(well_conditioned, ["A", "B", "C", "D"], "Y", max_vif=10)
    assert result.selected == ("A", "B", "C", "D")
    assert len(result.summary) == 0
    assert result.removed == ()


def test_pruning_is_monotone(chained_collinearity):
    preds = ["P1", "P2", "P3", "P4", "P5", "P6", "P7"]
    lines = []
    result = vif_prune(chained_collinearity, preds, "Y", max_vif=2, progress=lines.append)
    summary = result.summary
    assert len(summary) >= 2
    assert len(lines) == len(summary)

    counts = [len(preds)] + summary["n_remaining"].tolist()
    assert all(b == a - 1 for a, b in zip(counts, counts[1:]))

    maxima = [result.initial_vif.max()] + summary["max_vif_after"].tolist()
    assert all(b <= a + 1e-9 for a, b in zip(maxima, maxima[1:]))

    # Selected keeps the original order minus removed members.
    assert list(result.selected) == [p for p in preds if p not in result.removed]


def test_tie_break_prefers_first_in_order(collinear_pair):
    # A and B share an infinite VIF; A comes first and goes first.
    df = collinear_pair.copy()
    df["D"] = np.random.default_rng(1).standard_normal(len(df))
    result = vif_prune(df, ["A", "B", "C", "D"], "Y", max_vif=10)
    assert result.removed == ("A",)
    assert result.selected == ("B", "C", "D")


def test_exhausted_selection_raises(collinear_pair):
    with pytest.raises(SelectionExhaustedError):
        vif_prune(collinear_pair, ["A", "B"], "Y", max_vif=10)


def test_invalid_threshold_rejected(well_conditioned):
    with pytest.raises(InvalidConfigurationError):
        vif_prune(well_conditioned, ["A", "B"], "Y", max_vif=0.5)


def test_ladder_shape(one_redundant):
    selected = ["X1", "X2", "X3", "X4", "X5"]
    ladder = stepwise_ladder(one_redundant, selected, "Y")
    assert len(ladder) == 4
    assert ladder[0].predictors == tuple(selected)
    assert ladder[-1].n_predictors == 2
    assert ladder[-1].dropped is None
    assert ladder.selected == tuple(selected)


def test_ladder_drops_weakest_direct_effect(one_redundant):
    selected = ["X1", "X2", "X3", "X4", "X5"]
    ladder = stepwise_ladder(one_redundant, selected, "Y")
    for step, nxt in zip(ladder.steps, ladder.steps[1:]):
        weakest = step.direct.abs().idxmin()
        assert step.dropped == weakest
        assert nxt.predictors == tuple(p for p in step.predictors if p != weakest)
    # X5 has the smallest true coefficient and leaves first.
    assert ladder[0].dropped == "X5"
    # Nested models never explain more variance.
    r2 = [s.r2 for s in ladder]
    assert all(b <= a + 1e-12 for a, b in zip(r2, r2[1:]))


def test_ladder_summary_and_progress(one_redundant):
    lines = []
    ladder = stepwise_ladder(one_redundant, ["X1", "X2", "X3"], "Y", k=0.05, progress=lines.append)
    table = ladder.summary()
    assert list(table["n_predictors"]) == [3, 2]
    assert len(lines) == 2
    assert ladder.k == 0.05
    assert table.index.name == "model"


def test_ladder_needs_two_predictors(one_redundant):
    with pytest.raises(InvalidConfigurationError):
        stepwise_ladder(one_redundant, ["X1"], "Y")
