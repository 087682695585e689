import numpy as np
import pandas as pd
import pytest

from churn_tree.feature_selector import InformationGainSelector, entropy


def _frame(n=200, seed=0):
    rng = np.random.default_rng(seed)
    y = pd.Series(np.tile([0, 1], n // 2))
    X = pd.DataFrame(
        {
            "noise": rng.integers(0, 3, n),
            "perfect": y.to_numpy() * 2 + 1,
            "constant": np.ones(n),
            "tenure": np.where(y == 1, rng.normal(50, 10, n), rng.normal(300, 40, n)),
        }
    )
    return X, y


def test_entropy_of_balanced_binary_label_is_one():
    assert entropy(pd.Series([0, 1, 0, 1])) == pytest.approx(1.0)
    assert entropy(pd.Series([1, 1, 1])) == 0.0


def test_perfect_feature_recovers_full_label_entropy():
    X, y = _frame()
    ranking = InformationGainSelector().rank(X, y)
    assert ranking.score("perfect") == pytest.approx(1.0)
    assert ranking.score("constant") == 0.0


def test_scores_are_non_negative_and_descending():
    X, y = _frame()
    ranking = InformationGainSelector().rank(X, y)
    scores = [s for _, s in ranking]
    assert all(s >= 0 for s in scores)
    assert scores == sorted(scores, reverse=True)
    assert set(ranking.features) == set(X.columns)


def test_continuous_feature_is_binned_and_informative():
    X, y = _frame()
    selector = InformationGainSelector(max_levels=10, n_bins=10)
    assert selector._discretize(X["tenure"]).nunique() <= 10
    gain = selector.information_gain(X["tenure"], y)
    assert 0.9 < gain <= entropy(y) + 1e-12


def test_ranking_is_deterministic():
    X, y = _frame()
    selector = InformationGainSelector()
    assert selector.rank(X, y) == selector.rank(X, y)


def test_ties_keep_column_order():
    X, y = _frame()
    X = X.assign(copy_b=X["perfect"], copy_a=X["perfect"])
    ranking = InformationGainSelector().rank(X, y)
    order = ranking.features
    assert ranking.score("copy_b") == ranking.score("perfect") == ranking.score("copy_a")
    assert order.index("perfect") < order.index("copy_b") < order.index("copy_a")


def test_select_drops_uninformative_features():
    X, y = _frame()
    ranking = InformationGainSelector().rank(X, y)
    selected = ranking.select()
    assert "constant" not in selected
    assert selected[0] in {"perfect", "tenure"}
    assert ranking.select(min_score=0.5) == [f for f, s in ranking if s > 0.5]


def test_ranking_to_frame():
    X, y = _frame()
    frame = InformationGainSelector().rank(X, y).to_frame()
    assert list(frame.columns) == ["feature", "information_gain"]
    assert len(frame) == X.shape[1]
