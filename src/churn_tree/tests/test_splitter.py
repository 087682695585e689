import numpy as np
import pandas as pd
import pytest

from churn_tree.exceptions import ConfigurationError
from churn_tree.splitter import Partition, StratifiedSplitter


def _labelled(n_active=1686, n_cancelled=689, seed=0):
    rng = np.random.default_rng(seed)
    n = n_active + n_cancelled
    X = pd.DataFrame({"x": rng.normal(size=n), "z": rng.integers(0, 5, n)})
    y = pd.Series([0] * n_active + [1] * n_cancelled, name="Cancelled")
    return X, y


def test_split_sizes_for_2375_records():
    X, y = _labelled()
    part = StratifiedSplitter(0.7, random_state=42).split(X, y)

    assert abs(len(part.X_train) - 1663) <= 1
    assert len(part.X_train) + len(part.X_test) == 2375


def test_split_is_disjoint_and_complete():
    X, y = _labelled()
    part = StratifiedSplitter(0.7, random_state=42).split(X, y)

    train_idx, test_idx = set(part.X_train.index), set(part.X_test.index)
    assert train_idx.isdisjoint(test_idx)
    assert train_idx | test_idx == set(X.index)
    assert part.X_train.index.equals(part.y_train.index)
    assert part.X_test.index.equals(part.y_test.index)


def test_split_preserves_class_proportions():
    X, y = _labelled()
    part = StratifiedSplitter(0.7, random_state=42).split(X, y)

    source = Partition.proportions(y)
    for side in (part.y_train, part.y_test):
        for label, share in Partition.proportions(side).items():
            assert abs(share - source[label]) <= 0.02


def test_split_is_reproducible_for_a_seed():
    X, y = _labelled()
    a = StratifiedSplitter(0.7, random_state=1).split(X, y)
    b = StratifiedSplitter(0.7, random_state=1).split(X, y)
    pd.testing.assert_frame_equal(a.X_train, b.X_train)
    pd.testing.assert_series_equal(a.y_test, b.y_test)


@pytest.mark.parametrize("fraction", [0.0, 1.0, 2.0])
def test_invalid_train_fraction(fraction):
    with pytest.raises(ConfigurationError):
        StratifiedSplitter(fraction, random_state=0)


def test_misaligned_index_is_rejected():
    X, y = _labelled(50, 20)
    with pytest.raises(ValueError):
        StratifiedSplitter(0.7, random_state=0).split(X, y.iloc[1:])
