import numpy as np
import pandas as pd
import pytest

from churn_tree.grid_search import GridPoint, GridSearch, build_grid, run_grid_point
from churn_tree.splitter import StratifiedSplitter
from churn_tree.tree import Hyperparameters


@pytest.fixture
def partition():
    rng = np.random.default_rng(11)
    n = 400
    X = pd.DataFrame({"a": rng.normal(size=n), "b": rng.integers(0, 4, n), "c": rng.normal(size=n)})
    y = pd.Series(((X["a"] + 0.5 * X["b"] + rng.normal(scale=0.7, size=n)) > 1.0).astype(int))
    return StratifiedSplitter(0.7, random_state=42).split(X, y)


def test_build_grid_is_cartesian_product_in_order():
    grid = {"cp": [0.01, 0.001], "minsplit": [5, 10, 20], "maxdepth": [10], "strategies": ["stopping", "pruning"]}
    points = build_grid(grid)

    assert len(points) == 2 * 3 * 1 * 2
    assert points[0] == GridPoint(Hyperparameters(0.01, 5, 10), "stopping")
    assert points[-1] == GridPoint(Hyperparameters(0.001, 20, 10), "pruning")
    assert len({p.name for p in points}) == len(points)


def test_build_grid_defaults_to_stopping_and_does_not_validate():
    points = build_grid({"cp": [0.01], "minsplit": [0, 10], "maxdepth": [5]})
    assert [p.strategy for p in points] == ["stopping", "stopping"]
    assert points[0].params.minsplit == 0


def test_run_grid_point_trains_and_evaluates(partition):
    point = GridPoint(Hyperparameters(0.01, 10, 5))
    result = run_grid_point(point, partition)

    assert result.ok
    assert result.model.params == point.params
    assert result.report.model_name == point.name
    assert result.report.n == len(partition.y_test)


def test_invalid_grid_point_is_recorded_not_raised(partition):
    points = build_grid({"cp": [0.01], "minsplit": [0, 10], "maxdepth": [5]})
    results = GridSearch(points).run(partition)

    assert not results[0].ok
    assert "minsplit" in results[0].error
    assert results[0].model is None
    assert results[1].ok


def test_results_follow_grid_order(partition):
    points = build_grid({"cp": [0.01, 0.0001], "minsplit": [5, 20], "maxdepth": [3, 8]})
    results = GridSearch(points).run(partition)
    assert [r.point for r in results] == points


def test_parallel_and_sequential_runs_agree(partition):
    points = build_grid(
        {"cp": [0.01, 0.001], "minsplit": [5, 20], "maxdepth": [4], "strategies": ["stopping", "pruning"]}
    )
    sequential = GridSearch(points, n_jobs=1).run(partition)
    parallel = GridSearch(points, n_jobs=2).run(partition)

    assert [r.model for r in sequential] == [r.model for r in parallel]
    assert [r.report.accuracy for r in sequential] == [r.report.accuracy for r in parallel]


def test_pruning_strategy_yields_no_larger_tree_than_its_grown_tree(partition):
    grown = run_grid_point(GridPoint(Hyperparameters(0.0, 5, 10), "stopping"), partition)
    pruned = run_grid_point(GridPoint(Hyperparameters(0.01, 5, 10), "pruning"), partition)
    assert pruned.model.n_leaves <= grown.model.n_leaves
