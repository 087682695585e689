import math
from dataclasses import dataclass, replace
from typing import FrozenSet, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from pandas.api import types as ptypes

from .exceptions import DataSchemaError
from .tree import DecisionTreeModel, Hyperparameters, TreeNode, validate_cp
from .utils.logger import get_logger

_EPS = 1e-12

STOPPING = "stopping"
PRUNING = "pruning"


@dataclass(frozen=True)
class _Split:
    column: int
    weighted_impurity: float
    threshold: Optional[float] = None
    categories: Optional[FrozenSet[float]] = None


def _weighted_gini(left: np.ndarray, right: np.ndarray, n: int) -> np.ndarray:
    """Size-weighted Gini impurity of candidate children given per-class counts."""
    n_left = left.sum(axis=1)
    n_right = right.sum(axis=1)
    with np.errstate(divide="ignore", invalid="ignore"):
        left_term = n_left - (left ** 2).sum(axis=1) / n_left
        right_term = n_right - (right ** 2).sum(axis=1) / n_right
    return (left_term + right_term) / n


class TreeTrainer:
    """
    Induces binary classification trees by recursive Gini partitioning.

    Provides:
      - fit: complexity-gated growth under one hyperparameter tuple
      - fit_pruned: grow with cp = 0, then cost-complexity prune to cp
      - train: dispatch on the "stopping" / "pruning" strategy
    """

    def __init__(self, categorical_features: Sequence[str] = (), verbose: bool = True):
        self.categorical_features = frozenset(categorical_features)
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def _prepare(X: pd.DataFrame, y) -> Tuple[np.ndarray, np.ndarray, Tuple[int, ...]]:
        non_numeric = [c for c in X.columns if not ptypes.is_numeric_dtype(X[c])]
        if non_numeric:
            raise DataSchemaError(f"Tree features must be numeric codes; got {non_numeric}")
        data = X.to_numpy(dtype=float)
        if np.isnan(data).any():
            raise DataSchemaError("Tree features contain missing values")

        y = np.asarray(y)
        if len(y) != len(data):
            raise ValueError(f"X has {len(data)} rows but y has {len(y)}")
        if len(y) == 0:
            raise ValueError("Cannot train on an empty partition")
        classes = np.unique(y)
        codes = np.searchsorted(classes, y)
        return data, codes, tuple(int(c) for c in classes)

    def fit(self, X: pd.DataFrame, y, params: Hyperparameters) -> DecisionTreeModel:
        params.validate()
        data, codes, classes = self._prepare(X, y)
        features = [str(c) for c in X.columns]
        categorical = [c in self.categorical_features for c in features]

        root = self._grow(
            data, codes, np.arange(len(codes)), 0, len(classes), params, features, categorical
        )
        model = DecisionTreeModel(
            root=root,
            feature_names=tuple(features),
            classes=classes,
            params=params,
        )
        if self.verbose:
            self.logger.info(
                f"Grew tree {params.as_dict()}: {model.n_nodes} nodes, "
                f"{model.n_leaves} leaves, depth {model.depth}"
            )
        return model

    def fit_pruned(self, X: pd.DataFrame, y, params: Hyperparameters) -> DecisionTreeModel:
        params.validate()
        grown = self.fit(X, y, replace(params, cp=0.0))
        pruned = prune(grown, params.cp)
        if self.verbose:
            self.logger.info(
                f"Pruned to cp={params.cp}: {grown.n_nodes} -> {pruned.n_nodes} nodes"
            )
        return pruned

    def train(self, X: pd.DataFrame, y, params: Hyperparameters, strategy: str = STOPPING) -> DecisionTreeModel:
        if strategy == STOPPING:
            return self.fit(X, y, params)
        if strategy == PRUNING:
            return self.fit_pruned(X, y, params)
        raise ValueError(f"Unknown training strategy: {strategy}")

    def _grow(
        self,
        data: np.ndarray,
        y: np.ndarray,
        idx: np.ndarray,
        depth: int,
        n_classes: int,
        params: Hyperparameters,
        features: Sequence[str],
        categorical: Sequence[bool],
    ) -> TreeNode:
        counts = np.bincount(y[idx], minlength=n_classes)
        node = TreeNode(class_counts=tuple(int(c) for c in counts), depth=depth)

        if len(idx) < params.minsplit or depth >= params.maxdepth or node.risk == 0:
            return node

        split = self._best_split(data, y, idx, n_classes, params.minbucket, categorical)
        if split is None:
            return node

        # complexity gate: the impurity decrease must exceed cp x node impurity
        decrease = node.gini - split.weighted_impurity
        if decrease <= params.cp * node.gini + _EPS:
            return node

        node = replace(
            node,
            feature=features[split.column],
            threshold=split.threshold,
            categories=split.categories,
        )
        mask = node.goes_left(data[idx, split.column])
        left = self._grow(data, y, idx[mask], depth + 1, n_classes, params, features, categorical)
        right = self._grow(data, y, idx[~mask], depth + 1, n_classes, params, features, categorical)
        return replace(node, left=left, right=right)

    def _best_split(
        self,
        data: np.ndarray,
        y: np.ndarray,
        idx: np.ndarray,
        n_classes: int,
        minbucket: int,
        categorical: Sequence[bool],
    ) -> Optional[_Split]:
        yy = y[idx]
        best: Optional[_Split] = None
        for j, is_categorical in enumerate(categorical):
            values = data[idx, j]
            if is_categorical:
                candidate = self._categorical_split(j, values, yy, n_classes, minbucket)
            else:
                candidate = self._numeric_split(j, values, yy, n_classes, minbucket)
            # earlier columns win near-ties
            if candidate is not None and (
                best is None or candidate.weighted_impurity < best.weighted_impurity - _EPS
            ):
                best = candidate
        return best

    @staticmethod
    def _numeric_split(
        column: int, values: np.ndarray, y: np.ndarray, n_classes: int, minbucket: int
    ) -> Optional[_Split]:
        n = len(values)
        order = np.argsort(values, kind="mergesort")
        v = values[order]

        onehot = np.zeros((n, n_classes))
        onehot[np.arange(n), y[order]] = 1.0
        cumulative = np.cumsum(onehot, axis=0)
        left = cumulative[:-1]
        right = cumulative[-1] - left

        n_left = np.arange(1, n)
        valid = (v[:-1] < v[1:]) & (n_left >= minbucket) & (n - n_left >= minbucket)
        if not valid.any():
            return None

        weighted = np.where(valid, _weighted_gini(left, right, n), np.inf)
        i = int(np.argmin(weighted))
        lo, hi = v[i], v[i + 1]
        threshold = lo + (hi - lo) / 2.0
        if not lo < threshold <= hi:
            threshold = hi
        return _Split(column=column, weighted_impurity=float(weighted[i]), threshold=float(threshold))

    @staticmethod
    def _categorical_split(
        column: int, values: np.ndarray, y: np.ndarray, n_classes: int, minbucket: int
    ) -> Optional[_Split]:
        categories, inverse = np.unique(values, return_inverse=True)
        if len(categories) < 2:
            return None

        counts = np.zeros((len(categories), n_classes))
        np.add.at(counts, (inverse, y), 1.0)

        # ordering by the positive-class share makes the best prefix the best subset
        share = counts[:, -1] / counts.sum(axis=1)
        order = np.argsort(share, kind="mergesort")
        ordered = counts[order]

        cumulative = np.cumsum(ordered, axis=0)
        left = cumulative[:-1]
        right = cumulative[-1] - left
        n = len(values)
        n_left = left.sum(axis=1)
        valid = (n_left >= minbucket) & (n - n_left >= minbucket)
        if not valid.any():
            return None

        weighted = np.where(valid, _weighted_gini(left, right, n), np.inf)
        i = int(np.argmin(weighted))
        chosen = frozenset(float(c) for c in categories[order[: i + 1]])
        return _Split(column=column, weighted_impurity=float(weighted[i]), categories=chosen)


def _weakest_link(root: TreeNode, root_risk: int) -> Tuple[Optional[TreeNode], float]:
    """Internal node whose collapse adds the least risk per leaf removed."""
    best_node: Optional[TreeNode] = None
    best_alpha = math.inf

    def visit(node: TreeNode) -> Tuple[int, int]:
        nonlocal best_node, best_alpha
        if node.is_leaf:
            return node.risk, 1
        left_risk, left_leaves = visit(node.left)
        right_risk, right_leaves = visit(node.right)
        subtree_risk = left_risk + right_risk
        leaves = left_leaves + right_leaves
        alpha = (node.risk - subtree_risk) / ((leaves - 1) * root_risk)
        if alpha < best_alpha:
            best_node, best_alpha = node, alpha
        return subtree_risk, leaves

    visit(root)
    return best_node, best_alpha


def _collapse(node: TreeNode, target: TreeNode) -> TreeNode:
    if node is target:
        return node.as_leaf()
    if node.is_leaf:
        return node
    left = _collapse(node.left, target)
    right = _collapse(node.right, target)
    if left is node.left and right is node.right:
        return node
    return replace(node, left=left, right=right)


def prune(model: DecisionTreeModel, cp: float) -> DecisionTreeModel:
    """
    Cost-complexity pruning: collapse weakest links while their complexity
    (risk increase per removed leaf, relative to the root risk) is below cp.
    """
    cp = validate_cp(cp)

    root = model.root
    root_risk = root.risk
    while root_risk > 0 and not root.is_leaf:
        weakest, alpha = _weakest_link(root, root_risk)
        if weakest is None or alpha >= cp:
            break
        root = _collapse(root, weakest)

    if root is model.root and cp <= model.params.cp:
        return model
    return replace(model, root=root, params=replace(model.params, cp=max(model.params.cp, cp)))
