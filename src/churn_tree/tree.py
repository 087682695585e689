"""
Immutable decision-tree structures.

A ``DecisionTreeModel`` is a rooted binary tree of frozen ``TreeNode``
objects. Every node keeps the class counts of the training records that
reached it; internal nodes add a feature and a split predicate:

* numeric split:  ``value < threshold`` goes left
* categorical split: ``value in categories`` goes left

Nodes are numbered rpart-style in ``to_dict`` (root 1, children 2n / 2n+1).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from .exceptions import InvalidHyperparameterError


def validate_cp(cp: Any) -> float:
    """Raise InvalidHyperparameterError unless cp is a finite number >= 0."""
    if isinstance(cp, bool) or not isinstance(cp, (int, float, np.integer, np.floating)):
        raise InvalidHyperparameterError(f"cp must be a number, got {cp!r}")
    if not math.isfinite(cp) or cp < 0:
        raise InvalidHyperparameterError(f"cp must be a finite number >= 0, got {cp}")
    return float(cp)


@dataclass(frozen=True)
class Hyperparameters:
    """Tree growth controls: complexity parameter, minimum split size, maximum depth."""
    cp: float
    minsplit: int
    maxdepth: int

    @property
    def minbucket(self) -> int:
        """Smallest admissible child size (rpart default: a third of minsplit)."""
        return max(1, int(round(self.minsplit / 3)))

    def validate(self) -> "Hyperparameters":
        for name in ("minsplit", "maxdepth"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidHyperparameterError(f"{name} must be an integer, got {value!r}")
        if self.minsplit <= 0:
            raise InvalidHyperparameterError(f"minsplit must be positive, got {self.minsplit}")
        if self.maxdepth < 1:
            raise InvalidHyperparameterError(f"maxdepth must be >= 1, got {self.maxdepth}")
        validate_cp(self.cp)
        return self

    def as_dict(self) -> Dict[str, Any]:
        return {"cp": self.cp, "minsplit": self.minsplit, "maxdepth": self.maxdepth}


@dataclass(frozen=True)
class TreeNode:
    class_counts: Tuple[int, ...]
    depth: int
    feature: Optional[str] = None
    threshold: Optional[float] = None
    categories: Optional[FrozenSet[float]] = None
    left: Optional["TreeNode"] = None
    right: Optional["TreeNode"] = None

    @property
    def is_leaf(self) -> bool:
        return self.feature is None

    @property
    def n_samples(self) -> int:
        return int(sum(self.class_counts))

    @property
    def probabilities(self) -> np.ndarray:
        counts = np.asarray(self.class_counts, dtype=float)
        return counts / counts.sum()

    @property
    def predicted_index(self) -> int:
        """Index of the majority class; ties go to the first class."""
        return int(np.argmax(self.class_counts))

    @property
    def risk(self) -> int:
        """Misclassification count if this node predicted its majority class."""
        return self.n_samples - max(self.class_counts)

    @property
    def gini(self) -> float:
        p = self.probabilities
        return float(1.0 - np.sum(p * p))

    def goes_left(self, values: np.ndarray) -> np.ndarray:
        if self.categories is not None:
            return np.isin(values, list(self.categories))
        return values < self.threshold

    def as_leaf(self) -> "TreeNode":
        return TreeNode(class_counts=self.class_counts, depth=self.depth)

    def iter_nodes(self) -> Iterator["TreeNode"]:
        """Pre-order traversal."""
        yield self
        if not self.is_leaf:
            yield from self.left.iter_nodes()
            yield from self.right.iter_nodes()

    def leaves(self) -> List["TreeNode"]:
        return [n for n in self.iter_nodes() if n.is_leaf]


@dataclass(frozen=True)
class DecisionTreeModel:
    """A trained, immutable classification tree."""
    root: TreeNode
    feature_names: Tuple[str, ...]
    classes: Tuple[int, ...]
    params: Hyperparameters

    @property
    def n_nodes(self) -> int:
        return sum(1 for _ in self.root.iter_nodes())

    @property
    def n_leaves(self) -> int:
        return len(self.root.leaves())

    @property
    def depth(self) -> int:
        return max(n.depth for n in self.root.iter_nodes())

    @property
    def split_features(self) -> Dict[str, int]:
        """How many internal nodes split on each feature."""
        usage: Dict[str, int] = {}
        for node in self.root.iter_nodes():
            if not node.is_leaf:
                usage[node.feature] = usage.get(node.feature, 0) + 1
        return usage

    def _check_columns(self, X: pd.DataFrame) -> None:
        missing = [f for f in self.feature_names if f not in X.columns]
        if missing:
            raise ValueError(f"Input is missing model features: {missing}")

    def predict_proba(self, X: pd.DataFrame) -> np.ndarray:
        """Leaf class distribution for every row, columns ordered as ``classes``."""
        self._check_columns(X)
        columns = {f: X[f].to_numpy(dtype=float) for f in self.feature_names}
        out = np.zeros((len(X), len(self.classes)), dtype=float)

        stack = [(self.root, np.arange(len(X)))]
        while stack:
            node, idx = stack.pop()
            if len(idx) == 0:
                continue
            if node.is_leaf:
                out[idx] = node.probabilities
                continue
            mask = node.goes_left(columns[node.feature][idx])
            stack.append((node.left, idx[mask]))
            stack.append((node.right, idx[~mask]))
        return out

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        proba = self.predict_proba(X)
        return np.asarray(self.classes)[np.argmax(proba, axis=1)]

    def to_dict(self) -> Dict[str, Any]:
        """Serializable node/leaf structure."""

        def _node(node: TreeNode, node_id: int) -> Dict[str, Any]:
            payload: Dict[str, Any] = {
                "id": node_id,
                "depth": node.depth,
                "n_samples": node.n_samples,
                "class_counts": list(node.class_counts),
                "probabilities": [float(p) for p in node.probabilities],
                "prediction": self.classes[node.predicted_index],
            }
            if node.is_leaf:
                return payload
            payload["feature"] = node.feature
            if node.categories is not None:
                payload["categories"] = sorted(float(c) for c in node.categories)
            else:
                payload["threshold"] = float(node.threshold)
            payload["left"] = _node(node.left, 2 * node_id)
            payload["right"] = _node(node.right, 2 * node_id + 1)
            return payload

        return {
            "params": self.params.as_dict(),
            "classes": list(self.classes),
            "feature_names": list(self.feature_names),
            "n_nodes": self.n_nodes,
            "root": _node(self.root, 1),
        }
