"""
Information-gain feature ranking.

Scores every feature by the reduction in label entropy obtained by
partitioning the records on that feature's values. Continuous columns are
discretised into equal-frequency bins first so each bin is a partition cell.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
import pandas as pd

from .utils.logger import get_logger


@dataclass(frozen=True)
class FeatureRanking:
    """(feature, information gain) pairs sorted by descending score."""
    scores: Tuple[Tuple[str, float], ...]

    def __iter__(self):
        return iter(self.scores)

    def __len__(self) -> int:
        return len(self.scores)

    @property
    def features(self) -> List[str]:
        return [name for name, _ in self.scores]

    def score(self, feature: str) -> float:
        return dict(self.scores)[feature]

    def select(self, min_score: float = 1e-9) -> List[str]:
        """Features whose score exceeds ``min_score``, in ranking order."""
        return [name for name, score in self.scores if score > min_score]

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(list(self.scores), columns=["feature", "information_gain"])


def entropy(labels: pd.Series) -> float:
    p = labels.value_counts(normalize=True).to_numpy()
    p = p[p > 0]
    return float(-(p * np.log2(p)).sum())


class InformationGainSelector:
    """Ranks features by information gain against a binary or multi-class label."""

    def __init__(self, max_levels: int = 10, n_bins: int = 10):
        self.max_levels = max_levels
        self.n_bins = n_bins
        self.logger = get_logger(self.__class__.__name__)

    def _discretize(self, values: pd.Series) -> pd.Series:
        if values.nunique() <= self.max_levels:
            return values
        return pd.qcut(values, q=self.n_bins, labels=False, duplicates="drop")

    def information_gain(self, values: pd.Series, y: pd.Series) -> float:
        cells = self._discretize(values.reset_index(drop=True))
        y = y.reset_index(drop=True)
        conditional = 0.0
        for _, idx in cells.groupby(cells, sort=True).groups.items():
            conditional += len(idx) / len(y) * entropy(y.loc[idx])
        return max(0.0, entropy(y) - conditional)

    def rank(self, X: pd.DataFrame, y: pd.Series) -> FeatureRanking:
        y = pd.Series(np.asarray(y))
        scored = [(col, self.information_gain(X[col], y)) for col in X.columns]
        # stable sort keeps column order among equal scores
        scored.sort(key=lambda pair: -pair[1])
        ranking = FeatureRanking(tuple(scored))
        top = ", ".join(f"{n}={s:.4f}" for n, s in ranking.scores[:5])
        self.logger.info(f"Ranked {len(ranking)} features by information gain (top: {top})")
        return ranking
