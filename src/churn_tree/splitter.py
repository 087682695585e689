from dataclasses import dataclass
from typing import Dict

import pandas as pd
from sklearn.model_selection import train_test_split

from .exceptions import ConfigurationError
from .utils.logger import get_logger


@dataclass(frozen=True)
class Partition:
    """Disjoint train/test partition; row indexes are those of the source."""
    X_train: pd.DataFrame
    X_test: pd.DataFrame
    y_train: pd.Series
    y_test: pd.Series

    @staticmethod
    def proportions(y: pd.Series) -> Dict:
        return y.value_counts(normalize=True).sort_index().to_dict()


class StratifiedSplitter:
    """Stratified random train/test split, reproducible for a fixed seed."""

    def __init__(self, train_fraction: float = 0.7, *, random_state: int):
        if not 0.0 < train_fraction < 1.0:
            raise ConfigurationError(f"train_fraction must be in (0, 1), got {train_fraction!r}")
        self.train_fraction = train_fraction
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def split(self, X: pd.DataFrame, y: pd.Series) -> Partition:
        if not X.index.equals(y.index):
            raise ValueError("X and y must share the same index")

        X_train, X_test, y_train, y_test = train_test_split(
            X,
            y,
            train_size=self.train_fraction,
            stratify=y,
            shuffle=True,
            random_state=self.random_state,
        )
        partition = Partition(X_train, X_test, y_train, y_test)

        self.logger.info(
            f"Split {len(y):,} rows -> train {len(y_train):,} / test {len(y_test):,}; "
            f"train classes {Partition.proportions(y_train)}, "
            f"test classes {Partition.proportions(y_test)}"
        )
        return partition
