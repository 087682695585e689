from typing import Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.neighbors import NearestNeighbors

from .exceptions import DegenerateClassError, InsufficientNeighborsError
from .utils.logger import get_logger


class ClassBalancer:
    """
    Oversamples the minority class with synthetic interpolated records (SMOTE).

    Every minority record x receives ``dup = floor((M - m) / m)`` synthetic
    siblings ``x + gap * (n - x)``, where n is one of its k nearest minority
    neighbours and ``gap ~ U[0, 1)``. Majority records are never touched.

    Encoded categorical columns take the code of whichever endpoint is
    nearer (base when ``gap < 0.5``, otherwise the neighbour), and other
    integer columns are rounded, so synthetic records keep the input dtypes.

    Example:
        balancer = ClassBalancer(k_neighbors=5, random_state=42)
        Xb, yb = balancer.balance(X, y)
    """

    def __init__(
        self,
        k_neighbors: int = 5,
        *,
        random_state: int,
        categorical_columns: Sequence[str] = (),
    ):
        self.k_neighbors = k_neighbors
        self.categorical_columns = tuple(categorical_columns)
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    @staticmethod
    def oversampling_multiplier(n_minority: int, n_majority: int) -> int:
        if n_minority == 0:
            raise DegenerateClassError("Minority class is empty; oversampling ratio is undefined")
        return (n_majority - n_minority) // n_minority

    def balance(self, X: pd.DataFrame, y: pd.Series) -> Tuple[pd.DataFrame, pd.Series]:
        y = pd.Series(np.asarray(y), name=getattr(y, "name", None))
        X = X.reset_index(drop=True)

        counts = y.value_counts()
        if len(counts) < 2:
            raise DegenerateClassError(
                f"Balancing needs two label classes, found {counts.index.tolist()}"
            )
        if len(counts) > 2:
            raise DegenerateClassError(f"Balancing supports binary labels, found {len(counts)} classes")

        # ties resolve to the larger label value as minority, deterministically
        counts = counts.sort_index()
        minority_label = counts.idxmin() if counts.iloc[0] != counts.iloc[1] else counts.index[1]
        m = int(counts[minority_label])
        M = int(counts.drop(minority_label).iloc[0])
        dup = self.oversampling_multiplier(m, M)

        if m < self.k_neighbors + 1:
            raise InsufficientNeighborsError(
                f"Minority class has {m} records; k={self.k_neighbors} needs at least "
                f"{self.k_neighbors + 1}"
            )

        if dup == 0:
            self.logger.info(f"Classes already balanced ({m} vs {M}); no synthetic samples")
            return X.copy(), y.copy()

        minority = X.loc[(y == minority_label).to_numpy()].to_numpy(dtype=float)

        # kneighbors() without a query excludes each point from its own neighbours
        nn = NearestNeighbors(n_neighbors=self.k_neighbors).fit(minority)
        neighbor_idx = nn.kneighbors(return_distance=False)

        rng = np.random.default_rng(self.random_state)
        picks = rng.integers(0, self.k_neighbors, size=(m, dup))
        gaps = rng.random((m, dup))

        base = np.repeat(minority, dup, axis=0)
        chosen = neighbor_idx[np.arange(m)[:, None], picks].reshape(-1)
        neighbor = minority[chosen]
        gap = gaps.reshape(-1, 1)
        synthetic = base + gap * (neighbor - base)

        X_syn = pd.DataFrame(synthetic, columns=X.columns)
        for j, col in enumerate(X.columns):
            if col in self.categorical_columns:
                X_syn[col] = np.where(gap[:, 0] < 0.5, base[:, j], neighbor[:, j])
            elif pd.api.types.is_integer_dtype(X[col]):
                X_syn[col] = np.rint(X_syn[col])
        X_syn = X_syn.astype(X.dtypes.to_dict())
        y_syn = pd.Series(np.full(len(X_syn), minority_label), name=y.name)

        X_bal = pd.concat([X, X_syn], ignore_index=True)
        y_bal = pd.concat([y, y_syn], ignore_index=True)

        self.logger.info(
            f"SMOTE (k={self.k_neighbors}, dup={dup}): minority {m} -> {m + len(X_syn)}, "
            f"majority {M} unchanged"
        )
        return X_bal, y_bal
