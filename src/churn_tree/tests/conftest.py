import numpy as np
import pandas as pd
import pytest

from churn_tree.schema import CustomerSchema

NUMERIC = ("NumLogins", "NumSupportTickets")
CATEGORICAL = ("PlanTier", "Device", "Region")

_FEES = {"Basic": 9.99, "Standard": 14.99, "Premium": 19.99}


def make_customers(n: int = 400, churn_rate: float = 0.3, seed: int = 0) -> pd.DataFrame:
    """Synthetic customer table where churners have short tenure and many tickets."""
    rng = np.random.default_rng(seed)
    n_churn = int(round(n * churn_rate))
    cancelled = np.array([True] * n_churn + [False] * (n - n_churn))
    rng.shuffle(cancelled)

    join = pd.Timestamp("2021-01-01") + pd.to_timedelta(rng.integers(0, 365, n), unit="D")
    tenure = np.where(cancelled, rng.integers(10, 200, n), rng.integers(150, 700, n))
    last_login = join + pd.to_timedelta(tenure, unit="D")

    plan = rng.choice(list(_FEES), n)
    return pd.DataFrame(
        {
            "CustomerID": np.arange(1, n + 1),
            "JoinDate": join,
            "LastLoginDate": last_login,
            "MonthlyFee": [_FEES[p] for p in plan],
            "NumLogins": rng.integers(1, 100, n),
            "NumSupportTickets": np.where(cancelled, rng.poisson(4, n), rng.poisson(1, n)),
            "PlanTier": plan,
            "Device": rng.choice(["Mobile", "Desktop", "Tablet"], n),
            "Region": rng.choice(["North", "South", "East", "West"], n),
            "Cancelled": cancelled,
        }
    )


@pytest.fixture
def customers() -> pd.DataFrame:
    return make_customers()


@pytest.fixture
def schema() -> CustomerSchema:
    return CustomerSchema(numeric_columns=NUMERIC, categorical_columns=CATEGORICAL)


@pytest.fixture
def config_dict() -> dict:
    return {
        "data": {
            "label_column": "Cancelled",
            "positive_label": True,
            "numeric_columns": list(NUMERIC),
            "categorical_columns": list(CATEGORICAL),
        },
        "features": {},
        "balancing": {"k_neighbors": 5},
        "split": {"train_fraction": 0.7},
        "grid": {
            "cp": [0.01, 0.001],
            "minsplit": [10, 20],
            "maxdepth": [5],
            "strategies": ["stopping", "pruning"],
        },
        "seed": 42,
        "n_jobs": 1,
    }


@pytest.fixture
def weak_signal():
    """
    Train/test frames where binary feature ``b`` is barely informative:
    the best split lowers Gini by ~0.97% of the root impurity.
    """
    def frame(n, n_pos, n_flag, n_flag_pos):
        b = np.zeros(n, dtype=int)
        y = np.zeros(n, dtype=int)
        b[:n_flag] = 1
        y[:n_flag_pos] = 1
        y[n_flag:n_flag + (n_pos - n_flag_pos)] = 1
        return pd.DataFrame({"b": b, "d": np.ones(n)}), pd.Series(y, name="y")

    X_train, y_train = frame(2000, 600, 20, 15)
    X_test, y_test = frame(500, 150, 10, 8)
    return X_train, y_train, X_test, y_test
