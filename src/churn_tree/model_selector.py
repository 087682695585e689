import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from .evaluator import EvaluationReport
from .exceptions import ConfigurationError
from .tree import DecisionTreeModel
from .utils.logger import get_logger

METRICS = (
    "accuracy",
    "kappa",
    "precision",
    "recall",
    "f1",
    "specificity",
    "auc",
)


def _metric(report: EvaluationReport, name: str) -> float:
    if name not in METRICS:
        raise ConfigurationError(f"Unknown selection metric: {name}")
    return float(getattr(report, name))


class SelectionPolicy(ABC):
    """Orders evaluation reports; a larger key ranks higher."""

    @abstractmethod
    def key(self, report: EvaluationReport) -> Tuple:
        ...

    def describe(self) -> str:
        return self.__class__.__name__


class LexicographicPolicy(SelectionPolicy):
    """Compare metrics in order; an undefined metric ranks below any defined one."""

    def __init__(self, metrics: Sequence[str] = ("recall", "f1", "auc")):
        if not metrics:
            raise ConfigurationError("LexicographicPolicy needs at least one metric")
        for name in metrics:
            if name not in METRICS:
                raise ConfigurationError(f"Unknown selection metric: {name}")
        self.metrics = tuple(metrics)

    def key(self, report: EvaluationReport) -> Tuple:
        parts = []
        for name in self.metrics:
            value = _metric(report, name)
            parts.append((0, 0.0) if math.isnan(value) else (1, value))
        return tuple(parts)

    def describe(self) -> str:
        return f"lexicographic({', '.join(self.metrics)})"


class WeightedPolicy(SelectionPolicy):
    """Weighted sum of metrics; undefined metrics contribute nothing."""

    def __init__(self, weights: Mapping[str, float]):
        if not weights:
            raise ConfigurationError("WeightedPolicy needs at least one weight")
        for name in weights:
            if name not in METRICS:
                raise ConfigurationError(f"Unknown selection metric: {name}")
        self.weights = dict(weights)

    def score(self, report: EvaluationReport) -> float:
        total = 0.0
        for name, weight in self.weights.items():
            value = _metric(report, name)
            if not math.isnan(value):
                total += weight * value
        return total

    def key(self, report: EvaluationReport) -> Tuple:
        return (self.score(report),)

    def describe(self) -> str:
        return "weighted(" + ", ".join(f"{k}={v}" for k, v in self.weights.items()) + ")"


def policy_from_config(selection: Mapping) -> SelectionPolicy:
    kind = selection.get("policy", "lexicographic")
    if kind == "lexicographic":
        return LexicographicPolicy(selection.get("metrics", ("recall", "f1", "auc")))
    if kind == "weighted":
        return WeightedPolicy(selection.get("weights", {}))
    raise ConfigurationError(f"Unknown selection policy: {kind}")


@dataclass(frozen=True)
class SelectionResult:
    model: DecisionTreeModel
    report: EvaluationReport
    comparison: pd.DataFrame


class ModelSelector:
    """Picks the best (model, report) pair under a swappable policy."""

    def __init__(self, policy: Optional[SelectionPolicy] = None):
        self.policy = policy or LexicographicPolicy()
        self.logger = get_logger(self.__class__.__name__)

    def select(self, candidates: Iterable[Tuple[DecisionTreeModel, EvaluationReport]]) -> SelectionResult:
        candidates = list(candidates)
        if not candidates:
            raise ValueError("No candidate models to select from")

        keys = [self.policy.key(report) for _, report in candidates]
        # stable even with reverse=True, so equal keys keep input order
        order = sorted(range(len(candidates)), key=lambda i: keys[i], reverse=True)
        best = order[0]

        rows: List[Dict] = []
        for rank, i in enumerate(order, start=1):
            model, report = candidates[i]
            row = {"model": report.model_name, "rank": rank, "selected": i == best}
            row.update(model.params.as_dict())
            row.update({"n_nodes": model.n_nodes, "depth": model.depth})
            row.update(report.metrics())
            rows.append(row)
        comparison = pd.DataFrame(rows)

        model, report = candidates[best]
        self.logger.info(
            f"Selected {report.model_name} by {self.policy.describe()} "
            f"out of {len(candidates)} candidates"
        )
        return SelectionResult(model=model, report=report, comparison=comparison)
