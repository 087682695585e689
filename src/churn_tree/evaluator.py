import math
import warnings
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.metrics import auc, roc_curve

from .exceptions import UndefinedMetricWarning
from .tree import DecisionTreeModel
from .utils.logger import get_logger

NAN = float("nan")


@dataclass(frozen=True)
class ConfidenceInterval:
    lower: float
    upper: float
    level: float

    def __contains__(self, value: float) -> bool:
        return self.lower <= value <= self.upper


@dataclass(frozen=True)
class EvaluationReport:
    """Classification metrics of one model on one held-out partition."""
    model_name: str
    tp: int
    fp: int
    tn: int
    fn: int
    accuracy: float
    accuracy_ci: ConfidenceInterval
    no_information_rate: float
    accuracy_p_value: float
    kappa: float
    precision: float
    recall: float
    f1: float
    specificity: float
    auc: float
    roc_curve: Tuple[Tuple[float, float], ...] = ()
    undefined: Dict[str, str] = field(default_factory=dict)

    @property
    def n(self) -> int:
        return self.tp + self.fp + self.tn + self.fn

    @property
    def confusion_matrix(self) -> pd.DataFrame:
        """Counts with predicted classes as rows and actual classes as columns."""
        return pd.DataFrame(
            [[self.tn, self.fn], [self.fp, self.tp]],
            index=pd.Index([0, 1], name="predicted"),
            columns=pd.Index([0, 1], name="actual"),
        )

    def metrics(self) -> Dict[str, float]:
        return {
            "accuracy": self.accuracy,
            "accuracy_ci_lower": self.accuracy_ci.lower,
            "accuracy_ci_upper": self.accuracy_ci.upper,
            "no_information_rate": self.no_information_rate,
            "accuracy_p_value": self.accuracy_p_value,
            "kappa": self.kappa,
            "precision": self.precision,
            "recall": self.recall,
            "f1": self.f1,
            "specificity": self.specificity,
            "auc": self.auc,
        }

    def to_dict(self) -> Dict:
        """JSON-ready payload; undefined metrics become None."""
        def clean(value: float) -> Optional[float]:
            return None if math.isnan(value) else float(value)

        return {
            "model_name": self.model_name,
            "confusion_matrix": {"tp": self.tp, "fp": self.fp, "tn": self.tn, "fn": self.fn},
            "confidence_level": self.accuracy_ci.level,
            "metrics": {k: clean(v) for k, v in self.metrics().items()},
            "roc_curve": [{"fpr": f, "tpr": t} for f, t in self.roc_curve],
            "undefined": dict(self.undefined),
        }


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else NAN


def clopper_pearson(successes: int, trials: int, level: float = 0.95) -> ConfidenceInterval:
    """Exact two-sided binomial interval for a proportion."""
    alpha = 1.0 - level
    lower = 0.0 if successes == 0 else stats.beta.ppf(alpha / 2, successes, trials - successes + 1)
    upper = 1.0 if successes == trials else stats.beta.ppf(1 - alpha / 2, successes + 1, trials - successes)
    return ConfidenceInterval(float(lower), float(upper), level)


class Evaluator:
    """Evaluate a fitted tree on a held-out partition."""

    def __init__(self, positive_label: int = 1, confidence_level: float = 0.95, verbose: bool = True):
        if not 0.0 < confidence_level < 1.0:
            raise ValueError(f"confidence_level must be in (0, 1), got {confidence_level}")
        self.positive_label = positive_label
        self.confidence_level = confidence_level
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)

    def _positive_scores(self, model: DecisionTreeModel, X: pd.DataFrame) -> np.ndarray:
        proba = model.predict_proba(X)
        if self.positive_label not in model.classes:
            return np.zeros(len(X))
        return proba[:, model.classes.index(self.positive_label)]

    def _undefined(self, name: str, undefined: Dict[str, str], metric: str, reason: str) -> None:
        undefined[metric] = reason
        message = f"{name}: {metric} is undefined ({reason})"
        warnings.warn(UndefinedMetricWarning(message), stacklevel=3)
        self.logger.warning(message)

    def evaluate(
        self,
        model: DecisionTreeModel,
        X_test: pd.DataFrame,
        y_test,
        name: str = "model",
    ) -> EvaluationReport:
        y_true = np.asarray(y_test)
        if len(y_true) == 0:
            raise ValueError("Cannot evaluate on an empty test partition")
        if len(y_true) != len(X_test):
            raise ValueError(f"X_test has {len(X_test)} rows but y_test has {len(y_true)}")

        y_pred = model.predict(X_test)
        scores = self._positive_scores(model, X_test)

        actual = y_true == self.positive_label
        predicted = y_pred == self.positive_label
        tp = int(np.sum(predicted & actual))
        fp = int(np.sum(predicted & ~actual))
        tn = int(np.sum(~predicted & ~actual))
        fn = int(np.sum(~predicted & actual))
        n = len(y_true)
        undefined: Dict[str, str] = {}

        correct = tp + tn
        accuracy = correct / n
        ci = clopper_pearson(correct, n, self.confidence_level)

        nir = max(actual.mean(), 1.0 - actual.mean())
        p_value = float(stats.binomtest(correct, n, nir, alternative="greater").pvalue)

        expected = ((tp + fp) * (tp + fn) + (fn + tn) * (fp + tn)) / (n * n)
        if expected == 1.0:
            kappa = NAN
            self._undefined(name, undefined, "kappa", "chance agreement is 1")
        else:
            kappa = (accuracy - expected) / (1.0 - expected)

        precision = _ratio(tp, tp + fp)
        if math.isnan(precision):
            self._undefined(name, undefined, "precision", "no positive predictions")
        recall = _ratio(tp, tp + fn)
        if math.isnan(recall):
            self._undefined(name, undefined, "recall", "no positive records in the test set")
        specificity = _ratio(tn, tn + fp)
        if math.isnan(specificity):
            self._undefined(name, undefined, "specificity", "no negative records in the test set")

        if math.isnan(precision) or math.isnan(recall):
            f1 = NAN
            self._undefined(name, undefined, "f1", "precision or recall is undefined")
        elif precision + recall == 0:
            f1 = 0.0
        else:
            f1 = 2 * precision * recall / (precision + recall)

        if actual.all() or not actual.any():
            auc_value = NAN
            curve: Tuple[Tuple[float, float], ...] = ()
            self._undefined(name, undefined, "auc", "test set holds a single class")
        else:
            fpr, tpr, _ = roc_curve(actual.astype(int), scores, drop_intermediate=False)
            auc_value = float(auc(fpr, tpr))
            curve = tuple((float(f), float(t)) for f, t in zip(fpr, tpr))

        report = EvaluationReport(
            model_name=name,
            tp=tp,
            fp=fp,
            tn=tn,
            fn=fn,
            accuracy=accuracy,
            accuracy_ci=ci,
            no_information_rate=float(nir),
            accuracy_p_value=p_value,
            kappa=kappa,
            precision=precision,
            recall=recall,
            f1=f1,
            specificity=specificity,
            auc=auc_value,
            roc_curve=curve,
            undefined=undefined,
        )

        if self.verbose:
            self.logger.info(
                f"{name}: accuracy={accuracy:.4f} "
                f"[{ci.lower:.4f}, {ci.upper:.4f}], precision={precision:.4f}, "
                f"recall={recall:.4f}, f1={f1:.4f}, auc={auc_value:.4f}"
            )
        return report
