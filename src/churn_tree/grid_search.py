import itertools
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

from joblib import Parallel, delayed

from .evaluator import EvaluationReport, Evaluator
from .exceptions import InvalidHyperparameterError
from .model_trainer import STOPPING, TreeTrainer
from .splitter import Partition
from .tree import DecisionTreeModel, Hyperparameters
from .utils.logger import get_logger


@dataclass(frozen=True)
class GridPoint:
    params: Hyperparameters
    strategy: str = STOPPING

    @property
    def name(self) -> str:
        p = self.params
        return f"{self.strategy}_cp={p.cp}_minsplit={p.minsplit}_maxdepth={p.maxdepth}"


@dataclass(frozen=True)
class GridPointResult:
    point: GridPoint
    model: Optional[DecisionTreeModel] = None
    report: Optional[EvaluationReport] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def build_grid(grid: Mapping[str, Any]) -> List[GridPoint]:
    """
    Cartesian product of the configured values, in configuration order.

    Values are not validated here; an invalid tuple fails only its own
    grid point when it is trained.
    """
    strategies = grid.get("strategies", [STOPPING])
    return [
        GridPoint(Hyperparameters(cp=cp, minsplit=minsplit, maxdepth=maxdepth), strategy)
        for strategy, cp, minsplit, maxdepth in itertools.product(
            strategies, grid["cp"], grid["minsplit"], grid["maxdepth"]
        )
    ]


def run_grid_point(
    point: GridPoint,
    partition: Partition,
    categorical_features: Sequence[str] = (),
    positive_label: int = 1,
    confidence_level: float = 0.95,
) -> GridPointResult:
    """Train and evaluate one grid point; depends on nothing but its arguments."""
    logger = get_logger("GridSearch")
    trainer = TreeTrainer(categorical_features=categorical_features, verbose=False)
    evaluator = Evaluator(positive_label=positive_label, confidence_level=confidence_level, verbose=False)
    try:
        model = trainer.train(partition.X_train, partition.y_train, point.params, point.strategy)
    except InvalidHyperparameterError as exc:
        logger.error(f"Skipping {point.name}: {exc}")
        return GridPointResult(point=point, error=str(exc))

    report = evaluator.evaluate(model, partition.X_test, partition.y_test, name=point.name)
    return GridPointResult(point=point, model=model, report=report)


class GridSearch:
    """Runs every grid point against one fixed partition, optionally in parallel."""

    def __init__(
        self,
        points: Sequence[GridPoint],
        categorical_features: Sequence[str] = (),
        positive_label: int = 1,
        confidence_level: float = 0.95,
        n_jobs: int = 1,
    ):
        self.points = list(points)
        self.categorical_features = tuple(categorical_features)
        self.positive_label = positive_label
        self.confidence_level = confidence_level
        self.n_jobs = n_jobs
        self.logger = get_logger(self.__class__.__name__)

    def run(self, partition: Partition) -> List[GridPointResult]:
        self.logger.info(f"Training {len(self.points)} grid points (n_jobs={self.n_jobs})")

        results = Parallel(n_jobs=self.n_jobs)(
            delayed(run_grid_point)(
                point,
                partition,
                self.categorical_features,
                self.positive_label,
                self.confidence_level,
            )
            for point in self.points
        )

        for result in results:
            if result.ok:
                r = result.report
                self.logger.info(
                    f"{result.point.name}: {result.model.n_nodes} nodes, "
                    f"recall={r.recall:.4f}, f1={r.f1:.4f}, auc={r.auc:.4f}"
                )
        failed = sum(1 for r in results if not r.ok)
        if failed:
            self.logger.warning(f"{failed} of {len(results)} grid points failed validation")
        return list(results)
