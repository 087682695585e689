import json
import os
from dataclasses import dataclass
from textwrap import indent
from typing import List, Optional, Tuple, Union

import pandas as pd

from .balancer import ClassBalancer
from .config import Config
from .data_loader import DataLoader
from .encoder import CategoryEncoder
from .evaluator import EvaluationReport
from .exceptions import ChurnPipelineError, ConfigurationError, DataSchemaError
from .feature_engineer import FeatureEngineer
from .feature_selector import FeatureRanking, InformationGainSelector
from .grid_search import GridPointResult, GridSearch, build_grid
from .model_selector import ModelSelector, policy_from_config
from .schema import CustomerSchema
from .splitter import Partition, StratifiedSplitter
from .tree import DecisionTreeModel
from .utils.logger import get_logger


@dataclass(frozen=True)
class PipelineResult:
    model: DecisionTreeModel
    report: EvaluationReport
    comparison: pd.DataFrame
    ranking: FeatureRanking
    selected_features: Tuple[str, ...]
    reports: Tuple[EvaluationReport, ...]
    grid_results: Tuple[GridPointResult, ...]
    encoder: CategoryEncoder
    partition: Partition


class PipelineRunner:
    """End-to-end churn decision-tree pipeline.

    Steps:
      1. Load the customer table (or take a frame) and validate its schema
      2. Derive tenure and revenue features
      3. Drop identifier/date columns and encode categoricals and the label
      4. Balance the classes with SMOTE
      5. Rank features by information gain and keep the informative ones
      6. Stratified train/test split
      7. Train and evaluate one tree per grid point
      8. Select the best model under the configured policy
      9. Optionally export comparison, ranking, reports and the chosen tree"""

    def __init__(self, config: Union[str, Config]):
        self.config = Config.from_yaml(config) if isinstance(config, str) else config
        self.logger = get_logger(self.__class__.__name__)

    def _load(self, schema: CustomerSchema, df: Optional[pd.DataFrame]) -> pd.DataFrame:
        cfg = self.config
        if df is not None:
            return schema.validate(df)
        path = cfg.data.get("path")
        if not path:
            raise ConfigurationError("data.path is required when no DataFrame is given")
        return DataLoader(path, schema, cfg.data.get("sample_size"), cfg.seed).load()

    def run(self, df: Optional[pd.DataFrame] = None) -> PipelineResult:
        cfg = self.config
        self.logger.info("Starting churn decision-tree pipeline")

        schema = CustomerSchema.from_config(cfg.data)
        df = self._load(schema, df)

        df = FeatureEngineer(schema).transform(df)

        drop_columns = [schema.id_column, *schema.date_columns, *cfg.features.get("drop_columns", [])]
        df = df.drop(columns=[c for c in drop_columns if c in df.columns])

        encoder = CategoryEncoder(
            schema.categorical_columns,
            schema.label_column,
            schema.positive_label,
            verbose=True,
        )
        encoded = encoder.fit_transform(df)
        X = encoded.drop(columns=[schema.label_column])
        y = encoded[schema.label_column]
        non_numeric = [c for c in X.columns if not pd.api.types.is_numeric_dtype(X[c])]
        if non_numeric:
            raise DataSchemaError(
                f"Columns {non_numeric} are neither numeric nor declared categorical"
            )

        balancer = ClassBalancer(
            cfg.balancing.get("k_neighbors", 5),
            random_state=cfg.seed,
            categorical_columns=schema.categorical_columns,
        )
        X_bal, y_bal = balancer.balance(X, y)

        selector = InformationGainSelector(
            max_levels=cfg.features.get("max_levels", 10),
            n_bins=cfg.features.get("n_bins", 10),
        )
        ranking = selector.rank(X_bal, y_bal)
        selected = ranking.select(cfg.features.get("min_information_gain", 1e-9))
        top_k = cfg.features.get("top_k")
        if top_k:
            selected = selected[:top_k]
        if not selected:
            raise ChurnPipelineError("No feature carries information about the label")
        self.logger.info(f"Selected {len(selected)} of {len(ranking)} features: {selected}")

        splitter = StratifiedSplitter(cfg.split["train_fraction"], random_state=cfg.seed)
        partition = splitter.split(X_bal[selected], y_bal)

        categorical_splits = [c for c in cfg.features.get("categorical_splits", []) if c in selected]
        search = GridSearch(
            build_grid(cfg.grid),
            categorical_features=categorical_splits,
            positive_label=1,
            confidence_level=cfg.evaluation.get("confidence_level", 0.95),
            n_jobs=cfg.n_jobs,
        )
        grid_results = search.run(partition)
        candidates = [(r.model, r.report) for r in grid_results if r.ok]

        selection = ModelSelector(policy_from_config(cfg.selection)).select(candidates)

        metrics_str = indent(
            "\n".join(f"{k}: {v:.4f}" for k, v in selection.report.metrics().items()),
            " " * 4,
        )
        self.logger.info(f"Best model {selection.report.model_name}:\n{metrics_str}")

        result = PipelineResult(
            model=selection.model,
            report=selection.report,
            comparison=selection.comparison,
            ranking=ranking,
            selected_features=tuple(selected),
            reports=tuple(report for _, report in candidates),
            grid_results=tuple(grid_results),
            encoder=encoder,
            partition=partition,
        )

        if cfg.output.get("dir"):
            self.export(result, cfg.output["dir"])

        self.logger.info("Pipeline finished")
        return result

    def export(self, result: PipelineResult, out_dir: str) -> List[str]:
        """Write comparison, ranking, reports and the chosen tree under ``out_dir``."""
        os.makedirs(out_dir, exist_ok=True)
        paths = {
            "comparison": os.path.join(out_dir, "comparison.csv"),
            "ranking": os.path.join(out_dir, "feature_ranking.csv"),
            "reports": os.path.join(out_dir, "reports.json"),
            "model": os.path.join(out_dir, "best_model.json"),
        }

        result.comparison.to_csv(paths["comparison"], index=False)
        result.ranking.to_frame().to_csv(paths["ranking"], index=False)

        with open(paths["reports"], "w") as f:
            json.dump([r.to_dict() for r in result.reports], f, indent=4)

        best = {
            "model_name": result.report.model_name,
            "selected_features": list(result.selected_features),
            "tree": result.model.to_dict(),
            "encoder": result.encoder.to_dict(),
        }
        with open(paths["model"], "w") as f:
            json.dump(best, f, indent=4, default=str)

        self.logger.info(f"Saved results to {out_dir}: {sorted(os.path.basename(p) for p in paths.values())}")
        return list(paths.values())
