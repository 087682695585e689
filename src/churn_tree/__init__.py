"""
Customer Churn - Decision-Tree Pipeline

This package provides an end-to-end implementation for
customer churn prediction with interpretable classification
trees: feature derivation, categorical encoding, SMOTE
class balancing, information-gain feature ranking,
a hyperparameter grid and policy-based model selection.

Modules:
    config              - Load YAML configuration safely.
    schema              - Column layout and boundary validation.
    data_loader         - Read, parse and optionally sample CSV data.
    feature_engineer    - Derive tenure and revenue features.
    encoder             - Deterministic integer codes for categoricals.
    balancer            - SMOTE minority oversampling.
    feature_selector    - Information-gain feature ranking.
    splitter            - Stratified train/test partition.
    tree                - Immutable tree model structures.
    model_trainer       - Gini tree growth and cost-complexity pruning.
    evaluator           - Confusion matrix, intervals and ROC/AUC.
    model_selector      - Swappable model selection policies.
    grid_search         - Parallel map over the hyperparameter grid.
    pipeline            - Orchestrates all components.
    utils.logger        - Unified timestamped console logger.
"""

from .config import Config
from .schema import CustomerSchema
from .data_loader import DataLoader
from .feature_engineer import FeatureEngineer
from .encoder import CategoryEncoder
from .balancer import ClassBalancer
from .feature_selector import FeatureRanking, InformationGainSelector
from .splitter import Partition, StratifiedSplitter
from .tree import DecisionTreeModel, Hyperparameters
from .model_trainer import TreeTrainer, prune
from .evaluator import EvaluationReport, Evaluator
from .model_selector import LexicographicPolicy, ModelSelector, WeightedPolicy
from .grid_search import GridSearch, build_grid, run_grid_point
from .pipeline import PipelineResult, PipelineRunner

__all__ = [
    "Config",
    "CustomerSchema",
    "DataLoader",
    "FeatureEngineer",
    "CategoryEncoder",
    "ClassBalancer",
    "FeatureRanking",
    "InformationGainSelector",
    "Partition",
    "StratifiedSplitter",
    "DecisionTreeModel",
    "Hyperparameters",
    "TreeTrainer",
    "prune",
    "EvaluationReport",
    "Evaluator",
    "LexicographicPolicy",
    "ModelSelector",
    "WeightedPolicy",
    "GridSearch",
    "build_grid",
    "run_grid_point",
    "PipelineResult",
    "PipelineRunner",
]
