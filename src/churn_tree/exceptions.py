"""Errors and warnings raised by the churn pipeline components."""

from typing import Any


class ChurnPipelineError(Exception):
    """Base class for every error raised by the pipeline."""


class ConfigurationError(ChurnPipelineError):
    """Invalid or incomplete pipeline configuration."""


class DataSchemaError(ChurnPipelineError):
    """A required column is missing, mistyped or violates a table invariant."""


class UnknownCategoryError(ChurnPipelineError):
    """A fitted encoder met a value that is not in its mapping."""

    def __init__(self, column: str, value: Any):
        self.column = column
        self.value = value
        super().__init__(f"Unknown category {value!r} in column '{column}'")


class BalancingError(ChurnPipelineError):
    """Class balancing cannot proceed."""


class DegenerateClassError(BalancingError):
    """One of the two label classes has no records."""


class InsufficientNeighborsError(BalancingError):
    """The minority class is too small for the requested neighbour count."""


class InvalidHyperparameterError(ChurnPipelineError):
    """A tree hyperparameter tuple is outside its valid range."""


class NegativeTenureWarning(UserWarning):
    """Last login precedes the join date for a customer."""

    def __init__(self, customer_id: Any, tenure_days: int):
        self.customer_id = customer_id
        self.tenure_days = tenure_days
        super().__init__(
            f"Customer {customer_id!r} has negative tenure ({tenure_days} days); "
            "value kept as-is"
        )


class UndefinedMetricWarning(UserWarning):
    """An evaluation metric is undefined for the given test partition."""
