"""
Customer table schema and boundary validation.

The raw table arrives from an external loader. ``CustomerSchema.validate``
is the single place where column presence, dtypes and table invariants are
checked; everything downstream assumes a typed, validated frame.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

import pandas as pd
from pandas.api import types as ptypes

from .exceptions import DataSchemaError


@dataclass(frozen=True)
class CustomerSchema:
    """Column names of the customer record table."""
    id_column: str = "CustomerID"
    join_column: str = "JoinDate"
    last_login_column: str = "LastLoginDate"
    fee_column: str = "MonthlyFee"
    label_column: str = "Cancelled"
    positive_label: Any = True
    numeric_columns: Tuple[str, ...] = ()
    categorical_columns: Tuple[str, ...] = ()

    @classmethod
    def from_config(cls, data: Dict[str, Any]) -> "CustomerSchema":
        return cls(
            id_column=data.get("id_column", cls.id_column),
            join_column=data.get("join_column", cls.join_column),
            last_login_column=data.get("last_login_column", cls.last_login_column),
            fee_column=data.get("fee_column", cls.fee_column),
            label_column=data["label_column"],
            positive_label=data["positive_label"],
            numeric_columns=tuple(data.get("numeric_columns", ())),
            categorical_columns=tuple(data.get("categorical_columns", ())),
        )

    @property
    def date_columns(self) -> Tuple[str, str]:
        return self.join_column, self.last_login_column

    @property
    def required_columns(self) -> Tuple[str, ...]:
        return (
            self.id_column,
            self.join_column,
            self.last_login_column,
            self.fee_column,
            *self.numeric_columns,
            *self.categorical_columns,
            self.label_column,
        )

    def validate(self, df: pd.DataFrame) -> pd.DataFrame:
        """Raise DataSchemaError unless ``df`` conforms; returns ``df`` unchanged."""
        missing = [c for c in self.required_columns if c not in df.columns]
        if missing:
            raise DataSchemaError(f"Missing required columns: {missing}")

        for col in self.date_columns:
            if not ptypes.is_datetime64_any_dtype(df[col]):
                raise DataSchemaError(f"Column '{col}' must be datetime, got {df[col].dtype}")
            if df[col].isna().any():
                raise DataSchemaError(f"Column '{col}' has missing dates")

        for col in (self.fee_column, *self.numeric_columns):
            if ptypes.is_bool_dtype(df[col]) or not ptypes.is_numeric_dtype(df[col]):
                raise DataSchemaError(f"Column '{col}' must be numeric, got {df[col].dtype}")

        for col in (self.fee_column, *self.numeric_columns, *self.categorical_columns):
            n_null = int(df[col].isna().sum())
            if n_null:
                raise DataSchemaError(f"Column '{col}' has {n_null} missing values")

        if df[self.id_column].isna().any():
            raise DataSchemaError(f"Identifier column '{self.id_column}' has missing values")
        duplicated = df[self.id_column].duplicated()
        if duplicated.any():
            dupes = df.loc[duplicated, self.id_column].unique().tolist()[:5]
            raise DataSchemaError(f"Identifier column '{self.id_column}' is not unique: {dupes}")

        if df[self.label_column].isna().any():
            n_null = int(df[self.label_column].isna().sum())
            raise DataSchemaError(f"Label column '{self.label_column}' has {n_null} null values")

        return df
