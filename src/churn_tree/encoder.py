from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .exceptions import DataSchemaError, UnknownCategoryError
from .utils.logger import get_logger


class CategoryEncoder:
    """Maps categorical columns and the binary label to integer codes.

    The mappings are captured once by ``fit`` and reused verbatim by every
    later ``transform``, so new batches encode consistently with training.
    """

    def __init__(
        self,
        categorical_columns: Sequence[str],
        label_column: str,
        positive_label: Any,
        verbose: bool = False,
    ):
        """
        Parameters
        ----------
        categorical_columns:
            Columns replaced by column-local integer codes.
        label_column:
            Binary target column.
        positive_label:
            Raw label value designating a churned customer; encoded as 1.
        verbose:
            If True, logs the size of every fitted mapping.
        """
        self.categorical_columns = list(categorical_columns)
        self.label_column = label_column
        self.positive_label = positive_label
        self.verbose = verbose
        self.logger = get_logger(self.__class__.__name__)
        self.mappings: Optional[Dict[str, Dict[Any, int]]] = None
        self.label_mapping: Optional[Dict[Any, int]] = None

    @staticmethod
    def _build_mapping(values: pd.Series) -> Dict[Any, int]:
        """Observed values sorted by their string form, indexed from 0."""
        observed = sorted(values.dropna().unique().tolist(), key=str)
        return {value: code for code, value in enumerate(observed)}

    def fit(self, df: pd.DataFrame) -> "CategoryEncoder":
        missing = [c for c in self.categorical_columns + [self.label_column] if c not in df.columns]
        if missing:
            raise DataSchemaError(f"Encoder needs columns: {missing}")

        self.mappings = {col: self._build_mapping(df[col]) for col in self.categorical_columns}

        labels = df[self.label_column].dropna().unique().tolist()
        if len(labels) != 2 or self.positive_label not in labels:
            raise DataSchemaError(
                f"Label column '{self.label_column}' must hold exactly two values including "
                f"the positive label {self.positive_label!r}; observed {sorted(labels, key=str)}"
            )
        negative = next(v for v in labels if v != self.positive_label)
        self.label_mapping = {negative: 0, self.positive_label: 1}

        if self.verbose:
            sizes = {col: len(m) for col, m in self.mappings.items()}
            self.logger.info(f"Fitted category mappings: {sizes}")
        return self

    def _encode_column(self, series: pd.Series, mapping: Dict[Any, int]) -> pd.Series:
        codes = series.map(mapping)
        unknown = codes.isna()
        if unknown.any():
            raise UnknownCategoryError(series.name, series[unknown].iloc[0])
        return codes.astype(np.int64)

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        if self.mappings is None or self.label_mapping is None:
            raise RuntimeError("Call fit() before transform().")

        out = df.copy()
        for col, mapping in self.mappings.items():
            if col not in out.columns:
                raise DataSchemaError(f"Column '{col}' missing from batch to encode")
            out[col] = self._encode_column(out[col], mapping)
        if self.label_column in out.columns:
            out[self.label_column] = self._encode_column(out[self.label_column], self.label_mapping)
        return out

    def fit_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        return self.fit(df).transform(df)

    def inverse_transform_label(self, codes: Sequence[int]) -> List[Any]:
        if self.label_mapping is None:
            raise RuntimeError("Call fit() before inverse_transform_label().")
        inverse = {code: value for value, code in self.label_mapping.items()}
        return [inverse[int(c)] for c in codes]

    def to_dict(self) -> Dict[str, Any]:
        """Mappings as plain data (value/code pairs keep non-string keys intact)."""
        if self.mappings is None or self.label_mapping is None:
            raise RuntimeError("Call fit() before to_dict().")
        return {
            "label_column": self.label_column,
            "positive_label": self.positive_label,
            "label_mapping": [[v, c] for v, c in self.label_mapping.items()],
            "mappings": {
                col: [[v, c] for v, c in mapping.items()] for col, mapping in self.mappings.items()
            },
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "CategoryEncoder":
        encoder = cls(
            categorical_columns=list(payload["mappings"]),
            label_column=payload["label_column"],
            positive_label=payload["positive_label"],
        )
        encoder.mappings = {
            col: {v: int(c) for v, c in pairs} for col, pairs in payload["mappings"].items()
        }
        encoder.label_mapping = {v: int(c) for v, c in payload["label_mapping"]}
        return encoder
