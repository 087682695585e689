import warnings
from typing import List

import pandas as pd

from .exceptions import DataSchemaError, NegativeTenureWarning
from .schema import CustomerSchema
from .utils.logger import get_logger

TENURE_DAYS = "TenureDays"
TENURE_MONTHS = "TenureMonths"
REVENUE = "Revenue"

DERIVED_COLUMNS = (TENURE_DAYS, TENURE_MONTHS, REVENUE)


class FeatureEngineer:
    """Derives tenure and revenue attributes from raw customer fields."""

    DAYS_PER_MONTH = 30

    def __init__(self, schema: CustomerSchema):
        self.schema = schema
        self.logger = get_logger(self.__class__.__name__)

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        s = self.schema
        missing = [
            c for c in (s.id_column, s.join_column, s.last_login_column, s.fee_column)
            if c not in df.columns
        ]
        if missing:
            raise DataSchemaError(f"Feature engineering needs columns: {missing}")

        for col in s.date_columns:
            if not pd.api.types.is_datetime64_any_dtype(df[col]):
                raise DataSchemaError(f"Column '{col}' must be datetime, got {df[col].dtype}")

        out = df.copy()

        # Calendar-day difference; time of day is ignored
        joined = out[s.join_column].dt.normalize()
        last_login = out[s.last_login_column].dt.normalize()
        out[TENURE_DAYS] = (last_login - joined).dt.days.astype(int)

        out[TENURE_MONTHS] = (out[TENURE_DAYS] / self.DAYS_PER_MONTH).round(1)
        out[REVENUE] = out[s.fee_column] * out[TENURE_MONTHS]

        for customer_id in self.negative_tenure_ids(out):
            tenure = int(out.loc[out[s.id_column] == customer_id, TENURE_DAYS].iloc[0])
            warnings.warn(NegativeTenureWarning(customer_id, tenure), stacklevel=2)

        self.logger.info(f"Derived {list(DERIVED_COLUMNS)} for {len(out):,} customers")
        return out

    def negative_tenure_ids(self, df: pd.DataFrame) -> List:
        """Identifiers whose last login precedes their join date (known data-quality issue)."""
        ids = df.loc[df[TENURE_DAYS] < 0, self.schema.id_column].tolist()
        if ids:
            self.logger.warning(
                f"{len(ids)} customer(s) with last login before join date; tenure left negative"
            )
        return ids
