from typing import Optional

import pandas as pd

from .exceptions import DataSchemaError
from .schema import CustomerSchema
from .utils.logger import get_logger


class DataLoader:
    """Loads the customer CSV, parses the date columns and validates the schema."""

    def __init__(
        self,
        path: str,
        schema: CustomerSchema,
        sample_size: Optional[int] = None,
        random_state: Optional[int] = None,
    ):
        self.path = path
        self.schema = schema
        self.sample_size = sample_size
        self.random_state = random_state
        self.logger = get_logger(self.__class__.__name__)

    def load(self) -> pd.DataFrame:
        df = pd.read_csv(self.path)
        for col in self.schema.date_columns:
            if col in df.columns:
                try:
                    df[col] = pd.to_datetime(df[col])
                except (ValueError, TypeError) as exc:
                    raise DataSchemaError(f"Column '{col}' is not parseable as dates: {exc}") from exc
        if self.sample_size:
            df = df.sample(self.sample_size, random_state=self.random_state)
        self.logger.info(f"Loaded {self.path}: {df.shape[0]:,} rows x {df.shape[1]} cols")
        return self.schema.validate(df)
