"""
NIBRS Pipeline - Base Preprocessor

Abstract base class for dataset preprocessors. Provides a consistent interface
for data cleaning and transformation with:
- Input schema checks (missing columns are fatal)
- Data type coercion (unparseable values become null)
- Transformation and dropped-row bookkeeping

Usage:
    class AgencyPreprocessor(BasePreprocessor):
        def transform(self, df: pd.DataFrame) -> pd.DataFrame:
            ...
        def get_input_columns(self) -> list[str]:
            return ["ori", "agency_name", ...]
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from nibrs_pipeline.shared.config import Settings, get_config

logger = logging.getLogger(__name__)

TRUTHY_VALUES = {"true", "t", "yes", "y", "1"}
FALSY_VALUES = {"false", "f", "no", "n", "0"}


class MissingColumnsError(ValueError):
    """Raised when an input table lacks columns the pipeline cannot do without."""

    def __init__(self, dataset: str, missing: set[str]):
        self.dataset = dataset
        self.missing = sorted(missing)
        super().__init__(f"Input for {dataset} is missing required columns: {self.missing}")


@dataclass
class PreprocessingResult:
    """Result of a preprocessing operation."""

    dataset: str
    execution_date: str
    rows_input: int
    rows_output: int
    rows_dropped: int
    columns_input: int
    columns_output: int
    output_path: str | None = None
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    transformations_applied: list[str] = field(default_factory=list)
    drop_reasons: dict[str, int] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "execution_date": self.execution_date,
            "rows_input": self.rows_input,
            "rows_output": self.rows_output,
            "rows_dropped": self.rows_dropped,
            "columns_input": self.columns_input,
            "columns_output": self.columns_output,
            "output_path": self.output_path,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "transformations_applied": self.transformations_applied,
            "drop_reasons": self.drop_reasons,
            "metadata": self.metadata,
        }


class BasePreprocessor(ABC):
    """
    Abstract base class for dataset preprocessing.

    Subclasses must implement:
    - transform(): Apply dataset-specific transformations
    - get_dataset_name(): Return the dataset name
    - get_input_columns(): Return columns the raw input must carry
    - get_required_columns(): Return list of required output columns
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the preprocessor.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self._transformations: list[str] = []
        self._drop_reasons: dict[str, int] = {}
        self._metadata: dict[str, Any] = {}

    @abstractmethod
    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply dataset-specific transformations.

        Args:
            df: Raw DataFrame with coerced dtypes

        Returns:
            Transformed DataFrame
        """
        pass

    @abstractmethod
    def get_dataset_name(self) -> str:
        """
        Get the dataset name.

        Returns:
            Dataset name (e.g., "agencies")
        """
        pass

    @abstractmethod
    def get_input_columns(self) -> list[str]:
        """
        Get list of columns the raw input must provide.

        Returns:
            List of column names; any absent one aborts preprocessing
        """
        pass

    @abstractmethod
    def get_required_columns(self) -> list[str]:
        """
        Get list of required columns in the output.

        Returns:
            List of column names that must be present after preprocessing
        """
        pass

    def get_dtype_mappings(self) -> dict[str, str]:
        """
        Get data type mappings for columns.

        Override this method to specify target data types.

        Returns:
            Dictionary mapping column names to target dtypes
        """
        return {}

    def run(
        self,
        df: pd.DataFrame,
        execution_date: str,
    ) -> PreprocessingResult:
        """
        Run the preprocessing pipeline.

        Args:
            df: Raw DataFrame to preprocess
            execution_date: Execution date in YYYY-MM-DD format

        Returns:
            PreprocessingResult with details about the preprocessing

        Raises:
            MissingColumnsError: If the input lacks a required column
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        rows_input = len(df)
        columns_input = len(df.columns)

        logger.info(
            f"Starting preprocessing for {dataset_name}",
            extra={
                "dataset": dataset_name,
                "execution_date": execution_date,
                "rows_input": rows_input,
            },
        )

        # Structural problems cannot be degraded around
        self._validate_input_columns(df)

        try:
            # Reset tracking
            self._transformations = []
            self._drop_reasons = {}
            self._metadata = {}

            df = self._apply_dtype_conversions(df)
            df = self.transform(df)
            self._validate_required_columns(df)

            duration = time.time() - start_time
            rows_output = len(df)

            result = PreprocessingResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=rows_output,
                rows_dropped=rows_input - rows_output,
                columns_input=columns_input,
                columns_output=len(df.columns),
                duration_seconds=duration,
                success=True,
                transformations_applied=self._transformations,
                drop_reasons=self._drop_reasons,
                metadata=self._metadata,
            )

            logger.info(
                f"Preprocessing complete for {dataset_name}: {rows_input} -> {rows_output} rows",
                extra=result.to_dict(),
            )

            self._data = df

            return result

        except Exception as e:
            duration = time.time() - start_time
            logger.error(
                f"Preprocessing failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )

            return PreprocessingResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=0,
                rows_dropped=rows_input,
                columns_input=columns_input,
                columns_output=0,
                duration_seconds=duration,
                success=False,
                error_message=str(e),
            )

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently processed data."""
        return getattr(self, "_data", None)

    def _validate_input_columns(self, df: pd.DataFrame) -> None:
        """Fail fast when the raw input is missing an expected column."""
        missing = set(self.get_input_columns()) - set(df.columns)
        if missing:
            logger.error(
                f"Input for {self.get_dataset_name()} is missing columns: {sorted(missing)}"
            )
            raise MissingColumnsError(self.get_dataset_name(), missing)

    def _apply_dtype_conversions(self, df: pd.DataFrame) -> pd.DataFrame:
        """Apply data type conversions, turning unparseable values into nulls."""
        df = df.copy()
        for col, dtype in self.get_dtype_mappings().items():
            if col not in df.columns:
                continue
            before_missing = int(df[col].isna().sum())
            if dtype == "datetime":
                df[col] = pd.to_datetime(df[col], errors="coerce", utc=True, format="mixed")
            elif dtype == "float":
                df[col] = pd.to_numeric(df[col], errors="coerce").astype("float64")
            elif dtype == "int":
                df[col] = pd.to_numeric(df[col], errors="coerce").astype("Int64")
            elif dtype == "boolean":
                df[col] = coerce_boolean(df[col])
            elif dtype == "string":
                df[col] = df[col].astype("string")
            else:
                df[col] = df[col].astype(dtype)

            coerced = int(df[col].isna().sum()) - before_missing
            if coerced > 0:
                logger.warning(f"Coerced {coerced} unparseable values in {col} to null")
                self._metadata.setdefault("coerced_to_null", {})[col] = coerced
            self._transformations.append(f"converted_{col}_to_{dtype}")
        return df

    def _validate_required_columns(self, df: pd.DataFrame) -> None:
        """Validate that all required columns are present."""
        missing = set(self.get_required_columns()) - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")

    def log_transformation(self, name: str) -> None:
        """Log a transformation that was applied."""
        self._transformations.append(name)

    def log_dropped_rows(self, reason: str, count: int) -> None:
        """Log rows that were dropped."""
        self._drop_reasons[reason] = self._drop_reasons.get(reason, 0) + count

    def log_metadata(self, key: str, value: Any) -> None:
        """Attach a diagnostic value to the preprocessing result."""
        self._metadata[key] = value


def coerce_boolean(series: pd.Series) -> pd.Series:
    """
    Convert a column of mixed truthy/falsy markers to the nullable boolean dtype.

    Actual booleans pass through, numbers map 1 and 0 to True and False,
    strings are matched case-insensitively against common markers, and
    anything unrecognised becomes <NA>.
    """

    def _convert(value: Any) -> Any:
        if value is None or value is pd.NA:
            return pd.NA
        if isinstance(value, bool | np.bool_):
            return bool(value)
        if isinstance(value, int | float | np.integer | np.floating):
            # CSV readers turn 1/0 columns with blanks into floats
            if pd.isna(value) or value not in (0, 1):
                return pd.NA
            return bool(value)
        text = str(value).strip().lower()
        if text in TRUTHY_VALUES:
            return True
        if text in FALSY_VALUES:
            return False
        return pd.NA

    return series.map(_convert).astype("boolean")
