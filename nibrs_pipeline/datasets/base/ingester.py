"""
NIBRS Pipeline - Base Ingester

Abstract base class for dataset ingesters. Provides a consistent interface
for fetching a full snapshot from a source with:
- Local parquet caching of the raw snapshot
- Error handling
- Structured result reporting

Usage:
    class AgencyIngester(BaseIngester):
        def fetch_data(self) -> pd.DataFrame:
            ...
        def get_primary_key(self) -> list[str]:
            return ["ori", "county", "state"]
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from nibrs_pipeline.shared.config import Settings, get_config

logger = logging.getLogger(__name__)


@dataclass
class IngestionResult:
    """Result of a data ingestion operation."""

    dataset: str
    execution_date: str
    rows_fetched: int
    from_cache: bool = False
    output_path: str | None = None
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "execution_date": self.execution_date,
            "rows_fetched": self.rows_fetched,
            "from_cache": self.from_cache,
            "output_path": self.output_path,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "metadata": self.metadata,
        }


class BaseIngester(ABC):
    """
    Abstract base class for dataset ingestion.

    Subclasses must implement:
    - fetch_data(): Fetch the full snapshot from the source
    - get_primary_key(): Return the column(s) identifying a record
    - get_dataset_name(): Return the dataset name
    - get_cache_path(): Return where the raw snapshot is cached
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the ingester.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()

    @abstractmethod
    def fetch_data(self) -> pd.DataFrame:
        """
        Fetch data from the source.

        Returns:
            DataFrame containing the fetched data
        """
        pass

    @abstractmethod
    def get_primary_key(self) -> str | list[str]:
        """
        Get the primary key field name(s).

        Returns:
            Column name or list of column names identifying each record
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
    def get_cache_path(self) -> Path:
        """
        Get the local path of the cached raw snapshot.

        Returns:
            Path to a parquet file
        """
        pass

    def run(self, execution_date: str, refresh: bool = False) -> IngestionResult:
        """
        Run the ingestion process.

        A cached snapshot is reused unless `refresh` is set or no cache exists.

        Args:
            execution_date: Execution date in YYYY-MM-DD format
            refresh: Fetch from the source even when a cache is present

        Returns:
            IngestionResult with details about the ingestion
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        cache_path = self.get_cache_path()

        logger.info(
            f"Starting ingestion for {dataset_name}",
            extra={
                "dataset": dataset_name,
                "execution_date": execution_date,
                "refresh": refresh,
            },
        )

        try:
            from_cache = cache_path.exists() and not refresh
            if from_cache:
                df = pd.read_parquet(cache_path)
                logger.info(f"Loaded {len(df)} cached rows from {cache_path}")
            else:
                df = self.fetch_data()
                self.save_cache(df, cache_path)

            result = IngestionResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_fetched=len(df),
                from_cache=from_cache,
                output_path=str(cache_path),
                duration_seconds=time.time() - start_time,
                success=True,
                metadata={
                    "primary_key": self.get_primary_key(),
                    "columns": list(df.columns),
                },
            )

            logger.info(
                f"Ingestion complete for {dataset_name}: {len(df)} rows",
                extra=result.to_dict(),
            )

            # Store the dataframe for downstream access
            self._data = df

            return result

        except Exception as e:
            logger.error(
                f"Ingestion failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )

            return IngestionResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_fetched=0,
                duration_seconds=time.time() - start_time,
                success=False,
                error_message=str(e),
            )

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently fetched data."""
        return getattr(self, "_data", None)

    def save_cache(self, df: pd.DataFrame, path: Path) -> None:
        """Write the raw snapshot to parquet, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_parquet(path, index=False)
        logger.info(f"Cached {len(df)} rows to {path}")

    def validate_schema(self, df: pd.DataFrame) -> tuple[bool, list[str]]:
        """
        Perform basic schema validation on fetched data.

        Args:
            df: DataFrame to validate

        Returns:
            Tuple of (is_valid, list_of_errors)
        """
        errors = []

        pk = self.get_primary_key()
        for col in [pk] if isinstance(pk, str) else pk:
            if col not in df.columns:
                errors.append(f"Primary key column '{col}' not found")

        if len(df) == 0:
            errors.append("DataFrame is empty")

        return len(errors) == 0, errors
