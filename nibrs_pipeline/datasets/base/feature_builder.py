"""
NIBRS Pipeline - Base Feature Builder

Abstract base class for aggregate builders that run on cleaned data.
Each builder declares its features as FeatureDefinitions; the shared
`aggregate` helper turns those declarations into one grouped table, and
`run()` profiles the table and checks each feature against its declared
range.

Usage:
    class AdoptionSummaryBuilder(BaseFeatureBuilder):
        def get_feature_definitions(self) -> list[FeatureDefinition]:
            return [FeatureDefinition("total_agencies", "...", "int64", "is_nibrs", "size")]

        def build_features(self, df: pd.DataFrame) -> pd.DataFrame:
            return self.aggregate(df, self.get_entity_key())
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from nibrs_pipeline.shared.config import Settings, get_config

logger = logging.getLogger(__name__)


@dataclass
class FeatureDefinition:
    """One aggregated output column and how it is computed."""

    name: str
    description: str
    dtype: str
    source_column: str
    aggregation: str  # any pandas groupby reduction: size, sum, mean, ...
    nullable: bool = False
    min_value: float | None = None
    max_value: float | None = None


@dataclass
class FeatureBuildResult:
    """Result of a feature building operation."""

    dataset: str
    execution_date: str
    rows_input: int
    rows_output: int
    features_computed: int
    duration_seconds: float = 0.0
    success: bool = True
    error_message: str | None = None
    feature_stats: dict[str, dict[str, Any]] = field(default_factory=dict)
    range_violations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging."""
        return {
            "dataset": self.dataset,
            "execution_date": self.execution_date,
            "rows_input": self.rows_input,
            "rows_output": self.rows_output,
            "features_computed": self.features_computed,
            "duration_seconds": self.duration_seconds,
            "success": self.success,
            "error_message": self.error_message,
            "feature_stats": self.feature_stats,
            "range_violations": self.range_violations,
        }


class BaseFeatureBuilder(ABC):
    """
    Abstract base class for aggregate builders.

    Subclasses must implement:
    - build_features(): Compute the main aggregate table
    - get_dataset_name(): Return the dataset name
    - get_feature_definitions(): Declare the aggregated columns
    - get_entity_key(): Return the column the main table is grouped by
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize the feature builder.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()

    @abstractmethod
    def build_features(self, df: pd.DataFrame) -> pd.DataFrame:
        """Build the main aggregate table from processed data."""
        pass

    @abstractmethod
    def get_dataset_name(self) -> str:
        """Get the dataset name."""
        pass

    @abstractmethod
    def get_feature_definitions(self) -> list[FeatureDefinition]:
        """Get the declared features, in output column order."""
        pass

    @abstractmethod
    def get_entity_key(self) -> str:
        """Get the grouping column of the main aggregate table."""
        pass

    def aggregate(self, df: pd.DataFrame, group_col: str) -> pd.DataFrame:
        """
        Group `df` by `group_col` and compute every declared feature.

        Args:
            df: Prepared DataFrame holding each definition's source column
            group_col: Column to group by

        Returns:
            One row per group value, with the group column first
        """
        definitions = self.get_feature_definitions()
        table = (
            df.groupby(group_col, sort=False)
            .agg(**{d.name: (d.source_column, d.aggregation) for d in definitions})
            .reset_index()
        )
        return table.astype({d.name: d.dtype for d in definitions})

    def run(self, df: pd.DataFrame, execution_date: str) -> FeatureBuildResult:
        """
        Build, profile and range-check the main aggregate table.

        Args:
            df: Processed DataFrame
            execution_date: Execution date in YYYY-MM-DD format

        Returns:
            FeatureBuildResult with details about the build
        """
        start_time = time.time()
        dataset_name = self.get_dataset_name()
        rows_input = len(df)

        logger.info(
            f"Starting feature building for {dataset_name}",
            extra={
                "dataset": dataset_name,
                "execution_date": execution_date,
                "rows_input": rows_input,
            },
        )

        try:
            features_df = self.build_features(df)

            result = FeatureBuildResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=len(features_df),
                features_computed=len(self.get_feature_definitions()),
                duration_seconds=time.time() - start_time,
                feature_stats=self._profile_features(features_df),
                range_violations=self._check_feature_ranges(features_df),
            )

            logger.info(
                f"Feature building complete for {dataset_name}: "
                f"{result.rows_output} groups, {result.features_computed} features",
                extra=result.to_dict(),
            )

            self._data = features_df
            return result

        except Exception as e:
            logger.error(
                f"Feature building failed for {dataset_name}: {e}",
                extra={"dataset": dataset_name, "error": str(e)},
                exc_info=True,
            )

            return FeatureBuildResult(
                dataset=dataset_name,
                execution_date=execution_date,
                rows_input=rows_input,
                rows_output=0,
                features_computed=0,
                duration_seconds=time.time() - start_time,
                success=False,
                error_message=str(e),
            )

    def get_data(self) -> pd.DataFrame | None:
        """Get the most recently built table."""
        return getattr(self, "_data", None)

    def _profile_features(self, df: pd.DataFrame) -> dict[str, dict[str, Any]]:
        stats: dict[str, dict[str, Any]] = {}
        for defn in self.get_feature_definitions():
            values = df[defn.name].dropna()
            stats[defn.name] = {
                "null_count": int(df[defn.name].isna().sum()),
                "min": float(values.min()) if len(values) else None,
                "max": float(values.max()) if len(values) else None,
                "mean": float(values.mean()) if len(values) else None,
            }
        return stats

    def _check_feature_ranges(self, df: pd.DataFrame) -> list[str]:
        """Return one message per declared constraint the table breaks."""
        violations = []
        for defn in self.get_feature_definitions():
            column = df[defn.name]
            if not defn.nullable and column.isna().any():
                violations.append(f"Feature '{defn.name}' has null values")
            if defn.min_value is not None and (column < defn.min_value).any():
                violations.append(f"Feature '{defn.name}' has values below {defn.min_value}")
            if defn.max_value is not None and (column > defn.max_value).any():
                violations.append(f"Feature '{defn.name}' has values above {defn.max_value}")

        for message in violations:
            logger.warning(message)
        return violations
