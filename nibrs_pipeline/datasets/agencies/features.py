"""
NIBRS Pipeline - Adoption Summary Builder

Aggregates the cleaned agency snapshot into the tables the adoption report
is built from.

Features:
    - Per-state agency counts, NIBRS agency counts and adoption rate
    - Per-agency-type adoption breakdown
    - Cumulative adoption by start year
    - Nationwide totals

Usage:
    from nibrs_pipeline.datasets.agencies.features import AdoptionSummaryBuilder

    builder = AdoptionSummaryBuilder()
    result = builder.run(processed_df, execution_date="2025-02-18")
    by_state = builder.get_data()
"""

from __future__ import annotations

import logging
from typing import Any

import pandas as pd

from nibrs_pipeline.datasets.agencies.schema import AGENCY_TYPE, IS_NIBRS, STATE, YEAR
from nibrs_pipeline.datasets.base import BaseFeatureBuilder, FeatureDefinition
from nibrs_pipeline.shared.config import Settings

logger = logging.getLogger(__name__)


class AdoptionSummaryBuilder(BaseFeatureBuilder):
    """
    Builds NIBRS adoption aggregates from cleaned agency data.

    `build_features` returns the per-state table; the other summaries are
    available as separate methods for the report.
    """

    def __init__(self, config: Settings | None = None):
        """Initialize adoption summary builder."""
        super().__init__(config)

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "agencies"

    def get_entity_key(self) -> str:
        """Return entity key for aggregation."""
        return STATE

    def get_feature_definitions(self) -> list[FeatureDefinition]:
        """Return feature definitions; all read the cleaned NIBRS flag."""
        return [
            FeatureDefinition(
                name="total_agencies",
                description="Agencies in the group",
                dtype="int64",
                source_column=IS_NIBRS,
                aggregation="size",
                min_value=0,
            ),
            FeatureDefinition(
                name="nibrs_agencies",
                description="Agencies reporting through NIBRS",
                dtype="int64",
                source_column=IS_NIBRS,
                aggregation="sum",
                min_value=0,
            ),
            FeatureDefinition(
                name="adoption_rate",
                description="Share of agencies reporting through NIBRS",
                dtype="float64",
                source_column=IS_NIBRS,
                aggregation="mean",
                min_value=0.0,
                max_value=1.0,
            ),
        ]

    def build_features(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Build the per-state adoption table.

        Args:
            df: Cleaned agency DataFrame

        Returns:
            One row per state, sorted by adoption rate descending
        """
        return self.adoption_by(df, self.get_entity_key())

    def adoption_by(self, df: pd.DataFrame, group_col: str) -> pd.DataFrame:
        """Agency count, NIBRS count and adoption rate per value of `group_col`."""
        summary = self.aggregate(self._with_nibrs_flag(df), group_col)
        return summary.sort_values(
            ["adoption_rate", group_col], ascending=[False, True], ignore_index=True
        )

    def adoption_by_agency_type(self, df: pd.DataFrame) -> pd.DataFrame:
        """Adoption breakdown per canonical agency type."""
        return self.adoption_by(df, AGENCY_TYPE)

    def cumulative_adoption_by_year(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Agencies starting NIBRS per year and the running total.

        Agencies without a start year are left out.
        """
        years = df[YEAR].dropna().astype(int)
        per_year = years.value_counts().sort_index()

        result = pd.DataFrame(
            {
                YEAR: per_year.index.astype(int),
                "new_agencies": per_year.to_numpy(dtype=int),
            }
        )
        result["cumulative_agencies"] = result["new_agencies"].cumsum()
        return result

    def nationwide_summary(self, df: pd.DataFrame) -> dict[str, Any]:
        """Total agencies, NIBRS agencies and adoption rate across the country."""
        flagged = self._with_nibrs_flag(df)
        total = len(flagged)
        nibrs = int(flagged[IS_NIBRS].sum())

        return {
            "total_agencies": total,
            "nibrs_agencies": nibrs,
            "adoption_rate": nibrs / total if total else 0.0,
        }

    def _with_nibrs_flag(self, df: pd.DataFrame) -> pd.DataFrame:
        """Make `is_nibrs` plain bool; unknown flags count as not adopted."""
        flagged = df.copy()
        flagged[IS_NIBRS] = flagged[IS_NIBRS].astype("boolean").fillna(False).astype(bool)
        return flagged
