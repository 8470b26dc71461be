"""
NIBRS Pipeline - Agency Data Profile

Inspection summary of an agency table, taken before and after cleaning:
missing values, duplicates, name collisions, agency type frequencies and
NIBRS flag/date mismatches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from nibrs_pipeline.datasets.agencies.classify import (
    agency_type_frequency,
    count_missing_agency_types,
)
from nibrs_pipeline.datasets.agencies.coordinates import count_missing_pairs
from nibrs_pipeline.datasets.agencies.dedupe import (
    count_exact_duplicates,
    count_name_collisions,
    duplicated_agency_names,
)
from nibrs_pipeline.datasets.agencies.repair import NibrsMismatchCounts, count_nibrs_mismatches

logger = logging.getLogger(__name__)


@dataclass
class DatasetProfile:
    """Data quality facts about one snapshot of the agency table."""

    label: str
    row_count: int
    missing_values: dict[str, int] = field(default_factory=dict)
    exact_duplicates: int = 0
    duplicated_names: int = 0
    name_collision_rows: int = 0
    missing_coordinates: int = 0
    missing_agency_types: int = 0
    agency_type_counts: dict[str, int] = field(default_factory=dict)
    nibrs_mismatches: NibrsMismatchCounts | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert profile to dictionary for logging."""
        return {
            "label": self.label,
            "row_count": self.row_count,
            "missing_values": self.missing_values,
            "exact_duplicates": self.exact_duplicates,
            "duplicated_names": self.duplicated_names,
            "name_collision_rows": self.name_collision_rows,
            "missing_coordinates": self.missing_coordinates,
            "missing_agency_types": self.missing_agency_types,
            "agency_type_counts": self.agency_type_counts,
            "nibrs_mismatches": self.nibrs_mismatches.to_dict() if self.nibrs_mismatches else None,
        }


def profile_agencies(df: pd.DataFrame, label: str = "raw") -> DatasetProfile:
    """
    Profile an agency table with the columns of the input schema.

    Args:
        df: Agency table
        label: Name of the snapshot (e.g., "raw", "processed")

    Returns:
        DatasetProfile
    """
    type_counts = agency_type_frequency(df)

    profile = DatasetProfile(
        label=label,
        row_count=len(df),
        missing_values={col: int(n) for col, n in df.isna().sum().items()},
        exact_duplicates=count_exact_duplicates(df),
        duplicated_names=len(duplicated_agency_names(df)),
        name_collision_rows=count_name_collisions(df),
        missing_coordinates=count_missing_pairs(df),
        missing_agency_types=count_missing_agency_types(df),
        agency_type_counts={
            ("<missing>" if pd.isna(k) else str(k)): int(v) for k, v in type_counts.items()
        },
        nibrs_mismatches=count_nibrs_mismatches(df),
    )

    logger.info(f"Profiled {label} agencies: {len(df)} rows", extra=profile.to_dict())
    return profile
