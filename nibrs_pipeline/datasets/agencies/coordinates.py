"""
NIBRS Pipeline - Coordinate Imputation

Fills missing latitude/longitude with a three-level fallback:

1. Peer mean: mean of the same (agency_name, county, state) group.
2. County centroid: mean per (county, state), skipping placeholder counties
   ("NOT SPECIFIED", "Unknown") and missing counties.
3. State centroid: mean per state over rows with both coordinates.

Each level only fills values the previous level left missing. Means skip
nulls, and a group with no coordinates yields null so the row falls through
to the next level. A row with no signal at any level stays null.

Usage:
    from nibrs_pipeline.datasets.agencies.coordinates import impute_coordinates

    filled, report = impute_coordinates(df)
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd

from nibrs_pipeline.datasets.agencies.schema import (
    AGENCY_NAME,
    COORDINATE_COLUMNS,
    COUNTY,
    LATITUDE,
    LONGITUDE,
    STATE,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_COUNTIES = ("NOT SPECIFIED", "Unknown")
PEER_KEY = [AGENCY_NAME, COUNTY, STATE]
COUNTY_KEY = [COUNTY, STATE]
STATE_KEY = [STATE]


@dataclass
class ImputationReport:
    """Missing coordinate pairs before imputation and pairs filled per level."""

    missing_before: int
    filled_by_peer: int
    filled_by_county: int
    filled_by_state: int
    missing_after: int

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary for logging."""
        return {
            "missing_before": self.missing_before,
            "filled_by_peer": self.filled_by_peer,
            "filled_by_county": self.filled_by_county,
            "filled_by_state": self.filled_by_state,
            "missing_after": self.missing_after,
        }


def count_missing_pairs(df: pd.DataFrame) -> int:
    """Rows where latitude or longitude is missing."""
    return int(df[COORDINATE_COLUMNS].isna().any(axis=1).sum())


def fill_from_peers(df: pd.DataFrame, key: Sequence[str] = PEER_KEY) -> pd.DataFrame:
    """
    Fill missing coordinates with the mean of the row's peer group.

    Latitude and longitude are averaged independently; a group with a single
    non-null value hands that value to its null members.
    """
    df = df.copy()
    grouped = df.groupby(list(key), dropna=False, sort=False)
    for col in COORDINATE_COLUMNS:
        peer_mean = grouped[col].transform("mean")
        df[col] = df[col].where(df[col].notna(), peer_mean.to_numpy())
    return df


def compute_county_centroids(
    df: pd.DataFrame,
    placeholder_counties: Iterable[str] = PLACEHOLDER_COUNTIES,
) -> pd.DataFrame:
    """
    Mean coordinates per (county, state), ignoring placeholder and missing counties.

    Returns:
        DataFrame with county, state, latitude, longitude (one row per pair)
    """
    valid = df[df[COUNTY].notna() & ~df[COUNTY].isin(list(placeholder_counties))]
    return _centroids(valid, COUNTY_KEY)


def compute_state_centroids(df: pd.DataFrame) -> pd.DataFrame:
    """
    Mean coordinates per state over rows with both coordinates present.

    Returns:
        DataFrame with state, latitude, longitude (one row per state)
    """
    located = df[df[LATITUDE].notna() & df[LONGITUDE].notna()]
    return _centroids(located, STATE_KEY)


def fill_from_centroids(
    df: pd.DataFrame,
    centroids: pd.DataFrame,
    key: Sequence[str],
) -> pd.DataFrame:
    """
    Fill missing coordinates from a centroid table keyed on `key`.

    Rows without a matching centroid keep their missing values.
    """
    df = df.copy()
    key = list(key)
    matched = df[key].merge(centroids, on=key, how="left", validate="many_to_one")
    for col in COORDINATE_COLUMNS:
        df[col] = df[col].where(df[col].notna(), matched[col].to_numpy())
    return df


def impute_coordinates(
    df: pd.DataFrame,
    placeholder_counties: Iterable[str] = PLACEHOLDER_COUNTIES,
    peer_key: Sequence[str] = PEER_KEY,
) -> tuple[pd.DataFrame, ImputationReport]:
    """
    Run peer, county and state imputation in order.

    Args:
        df: Agency table with numeric latitude/longitude
        placeholder_counties: County values that are not real groupings
        peer_key: Columns identifying the same physical agency

    Returns:
        Tuple of (new DataFrame, ImputationReport)
    """
    df = df.astype({LATITUDE: "float64", LONGITUDE: "float64"})
    missing_before = count_missing_pairs(df)

    after_peer = fill_from_peers(df, peer_key)
    missing_after_peer = count_missing_pairs(after_peer)

    county_centroids = compute_county_centroids(after_peer, placeholder_counties)
    after_county = fill_from_centroids(after_peer, county_centroids, COUNTY_KEY)
    missing_after_county = count_missing_pairs(after_county)

    state_centroids = compute_state_centroids(after_county)
    after_state = fill_from_centroids(after_county, state_centroids, STATE_KEY)
    missing_after = count_missing_pairs(after_state)

    report = ImputationReport(
        missing_before=missing_before,
        filled_by_peer=missing_before - missing_after_peer,
        filled_by_county=missing_after_peer - missing_after_county,
        filled_by_state=missing_after_county - missing_after,
        missing_after=missing_after,
    )

    if missing_after > 0:
        logger.warning(f"{missing_after} agencies still lack coordinates after imputation")
    logger.info("Imputed missing coordinates", extra=report.to_dict())

    return after_state, report


def _centroids(df: pd.DataFrame, key: list[str]) -> pd.DataFrame:
    """Null-skipping mean of both coordinates per group."""
    return df.groupby(key, dropna=False, sort=False)[COORDINATE_COLUMNS].mean().reset_index()
