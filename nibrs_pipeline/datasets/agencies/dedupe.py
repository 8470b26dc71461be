"""
NIBRS Pipeline - Agency Deduplication

Two passes over the raw agency table:
1. Drop rows duplicated across every column (upstream export artifacts).
2. Keep the first row for each (ori, county, state) identity.

Agencies that only share a name (e.g. "Springfield Police Department" in
several states) are distinct and are never removed; `count_name_collisions`
reports how many rows fall in that situation.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from nibrs_pipeline.datasets.agencies.schema import AGENCY_NAME, COUNTY, ORI, STATE

logger = logging.getLogger(__name__)

DEDUPE_KEY = [ORI, COUNTY, STATE]


def dedupe(df: pd.DataFrame, key: Sequence[str] = DEDUPE_KEY) -> pd.DataFrame:
    """
    Remove exact duplicates, then identity duplicates on `key`.

    The first occurrence in input order is kept. Null key parts compare
    equal to each other.

    Args:
        df: Agency table
        key: Identity columns

    Returns:
        New DataFrame with at most one row per identity
    """
    exact = df.drop_duplicates(keep="first")
    identity = exact.drop_duplicates(subset=list(key), keep="first")

    logger.info(
        f"Deduplicated agencies: {len(df)} -> {len(identity)} rows",
        extra={
            "exact_duplicates": len(df) - len(exact),
            "identity_duplicates": len(exact) - len(identity),
        },
    )
    return identity.copy()


def count_exact_duplicates(df: pd.DataFrame) -> int:
    """Number of rows that repeat an earlier row across every column."""
    return int(df.duplicated(keep="first").sum())


def duplicated_agency_names(df: pd.DataFrame) -> pd.Series:
    """Agency names appearing more than once, with their row counts."""
    counts = df[AGENCY_NAME].value_counts()
    return counts[counts > 1]


def count_name_collisions(df: pd.DataFrame, key: Sequence[str] = DEDUPE_KEY) -> int:
    """
    Count rows whose agency name is shared by a row with a different identity.

    Rows with a missing name are not counted.
    """
    named = df[df[AGENCY_NAME].notna()]
    if named.empty:
        return 0

    identities = named.drop_duplicates(subset=[AGENCY_NAME, *key])
    identities_per_name = identities.groupby(AGENCY_NAME, dropna=False).size()
    colliding = identities_per_name[identities_per_name > 1].index

    return int(named[AGENCY_NAME].isin(colliding).sum())
