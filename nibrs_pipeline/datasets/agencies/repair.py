"""
NIBRS Pipeline - NIBRS Flag Repair

An agency with a NIBRS start date has adopted NIBRS, so `is_nibrs` is forced
true wherever a start date exists. The reverse does not hold: `is_nibrs`
true with no start date means the date is unknown and is left alone.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import pandas as pd

from nibrs_pipeline.datasets.agencies.schema import IS_NIBRS, NIBRS_START_DATE, YEAR

logger = logging.getLogger(__name__)


@dataclass
class NibrsMismatchCounts:
    """Disagreements between `is_nibrs` and `nibrs_start_date`."""

    false_with_date: int
    true_without_date: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "false_with_date": self.false_with_date,
            "true_without_date": self.true_without_date,
        }


def count_nibrs_mismatches(df: pd.DataFrame) -> NibrsMismatchCounts:
    """
    Count both mismatch directions.

    Only `false_with_date` is corrected by `repair`; `true_without_date` is
    informational.
    """
    flag = df[IS_NIBRS].astype("boolean")
    has_date = df[NIBRS_START_DATE].notna()

    return NibrsMismatchCounts(
        false_with_date=int((flag.eq(False).fillna(False) & has_date).sum()),
        true_without_date=int((flag.eq(True).fillna(False) & ~has_date).sum()),
    )


def repair(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of `df` with `is_nibrs` set true wherever a start date exists."""
    df = df.copy()
    has_date = df[NIBRS_START_DATE].notna()

    flag = df[IS_NIBRS].astype("boolean")
    flag[has_date.to_numpy()] = True
    df[IS_NIBRS] = flag

    return df


def extract_year(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of `df` with `year` taken from `nibrs_start_date`."""
    df = df.copy()
    start_dates = pd.to_datetime(df[NIBRS_START_DATE], errors="coerce", utc=True)
    df[YEAR] = start_dates.dt.year.astype("Int64")
    return df
