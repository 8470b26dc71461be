"""
NIBRS Pipeline - Agency Type Classification

Reassigns `agency_type` from patterns in the agency name. The upstream label
is unreliable, so name patterns always win over it; whatever no pattern
claims lands in the "Other State Agencies" bucket.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import pandas as pd

from nibrs_pipeline.datasets.agencies.schema import AGENCY_NAME, AGENCY_TYPE, AgencyType

logger = logging.getLogger(__name__)

# Ordered: the first matching rule wins
NAME_RULES: list[tuple[AgencyType, list[str]]] = [
    (AgencyType.CITY, ["Police Department"]),
    (AgencyType.COUNTY, ["County Sheriff's Office"]),
    (AgencyType.STATE_POLICE, ["State Police", "State Patrol", "Highway Patrol"]),
    (AgencyType.OTHER_STATE_AGENCIES, ["State Park", "State Fire"]),
    (AgencyType.TRIBAL, ["Tribal"]),
    (AgencyType.UNIVERSITY_OR_COLLEGE, ["University", "College"]),
]

_COMPILED_RULES = [
    (agency_type, re.compile("|".join(re.escape(p) for p in patterns), re.IGNORECASE))
    for agency_type, patterns in NAME_RULES
]


def classify_agency_type(agency_name: Any, agency_type: Any = None) -> AgencyType:
    """
    Classify one agency into a canonical type.

    Args:
        agency_name: Agency name; missing names match no pattern
        agency_type: The upstream label. It cannot change the result: name
            patterns outrank it, and an unmatched name lands in Other State
            Agencies whether the label is a catch-all ("Other State Agency",
            "Other"), a real type or missing

    Returns:
        One of the six canonical AgencyType values
    """
    if isinstance(agency_name, str):
        for canonical, pattern in _COMPILED_RULES:
            if pattern.search(agency_name):
                return canonical

    return AgencyType.OTHER_STATE_AGENCIES


def classify(df: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of `df` with `agency_type` replaced by its canonical class."""
    df = df.copy()
    classified = [
        classify_agency_type(name, current).value
        for name, current in zip(df[AGENCY_NAME], df[AGENCY_TYPE], strict=True)
    ]
    df[AGENCY_TYPE] = pd.Series(classified, index=df.index, dtype="object")

    logger.info(
        "Classified agency types",
        extra={"agency_type_counts": df[AGENCY_TYPE].value_counts().to_dict()},
    )
    return df


def agency_type_frequency(df: pd.DataFrame) -> pd.Series:
    """Row count per agency type, most common first, missing types included."""
    return df[AGENCY_TYPE].value_counts(dropna=False)


def count_missing_agency_types(df: pd.DataFrame) -> int:
    """Rows with no agency type at all."""
    return int(df[AGENCY_TYPE].isna().sum())
