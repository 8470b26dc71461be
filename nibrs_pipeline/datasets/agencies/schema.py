"""
NIBRS Pipeline - Agency Table Schema

Column names and canonical categories shared by every agency cleaning stage
and by the reporting code that consumes the cleaned snapshot.
"""

from __future__ import annotations

from enum import StrEnum

ORI = "ori"
AGENCY_NAME = "agency_name"
COUNTY = "county"
STATE = "state"
LATITUDE = "latitude"
LONGITUDE = "longitude"
AGENCY_TYPE = "agency_type"
IS_NIBRS = "is_nibrs"
NIBRS_START_DATE = "nibrs_start_date"
YEAR = "year"

INPUT_COLUMNS = [
    ORI,
    AGENCY_NAME,
    COUNTY,
    STATE,
    LATITUDE,
    LONGITUDE,
    AGENCY_TYPE,
    IS_NIBRS,
    NIBRS_START_DATE,
]

OUTPUT_COLUMNS = [*INPUT_COLUMNS, YEAR]

COORDINATE_COLUMNS = [LATITUDE, LONGITUDE]


class AgencyType(StrEnum):
    """Canonical agency categories after classification."""

    CITY = "City"
    COUNTY = "County"
    STATE_POLICE = "State Police"
    TRIBAL = "Tribal"
    UNIVERSITY_OR_COLLEGE = "University or College"
    OTHER_STATE_AGENCIES = "Other State Agencies"


CANONICAL_AGENCY_TYPES = frozenset(t.value for t in AgencyType)
