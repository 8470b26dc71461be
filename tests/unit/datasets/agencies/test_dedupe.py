"""
Unit tests for agency deduplication.
"""

import numpy as np
import pandas as pd
import pytest

from nibrs_pipeline.datasets.agencies.dedupe import (
    count_exact_duplicates,
    count_name_collisions,
    dedupe,
    duplicated_agency_names,
)


@pytest.fixture
def agencies():
    """Agencies with an exact duplicate, an identity duplicate and a name collision."""
    return pd.DataFrame(
        {
            "ori": ["A1", "A1", "A1", "B1", "C1"],
            "county": ["Lee", "Lee", "Lee", "Sangamon", "Hampden"],
            "state": ["GA", "GA", "GA", "IL", "MA"],
            "agency_name": [
                "Lee County Sheriff's Office",
                "Lee County Sheriff's Office",
                "Lee County Sheriffs Office",
                "Springfield Police Department",
                "Springfield Police Department",
            ],
            "latitude": [31.7, 31.7, np.nan, 39.8, 42.1],
        }
    )


class TestDedupe:
    """Test cases for dedupe()."""

    def test_drops_exact_and_identity_duplicates(self, agencies):
        result = dedupe(agencies)

        assert len(result) == 3
        assert result["ori"].tolist() == ["A1", "B1", "C1"]

    def test_keeps_first_seen_row(self, agencies):
        result = dedupe(agencies)

        lee = result[result["ori"] == "A1"].iloc[0]
        assert lee["agency_name"] == "Lee County Sheriff's Office"
        assert lee["latitude"] == 31.7

    def test_key_is_unique(self, agencies):
        result = dedupe(agencies)

        assert not result.duplicated(subset=["ori", "county", "state"]).any()

    def test_idempotent(self, agencies):
        once = dedupe(agencies)
        twice = dedupe(once)

        pd.testing.assert_frame_equal(once, twice)

    def test_preserves_name_collisions(self, agencies):
        result = dedupe(agencies)

        springfield = result[result["agency_name"] == "Springfield Police Department"]
        assert set(springfield["state"]) == {"IL", "MA"}

    def test_null_key_parts_compare_equal(self):
        df = pd.DataFrame(
            {
                "ori": ["X1", "X1"],
                "county": [None, None],
                "state": ["TX", "TX"],
                "agency_name": ["First", "Second"],
            }
        )

        result = dedupe(df)

        assert result["agency_name"].tolist() == ["First"]

    def test_empty_input(self):
        df = pd.DataFrame(columns=["ori", "county", "state", "agency_name"])

        result = dedupe(df)

        assert result.empty

    def test_does_not_mutate_input(self, agencies):
        original = agencies.copy()
        dedupe(agencies)

        pd.testing.assert_frame_equal(agencies, original)


class TestDuplicateDiagnostics:
    """Test duplicate inspection helpers."""

    def test_count_exact_duplicates(self, agencies):
        assert count_exact_duplicates(agencies) == 1

    def test_duplicated_agency_names(self, agencies):
        names = duplicated_agency_names(agencies)

        assert names["Springfield Police Department"] == 2
        assert names["Lee County Sheriff's Office"] == 2
        assert "Lee County Sheriffs Office" not in names

    def test_count_name_collisions(self, agencies):
        # Only the two Springfield rows belong to different agencies
        assert count_name_collisions(agencies) == 2

    def test_count_name_collisions_ignores_missing_names(self):
        df = pd.DataFrame(
            {
                "ori": ["A", "B"],
                "county": ["X", "Y"],
                "state": ["S", "S"],
                "agency_name": [None, None],
            }
        )

        assert count_name_collisions(df) == 0
