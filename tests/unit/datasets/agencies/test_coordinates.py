"""
Unit tests for coordinate imputation.

Covers each fallback level, the placeholder county rule and the report.
"""

import numpy as np
import pandas as pd
import pytest

from nibrs_pipeline.datasets.agencies.coordinates import (
    compute_county_centroids,
    compute_state_centroids,
    count_missing_pairs,
    fill_from_peers,
    impute_coordinates,
)


def make_agencies(rows):
    """Build an agency frame from (name, county, state, lat, lon) tuples."""
    return pd.DataFrame(
        rows, columns=["agency_name", "county", "state", "latitude", "longitude"]
    ).astype({"latitude": "float64", "longitude": "float64"})


class TestPeerImputation:
    """Level 1: same agency split across rows."""

    def test_null_peer_receives_sibling_coordinates(self):
        df = make_agencies(
            [
                ("Lee County Sheriff's Office", "Lee", "GA", 40.0, -75.0),
                ("Lee County Sheriff's Office", "Lee", "GA", None, None),
            ]
        )

        result, report = impute_coordinates(df)

        assert result.loc[1, "latitude"] == 40.0
        assert result.loc[1, "longitude"] == -75.0
        assert report.filled_by_peer == 1

    def test_peer_mean_over_several_values(self):
        df = make_agencies(
            [
                ("A", "Lee", "GA", 30.0, -80.0),
                ("A", "Lee", "GA", 32.0, -82.0),
                ("A", "Lee", "GA", None, None),
            ]
        )

        result = fill_from_peers(df)

        assert result.loc[2, "latitude"] == pytest.approx(31.0)
        assert result.loc[2, "longitude"] == pytest.approx(-81.0)

    def test_latitude_and_longitude_filled_independently(self):
        df = make_agencies(
            [
                ("A", "Lee", "GA", 30.0, None),
                ("A", "Lee", "GA", None, -80.0),
            ]
        )

        result = fill_from_peers(df)

        assert result["latitude"].tolist() == [30.0, 30.0]
        assert result["longitude"].tolist() == [-80.0, -80.0]

    def test_existing_values_are_kept(self):
        df = make_agencies(
            [
                ("A", "Lee", "GA", 30.0, -80.0),
                ("A", "Lee", "GA", 34.0, -84.0),
            ]
        )

        result = fill_from_peers(df)

        assert result["latitude"].tolist() == [30.0, 34.0]

    def test_peers_require_same_county_and_state(self):
        df = make_agencies(
            [
                ("A", "Lee", "GA", 30.0, -80.0),
                ("A", "Lee", "AL", None, None),
            ]
        )

        result = fill_from_peers(df)

        assert np.isnan(result.loc[1, "latitude"])


class TestCountyImputation:
    """Level 2: county centroids."""

    def test_county_centroid_used_before_state_centroid(self):
        df = make_agencies(
            [
                ("A", "Lee", "GA", 31.0, -84.0),
                ("B", "Lee", "GA", 33.0, -86.0),
                ("C", "Cobb", "GA", 40.0, -70.0),
                ("D", "Lee", "GA", None, None),
            ]
        )

        result, report = impute_coordinates(df)

        assert result.loc[3, "latitude"] == pytest.approx(32.0)
        assert result.loc[3, "longitude"] == pytest.approx(-85.0)
        assert report.filled_by_county == 1
        assert report.filled_by_state == 0

    def test_placeholder_counties_excluded_from_centroids(self):
        df = make_agencies(
            [
                ("A", "Unknown", "GA", 10.0, -10.0),
                ("B", "NOT SPECIFIED", "GA", 11.0, -11.0),
                ("C", None, "GA", 12.0, -12.0),
                ("D", "Fulton", "GA", 33.7, -84.4),
            ]
        )

        centroids = compute_county_centroids(df)

        assert centroids["county"].tolist() == ["Fulton"]

    def test_custom_placeholder_counties(self):
        df = make_agencies(
            [
                ("A", "STATEWIDE", "GA", 10.0, -10.0),
                ("B", "Fulton", "GA", 33.7, -84.4),
            ]
        )

        centroids = compute_county_centroids(df, placeholder_counties=["STATEWIDE"])

        assert centroids["county"].tolist() == ["Fulton"]

    def test_county_with_no_coordinates_defers_to_state(self):
        df = make_agencies(
            [
                ("A", "Lee", "GA", None, None),
                ("B", "Lee", "GA", None, None),
                ("C", "Fulton", "GA", 34.0, -84.0),
            ]
        )

        result, report = impute_coordinates(df)

        assert result.loc[0, "latitude"] == pytest.approx(34.0)
        assert result.loc[1, "longitude"] == pytest.approx(-84.0)
        assert report.filled_by_county == 0
        assert report.filled_by_state == 2


class TestStateImputation:
    """Level 3: state centroids."""

    def test_unknown_county_receives_state_centroid(self):
        df = make_agencies(
            [
                ("A", "Fulton", "GA", 33.7, -84.4),
                ("B", "Unknown", "GA", None, None),
                ("C", "Unknown", "GA", 10.0, -10.0),
            ]
        )

        result, report = impute_coordinates(df)

        # State centroid over A and C; an "Unknown" county centroid would be (10, -10)
        assert result.loc[1, "latitude"] == pytest.approx(21.85)
        assert result.loc[1, "longitude"] == pytest.approx(-47.2)
        assert report.filled_by_state == 1

    def test_state_centroid_uses_rows_with_both_coordinates(self):
        df = make_agencies(
            [
                ("A", "Fulton", "GA", 30.0, -80.0),
                ("B", "Cobb", "GA", 50.0, None),
            ]
        )

        centroids = compute_state_centroids(df)

        assert centroids.loc[0, "latitude"] == pytest.approx(30.0)

    def test_no_signal_leaves_row_missing(self):
        df = make_agencies(
            [
                ("A", "Fulton", "GA", 33.7, -84.4),
                ("Lonely Agency", None, "GU", None, None),
            ]
        )

        result, report = impute_coordinates(df)

        assert np.isnan(result.loc[1, "latitude"])
        assert np.isnan(result.loc[1, "longitude"])
        assert report.missing_after == 1


class TestImputeCoordinates:
    """Properties of the full imputation."""

    @pytest.fixture
    def mixed(self):
        return make_agencies(
            [
                ("A", "Lee", "GA", 31.0, -84.0),
                ("A", "Lee", "GA", None, None),
                ("B", "Lee", "GA", None, None),
                ("C", "Unknown", "GA", None, None),
                ("D", "Sangamon", "IL", 39.8, -89.6),
                ("E", None, "GU", None, None),
            ]
        )

    def test_never_reduces_coverage(self, mixed):
        result, _ = impute_coordinates(mixed)

        assert count_missing_pairs(result) <= count_missing_pairs(mixed)
        assert result["latitude"].notna().sum() >= mixed["latitude"].notna().sum()

    def test_report_accounts_for_every_missing_pair(self, mixed):
        _, report = impute_coordinates(mixed)

        assert report.missing_before == 4
        assert report.filled_by_peer == 1
        assert report.filled_by_county == 1
        assert report.filled_by_state == 1
        assert report.missing_after == 1
        assert report.to_dict()["missing_after"] == 1

    def test_row_order_does_not_change_values(self, mixed):
        forward, _ = impute_coordinates(mixed)
        backward, _ = impute_coordinates(mixed.iloc[::-1])

        pd.testing.assert_frame_equal(forward, backward.sort_index())

    def test_does_not_mutate_input(self, mixed):
        original = mixed.copy()
        impute_coordinates(mixed)

        pd.testing.assert_frame_equal(mixed, original)

    def test_non_numeric_coordinates_become_missing(self):
        df = pd.DataFrame(
            {
                "agency_name": ["A"],
                "county": ["Lee"],
                "state": ["GA"],
                "latitude": [None],
                "longitude": [None],
            }
        )

        result, report = impute_coordinates(df)

        assert result["latitude"].dtype == "float64"
        assert report.missing_after == 1

    def test_empty_input(self):
        result, report = impute_coordinates(make_agencies([]))

        assert result.empty
        assert report.missing_before == 0
