"""
Unit tests for AgencyIngester.

HTTP is mocked; the parquet cache is written to a temporary directory.
"""

from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from nibrs_pipeline.datasets.agencies.ingest import AgencyIngester, ingest_agency_data

SAMPLE_CSV = """ori,county,state,state_abbr,agency_name,agency_type,latitude,longitude,is_nibrs,nibrs_start_date
AK0010100,ANCHORAGE,Alaska,AK,Anchorage Police Department,City,61.17,-149.28,TRUE,2021-01-01T05:00:00.000Z
AK0010200,NOT SPECIFIED,Alaska,AK,Alaska State Troopers,State Police,,,FALSE,
"""


class TestAgencyIngester:
    """Test cases for AgencyIngester class."""

    @pytest.fixture
    def ingester(self, tmp_config):
        """Create an AgencyIngester writing to a temporary cache."""
        return AgencyIngester(tmp_config)

    @pytest.fixture
    def mock_successful_response(self):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.text = SAMPLE_CSV
        return mock_response

    def test_get_dataset_name(self, ingester):
        assert ingester.get_dataset_name() == "agencies"

    def test_get_primary_key(self, ingester):
        assert ingester.get_primary_key() == ["ori", "county", "state"]

    def test_source_from_config(self, ingester, tmp_config):
        assert ingester.source_url == tmp_config.source.url
        assert ingester.timeout == tmp_config.source.timeout_seconds

    def test_fetch_data(self, ingester, mock_successful_response):
        with patch(
            "nibrs_pipeline.datasets.agencies.ingest.requests.get",
            return_value=mock_successful_response,
        ) as mock_get:
            df = ingester.fetch_data()

        mock_get.assert_called_once_with(ingester.source_url, timeout=ingester.timeout)
        assert len(df) == 2
        assert df.loc[0, "agency_name"] == "Anchorage Police Department"

    def test_fetch_data_http_error(self, ingester):
        mock_response = MagicMock()
        mock_response.status_code = 503
        mock_response.text = "Service Unavailable"

        with patch(
            "nibrs_pipeline.datasets.agencies.ingest.requests.get", return_value=mock_response
        ):
            with pytest.raises(RuntimeError, match="HTTP 503"):
                ingester.fetch_data()

    def test_fetch_data_missing_columns(self, ingester):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.text = "ori,agency_name\nAK0010100,Anchorage Police Department\n"

        with patch(
            "nibrs_pipeline.datasets.agencies.ingest.requests.get", return_value=mock_response
        ):
            with pytest.raises(ValueError, match="latitude"):
                ingester.fetch_data()

    def test_run_writes_cache(self, ingester, mock_successful_response):
        with patch(
            "nibrs_pipeline.datasets.agencies.ingest.requests.get",
            return_value=mock_successful_response,
        ):
            result = ingester.run(execution_date="2025-02-18")

        assert result.success
        assert not result.from_cache
        assert result.rows_fetched == 2
        assert ingester.get_cache_path().exists()
        assert len(pd.read_parquet(ingester.get_cache_path())) == 2

    def test_run_reuses_cache(self, ingester, mock_successful_response):
        with patch(
            "nibrs_pipeline.datasets.agencies.ingest.requests.get",
            return_value=mock_successful_response,
        ):
            ingester.run(execution_date="2025-02-18")

        with patch("nibrs_pipeline.datasets.agencies.ingest.requests.get") as mock_get:
            result = ingester.run(execution_date="2025-02-19")

        mock_get.assert_not_called()
        assert result.from_cache
        assert len(ingester.get_data()) == 2

    def test_run_refresh_refetches(self, ingester, mock_successful_response):
        with patch(
            "nibrs_pipeline.datasets.agencies.ingest.requests.get",
            return_value=mock_successful_response,
        ) as mock_get:
            ingester.run(execution_date="2025-02-18")
            result = ingester.run(execution_date="2025-02-19", refresh=True)

        assert mock_get.call_count == 2
        assert not result.from_cache

    def test_run_failure(self, ingester):
        with patch(
            "nibrs_pipeline.datasets.agencies.ingest.requests.get",
            side_effect=ConnectionError("unreachable"),
        ):
            result = ingester.run(execution_date="2025-02-18")

        assert not result.success
        assert "unreachable" in result.error_message
        assert result.rows_fetched == 0

    def test_validate_schema(self, ingester):
        df = pd.DataFrame({"ori": ["A"], "county": ["B"], "state": ["C"]})

        is_valid, errors = ingester.validate_schema(df)

        assert is_valid
        assert errors == []

    def test_validate_schema_empty(self, ingester):
        is_valid, errors = ingester.validate_schema(pd.DataFrame(columns=["ori"]))

        assert not is_valid
        assert "Primary key column 'county' not found" in errors
        assert "DataFrame is empty" in errors


def test_ingest_agency_data(tmp_config):
    mock_response = MagicMock()
    mock_response.status_code = 200
    mock_response.text = SAMPLE_CSV

    with patch(
        "nibrs_pipeline.datasets.agencies.ingest.requests.get", return_value=mock_response
    ):
        result = ingest_agency_data("2025-02-18", config=tmp_config)

    assert isinstance(result, dict)
    assert result["success"]
    assert result["rows_fetched"] == 2
