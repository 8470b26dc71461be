"""
NIBRS Pipeline - Agency Data Preprocessor

Cleans and enriches the raw agency table.

Transformations (in order):
    - Type coercion (bad coordinates/dates/flags become null)
    - Deduplication on full rows, then on (ori, county, state)
    - Coordinate imputation: peer mean, county centroid, state centroid
    - Agency type classification from name patterns
    - NIBRS flag repair from start dates
    - Year extraction from the start date

Usage:
    from nibrs_pipeline.datasets.agencies.preprocess import AgencyPreprocessor

    preprocessor = AgencyPreprocessor()
    result = preprocessor.run(raw_df, execution_date="2025-02-18")
    processed_df = preprocessor.get_data()
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from nibrs_pipeline.datasets.agencies.classify import classify
from nibrs_pipeline.datasets.agencies.coordinates import impute_coordinates
from nibrs_pipeline.datasets.agencies.dedupe import dedupe
from nibrs_pipeline.datasets.agencies.diagnostics import profile_agencies
from nibrs_pipeline.datasets.agencies.repair import count_nibrs_mismatches, extract_year, repair
from nibrs_pipeline.datasets.agencies.schema import (
    AGENCY_NAME,
    AGENCY_TYPE,
    COUNTY,
    INPUT_COLUMNS,
    IS_NIBRS,
    LATITUDE,
    LONGITUDE,
    NIBRS_START_DATE,
    ORI,
    OUTPUT_COLUMNS,
    STATE,
)
from nibrs_pipeline.datasets.base import BasePreprocessor
from nibrs_pipeline.shared.config import Settings

logger = logging.getLogger(__name__)


class AgencyPreprocessor(BasePreprocessor):
    """
    Preprocessor for the law enforcement agencies table.

    Every stage is a pure function over the whole table; this class only
    sequences them and records what each one did.
    """

    DTYPE_MAPPINGS = {
        ORI: "string",
        AGENCY_NAME: "string",
        COUNTY: "string",
        STATE: "string",
        AGENCY_TYPE: "string",
        LATITUDE: "float",
        LONGITUDE: "float",
        IS_NIBRS: "boolean",
        NIBRS_START_DATE: "datetime",
    }

    def __init__(self, config: Settings | None = None):
        """Initialize agency preprocessor."""
        super().__init__(config)

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "agencies"

    def get_input_columns(self) -> list[str]:
        """Return columns the raw table must carry."""
        return INPUT_COLUMNS

    def get_required_columns(self) -> list[str]:
        """Return required output columns."""
        return OUTPUT_COLUMNS

    def get_dtype_mappings(self) -> dict[str, str]:
        """Return data type mappings."""
        return self.DTYPE_MAPPINGS

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Apply agency cleaning stages.

        Args:
            df: Raw DataFrame with coerced dtypes

        Returns:
            Cleaned DataFrame with the output columns
        """
        cleaning = self.config.cleaning
        df = df.reset_index(drop=True)

        self.log_metadata("raw_profile", profile_agencies(df, label="raw").to_dict())

        before = len(df)
        df = dedupe(df, key=cleaning.dedupe_key)
        if before > len(df):
            self.log_dropped_rows("duplicates", before - len(df))
        self.log_transformation("dedupe")

        df, imputation = impute_coordinates(
            df,
            placeholder_counties=cleaning.placeholder_counties,
            peer_key=cleaning.peer_key,
        )
        self.log_metadata("coordinate_imputation", imputation.to_dict())
        self.log_transformation("impute_coordinates")

        df = classify(df)
        self.log_transformation("classify_agency_type")

        mismatches = count_nibrs_mismatches(df)
        if mismatches.false_with_date:
            logger.warning(
                f"Found {mismatches.false_with_date} agencies with is_nibrs = FALSE "
                "but a NIBRS start date; marking them as NIBRS"
            )
        if mismatches.true_without_date:
            logger.info(
                f"{mismatches.true_without_date} agencies report NIBRS without a start date"
            )
        self.log_metadata("nibrs_mismatches", mismatches.to_dict())
        df = repair(df)
        self.log_transformation("repair_is_nibrs")

        df = extract_year(df)
        self.log_transformation("extract_year")

        df = df[OUTPUT_COLUMNS].reset_index(drop=True)
        self.log_metadata("processed_profile", profile_agencies(df, label="processed").to_dict())

        return df

    def save(self, path: Path | str | None = None) -> Path:
        """
        Persist the most recently processed snapshot as parquet.

        Args:
            path: Output file (defaults to the configured processed path)

        Returns:
            Path written
        """
        df = self.get_data()
        if df is None:
            raise RuntimeError("No processed data to save; call run() first")

        output = Path(path) if path else self.config.storage.processed_path
        output.parent.mkdir(parents=True, exist_ok=True)
        df.to_parquet(output, index=False)
        logger.info(f"Saved {len(df)} processed agencies to {output}")
        return output


# =============================================================================
# Convenience Functions
# =============================================================================


def clean_agencies(df: pd.DataFrame, config: Settings | None = None) -> pd.DataFrame:
    """
    Run the cleaning pipeline and return the cleaned table.

    Raises:
        MissingColumnsError: If the input lacks a required column
        RuntimeError: If any stage fails
    """
    preprocessor = AgencyPreprocessor(config)
    result = preprocessor.run(df, execution_date=pd.Timestamp.now(tz="UTC").date().isoformat())
    if not result.success:
        raise RuntimeError(f"Agency preprocessing failed: {result.error_message}")
    return preprocessor.get_data()


def preprocess_agency_data(
    df: pd.DataFrame,
    execution_date: str,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for preprocessing agency data.

    Returns result dictionary suitable for logging.
    """
    preprocessor = AgencyPreprocessor(config)
    result = preprocessor.run(df, execution_date)
    return result.to_dict()
