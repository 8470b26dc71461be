"""
NIBRS Pipeline - Agency Pipeline Runner

Runs the agency pipeline end to end as a single batch.

Pipeline Stages:
    1. Ingest: Fetch (or reuse cached) raw agencies table
    2. Validate Raw: Check required columns are present
    3. Preprocess: Dedupe, impute coordinates, classify, repair, derive year
    4. Validate Processed: Check output schema and cleaning invariants
    5. Save: Write the cleaned snapshot as parquet
    6. Build Summaries: Adoption by state, agency type and year

Usage:
    from nibrs_pipeline.pipeline import run_pipeline

    summary = run_pipeline(execution_date="2025-02-18")
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import pandas as pd

from nibrs_pipeline.datasets.agencies import (
    AdoptionSummaryBuilder,
    AgencyIngester,
    AgencyPreprocessor,
)
from nibrs_pipeline.shared.config import Settings, get_config
from nibrs_pipeline.validation import ValidationStage, enforce_validation

logger = logging.getLogger(__name__)

DATASET = "agencies"


def ingest_data(execution_date: str, refresh: bool, config: Settings) -> pd.DataFrame:
    """Fetch the raw agencies table, failing the run if nothing can be loaded."""
    ingester = AgencyIngester(config)
    result = ingester.run(execution_date=execution_date, refresh=refresh)

    if not result.success:
        raise RuntimeError(f"Ingestion failed: {result.error_message}")

    return ingester.get_data()


def preprocess_data(
    raw_df: pd.DataFrame,
    execution_date: str,
    config: Settings,
) -> tuple[pd.DataFrame, dict[str, Any]]:
    """Clean the raw table and persist the processed snapshot."""
    preprocessor = AgencyPreprocessor(config)
    result = preprocessor.run(raw_df, execution_date)

    if not result.success:
        raise RuntimeError(f"Preprocessing failed: {result.error_message}")

    result.output_path = str(preprocessor.save())
    return preprocessor.get_data(), result.to_dict()


def build_summaries(
    processed_df: pd.DataFrame,
    execution_date: str,
    config: Settings,
) -> dict[str, Any]:
    """Aggregate adoption tables for the report."""
    builder = AdoptionSummaryBuilder(config)
    result = builder.run(processed_df, execution_date)

    if not result.success:
        raise RuntimeError(f"Summary building failed: {result.error_message}")

    return {
        "nationwide": builder.nationwide_summary(processed_df),
        "by_state": builder.get_data(),
        "by_agency_type": builder.adoption_by_agency_type(processed_df),
        "cumulative_by_year": builder.cumulative_adoption_by_year(processed_df),
    }


def run_pipeline(
    execution_date: str | None = None,
    refresh: bool = False,
    config: Settings | None = None,
    raw_df: pd.DataFrame | None = None,
) -> dict[str, Any]:
    """
    Run ingest, validation, cleaning and summaries in order.

    Args:
        execution_date: Run date in YYYY-MM-DD format (defaults to today, UTC)
        refresh: Refetch the raw table even when a cached copy exists
        config: Configuration object (uses default if not provided)
        raw_df: Raw table to use instead of ingesting

    Returns:
        Dictionary with the processed DataFrame, preprocessing result,
        validation results and adoption summaries

    Raises:
        MissingColumnsError: If the raw table lacks a required column
        ValidationError: If strict validation fails
        RuntimeError: If a stage fails
    """
    config = config or get_config()
    execution_date = execution_date or datetime.now(UTC).date().isoformat()

    logger.info(f"Starting {DATASET} pipeline for {execution_date}")

    if raw_df is None:
        raw_df = ingest_data(execution_date, refresh, config)

    raw_validation = enforce_validation(raw_df, ValidationStage.RAW, DATASET, config)
    processed_df, preprocessing = preprocess_data(raw_df, execution_date, config)
    processed_validation = enforce_validation(
        processed_df, ValidationStage.PROCESSED, DATASET, config
    )
    summaries = build_summaries(processed_df, execution_date, config)

    logger.info(
        f"{DATASET} pipeline complete: {preprocessing['rows_input']} -> "
        f"{preprocessing['rows_output']} rows",
        extra={"nationwide": summaries["nationwide"]},
    )

    return {
        "processed": processed_df,
        "preprocessing": preprocessing,
        "validation": {
            "raw": raw_validation,
            "processed": processed_validation,
        },
        "summaries": summaries,
    }
