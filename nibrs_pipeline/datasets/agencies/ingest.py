"""
NIBRS Pipeline - Agency Data Ingester

Fetches the law enforcement agencies table published for TidyTuesday
(2025-02-18), itself derived from the FBI Crime Data Explorer.

Data Source:
    https://github.com/rfordatascience/tidytuesday/tree/main/data/2025/2025-02-18

Usage:
    from nibrs_pipeline.datasets.agencies.ingest import AgencyIngester

    ingester = AgencyIngester()
    result = ingester.run(execution_date="2025-02-18")
    df = ingester.get_data()
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any

import pandas as pd
import requests

from nibrs_pipeline.datasets.agencies.dedupe import DEDUPE_KEY
from nibrs_pipeline.datasets.agencies.schema import INPUT_COLUMNS, ORI
from nibrs_pipeline.datasets.base import BaseIngester
from nibrs_pipeline.shared.config import Settings

logger = logging.getLogger(__name__)


class AgencyIngester(BaseIngester):
    """
    Ingester for the agencies CSV.

    Downloads the whole table in one request; there is no incremental mode.
    The raw snapshot is cached locally so repeated report runs do not refetch.
    """

    def __init__(self, config: Settings | None = None):
        """Initialize agency ingester with source settings from config."""
        super().__init__(config)
        self.source_url = self.config.source.url
        self.timeout = self.config.source.timeout_seconds

    def get_dataset_name(self) -> str:
        """Return dataset name."""
        return "agencies"

    def get_primary_key(self) -> list[str]:
        """Return the identity columns."""
        return list(DEDUPE_KEY)

    def get_cache_path(self) -> Path:
        """Return the configured raw snapshot path."""
        return self.config.storage.raw_path

    def fetch_data(self) -> pd.DataFrame:
        """
        Download and parse the agencies CSV.

        Returns:
            Raw DataFrame as published

        Raises:
            RuntimeError: On a non-200 response
            ValueError: If expected columns are absent
        """
        logger.info(f"Fetching agencies from {self.source_url}")
        response = requests.get(self.source_url, timeout=self.timeout)

        if response.status_code != 200:
            raise RuntimeError(f"HTTP {response.status_code}: {response.text[:200]}")

        df = pd.read_csv(io.StringIO(response.text), dtype={ORI: "string"})

        missing = set(INPUT_COLUMNS) - set(df.columns)
        if missing:
            raise ValueError(f"Agencies source is missing columns: {sorted(missing)}")

        logger.info(f"Fetched {len(df)} agencies with {len(df.columns)} columns")
        return df


# =============================================================================
# Convenience Functions
# =============================================================================


def ingest_agency_data(
    execution_date: str,
    refresh: bool = False,
    config: Settings | None = None,
) -> dict[str, Any]:
    """
    Convenience function for ingesting agency data.

    Returns result dictionary suitable for logging.
    """
    ingester = AgencyIngester(config)
    result = ingester.run(execution_date, refresh=refresh)
    return result.to_dict()
