"""
Agency Data Ingestion Script
Downloads the law enforcement agencies table and caches it locally
"""

import logging
import sys
from datetime import UTC, datetime

from nibrs_pipeline.datasets.agencies import AgencyIngester
from nibrs_pipeline.shared import configure_logging, get_config

logger = logging.getLogger(__name__)


def download_agency_data(refresh: bool = False):
    """
    Download the agencies table, reusing the local cache unless refresh is set

    Args:
        refresh: Refetch even when a cached copy exists

    Returns:
        Path to the cached raw snapshot
    """
    config = get_config()
    ingester = AgencyIngester(config)
    result = ingester.run(execution_date=datetime.now(UTC).date().isoformat(), refresh=refresh)

    if not result.success:
        raise RuntimeError(f"Ingestion failed: {result.error_message}")

    df = ingester.get_data()
    is_valid, errors = ingester.validate_schema(df)
    if not is_valid:
        logger.warning(f"Validation issues found: {errors}")

    logger.info(f"Raw agencies available at {result.output_path}")
    return result.output_path


if __name__ == "__main__":
    configure_logging()
    file_path = download_agency_data(refresh="--refresh" in sys.argv[1:])
    print(f"Raw agencies: {file_path}")
