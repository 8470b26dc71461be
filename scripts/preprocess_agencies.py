"""
Agency Data Preprocessing Script
Cleans the cached agencies table and writes the processed snapshot
"""

import logging
import sys

from nibrs_pipeline.pipeline import run_pipeline
from nibrs_pipeline.shared import configure_logging

logger = logging.getLogger(__name__)


def print_summary(outcome: dict) -> None:
    """Print the preprocessing and adoption summary"""
    preprocessing = outcome["preprocessing"]
    metadata = preprocessing["metadata"]
    summaries = outcome["summaries"]

    print("\n=== Preprocessing ===")
    print(f"Input rows: {preprocessing['rows_input']}")
    print(f"Output rows: {preprocessing['rows_output']}")
    print(f"Dropped: {preprocessing['drop_reasons']}")
    print(f"Saved to: {preprocessing['output_path']}")

    print("\nCoordinate imputation:")
    for key, value in metadata["coordinate_imputation"].items():
        print(f"  {key}: {value}")

    print("\nNIBRS mismatches before repair:")
    for key, value in metadata["nibrs_mismatches"].items():
        print(f"  {key}: {value}")

    print("\n=== Adoption ===")
    nationwide = summaries["nationwide"]
    print(
        f"Nationwide: {nationwide['nibrs_agencies']} of {nationwide['total_agencies']} "
        f"agencies ({nationwide['adoption_rate']:.1%})"
    )

    print("\nBy agency type:")
    for _, row in summaries["by_agency_type"].iterrows():
        print(f"  {row['agency_type']}: {row['adoption_rate']:.1%} of {row['total_agencies']}")


if __name__ == "__main__":
    configure_logging()
    try:
        outcome = run_pipeline(refresh="--refresh" in sys.argv[1:])
    except Exception as e:
        logger.error(f"Agency pipeline failed: {e}")
        sys.exit(1)
    print_summary(outcome)
