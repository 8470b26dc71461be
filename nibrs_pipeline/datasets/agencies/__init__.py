"""
NIBRS Pipeline - Agencies Dataset

U.S. law enforcement agencies with their NIBRS participation.

Components:
    - AgencyIngester: Fetches and caches the raw agencies CSV
    - AgencyPreprocessor: Dedupes, imputes coordinates, classifies and repairs
    - AdoptionSummaryBuilder: Aggregates adoption by state, type and year

Usage:
    from nibrs_pipeline.datasets.agencies import AgencyIngester, AgencyPreprocessor

    ingester = AgencyIngester()
    ingester.run(execution_date="2025-02-18")

    preprocessor = AgencyPreprocessor()
    result = preprocessor.run(ingester.get_data(), execution_date="2025-02-18")
    processed_df = preprocessor.get_data()
"""

from nibrs_pipeline.datasets.agencies.classify import classify, classify_agency_type
from nibrs_pipeline.datasets.agencies.coordinates import ImputationReport, impute_coordinates
from nibrs_pipeline.datasets.agencies.dedupe import count_name_collisions, dedupe
from nibrs_pipeline.datasets.agencies.diagnostics import DatasetProfile, profile_agencies
from nibrs_pipeline.datasets.agencies.features import AdoptionSummaryBuilder
from nibrs_pipeline.datasets.agencies.ingest import AgencyIngester, ingest_agency_data
from nibrs_pipeline.datasets.agencies.preprocess import (
    AgencyPreprocessor,
    clean_agencies,
    preprocess_agency_data,
)
from nibrs_pipeline.datasets.agencies.repair import (
    NibrsMismatchCounts,
    count_nibrs_mismatches,
    extract_year,
    repair,
)
from nibrs_pipeline.datasets.agencies.schema import AgencyType

__all__ = [
    "AgencyIngester",
    "AgencyPreprocessor",
    "AdoptionSummaryBuilder",
    "AgencyType",
    "DatasetProfile",
    "ImputationReport",
    "NibrsMismatchCounts",
    "classify",
    "classify_agency_type",
    "clean_agencies",
    "count_name_collisions",
    "count_nibrs_mismatches",
    "dedupe",
    "extract_year",
    "impute_coordinates",
    "ingest_agency_data",
    "preprocess_agency_data",
    "profile_agencies",
    "repair",
]
