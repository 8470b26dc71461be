"""
NIBRS Pipeline - Base Classes for Datasets

Abstract base classes that all dataset implementations inherit from.
These provide a consistent interface for:
- Data ingestion (BaseIngester)
- Data preprocessing (BasePreprocessor)
- Feature building (BaseFeatureBuilder)

Usage:
    from nibrs_pipeline.datasets.base import BaseIngester, BasePreprocessor, BaseFeatureBuilder

    class AgencyIngester(BaseIngester):
        def fetch_data(self) -> pd.DataFrame:
            ...
"""

from nibrs_pipeline.datasets.base.feature_builder import (
    BaseFeatureBuilder,
    FeatureBuildResult,
    FeatureDefinition,
)
from nibrs_pipeline.datasets.base.ingester import BaseIngester, IngestionResult
from nibrs_pipeline.datasets.base.preprocessor import (
    BasePreprocessor,
    MissingColumnsError,
    PreprocessingResult,
    coerce_boolean,
)

__all__ = [
    "BaseIngester",
    "IngestionResult",
    "BasePreprocessor",
    "PreprocessingResult",
    "MissingColumnsError",
    "coerce_boolean",
    "BaseFeatureBuilder",
    "FeatureBuildResult",
    "FeatureDefinition",
]
