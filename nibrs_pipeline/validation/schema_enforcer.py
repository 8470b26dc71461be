"""
NIBRS Pipeline - Schema Enforcer

Two-stage validation for the agency table:
1. Raw data validation: required columns present, table not empty
2. Processed data validation: output schema and cleaning invariants

FAILS pipeline execution on violations when in strict mode.

Usage:
    enforcer = SchemaEnforcer(config)

    result = enforcer.validate_raw(df, dataset="agencies")
    if not result.is_valid:
        raise ValidationError(result)

    result = enforcer.validate_processed(cleaned_df, dataset="agencies")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

import pandas as pd

from nibrs_pipeline.datasets.agencies.schema import (
    AGENCY_TYPE,
    CANONICAL_AGENCY_TYPES,
    COORDINATE_COLUMNS,
    COUNTY,
    INPUT_COLUMNS,
    IS_NIBRS,
    LATITUDE,
    LONGITUDE,
    NIBRS_START_DATE,
    ORI,
    OUTPUT_COLUMNS,
    STATE,
    YEAR,
)
from nibrs_pipeline.shared.config import Settings, get_config

logger = logging.getLogger(__name__)


class ValidationLevel(StrEnum):
    """Validation severity level."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ValidationStage(StrEnum):
    """Data validation stage."""

    RAW = "raw"
    PROCESSED = "processed"


@dataclass
class ValidationIssue:
    """Individual validation issue."""

    level: ValidationLevel
    stage: ValidationStage
    check: str  # Name of the check that failed
    message: str
    column: str | None = None
    count: int | None = None
    percentage: float | None = None


@dataclass
class ValidationResult:
    """Result of validation checks."""

    dataset: str
    stage: ValidationStage
    is_valid: bool
    issues: list[ValidationIssue] = field(default_factory=list)
    row_count: int = 0
    column_count: int = 0
    validated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def errors(self) -> list[str]:
        """Get list of error messages."""
        return [
            issue.message
            for issue in self.issues
            if issue.level in (ValidationLevel.ERROR, ValidationLevel.CRITICAL)
        ]

    @property
    def warnings(self) -> list[str]:
        """Get list of warning messages."""
        return [issue.message for issue in self.issues if issue.level == ValidationLevel.WARNING]

    @property
    def has_errors(self) -> bool:
        """Check if result has any errors."""
        return len(self.errors) > 0

    @property
    def has_warnings(self) -> bool:
        """Check if result has any warnings."""
        return len(self.warnings) > 0

    def add(self, issue: ValidationIssue) -> None:
        """Record an issue, invalidating the result for errors."""
        self.issues.append(issue)
        if issue.level in (ValidationLevel.ERROR, ValidationLevel.CRITICAL):
            self.is_valid = False


class SchemaEnforcer:
    """
    Validation enforcer for the agency table.

    Validates data at two stages:
    - Raw: required input columns + basic quality
    - Processed: output columns + cleaning invariants
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize schema enforcer.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self.strict_mode = self.config.validation.strict_mode

    def validate_raw(self, df: pd.DataFrame, dataset: str = "agencies") -> ValidationResult:
        """
        Validate raw data.

        Checks:
        - Required input columns
        - Row count threshold
        - Exact duplicate rows (warning only)

        Args:
            df: Raw DataFrame
            dataset: Dataset name

        Returns:
            ValidationResult with issues
        """
        result = ValidationResult(
            dataset=dataset,
            stage=ValidationStage.RAW,
            is_valid=True,
            row_count=len(df),
            column_count=len(df.columns),
        )

        self._check_columns(df, INPUT_COLUMNS, result)

        min_rows = self.config.validation.quality.min_row_count
        if len(df) < min_rows:
            result.add(
                ValidationIssue(
                    level=ValidationLevel.WARNING,
                    stage=ValidationStage.RAW,
                    check="min_row_count",
                    message=f"Row count {len(df)} is below minimum {min_rows}",
                    count=len(df),
                )
            )

        dup_count = int(df.duplicated().sum())
        if dup_count > 0:
            result.add(
                ValidationIssue(
                    level=ValidationLevel.INFO,
                    stage=ValidationStage.RAW,
                    check="exact_duplicates",
                    message=f"{dup_count} rows are exact duplicates",
                    count=dup_count,
                )
            )

        self._log_result(result)
        return result

    def validate_processed(self, df: pd.DataFrame, dataset: str = "agencies") -> ValidationResult:
        """
        Validate processed data.

        Checks:
        - Output columns
        - (ori, county, state) uniqueness
        - Coordinates missing only where no fallback could apply
        - Canonical agency types
        - Start date implies is_nibrs
        - Year matches the start date

        Args:
            df: Processed DataFrame
            dataset: Dataset name

        Returns:
            ValidationResult with issues
        """
        result = ValidationResult(
            dataset=dataset,
            stage=ValidationStage.PROCESSED,
            is_valid=True,
            row_count=len(df),
            column_count=len(df.columns),
        )

        if not self._check_columns(df, OUTPUT_COLUMNS, result):
            self._log_result(result)
            return result

        self._check_key_uniqueness(df, result)
        self._check_coordinates(df, result)
        self._check_agency_types(df, result)
        self._check_nibrs_consistency(df, result)
        self._check_year(df, result)

        self._log_result(result)
        return result

    # =========================================================================
    # Private Validation Methods
    # =========================================================================

    def _check_columns(
        self,
        df: pd.DataFrame,
        expected: list[str],
        result: ValidationResult,
    ) -> bool:
        missing = [col for col in expected if col not in df.columns]
        for col in missing:
            result.add(
                ValidationIssue(
                    level=ValidationLevel.CRITICAL,
                    stage=result.stage,
                    check="schema_compliance",
                    message=f"Required column '{col}' is missing",
                    column=col,
                )
            )
        return not missing

    def _check_key_uniqueness(self, df: pd.DataFrame, result: ValidationResult) -> None:
        dup_count = int(df.duplicated(subset=[ORI, COUNTY, STATE]).sum())
        if dup_count > 0:
            result.add(
                ValidationIssue(
                    level=ValidationLevel.ERROR,
                    stage=result.stage,
                    check="key_uniqueness",
                    message=f"{dup_count} rows repeat an (ori, county, state) key",
                    count=dup_count,
                )
            )

    def _check_coordinates(self, df: pd.DataFrame, result: ValidationResult) -> None:
        missing = df[COORDINATE_COLUMNS].isna().any(axis=1)
        missing_count = int(missing.sum())
        if missing_count == 0:
            return

        # The state fallback fills any row whose state has a located agency
        located_states = df.loc[df[LATITUDE].notna() & df[LONGITUDE].notna(), STATE]
        unfilled = int((missing & df[STATE].isin(located_states.unique())).sum())
        if unfilled > 0:
            result.add(
                ValidationIssue(
                    level=ValidationLevel.ERROR,
                    stage=result.stage,
                    check="coordinate_imputation",
                    message=f"{unfilled} rows lack coordinates although their state has a centroid",
                    count=unfilled,
                )
            )

        ratio = missing_count / len(df)
        threshold = self.config.validation.quality.max_missing_coordinate_ratio
        result.add(
            ValidationIssue(
                level=ValidationLevel.WARNING if ratio > threshold else ValidationLevel.INFO,
                stage=result.stage,
                check="missing_coordinates",
                message=f"{missing_count} rows have no coordinates after imputation ({ratio:.2%})",
                count=missing_count,
                percentage=ratio,
            )
        )

    def _check_agency_types(self, df: pd.DataFrame, result: ValidationResult) -> None:
        invalid = ~df[AGENCY_TYPE].isin(CANONICAL_AGENCY_TYPES)
        invalid_count = int(invalid.sum())
        if invalid_count > 0:
            examples = sorted({str(v) for v in df.loc[invalid, AGENCY_TYPE].head(5)})
            result.add(
                ValidationIssue(
                    level=ValidationLevel.ERROR,
                    stage=result.stage,
                    check="canonical_agency_type",
                    message=f"{invalid_count} rows have non-canonical agency types: {examples}",
                    column=AGENCY_TYPE,
                    count=invalid_count,
                )
            )

    def _check_nibrs_consistency(self, df: pd.DataFrame, result: ValidationResult) -> None:
        flag = df[IS_NIBRS].astype("boolean").fillna(False).astype(bool)
        bad = int((df[NIBRS_START_DATE].notna() & ~flag).sum())
        if bad > 0:
            result.add(
                ValidationIssue(
                    level=ValidationLevel.ERROR,
                    stage=result.stage,
                    check="nibrs_consistency",
                    message=f"{bad} rows have a NIBRS start date but is_nibrs is not TRUE",
                    column=IS_NIBRS,
                    count=bad,
                )
            )

    def _check_year(self, df: pd.DataFrame, result: ValidationResult) -> None:
        expected = pd.to_datetime(df[NIBRS_START_DATE], errors="coerce", utc=True).dt.year
        actual = df[YEAR].astype("Float64")
        mismatched = actual.notna() & (actual != expected.astype("Float64")).fillna(True)
        bad = int(mismatched.sum())
        if bad > 0:
            result.add(
                ValidationIssue(
                    level=ValidationLevel.ERROR,
                    stage=result.stage,
                    check="year_matches_start_date",
                    message=f"{bad} rows have a year that differs from the start date year",
                    column=YEAR,
                    count=bad,
                )
            )

    def _log_result(self, result: ValidationResult) -> None:
        logger.info(
            f"{result.stage.value.capitalize()} validation for {result.dataset}: "
            f"{'PASSED' if result.is_valid else 'FAILED'}",
            extra={
                "dataset": result.dataset,
                "is_valid": result.is_valid,
                "issues_count": len(result.issues),
            },
        )


class ValidationError(Exception):
    """Raised when validation fails in strict mode."""

    def __init__(self, result: ValidationResult):
        self.result = result
        error_msg = "\n".join([f"  - {error}" for error in result.errors])
        super().__init__(f"Validation failed for {result.dataset}:\n{error_msg}")


# =============================================================================
# Convenience Functions
# =============================================================================


def enforce_validation(
    df: pd.DataFrame,
    stage: ValidationStage,
    dataset: str = "agencies",
    config: Settings | None = None,
) -> ValidationResult:
    """
    Convenience function to validate data and raise on failure.

    Raises:
        ValidationError: If validation fails and strict mode is enabled
    """
    enforcer = SchemaEnforcer(config)

    if stage == ValidationStage.RAW:
        result = enforcer.validate_raw(df, dataset)
    elif stage == ValidationStage.PROCESSED:
        result = enforcer.validate_processed(df, dataset)
    else:
        raise ValueError(f"Invalid validation stage: {stage}")

    if not result.is_valid and enforcer.strict_mode:
        raise ValidationError(result)

    return result
