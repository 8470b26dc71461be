"""
NIBRS Pipeline - Validation

Schema and invariant checks for raw and processed agency data.

Components:
    - SchemaEnforcer: Two-stage validation (raw/processed)
    - ValidationError: Raised on failed validation in strict mode
"""

from nibrs_pipeline.validation.schema_enforcer import (
    SchemaEnforcer,
    ValidationError,
    ValidationIssue,
    ValidationLevel,
    ValidationResult,
    ValidationStage,
    enforce_validation,
)

__all__ = [
    "SchemaEnforcer",
    "ValidationError",
    "ValidationIssue",
    "ValidationLevel",
    "ValidationResult",
    "ValidationStage",
    "enforce_validation",
]
