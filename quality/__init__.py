from quality.validator import (
    GolfDataValidator,
    Severity,
    ValidationIssue,
    ValidationPolicy,
    ValidationResult,
)
from quality.scoring import (
    COMPLETENESS_WEIGHTS,
    ConfidenceLevel,
    ConfidenceReport,
    ConfidenceScorer,
    completeness_score,
    estimate_field_confidence,
    field_confidences,
    is_training_candidate,
    overall_confidence,
)

__all__ = [
    "COMPLETENESS_WEIGHTS",
    "ConfidenceLevel",
    "ConfidenceReport",
    "ConfidenceScorer",
    "GolfDataValidator",
    "Severity",
    "ValidationIssue",
    "ValidationPolicy",
    "ValidationResult",
    "completeness_score",
    "estimate_field_confidence",
    "field_confidences",
    "is_training_candidate",
    "overall_confidence",
]
