from datetime import datetime
from pydantic import Field
from typing import Any, Dict, List, Optional

from .base import BaseGolfModel


ACCURACY_FIELDS = [
    "course_name",
    "tee_name",
    "course_rating",
    "slope_rating",
    "total_par",
    "total_yardage",
]

NUMERIC_TOLERANCE = 0.1


def fields_match(verified: Any, extracted: Any) -> bool:
    """Compare a verified value to an extracted one.

    Strings match case-insensitively after trimming; numbers match within
    a 0.1 tolerance.
    """
    if verified == extracted:
        return True
    if isinstance(verified, str) and isinstance(extracted, str):
        return verified.strip().lower() == extracted.strip().lower()
    try:
        return abs(float(verified) - float(extracted)) < NUMERIC_TOLERANCE
    except (TypeError, ValueError):
        return False


class TrainingDataRecord(BaseGolfModel):
    """OCR output captured for offline accuracy measurement and export."""
    id: Optional[str] = None
    scan_id: str
    raw_ocr_response: Dict[str, Any] = Field(default_factory=dict)
    extracted_data: Dict[str, Any] = Field(default_factory=dict)
    confidence_score: float = Field(0.0, ge=0.0, le=1.0)
    verified_data: Optional[Dict[str, Any]] = None
    corrections: Optional[Dict[str, Any]] = None
    error_analysis: Optional[Dict[str, Any]] = None
    is_verified: bool = False
    is_training_candidate: bool = False
    ocr_provider: str
    used_enhanced_prompt: bool = False
    model_version: Optional[str] = None
    data_completeness_score: int = Field(0, ge=0, le=100)
    field_confidence_scores: Dict[str, float] = Field(default_factory=dict)
    validation_errors: List[Dict[str, Any]] = Field(default_factory=list)
    processing_time_ms: Optional[int] = None
    processing_metadata: Dict[str, Any] = Field(default_factory=dict)
    original_image_ref: Optional[str] = None
    processed_image_ref: Optional[str] = None
    created_at: Optional[datetime] = None

    def accuracy_score(self) -> Optional[float]:
        """Fraction of verified key fields the extraction got right, or None if unverified."""
        if not self.is_verified or not self.verified_data or not self.extracted_data:
            return None

        total = 0
        correct = 0
        for field in ACCURACY_FIELDS:
            if self.verified_data.get(field) is None:
                continue
            total += 1
            extracted = self.extracted_data.get(field)
            if extracted is not None and fields_match(self.verified_data[field], extracted):
                correct += 1
        return correct / total if total else None

    def quality_metrics(self) -> Dict[str, Any]:
        return {
            "confidence_score": self.confidence_score,
            "data_completeness": self.data_completeness_score,
            "accuracy_score": self.accuracy_score(),
            "field_count": len(self.extracted_data),
            "has_validation_errors": bool(self.validation_errors),
            "processing_time": self.processing_time_ms,
        }

    def mark_verified(
        self,
        verified_data: Dict[str, Any],
        corrections: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Record human-reviewed values and the resulting error analysis."""
        self.verified_data = verified_data
        self.corrections = corrections or {}
        self.is_verified = True
        self.error_analysis = self._error_analysis(verified_data)

    def _error_analysis(self, verified_data: Dict[str, Any]) -> Dict[str, Any]:
        missing: List[str] = []
        incorrect: List[Dict[str, Any]] = []
        accuracy_by_field: Dict[str, float] = {}

        for field, correct_value in verified_data.items():
            extracted = self.extracted_data.get(field)
            if extracted is None:
                missing.append(field)
                accuracy_by_field[field] = 0.0
            elif not fields_match(correct_value, extracted):
                incorrect.append({"field": field, "extracted": extracted, "correct": correct_value})
                accuracy_by_field[field] = 0.0
            else:
                accuracy_by_field[field] = 1.0

        overall = sum(accuracy_by_field.values()) / len(verified_data) if verified_data else 0.0
        return {
            "missing_fields": missing,
            "incorrect_fields": incorrect,
            "accuracy_by_field": accuracy_by_field,
            "overall_accuracy": overall,
        }
