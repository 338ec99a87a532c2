from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Mapping, Optional, Union

from models import StructuredCourseData, normalize_confidence
from pipeline.config import TrainingThresholds
from quality.validator import RATING_RANGE, SLOPE_RANGE


NEUTRAL_CONFIDENCE = 0.5

# Required fields first, then optional ones.
COMPLETENESS_WEIGHTS: Dict[str, int] = {
    "course_name": 3,
    "tee_name": 2,
    "course_rating": 2,
    "slope_rating": 2,
    "total_par": 1,
    "total_yardage": 1,
    "par_values": 2,
    "handicap_values": 1,
    "players": 1,
    "date": 1,
    "location": 1,
}

GOLF_NAME_TOKENS = ["golf", "club", "course", "country", "links", "hills", "ridge", "valley"]

TEE_VOCABULARY = [
    "championship", "blue", "white", "red", "gold",
    "black", "tips", "back", "front", "ladies",
]

HEURISTIC_FIELDS = ["course_name", "tee_name", "course_rating", "slope_rating"]


class ConfidenceLevel(str, Enum):
    """Human-readable confidence buckets."""
    HIGH = "high"          # >= 0.85
    MEDIUM = "medium"      # >= 0.60
    LOW = "low"            # >= 0.30
    VERY_LOW = "very_low"  # < 0.30

    @staticmethod
    def for_score(score: float) -> "ConfidenceLevel":
        if score >= 0.85:
            return ConfidenceLevel.HIGH
        elif score >= 0.60:
            return ConfidenceLevel.MEDIUM
        elif score >= 0.30:
            return ConfidenceLevel.LOW
        return ConfidenceLevel.VERY_LOW


class ConfidenceReport(BaseModel):
    """Scores attached to a scan after parsing."""
    overall: float = Field(..., ge=0.0, le=1.0)
    level: ConfidenceLevel
    completeness: int = Field(..., ge=0, le=100)
    fields: Dict[str, float] = Field(default_factory=dict)
    fields_needing_review: List[str] = Field(default_factory=list)

    def as_scores(self) -> Dict[str, float]:
        """Flat field -> score map stored on the scan."""
        return {**self.fields, "overall": self.overall}


def _clamp(value: float) -> float:
    return max(0.0, min(float(value), 1.0))


def _section(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, Mapping) else {}


# ================================================================
# Overall confidence
# ================================================================

def overall_confidence(raw: Mapping[str, Any]) -> float:
    """First available source wins; result always lies in [0, 1].

    1. payload ``confidence`` (percentages rescaled)
    2. ``structured_data.overall_confidence``
    3. ``golf_course_properties.confidence_score``
    4. mean word confidence
    5. neutral 0.5
    """
    if raw.get("confidence") is not None:
        return normalize_confidence(raw["confidence"])

    structured = _section(raw, "structured_data")
    if structured.get("overall_confidence") is not None:
        return normalize_confidence(structured["overall_confidence"])

    props = _section(raw, "golf_course_properties")
    if props.get("confidence_score") is not None:
        return normalize_confidence(props["confidence_score"])

    words = raw.get("words") or []
    word_confs = [
        normalize_confidence(w.get("confidence"))
        for w in words
        if isinstance(w, Mapping) and w.get("confidence") is not None
    ]
    if word_confs:
        return _clamp(sum(word_confs) / len(word_confs))

    return NEUTRAL_CONFIDENCE


# ================================================================
# Completeness
# ================================================================

def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict, tuple)):
        return bool(value)
    return True


def completeness_score(data: Union[StructuredCourseData, Mapping[str, Any]]) -> int:
    """Weighted share of recognized fields that are filled, 0-100."""
    values = data.model_dump() if isinstance(data, StructuredCourseData) else data
    total = sum(COMPLETENESS_WEIGHTS.values())
    achieved = sum(
        weight for field, weight in COMPLETENESS_WEIGHTS.items()
        if _is_filled(values.get(field))
    )
    return int(round(achieved / total * 100))


# ================================================================
# Field-level confidence
# ================================================================

def estimate_field_confidence(field: str, value: Any) -> float:
    """Heuristic confidence for a field the provider gave no score for."""
    if field == "course_name":
        if isinstance(value, str) and len(value) > 5:
            lowered = value.lower()
            return 0.9 if any(token in lowered for token in GOLF_NAME_TOKENS) else 0.7
        return 0.5

    if field in ("course_rating", "slope_rating"):
        bounds = RATING_RANGE if field == "course_rating" else SLOPE_RANGE
        try:
            num = float(value)
        except (TypeError, ValueError):
            return 0.3
        return 0.95 if bounds[0] <= num <= bounds[1] else 0.6

    if field == "tee_name":
        if isinstance(value, str):
            lowered = value.lower()
            return 0.9 if any(tee in lowered for tee in TEE_VOCABULARY) else 0.7
        return 0.5

    return 0.7


def field_confidences(raw: Mapping[str, Any], data: StructuredCourseData) -> Dict[str, float]:
    """Provider-supplied section confidences, topped up with heuristics."""
    confidences: Dict[str, float] = {}

    structured = _section(raw, "structured_data")
    course_info = _section(structured, "course_information")
    if course_info.get("confidence") is not None:
        confidences["course_name"] = normalize_confidence(course_info["confidence"])
    for tee in structured.get("tee_boxes") or []:
        if isinstance(tee, Mapping) and tee.get("confidence") is not None:
            confidences["tee_data"] = normalize_confidence(tee["confidence"])
            break

    props = _section(raw, "golf_course_properties")
    if props.get("confidence_score") is not None:
        confidences["properties"] = normalize_confidence(props["confidence_score"])

    for field in HEURISTIC_FIELDS:
        value = getattr(data, field)
        if value is not None and field not in confidences:
            confidences[field] = estimate_field_confidence(field, value)

    return confidences


def is_training_candidate(
    confidence: float,
    completeness: int,
    validation_errors: List[Any],
    thresholds: TrainingThresholds = TrainingThresholds(),
) -> bool:
    """High-quality, ambiguous-but-structured, or negative examples."""
    if validation_errors:
        return True
    if confidence >= thresholds.high_confidence and completeness >= thresholds.high_completeness:
        return True
    if confidence < thresholds.low_confidence and completeness >= thresholds.low_completeness:
        return True
    return False


class ConfidenceScorer:
    """Bundles the scoring functions behind one object for the pipeline."""

    def __init__(self, thresholds: Optional[TrainingThresholds] = None, review_below: float = 0.6):
        self.thresholds = thresholds or TrainingThresholds()
        self.review_below = review_below

    def score(self, raw: Mapping[str, Any], data: StructuredCourseData) -> ConfidenceReport:
        overall = overall_confidence(raw)
        fields = field_confidences(raw, data)
        return ConfidenceReport(
            overall=overall,
            level=ConfidenceLevel.for_score(overall),
            completeness=completeness_score(data),
            fields=fields,
            fields_needing_review=sorted(k for k, v in fields.items() if v < self.review_below),
        )

    def is_training_candidate(self, report: ConfidenceReport, validation_errors: List[Any]) -> bool:
        return is_training_candidate(report.overall, report.completeness, validation_errors, self.thresholds)
