"""USGA-style plausibility checks on parsed scorecard data.

Every rule runs independently; nothing short-circuits. The same rule can
carry a different severity depending on the policy chosen by the caller:
LENIENT reports range problems as warnings, STRICT as errors. A missing
course name is always an error.
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from models import StructuredCourseData


RATING_RANGE = (67.0, 77.0)
SLOPE_RANGE = (55, 155)
PAR_RANGE = (3, 6)
TOTAL_PAR_RANGE = (54, 108)
HOLE_SCORE_RANGE = (1, 15)
YARDAGE_RANGE = (50, 700)
HOLES = 18


class ValidationPolicy(str, Enum):
    LENIENT = "lenient"
    STRICT = "strict"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class ValidationIssue(BaseModel):
    field: str
    message: str
    value: Optional[Any] = None

    def as_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class ValidationResult(BaseModel):
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def can_proceed(self) -> bool:
        return self.valid

    def messages(self, severity: Severity) -> List[str]:
        issues = self.errors if severity == Severity.ERROR else self.warnings
        return [i.message for i in issues]

    def all_issues(self) -> List[ValidationIssue]:
        return self.errors + self.warnings


# ================================================================
# Rule helpers (pure; return a message or None)
# ================================================================

def _num(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _in_range(value: Any, bounds) -> bool:
    num = _num(value)
    return num is not None and bounds[0] <= num <= bounds[1]


def check_course_rating(rating: Any) -> Optional[str]:
    if rating is None or _in_range(rating, RATING_RANGE):
        return None
    return f"Course rating {rating} outside expected range ({RATING_RANGE[0]}-{RATING_RANGE[1]})"


def check_slope_rating(slope: Any) -> Optional[str]:
    if slope is None or _in_range(slope, SLOPE_RANGE):
        return None
    return f"Slope rating {slope} outside USGA range ({SLOPE_RANGE[0]}-{SLOPE_RANGE[1]})"


def check_length(values: List[Any], name: str) -> Optional[str]:
    if len(values) != HOLES:
        return f"{name} must contain exactly {HOLES} values (got {len(values)})"
    return None


def check_values_in_range(values: Iterable[Any], bounds, name: str) -> Optional[str]:
    """One message for the whole sequence, not one per value."""
    if all(_in_range(v, bounds) for v in values):
        return None
    return f"{name} must be {bounds[0]}-{bounds[1]}"


def check_handicaps(values: List[Any]) -> Optional[str]:
    if len(values) != HOLES:
        return f"handicap_values must contain exactly {HOLES} values (got {len(values)})"
    ints = [_num(v) for v in values]
    if any(v is None or not 1 <= v <= HOLES for v in ints) or len(set(ints)) != HOLES:
        return "handicap values must be unique integers 1-18"
    return None


def check_total_par(total: Any) -> Optional[str]:
    if total is None or _in_range(total, TOTAL_PAR_RANGE):
        return None
    return f"Total par {total} outside expected range ({TOTAL_PAR_RANGE[0]}-{TOTAL_PAR_RANGE[1]})"


class GolfDataValidator:
    """Validates StructuredCourseData under a fixed policy."""

    def __init__(self, policy: ValidationPolicy = ValidationPolicy.LENIENT):
        self.policy = policy

    @property
    def _range_severity(self) -> Severity:
        return Severity.ERROR if self.policy == ValidationPolicy.STRICT else Severity.WARNING

    def validate(self, data: StructuredCourseData) -> ValidationResult:
        result = ValidationResult()

        def report(severity: Severity, field: str, message: Optional[str], value: Any = None):
            if message is None:
                return
            issue = ValidationIssue(field=field, message=message, value=value)
            (result.errors if severity == Severity.ERROR else result.warnings).append(issue)

        if not (data.course_name or "").strip():
            report(Severity.ERROR, "course_name", "Course name is required")

        report(Severity.WARNING, "course_rating",
               check_course_rating(data.course_rating), data.course_rating)
        report(Severity.WARNING, "slope_rating",
               check_slope_rating(data.slope_rating), data.slope_rating)

        if data.par_values:
            report(self._range_severity, "par_values",
                   check_length(data.par_values, "par_values"), len(data.par_values))
            report(self._range_severity, "par_values",
                   check_values_in_range(data.par_values, PAR_RANGE, "par values"))

        if data.handicap_values:
            report(self._range_severity, "handicap_values",
                   check_handicaps(data.handicap_values))

        report(Severity.WARNING, "total_par", check_total_par(data.total_par), data.total_par)

        for player, scores in (data.player_scores or {}).items():
            known = [s for s in scores.hole_scores if s is not None]
            report(self._range_severity, f"player_scores.{player}",
                   check_values_in_range(known, HOLE_SCORE_RANGE, f"{player} hole scores"))

        return result

    def validate_enhanced_payload(self, payload: Dict[str, Any]) -> List[str]:
        """Check every tee box and player row of a raw enhanced payload.

        Returns messages in the "Tee box N: ..." / "Player N: ..." form
        stored alongside the payload as validation_errors.
        """
        messages: List[str] = []

        for index, tee in enumerate(payload.get("tee_boxes") or []):
            if not isinstance(tee, dict):
                continue
            prefix = f"Tee box {index}"
            pars = tee.get("par_values")
            if pars is not None:
                msg = check_length(pars, "par_values") if isinstance(pars, list) else "par_values must be a list"
                msg = msg or check_values_in_range(pars, PAR_RANGE, "par values")
                if msg:
                    messages.append(f"{prefix}: {msg}")
            handicaps = tee.get("handicap_values")
            if handicaps is not None:
                msg = check_handicaps(handicaps) if isinstance(handicaps, list) else "handicap_values must be a list"
                if msg:
                    messages.append(f"{prefix}: {msg}")
            yardages = tee.get("yardages")
            if yardages is not None:
                msg = check_length(yardages, "yardages") if isinstance(yardages, list) else "yardages must be a list"
                msg = msg or check_values_in_range(yardages, YARDAGE_RANGE, "yardages")
                if msg:
                    messages.append(f"{prefix}: {msg}")
            for key, check in (("course_rating", check_course_rating), ("slope_rating", check_slope_rating)):
                msg = check(tee.get(key))
                if msg:
                    messages.append(f"{prefix}: {msg}")

        for index, player in enumerate(payload.get("player_scores") or []):
            if not isinstance(player, dict):
                continue
            holes = player.get("hole_scores")
            if not isinstance(holes, list):
                continue
            msg = check_length(holes, "hole_scores") or check_values_in_range(
                holes, HOLE_SCORE_RANGE, "hole scores"
            )
            if msg:
                messages.append(f"Player {index}: {msg}")

        return messages
