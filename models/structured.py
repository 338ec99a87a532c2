from pydantic import Field
from typing import Any, Dict, List, Optional

from .base import BaseGolfModel


class PlayerScore(BaseGolfModel):
    """Hole-by-hole scores for one player plus any totals printed on the card.

    hole_scores is indexed by hole (0 -> hole 1). Unreadable holes are None.
    """
    hole_scores: List[Optional[int]] = Field(default_factory=list)
    front_nine_score: Optional[int] = None
    back_nine_score: Optional[int] = None
    total_score: Optional[int] = None

    def _known(self, scores: List[Optional[int]]) -> List[int]:
        return [s for s in scores if s]

    def total(self) -> Optional[int]:
        """Explicit total, else sum of hole scores."""
        if self.total_score is not None:
            return self.total_score
        known = self._known(self.hole_scores)
        return sum(known) if known else None

    def front_nine(self) -> Optional[int]:
        if self.front_nine_score is not None:
            return self.front_nine_score
        known = self._known(self.hole_scores[:9])
        return sum(known) if known else None

    def back_nine(self) -> Optional[int]:
        if self.back_nine_score is not None:
            return self.back_nine_score
        if len(self.hole_scores) < 18:
            return None
        known = self._known(self.hole_scores[9:18])
        return sum(known) if known else None

    def score_for_hole(self, number: int) -> Optional[int]:
        idx = number - 1
        if 0 <= idx < len(self.hole_scores):
            return self.hole_scores[idx] or None
        return None


class TeeBox(BaseGolfModel):
    """One tee configuration read from an enhanced extraction."""
    tee_name: Optional[str] = None
    tee_color: Optional[str] = None
    gender: Optional[str] = None
    par_values: List[int] = Field(default_factory=list)
    handicap_values: List[int] = Field(default_factory=list)
    yardages: List[int] = Field(default_factory=list)
    course_rating: Optional[float] = None
    slope_rating: Optional[int] = None
    total_par: Optional[int] = None
    total_yardage: Optional[int] = None
    confidence: Optional[float] = None


class StructuredCourseData(BaseGolfModel):
    """Parsed scorecard record.

    Plausibility ranges (par 3-6, rating 67-77, slope 55-155, ...) are
    deliberately not enforced here; the validator reports them so that
    implausible reads are still scored and stored.
    """
    course_name: Optional[str] = None
    location: Optional[str] = None
    tee_name: Optional[str] = None
    course_rating: Optional[float] = None
    slope_rating: Optional[int] = None
    par_values: Optional[List[int]] = None
    handicap_values: Optional[List[int]] = None
    yardages: Optional[List[int]] = None
    total_par: Optional[int] = None
    total_yardage: Optional[int] = None
    players: Optional[List[str]] = None
    player_scores: Optional[Dict[str, PlayerScore]] = None
    tee_boxes: Optional[List[TeeBox]] = None
    date: Optional[str] = None
    weather: Optional[str] = None
    notes: Optional[str] = None
    confidence_score: Optional[float] = None

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)

    def present_fields(self) -> Dict[str, Any]:
        """Fields holding a non-empty value (empty strings and lists count as absent)."""
        return {
            k: v for k, v in self.model_dump(exclude_none=True).items()
            if v not in ("", [], {})
        }

    def merged_with(self, fallback: "StructuredCourseData") -> "StructuredCourseData":
        """Copy of self with absent fields filled from fallback."""
        merged = fallback.present_fields()
        merged.update(self.present_fields())
        return StructuredCourseData.model_validate(merged)

    def primary_player(self) -> Optional[str]:
        return self.players[0] if self.players else None

    def scores_for(self, player: str) -> PlayerScore:
        if self.player_scores and player in self.player_scores:
            return self.player_scores[player]
        return PlayerScore()
