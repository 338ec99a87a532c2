from datetime import date, datetime
from pydantic import Field
from typing import List, Optional

from .base import BaseGolfModel


class RoundScore(BaseGolfModel):
    """One player's score on a single hole. Unique on (round_id, player_name, hole_number)."""
    id: Optional[str] = None
    round_id: Optional[str] = None
    player_name: str = Field(..., min_length=1)
    hole_number: int = Field(..., ge=1, le=18)
    score: int = Field(..., ge=1)
    par: int = Field(..., ge=1)
    handicap: int = Field(..., ge=1)

    def to_par(self) -> int:
        """Calculate score relative to par (+2, -1, etc.)."""
        return self.score - self.par

    def get_score_type(self) -> str:
        """Get the name for this score (eagle, birdie, par, bogey, etc.)."""
        relative = self.to_par()
        score_names = {
            -2: "eagle",
            -1: "birdie",
            0: "par",
            1: "bogey",
            2: "double bogey",
            3: "triple bogey",
            4: "quadruple bogey",
        }
        if relative <= -3:
            return "albatross"
        if relative >= 5:
            return "quintuple+"
        return score_names[relative]


class Round(BaseGolfModel):
    """A round materialized from a scan for the primary (first listed) player."""
    id: Optional[str] = None
    user_id: str
    course_id: str
    scan_id: Optional[str] = None
    played_at: date
    total_score: Optional[int] = None
    front_nine_score: Optional[int] = None
    back_nine_score: Optional[int] = None
    weather: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    scores: List[RoundScore] = Field(default_factory=list)

    def players(self) -> List[str]:
        """Distinct player names in first-seen order."""
        seen: List[str] = []
        for s in self.scores:
            if s.player_name not in seen:
                seen.append(s.player_name)
        return seen

    def scores_for(self, player_name: str) -> List[RoundScore]:
        return sorted(
            (s for s in self.scores if s.player_name == player_name),
            key=lambda s: s.hole_number,
        )

    def total_to_par(self, player_name: str) -> Optional[int]:
        """Get a player's total score relative to the par of the holes they played."""
        player_scores = self.scores_for(player_name)
        if not player_scores:
            return None
        return sum(s.to_par() for s in player_scores)
