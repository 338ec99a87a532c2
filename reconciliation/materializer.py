import logging
from datetime import date, datetime
from typing import List, Optional, Tuple

from models import Course, Round, RoundScore, StructuredCourseData
from reconciliation.stores import RoundStore


logger = logging.getLogger(__name__)

HOLES = 18
DATE_FORMATS = ["%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y", "%d.%m.%Y", "%B %d, %Y", "%b %d, %Y"]


def parse_played_at(value: Optional[str], default: Optional[date] = None) -> date:
    """Date printed on the card, or ``default`` (today) when absent or unreadable."""
    fallback = default or date.today()
    if not value:
        return fallback
    text = value.strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    logger.debug("Unrecognized play date %r, using %s", value, fallback)
    return fallback


def build_round_notes(data: StructuredCourseData) -> Optional[str]:
    """'Played with: B, C. Weather: ... . <notes>' from whatever is present."""
    parts = []
    others = (data.players or [])[1:]
    if others:
        parts.append("Played with: " + ", ".join(others))
    if data.weather:
        parts.append(f"Weather: {data.weather}")
    if data.notes:
        parts.append(data.notes)
    return ". ".join(parts) or None


def build_scores(course: Course, data: StructuredCourseData) -> List[RoundScore]:
    """One RoundScore per (player, hole) where a score was read.

    Par and handicap come from the course at that hole, with the course's
    fallbacks when its arrays are short.
    """
    scores: List[RoundScore] = []
    for player in data.players or []:
        player_scores = data.scores_for(player)
        for number in range(1, HOLES + 1):
            strokes = player_scores.score_for_hole(number)
            if not strokes:
                continue
            hole = course.get_hole(number)
            scores.append(RoundScore(
                player_name=player,
                hole_number=number,
                score=strokes,
                par=hole.par,
                handicap=hole.handicap,
            ))
    return scores


class RoundMaterializer:
    """Turns a resolved course plus parsed round data into persisted rows."""

    def __init__(self, store: RoundStore):
        self.store = store

    def build(
        self,
        course: Course,
        data: StructuredCourseData,
        *,
        user_id: str,
        scan_id: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Tuple[Round, List[RoundScore]]:
        primary = data.scores_for(data.primary_player())
        round_ = Round(
            user_id=user_id,
            course_id=course.id,
            scan_id=scan_id,
            played_at=parse_played_at(data.date, today),
            total_score=primary.total(),
            front_nine_score=primary.front_nine(),
            back_nine_score=primary.back_nine(),
            weather=data.weather,
            notes=build_round_notes(data),
        )
        return round_, build_scores(course, data)

    async def materialize(
        self,
        course: Course,
        data: StructuredCourseData,
        *,
        user_id: str,
        scan_id: Optional[str] = None,
        errors: Optional[List[str]] = None,
    ) -> Tuple[Optional[Round], int]:
        """Create the round and its scores atomically.

        Returns (round, scores_created). On failure appends a message to
        ``errors`` and returns (None, 0); the store guarantees nothing was
        left behind.
        """
        errors = errors if errors is not None else []
        if not data.players:
            errors.append("No players found")
            return None, 0

        round_, scores = self.build(course, data, user_id=user_id, scan_id=scan_id)
        try:
            saved = await self.store.create_round_with_scores(round_, scores)
        except Exception as e:
            logger.exception(
                "Round creation failed for scan %s on course %s", scan_id, course.name
            )
            errors.append(f"Failed to create round: {e}")
            return None, 0

        logger.info(
            "Created round %s with %d scores for scan %s", saved.id, len(scores), scan_id
        )
        return saved, len(scores)
