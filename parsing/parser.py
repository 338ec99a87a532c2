import logging
from typing import Any, Dict, List, Mapping, Optional, Union

from models import OcrResult, PlayerScore, StructuredCourseData, TeeBox
from parsing.extractors import (
    ENHANCED_EXTRACTORS,
    FLAT_EXTRACTORS,
    Extractor,
    first_present,
)
from quality.scoring import completeness_score


logger = logging.getLogger(__name__)

RawPayload = Union[OcrResult, Mapping[str, Any]]


# ================================================================
# Coercion helpers
# ================================================================

def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    num = _to_float(value)
    return int(round(num)) if num is not None else None


def _int_list(values: Any) -> Optional[List[int]]:
    """Keeps index alignment; unreadable cells become 0."""
    if not isinstance(values, list):
        return None
    return [_to_int(v) or 0 for v in values]


def _score_list(values: Any) -> List[Optional[int]]:
    """Hole scores; unreadable or zero cells become None."""
    if not isinstance(values, list):
        return []
    return [_to_int(v) or None for v in values]


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _player_scores(value: Any) -> Optional[Dict[str, PlayerScore]]:
    if not isinstance(value, Mapping):
        return None
    scores = {}
    for name, entry in value.items():
        if not isinstance(entry, Mapping):
            continue
        scores[str(name)] = PlayerScore(
            hole_scores=_score_list(entry.get("hole_scores")),
            front_nine_score=_to_int(entry.get("front_nine_score")),
            back_nine_score=_to_int(entry.get("back_nine_score")),
            total_score=_to_int(entry.get("total_score")),
        )
    return scores or None


def _tee_boxes(value: Any) -> Optional[List[TeeBox]]:
    if not isinstance(value, list):
        return None
    tees = []
    for tee in value:
        if not isinstance(tee, Mapping):
            continue
        tees.append(TeeBox(
            tee_name=_text(tee.get("tee_name")),
            tee_color=_text(tee.get("tee_color")),
            gender=_text(tee.get("gender")),
            par_values=_int_list(tee.get("par_values")) or [],
            handicap_values=_int_list(tee.get("handicap_values")) or [],
            yardages=_int_list(tee.get("yardages")) or [],
            course_rating=_to_float(tee.get("course_rating")),
            slope_rating=_to_int(tee.get("slope_rating")),
            total_par=_to_int(tee.get("total_par")),
            total_yardage=_to_int(tee.get("total_yardage")),
            confidence=_to_float(tee.get("confidence")),
        ))
    return tees or None


def _confidence(value: Any) -> Optional[float]:
    num = _to_float(value)
    if num is None:
        return None
    if num > 1.0:
        num /= 100.0
    return max(0.0, min(num, 1.0))


COERCERS = {
    "course_name": _text,
    "location": _text,
    "tee_name": _text,
    "course_rating": _to_float,
    "slope_rating": _to_int,
    "par_values": _int_list,
    "handicap_values": _int_list,
    "yardages": _int_list,
    "total_par": _to_int,
    "total_yardage": _to_int,
    "players": lambda v: [str(p) for p in v if p] if isinstance(v, list) else None,
    "player_scores": _player_scores,
    "tee_boxes": _tee_boxes,
    "date": _text,
    "weather": _text,
    "notes": _text,
    "confidence_score": _confidence,
}


class ScorecardParser:
    """Turns a raw OCR payload into StructuredCourseData.

    Two sources are read independently: the nested enhanced schema and the
    flat golf properties. When both yield data the more complete one is
    the base and the other fills its gaps; ties go to the enhanced data.
    No defaults are invented here.
    """

    def __init__(
        self,
        enhanced_extractors: Optional[Dict[str, List[Extractor]]] = None,
        flat_extractors: Optional[Dict[str, List[Extractor]]] = None,
    ):
        self.enhanced_extractors = enhanced_extractors or ENHANCED_EXTRACTORS
        self.flat_extractors = flat_extractors or FLAT_EXTRACTORS

    @staticmethod
    def _as_mapping(raw: RawPayload) -> Mapping[str, Any]:
        if isinstance(raw, OcrResult):
            return raw.model_dump(mode="json")
        return raw or {}

    def _extract(self, raw: Mapping[str, Any], table: Dict[str, List[Extractor]]) -> StructuredCourseData:
        values: Dict[str, Any] = {}
        for field, extractors in table.items():
            value = first_present(raw, extractors)
            if value is None:
                continue
            coerced = COERCERS[field](value)
            if coerced is not None:
                values[field] = coerced

        if "players" not in values and values.get("player_scores"):
            values["players"] = list(values["player_scores"].keys())
        if "total_par" not in values and values.get("par_values") and all(values["par_values"]):
            values["total_par"] = sum(values["par_values"])

        return StructuredCourseData(**values)

    def parse_enhanced(self, raw: RawPayload) -> StructuredCourseData:
        return self._extract(self._as_mapping(raw), self.enhanced_extractors)

    def parse_flat(self, raw: RawPayload) -> StructuredCourseData:
        return self._extract(self._as_mapping(raw), self.flat_extractors)

    def parse(self, raw: RawPayload) -> StructuredCourseData:
        mapping = self._as_mapping(raw)
        return select_best_source(self.parse_enhanced(mapping), self.parse_flat(mapping))


def select_best_source(
    preferred: StructuredCourseData,
    other: StructuredCourseData,
) -> StructuredCourseData:
    """Pick the more complete record as base and fill its gaps from the other.

    ``preferred`` wins ties.
    """
    if preferred.is_empty():
        return other
    if other.is_empty():
        return preferred
    if completeness_score(other) > completeness_score(preferred):
        return other.merged_with(preferred)
    return preferred.merged_with(other)
