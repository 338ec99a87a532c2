"""Shaping provider replies into OcrResult text, words and golf properties.

Flat replies (standard prompt, mock data) and enhanced replies (nested
course_information / tee_boxes / player_scores) each get a text
rendering and a flat ``golf_course_properties`` dict.
"""

import json
from typing import Any, Dict, List, Optional

from models import OcrLine, OcrWord


TEE_NAME_ALIASES = {
    "championship": "Championship",
    "blue": "Blue",
    "white": "White",
    "red": "Red",
    "gold": "Gold",
    "black": "Black",
    "tips": "Tips",
    "pro": "Pro",
    "tournament": "Tournament",
    "mens": "Men's",
    "ladies": "Ladies",
    "senior": "Senior",
}

DEFAULT_SECTION_CONFIDENCE = 0.8


def normalize_tee_name(name: str) -> str:
    key = name.strip().lower()
    return TEE_NAME_ALIASES.get(key, name.strip().title())


def extract_json_object(content: str) -> Optional[Dict[str, Any]]:
    """Pull the outermost {...} out of a model reply. Returns None when absent or unparsable."""
    start = content.find("{")
    end = content.rfind("}")
    if start == -1 or end <= start:
        return None
    try:
        parsed = json.loads(content[start:end + 1])
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) and parsed else None


def words_from_text(text: str, confidence: float = 0.9) -> List[OcrWord]:
    return [
        OcrWord(text=token.strip(".,!?;:"), confidence=confidence, bbox=i * 50)
        for i, token in enumerate(text.split())
    ]


def lines_from_text(text: str, confidence: float = 0.9) -> List[OcrLine]:
    lines = []
    for raw_line in text.strip().splitlines():
        words = words_from_text(raw_line, confidence)
        lines.append(OcrLine(text=raw_line, confidence=confidence, words=words))
    return lines


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


# ================================================================
# Flat data (standard prompt + mock)
# ================================================================

def enhance_flat_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Normalize tee name and fill nine/total par and yardage from a holes grid."""
    enhanced = dict(data)

    if isinstance(enhanced.get("tee_name"), str):
        enhanced["tee_name"] = normalize_tee_name(enhanced["tee_name"])

    holes = enhanced.get("holes")
    if isinstance(holes, list) and holes:
        holes = [dict(h) for h in holes if isinstance(h, dict)]
        front_par = back_par = front_yds = back_yds = 0
        for hole in holes:
            number = _as_int(hole.get("number")) or 0
            hole["front_nine"] = number <= 9
            par = _as_int(hole.get("par")) or 0
            yardage = _as_int(hole.get("yardage")) or 0
            if number <= 9:
                front_par += par
                front_yds += yardage
            else:
                back_par += par
                back_yds += yardage
        enhanced["holes"] = holes

        front = dict(enhanced.get("front_nine") or {})
        back = dict(enhanced.get("back_nine") or {})
        front.setdefault("par", front_par)
        front.setdefault("yardage", front_yds)
        back.setdefault("par", back_par)
        back.setdefault("yardage", back_yds)
        enhanced["front_nine"] = front
        enhanced["back_nine"] = back
        enhanced["totals"] = {
            **(enhanced.get("totals") or {}),
            "par": front_par + back_par,
            "yardage": front_yds + back_yds,
        }
        enhanced["tee_yardages"] = [
            _as_int(h["yardage"]) for h in holes if _as_int(h.get("yardage")) is not None
        ]

    return enhanced


def _holes_column(data: Dict[str, Any], key: str) -> List[int]:
    holes = data.get("holes")
    if not isinstance(holes, list):
        return []
    return [_as_int(h.get(key)) or 0 for h in holes if isinstance(h, dict)]


def _grid_scores(data: Dict[str, Any]) -> Dict[str, List[int]]:
    players = data.get("players")
    holes = data.get("holes")
    if not isinstance(players, list) or not isinstance(holes, list):
        return {}
    scores: Dict[str, List[int]] = {}
    for index, player in enumerate(players):
        row = []
        for hole in holes:
            hole_scores = hole.get("scores") if isinstance(hole, dict) else None
            value = None
            if isinstance(hole_scores, list) and index < len(hole_scores):
                value = _as_int(hole_scores[index])
            row.append(value or 0)
        scores[player] = row
    return scores


def flat_properties(data: Dict[str, Any]) -> Dict[str, Any]:
    """golf_course_properties for a flat or grid-shaped extraction."""
    totals = data.get("totals") or {}
    front = data.get("front_nine") or {}
    back = data.get("back_nine") or {}
    extra = data.get("additional_info") or {}
    props = {
        "course_name": data.get("course_name"),
        "course_location": data.get("course_location"),
        "established_year": extra.get("established"),
        "designer": extra.get("designer"),
        "tee_name": data.get("tee_name"),
        "tee_colors": data.get("tee_colors") or [],
        "tee_yardages": data.get("tee_yardages") or [],
        "course_rating": data.get("course_rating"),
        "slope_rating": data.get("slope_rating"),
        "total_par": data.get("total_par") or totals.get("par"),
        "total_yardage": data.get("total_yardage") or totals.get("yardage"),
        "par_values": data.get("par_values") or _holes_column(data, "par"),
        "handicap_values": data.get("handicap_values") or _holes_column(data, "handicap"),
        "yardage_values": data.get("yardages") or _holes_column(data, "yardage"),
        "front_nine_par": front.get("par"),
        "back_nine_par": back.get("par"),
        "date_played": data.get("date"),
        "players": data.get("players") or [],
        "weather_conditions": data.get("weather") or extra.get("weather"),
        "notes": data.get("additional_notes"),
    }
    if isinstance(data.get("player_scores"), dict):
        props["player_scores"] = data["player_scores"]
    else:
        props["scores"] = _grid_scores(data)
    if data.get("confidence_score") is not None:
        props["confidence_score"] = data["confidence_score"]
    return props


def format_flat_text(data: Dict[str, Any]) -> str:
    lines: List[str] = []
    for key in ("course_name", "course_location"):
        if data.get(key):
            lines.append(str(data[key]))
    if data.get("tee_name"):
        lines.append(f"{data['tee_name']} Tees")
    if data.get("date"):
        lines.append(f"Date: {data['date']}")

    rating_parts = []
    if data.get("course_rating"):
        rating_parts.append(f"Rating: {data['course_rating']}")
    if data.get("slope_rating"):
        rating_parts.append(f"Slope: {data['slope_rating']}")
    if rating_parts:
        lines.append("  ".join(rating_parts))

    par_values = data.get("par_values") or _holes_column(data, "par")
    if par_values:
        lines.append("Par: " + " ".join(str(p) for p in par_values))
    handicaps = data.get("handicap_values") or _holes_column(data, "handicap")
    if handicaps:
        lines.append("Hdcp: " + " ".join(str(h) for h in handicaps))

    player_scores = data.get("player_scores")
    if isinstance(player_scores, dict):
        for name, scores in player_scores.items():
            holes = scores.get("hole_scores") if isinstance(scores, dict) else None
            if holes:
                lines.append(f"{name}: " + " ".join(str(s) for s in holes))
    else:
        for name, holes in _grid_scores(data).items():
            lines.append(f"{name}: " + " ".join(str(s) for s in holes))

    return "\n".join(lines)


# ================================================================
# Enhanced data
# ================================================================

def process_tee_boxes(tee_boxes: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Normalize tee names and recompute totals and nine splits."""
    processed = []
    for tee in tee_boxes:
        tee = dict(tee)
        if isinstance(tee.get("tee_name"), str):
            tee["tee_name"] = normalize_tee_name(tee["tee_name"])
        pars = tee.get("par_values")
        if isinstance(pars, list) and pars:
            tee["total_par"] = sum(_as_int(p) or 0 for p in pars)
            if len(pars) == 18:
                tee["front_nine_par"] = sum(_as_int(p) or 0 for p in pars[:9])
                tee["back_nine_par"] = sum(_as_int(p) or 0 for p in pars[9:])
        yardages = tee.get("yardages")
        if isinstance(yardages, list) and yardages:
            tee["total_yardage"] = sum(_as_int(y) or 0 for y in yardages)
            if len(yardages) == 18:
                tee["front_nine_yardage"] = sum(_as_int(y) or 0 for y in yardages[:9])
                tee["back_nine_yardage"] = sum(_as_int(y) or 0 for y in yardages[9:])
        processed.append(tee)
    return processed


def process_player_scores(players: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Recompute nine and total scores when a full 18-hole row is present."""
    processed = []
    for player in players:
        player = dict(player)
        holes = player.get("hole_scores")
        if isinstance(holes, list) and len(holes) == 18:
            player["front_nine_total"] = sum(_as_int(s) or 0 for s in holes[:9])
            player["back_nine_total"] = sum(_as_int(s) or 0 for s in holes[9:])
            player["total_score"] = player["front_nine_total"] + player["back_nine_total"]
        processed.append(player)
    return processed


def section_confidence(data: Dict[str, Any]) -> float:
    """Mean of course/tee/player section confidences (0.8 when none are given)."""
    values: List[float] = []
    course_info = data.get("course_information")
    if isinstance(course_info, dict) and course_info.get("confidence") is not None:
        values.append(float(course_info["confidence"]))
    for key in ("tee_boxes", "player_scores"):
        for section in data.get(key) or []:
            if isinstance(section, dict) and section.get("confidence") is not None:
                values.append(float(section["confidence"]))
    return sum(values) / len(values) if values else DEFAULT_SECTION_CONFIDENCE


def _location_line(location: Any) -> Optional[str]:
    if isinstance(location, str):
        return location or None
    if isinstance(location, dict):
        parts = [location.get(k) for k in ("city", "state", "country")]
        joined = ", ".join(p for p in parts if p)
        return joined or None
    return None


def enhanced_properties(data: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten an enhanced payload, using the first tee box as primary."""
    props: Dict[str, Any] = {}

    course_info = data.get("course_information") or {}
    if course_info:
        props["course_name"] = course_info.get("course_name")
        props["architect"] = course_info.get("architect")
        props["established_year"] = course_info.get("established_year")
        if course_info.get("location"):
            props["location"] = course_info["location"]
            props["course_location"] = _location_line(course_info["location"])

    tee_boxes = data.get("tee_boxes") or []
    if tee_boxes:
        primary = tee_boxes[0]
        props["tee_name"] = primary.get("tee_name")
        props["course_rating"] = primary.get("course_rating")
        props["slope_rating"] = primary.get("slope_rating")
        props["total_par"] = primary.get("total_par")
        props["total_yardage"] = primary.get("total_yardage")
        props["par_values"] = primary.get("par_values") or []
        props["handicap_values"] = primary.get("handicap_values") or []
        props["yardage_values"] = primary.get("yardages") or []
    props["tee_boxes"] = tee_boxes

    players = data.get("player_scores")
    if players:
        props["players"] = [p.get("player_name") for p in players if p.get("player_name")]
        props["player_scores"] = players

    metadata = data.get("round_metadata") or {}
    if metadata:
        props["date_played"] = metadata.get("date_played")
        props["weather_conditions"] = metadata.get("weather_conditions")
        props["tournament_name"] = metadata.get("tournament_name")
        props["notes"] = metadata.get("notes")

    props["overall_confidence"] = data.get("overall_confidence", DEFAULT_SECTION_CONFIDENCE)
    props["validation_errors"] = data.get("validation_errors", [])
    props["enhanced_extraction"] = True
    return props


def format_enhanced_text(data: Dict[str, Any]) -> str:
    lines: List[str] = []

    course_info = data.get("course_information") or {}
    if course_info.get("course_name"):
        lines.append(course_info["course_name"])
    location = _location_line(course_info.get("location"))
    if location:
        lines.append(location)
    if course_info.get("architect"):
        lines.append(f"Architect: {course_info['architect']}")
    if course_info.get("established_year"):
        lines.append(f"Established: {course_info['established_year']}")

    for tee in data.get("tee_boxes") or []:
        lines.append("")
        lines.append(f"{tee.get('tee_name') or 'Unknown'} Tees")
        rating_parts = []
        if tee.get("course_rating"):
            rating_parts.append(f"Rating: {tee['course_rating']}")
        if tee.get("slope_rating"):
            rating_parts.append(f"Slope: {tee['slope_rating']}")
        if rating_parts:
            lines.append("  ".join(rating_parts))
        total_parts = []
        if tee.get("total_par"):
            total_parts.append(f"Par: {tee['total_par']}")
        if tee.get("total_yardage"):
            total_parts.append(f"Yardage: {tee['total_yardage']}")
        if total_parts:
            lines.append("  ".join(total_parts))

    players = data.get("player_scores") or []
    if players:
        lines.append("")
        lines.append("Player Scores:")
        for player in players:
            if player.get("player_name") and player.get("total_score"):
                lines.append(f"{player['player_name']}: {player['total_score']}")

    return "\n".join(lines)

