"""Ordered per-field extractor tables.

Each field maps to a list of extractor functions over the raw OCR payload.
Extractors return a value or None; the first non-empty value wins. The
tables are plain data so the precedence order can be read and tested
directly.
"""

from typing import Any, Callable, Dict, List, Mapping, Optional

Extractor = Callable[[Mapping[str, Any]], Any]


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict, tuple)):
        return bool(value)
    return True


def path(*keys) -> Extractor:
    """Extractor walking nested dict keys / list indices."""
    def extract(raw: Mapping[str, Any]) -> Any:
        node: Any = raw
        for key in keys:
            if isinstance(key, int):
                if not isinstance(node, list) or len(node) <= key:
                    return None
                node = node[key]
            else:
                if not isinstance(node, Mapping):
                    return None
                node = node.get(key)
            if node is None:
                return None
        return node
    extract.__name__ = "path_" + "_".join(str(k) for k in keys)
    return extract


def first_present(raw: Mapping[str, Any], extractors: List[Extractor]) -> Any:
    for extractor in extractors:
        value = extractor(raw)
        if is_present(value):
            return value
    return None


# ================================================================
# Composite extractors
# ================================================================

def _location_text(location: Any) -> Optional[str]:
    if isinstance(location, str):
        return location.strip() or None
    if isinstance(location, Mapping):
        parts = [location.get(k) for k in ("city", "state", "country")]
        return ", ".join(p for p in parts if p) or None
    return None


def enhanced_location(raw: Mapping[str, Any]) -> Optional[str]:
    return _location_text(path("structured_data", "course_information", "location")(raw))


def flat_location(source: str) -> Extractor:
    def extract(raw: Mapping[str, Any]) -> Optional[str]:
        section = raw.get(source) if source else raw
        if not isinstance(section, Mapping):
            return None
        return _location_text(section.get("course_location")) or _location_text(section.get("location"))
    extract.__name__ = f"flat_location_{source or 'top'}"
    return extract


def holes_column(source: str, key: str) -> Extractor:
    """Column of a holes grid, e.g. holes[].par -> [4, 4, 3, ...]."""
    def extract(raw: Mapping[str, Any]) -> Optional[List[Any]]:
        section = raw.get(source) if source else raw
        holes = section.get("holes") if isinstance(section, Mapping) else None
        if not isinstance(holes, list) or not holes:
            return None
        return [h.get(key) if isinstance(h, Mapping) else None for h in holes]
    extract.__name__ = f"holes_{key}_{source or 'top'}"
    return extract


def enhanced_players(raw: Mapping[str, Any]) -> Optional[List[str]]:
    rows = path("structured_data", "player_scores")(raw)
    if not isinstance(rows, list):
        return None
    return [r["player_name"] for r in rows if isinstance(r, Mapping) and r.get("player_name")]


def enhanced_player_scores(raw: Mapping[str, Any]) -> Optional[Dict[str, Dict[str, Any]]]:
    rows = path("structured_data", "player_scores")(raw)
    if not isinstance(rows, list):
        return None
    scores = {}
    for row in rows:
        if not isinstance(row, Mapping) or not row.get("player_name"):
            continue
        scores[row["player_name"]] = {
            "hole_scores": row.get("hole_scores") or [],
            "front_nine_score": row.get("front_nine_total"),
            "back_nine_score": row.get("back_nine_total"),
            "total_score": row.get("total_score"),
        }
    return scores or None


def keyed_player_scores(source: str) -> Extractor:
    """player_scores as {name: {...}} or {name: [..]}, or a 'scores' {name: [..]} map."""
    def extract(raw: Mapping[str, Any]) -> Optional[Dict[str, Dict[str, Any]]]:
        section = raw.get(source) if source else raw
        if not isinstance(section, Mapping):
            return None
        for key in ("player_scores", "scores"):
            value = section.get(key)
            if not isinstance(value, Mapping) or not value:
                continue
            scores = {}
            for name, entry in value.items():
                if isinstance(entry, list):
                    scores[name] = {"hole_scores": entry}
                elif isinstance(entry, Mapping):
                    scores[name] = dict(entry)
            if scores:
                return scores
        return None
    extract.__name__ = f"keyed_player_scores_{source or 'top'}"
    return extract


def grid_player_scores(source: str) -> Extractor:
    """Scores from players[] + holes[].scores[i]."""
    def extract(raw: Mapping[str, Any]) -> Optional[Dict[str, Dict[str, Any]]]:
        section = raw.get(source) if source else raw
        if not isinstance(section, Mapping):
            return None
        players = section.get("players")
        holes = section.get("holes")
        if not isinstance(players, list) or not isinstance(holes, list) or not holes:
            return None
        scores = {}
        for index, name in enumerate(players):
            row = []
            for hole in holes:
                cell = hole.get("scores") if isinstance(hole, Mapping) else None
                if isinstance(cell, list) and index < len(cell):
                    row.append(cell[index])
                elif isinstance(cell, Mapping):
                    row.append(cell.get(name))
                else:
                    row.append(None)
            scores[name] = {"hole_scores": row}
        return scores or None
    extract.__name__ = f"grid_player_scores_{source or 'top'}"
    return extract


# ================================================================
# Tables
# ================================================================

_SD = "structured_data"
_GP = "golf_course_properties"
_TEE = (_SD, "tee_boxes", 0)

ENHANCED_EXTRACTORS: Dict[str, List[Extractor]] = {
    "course_name": [path(_SD, "course_information", "course_name")],
    "location": [enhanced_location],
    "tee_name": [path(*_TEE, "tee_name"), path(*_TEE, "tee_color")],
    "course_rating": [path(*_TEE, "course_rating")],
    "slope_rating": [path(*_TEE, "slope_rating")],
    "par_values": [path(*_TEE, "par_values")],
    "handicap_values": [path(*_TEE, "handicap_values")],
    "yardages": [path(*_TEE, "yardages")],
    "total_par": [path(*_TEE, "total_par")],
    "total_yardage": [path(*_TEE, "total_yardage")],
    "players": [enhanced_players],
    "player_scores": [enhanced_player_scores],
    "tee_boxes": [path(_SD, "tee_boxes")],
    "date": [path(_SD, "round_metadata", "date_played")],
    "weather": [path(_SD, "round_metadata", "weather_conditions")],
    "notes": [path(_SD, "round_metadata", "notes")],
    "confidence_score": [path(_SD, "overall_confidence")],
}

# golf_course_properties, then flat structured_data, then top-level keys
FLAT_EXTRACTORS: Dict[str, List[Extractor]] = {
    "course_name": [path(_GP, "course_name"), path(_SD, "course_name"), path("course_name")],
    "location": [flat_location(_GP), flat_location(_SD), flat_location("")],
    "tee_name": [path(_GP, "tee_name"), path(_SD, "tee_name"), path("tee_name")],
    "course_rating": [
        path(_GP, "course_rating"), path(_SD, "course_rating"), path(_SD, "rating"),
        path("course_rating"), path("rating"),
    ],
    "slope_rating": [
        path(_GP, "slope_rating"), path(_SD, "slope_rating"), path(_SD, "slope"),
        path("slope_rating"), path("slope"),
    ],
    "par_values": [
        path(_GP, "par_values"), path(_SD, "par_values"), holes_column(_SD, "par"),
        path("par_values"), holes_column("", "par"),
    ],
    "handicap_values": [
        path(_GP, "handicap_values"), path(_SD, "handicap_values"), holes_column(_SD, "handicap"),
        path("handicap_values"), holes_column("", "handicap"),
    ],
    "yardages": [
        path(_GP, "yardage_values"), path(_SD, "yardages"), holes_column(_SD, "yardage"),
        path("yardages"),
    ],
    "total_par": [
        path(_GP, "total_par"), path(_SD, "total_par"), path(_SD, "totals", "par"), path("total_par"),
    ],
    "total_yardage": [
        path(_GP, "total_yardage"), path(_SD, "total_yardage"), path(_SD, "totals", "yardage"),
        path("total_yardage"),
    ],
    "players": [path(_GP, "players"), path(_SD, "players"), path("players")],
    "player_scores": [
        keyed_player_scores(_GP), keyed_player_scores(_SD), grid_player_scores(_SD),
        keyed_player_scores(""), grid_player_scores(""),
    ],
    "date": [path(_GP, "date_played"), path(_SD, "date"), path("date"), path("date_played")],
    "weather": [path(_GP, "weather_conditions"), path(_SD, "weather"), path("weather")],
    "notes": [path(_GP, "notes"), path(_SD, "additional_notes"), path("notes"), path("additional_notes")],
    "confidence_score": [path(_GP, "confidence_score"), path("confidence_score")],
}
