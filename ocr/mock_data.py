"""Deterministic scorecard used by the mock provider and as the fallback result."""

from typing import Any, Dict, List

from models import OcrLine, OcrResult, OcrWord
from ocr.formatting import enhance_flat_data, flat_properties


MOCK_TEXT = """PEBBLE BEACH GOLF LINKS
Pebble Beach, CA 93953
Championship Tees
Date: 07/24/2024
Player 1: John Doe
Player 2: Jane Smith
Hole  Par  Hdcp  Yds  P1  P2
1     4    10    381  4   5
2     4    16    502  5   4
3     4    4     390  3   4
4     4    2     327  4   5
5     3    14    188  3   2
6     5    12    513  6   5
7     3    8     106  4   3
8     4    18    418  4   4
9     4    6     464  5   4
OUT   35         3289 38  36
10    4    11    446  4   4
11    4    15    384  5   5
12    3    17    202  3   3
13    4    1     399  4   5
14    5    3     573  5   6
15    4    13    397  4   4
16    4    9     402  3   4
17    3    7     178  3   2
18    4    5     543  4   4
IN    35         3524 35  37
TOTAL 70         6813 73  73
Slope: 113  Rating: 72.1
Designed by: Jack Nicklaus & Robert Trent Jones Sr.
Established: 1919"""

# (number, par, handicap, yardage, [John Doe, Jane Smith])
_HOLES = [
    (1, 4, 10, 381, [4, 5]),
    (2, 4, 16, 502, [5, 4]),
    (3, 4, 4, 390, [3, 4]),
    (4, 4, 2, 327, [4, 5]),
    (5, 3, 14, 188, [3, 2]),
    (6, 5, 12, 513, [6, 5]),
    (7, 3, 8, 106, [4, 3]),
    (8, 4, 18, 418, [4, 4]),
    (9, 4, 6, 464, [5, 4]),
    (10, 4, 11, 446, [4, 4]),
    (11, 4, 15, 384, [5, 5]),
    (12, 3, 17, 202, [3, 3]),
    (13, 4, 1, 399, [4, 5]),
    (14, 5, 3, 573, [5, 6]),
    (15, 4, 13, 397, [4, 4]),
    (16, 4, 9, 402, [3, 4]),
    (17, 3, 7, 178, [3, 2]),
    (18, 4, 5, 543, [4, 4]),
]


def mock_structured_data() -> Dict[str, Any]:
    holes: List[Dict[str, Any]] = [
        {"number": n, "par": par, "handicap": hcp, "yardage": yds, "scores": list(scores)}
        for n, par, hcp, yds, scores in _HOLES
    ]
    return {
        "course_name": "Pebble Beach Golf Links",
        "course_location": "Pebble Beach, CA 93953",
        "date": "2024-07-24",
        "tee_name": "championship",
        "tee_colors": ["Black"],
        "course_rating": 72.1,
        "slope_rating": 113,
        "total_par": 70,
        "total_yardage": 6813,
        "players": ["John Doe", "Jane Smith"],
        "holes": holes,
        "front_nine": {"par": 35, "yardage": 3289, "scores": [38, 36]},
        "back_nine": {"par": 35, "yardage": 3524, "scores": [35, 37]},
        "additional_info": {
            "designer": "Jack Nicklaus & Robert Trent Jones Sr.",
            "established": "1919",
            "scorecard_type": "resort",
        },
    }


def build_mock_result(provider: str = "mock", confidence: float = 0.95) -> OcrResult:
    """Mock scorecard result. Confidence is reported on a 0-100 scale like real providers."""
    structured = enhance_flat_data(mock_structured_data())
    words = [
        OcrWord(text="PEBBLE", confidence=0.95, bbox=100),
        OcrWord(text="BEACH", confidence=0.93, bbox=150),
        OcrWord(text="GOLF", confidence=0.94, bbox=200),
        OcrWord(text="LINKS", confidence=0.91, bbox=250),
    ]
    return OcrResult(
        raw_text=MOCK_TEXT,
        confidence=round(confidence * 100),
        words=words,
        lines=[OcrLine(text="PEBBLE BEACH GOLF LINKS", confidence=0.94, words=words)],
        provider=provider,
        structured_data=structured,
        golf_course_properties=flat_properties(structured),
    )
